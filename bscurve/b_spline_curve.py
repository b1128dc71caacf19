import logging
from typing import Iterable, Literal, Union

import numpy as np

from bscurve.de_boor import DeBoorNet, EvalKind, evaluate
from bscurve.errors import (
    AllocationError,
    DegreeTooHighError,
    DimensionZeroError,
    MultiplicityError,
    ParameterUndefinedError,
)
from bscurve.tolerance import equals

logger = logging.getLogger(__name__)

CurveKind = Literal["opened", "clamped"]


class BSplineCurve:
    """
    B-spline curve of arbitrary degree in a physical space of arbitrary dimension.

    A class holding the control points and the knot vector of a curve, with
    functionality for evaluation (de Boor's algorithm), knot insertion (Boehm's
    algorithm), subdivision, decomposition into Bezier segments and buckling.
    Every operation returns new curves: the instance it is called on is never
    modified.

    Attributes
    ----------
    deg : int
        Degree of the polynomials composing the curve.
    order : int
        Order of the curve, `deg + 1`.
    dim : int
        Dimension of the physical space, i.e. number of coordinates of one
        control point.
    n_ctrlp : int
        Number of control points.
    n_knots : int
        Number of knots, `n_ctrlp + order`.
    ctrlp : np.ndarray[np.floating]
        Control points, shape (`n_ctrlp`, `dim`).
    knots : np.ndarray[np.floating]
        Non-decreasing knot vector, shape (`n_knots`,).

    Notes
    -----
    - A curve built with the constructor has zero control points coordinates,
    fill `ctrlp` (or use `from_points`) before evaluating it
    - Knot multiplicities are detected with the tolerant comparison of
    `bscurve.tolerance`
    - A released curve is empty: every count is 0 and both arrays are empty

    See Also
    --------
    `DeBoorNet` : Result of an evaluation
    `BSplineSequence` : Container returned by `split` and `to_bezier`
    """

    deg: int
    order: int
    dim: int
    n_ctrlp: int
    n_knots: int
    ctrlp: np.ndarray[np.floating]
    knots: np.ndarray[np.floating]

    def __init__(self, deg: int, dim: int, n_ctrlp: int, kind: CurveKind = "clamped"):
        """
        Initialize a `BSplineCurve` with a generated knot vector.

        Parameters
        ----------
        deg : int
            Degree of the curve.
        dim : int
            Dimension of one control point. Must be at least 1.
        n_ctrlp : int
            Number of control points. Must be strictly greater than `deg`.
        kind : CurveKind, optional
            Pattern of the knot vector:
            - `"opened"`: uniformly spaced knots, `knots[i] = i/(n_knots - 1)`
            - `"clamped"`: `order` knots equal to 0, uniformly spaced interior
            knots, `order` knots equal to 1
            By default, "clamped".

        Raises
        ------
        DimensionZeroError
            If `dim` is lower than 1.
        DegreeTooHighError
            If `deg` is greater than or equal to `n_ctrlp`.
        AllocationError
            If the control points or the knot vector can't be allocated.

        Examples
        --------
        >>> curve = BSplineCurve(2, 2, 5)
        >>> curve.knots
        array([0.        , 0.        , 0.        , 0.33333333, 0.66666667,
               1.        , 1.        , 1.        ])
        >>> BSplineCurve(2, 2, 5, "opened").knots
        array([0.        , 0.14285714, 0.28571429, 0.42857143, 0.57142857,
               0.71428571, 0.85714286, 1.        ])
        """
        self._set_empty()
        if dim < 1:
            raise DimensionZeroError(f"The dimension must be at least 1, got {dim}.")
        if deg < 0:
            raise ValueError(f"The degree must be non negative, got {deg}.")
        if deg >= n_ctrlp:
            raise DegreeTooHighError(
                f"The degree ({deg}) must be lower than the number of control points ({n_ctrlp})."
            )
        if kind not in ("opened", "clamped"):
            raise ValueError(f'Kind "{kind}" not recognised. Kind must either be "opened" or "clamped" !')
        order = deg + 1
        n_knots = n_ctrlp + order
        try:
            ctrlp = np.zeros((n_ctrlp, dim), dtype="float")
            knots = np.empty(n_knots, dtype="float")
        except MemoryError as err:
            raise AllocationError(
                f"Can't allocate {n_ctrlp} control points of dimension {dim}."
            ) from err
        if kind == "opened":
            knots[:] = np.arange(n_knots) / (n_knots - 1)
        else:
            knots[:order] = 0.0
            knots[order : n_knots - order] = np.arange(1, n_knots - 2 * order + 1) / (
                n_knots - 2 * deg - 1
            )
            knots[n_knots - order :] = 1.0
        self.deg = deg
        self.order = order
        self.dim = dim
        self.n_ctrlp = n_ctrlp
        self.n_knots = n_knots
        self.ctrlp = ctrlp
        self.knots = knots

    def _set_empty(self):
        self.deg = 0
        self.order = 0
        self.dim = 0
        self.n_ctrlp = 0
        self.n_knots = 0
        self.ctrlp = np.empty((0, 0), dtype="float")
        self.knots = np.empty(0, dtype="float")

    @classmethod
    def empty(cls) -> "BSplineCurve":
        """
        Create an empty curve, as left by `release`.
        """
        self = cls.__new__(cls)
        self._set_empty()
        return self

    @classmethod
    def from_points(
        cls,
        deg: int,
        points: Iterable[Iterable[float]],
        kind: CurveKind = "clamped",
    ) -> "BSplineCurve":
        """
        Create a curve from its control points and a generated knot vector.

        Parameters
        ----------
        deg : int
            Degree of the curve.
        points : Iterable[Iterable[float]]
            Control points, shape (`n_ctrlp`, `dim`). A 1D array is read as
            `n_ctrlp` points of dimension 1.
        kind : CurveKind, optional
            Pattern of the knot vector, see `BSplineCurve`. By default, "clamped".

        Returns
        -------
        BSplineCurve
            The new curve.

        Examples
        --------
        >>> curve = BSplineCurve.from_points(1, [[0., 0.], [1., 1.]])
        >>> curve.knots
        array([0., 0., 1., 1.])
        """
        points = np.asarray(points, dtype="float")
        if points.ndim == 1:
            points = points[:, None]
        self = cls(deg, points.shape[1], points.shape[0], kind)
        self.ctrlp[:] = points
        return self

    @classmethod
    def from_knots(
        cls,
        deg: int,
        points: Iterable[Iterable[float]],
        knots: Iterable[float],
    ) -> "BSplineCurve":
        """
        Create a curve from its control points and an explicit knot vector.

        Parameters
        ----------
        deg : int
            Degree of the curve.
        points : Iterable[Iterable[float]]
            Control points, shape (`n_ctrlp`, `dim`).
        knots : Iterable[float]
            Non-decreasing knot vector of size `n_ctrlp + deg + 1`.

        Returns
        -------
        BSplineCurve
            The new curve.

        Raises
        ------
        ValueError
            If the size of the knot vector doesn't match the number of control
            points, or if it is decreasing somewhere.

        Examples
        --------
        >>> curve = BSplineCurve.from_knots(
        ...     2, [[0.], [1.], [2.], [3.]], [0., 0., 0., 0.5, 1., 1., 1.])
        """
        self = cls.from_points(deg, points)
        knots = np.asarray(knots, dtype="float").ravel()
        if knots.size != self.n_knots:
            raise ValueError(
                f"Expected {self.n_knots} knots for {self.n_ctrlp} control points of degree {deg}, got {knots.size}."
            )
        if np.any(np.diff(knots) < 0):
            raise ValueError("The knot vector must be non-decreasing.")
        self.knots[:] = knots
        return self

    @property
    def span(self) -> tuple[float, float]:
        """
        Interval of definition of the curve, `(knots[deg], knots[n_knots - order])`.
        Raises `ParameterUndefinedError` if the curve is empty.
        """
        if self.is_empty:
            raise ParameterUndefinedError("A released curve has no span.")
        return (float(self.knots[self.deg]), float(self.knots[self.n_knots - self.order]))

    def breakpoints(self) -> np.ndarray[np.floating]:
        """
        Distinct knot values inside the span of the curve, both ends included.

        Knots are merged with the tolerant comparison of `bscurve.tolerance`, so
        two consecutive breakpoints always delimit a non-empty knot span.

        Returns
        -------
        breaks : np.ndarray[np.floating]
            Increasing breakpoints, from `span[0]` to `span[1]`. A single value
            if the span is degenerate.

        Raises
        ------
        ParameterUndefinedError
            If the curve is empty.

        Examples
        --------
        >>> curve = BSplineCurve.from_knots(
        ...     2, [[0.], [1.], [2.], [3.], [4.]], [0., 0., 0., 0.5, 0.5, 1., 1., 1.])
        >>> curve.breakpoints()
        array([0. , 0.5, 1. ])
        """
        a, b = self.span
        breaks = [a]
        for knot in self.knots[self.deg + 1 : self.n_knots - self.order]:
            if not (equals(knot, breaks[-1]) or equals(knot, b)):
                breaks.append(float(knot))
        if not equals(b, breaks[-1]):
            breaks.append(b)
        return np.array(breaks, dtype="float")

    @property
    def is_empty(self) -> bool:
        """
        Whether the curve has been released (or never initialized).
        """
        return self.n_ctrlp == 0

    def point_at(self, i: int) -> np.ndarray[np.floating]:
        """
        Control point of index `i`.

        Parameters
        ----------
        i : int
            Index of the control point, in [0, `n_ctrlp`[.

        Returns
        -------
        point : np.ndarray[np.floating]
            View on the `dim` coordinates of the control point. Writing in it
            modifies the curve.

        Raises
        ------
        IndexError
            If `i` is out of range.
        """
        if i < 0 or i >= self.n_ctrlp:
            raise IndexError(f"Control point index {i} out of range [0, {self.n_ctrlp}[.")
        return self.ctrlp[i]

    def copy(self) -> "BSplineCurve":
        """
        Create an independent deep copy of the curve.

        Returns
        -------
        BSplineCurve
            Curve with the same degree, dimension, control points and knots.

        Notes
        -----
        The copy is built as a clamped curve whose knots are then overwritten
        with the knots of `self`, so the result doesn't depend on the kind
        `self` was created with.
        """
        if self.is_empty:
            return BSplineCurve.empty()
        copy = BSplineCurve(self.deg, self.dim, self.n_ctrlp, "clamped")
        copy.knots[:] = self.knots
        copy.ctrlp[:] = self.ctrlp
        return copy

    def release(self):
        """
        Drop the control points and the knot vector and reset the curve to
        its empty default. Releasing an empty curve does nothing.
        """
        self._set_empty()

    def __enter__(self) -> "BSplineCurve":
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.release()

    def to_dict(self) -> dict:
        """
        Returns a dictionary representation of the BSplineCurve object.
        """
        return {
            "deg": self.deg,
            "dim": self.dim,
            "ctrlp": self.ctrlp.tolist(),
            "knots": self.knots.tolist(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BSplineCurve":
        """
        Creates a BSplineCurve object from a dictionary representation.
        """
        if len(data["ctrlp"]) == 0:
            return cls.empty()
        return cls.from_knots(data["deg"], data["ctrlp"], data["knots"])

    def __repr__(self) -> str:
        if self.is_empty:
            return "BSplineCurve(<empty>)"
        return (
            f"BSplineCurve(deg={self.deg}, dim={self.dim}, n_ctrlp={self.n_ctrlp}, "
            f"span={self.span})"
        )

    def evaluate(self, u: float) -> DeBoorNet:
        """
        Evaluate the curve at `u` with de Boor's algorithm.

        Parameters
        ----------
        u : float
            Parameter at which the curve is evaluated.

        Returns
        -------
        net : DeBoorNet
            De Boor net of the evaluation, `net.result` is the point of the curve.

        Raises
        ------
        MultiplicityError
            If the multiplicity of `u` exceeds the order of the curve.
        ParameterUndefinedError
            If `u` is outside the interval of definition of the curve.

        Examples
        --------
        >>> curve = BSplineCurve.from_points(2, [[0., 0.], [1., 2.], [2., 0.]])
        >>> net = curve.evaluate(0.5)
        >>> net.kind
        'general'
        >>> net.result
        array([1., 1.])
        >>> curve.evaluate(0.).kind
        'left_boundary'
        """
        return evaluate(self, u)

    def __call__(self, U: Union[float, Iterable[float]]) -> np.ndarray[np.floating]:
        """
        Evaluate the curve at every parameter of `U`.

        Parameters
        ----------
        U : Union[float, Iterable[float]]
            Parameters at which the curve is evaluated.

        Returns
        -------
        values : np.ndarray[np.floating]
            Points of the curve, shape (`U.size`, `dim`).

        Examples
        --------
        >>> curve = BSplineCurve.from_points(1, [[0., 0.], [2., 2.]])
        >>> curve([0., 0.25, 1.])
        array([[0. , 0. ],
               [0.5, 0.5],
               [2. , 2. ]])
        """
        U = np.atleast_1d(np.asarray(U, dtype="float")).ravel()
        values = np.empty((U.size, self.dim), dtype="float")
        for i, u in enumerate(U):
            values[i] = evaluate(self, u).result
        return values

    def linspace(self, n_eval_per_elem: int = 10) -> np.ndarray[np.floating]:
        """
        Generate evenly spaced parameters over the span of the curve.

        Points are distributed uniformly within each knot span (element). Spacing
        may vary between different elements.

        Parameters
        ----------
        n_eval_per_elem : int, optional
            Number of parameters per element. By default, 10.

        Returns
        -------
        u : np.ndarray[np.floating]
            Parameters over the span, both ends included.

        Raises
        ------
        ParameterUndefinedError
            If the curve is empty.

        Examples
        --------
        >>> curve = BSplineCurve(2, 1, 4)
        >>> curve.linspace(2)
        array([0.  , 0.25, 0.5 , 0.75, 1.  ])
        """
        breaks = self.breakpoints()
        u = [
            np.linspace(lo, hi, n_eval_per_elem, endpoint=False)
            for lo, hi in zip(breaks[:-1], breaks[1:])
        ]
        u.append(breaks[-1:])
        return np.concatenate(u)

    def insert_knot(self, u: float, n: int = 1) -> "BSplineCurve":
        """
        Insert the knot `u` `n` times with Boehm's algorithm.

        Parameters
        ----------
        u : float
            Knot to insert.
        n : int, optional
            Number of insertions. By default, 1.

        Returns
        -------
        BSplineCurve
            New curve with `n_ctrlp + n` control points and the same geometry
            and parameterization as `self`.

        Raises
        ------
        ValueError
            If `n` is lower than 1.
        MultiplicityError
            If the multiplicity of `u` would exceed the order of the curve.
        ParameterUndefinedError
            If `u` is outside the interval of definition of the curve.

        Notes
        -----
        The new control points are taken from the de Boor net of the evaluation
        at `u`: the unaffected points on the left, the first `n` points of the
        left diagonal, the `n`-th row, the last `n` points of the right diagonal
        and the unaffected points on the right. If `u` matches an existing knot,
        the existing value is repeated so that the knot vector stays
        non-decreasing.

        Examples
        --------
        >>> curve = BSplineCurve.from_points(2, [[0., 0.], [1., 2.], [2., 0.]])
        >>> refined = curve.insert_knot(0.5)
        >>> refined.knots
        array([0. , 0. , 0. , 0.5, 1. , 1. , 1. ])
        >>> refined.ctrlp
        array([[0. , 0. ],
               [0.5, 1. ],
               [1.5, 1. ],
               [2. , 0. ]])
        """
        if n < 1:
            raise ValueError(f"The number of insertions must be at least 1, got {n}.")
        net = self.evaluate(u)
        try:
            if net.s + n > self.order:
                raise MultiplicityError(
                    f"Inserting u={net.u} {n} time(s) would give a multiplicity of "
                    f"{net.s + n}, greater than the order {self.order}."
                )
            k = net.k
            fst = k - self.deg
            new_knot = self.knots[k] if net.s > 0 else net.u
            result = BSplineCurve(self.deg, self.dim, self.n_ctrlp + n, "opened")
            result.ctrlp[:] = np.concatenate(
                (
                    self.ctrlp[:fst],
                    net.left_diagonal(n),
                    net.row(n),
                    net.right_diagonal(n),
                    self.ctrlp[fst + net.n_affected :],
                ),
                axis=0,
            )
            result.knots[:] = np.concatenate(
                (self.knots[: k + 1], np.full(n, new_knot), self.knots[k + 1 :])
            )
        finally:
            net.release()
        logger.debug(
            "Inserted u=%g %d time(s): %d -> %d control points",
            new_knot, n, self.n_ctrlp, result.n_ctrlp,
        )
        return result

    def split(self, u: float) -> tuple["BSplineSequence", EvalKind]:
        """
        Split the curve at `u`.

        Parameters
        ----------
        u : float
            Parameter at which the curve is cut.

        Returns
        -------
        split : BSplineSequence
            The pieces of the curve:
            - two curves, respectively defined on `[span[0], u]` and `[u, span[1]]`
            - a single copy of `self` if `u` is one of the ends of the span
        kind : EvalKind
            - `"general"`: `u` had to be inserted to split the curve
            - `"boundary"`: `u` already had a full multiplicity, no insertion needed
            - `"left_boundary"` / `"right_boundary"`: `u` is the start / end of
            the span, nothing to split

        Raises
        ------
        MultiplicityError
            If the multiplicity of `u` exceeds the order of the curve.
        ParameterUndefinedError
            If `u` is outside the interval of definition of the curve.

        Notes
        -----
        Both pieces get `order` copies of `u` at the cut, which is equivalent to
        inserting `u` `order - s` times and cutting the curve at this knot.
        The left piece evaluated at `u` and the right piece evaluated at `u`
        both give the point of `self` at `u`.

        Examples
        --------
        >>> curve = BSplineCurve.from_points(2, [[0., 0.], [1., 2.], [2., 0.]])
        >>> (left, right), kind = curve.split(0.5)
        >>> kind
        'general'
        >>> left.knots
        array([0. , 0. , 0. , 0.5, 0.5, 0.5])
        >>> left.ctrlp[-1], right.ctrlp[0]
        (array([1., 1.]), array([1., 1.]))
        """
        from bscurve.b_spline_sequence import BSplineSequence

        net = self.evaluate(u)
        u = net.u
        deg = self.deg
        order = self.order
        try:
            if equals(self.knots[deg], u) or equals(self.knots[self.n_knots - order], u):
                kind = "left_boundary" if equals(self.knots[deg], u) else "right_boundary"
                split = BSplineSequence(1)
                split[0] = self.copy()
                logger.debug("Split at u=%g is a no-op (%s)", u, kind)
                return split, kind
            k = net.k
            s = net.s
            split = BSplineSequence(2)
            try:
                if net.kind == "general":
                    left = BSplineCurve(deg, self.dim, k - s + 1, "clamped")
                    split[0] = left
                    left.ctrlp[:] = np.concatenate(
                        (self.ctrlp[: k - deg], net.left_diagonal()), axis=0
                    )
                    left.knots[:] = np.concatenate((self.knots[: k - s + 1], np.full(order, u)))
                    right = BSplineCurve(deg, self.dim, self.n_ctrlp - (k - s) + net.n_affected - 1, "clamped")
                    split[1] = right
                    right.ctrlp[:] = np.concatenate(
                        (net.right_diagonal(), self.ctrlp[k - s + 1 :]), axis=0
                    )
                    right.knots[:] = np.concatenate((np.full(order, u), self.knots[k + 1 :]))
                else:
                    left = BSplineCurve(deg, self.dim, k - s + 1, "clamped")
                    split[0] = left
                    left.ctrlp[:] = self.ctrlp[: k - s + 1]
                    left.knots[:] = self.knots[: k + 1]
                    right = BSplineCurve(deg, self.dim, self.n_ctrlp - (k - s + 1), "clamped")
                    split[1] = right
                    right.ctrlp[:] = self.ctrlp[k - s + 1 :]
                    right.knots[:] = self.knots[k - s + 1 :]
            except Exception:
                split.release()
                raise
            kind = net.kind
        finally:
            net.release()
        logger.debug(
            "Split at u=%g (%s): %d -> %d + %d control points",
            u, kind, self.n_ctrlp, split[0].n_ctrlp, split[1].n_ctrlp,
        )
        return split, kind

    def to_bezier(self) -> "BSplineSequence":
        """
        Decompose the curve into a sequence of Bezier segments.

        Returns
        -------
        sequence : BSplineSequence
            One curve per non-empty knot span of the curve, in the order of the
            parameterization.

        Raises
        ------
        ParameterUndefinedError
            If the curve is empty.

        Notes
        -----
        The curve is repeatedly split at the first interior breakpoint of the
        remaining tail, the first knot strictly greater than `knots[deg]`, until
        the tail covers a single knot span. Knots repeated at the start of the
        span are skipped this way. For a clamped curve, every segment has
        `order` control points and adjacent segments share their end control
        points. The first and last segments of an unclamped curve keep its
        outer knots.

        Examples
        --------
        >>> curve = BSplineCurve(2, 2, 5)
        >>> curve.ctrlp[:] = [[0., 0.], [1., 2.], [2., 3.], [3., 2.], [4., 0.]]
        >>> segments = curve.to_bezier()
        >>> len(segments)
        3
        >>> segments[1].knots
        array([0.33333333, 0.33333333, 0.33333333, 0.66666667, 0.66666667,
               0.66666667])
        """
        from bscurve.b_spline_sequence import BSplineSequence

        if self.is_empty:
            raise ParameterUndefinedError("Can't decompose a released curve.")
        segments = []
        current = self
        try:
            breaks = current.breakpoints()
            while breaks.size > 2:
                split, _ = current.split(breaks[1])
                segments.append(split.take(0))
                if current is not self:
                    current.release()
                current = split.take(1)
                split.release()
                breaks = current.breakpoints()
            segments.append(self.copy() if current is self else current)
        except Exception:
            for segment in segments:
                segment.release()
            if current is not self:
                current.release()
            raise
        logger.debug("Decomposed a curve of %d control points into %d Bezier segments",
                     self.n_ctrlp, len(segments))
        return BSplineSequence.from_curves(segments)

    def buckle(self, b: float) -> "BSplineCurve":
        """
        Blend the curve toward the chord between its first and last control points.

        Parameters
        ----------
        b : float
            Blend factor in [0, 1]. `b = 1` keeps the curve unchanged, `b = 0`
            puts every control point on the chord.

        Returns
        -------
        BSplineCurve
            Buckled copy of the curve.

        Raises
        ------
        ValueError
            If `b` is outside [0, 1].
        ParameterUndefinedError
            If the curve is empty.

        Notes
        -----
        The control point `P_i` becomes `b*P_i + (1 - b)*L(i)`, where `L(i)` is
        the point at the fraction `i/(n_ctrlp - 1)` of the chord.

        Examples
        --------
        >>> curve = BSplineCurve.from_points(2, [[0., 0.], [1., 2.], [2., 0.]])
        >>> curve.buckle(0.5).ctrlp
        array([[0. , 0. ],
               [1. , 1. ],
               [2. , 0. ]])
        """
        if not 0 <= b <= 1:
            raise ValueError(f"The blend factor must be in [0, 1], got {b}.")
        if self.is_empty:
            raise ParameterUndefinedError("Can't buckle a released curve.")
        buckled = self.copy()
        N = buckled.n_ctrlp
        p0 = buckled.ctrlp[0].copy()
        pn_1 = buckled.ctrlp[N - 1].copy()
        if N > 1:
            t = np.arange(N) / (N - 1)
        else:
            t = np.zeros(1, dtype="float")
        chord = p0[None, :] + t[:, None] * (pn_1 - p0)[None, :]
        buckled.ctrlp[:] = b * buckled.ctrlp + (1 - b) * chord
        return buckled
