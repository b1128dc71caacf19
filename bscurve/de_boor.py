from typing import Literal, Union

import numpy as np
import numba as nb

from bscurve import tolerance
from bscurve.errors import AllocationError, MultiplicityError, ParameterUndefinedError
from bscurve.tolerance import _fequals

EvalKind = Literal["general", "left_boundary", "right_boundary", "boundary"]


class DeBoorNet:
    """
    Result of the evaluation of a B-spline curve at a parameter `u`.

    Contains the whole pyramid of points computed by de Boor's algorithm, and
    not only the evaluated point. Knot insertion and splitting reuse its
    diagonals to build the control points of the new curves.

    Attributes
    ----------
    u : float
        Parameter at which the curve was evaluated.
    k : int
        Index of the last knot lower than or equal to `u`.
    s : int
        Multiplicity of `u` in the knot vector.
    h : int
        Number of blending passes, `deg - s`.
    deg : int
        Degree of the evaluated curve.
    dim : int
        Dimension of one point.
    n_affected : int
        Number of control points involved in the evaluation.
    n_points : int
        Number of points stored in `points`.
    last_idx : int
        Row of `points` holding the evaluated point.
    points : np.ndarray[np.floating]
        Points of the pyramid, row after row, shape (`n_points`, `dim`).
        Row 0 contains the `n_affected` affected control points, row `r`
        contains `n_affected - r` points.
    kind : Union[EvalKind, None]
        Shape of the result, `None` once the net is released:
        - `"general"`: blended point, `points` is a full pyramid
        - `"left_boundary"`: `u` is the start of a clamped curve, single point
        - `"right_boundary"`: `u` is the end of a clamped curve, single point
        - `"boundary"`: `u` is an interior knot of full multiplicity, the two
        control points around the break are stored without blending
    """

    u: float
    k: int
    s: int
    h: int
    deg: int
    dim: int
    n_affected: int
    n_points: int
    last_idx: int
    points: np.ndarray[np.floating]
    kind: Union[EvalKind, None]

    def __init__(
        self,
        u: float,
        k: int,
        s: int,
        deg: int,
        points: np.ndarray[np.floating],
        kind: EvalKind,
    ):
        self.u = u
        self.k = k
        self.s = s
        self.h = deg - s
        self.deg = deg
        self.dim = points.shape[1]
        self.points = points
        self.n_points = points.shape[0]
        self.kind = kind
        if kind == "general":
            self.n_affected = deg - s + 1
        else:
            self.n_affected = self.n_points
        self.last_idx = self.n_points - 1

    @property
    def result(self) -> np.ndarray[np.floating]:
        """
        The evaluated point `P(u)`, shape (`dim`,).
        """
        return self.points[self.last_idx]

    def _row_start(self, r: int) -> int:
        return r * self.n_affected - (r * (r - 1)) // 2

    def row(self, r: int) -> np.ndarray[np.floating]:
        """
        Row `r` of the pyramid, shape (`n_affected - r`, `dim`).
        `r = n_affected` gives an empty row.
        """
        if r < 0 or r > self.n_affected:
            raise IndexError(f"Row {r} out of range [0, {self.n_affected}].")
        start = self._row_start(r)
        return self.points[start : start + self.n_affected - r]

    def left_diagonal(self, n: Union[int, None] = None) -> np.ndarray[np.floating]:
        """
        First point of the rows `0` to `n - 1`, from the outermost row to the
        innermost one.

        Parameters
        ----------
        n : Union[int, None], optional
            Number of rows to walk. If `None`, every row is used. By default, None.

        Returns
        -------
        diagonal : np.ndarray[np.floating]
            Points of the diagonal, shape (`n`, `dim`).
        """
        if n is None:
            n = self.n_affected
        idx = [self._row_start(r) for r in range(n)]
        return self.points[idx]

    def right_diagonal(self, n: Union[int, None] = None) -> np.ndarray[np.floating]:
        """
        Last point of the rows `n - 1` down to `0`, from the innermost row to
        the outermost one.

        Parameters
        ----------
        n : Union[int, None], optional
            Number of rows to walk. If `None`, every row is used. By default, None.

        Returns
        -------
        diagonal : np.ndarray[np.floating]
            Points of the diagonal, shape (`n`, `dim`).
        """
        if n is None:
            n = self.n_affected
        idx = [self._row_start(r + 1) - 1 for r in range(n - 1, -1, -1)]
        return self.points[idx]

    def release(self):
        """
        Reset the net to its empty default. Can be called several times.
        """
        self.u = 0.0
        self.k = 0
        self.s = 0
        self.h = 0
        self.deg = 0
        self.dim = 0
        self.n_affected = 0
        self.n_points = 0
        self.last_idx = 0
        self.points = np.empty((0, 0), dtype="float")
        self.kind = None

    def __repr__(self) -> str:
        return (
            f"DeBoorNet(u={self.u}, k={self.k}, s={self.s}, kind={self.kind!r}, "
            f"n_affected={self.n_affected})"
        )


def evaluate(curve, u: float) -> DeBoorNet:
    """
    Evaluate a B-spline curve at `u` with de Boor's algorithm.

    Parameters
    ----------
    curve : BSplineCurve
        Curve to evaluate.
    u : float
        Parameter at which the curve is evaluated.

    Returns
    -------
    net : DeBoorNet
        The de Boor net of the evaluation. The point on the curve is `net.result`.

    Raises
    ------
    MultiplicityError
        If the multiplicity of `u` in the knot vector is greater than the order
        of the curve.
    ParameterUndefinedError
        If `u` is outside the interval of definition of the curve.
    AllocationError
        If the pyramid can't be allocated.

    Notes
    -----
    The multiplicity of `u` is determined with the tolerant comparison of
    `bscurve.tolerance`. When `u` has a multiplicity equal to the order, no
    blending is needed and the control points around `u` are returned as is.

    Examples
    --------
    >>> curve = BSplineCurve.from_points(2, [[0., 0.], [1., 2.], [2., 0.]])
    >>> evaluate(curve, 0.5).result
    array([1., 1.])
    """
    u = float(u)
    if curve.n_ctrlp == 0:
        raise ParameterUndefinedError("Can't evaluate a released curve.")
    deg = curve.deg
    order = curve.order
    n_ctrlp = curve.n_ctrlp
    ctrlp = np.asarray(curve.ctrlp, dtype="float")
    knots = np.asarray(curve.knots, dtype="float")
    k, s = _find_span(u, knots, tolerance.MAX_ABS_ERROR, tolerance.MAX_REL_ERROR)
    if s > order:
        raise MultiplicityError(
            f"Multiplicity {s} of u={u} exceeds the order {order} of the curve."
        )
    if s == order:
        fst = k - s
        snd = fst + 1
        if fst < 0:
            return DeBoorNet(u, k, s, deg, ctrlp[:1].copy(), "left_boundary")
        if snd >= n_ctrlp:
            return DeBoorNet(u, k, s, deg, ctrlp[fst : fst + 1].copy(), "right_boundary")
        return DeBoorNet(u, k, s, deg, ctrlp[fst : snd + 1].copy(), "boundary")
    fst = k - deg
    lst = k - s
    if fst < 0 or lst >= n_ctrlp:
        raise ParameterUndefinedError(
            f"The curve is not defined at u={u}, its span is {curve.span}."
        )
    try:
        points = _de_boor_points(deg, k, s, u, knots, ctrlp)
    except MemoryError as err:
        raise AllocationError("Can't allocate the de Boor net.") from err
    return DeBoorNet(u, k, s, deg, points, "general")


# %% fast functions for evaluation


@nb.njit(
    nb.types.UniTuple(nb.int64, 2)(nb.float64, nb.float64[:], nb.float64, nb.float64),
    cache=True,
)
def _find_span(u, knots, abs_error, rel_error):
    """
    Find the index `k` of the last knot lower than or equal to `u` and the
    multiplicity `s` of `u` in the knot vector.

    Parameters
    ----------
    u : float
        Value in the parametric space.
    knots : numpy.array of float
        Knot vector of the curve.
    abs_error : float
        Absolute tolerance of the knot comparison.
    rel_error : float
        Relative tolerance of the knot comparison.

    Returns
    -------
    (k, s) : (int, int)
        Index of the span and multiplicity of `u`. `k` is -1 if `u` is lower
        than every knot.

    """
    k = -1
    s = 0
    for i in range(knots.size):
        if _fequals(u, knots[i], abs_error, rel_error):
            s += 1
        elif u < knots[i]:
            break
        k += 1
    return k, s


@nb.njit(
    nb.float64[:, :](
        nb.int64, nb.int64, nb.int64, nb.float64, nb.float64[:], nb.float64[:, :]
    ),
    cache=True,
)
def _de_boor_points(deg, k, s, u, knots, ctrlp):
    """
    Compute the pyramid of de Boor's algorithm.

    Parameters
    ----------
    deg : int
        Degree of the curve.
    k : int
        Index of the last knot lower than or equal to `u`.
    s : int
        Multiplicity of `u`, strictly lower than `deg + 1`.
    u : float
        Value in the parametric space.
    knots : numpy.array of float
        Knot vector of the curve.
    ctrlp : numpy.array of float
        Control points of the curve, shape (n_ctrlp, dim).

    Returns
    -------
    points : numpy.array of float
        Rows of the pyramid stored one after the other. The last point is the
        point of the curve at `u`.

    """
    dim = ctrlp.shape[1]
    fst = k - deg
    n_affected = deg - s + 1
    n_points = (n_affected * (n_affected + 1)) // 2
    points = np.empty((n_points, dim), dtype=np.float64)
    for i in range(n_affected):
        for d in range(dim):
            points[i, d] = ctrlp[fst + i, d]
    idx_l = 0
    idx_to = n_affected
    for r in range(1, deg - s + 1):
        for i in range(fst + r, k - s + 1):
            ui = knots[i]
            a = (u - ui) / (knots[i + deg - r + 1] - ui)
            a_hat = 1.0 - a
            for d in range(dim):
                points[idx_to, d] = a_hat * points[idx_l, d] + a * points[idx_l + 1, d]
            idx_l += 1
            idx_to += 1
        # skip the last point of the row, it has no right neighbour
        idx_l += 1
    return points
