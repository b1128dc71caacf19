from typing import Iterable, Iterator

from bscurve.b_spline_curve import BSplineCurve


class BSplineSequence:
    """
    Fixed-length ordered container of `BSplineCurve` instances.

    Used as the result of `BSplineCurve.split` (one or two curves) and of
    `BSplineCurve.to_bezier` (one curve per Bezier segment). The sequence owns
    its curves: releasing it releases every one of them. Its length is set at
    creation and never changes.

    Attributes
    ----------
    n : int
        Number of curves in the sequence.
    bsplines : list[BSplineCurve]
        The curves, in order.
    """

    n: int
    bsplines: list[BSplineCurve]

    def __init__(self, n: int = 0):
        """
        Create a sequence of `n` empty curves.

        Parameters
        ----------
        n : int, optional
            Length of the sequence. By default, 0.

        Raises
        ------
        ValueError
            If `n` is negative.
        """
        if n < 0:
            raise ValueError(f"The length of a sequence must be non negative, got {n}.")
        self.n = n
        self.bsplines = [BSplineCurve.empty() for _ in range(n)]

    @classmethod
    def from_curves(cls, curves: Iterable[BSplineCurve]) -> "BSplineSequence":
        """
        Create a sequence taking ownership of the given curves.
        """
        curves = list(curves)
        self = cls(len(curves))
        for i, curve in enumerate(curves):
            self[i] = curve
        return self

    def __len__(self) -> int:
        return self.n

    def __getitem__(self, i: int) -> BSplineCurve:
        return self.bsplines[i]

    def __setitem__(self, i: int, curve: BSplineCurve):
        if not isinstance(curve, BSplineCurve):
            raise TypeError(f"A sequence can only hold BSplineCurve instances, got {type(curve).__name__}.")
        self.bsplines[i] = curve

    def __iter__(self) -> Iterator[BSplineCurve]:
        return iter(self.bsplines)

    def take(self, i: int) -> BSplineCurve:
        """
        Move the curve of index `i` out of the sequence.

        The slot is left with an empty curve, so releasing the sequence
        afterwards doesn't affect the returned curve.
        """
        curve = self.bsplines[i]
        self.bsplines[i] = BSplineCurve.empty()
        return curve

    def release(self):
        """
        Release every curve of the sequence, then empty it.
        """
        for curve in self.bsplines:
            curve.release()
        self.bsplines = []
        self.n = 0

    def __enter__(self) -> "BSplineSequence":
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.release()

    def __repr__(self) -> str:
        return f"BSplineSequence(n={self.n})"
