class BSplineError(Exception):
    """
    Base class of every error raised by the B-spline curve operations.
    """


class DimensionZeroError(BSplineError, ValueError):
    """
    Raised when a curve is requested with a point dimension lower than 1.
    """


class DegreeTooHighError(BSplineError, ValueError):
    """
    Raised when the degree is greater than or equal to the number of control points.
    """


class AllocationError(BSplineError, MemoryError):
    """
    Raised when the control points or the knot vector can't be allocated.
    """


class MultiplicityError(BSplineError, ValueError):
    """
    Raised when a knot multiplicity would exceed the order of the curve.
    """


class ParameterUndefinedError(BSplineError, ValueError):
    """
    Raised when the curve is not defined at the requested parameter.
    """
