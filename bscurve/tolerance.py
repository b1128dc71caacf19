from contextlib import contextmanager
from typing import Union

import numba as nb

MAX_ABS_ERROR = 1e-5
MAX_REL_ERROR = 1e-8


def get_tolerances() -> tuple[float, float]:
    """
    Returns the absolute and relative tolerances used to compare parameters.

    Returns
    -------
    tolerances : tuple[float, float]
        `(MAX_ABS_ERROR, MAX_REL_ERROR)`.
    """
    return MAX_ABS_ERROR, MAX_REL_ERROR


def set_tolerances(
    abs_error: Union[float, None] = None, rel_error: Union[float, None] = None
) -> None:
    """
    Change the tolerances used by `equals` and by every knot multiplicity test.

    Parameters
    ----------
    abs_error : Union[float, None], optional
        New absolute tolerance. If `None`, the current value is kept.
        By default, None.
    rel_error : Union[float, None], optional
        New relative tolerance. If `None`, the current value is kept.
        By default, None.

    Raises
    ------
    ValueError
        If one of the tolerances is negative.

    Examples
    --------
    >>> set_tolerances(abs_error=1e-3)
    >>> get_tolerances()
    (0.001, 1e-08)
    """
    global MAX_ABS_ERROR, MAX_REL_ERROR
    if abs_error is not None and abs_error < 0:
        raise ValueError(f"Absolute tolerance must be non negative, got {abs_error}.")
    if rel_error is not None and rel_error < 0:
        raise ValueError(f"Relative tolerance must be non negative, got {rel_error}.")
    if abs_error is not None:
        MAX_ABS_ERROR = float(abs_error)
    if rel_error is not None:
        MAX_REL_ERROR = float(rel_error)


@contextmanager
def tolerances(
    abs_error: Union[float, None] = None, rel_error: Union[float, None] = None
):
    """
    Temporarily override the comparison tolerances.

    The previous values are restored when leaving the `with` block, even if an
    exception is raised inside it.

    Examples
    --------
    >>> with tolerances(abs_error=0.1):
    ...     equals(1.0, 1.05)
    True
    >>> equals(1.0, 1.05)
    False
    """
    previous = get_tolerances()
    set_tolerances(abs_error, rel_error)
    try:
        yield get_tolerances()
    finally:
        set_tolerances(*previous)


def equals(x: float, y: float) -> bool:
    """
    Tolerant equality of two parameters.

    `x` and `y` are equal if `|x - y|` is below `MAX_ABS_ERROR`, or if the
    relative difference `|x - y| / max(|x|, |y|)` is at most `MAX_REL_ERROR`.

    Parameters
    ----------
    x : float
        First value.
    y : float
        Second value.

    Returns
    -------
    bool
        Whether `x` and `y` are considered equal.

    Examples
    --------
    >>> equals(0.5, 0.5 + 1e-7)
    True
    >>> equals(0.5, 0.6)
    False
    """
    return bool(_fequals(float(x), float(y), MAX_ABS_ERROR, MAX_REL_ERROR))


# %% fast functions


@nb.njit(nb.boolean(nb.float64, nb.float64, nb.float64, nb.float64), cache=True)
def _fequals(x, y, abs_error, rel_error):
    """
    Tolerant equality with explicit tolerances, usable from other jitted
    functions (numba freezes global variables at compile time).
    """
    if x == y:
        return True
    diff = abs(x - y)
    if diff < abs_error:
        return True
    denom = max(abs(x), abs(y))
    if denom == 0.0:
        return False
    return diff / denom <= rel_error
