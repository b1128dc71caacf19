"""
.. include:: ../README.md
"""
from bscurve.tolerance import equals, get_tolerances, set_tolerances, tolerances
from bscurve.errors import (BSplineError, 
                            DimensionZeroError, 
                            DegreeTooHighError, 
                            AllocationError, 
                            MultiplicityError, 
                            ParameterUndefinedError)
from bscurve.de_boor import DeBoorNet, evaluate
from bscurve.b_spline_curve import BSplineCurve
from bscurve.b_spline_sequence import BSplineSequence
