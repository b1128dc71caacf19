import numpy as np
import pytest
from scipy.interpolate import BSpline as ScipyBSpline
from bscurve.b_spline_curve import BSplineCurve
from bscurve.de_boor import evaluate
from bscurve.errors import MultiplicityError, ParameterUndefinedError

@pytest.fixture
def quadratic_curve():
    curve = BSplineCurve(2, 2, 5, "clamped")
    curve.ctrlp[:] = [[0., 0.], [1., 2.], [2., 3.], [3., 2.], [4., 0.]]
    return curve

@pytest.fixture
def cubic_curve_3d():
    rng = np.random.default_rng(42)
    knots = [0., 0., 0., 0., 0.2, 0.45, 0.7, 1., 1., 1., 1.]
    return BSplineCurve.from_knots(3, rng.random((7, 3)), knots)

def reference(curve, U):
    return ScipyBSpline(curve.knots, curve.ctrlp, curve.deg)(U)

def test_clamped_ends(quadratic_curve):
    start = quadratic_curve.evaluate(0.)
    end = quadratic_curve.evaluate(1.)
    assert start.kind == "left_boundary"
    assert end.kind == "right_boundary"
    assert start.n_points == 1 and end.n_points == 1
    np.testing.assert_allclose(start.result, quadratic_curve.ctrlp[0])
    np.testing.assert_allclose(end.result, quadratic_curve.ctrlp[-1])

def test_general_net(quadratic_curve):
    net = quadratic_curve.evaluate(0.5)
    assert net.kind == "general"
    assert (net.k, net.s, net.h) == (3, 0, 2)
    assert net.n_affected == 3
    assert net.n_points == 6
    assert net.points.shape == (6, 2)
    assert net.last_idx == 5
    np.testing.assert_allclose(net.row(0), quadratic_curve.ctrlp[1:4])
    assert net.row(1).shape == (2, 2)
    assert net.row(2).shape == (1, 2)
    np.testing.assert_allclose(net.result, reference(quadratic_curve, 0.5))

def test_net_diagonals(quadratic_curve):
    net = quadratic_curve.evaluate(0.6)
    left = net.left_diagonal()
    right = net.right_diagonal()
    assert left.shape == right.shape == (3, 2)
    np.testing.assert_allclose(left[0], net.row(0)[0])
    np.testing.assert_allclose(left[1], net.row(1)[0])
    np.testing.assert_allclose(right[0], net.result)
    np.testing.assert_allclose(right[1], net.row(1)[-1])
    np.testing.assert_allclose(right[-1], net.row(0)[-1])
    np.testing.assert_allclose(left[-1], right[0])
    np.testing.assert_allclose(net.left_diagonal(1), net.row(0)[:1])

def test_evaluation_at_simple_knot(quadratic_curve):
    net = quadratic_curve.evaluate(1/3)
    assert (net.k, net.s, net.h) == (3, 1, 1)
    assert net.n_affected == 2
    np.testing.assert_allclose(net.result, [1.5, 2.5])

def test_matches_reference(quadratic_curve, cubic_curve_3d):
    for curve in (quadratic_curve, cubic_curve_3d):
        U = np.linspace(0, 1, 51)[1:-1]
        np.testing.assert_allclose(curve(U), reference(curve, U), atol=1e-12)

def test_call_shape(cubic_curve_3d):
    assert cubic_curve_3d([0.1, 0.5]).shape == (2, 3)
    assert cubic_curve_3d(0.5).shape == (1, 3)
    np.testing.assert_allclose(cubic_curve_3d(0.5)[0], evaluate(cubic_curve_3d, 0.5).result)

def test_opened_outside_support():
    curve = BSplineCurve(2, 2, 5, "opened")
    curve.ctrlp[:] = np.arange(10).reshape((5, 2))
    for u in [0.1, 0.95, 1., -1.]:
        with pytest.raises(ParameterUndefinedError):
            curve.evaluate(u)
    with pytest.raises(ValueError):
        curve.evaluate(0.1)
    a, b = curve.span
    assert curve.evaluate(a).kind == "general"
    assert curve.evaluate(b).kind == "general"
    assert curve.evaluate(0.5).kind == "general"

def test_clamped_outside_support(quadratic_curve):
    with pytest.raises(ParameterUndefinedError):
        quadratic_curve.evaluate(1.5)
    with pytest.raises(ParameterUndefinedError):
        quadratic_curve.evaluate(-0.5)

def test_multiplicity_exceeded():
    curve = BSplineCurve.from_knots(2, np.eye(4), [0., 0., 0., 0., 1., 1., 1.])
    with pytest.raises(MultiplicityError):
        curve.evaluate(0.)
    assert curve.evaluate(0.5).kind == "general"

def test_interior_boundary():
    ctrlp = np.arange(12, dtype=float).reshape((6, 2))
    curve = BSplineCurve.from_knots(2, ctrlp, [0., 0., 0., 0.5, 0.5, 0.5, 1., 1., 1.])
    net = curve.evaluate(0.5)
    assert net.kind == "boundary"
    assert net.n_points == 2
    np.testing.assert_allclose(net.points, ctrlp[2:4])
    np.testing.assert_allclose(net.result, ctrlp[3])

def test_degree_zero():
    curve = BSplineCurve.from_points(0, [[0.], [1.], [2.]])
    np.testing.assert_allclose(curve.knots, [0., 1/3, 2/3, 1.])
    np.testing.assert_allclose(curve.evaluate(0.1).result, [0.])
    np.testing.assert_allclose(curve.evaluate(0.5).result, [1.])
    assert curve.evaluate(1/3).kind == "boundary"
    np.testing.assert_allclose(curve.evaluate(1/3).result, [1.])
    assert curve.evaluate(0.).kind == "left_boundary"
    assert curve.evaluate(1.).kind == "right_boundary"
    np.testing.assert_allclose(curve.evaluate(1.).result, [2.])

def test_release_net(quadratic_curve):
    net = quadratic_curve.evaluate(0.5)
    net.release()
    assert net.n_points == 0 and net.points.size == 0
    assert net.kind is None
    net.release()
    assert net.n_affected == 0
    assert net.kind is None

def test_released_curve_is_undefined(quadratic_curve):
    quadratic_curve.release()
    with pytest.raises(ParameterUndefinedError):
        quadratic_curve.evaluate(0.5)
