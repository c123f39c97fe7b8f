"""Tests for the implicit shape kernel.

Tests for aquarelle.painter.shapes:
    - Circle/ellipse distance signs and zero sets
    - smooth_merge commutativity (exact) and bound below min()
    - flower_shape determinism, petal cap, inert degenerate size
    - Bézier distance endpoints, parameter, zero-length curves

Run:
    pytest tests/test_shapes.py -v
"""

import numpy as np
import pytest

from aquarelle.painter import shapes


# ============================================================================
# Primitives
# ============================================================================

def test_dist_circle_signs():
    d = shapes.dist_circle(np.array([0.0, 0.5, 2.0]), np.zeros(3), 0.5)
    np.testing.assert_allclose(d, [-0.5, 0.0, 1.5])


def test_dist_circle_zero_radius_floored():
    d = shapes.dist_circle(0.0, 0.0, 0.0)
    assert np.isfinite(d) and d < 0.0


def test_dist_ellipse_zero_set_on_axes():
    d = shapes.dist_ellipse(np.array([2.0, 0.0, -2.0]), np.array([0.0, 1.0, 0.0]), 2.0, 1.0)
    np.testing.assert_allclose(d, 0.0, atol=1e-12)


def test_dist_ellipse_sign():
    assert shapes.dist_ellipse(0.0, 0.0, 2.0, 1.0) < 0.0
    assert shapes.dist_ellipse(3.0, 0.0, 2.0, 1.0) > 0.0


def test_dist_ellipse_degenerate_radii_finite():
    d = shapes.dist_ellipse(np.array([0.0, 1.0]), np.array([0.0, 1.0]), 0.0, 0.0)
    assert np.all(np.isfinite(d))


# ============================================================================
# Smooth merge
# ============================================================================

def test_smooth_merge_commutative_literal():
    assert shapes.smooth_merge(0.3, 0.7, 0.2) == shapes.smooth_merge(0.7, 0.3, 0.2)


@pytest.mark.parametrize("a,b,k", [(-1.0, 2.0, 0.5), (0.1, 0.1, 0.3), (5.0, -3.0, 1e-3), (0.0, 0.05, 10.0)])
def test_smooth_merge_commutative(a, b, k):
    assert shapes.smooth_merge(a, b, k) == shapes.smooth_merge(b, a, k)


def test_smooth_merge_equals_min_when_far_apart():
    assert shapes.smooth_merge(0.0, 1.0, 0.2) == pytest.approx(0.0)


def test_smooth_merge_below_min_near_join():
    v = shapes.smooth_merge(0.1, 0.1, 0.2)
    assert v < 0.1
    assert v == pytest.approx(0.1 - 0.05)


def test_smooth_merge_zero_radius_is_min():
    assert shapes.smooth_merge(0.3, 0.7, 0.0) == pytest.approx(0.3)


# ============================================================================
# Flower
# ============================================================================

@pytest.fixture
def grid():
    ys, xs = np.meshgrid(np.linspace(-1.0, 1.0, 48), np.linspace(-1.0, 1.0, 48), indexing='ij')
    return xs, ys


def test_flower_shape_deterministic(grid):
    a = shapes.flower_shape(*grid, 0.5, key=77, petal_count=6)
    b = shapes.flower_shape(*grid, 0.5, key=77, petal_count=6)
    np.testing.assert_array_equal(a, b)


def test_flower_shape_inside_center_outside_far(grid):
    d = shapes.flower_shape(*grid, 0.4, key=3, petal_count=5)
    assert shapes.flower_shape(0.0, 0.0, 0.4, key=3, petal_count=5) < 0.0
    assert d[0, 0] > 0.0  # corner at distance √2


def test_flower_shape_petal_cap(grid):
    capped = shapes.flower_shape(*grid, 0.5, key=9, petal_count=8)
    over = shapes.flower_shape(*grid, 0.5, key=9, petal_count=100)
    np.testing.assert_array_equal(capped, over)


def test_flower_shape_key_changes_shape(grid):
    a = shapes.flower_shape(*grid, 0.5, key=1, petal_count=6)
    b = shapes.flower_shape(*grid, 0.5, key=2, petal_count=6)
    assert not np.allclose(a, b)


@pytest.mark.parametrize("size", [0.0, -1.0, shapes.MIN_SIZE / 2])
def test_flower_shape_degenerate_size_inert(grid, size):
    d = shapes.flower_shape(*grid, size, key=1, petal_count=6)
    assert np.all(np.isfinite(d))
    assert np.all(d == shapes.INERT_DISTANCE)


def test_flower_shape_no_petals_is_core_disc(grid):
    d = shapes.flower_shape(*grid, 0.5, key=1, petal_count=0)
    np.testing.assert_allclose(d, shapes.dist_circle(*grid, 0.5 * 0.22))


# ============================================================================
# Bézier
# ============================================================================

A, B, C = (0.0, 0.0), (0.5, 1.0), (1.0, 0.0)


def test_bezier_distance_zero_at_endpoints():
    d = shapes.bezier_distance(np.array([0.0, 1.0]), np.array([0.0, 0.0]), A, B, C)
    np.testing.assert_allclose(d, 0.0, atol=1e-12)


def test_bezier_closest_parameter_at_endpoints_and_apex():
    x = np.array([0.0, 1.0, 0.5])
    y = np.array([0.0, 0.0, 0.5])
    d, t = shapes.bezier_closest(x, y, A, B, C)
    np.testing.assert_allclose(t, [0.0, 1.0, 0.5], atol=1e-9)
    assert d[2] < 1e-2  # apex of the curve is (0.5, 0.5)


def test_bezier_distance_far_point():
    d = shapes.bezier_distance(-2.0, 0.0, A, B, C)
    assert float(d) == pytest.approx(2.0, abs=1e-9)


def test_bezier_zero_length_is_point_distance():
    d = shapes.bezier_distance(np.array([3.0]), np.array([4.0]), (0.0, 0.0), (0.0, 0.0), (0.0, 0.0))
    np.testing.assert_allclose(d, 5.0)


def test_bezier_point_endpoints():
    assert shapes.bezier_point(A, B, C, 0.0) == pytest.approx(A)
    assert shapes.bezier_point(A, B, C, 1.0) == pytest.approx(C)
    assert shapes.bezier_point(A, B, C, 0.5) == pytest.approx((0.5, 0.5))
