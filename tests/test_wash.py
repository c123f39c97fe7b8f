"""Tests for wash evaluators and ink marks.

Tests for aquarelle.painter.wash / aquarelle.painter.marks:
    - Output shapes, alpha in [0, 1], finite colors
    - Coverage concentrated at the shape, zero far away
    - Degenerate sizes are inert (alpha ≡ 0)
    - Static frame (anim_phase = 0) is the untouched shape

Run:
    pytest tests/test_wash.py -v
"""

import numpy as np
import pytest

from aquarelle.painter import marks, wash
from aquarelle.painter.pigment import pigment_pair
from aquarelle.utils.compute import pixel_grid


@pytest.fixture
def grid():
    return pixel_grid(48, 48)


@pytest.fixture
def pair():
    return pigment_pair(0)


def _check_sample(sample, shape):
    color, alpha = sample
    assert color.shape == shape + (3,)
    assert alpha.shape == shape
    assert np.all(np.isfinite(color)) and np.all(np.isfinite(alpha))
    assert alpha.min() >= 0.0 and alpha.max() <= 1.0
    assert color.min() >= 0.0 and color.max() <= 1.0


# ============================================================================
# Flower wash
# ============================================================================

def test_wash_shape_and_range(grid, pair):
    sample = wash.evaluate_wash(*grid, (0.0, 0.0), 0.5, 6, 123, *pair, opacity=0.8, wetness=0.4)
    _check_sample(sample, grid[0].shape)


def test_wash_covers_center_not_corners(grid, pair):
    _, alpha = wash.evaluate_wash(*grid, (0.0, 0.0), 0.35, 6, 123, *pair, opacity=0.8, wetness=0.3)
    assert alpha[24, 24] > 0.1
    assert alpha[0, 0] < 0.05
    assert alpha[-1, -1] < 0.05


@pytest.mark.parametrize("size", [0.0, -0.3, 1e-9])
def test_wash_degenerate_size_inert(grid, pair, size):
    color, alpha = wash.evaluate_wash(*grid, (0.0, 0.0), size, 6, 1, *pair, opacity=1.0, wetness=0.5)
    assert np.all(alpha == 0.0)
    assert np.all(np.isfinite(color))


def test_wash_zero_opacity_invisible(grid, pair):
    _, alpha = wash.evaluate_wash(*grid, (0.0, 0.0), 0.5, 6, 1, *pair, opacity=0.0, wetness=0.4)
    assert np.all(alpha == 0.0)


def test_wash_zero_phase_is_static(grid, pair):
    a = wash.evaluate_wash(*grid, (0.1, 0.0), 0.4, 7, 5, *pair, opacity=0.8, wetness=0.4, anim_phase=0.0)
    b = wash.evaluate_wash(*grid, (0.1, 0.0), 0.4, 7, 5, *pair, opacity=0.8, wetness=0.4)
    np.testing.assert_array_equal(a[1], b[1])


def test_wash_phase_moves_boundary_slightly(grid, pair):
    _, a0 = wash.evaluate_wash(*grid, (0.0, 0.0), 0.4, 7, 5, *pair, opacity=0.8, wetness=0.4)
    _, a1 = wash.evaluate_wash(*grid, (0.0, 0.0), 0.4, 7, 5, *pair, opacity=0.8, wetness=0.4, anim_phase=1.7)
    assert not np.array_equal(a0, a1)
    assert np.abs(a0 - a1).mean() < 0.1


# ============================================================================
# Splotch / abstract wash
# ============================================================================

def test_splotch_range(grid, pair):
    sample = wash.evaluate_splotch(*grid, (0.2, -0.1), 0.3, 77, *pair, opacity=0.4)
    _check_sample(sample, grid[0].shape)


def test_splotch_degenerate_radius(grid, pair):
    _, alpha = wash.evaluate_splotch(*grid, (0.0, 0.0), 0.0, 77, *pair, opacity=1.0)
    assert np.all(alpha == 0.0)


def test_abstract_wash_range(grid, pair):
    sample = wash.evaluate_abstract_wash(*grid, 0.7, 0.1, 0.4, 9, *pair, opacity=0.25)
    _check_sample(sample, grid[0].shape)
    assert sample[1].max() > 0.0


def test_abstract_wash_degenerate_band(grid, pair):
    _, alpha = wash.evaluate_abstract_wash(*grid, 0.7, 0.1, 0.0, 9, *pair, opacity=1.0)
    assert np.all(alpha == 0.0)


# ============================================================================
# Marks
# ============================================================================

STEM = dict(
    base=(0.0, -1.05), control=(0.1, -0.5), tip=(0.0, 0.2),
    branch_t=0.45, branch_control=(0.15, -0.2), branch_tip=(0.35, -0.05),
)


def test_stem_covers_its_curve(grid):
    color, alpha = marks.evaluate_stem(*grid, **STEM, width=0.1, key=3, ink=marks.STEM_INKS[0], opacity=0.9)
    assert color.shape == grid[0].shape + (3,)
    assert alpha.min() >= 0.0 and alpha.max() <= 1.0
    # row near the bottom of the frame crosses the main stroke
    assert alpha[44].max() > 0.3
    assert alpha[5, 2] == 0.0


def test_stem_zero_width_inert(grid):
    _, alpha = marks.evaluate_stem(*grid, **STEM, width=0.0, key=3, ink=marks.STEM_INKS[0], opacity=0.9)
    assert np.all(alpha == 0.0)


def test_stem_zero_length_finite(grid):
    _, alpha = marks.evaluate_stem(
        *grid, base=(0.0, 0.0), control=(0.0, 0.0), tip=(0.0, 0.0), branch_t=0.5,
        branch_control=(0.0, 0.0), branch_tip=(0.0, 0.0),
        width=0.05, key=1, ink=marks.STEM_INKS[1], opacity=1.0
    )
    assert np.all(np.isfinite(alpha))


def test_center_mark_near_center():
    fine = pixel_grid(128, 128)
    color, alpha = marks.evaluate_center_mark(*fine, (0.0, 0.0), 1.2, key=4, ink=(0.1, 0.05, 0.1), opacity=0.9)
    assert np.allclose(color, (0.1, 0.05, 0.1))
    assert alpha.max() > 0.5
    # dots stay within 0.12·size + radius of the center
    far = np.hypot(*fine) > 1.2 * 0.2
    assert np.all(alpha[far] == 0.0)


def test_center_mark_dot_count_clamped(grid):
    a = marks.evaluate_center_mark(*grid, (0.0, 0.0), 0.6, key=4, ink=(0, 0, 0), opacity=1.0, dot_count=50)[1]
    b = marks.evaluate_center_mark(*grid, (0.0, 0.0), 0.6, key=4, ink=(0, 0, 0), opacity=1.0, dot_count=marks.MAX_DOTS)[1]
    np.testing.assert_array_equal(a, b)
