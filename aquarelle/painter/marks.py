"""Opaque ink marks: stems with a branch, and flower center dots.

Marks are applied with ink_over (wet-on-dry, opaque) rather than glazed.
Each evaluator returns (color, alpha) like the wash evaluators so the
compositor can fold them the same way.
"""

import math
from typing import Sequence

import numpy as np

from aquarelle.painter import prng
from aquarelle.painter.noise import DEFAULT_OCTAVES, fbm
from aquarelle.painter.shapes import MIN_SIZE, bezier_closest, bezier_point, dist_circle
from aquarelle.utils.color import hex_to_rgb
from aquarelle.utils.compute import EPS, clamp01, smoothstep

STEM_INKS = tuple(hex_to_rgb(h) for h in ("#3B5A2E", "#4A6B35", "#2F4A3A"))
MAX_DOTS = 5

_WOBBLE_SALT = 0x30B
_TEXTURE_SALT = 0x7E7
_DOT_SALT = 0xD07


def _ink_color(shape, ink) -> np.ndarray:
    color = np.empty(shape + (3,), dtype=np.float64)
    color[...] = np.asarray(ink, dtype=np.float64)
    return color


def _stroke_coverage(x, y, a, b, c, width, taper):
    d, t = bezier_closest(x, y, a, b, c)
    half = np.maximum(0.5 * width * (1.0 - taper * t), EPS)
    return 1.0 - smoothstep(half * 0.55, half * 1.15, d)


def evaluate_stem(
    x,
    y,
    base: Sequence[float],
    control: Sequence[float],
    tip: Sequence[float],
    branch_t: float,
    branch_control: Sequence[float],
    branch_tip: Sequence[float],
    width: float,
    key: int,
    ink,
    opacity: float,
    anim_phase: float = 0.0,
    octaves: int = DEFAULT_OCTAVES
):
    """Tapered quadratic stem plus one side branch.

    Parameters
    ----------
    x, y : np.ndarray
        Canvas coordinates, shape (H, W)
    base, control, tip : (float, float)
        Main stroke: base at the bottom of the frame, tip under the flower
    branch_t : float
        Curve parameter on the main stroke where the branch starts
    branch_control, branch_tip : (float, float)
        Branch curve (start point is taken from the main stroke)
    width : float
        Stroke width at the base; tapers toward the tip
    key : int
        Stem sub-key (wobble and dry-brush texture)
    ink : array_like
        RGB ink, shape (3,)
    opacity : float
        Ink opacity
    anim_phase : float
        Sway phase; tip and branch sway are zero at 0.0

    Returns
    -------
    (color, alpha)
        Shapes (H, W, 3) and (H, W)
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    shape = np.broadcast(x, y).shape
    width = float(width)
    if not width > MIN_SIZE:
        return _ink_color(shape, ink), np.zeros(shape, dtype=np.float64)

    sway = 0.02 * math.sin(anim_phase * 0.8)
    tip = (tip[0] + sway, tip[1])
    control = (control[0] + 0.5 * sway, control[1])
    branch_tip = (branch_tip[0] + 1.5 * sway, branch_tip[1])

    wobble = fbm(x * 5.0, y * 5.0, int(prng.mix_keys(key, _WOBBLE_SALT)), octaves) - 0.5
    px = x + wobble * width * 1.5

    main = _stroke_coverage(px, y, base, control, tip, width, taper=0.65)
    start = bezier_point(base, control, tip, branch_t)
    branch = _stroke_coverage(px, y, start, branch_control, branch_tip, width * 0.6, taper=0.8)

    texture = 0.8 + 0.2 * fbm(x * 18.0, y * 18.0, int(prng.mix_keys(key, _TEXTURE_SALT)), octaves)
    alpha = clamp01(np.maximum(main, branch) * opacity * texture)
    return _ink_color(shape, ink), alpha


def evaluate_center_mark(
    x,
    y,
    center: Sequence[float],
    size: float,
    key: int,
    ink,
    opacity: float,
    dot_count: int = MAX_DOTS,
    anim_phase: float = 0.0,
    octaves: int = DEFAULT_OCTAVES
):
    """Cluster of small ink dots at a flower center.

    Dot i sits within 0.12·size of the center with radius
    size·(0.025 + 0.02·h), h drawn from (key, i). dot_count is clamped to
    [0, MAX_DOTS]. Positions jitter by at most 0.01·size with anim_phase.
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    shape = np.broadcast(x, y).shape
    size = float(size)
    coverage = np.zeros(shape, dtype=np.float64)
    if not size > MIN_SIZE:
        return _ink_color(shape, ink), coverage

    edge_noise = fbm(x / size * 30.0, y / size * 30.0, int(prng.mix_keys(key, _DOT_SALT)), octaves) - 0.5
    for i in range(max(0, min(int(dot_count), MAX_DOTS))):
        h = [prng.uniform(key, _DOT_SALT, i, ch) for ch in range(3)]
        ang = h[0] * 2.0 * math.pi
        dist = size * 0.12 * math.sqrt(h[1])
        jitter = size * 0.01 * math.sin(anim_phase) * math.cos(i)
        cx = center[0] + dist * math.cos(ang) + jitter
        cy = center[1] + dist * math.sin(ang)
        r = size * (0.025 + 0.02 * h[2])
        d = dist_circle(x - cx, y - cy, r) + edge_noise * r * 0.4
        coverage = np.maximum(coverage, 1.0 - smoothstep(-0.3 * r, 0.3 * r, d))

    return _ink_color(shape, ink), clamp01(coverage * opacity)
