"""Implicit shape kernel: signed distance fields for washes and strokes.

Provides:
    - dist_circle(), dist_ellipse(): primitive distances (negative inside)
    - smooth_merge(): polynomial smooth minimum (pigment pooling at joins)
    - rotate(): 2D rotation for local petal frames
    - flower_shape(): core disc smooth-merged with warped ellipse petals
    - bezier_closest(), bezier_distance(): quadratic stem curves

Invariants:
    - Radii, blend radii and segment lengths are floored at EPS
    - Shapes smaller than MIN_SIZE return INERT_DISTANCE everywhere
    - Loops are bounded: MAX_PETALS petals, BEZIER_SAMPLES curve samples
"""

import math
from typing import Sequence, Tuple

import numpy as np

from aquarelle.painter import prng
from aquarelle.painter.noise import DEFAULT_OCTAVES, fbm
from aquarelle.utils.compute import EPS, clamp01, mix

MAX_PETALS = 8
BEZIER_SAMPLES = 20
MIN_SIZE = 1e-4
INERT_DISTANCE = 1e3

_PETAL_SALT = 0x5E7A1


def dist_circle(x, y, radius: float) -> np.ndarray:
    """|p| − radius."""
    return np.hypot(x, y) - max(float(radius), EPS)


def dist_ellipse(x, y, rx: float, ry: float) -> np.ndarray:
    """Approximate signed distance to an axis-aligned ellipse.

    Uses the normalized-length estimate (|p / r| − 1) · min(r). Not exact,
    but continuous and sign-correct, which is all the wash edges need.
    """
    rx = max(float(rx), EPS)
    ry = max(float(ry), EPS)
    return (np.hypot(x / rx, y / ry) - 1.0) * min(rx, ry)


def smooth_merge(d1, d2, blend_radius: float) -> np.ndarray:
    """Polynomial smooth minimum of two distance fields.

    h = clamp(0.5 + 0.5 (d2 − d1) / k, 0, 1)
    result = mix(d2, d1, h) − k h (1 − h)

    The formula is symmetric in (d1, d2); it is evaluated on the ordered
    pair (min, max) so swapping the arguments is bit-identical too.
    """
    k = max(float(blend_radius), EPS)
    lo = np.minimum(d1, d2).astype(np.float64)
    hi = np.maximum(d1, d2).astype(np.float64)
    h = clamp01(0.5 + 0.5 * (hi - lo) / k)
    return mix(hi, lo, h) - k * h * (1.0 - h)


def rotate(x, y, angle: float) -> Tuple[np.ndarray, np.ndarray]:
    """Rotate points counter-clockwise by angle (radians)."""
    c = math.cos(angle)
    s = math.sin(angle)
    return c * x - s * y, s * x + c * y


def flower_shape(
    x,
    y,
    size: float,
    key: int,
    petal_count: int,
    orientation: float = 0.0,
    octaves: int = DEFAULT_OCTAVES
) -> np.ndarray:
    """Irregular floral blob as one implicit boundary.

    Parameters
    ----------
    x, y : array_like
        Coordinates relative to the flower center
    size : float
        Overall radius scale
    key : int
        Flower's private key; petal i draws its parameters from (key, i)
    petal_count : int
        Number of petals, clamped to [0, MAX_PETALS]
    orientation : float
        Rotation of the whole petal ring (radians)
    octaves : int
        fBm octaves for petal boundary wobble

    Returns
    -------
    np.ndarray
        Signed distance (negative inside)

    Notes
    -----
    Petals sit on a ring with even spacing plus jitter; each has its own
    reach, ellipse length/width and tilt, a boundary wobble scaled to its
    length, and is folded in with smooth_merge at a jittered blend radius.
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    size = float(size)
    if not size > MIN_SIZE:
        return np.full(np.broadcast(x, y).shape, INERT_DISTANCE)

    d = dist_circle(x, y, size * 0.22)
    n = max(0, min(int(petal_count), MAX_PETALS))
    if n == 0:
        return d

    spacing = 2.0 * math.pi / n
    for i in range(n):
        h = [prng.uniform(key, _PETAL_SALT, i, ch) for ch in range(6)]
        ring_angle = orientation + i * spacing + (h[0] - 0.5) * spacing * 0.6
        reach = size * (0.32 + 0.22 * h[1])
        length = size * (0.42 + 0.28 * h[2])
        width = length * (0.38 + 0.22 * h[3])
        tilt = ring_angle + (h[4] - 0.5) * 0.7

        lx, ly = rotate(
            x - reach * math.cos(ring_angle),
            y - reach * math.sin(ring_angle),
            -tilt
        )
        petal = dist_ellipse(lx, ly, length, width)

        petal_key = int(prng.mix_keys(key, _PETAL_SALT, i))
        wobble = fbm(lx / length * 1.8 + 3.7 * i, ly / width * 1.8, petal_key, octaves)
        petal = petal + (wobble - 0.45) * 0.22 * length

        d = smooth_merge(d, petal, size * (0.10 + 0.10 * h[5]))
    return d


def _quad_point(a: Sequence[float], b: Sequence[float], c: Sequence[float], t: float):
    u = 1.0 - t
    return (
        u * u * a[0] + 2.0 * u * t * b[0] + t * t * c[0],
        u * u * a[1] + 2.0 * u * t * b[1] + t * t * c[1],
    )


def bezier_point(a: Sequence[float], b: Sequence[float], c: Sequence[float], t: float) -> Tuple[float, float]:
    """Point on the quadratic curve a → c with control b at parameter t."""
    return _quad_point(a, b, c, float(t))


def bezier_closest(
    x,
    y,
    a: Sequence[float],
    b: Sequence[float],
    c: Sequence[float]
) -> Tuple[np.ndarray, np.ndarray]:
    """Distance to a quadratic Bézier and the curve parameter of the nearest point.

    Parameters
    ----------
    x, y : array_like
        Sample coordinates
    a, b, c : (float, float)
        Start point, control point, end point

    Returns
    -------
    distance : np.ndarray
        Unsigned distance to the curve (flattened to BEZIER_SAMPLES points)
    t : np.ndarray
        Parameter in [0, 1] of the nearest point, for tapering

    Notes
    -----
    Degenerate (zero-length) segments reduce to point distances; the
    squared length in the projection is floored at EPS.
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    ts = np.linspace(0.0, 1.0, BEZIER_SAMPLES)
    pts = [_quad_point(a, b, c, t) for t in ts]

    shape = np.broadcast(x, y).shape
    best_d = np.full(shape, np.inf, dtype=np.float64)
    best_t = np.zeros(shape, dtype=np.float64)
    for i in range(BEZIER_SAMPLES - 1):
        (x0, y0), (x1, y1) = pts[i], pts[i + 1]
        ex = x1 - x0
        ey = y1 - y0
        seg_len2 = max(ex * ex + ey * ey, EPS)
        h = clamp01(((x - x0) * ex + (y - y0) * ey) / seg_len2)
        d = np.hypot(x - x0 - ex * h, y - y0 - ey * h)
        closer = d < best_d
        best_d = np.where(closer, d, best_d)
        best_t = np.where(closer, ts[i] + (ts[i + 1] - ts[i]) * h, best_t)
    return best_d, best_t


def bezier_distance(x, y, a, b, c) -> np.ndarray:
    """Unsigned distance to a quadratic Bézier (see bezier_closest)."""
    return bezier_closest(x, y, a, b, c)[0]
