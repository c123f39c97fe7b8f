"""Procedural noise primitives.

Provides:
    - lattice_noise(): Bilinear value noise in [0, 1], C¹ smoothstep interpolant
    - fbm(): Fractal sum of rotated, frequency-doubled lattice noise
    - turbulence(): fBm of rectified signed noise (sharp valleys)
    - cellular(): Distance to nearest jittered feature point (grain)

All functions take coordinate arrays (any matching shape) plus an integer
noise key and are elementwise: the value at a pixel depends only on that
pixel's coordinates and the key.

Octave counts are clamped to [1, MAX_OCTAVES]; DEFAULT_OCTAVES = 3 is the
reference quality/cost point.
"""

import numpy as np

from aquarelle.painter import prng

DEFAULT_OCTAVES = 3
MAX_OCTAVES = 8

# Inter-octave rotation (≈36.87°) and shift; breaks up axis-aligned lattice artifacts
_ROT_C = 0.8
_ROT_S = 0.6
_OCTAVE_SHIFT = (17.13, 31.71)


def _clamp_octaves(octaves: int) -> int:
    return max(1, min(int(octaves), MAX_OCTAVES))


def lattice_noise(x, y, key: int) -> np.ndarray:
    """Interpolated value noise.

    Parameters
    ----------
    x, y : array_like
        Sample coordinates (lattice spacing 1.0)
    key : int
        Noise key

    Returns
    -------
    np.ndarray
        Values in [0, 1], continuous with continuous first derivatives
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    ix = np.floor(x)
    iy = np.floor(y)
    fx = x - ix
    fy = y - iy
    ux = fx * fx * (3.0 - 2.0 * fx)
    uy = fy * fy * (3.0 - 2.0 * fy)

    a = prng.lattice_hash(ix, iy, key)
    b = prng.lattice_hash(ix + 1.0, iy, key)
    c = prng.lattice_hash(ix, iy + 1.0, key)
    d = prng.lattice_hash(ix + 1.0, iy + 1.0, key)

    bottom = a + (b - a) * ux
    top = c + (d - c) * ux
    return bottom + (top - bottom) * uy


def _octaves(x, y, key: int, octaves: int, rectify: bool) -> np.ndarray:
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    total = np.zeros(np.broadcast(x, y).shape, dtype=np.float64)
    amplitude = 0.5
    for _ in range(_clamp_octaves(octaves)):
        n = lattice_noise(x, y, key)
        if rectify:
            n = np.abs(2.0 * n - 1.0)
        total += amplitude * n
        x, y = (
            2.0 * (_ROT_C * x - _ROT_S * y) + _OCTAVE_SHIFT[0],
            2.0 * (_ROT_S * x + _ROT_C * y) + _OCTAVE_SHIFT[1],
        )
        amplitude *= 0.5
    return total


def fbm(x, y, key: int, octaves: int = DEFAULT_OCTAVES) -> np.ndarray:
    """Fractal Brownian motion.

    Parameters
    ----------
    x, y : array_like
        Sample coordinates
    key : int
        Noise key
    octaves : int
        Octave count, clamped to [1, 8]

    Returns
    -------
    np.ndarray
        Σ 0.5^(i+1) · lattice_noise(2^i · Rⁱ p); range [0, 1 − 2^-octaves]
    """
    return _octaves(x, y, key, octaves, rectify=False)


def turbulence(x, y, key: int, octaves: int = DEFAULT_OCTAVES) -> np.ndarray:
    """fBm of |2n − 1|: same range as fbm but with creased valleys."""
    return _octaves(x, y, key, octaves, rectify=True)


def cellular(x, y, key: int) -> np.ndarray:
    """Minimum distance to jittered feature points (Worley F1).

    Parameters
    ----------
    x, y : array_like
        Sample coordinates (one feature point per unit cell)
    key : int
        Noise key

    Returns
    -------
    np.ndarray
        Distance to the nearest of the 9 candidate points in the 3×3
        neighbourhood; in [0, √2] since the own cell always has a point
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    cx = np.floor(x)
    cy = np.floor(y)
    best = np.full(np.broadcast(x, y).shape, np.inf, dtype=np.float64)
    for dy in (-1.0, 0.0, 1.0):
        for dx in (-1.0, 0.0, 1.0):
            jx, jy = prng.lattice_hash2(cx + dx, cy + dy, key)
            px = cx + dx + jx
            py = cy + dy + jy
            best = np.minimum(best, np.hypot(px - x, py - y))
    return best
