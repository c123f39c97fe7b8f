"""Numerics: shading helpers, row banding, and finiteness guards.

Core utilities:
    - Shading helpers: clamp01(), mix(), smoothstep() on numpy arrays
    - Banded evaluation: band_slices() splits a frame into row bands
    - Finiteness guards: clamp_finite(), assert_finite()

Invariants:
    - All helpers are pure and elementwise (no cross-pixel state)
    - Float64 throughout the painter; quantization happens at I/O only
    - smoothstep() never divides by zero (degenerate edges → step)
"""

import logging
from typing import List, Tuple

import numpy as np

logger = logging.getLogger(__name__)

# Smallest denominator / radius the painter is allowed to divide by
EPS = 1e-6


def clamp01(x):
    """Clamp values to [0, 1].

    Parameters
    ----------
    x : array_like
        Input values

    Returns
    -------
    np.ndarray
        Clamped values, same shape
    """
    return np.clip(x, 0.0, 1.0)


def mix(a, b, t):
    """Linear interpolation a + (b - a) * t (GLSL ``mix``)."""
    return a + (b - a) * t


def smoothstep(edge0, edge1, x):
    """Hermite step between edge0 and edge1 (GLSL ``smoothstep``).

    Parameters
    ----------
    edge0, edge1 : float or np.ndarray
        Lower and upper edges; may be broadcast against x
    x : array_like
        Input values

    Returns
    -------
    np.ndarray
        3t² − 2t³ with t = clamp((x − edge0) / (edge1 − edge0), 0, 1)

    Notes
    -----
    The edge span is floored at EPS in magnitude (sign preserved), so
    coincident edges degrade to a hard step instead of producing NaN.
    """
    span = np.asarray(edge1, dtype=np.float64) - edge0
    span = np.where(np.abs(span) < EPS, np.where(span < 0.0, -EPS, EPS), span)
    t = clamp01((np.asarray(x, dtype=np.float64) - edge0) / span)
    return t * t * (3.0 - 2.0 * t)


def band_slices(height: int, band_rows: int) -> List[slice]:
    """Split image rows into contiguous bands.

    Parameters
    ----------
    height : int
        Image height in pixels
    band_rows : int
        Rows per band (last band may be shorter)

    Returns
    -------
    list[slice]
        Row slices covering [0, height) without overlap

    Notes
    -----
    Per-pixel shading needs no overlap or blending between bands;
    concatenating bands reproduces the full frame exactly.
    """
    if height <= 0:
        raise ValueError(f"height must be positive, got {height}")
    band_rows = max(1, int(band_rows))
    return [slice(y0, min(y0 + band_rows, height)) for y0 in range(0, height, band_rows)]


def clamp_finite(
    x: np.ndarray,
    min_val: float = -1e30,
    max_val: float = 1e30
) -> np.ndarray:
    """Replace NaN/Inf with finite values and clamp to range.

    Parameters
    ----------
    x : np.ndarray
        Input array
    min_val : float
        Minimum value after NaN/Inf replacement
    max_val : float
        Maximum value after NaN/Inf replacement

    Returns
    -------
    np.ndarray
        Finite array, NaN/Inf replaced and clamped

    Notes
    -----
    Use sparingly; prefer assert_finite() in the painter.
    Logs a warning if non-finite values are detected.
    """
    x = np.asarray(x)
    if not np.isfinite(x).all():
        logger.warning(
            f"Non-finite values detected: {int(np.isnan(x).sum())} NaNs, "
            f"{int(np.isinf(x).sum())} Infs"
        )
        x = np.nan_to_num(x, nan=0.0, posinf=max_val, neginf=min_val)
    return np.clip(x, min_val, max_val)


def assert_finite(x: np.ndarray, name: str = "array") -> None:
    """Assert array contains no NaN or Inf values.

    Parameters
    ----------
    x : np.ndarray
        Array to check
    name : str
        Array name for error message

    Raises
    ------
    ValueError
        If array contains NaN or Inf
    """
    x = np.asarray(x)
    if not np.isfinite(x).all():
        raise ValueError(
            f"{name} contains non-finite values: {int(np.isnan(x).sum())} NaNs, "
            f"{int(np.isinf(x).sum())} Infs. Shape: {x.shape}, dtype: {x.dtype}"
        )


def pixel_grid(width: int, height: int, rows: slice = None) -> Tuple[np.ndarray, np.ndarray]:
    """Aspect-corrected normalized coordinates for pixel centers.

    Parameters
    ----------
    width, height : int
        Frame size in pixels
    rows : slice, optional
        Row band to generate; None for the whole frame

    Returns
    -------
    x, y : np.ndarray
        Arrays of shape (rows, width). y ∈ [-1, 1] with +y up (row 0 is the
        top of the image); x ∈ [-aspect, aspect] with aspect = width / height.
    """
    rows = rows if rows is not None else slice(0, height)
    aspect = width / height
    xs = ((np.arange(width, dtype=np.float64) + 0.5) / width * 2.0 - 1.0) * aspect
    ys = 1.0 - (np.arange(rows.start, rows.stop, dtype=np.float64) + 0.5) / height * 2.0
    y, x = np.meshgrid(ys, xs, indexing='ij')
    return x, y
