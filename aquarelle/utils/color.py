"""Color helpers for palette authoring and output quantization.

Provides:
    - hex_to_rgb(): "#RRGGBB" → float RGB [0,1]
    - luminance(): Rec. 709 luma of an RGB array
    - to_uint8(): float [0,1] → uint8 with round-half-up

Used by:
    - Pigment palette: hex pairs converted once at import
    - Compositor: unpainted-paper detection for the grain overlay
    - fs.atomic_save_image / golden tests: quantization

Invariants:
    - Painter colors are display-referred RGB in [0,1]; no color management
    - Quantization is the only lossy step and happens at I/O boundaries
"""

from typing import Tuple

import numpy as np


def hex_to_rgb(hex_str: str) -> Tuple[float, float, float]:
    """Convert a hex color string to float RGB.

    Parameters
    ----------
    hex_str : str
        Color as "#RRGGBB" or "RRGGBB"

    Returns
    -------
    tuple of float
        (r, g, b) in [0, 1]

    Raises
    ------
    ValueError
        If the string is not 6 hex digits
    """
    s = hex_str.lstrip('#')
    if len(s) != 6:
        raise ValueError(f"Expected #RRGGBB hex color, got {hex_str!r}")
    try:
        r, g, b = (int(s[i:i + 2], 16) for i in (0, 2, 4))
    except ValueError as e:
        raise ValueError(f"Invalid hex digits in color {hex_str!r}") from e
    return (r / 255.0, g / 255.0, b / 255.0)


def luminance(rgb: np.ndarray) -> np.ndarray:
    """Rec. 709 luma: Y = 0.2126 R + 0.7152 G + 0.0722 B.

    Parameters
    ----------
    rgb : np.ndarray
        Color array, shape (..., 3)

    Returns
    -------
    np.ndarray
        Luma, shape (...)
    """
    rgb = np.asarray(rgb)
    if rgb.shape[-1] != 3:
        raise ValueError(f"Expected trailing channel axis of size 3, got {rgb.shape}")
    return 0.2126 * rgb[..., 0] + 0.7152 * rgb[..., 1] + 0.0722 * rgb[..., 2]


def to_uint8(img: np.ndarray) -> np.ndarray:
    """Quantize a float [0,1] image to uint8.

    Values are clamped before scaling; NaN maps to 0.
    """
    img = np.nan_to_num(np.asarray(img, dtype=np.float64), nan=0.0)
    return np.floor(np.clip(img, 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)
