"""Pigment palette and compositing operators.

Pigment model:
    - PALETTE: 10 base pigments, each paired with the partner it separates
      into at drying edges; shape (10, 2, 3), read-only
    - chromatic_separation(): per-pixel blend A → B from differential
      noise-driven transport (the lighter pigment runs ahead of the heavy one)

Compositing:
    - glaze_over(): transparent, multiplicative layer over the canvas
    - ink_over(): opaque linear blend toward an ink color

glaze_over never brightens a channel: with under, pigment and alpha in
[0, 1] the result is ≤ under. Order of application matters; the compositor
folds layers strictly back to front.
"""

from typing import Tuple

import numpy as np

from aquarelle.painter import prng
from aquarelle.painter.noise import DEFAULT_OCTAVES, fbm
from aquarelle.utils.color import hex_to_rgb
from aquarelle.utils.compute import clamp01, mix, smoothstep

PALETTE_SIZE = 10

# (base, partner)
_PALETTE_HEX = (
    ("#E8879C", "#B03A7A"),  # rose → magenta
    ("#F08A6C", "#C0283C"),  # coral → crimson
    ("#E0A43C", "#C0561E"),  # ochre → burnt orange
    ("#7FA650", "#2E7D6B"),  # sap green → viridian
    ("#6FA8DC", "#2F3F9E"),  # cerulean → ultramarine
    ("#B9A2D8", "#6A3D9A"),  # lavender → violet
    ("#F4B89A", "#D45A7A"),  # peach → rose
    ("#4FA3A0", "#1F4E6E"),  # teal → prussian
    ("#F2DC5D", "#8AA83C"),  # lemon → sap
    ("#C98B52", "#6B3A24"),  # raw sienna → burnt umber
)

PALETTE = np.array(
    [[hex_to_rgb(a), hex_to_rgb(b)] for a, b in _PALETTE_HEX],
    dtype=np.float64
)
PALETTE.setflags(write=False)

_FLOW_SALT = 0xF10
_HEAVY_SALT = 0x4EA7
_LIGHT_SALT = 0x119E7

_FLOW_SCALE = 1.3
_FIELD_SCALE = 2.1
_HEAVY_DISPLACEMENT = 0.5
_LIGHT_DISPLACEMENT = 1.5


def pigment_pair(index: int) -> Tuple[np.ndarray, np.ndarray]:
    """Base pigment and its partner for a palette index (wraps mod 10).

    Returned arrays are read-only views into PALETTE.
    """
    pair = PALETTE[int(index) % PALETTE_SIZE]
    return pair[0], pair[1]


def chromatic_separation(
    x,
    y,
    pigment_a,
    pigment_b,
    amount,
    key: int,
    octaves: int = DEFAULT_OCTAVES
) -> np.ndarray:
    """Blend two pigments by simulated differential mobility.

    Parameters
    ----------
    x, y : np.ndarray
        Sample coordinates, shape (H, W)
    pigment_a, pigment_b : array_like
        RGB of the heavy (base) and light (partner) pigment, shape (3,)
    amount : float or np.ndarray
        Separation strength in [0, 1]; broadcast against (H, W)
    key : int
        Layer sub-key
    octaves : int
        fBm octaves

    Returns
    -------
    np.ndarray
        Color, shape (H, W, 3)

    Notes
    -----
    A flow field (two fbm channels, centered on zero) displaces two scalar
    fields: the heavy pigment moves a little, the light one three times as
    far. t = smoothstep(0.15, 0.45, light − 0.4·heavy) · amount picks the
    partner where the light pigment has run ahead.
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    flow_key = int(prng.mix_keys(key, _FLOW_SALT))
    fx = x * _FLOW_SCALE
    fy = y * _FLOW_SCALE
    flow_x = fbm(fx, fy, flow_key, octaves) - 0.5
    flow_y = fbm(fx + 11.7, fy + 4.1, flow_key, octaves) - 0.5

    px = x * _FIELD_SCALE
    py = y * _FIELD_SCALE
    heavy = fbm(
        px + flow_x * _HEAVY_DISPLACEMENT,
        py + flow_y * _HEAVY_DISPLACEMENT,
        int(prng.mix_keys(key, _HEAVY_SALT)),
        octaves
    )
    light = fbm(
        px + flow_x * _LIGHT_DISPLACEMENT,
        py + flow_y * _LIGHT_DISPLACEMENT,
        int(prng.mix_keys(key, _LIGHT_SALT)),
        octaves
    )

    t = smoothstep(0.15, 0.45, light - 0.4 * heavy) * clamp01(np.asarray(amount, dtype=np.float64))
    a = np.asarray(pigment_a, dtype=np.float64)
    b = np.asarray(pigment_b, dtype=np.float64)
    return mix(a, b, t[..., None])


def glaze_over(under: np.ndarray, pigment, alpha) -> np.ndarray:
    """Transparent glaze: under · mix(1, pigment, alpha).

    Parameters
    ----------
    under : np.ndarray
        Canvas color, shape (H, W, 3)
    pigment : array_like
        Glaze color, shape (3,) or (H, W, 3)
    alpha : array_like
        Coverage, shape (H, W); clamped to [0, 1]

    Returns
    -------
    np.ndarray
        New canvas color, shape (H, W, 3)
    """
    a = clamp01(np.asarray(alpha, dtype=np.float64))[..., None]
    return under * mix(1.0, np.asarray(pigment, dtype=np.float64), a)


def ink_over(under: np.ndarray, ink, alpha) -> np.ndarray:
    """Opaque ink: mix(under, ink, alpha)."""
    a = clamp01(np.asarray(alpha, dtype=np.float64))[..., None]
    return mix(under, np.asarray(ink, dtype=np.float64), a)
