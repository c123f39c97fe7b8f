"""Wash evaluators: one (color, alpha) sample per layer instance.

Three evaluators share the same structure (shape distance → warped
boundary → coverage zones → pigment color → alpha) with different shape
kernels:

    - evaluate_wash(): flower-shaped wash with bleed halo and edge darkening
    - evaluate_splotch(): circular backrun bloom with a scalloped rim
    - evaluate_abstract_wash(): soft directional band (background color field)

All evaluators are pure: outputs depend only on the arguments. Shapes with
size at or below MIN_SIZE return alpha ≡ 0 so the glaze is a no-op.

Coordinates passed to the noise functions are expressed in shape-local
units (divided by size) so texture scales with the shape.
"""

import math
from typing import Sequence, Tuple

import numpy as np

from aquarelle.painter import prng
from aquarelle.painter.noise import DEFAULT_OCTAVES, cellular, fbm, turbulence
from aquarelle.painter.pigment import chromatic_separation
from aquarelle.painter.shapes import MIN_SIZE, dist_circle, flower_shape
from aquarelle.painter.warp import DEFAULT_INTENSITY, MAX_INTENSITY, domain_warp
from aquarelle.utils.compute import EPS, clamp01, mix, smoothstep

_WARP_SALT = 0xA11
_FINE_SALT = 0xF1E
_EDGE_SALT = 0xED6E
_DENSITY_SALT = 0xDE5
_GRAIN_SALT = 0x6BA1
_LOBE_SALT = 0x10BE

# Alpha weights of the bleed halo, saturated core and edge band
_OUTER_WEIGHT = 0.25
_INNER_WEIGHT = 0.55
_EDGE_WEIGHT = 0.35

_GRAIN_FREQUENCY = 40.0

WashSample = Tuple[np.ndarray, np.ndarray]


def _inert(shape, pigment) -> WashSample:
    color = np.empty(shape + (3,), dtype=np.float64)
    color[...] = np.asarray(pigment, dtype=np.float64)
    return color, np.zeros(shape, dtype=np.float64)


def _breathe(x, y, center: Sequence[float], size: float, anim_phase: float):
    """Shape-local coordinates with a small periodic scale/offset.

    Identity at anim_phase == 0 (sin(0) == 0 exactly).
    """
    scale = 1.0 + 0.04 * math.sin(anim_phase)
    ox = size * 0.02 * math.sin(anim_phase * 0.7)
    oy = size * 0.02 * math.sin(anim_phase * 1.3)
    return (x - center[0]) / scale - ox, (y - center[1]) / scale - oy


def evaluate_wash(
    x,
    y,
    center: Sequence[float],
    size: float,
    petal_count: int,
    key: int,
    pigment_a,
    pigment_b,
    opacity: float,
    wetness: float,
    anim_phase: float = 0.0,
    orientation: float = 0.0,
    octaves: int = DEFAULT_OCTAVES,
    warp_intensity: float = DEFAULT_INTENSITY
) -> WashSample:
    """Flower wash sample.

    Parameters
    ----------
    x, y : np.ndarray
        Canvas coordinates, shape (H, W)
    center : (float, float)
        Flower center
    size : float
        Flower radius scale
    petal_count : int
        Petals (clamped to [0, 8] by flower_shape)
    key : int
        Flower sub-key
    pigment_a, pigment_b : array_like
        Base pigment and chromatographic partner, shape (3,)
    opacity : float
        Layer opacity in [0, 1]
    wetness : float
        Bleed halo width as a fraction of size
    anim_phase : float
        Breathing phase; 0.0 for the static frame
    orientation : float
        Petal ring rotation (radians)
    octaves : int
        fBm octaves for every noise term
    warp_intensity : float
        Domain-warp gain k

    Returns
    -------
    color : np.ndarray
        Pigment color, shape (H, W, 3)
    alpha : np.ndarray
        Coverage in [0, 1], shape (H, W)
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    size = float(size)
    if not size > MIN_SIZE:
        return _inert(np.broadcast(x, y).shape, pigment_a)

    lx, ly = _breathe(x, y, center, size, anim_phase)
    ux = lx / size
    uy = ly / size

    # Boundary: flower SDF pushed around by the warp and a fine noise
    d = flower_shape(lx, ly, size, key, petal_count, orientation, octaves)
    drift = 0.15 * math.sin(anim_phase * 0.5)
    ws = domain_warp(
        ux * 1.5 + drift, uy * 1.5,
        int(prng.mix_keys(key, _WARP_SALT)), warp_intensity, octaves
    )
    fine = fbm(ux * 6.0 + 3.1, uy * 6.0 - 1.7, int(prng.mix_keys(key, _FINE_SALT)), octaves)
    d = d + (ws.value - 0.45) * size * 0.35 + (fine - 0.5) * size * 0.08

    # Coverage zones
    inner = 1.0 - smoothstep(-0.15 * size, 0.02 * size, d)
    outer = 1.0 - smoothstep(0.0, max(float(wetness), 0.0) * size, d)

    edge_noise = fbm(ux * 4.0 + 7.3, uy * 4.0 + 2.9, int(prng.mix_keys(key, _EDGE_SALT)), octaves)
    edge_width = size * (0.015 + 0.035 * edge_noise)
    edge = (1.0 - smoothstep(0.0, edge_width, np.abs(d))) * _EDGE_WEIGHT

    # Color: separation strongest in the wet fringe, darker edge, q-flow shift
    a = np.asarray(pigment_a, dtype=np.float64)
    b = np.asarray(pigment_b, dtype=np.float64)
    amount = clamp01(0.25 + 0.75 * (outer - inner))
    color = chromatic_separation(ux, uy, a, b, amount, key, octaves)
    color = color * (1.0 - 0.6 * edge)[..., None]
    shift = smoothstep(0.5, 1.1, ws.q_magnitude) * 0.35
    color = mix(color, b, shift[..., None])

    # Alpha
    density = 0.75 + 0.5 * fbm(ux * 2.5 - 5.1, uy * 2.5 + 8.3, int(prng.mix_keys(key, _DENSITY_SALT)), octaves)
    reach = 0.9 + max(float(wetness), 0.0)
    fade = 1.0 - smoothstep(reach, reach + 0.7, np.hypot(ux, uy))
    grain = 0.85 + 0.15 * smoothstep(
        0.0, 0.6, cellular(x * _GRAIN_FREQUENCY, y * _GRAIN_FREQUENCY, int(prng.mix_keys(key, _GRAIN_SALT)))
    )
    alpha = (outer * _OUTER_WEIGHT + inner * _INNER_WEIGHT) * opacity * density * fade * grain
    alpha = clamp01(alpha + edge * opacity)
    return color, alpha


def evaluate_splotch(
    x,
    y,
    center: Sequence[float],
    radius: float,
    key: int,
    pigment_a,
    pigment_b,
    opacity: float,
    anim_phase: float = 0.0,
    octaves: int = DEFAULT_OCTAVES,
    warp_intensity: float = DEFAULT_INTENSITY
) -> WashSample:
    """Backrun bloom: a warped disc with scalloped, darker rim and pale core.

    The warp runs 1.5 above the configured gain (capped at the warp maximum)
    so blooms read more ragged than flower washes. Scallop count (5-8) and
    phase derive from key.
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    radius = float(radius)
    if not radius > MIN_SIZE:
        return _inert(np.broadcast(x, y).shape, pigment_a)

    lx, ly = _breathe(x, y, center, radius, anim_phase)
    ux = lx / radius
    uy = ly / radius

    ws = domain_warp(
        ux * 1.2, uy * 1.2, int(prng.mix_keys(key, _WARP_SALT)),
        min(warp_intensity + 1.5, MAX_INTENSITY), octaves
    )
    lobes = 5 + int(prng.uniform(key, _LOBE_SALT, 0) * 4.0)
    lobe_phase = prng.uniform(key, _LOBE_SALT, 1) * 2.0 * math.pi
    ragged = 0.5 + turbulence(ux * 3.0, uy * 3.0, int(prng.mix_keys(key, _FINE_SALT)), octaves)
    scallop = 0.08 * radius * ragged * (0.5 + 0.5 * np.cos(lobes * np.arctan2(ly, lx) + lobe_phase))

    d = dist_circle(lx, ly, radius) + (ws.value - 0.45) * radius * 0.6 + scallop

    inside = 1.0 - smoothstep(-0.2 * radius, 0.05 * radius, d)
    rim = 1.0 - smoothstep(0.0, 0.08 * radius, np.abs(d + 0.03 * radius))
    pale_core = 0.55 + 0.45 * smoothstep(0.0, 0.9, np.hypot(ux, uy))

    a = np.asarray(pigment_a, dtype=np.float64)
    b = np.asarray(pigment_b, dtype=np.float64)
    color = mix(a, b, clamp01(ws.q_magnitude * 0.4)[..., None])
    color = color * (1.0 - 0.25 * rim)[..., None]

    alpha = clamp01(inside * pale_core * opacity * 0.6 + rim * opacity * 0.3)
    return color, alpha


def evaluate_abstract_wash(
    x,
    y,
    angle: float,
    offset: float,
    band_width: float,
    key: int,
    pigment_a,
    pigment_b,
    opacity: float,
    anim_phase: float = 0.0,
    octaves: int = DEFAULT_OCTAVES,
    warp_intensity: float = DEFAULT_INTENSITY
) -> WashSample:
    """Loose color-study band across the canvas.

    Parameters
    ----------
    x, y : np.ndarray
        Canvas coordinates, shape (H, W)
    angle : float
        Band normal direction (radians)
    offset : float
        Signed distance of the band center line from the origin along the normal
    band_width : float
        Half-width of the band
    key : int
        Wash sub-key
    pigment_a, pigment_b : array_like
        Pigment pair, shape (3,)
    opacity : float
        Layer opacity
    anim_phase : float
        Drift phase; 0.0 for the static frame

    Returns
    -------
    (color, alpha)
        Shapes (H, W, 3) and (H, W)
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    band_width = float(band_width)
    if not band_width > MIN_SIZE:
        return _inert(np.broadcast(x, y).shape, pigment_a)

    nx = math.cos(angle)
    ny = math.sin(angle)
    drift = 0.05 * math.sin(anim_phase * 0.6)
    across = x * nx + y * ny - offset - drift
    along = -x * ny + y * nx

    ws = domain_warp(x * 0.8, y * 0.8, int(prng.mix_keys(key, _WARP_SALT)), warp_intensity, octaves)
    d = np.abs(across + (ws.value - 0.45) * band_width * 0.8) - band_width
    band = 1.0 - smoothstep(-0.3 * band_width, 0.25 * band_width, d)

    density = 0.7 + 0.6 * fbm(
        along * 1.5, across / max(band_width, EPS) * 0.75,
        int(prng.mix_keys(key, _DENSITY_SALT)), octaves
    )
    color = chromatic_separation(x, y, pigment_a, pigment_b, 0.6, key, octaves)
    alpha = clamp01(band * density * opacity)
    return color, alpha
