"""Two-level feedback domain warp.

    q     = (fbm(p),           fbm(p + A))
    r     = (fbm(p + k·q + B), fbm(p + k·q + C))
    value = fbm(p + k·r)

The intermediate flow vectors q and r are returned alongside the scalar:
wash colouring uses |q| to push pigment toward its partner along the flow.
"""

from typing import NamedTuple, Tuple

import numpy as np

from aquarelle.painter.noise import DEFAULT_OCTAVES, fbm

DEFAULT_INTENSITY = 4.0
MIN_INTENSITY = 2.0
MAX_INTENSITY = 6.0

_OFFSET_A = (5.2, 1.3)
_OFFSET_B = (1.7, 9.2)
_OFFSET_C = (8.3, 2.8)


class WarpSample(NamedTuple):
    """Warped scalar plus the two flow vectors that produced it."""
    value: np.ndarray
    q: Tuple[np.ndarray, np.ndarray]
    r: Tuple[np.ndarray, np.ndarray]

    @property
    def q_magnitude(self) -> np.ndarray:
        return np.hypot(self.q[0], self.q[1])


def domain_warp(
    x,
    y,
    key: int,
    intensity: float = DEFAULT_INTENSITY,
    octaves: int = DEFAULT_OCTAVES
) -> WarpSample:
    """Evaluate the feedback warp.

    Parameters
    ----------
    x, y : array_like
        Sample coordinates
    key : int
        Noise key shared by all five fbm evaluations
    intensity : float
        Feedback gain k, clamped to [2, 6]
    octaves : int
        fBm octaves for every level

    Returns
    -------
    WarpSample
        value, q = (qx, qy), r = (rx, ry); all arrays in fbm's range
    """
    k = float(np.clip(intensity, MIN_INTENSITY, MAX_INTENSITY))
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)

    qx = fbm(x, y, key, octaves)
    qy = fbm(x + _OFFSET_A[0], y + _OFFSET_A[1], key, octaves)

    wx = x + k * qx
    wy = y + k * qy
    rx = fbm(wx + _OFFSET_B[0], wy + _OFFSET_B[1], key, octaves)
    ry = fbm(wx + _OFFSET_C[0], wy + _OFFSET_C[1], key, octaves)

    value = fbm(x + k * rx, y + k * ry, key, octaves)
    return WarpSample(value=value, q=(qx, qy), r=(rx, ry))
