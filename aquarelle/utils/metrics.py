"""Image comparison metrics for golden-fixture regression.

Provides:
    - psnr(): Peak signal-to-noise ratio
    - mean_absolute_error(): Mean |a − b| over all channels
    - max_abs_error(): Worst single-channel deviation
    - paint_coverage(): Fraction of pixels pulled away from the paper color

All metrics operate on torch tensors (H, W, 3) or (3, H, W) in [0, 1].
numpy arrays are accepted and converted with torch.from_numpy.

Used by:
    - tests/test_golden.py: render vs stored PNG fixture
    - scripts/render_seed.py --compare: diff a render against a reference
"""

from typing import Sequence, Union

import numpy as np
import torch
import torch.nn.functional as F

ArrayLike = Union[np.ndarray, torch.Tensor]


def _as_tensor(x: ArrayLike) -> torch.Tensor:
    if isinstance(x, torch.Tensor):
        return x.to(torch.float64)
    x = np.asarray(x)
    if x.dtype == np.uint8:
        return torch.from_numpy(x.astype(np.float64) / 255.0)
    return torch.from_numpy(np.ascontiguousarray(x, dtype=np.float64))


def psnr(
    img1: ArrayLike,
    img2: ArrayLike,
    max_val: float = 1.0,
    eps: float = 1e-12
) -> torch.Tensor:
    """Compute Peak Signal-to-Noise Ratio (PSNR).

    Parameters
    ----------
    img1 : ArrayLike
        First image, range [0, max_val] (uint8 arrays are rescaled to [0, 1])
    img2 : ArrayLike
        Second image, same shape as img1
    max_val : float
        Maximum possible pixel value, default 1.0
    eps : float
        Small epsilon to avoid log(0)

    Returns
    -------
    torch.Tensor
        PSNR in dB, scalar

    Notes
    -----
    PSNR = 10 * log10(max_val^2 / MSE). Identical images give ~120 dB with
    the default eps rather than +inf.
    """
    a, b = _as_tensor(img1), _as_tensor(img2)
    if a.shape != b.shape:
        raise ValueError(f"Shape mismatch: {tuple(a.shape)} vs {tuple(b.shape)}")
    mse = F.mse_loss(a, b, reduction='mean')
    return 10.0 * torch.log10((max_val ** 2) / (mse + eps))


def mean_absolute_error(img1: ArrayLike, img2: ArrayLike) -> torch.Tensor:
    """Mean absolute per-channel error (scalar tensor)."""
    a, b = _as_tensor(img1), _as_tensor(img2)
    if a.shape != b.shape:
        raise ValueError(f"Shape mismatch: {tuple(a.shape)} vs {tuple(b.shape)}")
    return torch.mean(torch.abs(a - b))


def max_abs_error(img1: ArrayLike, img2: ArrayLike) -> torch.Tensor:
    """Largest absolute per-channel error (scalar tensor)."""
    a, b = _as_tensor(img1), _as_tensor(img2)
    if a.shape != b.shape:
        raise ValueError(f"Shape mismatch: {tuple(a.shape)} vs {tuple(b.shape)}")
    return torch.max(torch.abs(a - b))


def paint_coverage(
    canvas: ArrayLike,
    paper_color: Sequence[float],
    threshold: float = 0.02
) -> torch.Tensor:
    """Fraction of pixels that differ from bare paper.

    Parameters
    ----------
    canvas : ArrayLike
        Rendered image, shape (H, W, 3), range [0, 1]
    paper_color : sequence of float
        Paper RGB the canvas started from
    threshold : float
        Mean per-channel deviation counted as "painted", default 0.02

    Returns
    -------
    torch.Tensor
        Coverage ratio in [0, 1], scalar
    """
    c = _as_tensor(canvas)
    paper = torch.tensor(list(paper_color), dtype=torch.float64)
    deviation = torch.abs(c - paper).mean(dim=-1)
    return (deviation > threshold).to(torch.float64).mean()
