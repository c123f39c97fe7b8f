"""Render outputs on disk: PNG frames, metadata YAML, configs.

Every write goes through atomic_target(): data lands in a sibling temp
file which is renamed over the destination only after it is complete, so
a viewer polling an output directory never sees a half-written frame.

Provides:
    - atomic_target(): context manager yielding the temp path to write
    - atomic_write_bytes(), atomic_save_image(), atomic_yaml_dump()
    - load_image(), load_yaml()
    - frame_path(): naming of single renders and animation frames

Note: Module named `fs.py` to avoid shadowing stdlib `io`.
"""

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

import numpy as np
import yaml
from PIL import Image

from . import color as color_utils

PathLike = Union[str, Path]


def ensure_dir(p: PathLike) -> Path:
    """mkdir -p; returns the directory as a Path."""
    p = Path(p)
    p.mkdir(parents=True, exist_ok=True)
    return p


@contextmanager
def atomic_target(path: PathLike) -> Iterator[Path]:
    """Yield a temp path next to `path`; rename it over `path` on success.

    The temp name keeps the real suffix last (``art.tmp.png``) so writers
    that infer the format from the extension still work.

    Raises
    ------
    RuntimeError
        If the body or the rename fails; the temp file is removed
    """
    path = Path(path)
    ensure_dir(path.parent)
    tmp_path = path.with_name(f"{path.stem}.tmp{path.suffix}")
    try:
        yield tmp_path
        tmp_path.replace(path)
    except Exception as e:
        tmp_path.unlink(missing_ok=True)
        raise RuntimeError(f"Failed to write {path}: {e}") from e


def atomic_write_bytes(path: PathLike, data: bytes) -> None:
    """Write bytes durably (fsync before rename)."""
    with atomic_target(path) as tmp_path:
        with open(tmp_path, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())


def atomic_save_image(
    img: np.ndarray,
    path: PathLike,
    pil_kwargs: Optional[Dict[str, Any]] = None
) -> None:
    """Save a render as an image file.

    Parameters
    ----------
    img : np.ndarray
        (H, W), (H, W, 1), (H, W, 3) or (H, W, 4). Float input is treated
        as [0, 1] and quantized with color.to_uint8; uint8 is written as-is.
    path : str or Path
        Destination; the extension selects the format
    pil_kwargs : dict, optional
        Extra arguments for PIL.Image.save (e.g. compress_level=9)
    """
    img = np.asarray(img)
    if img.ndim == 3 and img.shape[2] == 1:
        img = img[..., 0]
    if img.ndim not in (2, 3) or (img.ndim == 3 and img.shape[2] not in (3, 4)):
        raise ValueError(f"Expected (H, W), (H, W, 3) or (H, W, 4) image, got shape {img.shape}")
    if img.dtype != np.uint8:
        img = color_utils.to_uint8(img)

    with atomic_target(path) as tmp_path:
        Image.fromarray(img).save(tmp_path, **(pil_kwargs or {}))


def load_image(path: PathLike) -> np.ndarray:
    """Read an image file as uint8 RGB, shape (H, W, 3)."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")
    with Image.open(path) as im:
        return np.array(im.convert('RGB'), dtype=np.uint8)


def atomic_yaml_dump(obj: Any, path: PathLike) -> None:
    """Write plain Python data as block-style YAML (insertion order kept).

    numpy scalars are not representable by safe_dump; callers convert them.
    """
    text = yaml.safe_dump(obj, default_flow_style=False, sort_keys=False, allow_unicode=True)
    atomic_write_bytes(path, text.encode('utf-8'))


def load_yaml(path: PathLike) -> Dict[str, Any]:
    """Parse a YAML file; an empty file yields {}.

    Raises
    ------
    FileNotFoundError
        If the file doesn't exist
    yaml.YAMLError
        On malformed YAML (message names the file)
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"YAML file not found: {path}")
    with open(path, 'r', encoding='utf-8') as f:
        try:
            return yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Failed to parse YAML file {path}: {e}") from e


def frame_path(output_dir: PathLike, prefix: str, index: Optional[int] = None, ext: str = "png") -> Path:
    """``{prefix}.png`` for a still, ``{prefix}_0007.png`` for frame 7."""
    name = prefix if index is None else f"{prefix}_{index:04d}"
    return Path(output_dir) / f"{name}.{ext}"
