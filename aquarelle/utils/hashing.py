"""SHA-256 digests for render provenance.

A render's identity is the digest of its quantized pixels (render_digest);
the metadata file next to every PNG records it together with the digest of
the config that produced it (hash_dict). Repeated renders of the same
(seed, size, time, config) must produce the same digests.

Not to be confused with painter.prng, which is the per-pixel PCG hash.
Named `hashing.py` to avoid shadowing builtin `hash()`.
"""

import hashlib
import json
from pathlib import Path
from typing import Any, Mapping, Union

import numpy as np

from . import color as color_utils


def sha256_array(arr: np.ndarray) -> str:
    """Digest of dtype, shape and C-order bytes.

    A float32 render and its uint8 quantization never collide, and
    non-contiguous views hash like their contiguous copy.
    """
    arr = np.ascontiguousarray(arr)
    h = hashlib.sha256(f"{arr.dtype.str}|{arr.shape}|".encode('utf-8'))
    h.update(arr.tobytes())
    return h.hexdigest()


def render_digest(img: np.ndarray) -> str:
    """Digest of a float [0, 1] render after uint8 quantization.

    Quantizing first makes the digest identical to the one of the PNG
    written by fs.atomic_save_image (once reloaded with fs.load_image).
    """
    img = np.asarray(img)
    if img.dtype != np.uint8:
        img = color_utils.to_uint8(img)
    return sha256_array(img)


def sha256_file(path: Union[str, Path], chunk_size: int = 1 << 20) -> str:
    """Digest of a file's bytes, read in chunks.

    Raises
    ------
    FileNotFoundError
        If the file doesn't exist
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")
    h = hashlib.sha256()
    with open(path, 'rb') as f:
        for chunk in iter(lambda: f.read(chunk_size), b''):
            h.update(chunk)
    return h.hexdigest()


def sha256_string(s: str) -> str:
    return hashlib.sha256(s.encode('utf-8')).hexdigest()


def hash_dict(d: Mapping[str, Any]) -> str:
    """Digest of a JSON-serializable mapping; key order does not matter.

    Examples
    --------
    >>> hash_dict(cfg.model_dump(by_alias=True, mode='json'))
    """
    return sha256_string(json.dumps(d, sort_keys=True, separators=(',', ':')))
