"""Deterministic, stateless hashing for the per-pixel painter.

Every random quantity in a painting (lattice noise values, feature points,
layout parameters) is a pure function of an integer key chain hashed with the
32-bit PCG output permutation (RXS-M-XS). Integer hashing is exact, so a
given seed produces bit-identical keys on every platform.

Key derivation:
    seed (float) ──float_key──► uint32 ──mix_keys(salt, index, ...)──► uint32
    lattice cell (ix, iy) + key ──lattice_hash──► [0, 1)

Arithmetic is carried in uint64 and masked to 32 bits after every step, so
the multiplications can never overflow regardless of numpy's promotion rules.
"""

import numpy as np

MASK32 = np.uint64(0xFFFFFFFF)

_PCG_MUL = np.uint64(747796405)
_PCG_INC = np.uint64(2891336453)
_PCG_OUT = np.uint64(277803737)
_SHIFT_SELECT = np.uint64(28)
_SHIFT_BASE = np.uint64(4)
_SHIFT_OUT = np.uint64(22)
_SHIFT_FOLD = np.uint64(32)
_GOLDEN = np.uint64(0x9E3779B9)

_INV_2_32 = 1.0 / 4294967296.0


def as_u32(v) -> np.ndarray:
    """Reduce integer values (any sign, any width) modulo 2**32.

    Parameters
    ----------
    v : int or array_like of int
        Integer key(s); float arrays must be floored by the caller

    Returns
    -------
    np.ndarray
        uint64 array holding values in [0, 2**32)

    Raises
    ------
    TypeError
        If v is not an integer type
    """
    a = np.asarray(v)
    if a.dtype.kind == 'u':
        return a.astype(np.uint64) & MASK32
    if a.dtype.kind == 'i':
        return (a.astype(np.int64) & 0xFFFFFFFF).astype(np.uint64)
    raise TypeError(f"Integer key expected, got dtype {a.dtype}; use float_key() for floats")


def pcg_hash(v):
    """PCG RXS-M-XS 32-bit permutation.

    Parameters
    ----------
    v : array_like of int
        Input word(s)

    Returns
    -------
    np.ndarray or np.uint64
        Hashed word(s) in [0, 2**32)
    """
    state = (as_u32(v) * _PCG_MUL + _PCG_INC) & MASK32
    word = (((state >> ((state >> _SHIFT_SELECT) + _SHIFT_BASE)) ^ state) * _PCG_OUT) & MASK32
    return (word >> _SHIFT_OUT) ^ word


def mix_keys(*keys):
    """Fold several integer keys into one 32-bit key.

    Order matters: mix_keys(a, b) != mix_keys(b, a) in general. Array keys
    broadcast, which is how lattice coordinates are hashed per pixel.
    """
    if not keys:
        raise ValueError("mix_keys() needs at least one key")
    h = pcg_hash(keys[0])
    for k in keys[1:]:
        h = pcg_hash(h ^ as_u32(k))
    return h


def float_key(x) -> np.ndarray:
    """Map finite float(s) to 32-bit keys via their IEEE-754 bit pattern.

    Nearby seeds (42.0 vs 42.0000001) get unrelated keys; -0.0 and 0.0 share
    a key. Works for arbitrarily large magnitudes because no arithmetic is
    done on the value itself.
    """
    a = np.asarray(np.asarray(x, dtype=np.float64) + 0.0)
    bits = a.view(np.uint64)
    return pcg_hash((bits ^ (bits >> _SHIFT_FOLD)) & MASK32)


def to_unit(h) -> np.ndarray:
    """Map 32-bit hash word(s) to floats in [0, 1)."""
    return np.asarray(h, dtype=np.float64) * _INV_2_32


def seed_key(seed: float) -> int:
    """Root key of a painting, as a plain Python int."""
    return int(float_key(seed))


def uniform(key: int, salt: int, index: int, channel: int = 0) -> float:
    """Scalar uniform [0, 1) for layout derivation.

    Parameters
    ----------
    key : int
        Root or instance key
    salt : int
        Layer-type identifier
    index : int
        Instance index within the layer type
    channel : int
        Which parameter of the instance is being drawn

    Returns
    -------
    float
        Deterministic value in [0, 1)
    """
    return float(to_unit(mix_keys(key, salt, index, channel)))


def lattice_cell(c) -> np.ndarray:
    """Integer lattice index of already-floored float coordinates, mod 2**32."""
    return as_u32(np.asarray(c, dtype=np.float64).astype(np.int64))


def lattice_hash(ix, iy, key: int) -> np.ndarray:
    """Uniform [0, 1) value per lattice corner.

    Parameters
    ----------
    ix, iy : np.ndarray
        Floored lattice coordinates (float arrays with integral values)
    key : int
        Noise key of the field being sampled

    Returns
    -------
    np.ndarray
        Values in [0, 1), broadcast shape of ix and iy
    """
    return to_unit(mix_keys(key, lattice_cell(ix), lattice_cell(iy)))


def lattice_hash2(ix, iy, key: int):
    """Two decorrelated uniform [0, 1) values per lattice corner."""
    h = mix_keys(key, lattice_cell(ix), lattice_cell(iy))
    return to_unit(h), to_unit(pcg_hash(h ^ _GOLDEN))
