"""Seed-driven composition layout.

Every layer instance is a pure function of (seed key, layer salt, instance
index): no instance reads another instance's parameters or output. The only
sharing is deliberate: stems and center marks call derive_flower() for the
flower they belong to, so they line up with it by construction.

Counts:
    flowers            6-8   (seed-derived)
    stems              2-4   (seed-derived, one per leading flower)
    splotches          8
    background washes  3
    center marks       one per flower

Size tiers (flower index i):
    i < 2   focal   0.28-0.38
    i < 5   mid     0.17-0.23
    else    accent  0.09-0.14

Layouts never depend on animation time.
"""

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Tuple

import numpy as np

from aquarelle.painter import prng
from aquarelle.painter.marks import MAX_DOTS, STEM_INKS
from aquarelle.painter.pigment import PALETTE, PALETTE_SIZE
from aquarelle.painter.shapes import MAX_PETALS, bezier_point

logger = logging.getLogger(__name__)

MIN_FLOWERS = 6
MAX_FLOWERS = 8
MIN_STEMS = 2
MAX_STEMS = 4
SPLOTCH_COUNT = 8
BACKGROUND_WASH_COUNT = 3
MIN_PETALS = 5

FOCAL_COUNT = 2
MID_COUNT = 3

SALT_COUNT = 0xC0
SALT_CLUSTER = 0xC1
SALT_FLOWER = 0xF1
SALT_SPLOTCH = 0x5B
SALT_BACKGROUND = 0xB6
SALT_STEM = 0x57
SALT_CENTER = 0xCE

Point = Tuple[float, float]


@dataclass(frozen=True)
class FlowerDescriptor:
    index: int
    center: Point
    size: float
    petal_count: int
    orientation: float
    wetness: float
    opacity: float
    palette_index: int
    key: int


@dataclass(frozen=True)
class SplotchDescriptor:
    index: int
    center: Point
    radius: float
    opacity: float
    palette_index: int
    key: int


@dataclass(frozen=True)
class BackgroundWashDescriptor:
    index: int
    angle: float
    offset: float
    band_width: float
    opacity: float
    palette_index: int
    key: int


@dataclass(frozen=True)
class StemDescriptor:
    index: int
    base: Point
    control: Point
    tip: Point
    branch_t: float
    branch_control: Point
    branch_tip: Point
    width: float
    opacity: float
    ink: Tuple[float, float, float]
    key: int


@dataclass(frozen=True)
class CenterMarkDescriptor:
    index: int
    center: Point
    size: float
    dot_count: int
    opacity: float
    ink: Tuple[float, float, float]
    key: int


@dataclass(frozen=True)
class Layout:
    """All layer descriptors of one painting, in compositing order."""
    seed: float
    key: int
    aspect: float
    background_washes: Tuple[BackgroundWashDescriptor, ...]
    splotches: Tuple[SplotchDescriptor, ...]
    flowers: Tuple[FlowerDescriptor, ...]
    stems: Tuple[StemDescriptor, ...]
    center_marks: Tuple[CenterMarkDescriptor, ...]

    def summary(self) -> Dict[str, Any]:
        """Plain-dict view for metadata files and logs."""
        return {
            'seed': self.seed,
            'key': self.key,
            'aspect': self.aspect,
            'counts': {
                'background_washes': len(self.background_washes),
                'splotches': len(self.splotches),
                'flowers': len(self.flowers),
                'stems': len(self.stems),
                'center_marks': len(self.center_marks),
            },
            'flowers': [
                {
                    'center': [round(c, 6) for c in f.center],
                    'size': round(f.size, 6),
                    'petal_count': f.petal_count,
                    'palette_index': f.palette_index,
                }
                for f in self.flowers
            ],
        }

    def to_dict(self) -> Dict[str, Any]:
        """Full descriptor dump (tuples become lists)."""
        return asdict(self)


def flower_count(key: int) -> int:
    n = MIN_FLOWERS + int(prng.uniform(key, SALT_COUNT, 0) * (MAX_FLOWERS - MIN_FLOWERS + 1))
    return min(n, MAX_FLOWERS)


def stem_count(key: int) -> int:
    n = MIN_STEMS + int(prng.uniform(key, SALT_COUNT, 1) * (MAX_STEMS - MIN_STEMS + 1))
    return min(n, MAX_STEMS)


def cluster_center(key: int, aspect: float) -> Point:
    """Seed-chosen point that flower placement is biased toward.

    Sits in the middle 80% horizontally and slightly above center, leaving
    room below for stems.
    """
    cx = (prng.uniform(key, SALT_CLUSTER, 0) - 0.5) * aspect * 0.8
    cy = (prng.uniform(key, SALT_CLUSTER, 1) - 0.5) * 0.6 + 0.1
    return (cx, cy)


def _clamp_to_frame(cx: float, cy: float, margin: float, aspect: float) -> Point:
    mx = min(margin, aspect * 0.5)
    my = min(margin, 0.5)
    return (
        float(np.clip(cx, -aspect + mx, aspect - mx)),
        float(np.clip(cy, -1.0 + my, 1.0 - my)),
    )


def derive_flower(key: int, index: int, aspect: float) -> FlowerDescriptor:
    """Parameters of flower wash `index`.

    Parameters
    ----------
    key : int
        Painting root key (prng.seed_key(seed))
    index : int
        Flower index; lower indices are larger and drawn further back
    aspect : float
        width / height of the frame

    Returns
    -------
    FlowerDescriptor
        Center clamped so at least part of the flower stays in frame;
        opacity grows with index up to 0.95
    """
    def r(channel):
        return prng.uniform(key, SALT_FLOWER, index, channel)

    if index < FOCAL_COUNT:
        size = 0.28 + 0.10 * r(0)
    elif index < FOCAL_COUNT + MID_COUNT:
        size = 0.17 + 0.06 * r(0)
    else:
        size = 0.09 + 0.05 * r(0)

    cx0, cy0 = cluster_center(key, aspect)
    spread = 0.35 + 0.12 * index
    angle = r(1) * 2.0 * math.pi
    dist = spread * math.sqrt(r(2))
    center = _clamp_to_frame(
        cx0 + dist * math.cos(angle) * aspect,
        cy0 + dist * math.sin(angle),
        size * 0.6,
        aspect
    )

    return FlowerDescriptor(
        index=index,
        center=center,
        size=size,
        petal_count=min(MIN_PETALS + int(r(3) * 4.0), MAX_PETALS),
        orientation=r(7) * 2.0 * math.pi,
        wetness=0.25 + 0.35 * r(6),
        opacity=min(0.55 + 0.05 * index + 0.1 * r(5), 0.95),
        palette_index=int(r(4) * PALETTE_SIZE) % PALETTE_SIZE,
        key=int(prng.mix_keys(key, SALT_FLOWER, index)),
    )


def derive_splotch(key: int, index: int, aspect: float) -> SplotchDescriptor:
    def r(channel):
        return prng.uniform(key, SALT_SPLOTCH, index, channel)

    return SplotchDescriptor(
        index=index,
        center=((r(0) * 2.0 - 1.0) * aspect * 0.9, (r(1) * 2.0 - 1.0) * 0.9),
        radius=0.08 + 0.14 * r(2),
        opacity=0.18 + 0.2 * r(3),
        palette_index=int(r(4) * PALETTE_SIZE) % PALETTE_SIZE,
        key=int(prng.mix_keys(key, SALT_SPLOTCH, index)),
    )


def derive_background_wash(key: int, index: int, aspect: float) -> BackgroundWashDescriptor:
    """Broad band; offset scales with aspect so bands cross wide frames too."""
    def r(channel):
        return prng.uniform(key, SALT_BACKGROUND, index, channel)

    return BackgroundWashDescriptor(
        index=index,
        angle=r(0) * math.pi,
        offset=(r(1) - 0.5) * 1.2 * max(aspect, 1.0),
        band_width=0.35 + 0.3 * r(2),
        opacity=0.12 + 0.12 * r(3),
        palette_index=int(r(4) * PALETTE_SIZE) % PALETTE_SIZE,
        key=int(prng.mix_keys(key, SALT_BACKGROUND, index)),
    )


def derive_stem(key: int, index: int, aspect: float) -> StemDescriptor:
    """Stem rising from below the frame to just under flower `index`."""
    flower = derive_flower(key, index, aspect)

    def r(channel):
        return prng.uniform(key, SALT_STEM, index, channel)

    tip = (flower.center[0], flower.center[1] - flower.size * 0.35)
    base = (float(np.clip(flower.center[0] + (r(0) - 0.5) * 0.5, -aspect, aspect)), -1.05)
    control = (
        (base[0] + tip[0]) * 0.5 + (r(1) - 0.5) * 0.4,
        (base[1] + tip[1]) * 0.5,
    )
    branch_t = 0.35 + 0.25 * r(2)
    side = 1.0 if r(3) >= 0.5 else -1.0
    start = bezier_point(base, control, tip, branch_t)
    branch_tip = (start[0] + side * (0.18 + 0.2 * r(4)), start[1] + 0.12 + 0.2 * r(5))
    branch_control = (start[0] + side * (0.05 + 0.1 * r(4)), start[1] + 0.12)

    return StemDescriptor(
        index=index,
        base=base,
        control=control,
        tip=tip,
        branch_t=branch_t,
        branch_control=branch_control,
        branch_tip=branch_tip,
        width=0.018 + 0.012 * r(6),
        opacity=0.7 + 0.2 * r(8),
        ink=STEM_INKS[int(r(7) * len(STEM_INKS)) % len(STEM_INKS)],
        key=int(prng.mix_keys(key, SALT_STEM, index)),
    )


def derive_center_mark(key: int, index: int, aspect: float) -> CenterMarkDescriptor:
    """Dot cluster for flower `index`; inked with a darkened partner pigment."""
    flower = derive_flower(key, index, aspect)
    ink = PALETTE[flower.palette_index, 1] * 0.4
    return CenterMarkDescriptor(
        index=index,
        center=flower.center,
        size=flower.size,
        dot_count=MAX_DOTS,
        opacity=0.85,
        ink=(float(ink[0]), float(ink[1]), float(ink[2])),
        key=int(prng.mix_keys(flower.key, SALT_CENTER)),
    )


def derive_layout(seed: float, aspect: float) -> Layout:
    """Derive every layer descriptor of a painting.

    Parameters
    ----------
    seed : float
        Any finite float
    aspect : float
        width / height, positive and finite

    Returns
    -------
    Layout

    Raises
    ------
    ValueError
        If seed is not finite or aspect is not a positive finite number
    """
    seed = float(seed)
    aspect = float(aspect)
    if not math.isfinite(seed):
        raise ValueError(f"seed must be finite, got {seed}")
    if not (math.isfinite(aspect) and aspect > 0.0):
        raise ValueError(f"aspect must be positive and finite, got {aspect}")

    key = prng.seed_key(seed)
    n_flowers = min(flower_count(key), MAX_FLOWERS)
    n_stems = min(stem_count(key), MAX_STEMS, n_flowers)

    layout = Layout(
        seed=seed,
        key=key,
        aspect=aspect,
        background_washes=tuple(derive_background_wash(key, i, aspect) for i in range(BACKGROUND_WASH_COUNT)),
        splotches=tuple(derive_splotch(key, i, aspect) for i in range(SPLOTCH_COUNT)),
        flowers=tuple(derive_flower(key, i, aspect) for i in range(n_flowers)),
        stems=tuple(derive_stem(key, i, aspect) for i in range(n_stems)),
        center_marks=tuple(derive_center_mark(key, i, aspect) for i in range(n_flowers)),
    )
    logger.debug(f"Layout seed={seed} key={key:#010x}: {n_flowers} flowers, {n_stems} stems")
    return layout
