"""YAML schema validation and config loading.

Provides centralized validation for render configuration using pydantic:
    - Render schema (render.v1.yaml): canvas defaults, noise quality,
      paper finish, and band-parallel evaluation settings

All entrypoints load configs through load_render_config() for fail-fast
error detection with actionable messages (offending keys, expected ranges).

Units:
    - Canvas: pixels
    - Seed/time: unitless floats (any finite value)
    - Color: [0.0, 1.0] display RGB

Usage:
    from aquarelle.utils import validators

    cfg = validators.load_render_config("configs/render.v1.yaml")
    renderer = WatercolorRenderer(cfg)
"""

import math
from pathlib import Path
from typing import Any, Dict, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from . import fs


class CanvasDefaults(BaseModel):
    """Default render inputs (overridable from the CLI)."""
    width: int = Field(512, ge=1, le=16384, description="Output width (px)")
    height: int = Field(512, ge=1, le=16384, description="Output height (px)")
    seed: float = Field(42.0, description="Composition seed (any finite float)")
    time: float = Field(0.0, description="Animation time; 0.0 renders the static frame")

    @field_validator('seed', 'time')
    @classmethod
    def validate_finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError(f"must be finite, got {v}")
        return v


class NoiseConfig(BaseModel):
    """Noise quality/cost knobs."""
    octaves: int = Field(3, ge=1, le=8, description="fBm octaves (3 = reference quality)")
    warp_intensity: float = Field(4.0, ge=2.0, le=6.0, description="Domain-warp feedback gain k")


class PaperConfig(BaseModel):
    """Paper base color and finishing passes."""
    color: Tuple[float, float, float] = Field(
        (0.969, 0.949, 0.906), description="Paper RGB [0,1]"
    )
    grain_strength: float = Field(0.06, ge=0.0, le=0.5, description="Grain darkening on bare paper")
    vignette_strength: float = Field(0.18, ge=0.0, le=1.0, description="Corner darkening")

    @field_validator('color')
    @classmethod
    def validate_color(cls, v: Tuple[float, float, float]) -> Tuple[float, float, float]:
        for c in v:
            if not (0.0 <= c <= 1.0):
                raise ValueError(f"Paper color components must be in [0, 1], got {v}")
        return v


class ParallelConfig(BaseModel):
    """Row-band evaluation harness."""
    band_rows: int = Field(64, ge=1, description="Rows per evaluation band")
    workers: int = Field(1, ge=1, le=64, description="Thread pool size (1 = sequential)")


class RenderConfigV1(BaseModel):
    """Render configuration (render.v1.yaml schema)."""
    model_config = ConfigDict(populate_by_name=True)

    schema_version: str = Field("render.v1", alias="schema", description="Schema version")
    canvas: CanvasDefaults = Field(default_factory=CanvasDefaults)
    noise: NoiseConfig = Field(default_factory=NoiseConfig)
    paper: PaperConfig = Field(default_factory=PaperConfig)
    parallel: ParallelConfig = Field(default_factory=ParallelConfig)

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "render.v1":
            raise ValueError(f"Expected schema 'render.v1', got '{v}'")
        return v


def load_render_config(path: Union[str, Path]) -> RenderConfigV1:
    """Load and validate render config from YAML.

    Parameters
    ----------
    path : Union[str, Path]
        Path to render config YAML

    Returns
    -------
    RenderConfigV1
        Validated config

    Raises
    ------
    FileNotFoundError
        If the file doesn't exist
    pydantic.ValidationError
        If the content violates the schema

    Examples
    --------
    >>> cfg = load_render_config("configs/render.v1.yaml")
    >>> cfg.noise.octaves
    3
    """
    return RenderConfigV1(**fs.load_yaml(path))


def coerce_render_config(cfg: Union[None, Dict[str, Any], RenderConfigV1]) -> RenderConfigV1:
    """Accept None (defaults), a plain dict, or an already-validated model."""
    if cfg is None:
        return RenderConfigV1()
    if isinstance(cfg, RenderConfigV1):
        return cfg
    if isinstance(cfg, dict):
        return RenderConfigV1(**cfg)
    raise TypeError(f"Render config must be dict or RenderConfigV1, got {type(cfg).__name__}")
