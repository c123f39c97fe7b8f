"""Top-level watercolor renderer.

Stage order (fixed, never revisited):
    paper base → background washes → splotches → flower washes
    → stems → center marks → paper grain → vignette

The painted stages are a left fold of Layer items over the paper base:
washes, splotches and flowers are glazed (multiplicative, transparent);
stems and center marks are inked (opaque linear blend). Grain and vignette
are applied to the folded canvas.

Evaluation harness:
    The frame is split into row bands (utils.compute.band_slices) which are
    shaded independently, sequentially or on a thread pool. shade() is
    elementwise per pixel, so any banding gives the same image.

Usage:
    from aquarelle.painter.compositor import WatercolorRenderer
    from aquarelle.utils import validators

    cfg = validators.load_render_config("configs/render.v1.yaml")
    renderer = WatercolorRenderer(cfg)
    img = renderer.render(512, 512, seed=42.0)        # (512, 512, 3) float32
    for frame in renderer.render_frames(256, 256, 42.0, [0.0, 0.1, 0.2]):
        ...
"""

import contextvars
import logging
import math
import numbers
from concurrent.futures import ThreadPoolExecutor
from functools import partial, reduce
from typing import Any, Callable, Dict, Iterable, Iterator, List, NamedTuple, Optional, Tuple, Union

import numpy as np

from aquarelle.painter import prng
from aquarelle.painter.layout import Layout, derive_layout
from aquarelle.painter.marks import evaluate_center_mark, evaluate_stem
from aquarelle.painter.noise import cellular, fbm
from aquarelle.painter.pigment import glaze_over, ink_over, pigment_pair
from aquarelle.painter.wash import evaluate_abstract_wash, evaluate_splotch, evaluate_wash
from aquarelle.utils import profiler, validators
from aquarelle.utils.color import luminance
from aquarelle.utils.compute import EPS, assert_finite, band_slices, clamp01, pixel_grid, smoothstep

logger = logging.getLogger(__name__)

GLAZE = 'glaze'
INK = 'ink'

_SALT_PAPER = 0x9A9E
_SALT_GRAIN = 0x6A1

# Breathing phase per unit time; layer i runs at (1 + 0.15 i) times this
_BREATH_RATE = 0.35


class Layer(NamedTuple):
    """One foldable layer: evaluate(x, y) → (color, alpha)."""
    kind: str
    mode: str
    evaluate: Callable[[np.ndarray, np.ndarray], Tuple[np.ndarray, np.ndarray]]


def _anim_phase(time: float, index: int) -> float:
    return time * _BREATH_RATE * (1.0 + 0.15 * index)


class WatercolorRenderer:
    """Seed-to-image watercolor renderer.

    Holds only the validated, immutable render config; every render call
    derives its layout from the seed and threads it through explicitly.

    Attributes
    ----------
    cfg : RenderConfigV1
        Validated render config
    octaves : int
        fBm octaves used by every noise term
    warp_intensity : float
        Domain-warp feedback gain
    paper_color : np.ndarray
        Paper RGB, shape (3,)
    """

    def __init__(self, cfg: Union[None, Dict[str, Any], validators.RenderConfigV1] = None):
        """Initialize renderer.

        Parameters
        ----------
        cfg : RenderConfigV1 or dict, optional
            Render config; None uses schema defaults

        Raises
        ------
        TypeError
            If cfg is neither None, a dict, nor a RenderConfigV1
        pydantic.ValidationError
            If a dict config violates the schema
        """
        self.cfg = validators.coerce_render_config(cfg)
        self.octaves = self.cfg.noise.octaves
        self.warp_intensity = self.cfg.noise.warp_intensity
        self.paper_color = np.asarray(self.cfg.paper.color, dtype=np.float64)
        self.paper_color.setflags(write=False)

        logger.info(
            f"WatercolorRenderer initialized: octaves={self.octaves}, "
            f"warp_intensity={self.warp_intensity}, "
            f"band_rows={self.cfg.parallel.band_rows}, workers={self.cfg.parallel.workers}"
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def render(
        self,
        width: int,
        height: int,
        seed: float,
        time: float = 0.0,
        workers: Optional[int] = None,
        band_rows: Optional[int] = None
    ) -> np.ndarray:
        """Render one frame.

        Parameters
        ----------
        width, height : int or float
            Output size in pixels (positive, whole number)
        seed : float
            Composition seed, any finite float
        time : float
            Animation time; 0.0 is the static frame
        workers : int, optional
            Thread pool size; defaults to cfg.parallel.workers
        band_rows : int, optional
            Rows per band; defaults to cfg.parallel.band_rows

        Returns
        -------
        np.ndarray
            Opaque RGB image, shape (height, width, 3), float32 in [0, 1]

        Raises
        ------
        ValueError
            On non-positive or fractional sizes, non-finite seed or time,
            or workers < 1
        """
        width, height = self.check_size(width, height)
        seed = self._check_finite('seed', seed)
        time = self._check_finite('time', time)
        workers = self.cfg.parallel.workers if workers is None else int(workers)
        band_rows = self.cfg.parallel.band_rows if band_rows is None else int(band_rows)
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")

        layout = derive_layout(seed, width / height)
        bands = band_slices(height, band_rows)
        out = np.empty((height, width, 3), dtype=np.float64)

        def shade_band(rows: slice) -> None:
            x, y = pixel_grid(width, height, rows)
            out[rows] = self.shade(x, y, layout, time)

        with profiler.timer(f"render {width}x{height} seed={seed} t={time}", sink=self._log_timing):
            if workers == 1 or len(bands) == 1:
                for rows in bands:
                    shade_band(rows)
            else:
                with ThreadPoolExecutor(max_workers=min(workers, len(bands))) as pool:
                    futures = [
                        pool.submit(contextvars.copy_context().run, shade_band, rows)
                        for rows in bands
                    ]
                    for future in futures:
                        future.result()

        assert_finite(out, "canvas")
        return clamp01(out).astype(np.float32)

    def render_rgba(
        self,
        width: int,
        height: int,
        seed: float,
        time: float = 0.0,
        **kwargs
    ) -> np.ndarray:
        """render() with an alpha channel forced to 1; shape (H, W, 4)."""
        rgb = self.render(width, height, seed, time, **kwargs)
        alpha = np.ones(rgb.shape[:2] + (1,), dtype=np.float32)
        return np.concatenate([rgb, alpha], axis=-1)

    def render_frames(
        self,
        width: int,
        height: int,
        seed: float,
        times: Iterable[float],
        **kwargs
    ) -> Iterator[np.ndarray]:
        """Yield one frame per time value (same composition throughout)."""
        frame_timer = profiler.TimerAccumulator("frame")
        for t in times:
            with frame_timer.measure():
                frame = self.render(width, height, seed, t, **kwargs)
            yield frame
        logger.debug(f"Frame sequence done: {frame_timer}")

    def build_layers(self, layout: Layout, time: float = 0.0) -> List[Layer]:
        """Painted layers of a layout, in compositing order.

        Layers bind their descriptor and the time-derived animation phase;
        they still take pixel coordinates so one list serves every band.
        """
        noise_kw = {'octaves': self.octaves}
        warp_kw = {'octaves': self.octaves, 'warp_intensity': self.warp_intensity}
        layers = []

        for w in layout.background_washes:
            a, b = pigment_pair(w.palette_index)
            layers.append(Layer('background_wash', GLAZE, partial(
                evaluate_abstract_wash,
                angle=w.angle, offset=w.offset, band_width=w.band_width, key=w.key,
                pigment_a=a, pigment_b=b, opacity=w.opacity,
                anim_phase=_anim_phase(time, w.index), **warp_kw
            )))

        for s in layout.splotches:
            a, b = pigment_pair(s.palette_index)
            layers.append(Layer('splotch', GLAZE, partial(
                evaluate_splotch,
                center=s.center, radius=s.radius, key=s.key,
                pigment_a=a, pigment_b=b, opacity=s.opacity,
                anim_phase=_anim_phase(time, s.index), **warp_kw
            )))

        for f in layout.flowers:
            a, b = pigment_pair(f.palette_index)
            layers.append(Layer('flower', GLAZE, partial(
                evaluate_wash,
                center=f.center, size=f.size, petal_count=f.petal_count, key=f.key,
                pigment_a=a, pigment_b=b, opacity=f.opacity, wetness=f.wetness,
                anim_phase=_anim_phase(time, f.index), orientation=f.orientation, **warp_kw
            )))

        for st in layout.stems:
            layers.append(Layer('stem', INK, partial(
                evaluate_stem,
                base=st.base, control=st.control, tip=st.tip, branch_t=st.branch_t,
                branch_control=st.branch_control, branch_tip=st.branch_tip,
                width=st.width, key=st.key, ink=st.ink, opacity=st.opacity,
                anim_phase=_anim_phase(time, st.index), **noise_kw
            )))

        for m in layout.center_marks:
            layers.append(Layer('center_mark', INK, partial(
                evaluate_center_mark,
                center=m.center, size=m.size, key=m.key, ink=m.ink, opacity=m.opacity,
                dot_count=m.dot_count, anim_phase=_anim_phase(time, m.index), **noise_kw
            )))

        return layers

    def shade(self, x: np.ndarray, y: np.ndarray, layout: Layout, time: float = 0.0) -> np.ndarray:
        """Per-pixel pipeline for a block of coordinates.

        Parameters
        ----------
        x, y : np.ndarray
            Canvas coordinates, shape (H, W)
        layout : Layout
            Derived layout of the painting
        time : float
            Animation time

        Returns
        -------
        np.ndarray
            Unclamped RGB, shape (H, W, 3), float64
        """
        paper = self.paper_base(x, y, layout.key)

        def fold(canvas: np.ndarray, layer: Layer) -> np.ndarray:
            color, alpha = layer.evaluate(x, y)
            if layer.mode == INK:
                return ink_over(canvas, color, alpha)
            return glaze_over(canvas, color, alpha)

        canvas = reduce(fold, self.build_layers(layout, time), paper)
        canvas = self.apply_grain(canvas, paper, x, y, layout.key)
        return self.apply_vignette(canvas, x, y, layout.aspect)

    # ------------------------------------------------------------------
    # Paper stages
    # ------------------------------------------------------------------

    def paper_base(self, x: np.ndarray, y: np.ndarray, key: int) -> np.ndarray:
        """Paper color with a faint low-frequency tone variation (±1.5%)."""
        tone = 0.97 + 0.03 * fbm(x * 3.0, y * 3.0, int(prng.mix_keys(key, _SALT_PAPER)), self.octaves)
        return self.paper_color * tone[..., None]

    def apply_grain(
        self,
        canvas: np.ndarray,
        paper: np.ndarray,
        x: np.ndarray,
        y: np.ndarray,
        key: int
    ) -> np.ndarray:
        """Darken cellular paper tooth where the canvas is still bare.

        Bare paper is detected by the luminance ratio of canvas to paper
        base; pigment already hides the grain.
        """
        strength = self.cfg.paper.grain_strength
        if strength <= 0.0:
            return canvas
        painted = 1.0 - luminance(canvas) / np.maximum(luminance(paper), EPS)
        bare = 1.0 - smoothstep(0.02, 0.12, painted)
        cell = cellular(x * 60.0, y * 60.0, int(prng.mix_keys(key, _SALT_GRAIN)))
        tooth = 1.0 - smoothstep(0.0, 0.7, cell)
        return canvas * (1.0 - strength * bare * tooth)[..., None]

    def apply_vignette(self, canvas: np.ndarray, x: np.ndarray, y: np.ndarray, aspect: float) -> np.ndarray:
        strength = self.cfg.paper.vignette_strength
        r = np.hypot(x / aspect, y)
        return canvas * (1.0 - strength * smoothstep(0.6, 1.5, r))[..., None]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def check_size(width, height) -> Tuple[int, int]:
        """Validate output size; returns (width, height) as ints.

        Integers and floats holding a whole number of pixels (16.0) are
        accepted. Fractional, non-finite, bool, string and non-positive
        values raise ValueError.
        """
        sizes = []
        for name, v in (('width', width), ('height', height)):
            if isinstance(v, bool) or not isinstance(v, numbers.Real):
                raise ValueError(f"{name} must be a number of pixels, got {v!r}")
            if not isinstance(v, numbers.Integral) and not (math.isfinite(v) and float(v).is_integer()):
                raise ValueError(f"{name} must be a whole number of pixels, got {v!r}")
            if v <= 0:
                raise ValueError(f"{name} must be positive, got {v}")
            sizes.append(int(v))
        return sizes[0], sizes[1]

    @staticmethod
    def _check_finite(name: str, v) -> float:
        try:
            v = float(v)
        except (TypeError, ValueError) as e:
            raise ValueError(f"{name} must be a finite number, got {v!r}") from e
        if not math.isfinite(v):
            raise ValueError(f"{name} must be finite, got {v}")
        return v

    @staticmethod
    def _log_timing(name: str, seconds: float) -> None:
        logger.debug(f"{name}: {seconds:.3f} s")
