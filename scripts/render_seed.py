#!/usr/bin/env python3
"""Render a watercolor painting from a seed.

CLI tool around WatercolorRenderer: renders a single frame or an animation
frame sequence, and writes a metadata YAML for provenance.

Usage:
    # Static frame with config defaults (configs/render.v1.yaml)
    python scripts/render_seed.py --seed 42 --output_dir outputs/seed_42

    # Different size, 4 worker threads
    python scripts/render_seed.py --seed 7.5 --width 1024 --height 768 --workers 4

    # 48-frame animation at 24 fps (time = frame / fps)
    python scripts/render_seed.py --seed 42 --frames 48 --fps 24 --output_dir outputs/anim

    # Compare against a reference PNG
    python scripts/render_seed.py --seed 42 --width 64 --height 64 --compare ci/golden_tests/images/seed42_64.png

Outputs:
    - {prefix}.png (or {prefix}_0000.png ... for --frames)
    - {prefix}_metadata.yaml: config, layout summary, sha256, timing

Exit codes:
    0: Success
    1: Render or I/O failure, or --compare outside tolerance
"""

import argparse
import logging
import sys
from pathlib import Path

import yaml

sys.path.insert(0, str(Path(__file__).parent.parent))

from aquarelle import __version__
from aquarelle.painter.compositor import WatercolorRenderer
from aquarelle.painter.layout import derive_layout
from aquarelle.utils import color, fs, hashing, logging_config, metrics, profiler, validators

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a seed-driven watercolor painting",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument('--config', type=str, default='configs/render.v1.yaml',
                        help='Render config YAML (render.v1 schema)')
    parser.add_argument('--seed', type=float, default=None, help='Composition seed (any finite float)')
    parser.add_argument('--width', type=int, default=None, help='Output width in pixels')
    parser.add_argument('--height', type=int, default=None, help='Output height in pixels')
    parser.add_argument('--time', type=float, default=None, help='Animation time for a single frame')
    parser.add_argument('--frames', type=int, default=0,
                        help='Render an animation of N frames instead of one frame')
    parser.add_argument('--fps', type=float, default=24.0, help='Frames per second for --frames')
    parser.add_argument('--workers', type=int, default=None, help='Thread pool size')
    parser.add_argument('--band_rows', type=int, default=None, help='Rows per evaluation band')
    parser.add_argument('--output_dir', type=str, default='outputs/render', help='Output directory')
    parser.add_argument('--prefix', type=str, default=None, help='Output file prefix (default: seed_<seed>)')
    parser.add_argument('--compare', type=str, default=None, help='Reference PNG to compare against')
    parser.add_argument('--psnr_min', type=float, default=40.0, help='Minimum PSNR (dB) for --compare')
    parser.add_argument('--log_file', type=str, default=None, help='Also log to this file')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    return parser.parse_args(argv)


def load_config(path: str) -> validators.RenderConfigV1:
    """Load render config, falling back to schema defaults if the file is absent."""
    p = Path(path)
    if not p.exists():
        logger.warning(f"Config not found: {p}; using schema defaults")
        return validators.RenderConfigV1()
    return validators.load_render_config(p)


def compare_to_reference(img, reference_path: Path, psnr_min: float) -> dict:
    """Compare a float render with a reference PNG after uint8 quantization."""
    reference = fs.load_image(reference_path)
    rendered = color.to_uint8(img)
    result = {
        'reference': str(reference_path),
        'psnr_db': float(metrics.psnr(rendered, reference)),
        'mean_abs_error': float(metrics.mean_absolute_error(rendered, reference)),
        'max_abs_error': float(metrics.max_abs_error(rendered, reference)),
    }
    result['passed'] = result['psnr_db'] >= psnr_min
    return result


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    logging_config.setup_logging(
        log_level="DEBUG" if args.verbose else "INFO",
        log_file=args.log_file,
        context={'app': 'render_seed'}
    )

    try:
        cfg = load_config(args.config)
    except (ValueError, yaml.YAMLError) as e:
        logger.error(f"Invalid config {args.config}: {e}")
        return 1

    width = args.width if args.width is not None else cfg.canvas.width
    height = args.height if args.height is not None else cfg.canvas.height
    seed = args.seed if args.seed is not None else cfg.canvas.seed
    time = args.time if args.time is not None else cfg.canvas.time

    output_dir = Path(args.output_dir)
    fs.ensure_dir(output_dir)
    prefix = args.prefix or f"seed_{seed:g}"

    logging_config.push_context(seed=seed, size=f"{width}x{height}")
    logger.info(f"Output directory: {output_dir}")

    renderer = WatercolorRenderer(cfg)
    render_kw = {'workers': args.workers, 'band_rows': args.band_rows}

    try:
        width, height = renderer.check_size(width, height)
        layout = derive_layout(seed, width / height)
        if args.frames > 0:
            if args.fps <= 0:
                raise ValueError(f"--fps must be positive, got {args.fps}")
            times = [time + i / args.fps for i in range(args.frames)]
        else:
            times = [time]

        frame_timer = profiler.TimerAccumulator("frame")
        frames = renderer.render_frames(width, height, seed, times, **render_kw)
        outputs = []
        for i, t in enumerate(times):
            with logging_config.log_context(frame=i), frame_timer.measure():
                img = next(frames)
                path = fs.frame_path(output_dir, prefix, i if args.frames > 0 else None)
                fs.atomic_save_image(img, path)
                logger.debug(f"Saved {path}")
            outputs.append({'path': path.name, 'time': t, 'sha256': hashing.render_digest(img)})
        logger.info(f"Rendered {len(times)} frame(s) to {output_dir} ({frame_timer.mean():.3f} s/frame)")
    except (ValueError, RuntimeError) as e:
        logger.error(f"Render failed: {e}")
        return 1

    metadata = {
        'version': __version__,
        'seed': seed,
        'width': width,
        'height': height,
        'fps': args.fps if args.frames > 0 else None,
        'timing': frame_timer.summary(),
        'config': cfg.model_dump(by_alias=True, mode='json'),
        'config_sha256': hashing.hash_dict(cfg.model_dump(by_alias=True, mode='json')),
        'layout': layout.summary(),
        'outputs': outputs,
    }

    exit_code = 0
    if args.compare:
        comparison = compare_to_reference(img, Path(args.compare), args.psnr_min)
        metadata['comparison'] = comparison
        level = logging.INFO if comparison['passed'] else logging.ERROR
        logger.log(
            level,
            f"Compare vs {args.compare}: PSNR={comparison['psnr_db']:.2f} dB "
            f"(min {args.psnr_min}), max|Δ|={comparison['max_abs_error']:.4f}"
        )
        if not comparison['passed']:
            exit_code = 1

    metadata_path = output_dir / f"{prefix}_metadata.yaml"
    fs.atomic_yaml_dump(metadata, metadata_path)
    logger.info(f"Saved metadata: {metadata_path}")

    return exit_code


if __name__ == '__main__':
    sys.exit(main())
