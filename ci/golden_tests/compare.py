"""Golden test comparison script for CI.

Renders every golden case and validates it against the stored fixture:
    - Loads the case from YAML (seed, size, time, tolerances)
    - Renders with WatercolorRenderer (schema-default config)
    - Computes PSNR, mean and max absolute error on uint8 images
    - Saves render and amplified diff images to outputs/ci/

CLI:
    python ci/golden_tests/compare.py --case ci/golden_tests/expected/seed42_64.yaml
    python ci/golden_tests/compare.py --all

Expected format (ci/golden_tests/expected/seed42_64.yaml):
    image: "ci/golden_tests/images/seed42_64.png"
    render: {seed: 42.0, width: 64, height: 64, time: 0.0}
    tolerances:
      psnr_min: 45.0
      max_abs_max: 0.02
    render_sha256: "<digest of the quantized render>"   # optional, exact match

A missing fixture fails the case. With --regen the fixture image and
render_sha256 are rewritten from the current render and the case is reported
as "generated", mirroring `pytest -m golden --regen-golden`.

Exit codes:
    0: All cases passed (or were regenerated)
    1: One or more cases failed
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict

import numpy as np

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from aquarelle.painter.compositor import WatercolorRenderer
from aquarelle.utils import color, fs, hashing, logging_config, metrics

logger = logging.getLogger(__name__)

GOLDEN_ROOT = Path(__file__).parent
EXPECTED_DIR = GOLDEN_ROOT / "expected"


def run_case(case_path: Path, renderer: WatercolorRenderer, out_dir: Path, regen: bool = False) -> Dict[str, Any]:
    """Render one golden case and compare it with its fixture."""
    case = fs.load_yaml(case_path)
    r = case['render']
    tol = case.get('tolerances', {})
    image_path = Path(case['image'])
    if not image_path.is_absolute():
        image_path = GOLDEN_ROOT.parent.parent / image_path

    img = color.to_uint8(renderer.render(int(r['width']), int(r['height']), float(r['seed']), float(r.get('time', 0.0))))
    name = case_path.stem
    fs.atomic_save_image(img, out_dir / f"{name}_render.png")

    digest = hashing.render_digest(img)
    if regen:
        fs.atomic_save_image(img, image_path)
        case['render_sha256'] = digest
        fs.atomic_yaml_dump(case, case_path)
        logger.warning(f"[{name}] regenerated {image_path}")
        return {'case': name, 'status': 'generated', 'render_sha256': digest}
    if not image_path.exists():
        logger.error(f"[{name}] fixture missing: {image_path} (rerun with --regen)")
        return {'case': name, 'status': 'failed', 'error': 'fixture missing'}

    reference = fs.load_image(image_path)
    result = {
        'case': name,
        'psnr_db': float(metrics.psnr(img, reference)),
        'mean_abs_error': float(metrics.mean_absolute_error(img, reference)),
        'max_abs_error': float(metrics.max_abs_error(img, reference)),
        'render_sha256': digest,
    }
    diff = np.abs(img.astype(np.int16) - reference.astype(np.int16)).astype(np.float64) / 255.0
    fs.atomic_save_image(np.clip(diff * 10.0, 0.0, 1.0), out_dir / f"{name}_diff.png")

    passed = (
        result['psnr_db'] >= tol.get('psnr_min', 45.0)
        and result['max_abs_error'] <= tol.get('max_abs_max', 0.02)
        and case.get('render_sha256', digest) == digest
    )
    result['status'] = 'passed' if passed else 'failed'
    logger.info(
        f"[{name}] {result['status']}: PSNR={result['psnr_db']:.2f} dB, "
        f"max|Δ|={result['max_abs_error']:.4f}"
    )
    return result


def main(argv=None):
    parser = argparse.ArgumentParser(description="Compare renders against golden fixtures")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument('--case', type=str, help='Single case YAML')
    group.add_argument('--all', action='store_true', help='All cases in ci/golden_tests/expected/')
    parser.add_argument('--output_dir', type=str, default='outputs/ci', help='Report directory')
    parser.add_argument('--regen', action='store_true', help='Rewrite fixtures and digests from the current render')
    args = parser.parse_args(argv)

    logging_config.setup_logging(log_level="INFO", context={'app': 'golden'})
    out_dir = fs.ensure_dir(args.output_dir)

    cases = sorted(EXPECTED_DIR.glob("*.yaml")) if args.all else [Path(args.case)]
    if not cases:
        logger.error(f"No golden cases found in {EXPECTED_DIR}")
        return 1

    renderer = WatercolorRenderer()
    results = [run_case(p, renderer, out_dir, args.regen) for p in cases]
    fs.atomic_yaml_dump({'results': results}, out_dir / "golden_report.yaml")

    failed = [r['case'] for r in results if r['status'] == 'failed']
    if failed:
        logger.error(f"{len(failed)}/{len(results)} golden cases failed: {failed}")
        return 1
    logger.info(f"All {len(results)} golden cases passed")
    return 0


if __name__ == '__main__':
    sys.exit(main())
