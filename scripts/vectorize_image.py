#!/usr/bin/env python3
"""Vectorize a photo of handwriting or line art into colored ink paths.

Pipeline:
    1. Load and validate config (configs/vectorizer_v1.yaml)
    2. Load image (RGB, optionally downscaled to classifier.max_side_px)
    3. Classify stroke pixels (CIE L* threshold + cleanup)
    4. Group → skeletonize → trace → fit → sample colors
    5. Save ink_paths.yaml (ink_paths.v1, validated on load)
    6. Save preview.png (and mask.png if enabled)

Refactored architecture:
    - vectorize_main(input_path, output_dir, ...) → dict
        * Callable function (used by tests and batch tools)
        * Returns: {ink_paths_path, preview_path, mask_path, num_paths, image_px}
    - CLI entry point: if __name__ == "__main__"

CLI:
    python scripts/vectorize_image.py --input scans/note.jpg --output outputs/note/
    python scripts/vectorize_image.py --input sketch.png --output out/ \\
                                      --mode bezier --seed 7 --log-level DEBUG

Output structure:
    <output_dir>/
        ink_paths.yaml
        preview.png
        mask.png        (output.save_mask only)
"""

import argparse
import logging
import sys
import uuid
from pathlib import Path
from typing import Any, Dict, Optional

from photo_draw.utils import fs, logging_config, validators
from photo_draw.vectorization import ImagePathConverter, export_paths_yaml, render_preview
from photo_draw.vectorization.pixels import to_mask

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = "configs/vectorizer_v1.yaml"


def _apply_overrides(
    cfg: validators.VectorizerV1,
    mode: Optional[str],
    seed: Optional[int]
) -> validators.VectorizerV1:
    """Return ``cfg`` with CLI overrides applied (re-validated)."""
    data = cfg.model_dump(by_alias=True)
    if mode is not None:
        data['curve_fit']['mode'] = mode
    if seed is not None:
        data['color']['seed'] = seed
    return validators.VectorizerV1(**data)


def vectorize_main(
    input_path: str,
    output_dir: str,
    config_path: Optional[str] = None,
    mode: Optional[str] = None,
    seed: Optional[int] = None,
) -> Dict[str, Any]:
    """Run the full vectorization pipeline for one image.

    Parameters
    ----------
    input_path : str
        Image file (any format Pillow reads)
    output_dir : str
        Directory for artifacts (created if missing)
    config_path : str, optional
        vectorizer.v1 YAML; built-in defaults when None
    mode : str, optional
        Override curve_fit.mode ('polyline' or 'bezier')
    seed : int, optional
        Override color.seed

    Returns
    -------
    Dict[str, Any]
        ink_paths_path, preview_path, mask_path (None when not saved),
        num_paths (non-empty paths written), image_px [W, H]

    Raises
    ------
    FileNotFoundError
        If the image or config does not exist
    ValueError
        If the config fails validation
    """
    cfg = validators.load_vectorizer_config(config_path) if config_path else validators.VectorizerV1()
    cfg = _apply_overrides(cfg, mode, seed)

    out_path = fs.ensure_dir(output_dir)
    conversion_id = uuid.uuid4().hex[:8]
    logging_config.push_context(conversion=conversion_id)
    try:
        image = fs.load_image_rgb(input_path, max_side_px=cfg.classifier.max_side_px)
        h, w = image.shape[:2]
        logger.info(f"Loaded {input_path} ({w}x{h}), mode={cfg.curve_fit.mode}, seed={cfg.color.seed}")

        converter = ImagePathConverter(image, config=cfg)
        results = converter.find_paths()

        ink_paths_path = out_path / "ink_paths.yaml"
        num_paths = export_paths_yaml(
            results,
            ink_paths_path,
            image_size=(w, h),
            curve_fit_mode=cfg.curve_fit.mode,
            seed=cfg.color.seed,
            source_image=str(input_path),
        )

        preview_path = None
        if cfg.output.save_preview:
            preview_path = out_path / "preview.png"
            render_preview(results, (w, h), preview_path, thickness_px=cfg.output.preview_thickness_px)

        mask_path = None
        if cfg.output.save_mask:
            mask_path = out_path / "mask.png"
            fs.atomic_save_image(to_mask(converter.stroke_pixels, (h, w)), mask_path)

        logger.info(f"Vectorization complete: {num_paths} paths → {out_path}")
    finally:
        logging_config.pop_context(["conversion"])

    return {
        'ink_paths_path': str(ink_paths_path),
        'preview_path': str(preview_path) if preview_path else None,
        'mask_path': str(mask_path) if mask_path else None,
        'num_paths': num_paths,
        'image_px': [w, h],
    }


def main() -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Convert a photo of strokes into colored vector ink paths",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--input",
        type=str,
        required=True,
        help="Path to input image (PNG/JPEG)",
    )
    parser.add_argument(
        "--output",
        type=str,
        required=True,
        help="Output directory for artifacts",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=DEFAULT_CONFIG,
        help=f"Path to vectorizer config (default: {DEFAULT_CONFIG})",
    )
    parser.add_argument(
        "--mode",
        type=str,
        choices=validators.CURVE_FIT_MODES,
        help="Override curve fitting mode",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Override color sampling seed",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit JSON log lines",
    )

    args = parser.parse_args()

    logging_config.setup_logging(
        log_level=args.log_level,
        json=args.json_logs,
        quiet_libs=["PIL"],
        context={"app": "vectorize"},
    )
    logging_config.install_excepthook()

    try:
        result = vectorize_main(
            input_path=args.input,
            output_dir=args.output,
            config_path=args.config,
            mode=args.mode,
            seed=args.seed,
        )
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        return 1
    finally:
        logging_config.shutdown()

    print("\n=== Vectorization Complete ===")
    print(f"Paths: {result['num_paths']}")
    print(f"Ink paths: {result['ink_paths_path']}")
    if result['preview_path']:
        print(f"Preview: {result['preview_path']}")
    if result['mask_path']:
        print(f"Mask: {result['mask_path']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
