"""Serialize and preview converted paths.

Provides:
    - export_paths_yaml(): ink_paths.v1 YAML (validated on load by
      utils.validators.load_ink_paths)
    - paths_document(): the same document as a plain dict
    - render_preview(): paths drawn in their sampled colors on a white canvas

Empty (degenerate) paths are skipped in both outputs. Coordinates are
whatever the paths carry: image pixels from convert_to_paths, canvas points
from ImageConversion.get_paths.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple, Union

import cv2
import numpy as np

from .. import __version__
from ..utils import fs
from ..utils.color import Color, snap_to_semantic
from .paths import VectorPath

logger = logging.getLogger(__name__)

PathResults = Sequence[Tuple[VectorPath, Color]]


def paths_document(
    results: PathResults,
    image_size: Tuple[int, int],
    curve_fit_mode: str = "polyline",
    seed: Optional[int] = None,
    source_image: Optional[str] = None
) -> Dict[str, Any]:
    """Build the ink_paths.v1 document for ``results``.

    Parameters
    ----------
    results : Sequence[Tuple[VectorPath, Color]]
        Output of convert_to_paths
    image_size : Tuple[int, int]
        Source image (W, H)
    curve_fit_mode : str
        Recorded in metadata
    seed : int, optional
        Color sampling seed, recorded in metadata
    source_image : str, optional
        Input file, recorded in metadata

    Returns
    -------
    Dict[str, Any]
        YAML-ready dict (lists and primitives only)
    """
    paths = []
    for path, color in results:
        if path.is_empty:
            continue
        paths.append({
            'id': f"path-{len(paths):05d}",
            'kind': path.kind,
            'color_rgba': [float(c) for c in color.as_tuple()],
            'semantic_color': snap_to_semantic(color).value,
            'segments': [
                [[float(x), float(y)] for x, y in seg.control_points]
                for seg in path.segments
            ],
        })

    return {
        'schema': 'ink_paths.v1',
        'image_px': [int(image_size[0]), int(image_size[1])],
        'paths': paths,
        'metadata': {
            'generated_at': datetime.now(timezone.utc).isoformat(),
            'vectorizer_version': __version__,
            'curve_fit_mode': curve_fit_mode,
            'seed': seed,
            'source_image': source_image,
        },
    }


def export_paths_yaml(
    results: PathResults,
    path: Union[str, Path],
    image_size: Tuple[int, int],
    **metadata
) -> int:
    """Write ``results`` as ink_paths.v1 YAML (atomic).

    Extra keyword arguments (curve_fit_mode, seed, source_image) go to
    paths_document(). Returns the number of paths written.
    """
    doc = paths_document(results, image_size, **metadata)
    fs.atomic_yaml_dump(doc, path)
    logger.info(f"Wrote {len(doc['paths'])} paths to {path}")
    return len(doc['paths'])


def render_preview(
    results: PathResults,
    size: Tuple[int, int],
    path: Optional[Union[str, Path]] = None,
    thickness_px: int = 2,
    max_err_px: float = 0.25
) -> np.ndarray:
    """Draw paths onto a white (H, W, 3) uint8 canvas.

    Parameters
    ----------
    results : Sequence[Tuple[VectorPath, Color]]
        Paths with their colors
    size : Tuple[int, int]
        Canvas (W, H)
    path : str or Path, optional
        If given, the canvas is also saved there as PNG (atomic)
    thickness_px : int
        Line thickness
    max_err_px : float
        Curve flattening tolerance

    Returns
    -------
    np.ndarray
        RGB canvas
    """
    w, h = size
    canvas = np.full((h, w, 3), 255, dtype=np.uint8)

    for vector_path, color in results:
        if vector_path.is_empty:
            continue
        pts = np.round(vector_path.to_polyline(max_err_px)).astype(np.int32)
        rgb = tuple(int(c) for c in color.to_rgb255())
        cv2.polylines(canvas, [pts.reshape(-1, 1, 2)], False, rgb, thickness_px, cv2.LINE_AA)

    if path is not None:
        fs.atomic_save_image(canvas, path)
        logger.info(f"Saved preview to {path}")
    return canvas
