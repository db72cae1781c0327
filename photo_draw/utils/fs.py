"""File I/O for the vectorizer: YAML documents and images.

Every write goes to a sibling tmp file first and is then renamed over the
target, so a preview viewer or a batch tool polling the output directory
never reads a half-written ink_paths.yaml or PNG.

Used by:
    - validators: config and ink_paths loaders
    - vectorization.export: ink_paths YAML and preview PNG
    - scripts/vectorize_image.py: input image loading, mask PNG

Usage:
    from photo_draw.utils import fs
    rgb = fs.load_image_rgb("scan.jpg", max_side_px=1600)
    fs.atomic_yaml_dump(doc, out_dir / "ink_paths.yaml")
    fs.atomic_save_image(preview, out_dir / "preview.png")
"""

import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

import numpy as np
import yaml
from PIL import Image

PathLike = Union[str, Path]


def ensure_dir(p: PathLike) -> Path:
    """Create ``p`` (and parents) if missing and return it as a Path."""
    p = Path(p)
    p.mkdir(parents=True, exist_ok=True)
    return p


def _replace_atomically(path: Path, tmp_path: Path, write: Callable[[Path], None]) -> None:
    ensure_dir(path.parent)
    try:
        write(tmp_path)
        tmp_path.replace(path)
    except Exception as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise RuntimeError(f"Failed to write {path} atomically: {e}") from e


def atomic_write_bytes(path: PathLike, data: bytes) -> None:
    """Write ``data`` to ``path`` through an fsynced tmp file.

    Raises
    ------
    RuntimeError
        If writing or renaming fails; the tmp file is removed first
    """
    path = Path(path)

    def write(tmp: Path) -> None:
        with open(tmp, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())

    _replace_atomically(path, path.with_suffix(path.suffix + ".tmp"), write)


def atomic_save_image(
    img: np.ndarray,
    path: PathLike,
    pil_kwargs: Optional[Dict[str, Any]] = None
) -> None:
    """Save an RGB canvas or a stroke mask as an image file.

    Parameters
    ----------
    img : np.ndarray
        (H, W, 3) or (H, W, 4) RGB(A), or (H, W) / (H, W, 1) grayscale.
        Boolean masks are written as 0/255; other dtypes are clipped to uint8.
    path : str or Path
        Target file; the extension picks the encoder
    pil_kwargs : dict, optional
        Passed to PIL.Image.save

    Raises
    ------
    RuntimeError
        If encoding or renaming fails
    """
    path = Path(path)

    if img.dtype == bool:
        img = img.astype(np.uint8) * 255
    elif img.dtype != np.uint8:
        img = np.clip(img, 0, 255).astype(np.uint8)
    if img.ndim == 3 and img.shape[2] == 1:
        img = img[:, :, 0]

    pil_img = Image.fromarray(img)
    # The real extension stays last so PIL picks the encoder from it
    tmp_path = path.with_name(path.stem + ".tmp" + path.suffix)
    _replace_atomically(path, tmp_path, lambda tmp: pil_img.save(tmp, **(pil_kwargs or {})))


def load_image_rgb(path: PathLike, max_side_px: Optional[int] = None) -> np.ndarray:
    """Load a photo or scan as (H, W, 3) uint8 RGB.

    Parameters
    ----------
    path : str or Path
        Any format Pillow reads; alpha and palette images are flattened to RGB
    max_side_px : int, optional
        Downscale (LANCZOS, aspect preserved) when the longer side exceeds this

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")

    with Image.open(path) as pil_img:
        rgb = pil_img.convert("RGB")

    if max_side_px is not None and max(rgb.size) > max_side_px:
        scale = max_side_px / max(rgb.size)
        rgb = rgb.resize(
            (max(1, round(rgb.width * scale)), max(1, round(rgb.height * scale))),
            Image.LANCZOS
        )
    return np.array(rgb, dtype=np.uint8)


def atomic_yaml_dump(obj: Any, path: PathLike) -> None:
    """Write ``obj`` (dicts, lists, primitives) as block-style YAML, keys in insertion order."""
    text = yaml.safe_dump(obj, default_flow_style=False, sort_keys=False, allow_unicode=True)
    atomic_write_bytes(path, text.encode('utf-8'))


def load_yaml(path: PathLike) -> Any:
    """Parse a YAML file with safe_load; an empty file gives None.

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist
    yaml.YAMLError
        With the file name added, if parsing fails
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"YAML file not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        try:
            return yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Failed to parse YAML file {path}: {e}") from e
