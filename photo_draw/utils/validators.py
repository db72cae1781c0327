"""YAML schema validation and config loading.

Provides centralized validation for all configuration and output files using pydantic:
    - Vectorizer schema (vectorizer.v1.yaml): classification thresholds, curve
      fitting mode, color sampling, worker pool, placement, preview output
    - Ink paths schema (ink_paths.v1.yaml): exported vector paths with colors

All modules must use these validators to load configs for fail-fast error detection
with actionable messages (offending keys, expected ranges).

Units:
    - Geometry: pixels (image frame, top-left origin, +Y down)
    - Placement dimension: canvas points
    - Color: [0.0, 1.0] RGBA

Usage:
    from photo_draw.utils import validators

    cfg = validators.load_vectorizer_config("configs/vectorizer_v1.yaml")
    doc = validators.load_ink_paths("outputs/scan/ink_paths.yaml")
"""

from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


CURVE_FIT_MODES = ("polyline", "bezier")
SEMANTIC_COLOR_NAMES = ("primary", "gray", "red", "orange", "yellow", "green", "blue", "purple")


# ============================================================================
# VECTORIZER SCHEMA V1
# ============================================================================

class ClassifierConfig(BaseModel):
    """Stroke pixel classification (LAB threshold + morphological cleanup)."""
    lab_l_max: Optional[float] = Field(50.0, ge=0.0, le=100.0, description="Pixels with L* below this are stroke pixels (None = Otsu)")
    close_px: int = Field(0, ge=0, le=10, description="Morphological closing kernel radius (0 = off)")
    open_px: int = Field(0, ge=0, le=10, description="Morphological opening kernel radius (0 = off)")
    min_area_px: int = Field(4, ge=0, le=100000, description="Drop 8-connected specks smaller than this")
    max_side_px: Optional[int] = Field(None, ge=16, le=16384, description="Downscale input so the longer side fits")


class CurveFitConfig(BaseModel):
    """Path → vector curve fitting."""
    mode: str = Field("polyline", description="'polyline' (line segments) or 'bezier' (least-squares cubics)")
    error_threshold: float = Field(7.0, gt=0.0, le=1000.0, description="Max sample-to-curve distance (px) before splitting")

    @field_validator('mode')
    @classmethod
    def validate_mode(cls, v: str) -> str:
        if v not in CURVE_FIT_MODES:
            raise ValueError(f"mode must be one of {CURVE_FIT_MODES}, got '{v}'")
        return v


class ColorSamplingConfig(BaseModel):
    """Per-path color sampling."""
    num_samples: int = Field(10, ge=1, le=1000, description="Pixels sampled per path (capped at path length)")
    seed: Optional[int] = Field(None, ge=0, description="Seed for reproducible sampling (None = fresh entropy)")


class ConcurrencyConfig(BaseModel):
    """Worker pool for per-component and per-path stages."""
    max_workers: Optional[int] = Field(None, ge=1, le=256, description="Thread count (None = os.cpu_count())")


class PlacementConfig(BaseModel):
    """Placement of converted paths on the drawing canvas."""
    dimension: float = Field(400.0, gt=0.0, le=100000.0, description="Longer image side is scaled to this many points")


class OutputConfig(BaseModel):
    """Artifacts written by the CLI."""
    save_preview: bool = Field(True, description="Render paths to preview.png")
    save_mask: bool = Field(False, description="Save the stroke mask as mask.png")
    preview_thickness_px: int = Field(2, ge=1, le=20, description="Preview line thickness")


class VectorizerV1(BaseModel):
    """Vectorizer config schema v1 (complete config file)."""
    model_config = ConfigDict(populate_by_name=True)

    schema_version: str = Field("vectorizer.v1", alias="schema", description="Schema version")
    classifier: ClassifierConfig = Field(default_factory=ClassifierConfig)
    curve_fit: CurveFitConfig = Field(default_factory=CurveFitConfig)
    color: ColorSamplingConfig = Field(default_factory=ColorSamplingConfig)
    concurrency: ConcurrencyConfig = Field(default_factory=ConcurrencyConfig)
    placement: PlacementConfig = Field(default_factory=PlacementConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "vectorizer.v1":
            raise ValueError(f"Expected schema 'vectorizer.v1', got '{v}'")
        return v


# ============================================================================
# INK PATHS SCHEMA V1
# ============================================================================

class InkPath(BaseModel):
    """Single exported path (segments in image pixels)."""
    id: str = Field(..., description="Unique path identifier")
    kind: str = Field(..., description="Segment type: 'polyline' or 'bezier'")
    color_rgba: List[float] = Field(..., description="Sampled color [r, g, b, a] in [0, 1]")
    semantic_color: str = Field(..., description="Nearest selectable ink color")
    segments: List[List[List[float]]] = Field(..., description="Control points per segment")

    @field_validator('kind')
    @classmethod
    def validate_kind(cls, v: str) -> str:
        if v not in CURVE_FIT_MODES:
            raise ValueError(f"kind must be one of {CURVE_FIT_MODES}, got '{v}'")
        return v

    @field_validator('color_rgba')
    @classmethod
    def validate_color(cls, v: List[float]) -> List[float]:
        if len(v) != 4:
            raise ValueError(f"color_rgba must have 4 elements, got {len(v)}")
        for c in v:
            if not 0.0 <= c <= 1.0:
                raise ValueError(f"color_rgba channel {c} outside [0, 1]")
        return v

    @field_validator('semantic_color')
    @classmethod
    def validate_semantic(cls, v: str) -> str:
        if v not in SEMANTIC_COLOR_NAMES:
            raise ValueError(f"semantic_color must be one of {SEMANTIC_COLOR_NAMES}, got '{v}'")
        return v

    @field_validator('segments')
    @classmethod
    def validate_segments(cls, v: List[List[List[float]]]) -> List[List[List[float]]]:
        for i, seg in enumerate(v):
            if len(seg) not in (2, 4):
                raise ValueError(f"Segment {i} must have 2 (line) or 4 (cubic) points, got {len(seg)}")
            for pt in seg:
                if len(pt) != 2:
                    raise ValueError(f"Segment {i} point must have 2 coordinates, got {len(pt)}")
        return v


class InkPathsMetadata(BaseModel):
    """Ink paths metadata (provenance)."""
    generated_at: str = Field(..., description="ISO 8601 timestamp")
    vectorizer_version: str = Field(..., description="photo_draw package version")
    curve_fit_mode: str = Field(..., description="Fitting mode used")
    seed: Optional[int] = Field(None, description="Color sampling seed")
    source_image: Optional[str] = Field(None, description="Input image path")


class InkPathsV1(BaseModel):
    """Ink paths schema v1 (serialization format for converted paths)."""
    model_config = ConfigDict(populate_by_name=True)

    schema_version: str = Field("ink_paths.v1", alias="schema", description="Schema version")
    image_px: List[int] = Field(..., description="Source image size [W, H]")
    paths: List[InkPath] = Field(..., description="Converted paths in emission order")
    metadata: InkPathsMetadata

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "ink_paths.v1":
            raise ValueError(f"Expected schema 'ink_paths.v1', got '{v}'")
        return v

    @field_validator('image_px')
    @classmethod
    def validate_image_px(cls, v: List[int]) -> List[int]:
        if len(v) != 2:
            raise ValueError(f"image_px must have 2 elements [W, H], got {len(v)}")
        if v[0] <= 0 or v[1] <= 0:
            raise ValueError(f"image_px dimensions must be positive, got {v}")
        return v


# ============================================================================
# PUBLIC API
# ============================================================================

def load_vectorizer_config(path: Union[str, Path]) -> VectorizerV1:
    """Load and validate vectorizer config from YAML.

    Parameters
    ----------
    path : Union[str, Path]
        Path to vectorizer_v1.yaml file

    Returns
    -------
    VectorizerV1
        Validated vectorizer configuration

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ValueError
        If validation fails (with actionable error message)
    """
    from . import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Vectorizer config not found: {path}")

    data = fs.load_yaml(path) or {}
    try:
        return VectorizerV1(**data)
    except Exception as e:
        raise ValueError(f"Vectorizer config validation failed at {path}: {e}") from e


def load_ink_paths(path: Union[str, Path]) -> InkPathsV1:
    """Load and validate exported ink paths from YAML.

    Parameters
    ----------
    path : Union[str, Path]
        Path to an ink_paths.v1 YAML file

    Returns
    -------
    InkPathsV1
        Validated ink paths document

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ValueError
        If validation fails (with actionable error message)
    """
    from . import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Ink paths file not found: {path}")

    data = fs.load_yaml(path)
    try:
        return InkPathsV1(**data)
    except Exception as e:
        raise ValueError(f"Ink paths validation failed at {path}: {e}") from e
