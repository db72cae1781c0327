"""Raster strokes → vector paths.

Modules:
    - pixels: Point / PixelSet model, neighborhoods, mask conversion
    - grouping: 4-connected components (set flood fill, scipy labelling)
    - patterns: 3x3 keep/tip templates with lookup tables
    - skeleton: topology-preserving thinning
    - tracer: skeleton → ordered paths split at branch points
    - curve_fit: paths → line or cubic Bézier segments
    - color_sampler: per-path ink color from the source image
    - paths: VectorPath with intersection/containment predicates
    - classifier: image → stroke pixels (injected strategy)
    - converter: the parallel pipeline, image conversion and placement
    - export: ink_paths.v1 YAML and preview rendering

Workflow:
    1. classifier.classify(image) → PixelSet
    2. convert_to_paths(pixels, lookup, config) → [(VectorPath, Color), ...]
    3. export_paths_yaml(...) / render_preview(...)
"""

from .classifier import LabThresholdClassifier, MaskClassifier, StrokeClassifier
from .color_sampler import ColorSampler, ImageColorLookup
from .converter import ImageConversion, ImagePathConverter, convert_to_paths
from .curve_fit import CurveFitter
from .export import export_paths_yaml, render_preview
from .paths import CubicSegment, LineSegment, VectorPath

__all__ = [
    'LabThresholdClassifier',
    'MaskClassifier',
    'StrokeClassifier',
    'ColorSampler',
    'ImageColorLookup',
    'ImageConversion',
    'ImagePathConverter',
    'convert_to_paths',
    'CurveFitter',
    'export_paths_yaml',
    'render_preview',
    'CubicSegment',
    'LineSegment',
    'VectorPath',
]
