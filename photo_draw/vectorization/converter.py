"""Stroke pixels → colored vector paths.

Pipeline:
    1. Group stroke pixels into 4-connected components
    2. Per component (in parallel): skeletonize, then trace into paths
    3. Per path (in parallel): fit segments, sample the ink color

Provides:
    - convert_to_paths(): the core conversion over an injected mask and color lookup
    - ImagePathConverter: image → paths with an injected stroke classifier
    - ImageConversion: background conversion plus placement on the drawing canvas

Invariants:
    - Output order is the component order, then trace order within a component
    - For a fixed color seed the output does not depend on thread scheduling
    - Empty input gives an empty list; degenerate paths give empty VectorPaths
"""

import logging
import os
from concurrent.futures import Executor, Future, ThreadPoolExecutor, as_completed
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np
import torch

from ..utils import geometry, profiler
from ..utils.color import Color
from ..utils.validators import VectorizerV1
from .classifier import LabThresholdClassifier, StrokeClassifier
from .color_sampler import ColorSampler, ImageColorLookup, PixelColorLookup, spawn_generators
from .curve_fit import CurveFitter
from .grouping import group_components, label_components
from .paths import VectorPath
from .pixels import PixelSet, Point, from_mask
from .skeleton import skeletonize
from .tracer import StrokePath, trace_paths

logger = logging.getLogger(__name__)

StrokeMask = Union[PixelSet, np.ndarray, Callable[[Point], bool]]
ConversionResult = List[Tuple[VectorPath, Color]]


# ============================================================================
# CORE CONVERSION
# ============================================================================

def _mask_pixels(
    stroke_mask: StrokeMask,
    image_size: Optional[Tuple[int, int]]
) -> frozenset:
    if isinstance(stroke_mask, np.ndarray):
        return from_mask(stroke_mask)
    if callable(stroke_mask):
        if image_size is None:
            raise ValueError("image_size (W, H) is required when stroke_mask is a callable")
        w, h = image_size
        return frozenset((x, y) for y in range(h) for x in range(w) if stroke_mask((x, y)))
    return frozenset(stroke_mask)


def _trace_component(group: PixelSet) -> List[StrokePath]:
    return trace_paths(skeletonize(group))


def resolve_workers(config: VectorizerV1) -> int:
    """Worker count from config, falling back to the CPU count."""
    return config.concurrency.max_workers or os.cpu_count() or 1


def convert_to_paths(
    stroke_mask: StrokeMask,
    pixel_color_lookup: PixelColorLookup,
    config: Optional[VectorizerV1] = None,
    image_size: Optional[Tuple[int, int]] = None
) -> ConversionResult:
    """Convert stroke pixels into colored vector paths.

    Parameters
    ----------
    stroke_mask : PixelSet | np.ndarray | Callable[[Point], bool]
        Stroke pixels as a set of (x, y), an (H, W) boolean/uint8 mask, or a
        predicate evaluated over every pixel of ``image_size``
    pixel_color_lookup : PixelColorLookup
        (x, y) → (r, g, b) in 0..255, or None outside the image
    config : VectorizerV1, optional
        Curve fitting, color sampling and worker settings; defaults to VectorizerV1()
    image_size : Tuple[int, int], optional
        (W, H), required only for a callable ``stroke_mask``

    Returns
    -------
    List[Tuple[VectorPath, Color]]
        One entry per traced path, in emission order. The color is also set
        on the VectorPath.

    Notes
    -----
    Components and paths are processed on a thread pool; results are written
    back by index so the order never depends on completion order.
    """
    config = config or VectorizerV1()
    sink = profiler.log_sink(logger)

    with profiler.timer("group", sink=sink):
        if isinstance(stroke_mask, np.ndarray):
            groups = label_components(stroke_mask)
        else:
            groups = group_components(_mask_pixels(stroke_mask, image_size))

    if not groups:
        logger.info("No stroke pixels: nothing to convert")
        return []

    fitter = CurveFitter.from_config(config.curve_fit)
    sampler = ColorSampler(pixel_color_lookup, config.color.num_samples)
    workers = resolve_workers(config)

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="vectorize") as pool:
        with profiler.timer("skeletonize+trace", sink=sink):
            traced: List[Optional[List[StrokePath]]] = [None] * len(groups)
            futures = {pool.submit(_trace_component, g): i for i, g in enumerate(groups)}
            for future in as_completed(futures):
                traced[futures[future]] = future.result()

        stroke_paths = [path for component in traced for path in component]
        rngs = spawn_generators(config.color.seed, len(stroke_paths))

        def fit_one(path: StrokePath, rng: np.random.Generator) -> Tuple[VectorPath, Color]:
            color = sampler.sample(path, rng)
            return fitter.fit(path, color), color

        with profiler.timer("fit+color", sink=sink):
            results: List[Optional[Tuple[VectorPath, Color]]] = [None] * len(stroke_paths)
            futures = {
                pool.submit(fit_one, path, rng): i
                for i, (path, rng) in enumerate(zip(stroke_paths, rngs))
            }
            for future in as_completed(futures):
                results[futures[future]] = future.result()

    empty = sum(1 for vector_path, _ in results if vector_path.is_empty)
    logger.info(
        f"Converted {len(groups)} components into {len(results)} paths "
        f"({empty} degenerate, mode={fitter.mode}, workers={workers})"
    )
    return results


# ============================================================================
# IMAGE → PATHS
# ============================================================================

class ImagePathConverter:
    """Convert an RGB(A) image into colored vector paths.

    Parameters
    ----------
    image : np.ndarray
        (H, W, 3) or (H, W, 4) uint8 sRGB image
    classifier : StrokeClassifier, optional
        Stroke pixel strategy; defaults to LabThresholdClassifier(config.classifier)
    config : VectorizerV1, optional
        Full vectorizer config; defaults to VectorizerV1()

    Attributes
    ----------
    stroke_pixels : frozenset or None
        Pixels the classifier selected, set by find_paths()
    """

    def __init__(
        self,
        image: np.ndarray,
        classifier: Optional[StrokeClassifier] = None,
        config: Optional[VectorizerV1] = None
    ):
        if image.ndim != 3 or image.shape[2] not in (3, 4):
            raise ValueError(f"Expected (H, W, 3|4) uint8 image, got shape {image.shape}")
        self.image = image
        self.config = config or VectorizerV1()
        self.classifier = classifier or LabThresholdClassifier(self.config.classifier)
        self.stroke_pixels = None

    @property
    def size(self) -> Tuple[int, int]:
        """Image size as (W, H)."""
        h, w = self.image.shape[:2]
        return (w, h)

    def find_paths(self) -> ConversionResult:
        with profiler.timer("classify", sink=profiler.log_sink(logger)):
            self.stroke_pixels = frozenset(self.classifier.classify(self.image))
        logger.info(f"Classified {len(self.stroke_pixels)} stroke pixels in {self.size[0]}x{self.size[1]} image")

        return convert_to_paths(
            self.stroke_pixels,
            ImageColorLookup(self.image),
            self.config,
            image_size=self.size
        )


# ============================================================================
# BACKGROUND CONVERSION + PLACEMENT
# ============================================================================

class ImageConversion:
    """A photo being converted in the background and placed on the canvas.

    The image is scaled so its longer side measures ``dimension`` canvas
    points and translated so it is centered on ``position``. Converted paths
    are returned in canvas coordinates.

    Parameters
    ----------
    image : np.ndarray
        (H, W, 3) or (H, W, 4) uint8 sRGB image
    position : Tuple[float, float]
        Canvas point the image is centered on
    dimension : float, optional
        Target size of the longer side; defaults to config.placement.dimension (400)
    config : VectorizerV1, optional
        Full vectorizer config
    classifier : StrokeClassifier, optional
        Passed to ImagePathConverter
    executor : Executor, optional
        Runs the conversion; a private single-thread executor when omitted

    Examples
    --------
    >>> conversion = ImageConversion(image, position=(500.0, 300.0))
    >>> conversion.convert().result()
    >>> paths = conversion.get_paths()
    """

    def __init__(
        self,
        image: np.ndarray,
        position: Sequence[float],
        dimension: Optional[float] = None,
        config: Optional[VectorizerV1] = None,
        classifier: Optional[StrokeClassifier] = None,
        executor: Optional[Executor] = None
    ):
        self.config = config or VectorizerV1()
        self.converter = ImagePathConverter(image, classifier, self.config)
        self.dimension = float(dimension if dimension is not None else self.config.placement.dimension)
        if self.dimension <= 0:
            raise ValueError(f"dimension must be positive, got {self.dimension}")
        self._executor = executor
        self._future: Optional[Future] = None

        w, h = self.converter.size
        scale = self.dimension / max(w, h)
        self.scale_transform = geometry.affine_scale(scale, scale)
        # Center the scaled image on position
        self.translate_transform = geometry.affine_translate(
            float(position[0]) - w * scale / 2.0,
            float(position[1]) - h * scale / 2.0
        )

    @property
    def transform(self) -> torch.Tensor:
        """Image pixels → canvas: scale first, then translate."""
        return self.translate_transform @ self.scale_transform

    def convert(self) -> Future:
        """Start the conversion (once) and return its Future."""
        if self._future is None:
            if self._executor is not None:
                self._future = self._executor.submit(self.converter.find_paths)
            else:
                executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="conversion")
                self._future = executor.submit(self.converter.find_paths)
                executor.shutdown(wait=False)
            logger.debug(f"Conversion started for {self.converter.size[0]}x{self.converter.size[1]} image")
        return self._future

    @property
    def is_finished(self) -> bool:
        return self._future is not None and self._future.done()

    def get_paths(self) -> ConversionResult:
        """Placed paths, or [] while the conversion is not finished.

        Raises
        ------
        Exception
            Whatever the conversion raised, once it has finished
        """
        if not self.is_finished:
            return []
        matrix = self.transform
        return [(path.transformed(matrix), color) for path, color in self._future.result()]

    def apply_translate(self, dx: float, dy: float) -> None:
        """Move the placed image by (dx, dy) canvas points."""
        self.translate_transform = geometry.affine_translate(dx, dy) @ self.translate_transform

    def apply_scale(self, sx: float, sy: Optional[float] = None) -> None:
        """Scale the image about its own origin (before translation)."""
        sy = sx if sy is None else sy
        self.scale_transform = geometry.affine_scale(sx, sy) @ self.scale_transform
