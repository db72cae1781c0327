"""Estimate the ink color of a traced path from the source image.

A handful of path pixels (10 by default) are drawn uniformly with replacement
and their RGB values averaged. Samples falling outside the image are skipped;
a path with no valid sample gets DEFAULT_COLOR.

Random generators are passed in explicitly so that conversions are
reproducible for a fixed seed regardless of thread scheduling.
"""

import logging
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from ..utils.color import DEFAULT_COLOR, Color
from .pixels import Point

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]
PixelColorLookup = Callable[[Point], Optional[RGB]]

DEFAULT_NUM_SAMPLES = 10


class ImageColorLookup:
    """Pixel color lookup over an (H, W, 3) or (H, W, 4) uint8 image.

    Calling it with an (x, y) point returns the (r, g, b) triple, or None when
    the point lies outside the image.
    """

    def __init__(self, image: np.ndarray):
        if image.ndim != 3 or image.shape[2] not in (3, 4):
            raise ValueError(f"Expected (H, W, 3|4) image, got shape {image.shape}")
        self.image = image
        self.height, self.width = image.shape[:2]

    def __call__(self, p: Point) -> Optional[RGB]:
        x, y = p
        if not (0 <= x < self.width and 0 <= y < self.height):
            return None
        r, g, b = self.image[y, x, :3]
        return (int(r), int(g), int(b))


def average_color(
    points: Sequence[Point],
    lookup: PixelColorLookup,
    rng: np.random.Generator,
    num_samples: int = DEFAULT_NUM_SAMPLES
) -> Color:
    """Average color of randomly sampled path pixels.

    Parameters
    ----------
    points : Sequence[Point]
        Traced path
    lookup : PixelColorLookup
        (x, y) → (r, g, b) in 0..255, or None when unavailable
    rng : np.random.Generator
        Source of sample indices
    num_samples : int
        Samples to draw (capped at len(points)), default 10

    Returns
    -------
    Color
        Mean of the valid samples divided by 255, clipped to [0, 1], alpha 1.
        DEFAULT_COLOR when no sample is valid or the path is empty.
    """
    if len(points) == 0:
        return DEFAULT_COLOR

    n = min(num_samples, len(points))
    indices = rng.integers(0, len(points), size=n)

    samples: List[RGB] = []
    for i in indices:
        rgb = lookup(points[int(i)])
        if rgb is not None:
            samples.append(rgb)

    if not samples:
        logger.debug(f"No valid color samples for path of {len(points)} points")
        return DEFAULT_COLOR

    mean = np.clip(np.asarray(samples, dtype=np.float64).mean(axis=0) / 255.0, 0.0, 1.0)
    return Color(float(mean[0]), float(mean[1]), float(mean[2]), 1.0)


def spawn_generators(seed: Optional[int], count: int) -> List[np.random.Generator]:
    """One independent generator per path, derived from a single seed.

    seed=None draws fresh OS entropy (non-reproducible).
    """
    children = np.random.SeedSequence(seed).spawn(count)
    return [np.random.default_rng(child) for child in children]


class ColorSampler:
    """Configured per-path color sampler.

    Parameters
    ----------
    lookup : PixelColorLookup
        Source image pixel access
    num_samples : int
        Samples per path, default 10
    """

    def __init__(self, lookup: PixelColorLookup, num_samples: int = DEFAULT_NUM_SAMPLES):
        if num_samples < 1:
            raise ValueError(f"num_samples must be ≥ 1, got {num_samples}")
        self.lookup = lookup
        self.num_samples = num_samples

    def sample(self, points: Sequence[Point], rng: np.random.Generator) -> Color:
        return average_color(points, self.lookup, rng, self.num_samples)
