"""Stroke pixel classification: image → set of ink pixels.

The vectorization core only needs a boolean decision per pixel. Any object
with a ``classify(image) -> PixelSet`` method can be injected; two are
provided:

    - LabThresholdClassifier: CIE L* threshold (fixed, or Otsu when unset),
      morphological close/open, speck removal
    - MaskClassifier: wraps a precomputed mask

Images are (H, W, 3) or (H, W, 4) uint8 sRGB. Fully transparent pixels are
never ink.
"""

import logging
from typing import FrozenSet, Optional, Protocol

import cv2
import numpy as np
from skimage.filters import threshold_otsu

from ..utils import color
from ..utils.validators import ClassifierConfig
from .pixels import Point, from_mask

logger = logging.getLogger(__name__)


class StrokeClassifier(Protocol):
    def classify(self, image: np.ndarray) -> FrozenSet[Point]:
        ...


def _morph(mask: np.ndarray, op: int, radius: int) -> np.ndarray:
    if radius <= 0:
        return mask
    kernel = cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (2 * radius + 1, 2 * radius + 1))
    return cv2.morphologyEx(mask, op, kernel)


def remove_specks(mask: np.ndarray, min_area_px: int) -> np.ndarray:
    """Zero out 8-connected components smaller than ``min_area_px``."""
    if min_area_px <= 1:
        return mask
    num_labels, labels, stats, _ = cv2.connectedComponentsWithStats(mask, connectivity=8)
    keep = np.zeros(num_labels, dtype=bool)
    keep[1:] = stats[1:, cv2.CC_STAT_AREA] >= min_area_px
    return np.where(keep[labels], 255, 0).astype(np.uint8)


class LabThresholdClassifier:
    """Dark-ink classifier on the L* channel.

    Parameters
    ----------
    cfg : ClassifierConfig, optional
        Threshold and cleanup settings; defaults to ClassifierConfig()

    Notes
    -----
    lab_l_max=None selects the threshold per image with Otsu's method.
    """

    def __init__(self, cfg: Optional[ClassifierConfig] = None):
        self.cfg = cfg or ClassifierConfig()

    def threshold(self, lightness: np.ndarray) -> float:
        if self.cfg.lab_l_max is not None:
            return self.cfg.lab_l_max
        if np.ptp(lightness) < 1e-6:
            # Uniform image: nothing is darker than anything else
            return float(lightness.min())
        return float(threshold_otsu(lightness))

    def mask(self, image: np.ndarray) -> np.ndarray:
        """Binary stroke mask (H, W) uint8, 255 = ink."""
        if image.ndim != 3 or image.shape[2] not in (3, 4):
            raise ValueError(f"Expected (H, W, 3|4) uint8 image, got shape {image.shape}")

        lab = color.srgb_u8_to_lab(np.ascontiguousarray(image[..., :3]))
        lightness = lab[0].detach().cpu().numpy()
        l_max = self.threshold(lightness)

        ink = lightness < l_max
        if image.shape[2] == 4:
            ink &= image[..., 3] > 0
        mask = ink.astype(np.uint8) * 255

        mask = _morph(mask, cv2.MORPH_CLOSE, self.cfg.close_px)
        mask = _morph(mask, cv2.MORPH_OPEN, self.cfg.open_px)
        mask = remove_specks(mask, self.cfg.min_area_px)

        logger.debug(f"L* < {l_max:.1f}: {int((mask > 0).sum())} ink pixels of {mask.size}")
        return mask

    def classify(self, image: np.ndarray) -> FrozenSet[Point]:
        return from_mask(self.mask(image))


class MaskClassifier:
    """Classifier returning a fixed, precomputed (H, W) mask."""

    def __init__(self, mask: np.ndarray):
        if mask.ndim != 2:
            raise ValueError(f"Expected 2D mask (H, W), got shape {mask.shape}")
        self._pixels = from_mask(mask)
        self.shape = mask.shape

    def classify(self, image: np.ndarray) -> FrozenSet[Point]:
        if image.shape[:2] != self.shape:
            raise ValueError(f"Mask shape {self.shape} does not match image {image.shape[:2]}")
        return self._pixels
