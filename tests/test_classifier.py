"""Test stroke pixel classification.

Tests for photo_draw.vectorization.classifier:
    - Dark ink below the L* threshold is selected, paper is not
    - Transparent pixels are never ink
    - Speck removal by component area
    - Otsu threshold when lab_l_max is unset (and uniform images)
    - MaskClassifier shape checks

Run:
    pytest tests/test_classifier.py -v
"""

import numpy as np
import pytest

from photo_draw.utils.validators import ClassifierConfig
from photo_draw.vectorization.classifier import (
    LabThresholdClassifier,
    MaskClassifier,
    remove_specks,
)


@pytest.fixture
def page():
    """40x40 off-white page with a dark 3px stroke and a 2x2 speck."""
    img = np.full((40, 40, 3), 235, dtype=np.uint8)
    img[18:21, 5:35] = (20, 20, 30)
    img[2:4, 2:4] = (10, 10, 10)
    return img


def test_dark_stroke_selected(page):
    classifier = LabThresholdClassifier(ClassifierConfig(min_area_px=0))
    mask = classifier.mask(page)

    assert mask.dtype == np.uint8 and mask.shape == (40, 40)
    assert mask[18:21, 5:35].all()
    assert int((mask > 0).sum()) == 3 * 30 + 4


def test_specks_removed(page):
    pixels = LabThresholdClassifier(ClassifierConfig(min_area_px=5)).classify(page)
    assert len(pixels) == 90
    assert (2, 2) not in pixels
    assert (5, 18) in pixels


def test_transparent_pixels_ignored(page):
    rgba = np.dstack([page, np.full((40, 40), 255, dtype=np.uint8)])
    rgba[18:21, 5:20, 3] = 0
    pixels = LabThresholdClassifier(ClassifierConfig(min_area_px=5)).classify(rgba)
    assert len(pixels) == 3 * 15


def test_otsu_threshold(page):
    classifier = LabThresholdClassifier(ClassifierConfig(lab_l_max=None, min_area_px=5))
    assert len(classifier.classify(page)) == 90


def test_otsu_uniform_image_selects_nothing():
    blank = np.full((10, 10, 3), 240, dtype=np.uint8)
    classifier = LabThresholdClassifier(ClassifierConfig(lab_l_max=None))
    assert classifier.classify(blank) == frozenset()


def test_closing_fills_gap():
    img = np.full((20, 30, 3), 255, dtype=np.uint8)
    img[9:12, 2:14] = 0
    img[9:12, 15:28] = 0
    cfg = ClassifierConfig(close_px=1, min_area_px=0)
    pixels = LabThresholdClassifier(cfg).classify(img)
    assert (14, 10) in pixels


def test_remove_specks():
    mask = np.zeros((10, 10), dtype=np.uint8)
    mask[0, 0] = 255
    mask[5:8, 5:8] = 255
    cleaned = remove_specks(mask, 2)
    assert cleaned[0, 0] == 0
    assert cleaned[5:8, 5:8].all()
    assert remove_specks(mask, 1) is mask


def test_rejects_bad_shape():
    with pytest.raises(ValueError):
        LabThresholdClassifier().mask(np.zeros((5, 5), dtype=np.uint8))


def test_mask_classifier():
    mask = np.zeros((4, 5), dtype=bool)
    mask[1, 2] = True
    classifier = MaskClassifier(mask)
    assert classifier.classify(np.zeros((4, 5, 3), dtype=np.uint8)) == frozenset({(2, 1)})
    with pytest.raises(ValueError):
        classifier.classify(np.zeros((5, 4, 3), dtype=np.uint8))
    with pytest.raises(ValueError):
        MaskClassifier(np.zeros((4, 5, 3), dtype=bool))
