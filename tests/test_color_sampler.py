"""Test per-path color sampling.

Tests for photo_draw.vectorization.color_sampler:
    - ImageColorLookup returns (r, g, b) in bounds, None outside
    - Uniform path color is recovered exactly
    - Mean of samples lies within the range of the path's colors
    - Out-of-bounds samples are skipped; none valid → DEFAULT_COLOR
    - Same seed → same colors; spawned generators are independent

Run:
    pytest tests/test_color_sampler.py -v
"""

import numpy as np
import pytest

from photo_draw.utils.color import DEFAULT_COLOR, Color
from photo_draw.vectorization.color_sampler import (
    ColorSampler,
    ImageColorLookup,
    average_color,
    spawn_generators,
)


@pytest.fixture
def striped_image():
    """8x8 image: rows 0-3 red, rows 4-7 blue."""
    img = np.zeros((8, 8, 3), dtype=np.uint8)
    img[:4] = (255, 0, 0)
    img[4:] = (0, 0, 255)
    return img


def test_lookup_bounds(striped_image):
    lookup = ImageColorLookup(striped_image)
    assert lookup((0, 0)) == (255, 0, 0)
    assert lookup((7, 7)) == (0, 0, 255)
    assert lookup((8, 0)) is None
    assert lookup((0, -1)) is None


def test_lookup_rgba_drops_alpha():
    img = np.full((2, 2, 4), 10, dtype=np.uint8)
    assert ImageColorLookup(img)((1, 1)) == (10, 10, 10)


def test_lookup_rejects_gray():
    with pytest.raises(ValueError):
        ImageColorLookup(np.zeros((4, 4), dtype=np.uint8))


def test_uniform_path_exact(striped_image):
    lookup = ImageColorLookup(striped_image)
    path = [(x, 1) for x in range(8)]
    color = average_color(path, lookup, np.random.default_rng(0))
    assert color == Color(1.0, 0.0, 0.0, 1.0)


@pytest.mark.parametrize("seed", range(5))
def test_mixed_path_within_bounds(striped_image, seed):
    """A path crossing both stripes averages to purple-ish, channels in [0, 1]."""
    lookup = ImageColorLookup(striped_image)
    path = [(2, y) for y in range(8)]
    color = average_color(path, lookup, np.random.default_rng(seed), num_samples=10)

    assert color.g == 0.0
    assert 0.0 <= color.r <= 1.0 and 0.0 <= color.b <= 1.0
    assert color.r + color.b == pytest.approx(1.0)
    assert color.a == 1.0


def test_out_of_bounds_samples_skipped(striped_image):
    lookup = ImageColorLookup(striped_image)
    path = [(-5, -5), (0, 0), (100, 100)]
    color = average_color(path, lookup, np.random.default_rng(3), num_samples=50)
    assert color in (Color(1.0, 0.0, 0.0, 1.0), DEFAULT_COLOR)


def test_no_valid_samples_default():
    color = average_color([(0, 0), (1, 0)], lambda p: None, np.random.default_rng(0))
    assert color == DEFAULT_COLOR


def test_empty_path_default(striped_image):
    color = average_color([], ImageColorLookup(striped_image), np.random.default_rng(0))
    assert color == DEFAULT_COLOR


def test_sample_count_capped_at_path_length():
    calls = []

    def lookup(p):
        calls.append(p)
        return (0, 0, 0)

    average_color([(0, 0), (1, 0), (2, 0)], lookup, np.random.default_rng(0), num_samples=10)
    assert len(calls) == 3


def test_spawn_generators_reproducible():
    a = [g.integers(0, 1000, size=4).tolist() for g in spawn_generators(42, 3)]
    b = [g.integers(0, 1000, size=4).tolist() for g in spawn_generators(42, 3)]
    assert a == b
    assert a[0] != a[1]


def test_color_sampler(striped_image):
    sampler = ColorSampler(ImageColorLookup(striped_image), num_samples=4)
    assert sampler.sample([(0, 6), (1, 6)], np.random.default_rng(1)) == Color(0.0, 0.0, 1.0, 1.0)
    with pytest.raises(ValueError):
        ColorSampler(ImageColorLookup(striped_image), num_samples=0)
