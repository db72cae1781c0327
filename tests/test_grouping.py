"""Test pixel sets and connected-component grouping.

Tests for photo_draw.vectorization.pixels and .grouping:
    - Mask ↔ PixelSet conversion
    - Neighborhood windows and mixed adjacency
    - Partition property (every pixel in exactly one group, groups 4-connected)
    - Diagonal contact does not join components
    - Array labelling matches the set flood fill (scipy.ndimage oracle)

Test cases:
    - test_from_mask_to_mask_roundtrip()
    - test_window_row_major()
    - test_m_neighbors_drops_redundant_diagonal()
    - test_group_components_empty()
    - test_diagonal_pixels_are_separate_components()
    - test_group_order_is_raster_order()
    - test_partition_random_masks()
    - test_label_components_matches_flood_fill()

Run:
    pytest tests/test_grouping.py -v
"""

import numpy as np
import pytest
from scipy import ndimage

from photo_draw.vectorization import grouping, pixels


def _random_mask(seed: int, shape=(24, 32), density=0.45) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return (rng.random(shape) < density).astype(np.uint8) * 255


def _is_4_connected(group) -> bool:
    start = next(iter(group))
    seen = {start}
    stack = [start]
    while stack:
        p = stack.pop()
        for q in pixels.neighbors4(p):
            if q in group and q not in seen:
                seen.add(q)
                stack.append(q)
    return len(seen) == len(group)


# ============================================================================
# PIXELS
# ============================================================================

def test_from_mask_to_mask_roundtrip():
    """from_mask uses (x, y) order; to_mask restores the mask."""
    mask = np.zeros((4, 6), dtype=np.uint8)
    mask[1, 4] = 255
    mask[3, 0] = 255

    pts = pixels.from_mask(mask)
    assert pts == frozenset({(4, 1), (0, 3)})
    assert np.array_equal(pixels.to_mask(pts, mask.shape), mask)


def test_to_mask_ignores_out_of_bounds():
    mask = pixels.to_mask({(0, 0), (-1, 2), (10, 10)}, (3, 3))
    assert mask.sum() == 255


def test_window_row_major():
    """Window is a b c / d p e / f g h, outside the set reads 0."""
    pts = {(5, 5), (4, 4), (6, 5), (5, 6)}
    assert pixels.window((5, 5), pts) == (1, 0, 0, 0, 1, 1, 0, 1, 0)


def test_m_neighbors_drops_redundant_diagonal():
    """A diagonal reachable through a shared 4-neighbor is not an m-neighbor."""
    pts = {(0, 0), (1, 0), (1, 1)}
    assert pixels.m_neighbors((0, 0), pts) == [(1, 0)]

    pts = {(0, 0), (1, 1)}
    assert pixels.m_neighbors((0, 0), pts) == [(1, 1)]


def test_sorted_pixels_raster_order():
    assert pixels.sorted_pixels({(2, 0), (0, 1), (1, 0)}) == [(1, 0), (2, 0), (0, 1)]


def test_bounds():
    assert pixels.bounds({(3, 1), (0, 7), (5, 2)}) == (0, 1, 5, 7)
    with pytest.raises(ValueError):
        pixels.bounds(set())


# ============================================================================
# GROUPING
# ============================================================================

def test_group_components_empty():
    assert grouping.group_components(frozenset()) == []
    assert grouping.label_components(np.zeros((5, 5), dtype=np.uint8)) == []


def test_group_components_accepts_list():
    groups = grouping.group_components([(0, 0), (1, 0)])
    assert groups == [frozenset({(0, 0), (1, 0)})]


def test_diagonal_pixels_are_separate_components():
    """Components are 4-connected: diagonal contact does not join them."""
    groups = grouping.group_components({(0, 0), (1, 1), (2, 2)})
    assert len(groups) == 3


def test_group_order_is_raster_order():
    pts = {(9, 0), (9, 1), (0, 3), (1, 3), (4, 1)}
    groups = grouping.group_components(pts)
    assert groups == [
        frozenset({(9, 0), (9, 1)}),
        frozenset({(4, 1)}),
        frozenset({(0, 3), (1, 3)}),
    ]


@pytest.mark.parametrize("seed", [0, 1, 2, 3])
def test_partition_random_masks(seed):
    """Groups are disjoint, cover the input and are each 4-connected."""
    pts = pixels.from_mask(_random_mask(seed))
    groups = grouping.group_components(pts)

    assert sum(len(g) for g in groups) == len(pts)
    assert frozenset().union(*groups) == pts
    assert all(_is_4_connected(g) for g in groups)

    _, count = ndimage.label(_random_mask(seed) > 0)
    assert len(groups) == count


@pytest.mark.parametrize("seed", [0, 5, 11])
def test_label_components_matches_flood_fill(seed):
    """Array labelling gives the same groups in the same order."""
    mask = _random_mask(seed)
    assert grouping.label_components(mask) == grouping.group_components(pixels.from_mask(mask))


def test_label_components_rejects_3d():
    with pytest.raises(ValueError):
        grouping.label_components(np.zeros((4, 4, 3), dtype=np.uint8))
