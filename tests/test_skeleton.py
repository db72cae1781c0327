"""Test topology-preserving thinning.

Tests for photo_draw.vectorization.skeleton:
    - Already-thin input is a fixpoint (straight run, plus, diagonal)
    - Thick bars thin to one-pixel lines with their ends kept
    - Idempotence on random components
    - Connectivity: each 4-connected group thins to one 8-connected skeleton
    - Skeleton is a subset of the input and never empty

Oracle:
    scipy.ndimage.label with a full 3x3 structure counts 8-components.

Run:
    pytest tests/test_skeleton.py -v
"""

import numpy as np
import pytest
from scipy import ndimage

from photo_draw.vectorization import grouping, pixels
from photo_draw.vectorization.skeleton import skeletonize

EIGHT = np.ones((3, 3), dtype=bool)


def _count_8_components(pts) -> int:
    x0, y0, x1, y1 = pixels.bounds(pts)
    mask = np.zeros((y1 - y0 + 1, x1 - x0 + 1), dtype=bool)
    for x, y in pts:
        mask[y - y0, x - x0] = True
    _, count = ndimage.label(mask, structure=EIGHT)
    return count


def _rect(x0, y0, w, h):
    return frozenset((x, y) for y in range(y0, y0 + h) for x in range(x0, x0 + w))


def _random_components(seed: int):
    rng = np.random.default_rng(seed)
    mask = ndimage.binary_dilation(rng.random((30, 40)) < 0.08, iterations=2)
    return grouping.label_components(mask)


# ============================================================================
# THIN INPUT
# ============================================================================

def test_empty():
    assert skeletonize(frozenset()) == frozenset()


def test_single_pixel():
    assert skeletonize({(3, 3)}) == frozenset({(3, 3)})


def test_straight_run_is_fixpoint():
    """11-pixel run at y=5: thinning changes nothing."""
    run = frozenset((x, 5) for x in range(11))
    assert skeletonize(run) == run
    assert skeletonize(skeletonize(run)) == run


def test_plus_is_fixpoint():
    plus = frozenset([(5, y) for y in range(2, 9)] + [(x, 5) for x in range(2, 9)])
    assert skeletonize(plus) == plus


def test_diagonal_is_fixpoint():
    diagonal = frozenset((i, i) for i in range(8))
    assert skeletonize(diagonal) == diagonal


def test_staircase_thins_to_diagonal_connected():
    """A 4-connected staircase loses its inner corners but stays connected."""
    stairs = frozenset([(i, i) for i in range(6)] + [(i + 1, i) for i in range(5)])
    skel = skeletonize(stairs)
    assert skel <= stairs
    assert len(skel) < len(stairs)
    assert _count_8_components(skel) == 1


# ============================================================================
# THICK INPUT
# ============================================================================

def test_two_by_two_block():
    assert skeletonize(_rect(0, 0, 2, 2)) == frozenset({(1, 0), (0, 1)})


def test_two_wide_bar():
    """2xN bar thins to its lower row plus the far top corner."""
    skel = skeletonize(_rect(0, 0, 4, 2))
    assert skel == frozenset({(0, 1), (1, 1), (2, 1), (3, 0)})


def test_three_wide_bar():
    skel = skeletonize(_rect(0, 0, 6, 3))
    assert skel == frozenset({(1, 1), (2, 1), (3, 1), (4, 1), (5, 0), (0, 2), (5, 2)})


def test_four_wide_bar():
    skel = skeletonize(_rect(0, 0, 12, 4))
    expected = {(11, 0), (10, 1), (0, 3), (11, 3)} | {(x, 2) for x in range(1, 11)}
    assert skel == frozenset(expected)


@pytest.mark.parametrize("w,h", [(10, 3), (12, 4), (5, 9), (15, 5)])
def test_thick_bars_become_thin(w, h):
    bar = _rect(2, 3, w, h)
    skel = skeletonize(bar)

    assert skel and skel <= bar
    assert len(skel) <= len(bar) // 2
    assert _count_8_components(skel) == 1


# ============================================================================
# PROPERTIES
# ============================================================================

@pytest.mark.parametrize("seed", [0, 1, 2])
def test_idempotent_random(seed):
    for group in _random_components(seed):
        skel = skeletonize(group)
        assert skeletonize(skel) == skel


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_connectivity_preserved_random(seed):
    """Each 4-connected component yields exactly one 8-connected skeleton."""
    for group in _random_components(seed):
        skel = skeletonize(group)
        assert skel, "skeleton must not be empty"
        assert skel <= group
        assert _count_8_components(skel) == 1


def test_deterministic_across_input_types():
    group = _rect(0, 0, 7, 4)
    assert skeletonize(set(group)) == skeletonize(sorted(group, reverse=True))
