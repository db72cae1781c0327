"""Sparse pixel sets and neighborhood queries.

A Point is an integer (x, y) tuple in image coordinates (top-left origin,
+Y down). A PixelSet is a set of Points; it stands for all stroke pixels, one
connected component, or a skeleton.

Neighbor orders below are fixed so that every consumer (grouping, thinning,
tracing) is deterministic for identical input.
"""

from typing import AbstractSet, FrozenSet, Iterable, Iterator, List, Set, Tuple

import numpy as np

Point = Tuple[int, int]
PixelSet = AbstractSet[Point]

# E, S, W, N
NEIGHBORS_4: Tuple[Point, ...] = ((1, 0), (0, 1), (-1, 0), (0, -1))
# SE, SW, NW, NE
DIAGONALS: Tuple[Point, ...] = ((1, 1), (-1, 1), (-1, -1), (1, -1))
NEIGHBORS_8: Tuple[Point, ...] = NEIGHBORS_4 + DIAGONALS

# Row-major 3x3 window offsets (a b c / d p e / f g h), center included
WINDOW_3X3: Tuple[Point, ...] = tuple((dx, dy) for dy in (-1, 0, 1) for dx in (-1, 0, 1))


def neighbors4(p: Point) -> Iterator[Point]:
    x, y = p
    for dx, dy in NEIGHBORS_4:
        yield (x + dx, y + dy)


def neighbors8(p: Point) -> Iterator[Point]:
    x, y = p
    for dx, dy in NEIGHBORS_8:
        yield (x + dx, y + dy)


def m_neighbors(p: Point, pixels: PixelSet) -> List[Point]:
    """Mixed-adjacency neighbors of ``p`` inside ``pixels``.

    4-neighbors always count. A diagonal neighbor counts only when neither of
    the two 4-neighbors it shares with ``p`` is in ``pixels``; otherwise it is
    already reachable through that 4-neighbor.
    """
    x, y = p
    result = [q for q in neighbors4(p) if q in pixels]
    for dx, dy in DIAGONALS:
        q = (x + dx, y + dy)
        if q in pixels and (x + dx, y) not in pixels and (x, y + dy) not in pixels:
            result.append(q)
    return result


def window(p: Point, pixels: PixelSet) -> Tuple[int, ...]:
    """3x3 membership window around ``p`` as a row-major 9-tuple of 0/1.

    Pixels outside the set (including outside the image) read as 0.
    """
    x, y = p
    return tuple(1 if (x + dx, y + dy) in pixels else 0 for dx, dy in WINDOW_3X3)


def is_boundary(p: Point, pixels: PixelSet) -> bool:
    """True if some 4-neighbor of ``p`` is not in ``pixels``."""
    return any(q not in pixels for q in neighbors4(p))


def sorted_pixels(pixels: Iterable[Point]) -> List[Point]:
    """Pixels in raster order (row by row, then column)."""
    return sorted(pixels, key=lambda p: (p[1], p[0]))


def from_mask(mask: np.ndarray) -> FrozenSet[Point]:
    """Convert an (H, W) boolean/uint8 mask to a PixelSet of nonzero pixels."""
    if mask.ndim != 2:
        raise ValueError(f"Expected 2D mask (H, W), got shape {mask.shape}")
    ys, xs = np.nonzero(mask)
    return frozenset(zip(xs.tolist(), ys.tolist()))


def to_mask(pixels: Iterable[Point], shape: Tuple[int, int]) -> np.ndarray:
    """Rasterize a PixelSet into an (H, W) uint8 mask (255 = present).

    Points outside ``shape`` are ignored.
    """
    h, w = shape
    mask = np.zeros((h, w), dtype=np.uint8)
    for x, y in pixels:
        if 0 <= x < w and 0 <= y < h:
            mask[y, x] = 255
    return mask


def bounds(pixels: Iterable[Point]) -> Tuple[int, int, int, int]:
    """Inclusive (xmin, ymin, xmax, ymax) of a non-empty PixelSet."""
    xs: Set[int] = set()
    ys: Set[int] = set()
    for x, y in pixels:
        xs.add(x)
        ys.add(y)
    if not xs:
        raise ValueError("bounds() of an empty pixel set")
    return (min(xs), min(ys), max(xs), max(ys))
