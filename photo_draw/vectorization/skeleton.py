"""Topology-preserving thinning of a stroke component.

Iterative hit-or-miss thinning: boundary pixels that match no keep template
(see patterns.py) are deleted until a full pass deletes nothing.

Invariants:
    - A non-empty 4-connected group yields a non-empty, 8-connected skeleton
    - Line endpoints (tip templates) and isolated pixels are never removed
    - skeletonize(skeletonize(g)) == skeletonize(g)
    - Output depends only on the input set (frontier visited in raster order)
"""

import logging
from typing import FrozenSet, Optional

from .patterns import PATTERN_LIBRARY, PatternLibrary
from .pixels import PixelSet, Point, is_boundary, neighbors8, sorted_pixels, window

logger = logging.getLogger(__name__)


def skeletonize(
    group: PixelSet,
    library: Optional[PatternLibrary] = None
) -> FrozenSet[Point]:
    """Thin a pixel group to a one-pixel-wide skeleton.

    Parameters
    ----------
    group : PixelSet
        One 4-connected stroke component (other sets are accepted; each of
        their 8-components is thinned in place)
    library : PatternLibrary, optional
        Template library; defaults to the shared PATTERN_LIBRARY

    Returns
    -------
    FrozenSet[Point]
        Skeleton pixels (a subset of ``group``)

    Notes
    -----
    Each pass walks a snapshot of the frontier in raster order and removes
    pixels immediately, so later pixels in the same pass see earlier
    removals. Pixels exposed by a removal join the frontier for the next pass.
    """
    library = library or PATTERN_LIBRARY
    pixels = set(group)
    if not pixels:
        return frozenset()

    frontier = {p for p in pixels if is_boundary(p, pixels)}
    passes = 0

    while True:
        passes += 1
        removed = 0
        exposed = set()

        for p in sorted_pixels(frontier):
            if p not in pixels:
                continue
            if library.must_keep(window(p, pixels)):
                continue

            pixels.discard(p)
            removed += 1
            for q in neighbors8(p):
                if q in pixels:
                    exposed.add(q)

        frontier = (frontier | exposed) & pixels
        if removed == 0:
            break

    logger.debug(f"Thinned {len(group)} → {len(pixels)} pixels in {passes} passes")
    return frozenset(pixels)
