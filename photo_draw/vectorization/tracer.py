"""Trace a skeleton into ordered centerline paths split at branch points.

Walk rules (at each step, "live" neighbors are the unvisited skeleton pixels
adjacent to the current pixel under mixed adjacency, see pixels.m_neighbors):

    0 live       → the path ends here
    branch point → the path ends here and every live neighbor is pushed as
                   the start of a new path
    otherwise    → step into the first live neighbor, push the others

A branch point is a pixel with ≥ 3 m-neighbors in the skeleton, visited or
not. The first pixel of a path only splits when it still has ≥ 3 live
neighbors, so a walk that starts beside a junction can leave it.

Popped points that were visited meanwhile are skipped, so a pixel reachable
from several directions is emitted exactly once.

Invariants:
    - Every skeleton pixel appears in exactly one path, exactly once
    - Concatenating the paths in order gives the visit order
    - Only the first and last point of a path can be a branch point
"""

import logging
from collections import deque
from typing import List, Optional, Set

from .patterns import PATTERN_LIBRARY, PatternLibrary
from .pixels import PixelSet, Point, m_neighbors, neighbors8, window

logger = logging.getLogger(__name__)

StrokePath = List[Point]


def canonical_pixel(pixels: PixelSet) -> Point:
    """Pixel closest to the top-left corner: min by (x + y, y, x)."""
    return min(pixels, key=lambda p: (p[0] + p[1], p[1], p[0]))


def find_seed(
    skeleton: PixelSet,
    candidates: Optional[PixelSet] = None,
    library: Optional[PatternLibrary] = None
) -> Point:
    """Pick the pixel a trace starts from.

    Parameters
    ----------
    skeleton : PixelSet
        Full skeleton (neighborhoods are evaluated against it)
    candidates : PixelSet, optional
        Pixels still to be traced; defaults to the whole skeleton
    library : PatternLibrary, optional
        Template library; defaults to PATTERN_LIBRARY

    Returns
    -------
    Point
        The first tip pixel found by a breadth-first search (8-connected,
        within ``candidates``) from the canonical pixel, or the canonical
        pixel itself when no tip is reachable (closed loop, lone pixel)
    """
    library = library or PATTERN_LIBRARY
    candidates = skeleton if candidates is None else candidates

    start = canonical_pixel(candidates)
    queue = deque([start])
    seen = {start}
    while queue:
        p = queue.popleft()
        if library.is_tip(window(p, skeleton)):
            return p
        for q in neighbors8(p):
            if q in candidates and q not in seen:
                seen.add(q)
                queue.append(q)
    return start


def trace_paths(
    skeleton: PixelSet,
    library: Optional[PatternLibrary] = None
) -> List[StrokePath]:
    """Split a skeleton into ordered paths.

    Parameters
    ----------
    skeleton : PixelSet
        Thinned pixels (typically one component)
    library : PatternLibrary, optional
        Template library used for seed selection

    Returns
    -------
    List[StrokePath]
        Paths in emission order; empty input gives an empty list. No point
        other than the first or last of a path has ≥ 3 skeleton neighbors.
    """
    skeleton = frozenset(skeleton)
    visited: Set[Point] = set()
    paths: List[StrokePath] = []

    while len(visited) < len(skeleton):
        remaining = skeleton - visited
        stack = [find_seed(skeleton, remaining, library)]

        while stack:
            start = stack.pop()
            if start in visited:
                continue

            path = [start]
            visited.add(start)
            current = start
            while True:
                around = m_neighbors(current, skeleton)
                live = [q for q in around if q not in visited]
                if not live:
                    break
                if len(live) >= 3 or (len(around) >= 3 and current != start):
                    stack.extend(reversed(live))
                    break

                stack.extend(reversed(live[1:]))
                current = live[0]
                path.append(current)
                visited.add(current)

            paths.append(path)

    if paths:
        logger.debug(f"Traced {len(skeleton)} skeleton pixels into {len(paths)} paths")
    return paths
