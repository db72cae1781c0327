"""3x3 hit-or-miss templates for thinning and endpoint detection.

Provides:
    - Pattern: a 3x3 template over {present, absent, don't-care}
    - PatternLibrary: keep templates (thinning) and tip templates (tracing),
      compiled into 256-entry lookup tables over the 8-neighborhood
    - PATTERN_LIBRARY: the shared, immutable library built at import time

Template layout (row-major, center p always present):

    a b c
    d p e
    f g h

Written as three space-separated rows of '1' (present), '0' (absent) and
'x' (don't-care), e.g. "x0x 111 x0x". Every template is expanded under the
four 90° rotations.

Keep templates (a boundary pixel matching any of these stays):
    - isolated pixel
    - tips: exactly one neighbor (edge or corner), or exactly two mutually
      adjacent neighbors on one side
    - interior: all four 4-neighbors present
    - bridge: two opposite 4-neighbors present, the other two absent
    - isolated corner: a corner neighbor with both shared 4-neighbors absent,
      together with any other neighbor

A pixel matching none of them has at least two neighbors, all 8-connected
among themselves without p, and exactly one background 4-component touching
p, so deleting it changes neither connectivity nor hole count.
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional, Tuple

Cells = Tuple[Optional[int], ...]

# Window positions of the 8 neighbors, in bit order for the lookup tables
_NEIGHBOR_SLOTS = (0, 1, 2, 3, 5, 6, 7, 8)
_CENTER = 4


@dataclass(frozen=True)
class Pattern:
    """A 3x3 hit-or-miss template.

    Attributes
    ----------
    cells : Tuple[Optional[int], ...]
        Nine row-major entries: 1 present, 0 absent, None don't-care
    """
    cells: Cells

    @classmethod
    def parse(cls, text: str) -> "Pattern":
        rows = text.split()
        if len(rows) != 3 or any(len(r) != 3 for r in rows):
            raise ValueError(f"Pattern must be three rows of three cells, got {text!r}")
        lookup = {'1': 1, '0': 0, 'x': None}
        try:
            cells = tuple(lookup[ch] for row in rows for ch in row)
        except KeyError as e:
            raise ValueError(f"Unknown pattern cell {e} in {text!r}") from e
        if cells[_CENTER] != 1:
            raise ValueError(f"Pattern center must be present, got {text!r}")
        return cls(cells)

    def rotated(self) -> "Pattern":
        """Rotate 90° clockwise: new[r][c] = old[2 - c][r]."""
        return Pattern(tuple(self.cells[(2 - c) * 3 + r] for r in range(3) for c in range(3)))

    def rotations(self) -> Tuple["Pattern", ...]:
        """This pattern at 0, 90, 180 and 270 degrees (duplicates removed)."""
        result = []
        current = self
        for _ in range(4):
            if current not in result:
                result.append(current)
            current = current.rotated()
        return tuple(result)

    def matches(self, window: Tuple[int, ...]) -> bool:
        """True if every non-don't-care cell equals the window cell."""
        return all(c is None or c == w for c, w in zip(self.cells, window))

    def __str__(self) -> str:
        sym = {1: '1', 0: '0', None: 'x'}
        chars = [sym[c] for c in self.cells]
        return ' '.join(''.join(chars[i:i + 3]) for i in (0, 3, 6))


def _expand(templates: Iterable[str]) -> Tuple[Pattern, ...]:
    patterns = []
    for text in templates:
        for rotation in Pattern.parse(text).rotations():
            if rotation not in patterns:
                patterns.append(rotation)
    return tuple(patterns)


def _window_from_mask(mask: int) -> Tuple[int, ...]:
    cells = [0] * 9
    cells[_CENTER] = 1
    for bit, slot in enumerate(_NEIGHBOR_SLOTS):
        cells[slot] = (mask >> bit) & 1
    return tuple(cells)


def neighborhood_mask(window: Tuple[int, ...]) -> int:
    """Pack the 8 neighbor cells of a 3x3 window into an int in [0, 255]."""
    mask = 0
    for bit, slot in enumerate(_NEIGHBOR_SLOTS):
        if window[slot]:
            mask |= 1 << bit
    return mask


TIP_TEMPLATES = (
    "010 010 000",   # single edge neighbor
    "100 010 000",   # single corner neighbor
    "011 010 000",   # edge + the corner clockwise of it
    "110 010 000",   # edge + the corner counter-clockwise of it
)

KEEP_TEMPLATES = (
    "000 010 000",   # isolated
    "x1x 111 x1x",   # interior
    "x0x 111 x0x",   # bridge between opposite neighbors
    "10x 011 xxx",   # isolated corner a + e
    "10x 01x x1x",   # isolated corner a + g
    "101 01x xxx",   # isolated corner a + c
    "10x 01x 1xx",   # isolated corner a + f
    "10x 01x xx1",   # isolated corner a + h
) + TIP_TEMPLATES


class PatternLibrary:
    """Keep and tip template sets with precomputed lookup tables.

    Parameters
    ----------
    keep_templates : Iterable[str]
        Templates whose match means "removing this pixel could change topology"
    tip_templates : Iterable[str]
        Templates whose match means "this pixel is a line endpoint"

    Notes
    -----
    Each template set is expanded under rotation, then evaluated once for all
    256 neighborhood configurations. Queries are a set lookup.
    """

    def __init__(
        self,
        keep_templates: Iterable[str] = KEEP_TEMPLATES,
        tip_templates: Iterable[str] = TIP_TEMPLATES
    ):
        self.keep_patterns: Tuple[Pattern, ...] = _expand(keep_templates)
        self.tip_patterns: Tuple[Pattern, ...] = _expand(tip_templates)
        self._keep_masks: FrozenSet[int] = self._compile(self.keep_patterns)
        self._tip_masks: FrozenSet[int] = self._compile(self.tip_patterns)

    @staticmethod
    def _compile(patterns: Tuple[Pattern, ...]) -> FrozenSet[int]:
        return frozenset(
            mask for mask in range(256)
            if any(p.matches(_window_from_mask(mask)) for p in patterns)
        )

    def must_keep(self, window: Tuple[int, ...]) -> bool:
        """True if any keep template matches the 3x3 window."""
        return neighborhood_mask(window) in self._keep_masks

    def is_tip(self, window: Tuple[int, ...]) -> bool:
        """True if the window's center is a thin-line endpoint."""
        return neighborhood_mask(window) in self._tip_masks

    def __repr__(self) -> str:
        return (f"PatternLibrary(keep={len(self.keep_patterns)} patterns, "
                f"tip={len(self.tip_patterns)} patterns)")


PATTERN_LIBRARY = PatternLibrary()
