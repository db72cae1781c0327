"""Vector path model: line and cubic segments with geometric predicates.

Provides:
    - LineSegment / CubicSegment: immutable segment types (pixel or canvas units)
    - VectorPath: ordered segments plus a color
    - VectorPath.intersects(): any segment of one path crosses the other
    - VectorPath.contains(): the other path lies inside this path's closed region
    - VectorPath.transformed(): apply a 3x3 affine matrix

Curves are flattened adaptively (utils.geometry) before the shapely tests;
bounding boxes of the control points prune disjoint pairs first.

Used by:
    - curve_fit: builds segments
    - converter: placement transforms
    - export: YAML serialization and preview rendering
    - Canvas-side selection and eraser tools (external)
"""

import logging
from dataclasses import dataclass, field, replace
from typing import List, Sequence, Tuple, Union

import numpy as np
import torch
from shapely.geometry import LineString, MultiLineString, MultiPolygon, Polygon
from shapely.ops import unary_union
from shapely.validation import make_valid

from ..utils import geometry
from ..utils.color import DEFAULT_COLOR, Color

logger = logging.getLogger(__name__)

XY = Tuple[float, float]

# Flattening tolerance for predicates, in path units
FLATTEN_TOLERANCE = 0.1


def _xy(p) -> XY:
    return (float(p[0]), float(p[1]))


@dataclass(frozen=True)
class LineSegment:
    """Straight segment from ``start`` to ``end``."""
    start: XY
    end: XY

    @property
    def control_points(self) -> Tuple[XY, ...]:
        return (self.start, self.end)

    def flatten(self, max_err_px: float = FLATTEN_TOLERANCE) -> np.ndarray:
        return np.array([self.start, self.end], dtype=np.float64)

    def bbox(self) -> Tuple[float, float, float, float]:
        xs = (self.start[0], self.end[0])
        ys = (self.start[1], self.end[1])
        return (min(xs), min(ys), max(xs), max(ys))

    def transformed(self, matrix: torch.Tensor) -> "LineSegment":
        pts = geometry.apply_affine(torch.tensor(self.control_points, dtype=torch.float64), matrix)
        return LineSegment(_xy(pts[0]), _xy(pts[1]))


@dataclass(frozen=True)
class CubicSegment:
    """Cubic Bézier segment with control points p1..p4."""
    p1: XY
    p2: XY
    p3: XY
    p4: XY

    @property
    def control_points(self) -> Tuple[XY, ...]:
        return (self.p1, self.p2, self.p3, self.p4)

    @property
    def start(self) -> XY:
        return self.p1

    @property
    def end(self) -> XY:
        return self.p4

    def _tensors(self) -> Tuple[torch.Tensor, ...]:
        return tuple(torch.tensor(p, dtype=torch.float64) for p in self.control_points)

    @classmethod
    def _from_tensors(cls, pts) -> "CubicSegment":
        return cls(*(_xy(p.tolist()) for p in pts))

    def evaluate(self, t: Union[float, Sequence[float]]) -> np.ndarray:
        """Point(s) on the curve: shape (2,) for scalar t, (N, 2) otherwise."""
        t_tensor = torch.as_tensor(t, dtype=torch.float64)
        return geometry.bezier_cubic_eval(*self._tensors(), t_tensor).numpy()

    def split_at(self, t: float) -> Tuple["CubicSegment", "CubicSegment"]:
        """Split into the [0, t] and [t, 1] pieces."""
        left, right = geometry.bezier_split_at(*self._tensors(), t)
        return self._from_tensors(left), self._from_tensors(right)

    def split_range(self, t1: float, t2: float) -> "CubicSegment":
        """Sub-curve between t1 and t2 (reversed when t1 > t2)."""
        return self._from_tensors(geometry.bezier_split_range(*self._tensors(), t1, t2))

    def flatten(self, max_err_px: float = FLATTEN_TOLERANCE) -> np.ndarray:
        return geometry.bezier_cubic_polyline(*self._tensors(), max_err_px=max_err_px).numpy()

    def bbox(self) -> Tuple[float, float, float, float]:
        return geometry.bezier_control_bbox(*self._tensors())

    def transformed(self, matrix: torch.Tensor) -> "CubicSegment":
        pts = geometry.apply_affine(torch.tensor(self.control_points, dtype=torch.float64), matrix)
        return self._from_tensors(pts)


Segment = Union[LineSegment, CubicSegment]


@dataclass(frozen=True)
class VectorPath:
    """Immutable vector path: ordered segments plus a color.

    Attributes
    ----------
    segments : Tuple[Segment, ...]
        Segments in drawing order; consecutive segments share endpoints
    color : Color
        Ink color, default opaque black
    """
    segments: Tuple[Segment, ...] = ()
    color: Color = field(default=DEFAULT_COLOR)

    @property
    def is_empty(self) -> bool:
        return len(self.segments) == 0

    @property
    def kind(self) -> str:
        """'bezier' if any segment is cubic, 'polyline' otherwise."""
        if any(isinstance(s, CubicSegment) for s in self.segments):
            return "bezier"
        return "polyline"

    def __len__(self) -> int:
        return len(self.segments)

    def bbox(self) -> Tuple[float, float, float, float]:
        """Conservative (xmin, ymin, xmax, ymax); (0, 0, 0, 0) when empty."""
        if self.is_empty:
            return (0.0, 0.0, 0.0, 0.0)
        boxes = np.array([s.bbox() for s in self.segments])
        return (boxes[:, 0].min(), boxes[:, 1].min(), boxes[:, 2].max(), boxes[:, 3].max())

    def flatten(self, max_err_px: float = FLATTEN_TOLERANCE) -> List[np.ndarray]:
        """One (N, 2) polyline per segment."""
        return [s.flatten(max_err_px) for s in self.segments]

    def to_polyline(self, max_err_px: float = FLATTEN_TOLERANCE) -> np.ndarray:
        """Whole path as a single (N, 2) polyline (shared endpoints merged)."""
        if self.is_empty:
            return np.zeros((0, 2), dtype=np.float64)
        parts = self.flatten(max_err_px)
        merged = [parts[0]]
        for prev, part in zip(parts[:-1], parts[1:]):
            if np.allclose(prev[-1], part[0]):
                part = part[1:]
            merged.append(part)
        return np.concatenate(merged, axis=0)

    def _lines(self, max_err_px: float) -> MultiLineString:
        return MultiLineString([p.tolist() for p in self.flatten(max_err_px)])

    def intersects(self, other: "VectorPath", tolerance: float = 1e-6) -> bool:
        """True if any segment of this path crosses or touches any segment of ``other``.

        Parameters
        ----------
        other : VectorPath
            Path to test against
        tolerance : float
            Distance at which two segments count as touching

        Returns
        -------
        bool
            False if either path is empty
        """
        if self.is_empty or other.is_empty:
            return False
        if not geometry.bboxes_overlap(self.bbox(), other.bbox(), tol=tolerance):
            return False

        for seg in self.segments:
            seg_box = seg.bbox()
            seg_line = None
            for other_seg in other.segments:
                if not geometry.bboxes_overlap(seg_box, other_seg.bbox(), tol=tolerance):
                    continue
                if seg_line is None:
                    seg_line = LineString(seg.flatten().tolist())
                other_line = LineString(other_seg.flatten().tolist())
                if seg_line.distance(other_line) <= tolerance:
                    return True
        return False

    def region(self, max_err_px: float = FLATTEN_TOLERANCE):
        """Closed region bounded by this path (implicitly closed), or None.

        Self-crossing outlines are repaired with make_valid, which gives the
        even-odd interpretation for simple crossings.
        """
        ring = self.to_polyline(max_err_px)
        if len(np.unique(ring, axis=0)) < 3:
            return None
        polygon = Polygon(ring.tolist())
        if not polygon.is_valid:
            repaired = make_valid(polygon)
            parts = [g for g in getattr(repaired, "geoms", [repaired])
                     if isinstance(g, (Polygon, MultiPolygon))]
            polygon = unary_union(parts) if parts else None
        if polygon is None or polygon.is_empty or polygon.area == 0.0:
            return None
        return polygon

    def contains(self, other: "VectorPath") -> bool:
        """True if every point of ``other`` lies in the closed region of this path.

        Points on the boundary count as inside. An empty ``other``, or a path
        that encloses no area, gives False.
        """
        if other.is_empty:
            return False
        region = self.region()
        if region is None:
            return False
        if not geometry.bboxes_overlap(self.bbox(), other.bbox()):
            return False
        return region.covers(other._lines(FLATTEN_TOLERANCE))

    def transformed(self, matrix: torch.Tensor) -> "VectorPath":
        """Apply a 3x3 affine matrix to every control point."""
        return replace(self, segments=tuple(s.transformed(matrix) for s in self.segments))


EMPTY_PATH = VectorPath()
