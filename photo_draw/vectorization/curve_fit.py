"""Fit traced point sequences to vector segments.

Two modes:
    1. POLYLINE (default): consecutive distinct points joined by line segments
    2. BEZIER: break-and-fit least-squares cubics
        - chord-length parameters, endpoints fixed
        - inner control points by linear least squares
        - error of a sample: distance to the nearest curve point (its chord
          parameter refined by Newton steps)
        - if the worst sample is farther than error_threshold from the curve,
          split there and fit both halves

Degenerate input (fewer than two distinct points) gives no segments.
"""

import logging
from typing import List, Sequence, Tuple

import numpy as np
import torch

from ..utils import geometry
from ..utils.color import DEFAULT_COLOR, Color
from ..utils.validators import CURVE_FIT_MODES, CurveFitConfig
from .paths import CubicSegment, LineSegment, Segment, VectorPath

logger = logging.getLogger(__name__)

DEFAULT_ERROR_THRESHOLD = 7.0


def dedupe_consecutive(points: Sequence[Tuple[float, float]]) -> np.ndarray:
    """Drop points equal to their predecessor; returns (N, 2) float64."""
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(pts) < 2:
        return pts
    keep = np.ones(len(pts), dtype=bool)
    keep[1:] = np.any(pts[1:] != pts[:-1], axis=1)
    return pts[keep]


def polyline_segments(points: Sequence[Tuple[float, float]]) -> Tuple[LineSegment, ...]:
    """Connect consecutive distinct points with line segments."""
    pts = dedupe_consecutive(points)
    return tuple(
        LineSegment((a[0], a[1]), (b[0], b[1]))
        for a, b in zip(pts[:-1].tolist(), pts[1:].tolist())
    )


def _bernstein(t: np.ndarray) -> np.ndarray:
    """(N, 4) cubic Bernstein basis at parameters t."""
    mt = 1.0 - t
    return np.stack([mt ** 3, 3.0 * mt ** 2 * t, 3.0 * mt * t ** 2, t ** 3], axis=1)


def _nearest_distances(points: np.ndarray, controls: np.ndarray, t: np.ndarray,
                       steps: int = 4) -> np.ndarray:
    """Distance of each point to the cubic, starting Newton's method from ``t``.

    Minimizes |B(t) - P|² per point; a step never makes a distance worse
    than the one at the starting parameter.
    """
    d1 = 3.0 * np.diff(controls, axis=0)
    d2 = 2.0 * np.diff(d1, axis=0)
    best = np.linalg.norm(points - _bernstein(t) @ controls, axis=1)

    for _ in range(steps):
        mt = 1.0 - t
        offset = _bernstein(t) @ controls - points
        velocity = np.outer(mt ** 2, d1[0]) + np.outer(2.0 * mt * t, d1[1]) + np.outer(t ** 2, d1[2])
        accel = np.outer(mt, d2[0]) + np.outer(t, d2[1])

        grad = np.sum(offset * velocity, axis=1)
        curvature = np.sum(velocity * velocity, axis=1) + np.sum(offset * accel, axis=1)
        ok = np.abs(curvature) > 1e-12
        t = np.where(ok, t - grad / np.where(ok, curvature, 1.0), t)
        t = np.clip(t, 0.0, 1.0)

        best = np.minimum(best, np.linalg.norm(points - _bernstein(t) @ controls, axis=1))
    return best


def fit_cubic(points: np.ndarray) -> Tuple[CubicSegment, np.ndarray]:
    """Least-squares cubic through (N, 2) points with fixed endpoints.

    Parameters
    ----------
    points : np.ndarray
        Samples, shape (N, 2), N ≥ 2, no consecutive duplicates

    Returns
    -------
    segment : CubicSegment
        Fitted curve, p1 = points[0], p4 = points[-1]
    errors : np.ndarray
        Distance of each sample to the nearest point of the curve, shape (N,)

    Notes
    -----
    With fewer than 4 samples the inner controls are placed at 1/3 and 2/3
    of the chord (a straight cubic); the system would be underdetermined.
    """
    p0, p3 = points[0], points[-1]
    t = geometry.parametrize_by_arclength(torch.from_numpy(points)).numpy()
    basis = _bernstein(t)

    if len(points) < 4:
        p1 = p0 + (p3 - p0) / 3.0
        p2 = p0 + 2.0 * (p3 - p0) / 3.0
    else:
        rhs = points - np.outer(basis[:, 0], p0) - np.outer(basis[:, 3], p3)
        inner, *_ = np.linalg.lstsq(basis[:, 1:3], rhs, rcond=None)
        p1, p2 = inner[0], inner[1]

    controls = np.stack([p0, p1, p2, p3], axis=0)
    errors = _nearest_distances(points, controls, t)
    segment = CubicSegment(*(tuple(map(float, c)) for c in controls))
    return segment, errors


def bezier_segments(
    points: Sequence[Tuple[float, float]],
    error_threshold: float = DEFAULT_ERROR_THRESHOLD
) -> Tuple[CubicSegment, ...]:
    """Break-and-fit cubic Bézier approximation of a point sequence.

    Parameters
    ----------
    points : Sequence[Tuple[float, float]]
        Ordered samples (e.g. a traced StrokePath)
    error_threshold : float
        Maximum allowed sample-to-curve distance, default 7.0

    Returns
    -------
    Tuple[CubicSegment, ...]
        Contiguous cubics from the first to the last point

    Notes
    -----
    Ranges are processed with an explicit stack (left piece first), so long
    paths do not hit the recursion limit.
    """
    pts = dedupe_consecutive(points)
    if len(pts) < 2:
        return ()

    segments: List[CubicSegment] = []
    stack = [(0, len(pts) - 1)]
    while stack:
        lo, hi = stack.pop()
        segment, errors = fit_cubic(pts[lo:hi + 1])
        n = hi - lo + 1
        if n <= 2 or errors.max() <= error_threshold:
            segments.append(segment)
            continue

        split = int(np.argmax(errors))
        if split <= 0 or split >= n - 1:
            split = n // 2
        stack.append((lo + split, hi))
        stack.append((lo, lo + split))

    return tuple(segments)


def fit_path(
    points: Sequence[Tuple[float, float]],
    mode: str = "polyline",
    error_threshold: float = DEFAULT_ERROR_THRESHOLD
) -> Tuple[Segment, ...]:
    """Fit a traced path in the given mode ('polyline' or 'bezier')."""
    if mode == "polyline":
        return polyline_segments(points)
    if mode == "bezier":
        return bezier_segments(points, error_threshold)
    raise ValueError(f"mode must be one of {CURVE_FIT_MODES}, got '{mode}'")


class CurveFitter:
    """Configured fitter turning StrokePaths into VectorPaths.

    Parameters
    ----------
    mode : str
        'polyline' (default) or 'bezier'
    error_threshold : float
        Split threshold for bezier mode, default 7.0
    """

    def __init__(self, mode: str = "polyline", error_threshold: float = DEFAULT_ERROR_THRESHOLD):
        if mode not in CURVE_FIT_MODES:
            raise ValueError(f"mode must be one of {CURVE_FIT_MODES}, got '{mode}'")
        if error_threshold <= 0:
            raise ValueError(f"error_threshold must be positive, got {error_threshold}")
        self.mode = mode
        self.error_threshold = error_threshold

    @classmethod
    def from_config(cls, cfg: CurveFitConfig) -> "CurveFitter":
        return cls(mode=cfg.mode, error_threshold=cfg.error_threshold)

    def fit(self, points: Sequence[Tuple[float, float]], color: Color = DEFAULT_COLOR) -> VectorPath:
        segments = fit_path(points, self.mode, self.error_threshold)
        if not segments:
            logger.debug(f"Degenerate path of {len(points)} points → empty VectorPath")
        return VectorPath(segments=segments, color=color)

    def __repr__(self) -> str:
        return f"CurveFitter(mode={self.mode!r}, error_threshold={self.error_threshold})"
