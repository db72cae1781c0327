"""Geometric operations for vector ink paths.

Provides:
    - Cubic Bézier evaluation and adaptive flattening
    - De Casteljau splitting at a parameter and over a parameter range
    - Polyline operations: bbox, chord-length parametrization
    - 2D affine transforms (3x3 homogeneous matrices)

Used by:
    - vectorization.paths: flattening for intersection/containment tests,
      segment splitting, placement transforms
    - vectorization.export: preview rasterization

All coordinates are in pixels until ImageConversion places paths on the
canvas; nothing here depends on the unit.

Adaptive flattening uses recursive subdivision with a max_err_px tolerance
(default 0.25 px).
"""

from typing import Tuple

import torch

Cubic = Tuple[torch.Tensor, torch.Tensor, torch.Tensor, torch.Tensor]


# ============================================================================
# BÉZIER CURVES
# ============================================================================

def bezier_cubic_eval(
    p1: torch.Tensor,
    p2: torch.Tensor,
    p3: torch.Tensor,
    p4: torch.Tensor,
    t: torch.Tensor
) -> torch.Tensor:
    """Evaluate cubic Bézier curve at parameter t.

    Parameters
    ----------
    p1, p2, p3, p4 : torch.Tensor
        Control points, shape (2,)
    t : torch.Tensor
        Parameter values in [0, 1], scalar or shape (N,)

    Returns
    -------
    torch.Tensor
        Points on curve: shape (2,) for scalar t, (N, 2) otherwise

    Notes
    -----
    B(t) = (1-t)³·p1 + 3(1-t)²t·p2 + 3(1-t)t²·p3 + t³·p4
    """
    scalar = t.ndim == 0
    t = t.reshape(-1, 1).to(p1.dtype)
    one_minus_t = 1.0 - t

    b0 = one_minus_t ** 3
    b1 = 3.0 * (one_minus_t ** 2) * t
    b2 = 3.0 * one_minus_t * (t ** 2)
    b3 = t ** 3

    result = b0 * p1 + b1 * p2 + b2 * p3 + b3 * p4
    return result[0] if scalar else result


def bezier_cubic_polyline(
    p1: torch.Tensor,
    p2: torch.Tensor,
    p3: torch.Tensor,
    p4: torch.Tensor,
    max_err_px: float = 0.25,
    max_depth: int = 12
) -> torch.Tensor:
    """Flatten cubic Bézier to polyline via adaptive subdivision.

    Parameters
    ----------
    p1, p2, p3, p4 : torch.Tensor
        Control points, shape (2,)
    max_err_px : float
        Maximum allowed deviation, default 0.25
    max_depth : int
        Maximum recursion depth, default 12

    Returns
    -------
    torch.Tensor
        Polyline vertices, shape (N, 2), N ≥ 2, first = p1, last = p4

    Notes
    -----
    Flatness criterion: distance from the inner control points to the chord.
    """
    def subdivide(q1, q2, q3, q4, depth):
        if depth >= max_depth:
            return torch.stack([q1, q4], dim=0)

        chord = q4 - q1
        chord_len = torch.norm(chord)
        if chord_len.item() < 1e-9:
            # Closed or degenerate chord: fall back to distance from q1
            d2 = torch.norm(q2 - q1)
            d3 = torch.norm(q3 - q1)
        else:
            v2 = q2 - q1
            v3 = q3 - q1
            d2 = torch.abs(v2[0] * chord[1] - v2[1] * chord[0]) / chord_len
            d3 = torch.abs(v3[0] * chord[1] - v3[1] * chord[0]) / chord_len

        if max(d2.item(), d3.item()) <= max_err_px:
            return torch.stack([q1, q4], dim=0)

        left, right = _de_casteljau(q1, q2, q3, q4, 0.5)
        left_pts = subdivide(*left, depth + 1)
        right_pts = subdivide(*right, depth + 1)

        # Shared midpoint appears once
        return torch.cat([left_pts[:-1], right_pts], dim=0)

    return subdivide(p1, p2, p3, p4, depth=0)


def _de_casteljau(
    p1: torch.Tensor,
    p2: torch.Tensor,
    p3: torch.Tensor,
    p4: torch.Tensor,
    t: float
) -> Tuple[Cubic, Cubic]:
    q12 = p1 + (p2 - p1) * t
    q23 = p2 + (p3 - p2) * t
    q34 = p3 + (p4 - p3) * t
    q123 = q12 + (q23 - q12) * t
    q234 = q23 + (q34 - q23) * t
    mid = q123 + (q234 - q123) * t
    return (p1, q12, q123, mid), (mid, q234, q34, p4)


def bezier_split_at(
    p1: torch.Tensor,
    p2: torch.Tensor,
    p3: torch.Tensor,
    p4: torch.Tensor,
    t: float
) -> Tuple[Cubic, Cubic]:
    """Split a cubic at parameter t into (left, right) control-point tuples.

    The left curve covers [0, t] and the right curve [t, 1]; both are exact
    (De Casteljau), so left(1) == right(0) == B(t).
    """
    return _de_casteljau(p1, p2, p3, p4, t)


def bezier_split_range(
    p1: torch.Tensor,
    p2: torch.Tensor,
    p3: torch.Tensor,
    p4: torch.Tensor,
    t1: float,
    t2: float
) -> Cubic:
    """Extract the portion of a cubic between parameters t1 and t2.

    Parameters
    ----------
    p1, p2, p3, p4 : torch.Tensor
        Control points, shape (2,)
    t1, t2 : float
        Range bounds in [0, 1]. If t1 > t2 the sub-curve is returned
        reversed (it runs from B(t1) to B(t2)).

    Returns
    -------
    Cubic
        Control points of the sub-curve

    Notes
    -----
    The reversal branch is taken only on an explicit ``t1 > t2``. A NaN
    bound fails that comparison, so it flows through as NaN control points
    and the call always terminates.
    """
    if t1 > t2:
        return tuple(reversed(bezier_split_range(p1, p2, p3, p4, t2, t1)))

    if t1 == 0.0:
        return _de_casteljau(p1, p2, p3, p4, t2)[0]

    right = _de_casteljau(p1, p2, p3, p4, t1)[1]
    if t2 == 1.0:
        return right

    # Re-map t2 into the parameter space of the right-hand piece
    t2_local = (t2 - t1) / (1.0 - t1)
    return _de_casteljau(*right, t2_local)[0]


def bezier_control_bbox(
    p1: torch.Tensor,
    p2: torch.Tensor,
    p3: torch.Tensor,
    p4: torch.Tensor
) -> Tuple[float, float, float, float]:
    """Conservative bounding box (xmin, ymin, xmax, ymax) of a cubic.

    The control polygon's box always contains the curve.
    """
    return polyline_bbox(torch.stack([p1, p2, p3, p4], dim=0))


# ============================================================================
# POLYLINES
# ============================================================================

def polyline_bbox(points: torch.Tensor) -> Tuple[float, float, float, float]:
    """Compute axis-aligned bounding box of polyline.

    Parameters
    ----------
    points : torch.Tensor
        Polyline vertices, shape (N, 2)

    Returns
    -------
    Tuple[float, float, float, float]
        (xmin, ymin, xmax, ymax); (0, 0, 0, 0) if no points
    """
    if points.shape[0] == 0:
        return (0.0, 0.0, 0.0, 0.0)

    mins = points.min(dim=0).values
    maxs = points.max(dim=0).values
    return (mins[0].item(), mins[1].item(), maxs[0].item(), maxs[1].item())


def bboxes_overlap(
    a: Tuple[float, float, float, float],
    b: Tuple[float, float, float, float],
    tol: float = 0.0
) -> bool:
    """True if two (xmin, ymin, xmax, ymax) boxes touch or overlap."""
    return not (
        a[2] + tol < b[0] or b[2] + tol < a[0]
        or a[3] + tol < b[1] or b[3] + tol < a[1]
    )


def parametrize_by_arclength(points: torch.Tensor) -> torch.Tensor:
    """Compute chord-length parametrization for polyline.

    Parameters
    ----------
    points : torch.Tensor
        Polyline vertices, shape (N, 2)

    Returns
    -------
    torch.Tensor
        Parameters, shape (N,), s[0] = 0.0, s[-1] = 1.0

    Notes
    -----
    Used as the initial parameter guess when fitting a Bézier to samples.
    All-coincident input falls back to uniform spacing.
    """
    if points.shape[0] < 2:
        return torch.zeros(points.shape[0], device=points.device, dtype=points.dtype)

    segment_lengths = torch.norm(points[1:] - points[:-1], dim=1)
    cumulative = torch.cat([
        torch.zeros(1, device=points.device, dtype=points.dtype),
        torch.cumsum(segment_lengths, dim=0)
    ])

    total_length = cumulative[-1]
    if total_length < 1e-8:
        return torch.linspace(0.0, 1.0, points.shape[0], device=points.device, dtype=points.dtype)

    return cumulative / total_length


# ============================================================================
# AFFINE TRANSFORMS
# ============================================================================

def affine_translate(dx: float, dy: float, dtype: torch.dtype = torch.float64) -> torch.Tensor:
    """Homogeneous 3x3 translation matrix."""
    m = torch.eye(3, dtype=dtype)
    m[0, 2] = dx
    m[1, 2] = dy
    return m


def affine_scale(sx: float, sy: float, dtype: torch.dtype = torch.float64) -> torch.Tensor:
    """Homogeneous 3x3 scale matrix (about the origin)."""
    m = torch.eye(3, dtype=dtype)
    m[0, 0] = sx
    m[1, 1] = sy
    return m


def apply_affine(points: torch.Tensor, matrix: torch.Tensor) -> torch.Tensor:
    """Apply a 3x3 affine matrix to points of shape (N, 2) (or (2,))."""
    single = points.ndim == 1
    pts = points.reshape(-1, 2).to(matrix.dtype)
    out = pts @ matrix[:2, :2].T + matrix[:2, 2]
    return out[0] if single else out
