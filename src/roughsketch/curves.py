"""Adaptive sampling of cubic Bezier curves and polylines."""
from __future__ import annotations

import math
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from .path_data import ClosePath, CurveTo, LineTo, MoveTo, Path, normalize
from .types import Point


MAX_SUBDIVISION_DEPTH = 12


def _as_point(p: np.ndarray) -> Point:
    return float(p[0]), float(p[1])


def _flatten_cubic(
    p0: np.ndarray, p1: np.ndarray, p2: np.ndarray, p3: np.ndarray, tol: float, depth: int = 0
) -> List[Point]:
    def flat_enough(pa: np.ndarray, pb: np.ndarray, pc: np.ndarray, pd: np.ndarray) -> bool:
        line = pd - pa
        norm = math.hypot(line[0], line[1])
        if norm == 0:
            # closed loop: measure the control points against the anchor instead
            return max(
                math.hypot(*(pb - pa)), math.hypot(*(pc - pa))
            ) <= tol
        distances = []
        for ctrl in (pb, pc):
            vec = ctrl - pa
            distances.append(abs(line[0] * vec[1] - line[1] * vec[0]) / norm)
        return max(distances) <= tol

    if depth >= MAX_SUBDIVISION_DEPTH or flat_enough(p0, p1, p2, p3):
        return [_as_point(p0), _as_point(p3)]

    p01 = (p0 + p1) / 2.0
    p12 = (p1 + p2) / 2.0
    p23 = (p2 + p3) / 2.0
    p012 = (p01 + p12) / 2.0
    p123 = (p12 + p23) / 2.0
    p0123 = (p012 + p123) / 2.0

    left = _flatten_cubic(p0, p01, p012, p0123, tol, depth + 1)
    right = _flatten_cubic(p0123, p123, p23, p3, tol, depth + 1)
    return left[:-1] + right


def flatten(
    control_points: Sequence[Point], tolerance: float, distance: Optional[float] = None
) -> List[Point]:
    """Sample a cubic Bezier chain (``3n + 1`` control points) into a polyline.

    Subdivision stops once both inner control points lie within *tolerance* of
    the chord, or after ``MAX_SUBDIVISION_DEPTH`` halvings. When *distance* is
    given the samples are passed through :func:`simplify`.
    """

    if tolerance < 0:
        raise ValueError(f"tolerance must be non-negative, got {tolerance}")
    pts = np.asarray(control_points, dtype=float).reshape(-1, 2)
    if len(pts) < 4 or (len(pts) - 1) % 3 != 0:
        raise ValueError(
            f"a cubic chain needs 3n + 1 control points, got {len(pts)}"
        )

    out: List[Point] = []
    for i in range(0, len(pts) - 1, 3):
        samples = _flatten_cubic(pts[i], pts[i + 1], pts[i + 2], pts[i + 3], tolerance)
        out.extend(samples[1:] if out else samples)

    if distance is not None and distance > 0:
        return simplify(out, distance)
    return out


def _line_distance(p: Point, a: Point, b: Point) -> float:
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    norm = math.hypot(dx, dy)
    if norm == 0:
        return math.hypot(p[0] - a[0], p[1] - a[1])
    return abs(dx * (p[1] - a[1]) - dy * (p[0] - a[0])) / norm


def simplify(points: Sequence[Point], tolerance: float) -> List[Point]:
    """Ramer-Douglas-Peucker reduction. The endpoints always survive."""

    pts = [(float(x), float(y)) for x, y in points]
    if len(pts) <= 2:
        return pts

    keep = [False] * len(pts)
    keep[0] = keep[-1] = True
    stack: List[Tuple[int, int]] = [(0, len(pts) - 1)]
    while stack:
        start, end = stack.pop()
        max_dist = -1.0
        max_idx = -1
        for i in range(start + 1, end):
            dist = _line_distance(pts[i], pts[start], pts[end])
            if dist > max_dist:
                max_dist = dist
                max_idx = i
        if max_idx >= 0 and max_dist > tolerance:
            keep[max_idx] = True
            stack.append((start, max_idx))
            stack.append((max_idx, end))

    return [p for p, k in zip(pts, keep) if k]


def curve_to_bezier(points: Sequence[Point], tightness: float = 0.0) -> Optional[List[Point]]:
    """Control points of a Catmull-Rom style cubic chain through *points*."""

    pts = [(float(x), float(y)) for x, y in points]
    if len(pts) < 3:
        return None
    if len(pts) == 3:
        return pts + [pts[-1]]

    padded = [pts[0]] + pts + [pts[-1]]
    s = 1.0 - tightness
    out: List[Point] = [padded[1]]
    for i in range(1, len(padded) - 2):
        prev, cur, nxt, after = padded[i - 1], padded[i], padded[i + 1], padded[i + 2]
        b1 = (cur[0] + s * (nxt[0] - prev[0]) / 6.0, cur[1] + s * (nxt[1] - prev[1]) / 6.0)
        b2 = (nxt[0] + s * (cur[0] - after[0]) / 6.0, nxt[1] + s * (cur[1] - after[1]) / 6.0)
        out.extend([b1, b2, nxt])
    return out


def quadratic_to_cubic(start: Point, cp: Point, end: Point) -> List[Point]:
    return [
        (float(start[0]), float(start[1])),
        (start[0] + 2.0 * (cp[0] - start[0]) / 3.0, start[1] + 2.0 * (cp[1] - start[1]) / 3.0),
        (end[0] + 2.0 * (cp[0] - end[0]) / 3.0, end[1] + 2.0 * (cp[1] - end[1]) / 3.0),
        (float(end[0]), float(end[1])),
    ]


def _resample(polyline: List[Point], distance: float) -> List[Point]:
    arr = np.asarray(polyline, dtype=float)
    seg_len = np.hypot(*np.diff(arr, axis=0).T)
    cumulative = np.concatenate([[0.0], np.cumsum(seg_len)])
    total = float(cumulative[-1])
    if total == 0:
        return [polyline[0], polyline[-1]]
    count = max(1, int(round(total / distance)))
    targets = np.linspace(0.0, total, count + 1)
    xs = np.interp(targets, cumulative, arr[:, 0])
    ys = np.interp(targets, cumulative, arr[:, 1])
    out = [(float(x), float(y)) for x, y in zip(xs, ys)]
    out[0] = polyline[0]
    out[-1] = polyline[-1]
    return out


def curve_through(
    points: Sequence[Point], distance: float, tolerance: Optional[float] = None
) -> List[Point]:
    """Resample a smooth curve through *points* roughly every *distance* units."""

    if distance <= 0:
        raise ValueError(f"distance must be positive, got {distance}")
    anchors = [(float(x), float(y)) for x, y in points]
    if tolerance is not None and tolerance > 0:
        anchors = simplify(anchors, tolerance)
    if len(anchors) < 2:
        return anchors
    if len(anchors) == 2:
        return _resample(anchors, distance)

    controls = curve_to_bezier(anchors)
    assert controls is not None
    dense = flatten(controls, min(0.1, distance / 10.0))
    return _resample(dense, distance)


def points_on_path(
    path: Union[Path, str], tolerance: float = 1.0, distance: Optional[float] = None
) -> List[List[Point]]:
    """Flatten *path* into one polyline per subpath. ``ClosePath`` repeats the start."""

    sets: List[List[Point]] = []
    current: List[Point] = []
    start: Point = (0.0, 0.0)

    for seg in normalize(path):
        if isinstance(seg, MoveTo):
            if len(current) > 0:
                sets.append(current)
            start = (seg.x, seg.y)
            current = [start]
        elif isinstance(seg, LineTo):
            current.append((seg.x, seg.y))
        elif isinstance(seg, CurveTo):
            anchor = current[-1] if current else start
            samples = flatten([anchor, (seg.x1, seg.y1), (seg.x2, seg.y2), (seg.x, seg.y)], tolerance)
            if not current:
                current.append(anchor)
            current.extend(samples[1:])
        elif isinstance(seg, ClosePath):
            current.append(start)
    if current:
        sets.append(current)

    if distance is not None and distance > 0:
        sets = [simplify(s, distance) for s in sets]
    return [s for s in sets if s]


__all__ = [
    "MAX_SUBDIVISION_DEPTH",
    "flatten",
    "simplify",
    "curve_to_bezier",
    "quadratic_to_cubic",
    "curve_through",
    "points_on_path",
]
