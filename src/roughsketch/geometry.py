from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

import numpy as np

from .transform import AffineTransform
from .types import Point


@dataclass(frozen=True)
class Line:
    start: Point
    end: Point

    @property
    def length(self) -> float:
        return math.hypot(self.end[0] - self.start[0], self.end[1] - self.start[1])

    @property
    def direction(self) -> Tuple[float, float]:
        length = self.length
        if length == 0:
            return 0.0, 0.0
        return (self.end[0] - self.start[0]) / length, (self.end[1] - self.start[1]) / length

    @property
    def midpoint(self) -> Point:
        return (self.start[0] + self.end[0]) / 2.0, (self.start[1] + self.end[1]) / 2.0

    def point_at(self, distance: float) -> Point:
        """Point *distance* units from ``start`` towards ``end``."""

        dx, dy = self.direction
        return self.start[0] + dx * distance, self.start[1] + dy * distance

    def reversed(self) -> "Line":
        return Line(self.end, self.start)

    def rotated(self, center: Point, degrees: float) -> "Line":
        start, end = rotate_points([self.start, self.end], center, degrees)
        return Line(start, end)


def rotate_points(points: Sequence[Point], center: Point, degrees: float) -> List[Point]:
    if degrees == 0:
        return [(float(x), float(y)) for x, y in points]
    return AffineTransform().rotate(degrees, center[0], center[1]).apply_to_points(points)


def rotate_lines(lines: Iterable[Line], center: Point, degrees: float) -> List[Line]:
    return [line.rotated(center, degrees) for line in lines]


def polygon_area(points: Sequence[Point]) -> float:
    """Signed shoelace area. Positive for counter-clockwise input in a y-up frame."""

    if len(points) < 3:
        return 0.0
    pts = np.asarray(points, dtype=float)
    x = pts[:, 0]
    y = pts[:, 1]
    return float(0.5 * (np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))))


def polygon_centroid(points: Sequence[Point]) -> Point:
    """Area centroid, or the vertex mean when the polygon has no area."""

    if not points:
        return 0.0, 0.0
    pts = np.asarray(points, dtype=float)
    area = polygon_area(points)
    if abs(area) < 1e-12:
        mean = pts.mean(axis=0)
        return float(mean[0]), float(mean[1])
    x = pts[:, 0]
    y = pts[:, 1]
    x1 = np.roll(x, -1)
    y1 = np.roll(y, -1)
    cross = x * y1 - x1 * y
    cx = float(np.sum((x + x1) * cross) / (6.0 * area))
    cy = float(np.sum((y + y1) * cross) / (6.0 * area))
    return cx, cy


def distinct_points(points: Iterable[Point]) -> List[Point]:
    """Drop repeated vertices, keeping first occurrences in order."""

    seen = set()
    out: List[Point] = []
    for x, y in points:
        key = (float(x), float(y))
        if key in seen:
            continue
        seen.add(key)
        out.append(key)
    return out


__all__ = [
    "Line",
    "rotate_points",
    "rotate_lines",
    "polygon_area",
    "polygon_centroid",
    "distinct_points",
]
