"""Pattern fills built on one shared scanline routine.

Each fill style is a small function turning the scanline segments of a
polygon set into ops. :func:`hachure_lines` does all of the geometry.
"""
from __future__ import annotations

import logging
import math
from typing import Callable, Dict, List, Sequence

from .config import MIN_HACHURE_GAP, FillStyle, Options
from .geometry import (
    Line,
    distinct_points,
    polygon_area,
    polygon_centroid,
    rotate_lines,
    rotate_points,
)
from .renderer import double_line, ellipse, rough_line, solid_fill_polygon
from .rng import RandomSource
from .types import Op, OpSet, OpSetType, Point


log = logging.getLogger(__name__)


Polygon = Sequence[Point]
PatternRenderer = Callable[[List[List[Point]], Options, RandomSource], List[Op]]


def _prepare_polygons(polygons: Sequence[Polygon]) -> List[List[Point]]:
    usable: List[List[Point]] = []
    for poly in polygons:
        pts = [(float(x), float(y)) for x, y in poly]
        if len(pts) > 1 and pts[0] == pts[-1]:
            pts = pts[:-1]
        if len(distinct_points(pts)) < 3 or abs(polygon_area(pts)) < 1e-12:
            log.debug("Skipping degenerate fill polygon with %d points", len(pts))
            continue
        usable.append(pts)
    return usable


def _joint_center(polygons: List[List[Point]]) -> Point:
    total = 0.0
    cx = cy = 0.0
    for poly in polygons:
        area = abs(polygon_area(poly))
        px, py = polygon_centroid(poly)
        cx += px * area
        cy += py * area
        total += area
    return cx / total, cy / total


def _scan(polygons: List[List[Point]], gap: float) -> List[Line]:
    edges = []
    for poly in polygons:
        for (x1, y1), (x2, y2) in zip(poly, poly[1:] + poly[:1]):
            if y1 != y2:
                edges.append((x1, y1, x2, y2))
    if not edges:
        return []

    ymin = min(min(e[1], e[3]) for e in edges)
    ymax = max(max(e[1], e[3]) for e in edges)
    count = max(0, int(math.ceil((ymax - ymin) / gap - 0.5)))

    lines: List[Line] = []
    for k in range(count):
        y = ymin + gap / 2.0 + k * gap
        if y >= ymax:
            break
        xs = []
        for x1, y1, x2, y2 in edges:
            # half-open span so shared vertices are counted once
            if min(y1, y2) <= y < max(y1, y2):
                xs.append(x1 + (y - y1) * (x2 - x1) / (y2 - y1))
        xs.sort()
        for left, right in zip(xs[0::2], xs[1::2]):
            if right > left:
                lines.append(Line((left, y), (right, y)))
    return lines


def hachure_lines(polygons: Sequence[Polygon], angle: float, gap: float) -> List[Line]:
    """Inside-segments of parallel scanlines at *angle* degrees, *gap* apart.

    Polygons are combined with the even-odd rule. Degenerate polygons are
    ignored.
    """

    usable = _prepare_polygons(polygons)
    if not usable:
        return []
    gap = max(gap, MIN_HACHURE_GAP)
    if angle == 0:
        return _scan(usable, gap)

    center = _joint_center(usable)
    rotated = [rotate_points(poly, center, -angle) for poly in usable]
    return rotate_lines(_scan(rotated, gap), center, angle)


def _extend(line: Line, o: Options, rng: RandomSource) -> Line:
    reach = 0.1 * o.roughness * min(o.effective_hachure_gap, line.length)
    start = line.point_at(rng.jitter(reach))
    end = line.point_at(line.length + rng.jitter(reach))
    return Line(start, end)


def _render_hachure(polygons: List[List[Point]], o: Options, rng: RandomSource) -> List[Op]:
    ops: List[Op] = []
    for line in hachure_lines(polygons, o.hachure_angle, o.effective_hachure_gap):
        line = _extend(line, o, rng)
        ops.extend(double_line(*line.start, *line.end, o, rng, filling=True))
    return ops


def _render_cross_hatch(polygons: List[List[Point]], o: Options, rng: RandomSource) -> List[Op]:
    ops = _render_hachure(polygons, o, rng)
    ops.extend(_render_hachure(polygons, o.replace(hachure_angle=o.hachure_angle + 90.0), rng))
    return ops


def _render_zigzag(polygons: List[List[Point]], o: Options, rng: RandomSource) -> List[Op]:
    lines = hachure_lines(polygons, o.hachure_angle, o.effective_hachure_gap)
    vertices: List[Point] = []
    for index, line in enumerate(lines):
        if index % 2:
            line = line.reversed()
        vertices.extend([line.start, line.end])
    if len(vertices) < 2:
        return []

    passes = 1 if o.disable_multi_stroke_fill else 2
    ops: List[Op] = []
    for i in range(passes):
        for j, (a, b) in enumerate(zip(vertices[:-1], vertices[1:])):
            ops.extend(rough_line(*a, *b, o, rng, move=j == 0, overlay=i > 0))
    return ops


def _render_dots(polygons: List[List[Point]], o: Options, rng: RandomSource) -> List[Op]:
    gap = o.effective_hachure_gap
    weight = o.effective_fill_weight
    ro = gap / 4.0
    ops: List[Op] = []
    for line in hachure_lines(polygons, 0.0, gap):
        count = int(math.ceil(line.length / gap)) - 1
        if count <= 0:
            continue
        lead = (line.length - (count - 1) * gap) / 2.0
        for i in range(count):
            px, py = line.point_at(lead + i * gap)
            cx = px + rng.offset(-ro, ro)
            cy = py + rng.offset(-ro, ro)
            for op_set in ellipse(cx, cy, weight, weight, o, rng).sets:
                ops.extend(op_set.ops)
    return ops


def _render_dashed(polygons: List[List[Point]], o: Options, rng: RandomSource) -> List[Op]:
    dash = o.effective_dash_offset
    space = o.effective_dash_gap
    ops: List[Op] = []
    for line in hachure_lines(polygons, o.hachure_angle, o.effective_hachure_gap):
        count = int(math.floor(line.length / (dash + space)))
        lead = (line.length + space - count * (dash + space)) / 2.0
        for i in range(count):
            begin = lead + i * (dash + space)
            start = line.point_at(begin)
            end = line.point_at(begin + dash)
            ops.extend(double_line(*start, *end, o, rng, filling=True))
    return ops


def _render_zigzag_line(polygons: List[List[Point]], o: Options, rng: RandomSource) -> List[Op]:
    zz = o.effective_zigzag_offset
    gap = o.effective_hachure_gap + zz
    dz = math.sqrt(2.0 * zz * zz)
    ops: List[Op] = []
    for line in hachure_lines(polygons, o.hachure_angle, gap):
        dx, dy = line.direction
        # tooth tip direction: line direction turned by 45 degrees
        tx = (dx - dy) / math.sqrt(2.0)
        ty = (dy + dx) / math.sqrt(2.0)
        count = int(math.floor(line.length / (2.0 * zz)))
        for i in range(count):
            start = line.point_at(i * 2.0 * zz)
            end = line.point_at((i + 1) * 2.0 * zz)
            tip = (start[0] + dz * tx, start[1] + dz * ty)
            ops.extend(double_line(*start, *tip, o, rng, filling=True))
            ops.extend(double_line(*tip, *end, o, rng, filling=True))
    return ops


_PATTERNS: Dict[FillStyle, PatternRenderer] = {
    FillStyle.HACHURE: _render_hachure,
    FillStyle.CROSS_HATCH: _render_cross_hatch,
    FillStyle.ZIGZAG: _render_zigzag,
    FillStyle.DOTS: _render_dots,
    FillStyle.DASHED: _render_dashed,
    FillStyle.ZIGZAG_LINE: _render_zigzag_line,
}


def pattern_fill_polygons(
    polygons: Sequence[Polygon], o: Options, rng: RandomSource
) -> OpSet:
    """Sketch fill for *polygons* in ``o.fill_style``, as one ``FILL_SKETCH`` set."""

    style = o.fill_style if o.fill_style in _PATTERNS else FillStyle.HACHURE
    usable = _prepare_polygons(polygons)
    ops = _PATTERNS[style](usable, o, rng) if usable else []
    return OpSet(OpSetType.FILL_SKETCH, ops, style)


def fill_polygons(polygons: Sequence[Polygon], o: Options, rng: RandomSource) -> OpSet:
    if o.fill_style is FillStyle.SOLID:
        return solid_fill_polygon(_prepare_polygons(polygons), o, rng)
    return pattern_fill_polygons(polygons, o, rng)


__all__ = ["hachure_lines", "pattern_fill_polygons", "fill_polygons"]
