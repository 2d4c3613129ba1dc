"""Rough stroke primitives.

Every public function here returns op sets for one shape outline, one
``OpSet`` per pass: the first pass at full jitter, the second (unless
``disable_multi_stroke`` is set) as a lighter overlay. All randomness comes
from the caller's :class:`~roughsketch.rng.RandomSource`, so the call order
below is part of the reproducibility contract.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple, Union

from .config import Options
from .curves import quadratic_to_cubic
from .path_data import ClosePath, CurveTo, LineTo, MoveTo, Path, normalize
from .rng import RandomSource
from .types import Op, OpSet, OpSetType, Point


log = logging.getLogger(__name__)


TWO_PI = 2.0 * math.pi


def _offset(low: float, high: float, o: Options, rng: RandomSource, gain: float = 1.0) -> float:
    return rng.offset(low, high, o.roughness * gain)


def _offset_opt(x: float, o: Options, rng: RandomSource, gain: float = 1.0) -> float:
    return _offset(-x, x, o, rng, gain)


def _roughness_gain(length: float) -> float:
    if length < 200.0:
        return 1.0
    if length > 500.0:
        return 0.4
    return -0.0016668 * length + 1.233334


def _pass_count(o: Options) -> int:
    return 1 if o.disable_multi_stroke else 2


def _stroke_sets(passes: Sequence[List[Op]]) -> List[OpSet]:
    return [OpSet(OpSetType.PATH, list(ops)) for ops in passes]


def rough_line(
    x1: float,
    y1: float,
    x2: float,
    y2: float,
    o: Options,
    rng: RandomSource,
    *,
    move: bool = True,
    overlay: bool = False,
) -> List[Op]:
    """One hand-drawn pass over a straight segment, as ``Move`` + ``BCurveTo``."""

    length_sq = (x1 - x2) ** 2 + (y1 - y2) ** 2
    length = math.sqrt(length_sq)
    gain = _roughness_gain(length)

    offset = o.max_randomness_offset
    if offset * offset * 100.0 > length_sq:
        offset = length / 10.0
    if overlay:
        offset /= 2.0

    diverge = 0.2 + rng.next_f64() * 0.2
    mid_x = o.bowing * o.max_randomness_offset * (y2 - y1) / 200.0
    mid_y = o.bowing * o.max_randomness_offset * (x1 - x2) / 200.0
    mid_x = _offset_opt(mid_x, o, rng, gain)
    mid_y = _offset_opt(mid_y, o, rng, gain)

    def jitter() -> float:
        return _offset_opt(offset, o, rng, gain)

    def vertex_jitter() -> float:
        return 0.0 if o.preserve_vertices else jitter()

    ops: List[Op] = []
    if move:
        ops.append(Op.move(x1 + vertex_jitter(), y1 + vertex_jitter()))
    ops.append(
        Op.bcurve_to(
            mid_x + x1 + (x2 - x1) * diverge + jitter(),
            mid_y + y1 + (y2 - y1) * diverge + jitter(),
            mid_x + x1 + 2.0 * (x2 - x1) * diverge + jitter(),
            mid_y + y1 + 2.0 * (y2 - y1) * diverge + jitter(),
            x2 + vertex_jitter(),
            y2 + vertex_jitter(),
        )
    )
    return ops


def double_line(
    x1: float,
    y1: float,
    x2: float,
    y2: float,
    o: Options,
    rng: RandomSource,
    filling: bool = False,
) -> List[Op]:
    """Both passes of a rough line in one op list, as fill patterns use it."""

    single = o.disable_multi_stroke_fill if filling else o.disable_multi_stroke
    ops = rough_line(x1, y1, x2, y2, o, rng)
    if not single:
        ops.extend(rough_line(x1, y1, x2, y2, o, rng, overlay=True))
    return ops


def line(x1: float, y1: float, x2: float, y2: float, o: Options, rng: RandomSource) -> List[OpSet]:
    return _stroke_sets(
        [rough_line(x1, y1, x2, y2, o, rng, overlay=i > 0) for i in range(_pass_count(o))]
    )


def linear_path(
    points: Sequence[Point], close: bool, o: Options, rng: RandomSource
) -> List[OpSet]:
    pts = list(points)
    if len(pts) < 2:
        return []
    edges = list(zip(pts[:-1], pts[1:]))
    if close and len(pts) > 2:
        edges.append((pts[-1], pts[0]))

    passes: List[List[Op]] = []
    for i in range(_pass_count(o)):
        ops: List[Op] = []
        for (ax, ay), (bx, by) in edges:
            ops.extend(rough_line(ax, ay, bx, by, o, rng, overlay=i > 0))
        passes.append(ops)
    return _stroke_sets(passes)


def polygon(points: Sequence[Point], o: Options, rng: RandomSource) -> List[OpSet]:
    return linear_path(points, True, o, rng)


def rectangle_points(x: float, y: float, width: float, height: float) -> List[Point]:
    return [(x, y), (x + width, y), (x + width, y + height), (x, y + height)]


def rectangle(
    x: float, y: float, width: float, height: float, o: Options, rng: RandomSource
) -> List[OpSet]:
    return polygon(rectangle_points(x, y, width, height), o, rng)


def _curve(points: Sequence[Point], o: Options, rng: RandomSource) -> List[Op]:
    """Catmull-Rom chain through *points*, skipping the leading guide point."""

    n = len(points)
    ops: List[Op] = []
    if n > 3:
        s = 1.0 - o.curve_tightness
        ops.append(Op.move(*points[1]))
        for i in range(1, n - 2):
            prev, cur, nxt, after = points[i - 1], points[i], points[i + 1], points[i + 2]
            ops.append(
                Op.bcurve_to(
                    cur[0] + s * (nxt[0] - prev[0]) / 6.0,
                    cur[1] + s * (nxt[1] - prev[1]) / 6.0,
                    nxt[0] + s * (cur[0] - after[0]) / 6.0,
                    nxt[1] + s * (cur[1] - after[1]) / 6.0,
                    nxt[0],
                    nxt[1],
                )
            )
    elif n == 3:
        ops.append(Op.move(*points[1]))
        ops.append(Op.bcurve_to(*points[1], *points[2], *points[2]))
    elif n == 2:
        ops.extend(rough_line(*points[0], *points[1], o, rng))
    return ops


def _curve_with_offset(
    points: Sequence[Point], offset: float, o: Options, rng: RandomSource
) -> List[Op]:
    def jittered(p: Point) -> Point:
        return p[0] + _offset_opt(offset, o, rng), p[1] + _offset_opt(offset, o, rng)

    ps: List[Point] = [jittered(points[0]), jittered(points[0])]
    for i in range(1, len(points)):
        ps.append(jittered(points[i]))
        if i == len(points) - 1:
            ps.append(jittered(points[i]))
    return _curve(ps, o, rng)


def curve(points: Sequence[Point], o: Options, rng: RandomSource) -> List[OpSet]:
    pts = [(float(x), float(y)) for x, y in points]
    if len(pts) < 2:
        return []
    passes = [_curve_with_offset(pts, 1.0 * (1.0 + o.roughness * 0.2), o, rng)]
    if not o.disable_multi_stroke:
        passes.append(
            _curve_with_offset(pts, 1.5 * (1.0 + o.roughness * 0.22), o, rng.spawn())
        )
    return _stroke_sets(passes)


@dataclass(frozen=True)
class EllipseParams:
    increment: float
    rx: float
    ry: float


@dataclass
class EllipseResult:
    estimated_points: List[Point]
    sets: List[OpSet] = field(default_factory=list)


def generate_ellipse_params(
    width: float, height: float, o: Options, rng: RandomSource
) -> EllipseParams:
    psq = math.sqrt(TWO_PI * math.sqrt(((width / 2.0) ** 2 + (height / 2.0) ** 2) / 2.0))
    step_count = math.ceil(
        max(o.curve_step_count, o.curve_step_count / math.sqrt(200.0) * psq)
    )
    increment = TWO_PI / step_count
    rx = abs(width / 2.0)
    ry = abs(height / 2.0)
    fit_randomness = 1.0 - o.curve_fitting
    rx += _offset_opt(rx * fit_randomness, o, rng)
    ry += _offset_opt(ry * fit_randomness, o, rng)
    return EllipseParams(increment, rx, ry)


def compute_ellipse_points(
    increment: float,
    cx: float,
    cy: float,
    rx: float,
    ry: float,
    offset: float,
    overlap: float,
    o: Options,
    rng: RandomSource,
) -> Tuple[List[Point], List[Point]]:
    """Return ``(all_points, core_points)`` around an ellipse.

    ``all_points`` carries the extra guide and overlap points used by the
    outline. ``core_points`` is the plain ring used as the fill polygon.
    """

    core: List[Point] = []
    all_points: List[Point] = []

    if o.roughness == 0:
        inner = increment / 4.0
        all_points.append((cx + rx * math.cos(-inner), cy + ry * math.sin(-inner)))
        steps = int(math.floor(TWO_PI / inner + 1e-9))
        for k in range(steps + 1):
            angle = k * inner
            p = (cx + rx * math.cos(angle), cy + ry * math.sin(angle))
            core.append(p)
            all_points.append(p)
        all_points.append((cx + rx, cy))
        all_points.append((cx + rx * math.cos(inner), cy + ry * math.sin(inner)))
        return all_points, core

    def jit() -> float:
        return _offset_opt(offset, o, rng)

    rad_offset = _offset_opt(0.5, o, rng) - math.pi / 2.0
    all_points.append(
        (
            jit() + cx + 0.9 * rx * math.cos(rad_offset - increment),
            jit() + cy + 0.9 * ry * math.sin(rad_offset - increment),
        )
    )
    end_angle = TWO_PI + rad_offset - 0.01
    steps = int(math.ceil((end_angle - rad_offset) / increment))
    for k in range(steps):
        angle = rad_offset + k * increment
        p = (jit() + cx + rx * math.cos(angle), jit() + cy + ry * math.sin(angle))
        core.append(p)
        all_points.append(p)

    all_points.append(
        (
            jit() + cx + rx * math.cos(rad_offset + TWO_PI + overlap * 0.5),
            jit() + cy + ry * math.sin(rad_offset + TWO_PI + overlap * 0.5),
        )
    )
    all_points.append(
        (
            jit() + cx + 0.98 * rx * math.cos(rad_offset + overlap),
            jit() + cy + 0.98 * ry * math.sin(rad_offset + overlap),
        )
    )
    all_points.append(
        (
            jit() + cx + 0.9 * rx * math.cos(rad_offset + overlap * 0.5),
            jit() + cy + 0.9 * ry * math.sin(rad_offset + overlap * 0.5),
        )
    )
    return all_points, core


def ellipse_with_params(
    x: float, y: float, o: Options, rng: RandomSource, params: EllipseParams
) -> EllipseResult:
    overlap = params.increment * _offset(0.1, _offset(0.4, 1.0, o, rng), o, rng)
    outer, core = compute_ellipse_points(
        params.increment, x, y, params.rx, params.ry, 1.0, overlap, o, rng
    )
    passes = [_curve(outer, o, rng)]
    # a second pass at zero roughness would retrace the first exactly
    if not o.disable_multi_stroke and o.roughness != 0:
        inner, _ = compute_ellipse_points(
            params.increment, x, y, params.rx, params.ry, 1.5, 0.0, o, rng
        )
        passes.append(_curve(inner, o, rng))
    return EllipseResult(core, _stroke_sets(passes))


def ellipse(
    x: float, y: float, width: float, height: float, o: Options, rng: RandomSource
) -> EllipseResult:
    params = generate_ellipse_params(width, height, o, rng)
    return ellipse_with_params(x, y, o, rng, params)


def normalize_arc_angles(start: float, stop: float) -> Tuple[float, float]:
    while start < 0:
        start += TWO_PI
        stop += TWO_PI
    if stop - start > TWO_PI:
        start, stop = 0.0, TWO_PI
    return start, stop


def _arc(
    increment: float,
    cx: float,
    cy: float,
    rx: float,
    ry: float,
    start: float,
    stop: float,
    offset: float,
    o: Options,
    rng: RandomSource,
) -> List[Op]:
    def jit() -> float:
        return _offset_opt(offset, o, rng)

    rad_offset = start + _offset_opt(0.1, o, rng)
    points: List[Point] = [
        (
            jit() + cx + 0.9 * rx * math.cos(rad_offset - increment),
            jit() + cy + 0.9 * ry * math.sin(rad_offset - increment),
        )
    ]
    if stop >= rad_offset:
        steps = int(math.floor((stop - rad_offset) / increment + 1e-9))
        for k in range(steps + 1):
            angle = rad_offset + k * increment
            points.append((jit() + cx + rx * math.cos(angle), jit() + cy + ry * math.sin(angle)))
    end = (cx + rx * math.cos(stop), cy + ry * math.sin(stop))
    points.append(end)
    points.append(end)
    return _curve(points, o, rng)


def arc(
    x: float,
    y: float,
    width: float,
    height: float,
    start: float,
    stop: float,
    closed: bool,
    o: Options,
    rng: RandomSource,
    rough_closure: bool = True,
) -> List[OpSet]:
    """Rough elliptical arc from *start* to *stop* radians, optionally closed as a pie."""

    cx, cy = x, y
    rx = abs(width / 2.0)
    ry = abs(height / 2.0)
    rx += _offset_opt(rx * 0.01, o, rng)
    ry += _offset_opt(ry * 0.01, o, rng)
    start, stop = normalize_arc_angles(start, stop)
    if stop <= start:
        log.debug("Skipping empty arc from %.4f to %.4f", start, stop)
        return []

    ellipse_inc = TWO_PI / o.curve_step_count
    arc_inc = min(ellipse_inc / 2.0, (stop - start) / 2.0)
    start_point = (cx + rx * math.cos(start), cy + ry * math.sin(start))
    end_point = (cx + rx * math.cos(stop), cy + ry * math.sin(stop))

    passes: List[List[Op]] = []
    for i in range(_pass_count(o)):
        ops = _arc(arc_inc, cx, cy, rx, ry, start, stop, 1.0 if i == 0 else 1.5, o, rng)
        if closed:
            if rough_closure:
                ops.extend(rough_line(cx, cy, *start_point, o, rng, overlay=i > 0))
                ops.extend(rough_line(cx, cy, *end_point, o, rng, overlay=i > 0))
            else:
                ops.append(Op.line_to(cx, cy))
                ops.append(Op.line_to(*start_point))
        passes.append(ops)
    return _stroke_sets(passes)


def arc_polygon(
    x: float,
    y: float,
    width: float,
    height: float,
    start: float,
    stop: float,
    o: Options,
    rng: RandomSource,
) -> List[Point]:
    """Pie-slice polygon used to fill a closed arc."""

    rx = abs(width / 2.0)
    ry = abs(height / 2.0)
    rx += _offset_opt(rx * 0.01, o, rng)
    ry += _offset_opt(ry * 0.01, o, rng)
    start, stop = normalize_arc_angles(start, stop)
    if stop <= start:
        return []
    steps = max(1, int(math.ceil(o.curve_step_count)))
    increment = (stop - start) / steps
    points = [
        (x + rx * math.cos(start + k * increment), y + ry * math.sin(start + k * increment))
        for k in range(steps + 1)
    ]
    points.append((x, y))
    return points


def _bezier_to(
    x1: float,
    y1: float,
    x2: float,
    y2: float,
    x: float,
    y: float,
    current: Point,
    o: Options,
    rng: RandomSource,
    pass_index: int,
) -> List[Op]:
    ros = (o.max_randomness_offset, o.max_randomness_offset + 0.3)
    ro = ros[pass_index]
    ops: List[Op] = []
    if pass_index == 0 or o.preserve_vertices:
        ops.append(Op.move(*current))
    else:
        ops.append(
            Op.move(current[0] + _offset_opt(ros[0], o, rng), current[1] + _offset_opt(ros[0], o, rng))
        )
    if o.preserve_vertices:
        end = (x, y)
    else:
        end = (x + _offset_opt(ro, o, rng), y + _offset_opt(ro, o, rng))
    ops.append(
        Op.bcurve_to(
            x1 + _offset_opt(ro, o, rng),
            y1 + _offset_opt(ro, o, rng),
            x2 + _offset_opt(ro, o, rng),
            y2 + _offset_opt(ro, o, rng),
            end[0],
            end[1],
        )
    )
    return ops


def bezier_cubic(
    start: Point, cp1: Point, cp2: Point, end: Point, o: Options, rng: RandomSource
) -> List[OpSet]:
    passes = [
        _bezier_to(*cp1, *cp2, *end, start, o, rng, i) for i in range(_pass_count(o))
    ]
    return _stroke_sets(passes)


def bezier_quadratic(
    start: Point, cp: Point, end: Point, o: Options, rng: RandomSource
) -> List[OpSet]:
    p0, c1, c2, p3 = quadratic_to_cubic(start, cp, end)
    return bezier_cubic(p0, c1, c2, p3, o, rng)


def svg_path(path: Union[Path, str], o: Options, rng: RandomSource) -> List[OpSet]:
    """Rough outline of an SVG path, segment by segment."""

    segments = normalize(path)
    if segments.is_empty():
        return []

    passes: List[List[Op]] = []
    for i in range(_pass_count(o)):
        overlay = i > 0
        ops: List[Op] = []
        first: Point = (0.0, 0.0)
        current: Point = (0.0, 0.0)
        for seg in segments:
            if isinstance(seg, MoveTo):
                if o.preserve_vertices:
                    ops.append(Op.move(seg.x, seg.y))
                else:
                    ro = o.max_randomness_offset
                    ops.append(
                        Op.move(seg.x + _offset_opt(ro, o, rng), seg.y + _offset_opt(ro, o, rng))
                    )
                current = first = (seg.x, seg.y)
            elif isinstance(seg, LineTo):
                ops.extend(rough_line(*current, seg.x, seg.y, o, rng, overlay=overlay))
                current = (seg.x, seg.y)
            elif isinstance(seg, CurveTo):
                ops.extend(
                    _bezier_to(seg.x1, seg.y1, seg.x2, seg.y2, seg.x, seg.y, current, o, rng, i)
                )
                current = (seg.x, seg.y)
            elif isinstance(seg, ClosePath):
                ops.extend(rough_line(*current, *first, o, rng, overlay=overlay))
                current = first
        passes.append(ops)
    return _stroke_sets(passes)


def solid_fill_polygon(
    polygons: Sequence[Sequence[Point]], o: Options, rng: RandomSource
) -> OpSet:
    """Lightly jittered boundary of every polygon, as one ``FILL_PATH`` set."""

    ops: List[Op] = []
    ro = o.max_randomness_offset
    for poly in polygons:
        if len(poly) <= 2:
            continue
        for index, (px, py) in enumerate(poly):
            if o.preserve_vertices:
                x, y = px, py
            else:
                x = px + _offset_opt(ro, o, rng)
                y = py + _offset_opt(ro, o, rng)
            ops.append(Op.move(x, y) if index == 0 else Op.line_to(x, y))
    return OpSet(OpSetType.FILL_PATH, ops, o.fill_style)


__all__ = [
    "EllipseParams",
    "EllipseResult",
    "rough_line",
    "double_line",
    "line",
    "linear_path",
    "polygon",
    "rectangle",
    "rectangle_points",
    "curve",
    "generate_ellipse_params",
    "compute_ellipse_points",
    "ellipse_with_params",
    "ellipse",
    "normalize_arc_angles",
    "arc",
    "arc_polygon",
    "bezier_cubic",
    "bezier_quadratic",
    "svg_path",
    "solid_fill_polygon",
]
