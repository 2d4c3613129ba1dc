from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Union

from . import renderer
from .config import FillStyle, Options
from .curves import curve_to_bezier, flatten, points_on_path, quadratic_to_cubic
from .errors import GeometryError
from .fillers import fill_polygons, pattern_fill_polygons
from .geometry import distinct_points
from .metrics import Timer, count
from .path_data import Path, parse
from .rng import RandomSource
from .transform import AffineTransform
from .types import Drawable, OpSet, OpSetType, OpType, PathInfo, Point


log = logging.getLogger(__name__)


def _curve_tolerance(o: Options) -> float:
    return max(0.05, 4.5 / o.curve_step_count)


def _fill_distance(o: Options) -> float:
    return 1.0 + o.roughness / 2.0


def _merge_passes(groups: Sequence[List[OpSet]]) -> List[OpSet]:
    """Merge per-pass stroke sets of several outlines, pass by pass."""

    merged: List[OpSet] = []
    for sets in groups:
        for index, op_set in enumerate(sets):
            if index < len(merged):
                merged[index].ops.extend(op_set.ops)
            else:
                merged.append(OpSet(op_set.op_set_type, list(op_set.ops)))
    return merged


def _format_number(value: float, fixed_decimals: Optional[int]) -> str:
    if fixed_decimals is not None:
        value = round(value, fixed_decimals)
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


class Generator:
    """Builds rough :class:`Drawable` objects for primitive shapes.

    Every method accepts an optional ``options`` that replaces the generator's
    defaults for that call. Each call seeds its own :class:`RandomSource`, so
    identical inputs with an explicit seed give identical ops.
    """

    def __init__(self, options: Optional[Options] = None) -> None:
        self.default_options = options if options is not None else Options()

    def _options(self, options: Optional[Options]) -> Options:
        return options if options is not None else self.default_options

    def _drawable(
        self,
        shape: str,
        o: Options,
        strokes: Sequence[OpSet],
        fill: Optional[OpSet] = None,
    ) -> Drawable:
        sets: List[OpSet] = []
        if fill is not None:
            sets.append(fill)
        if o.stroke is not None:
            sets.extend(strokes)
        drawable = Drawable(shape, o, sets)
        ops = drawable.op_count()
        count(f"ops.{shape}", ops)
        log.debug("Generated %s with %d op sets and %d ops", shape, len(sets), ops)
        return drawable

    def line(
        self, x1: float, y1: float, x2: float, y2: float, options: Optional[Options] = None
    ) -> Drawable:
        o = self._options(options)
        with Timer("generate.line", logger=log):
            rng = RandomSource(o.seed)
            strokes = renderer.line(x1, y1, x2, y2, o, rng) if o.stroke is not None else []
            return self._drawable("line", o, strokes)

    def rectangle(
        self, x: float, y: float, width: float, height: float, options: Optional[Options] = None
    ) -> Drawable:
        o = self._options(options)
        with Timer("generate.rectangle", logger=log):
            rng = RandomSource(o.seed)
            points = renderer.rectangle_points(x, y, width, height)
            strokes = renderer.polygon(points, o, rng) if o.stroke is not None else []
            fill = fill_polygons([points], o, rng) if o.fill is not None else None
            return self._drawable("rectangle", o, strokes, fill)

    def polygon(self, points: Sequence[Point], options: Optional[Options] = None) -> Drawable:
        o = self._options(options)
        pts = [(float(x), float(y)) for x, y in points]
        if o.fill is not None and len(distinct_points(pts)) < 3:
            raise GeometryError(
                f"a filled polygon needs at least 3 distinct vertices, got {len(distinct_points(pts))}"
            )
        with Timer("generate.polygon", logger=log):
            rng = RandomSource(o.seed)
            strokes = renderer.polygon(pts, o, rng) if o.stroke is not None else []
            fill = fill_polygons([pts], o, rng) if o.fill is not None else None
            return self._drawable("polygon", o, strokes, fill)

    def linear_path(
        self, points: Sequence[Point], close: bool = False, options: Optional[Options] = None
    ) -> Drawable:
        o = self._options(options)
        with Timer("generate.linear_path", logger=log):
            rng = RandomSource(o.seed)
            pts = [(float(x), float(y)) for x, y in points]
            strokes = renderer.linear_path(pts, close, o, rng) if o.stroke is not None else []
            return self._drawable("linear_path", o, strokes)

    def _ellipse(
        self, shape: str, x: float, y: float, width: float, height: float, o: Options
    ) -> Drawable:
        with Timer(f"generate.{shape}", logger=log):
            rng = RandomSource(o.seed)
            params = renderer.generate_ellipse_params(width, height, o, rng)
            result = renderer.ellipse_with_params(x, y, o, rng, params)
            fill: Optional[OpSet] = None
            if o.fill is not None:
                if o.fill_style is FillStyle.SOLID:
                    shape_sets = renderer.ellipse_with_params(x, y, o, rng, params).sets
                    fill = OpSet(OpSetType.FILL_PATH, list(shape_sets[0].ops), FillStyle.SOLID)
                else:
                    fill = pattern_fill_polygons([result.estimated_points], o, rng)
            return self._drawable(shape, o, result.sets, fill)

    def ellipse(
        self, x: float, y: float, width: float, height: float, options: Optional[Options] = None
    ) -> Drawable:
        """Sketch an ellipse centred on (*x*, *y*).

        With ``roughness == 0`` only one stroke pass is drawn even when
        multi-stroke is enabled, since a second pass would retrace the first.
        """

        return self._ellipse("ellipse", x, y, width, height, self._options(options))

    def circle(
        self, x: float, y: float, diameter: float, options: Optional[Options] = None
    ) -> Drawable:
        """Sketch a circle; shares the single-pass rule of :meth:`ellipse`."""

        return self._ellipse("circle", x, y, diameter, diameter, self._options(options))

    def arc(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        start: float,
        stop: float,
        closed: bool = False,
        options: Optional[Options] = None,
    ) -> Drawable:
        """Elliptical arc between *start* and *stop* radians. Only closed arcs are filled."""

        o = self._options(options)
        with Timer("generate.arc", logger=log):
            rng = RandomSource(o.seed)
            strokes = (
                renderer.arc(x, y, width, height, start, stop, closed, o, rng)
                if o.stroke is not None
                else []
            )
            fill: Optional[OpSet] = None
            if closed and o.fill is not None:
                points = renderer.arc_polygon(x, y, width, height, start, stop, o, rng)
                fill = fill_polygons([points], o, rng)
            return self._drawable("arc", o, strokes, fill)

    def curve(self, points: Sequence[Point], options: Optional[Options] = None) -> Drawable:
        o = self._options(options)
        with Timer("generate.curve", logger=log):
            rng = RandomSource(o.seed)
            pts = [(float(x), float(y)) for x, y in points]
            strokes = renderer.curve(pts, o, rng) if o.stroke is not None else []
            fill: Optional[OpSet] = None
            if o.fill is not None and len(pts) >= 3:
                controls = curve_to_bezier(pts)
                outline = flatten(controls, _curve_tolerance(o), _fill_distance(o))
                fill = fill_polygons([outline], o, rng)
            return self._drawable("curve", o, strokes, fill)

    def bezier_quadratic(
        self, start: Point, cp: Point, end: Point, options: Optional[Options] = None
    ) -> Drawable:
        o = self._options(options)
        with Timer("generate.bezier_quadratic", logger=log):
            rng = RandomSource(o.seed)
            strokes = (
                renderer.bezier_quadratic(start, cp, end, o, rng) if o.stroke is not None else []
            )
            fill: Optional[OpSet] = None
            if o.fill is not None:
                outline = flatten(
                    quadratic_to_cubic(start, cp, end), _curve_tolerance(o), _fill_distance(o)
                )
                fill = fill_polygons([outline], o, rng)
            return self._drawable("bezier_quadratic", o, strokes, fill)

    def bezier_cubic(
        self,
        start: Point,
        cp1: Point,
        cp2: Point,
        end: Point,
        options: Optional[Options] = None,
    ) -> Drawable:
        o = self._options(options)
        with Timer("generate.bezier_cubic", logger=log):
            rng = RandomSource(o.seed)
            strokes = (
                renderer.bezier_cubic(start, cp1, cp2, end, o, rng) if o.stroke is not None else []
            )
            fill: Optional[OpSet] = None
            if o.fill is not None:
                outline = flatten(
                    [start, cp1, cp2, end], _curve_tolerance(o), _fill_distance(o)
                )
                fill = fill_polygons([outline], o, rng)
            return self._drawable("bezier_cubic", o, strokes, fill)

    def path(self, d: Union[Path, str], options: Optional[Options] = None) -> Drawable:
        """Rough rendering of SVG path data.

        With ``simplification < 1`` the outline is drawn as rough polylines
        through a reduced set of points instead of segment by segment.
        """

        o = self._options(options)
        path = parse(d) if isinstance(d, str) else d
        with Timer("generate.path", logger=log):
            if path.is_empty():
                return self._drawable("path", o, [])
            rng = RandomSource(o.seed)
            simplified = o.simplification < 1.0
            if simplified:
                distance = 4.0 - 4.0 * o.simplification
            else:
                distance = (1.0 + o.roughness) / 2.0
            point_sets = points_on_path(path, _curve_tolerance(o), distance)

            fill = fill_polygons(point_sets, o, rng) if o.fill is not None else None
            strokes: List[OpSet] = []
            if o.stroke is not None:
                if simplified:
                    strokes = _merge_passes(
                        [renderer.linear_path(points, False, o, rng) for points in point_sets]
                    )
                else:
                    strokes = renderer.svg_path(path, o, rng)
            return self._drawable("path", o, strokes, fill)

    def draw(
        self,
        d: Union[Path, str],
        transform: Optional[AffineTransform] = None,
        options: Optional[Options] = None,
    ) -> Drawable:
        path = parse(d) if isinstance(d, str) else d
        if transform is not None:
            path = transform.apply(path)
        return self.path(path, options)

    @staticmethod
    def ops_to_path(op_set: OpSet, fixed_decimals: Optional[int] = None) -> str:
        """Render an op set as SVG path data."""

        def num(v: float) -> str:
            return _format_number(v, fixed_decimals)

        parts: List[str] = []
        for op in op_set.ops:
            d = op.data
            if op.op is OpType.MOVE:
                parts.append(f"M{num(d[0])} {num(d[1])}")
            elif op.op is OpType.LINE_TO:
                parts.append(f"L{num(d[0])} {num(d[1])}")
            else:
                parts.append(
                    f"C{num(d[0])} {num(d[1])}, {num(d[2])} {num(d[3])}, {num(d[4])} {num(d[5])}"
                )
        return " ".join(parts)

    @classmethod
    def to_paths(cls, drawable: Drawable) -> List[PathInfo]:
        o = drawable.options
        fixed = o.fixed_decimal_place_digits
        infos: List[PathInfo] = []
        for op_set in drawable.sets:
            d = cls.ops_to_path(op_set, fixed)
            if op_set.op_set_type is OpSetType.PATH:
                infos.append(PathInfo(d, o.stroke, o.stroke_width, None))
            elif op_set.op_set_type is OpSetType.FILL_PATH:
                infos.append(PathInfo(d, None, 0.0, o.fill))
            else:
                infos.append(PathInfo(d, o.fill, o.effective_fill_weight, None))
        return infos


__all__ = ["Generator"]
