from __future__ import annotations

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

import pytest

from roughsketch.config import FillStyle, Options
from roughsketch.fillers import fill_polygons, hachure_lines, pattern_fill_polygons
from roughsketch.rng import RandomSource
from roughsketch.types import OpSetType, OpType


SQUARE = [(0.0, 0.0), (10.0, 0.0), (10.0, 10.0), (0.0, 10.0)]
TRIANGLE = [(0.0, 0.0), (40.0, 5.0), (15.0, 30.0)]


def _moves(op_set):
    return [op for op in op_set.ops if op.op is OpType.MOVE]


def _points(op_set):
    for op in op_set.ops:
        for i in range(0, len(op.data), 2):
            yield op.data[i], op.data[i + 1]


def _inside_convex(point, polygon, eps=1e-9):
    signs = []
    n = len(polygon)
    for i in range(n):
        (ax, ay), (bx, by) = polygon[i], polygon[(i + 1) % n]
        cross = (bx - ax) * (point[1] - ay) - (by - ay) * (point[0] - ax)
        if abs(cross) > eps:
            signs.append(cross > 0)
    return all(signs) or not any(signs)


def test_square_hachure_at_zero_degrees():
    lines = hachure_lines([SQUARE], 0, 5)

    assert len(lines) == 2
    assert [line.start[1] for line in lines] == [2.5, 7.5]
    for line in lines:
        assert line.start == (0.0, line.start[1])
        assert line.end == (10.0, line.end[1])


def test_square_hachure_at_ninety_degrees_is_vertical():
    lines = hachure_lines([SQUARE], 90, 5)

    assert len(lines) == 2
    xs = sorted(line.start[0] for line in lines)
    assert xs == pytest.approx([2.5, 7.5], abs=1e-9)
    for line in lines:
        assert line.start[0] == pytest.approx(line.end[0], abs=1e-9)
        assert line.length == pytest.approx(10.0, abs=1e-9)


def test_closing_duplicate_vertex_is_ignored():
    assert hachure_lines([SQUARE + [SQUARE[0]]], 0, 5) == hachure_lines([SQUARE], 0, 5)


@pytest.mark.parametrize("angle", [-41, 0, 17, 45, 90, 135])
def test_hachure_segments_stay_inside_convex_polygon(angle):
    lines = hachure_lines([TRIANGLE], angle, 3)

    assert lines
    for line in lines:
        for x, y in (line.start, line.end):
            assert -1e-9 <= x <= 40.0 + 1e-9
            assert -1e-9 <= y <= 30.0 + 1e-9
        assert _inside_convex(line.midpoint, TRIANGLE)


def test_nested_polygons_use_even_odd_rule():
    outer = [(0.0, 0.0), (30.0, 0.0), (30.0, 30.0), (0.0, 30.0)]
    hole = [(10.0, 10.0), (20.0, 10.0), (20.0, 20.0), (10.0, 20.0)]

    lines = hachure_lines([outer, hole], 0, 10)

    spans = [(line.start[0], line.end[0], line.start[1]) for line in lines]
    assert spans == [(0.0, 30.0, 5.0), (0.0, 10.0, 15.0), (20.0, 30.0, 15.0), (0.0, 30.0, 25.0)]


@pytest.mark.parametrize(
    "polygon",
    [
        [],
        [(0.0, 0.0), (5.0, 5.0)],
        [(0.0, 0.0), (5.0, 5.0), (10.0, 10.0)],
        [(1.0, 1.0), (1.0, 1.0), (1.0, 1.0)],
    ],
)
def test_degenerate_polygons_produce_no_lines(polygon):
    assert hachure_lines([polygon], -41, 2) == []
    o = Options(fill="red")
    assert pattern_fill_polygons([polygon], o, RandomSource(1)).ops == []
    solid = Options(fill="red", fill_style="solid")
    assert fill_polygons([polygon], solid, RandomSource(1)).ops == []


def test_hachure_fill_draws_two_passes_per_line():
    o = Options(fill="red", hachure_gap=5, hachure_angle=0)

    op_set = fill_polygons([SQUARE], o, RandomSource(1))

    assert op_set.op_set_type is OpSetType.FILL_SKETCH
    assert op_set.fill_style is FillStyle.HACHURE
    assert len(_moves(op_set)) == 4


def test_single_pass_fill():
    o = Options(fill="red", hachure_gap=5, hachure_angle=0, disable_multi_stroke_fill=True)

    assert len(_moves(fill_polygons([SQUARE], o, RandomSource(1)))) == 2


def test_smooth_hachure_stays_on_scanlines():
    o = Options(fill="red", hachure_gap=5, hachure_angle=0, roughness=0)

    op_set = fill_polygons([SQUARE], o, RandomSource(1))

    for x, y in _points(op_set):
        assert 0.0 <= x <= 10.0
        assert y in (2.5, 7.5)


def test_cross_hatch_adds_perpendicular_lines():
    o = Options(fill="red", fill_style="cross-hatch", hachure_gap=5, hachure_angle=0, roughness=0)

    op_set = fill_polygons([SQUARE], o, RandomSource(1))

    assert op_set.fill_style is FillStyle.CROSS_HATCH
    assert len(_moves(op_set)) == 8
    for x, y in _points(op_set):
        assert -1e-9 <= x <= 10.0 + 1e-9
        assert -1e-9 <= y <= 10.0 + 1e-9


def test_zigzag_is_one_polyline_per_pass():
    o = Options(fill="red", fill_style="zigzag", hachure_gap=5, hachure_angle=0)

    op_set = fill_polygons([SQUARE], o, RandomSource(1))
    single = fill_polygons(
        [SQUARE], o.replace(disable_multi_stroke_fill=True), RandomSource(1)
    )

    assert len(_moves(op_set)) == 2
    assert len(op_set.ops) == 8
    assert len(_moves(single)) == 1


def test_dashed_fill_centers_dashes_on_each_line():
    o = Options(
        fill="red",
        fill_style="dashed",
        hachure_gap=5,
        hachure_angle=0,
        dash_offset=2,
        dash_gap=1,
        roughness=0,
        disable_multi_stroke_fill=True,
    )

    op_set = fill_polygons([SQUARE], o, RandomSource(1))

    starts = [op.data for op in _moves(op_set)]
    assert starts == [
        (1.0, 2.5),
        (4.0, 2.5),
        (7.0, 2.5),
        (1.0, 7.5),
        (4.0, 7.5),
        (7.0, 7.5),
    ]
    ends = [op.end_point for op in op_set.ops if op.op is OpType.BCURVE_TO]
    assert [x for x, _ in ends] == [3.0, 6.0, 9.0, 3.0, 6.0, 9.0]


def test_dots_fill_draws_small_ellipses():
    o = Options(fill="red", fill_style="dots", hachure_gap=5, roughness=0)

    op_set = fill_polygons([SQUARE], o, RandomSource(1))

    assert op_set.fill_style is FillStyle.DOTS
    assert len(_moves(op_set)) == 2
    for x, y in _points(op_set):
        assert -2.0 <= x <= 12.0
        assert -2.0 <= y <= 12.0


def test_zigzag_line_fill():
    o = Options(fill="red", fill_style="zigzag-line", hachure_gap=5, hachure_angle=0, roughness=0)

    op_set = fill_polygons([SQUARE], o, RandomSource(1))

    assert op_set.fill_style is FillStyle.ZIGZAG_LINE
    assert len(_moves(op_set)) == 4


def test_solid_fill_traces_the_outline():
    o = Options(fill="red", fill_style="solid", preserve_vertices=True)

    op_set = fill_polygons([SQUARE], o, RandomSource(1))

    assert op_set.op_set_type is OpSetType.FILL_PATH
    assert [op.op for op in op_set.ops] == [
        OpType.MOVE,
        OpType.LINE_TO,
        OpType.LINE_TO,
        OpType.LINE_TO,
    ]
    assert [op.data for op in op_set.ops] == SQUARE


def test_pattern_fill_treats_solid_as_hachure():
    o = Options(fill="red", fill_style="solid")

    op_set = pattern_fill_polygons([SQUARE], o, RandomSource(1))

    assert op_set.op_set_type is OpSetType.FILL_SKETCH
    assert op_set.fill_style is FillStyle.HACHURE


@pytest.mark.parametrize("style", [s for s in FillStyle if s is not FillStyle.SOLID])
def test_every_pattern_is_reproducible(style):
    o = Options(fill="red", fill_style=style, hachure_gap=3)

    first = fill_polygons([TRIANGLE], o, RandomSource(9))
    second = fill_polygons([TRIANGLE], o, RandomSource(9))

    assert first.ops
    assert first.ops == second.ops
