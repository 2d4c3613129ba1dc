from __future__ import annotations

import math
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

import pytest

from roughsketch.config import FillStyle, Options
from roughsketch.errors import GeometryError, ParseError
from roughsketch.generator import Generator
from roughsketch.transform import AffineTransform
from roughsketch.types import Op, OpSet, OpSetType, OpType, PathInfo


SQUARE_PATH = "M0 0 L10 0 L10 10 Z"


def _ops(drawable):
    return [op_set.ops for op_set in drawable.sets]


@pytest.mark.parametrize(
    "draw",
    [
        lambda g, o: g.line(0, 0, 100, 20, o),
        lambda g, o: g.rectangle(10, 10, 100, 50, o),
        lambda g, o: g.polygon([(0, 0), (50, 10), (20, 40)], o),
        lambda g, o: g.linear_path([(0, 0), (50, 10), (20, 40)], False, o),
        lambda g, o: g.ellipse(50, 50, 100, 60, o),
        lambda g, o: g.circle(50, 50, 80, o),
        lambda g, o: g.arc(50, 50, 100, 100, 0, math.pi, False, o),
        lambda g, o: g.curve([(0, 0), (10, 30), (40, 10), (60, 50)], o),
        lambda g, o: g.bezier_quadratic((0, 0), (30, 40), (60, 0), o),
        lambda g, o: g.bezier_cubic((0, 0), (10, 40), (50, 40), (60, 0), o),
        lambda g, o: g.path(SQUARE_PATH, o),
    ],
)
def test_stroke_pass_count(draw):
    g = Generator()

    assert len(draw(g, Options()).stroke_sets()) == 2
    assert len(draw(g, Options(disable_multi_stroke=True)).stroke_sets()) == 1


def test_rectangle_outline_is_two_passes_of_four_edges():
    drawable = Generator().rectangle(0, 0, 10, 10)

    assert drawable.shape == "rectangle"
    for op_set in drawable.stroke_sets():
        assert op_set.op_set_type is OpSetType.PATH
        assert [op.op for op in op_set.ops].count(OpType.MOVE) == 4
        assert len(op_set.ops) == 8


def test_same_seed_gives_identical_ops():
    o = Options(seed=42, fill="red")
    first, second = Generator(o), Generator(o)

    assert _ops(first.rectangle(0, 0, 80, 40)) == _ops(second.rectangle(0, 0, 80, 40))
    assert _ops(first.ellipse(0, 0, 80, 40)) == _ops(second.ellipse(0, 0, 80, 40))
    assert _ops(first.path("M0 0 C10 20 30 20 40 0 Z")) == _ops(
        second.path("M0 0 C10 20 30 20 40 0 Z")
    )
    assert _ops(first.curve([(0, 0), (10, 30), (40, 10)])) == _ops(
        second.curve([(0, 0), (10, 30), (40, 10)])
    )


def test_different_seeds_give_different_ops():
    g = Generator()

    a = g.rectangle(0, 0, 80, 40, Options(seed=1))
    b = g.rectangle(0, 0, 80, 40, Options(seed=2))

    assert _ops(a) != _ops(b)


def test_unseeded_generation_still_works():
    drawable = Generator(Options(seed=None)).line(0, 0, 10, 10)

    assert len(drawable.stroke_sets()) == 2


def test_smooth_line_follows_the_segment():
    drawable = Generator().line(0, 0, 100, 0, Options(roughness=0))
    move, curve = drawable.sets[0].ops

    assert move == Op.move(0, 0)
    assert curve.op is OpType.BCURVE_TO
    c1x, c1y, c2x, c2y, x, y = curve.data
    assert (x, y) == (100.0, 0.0)
    assert 20.0 <= c1x < 40.0 and 40.0 <= c2x < 80.0
    assert c1y == 0.0 and c2y == 0.0


def test_preserve_vertices_keeps_endpoints_exact():
    o = Options(preserve_vertices=True)

    for op_set in Generator().line(3, 4, 50, 60, o).sets:
        assert op_set.ops[0] == Op.move(3, 4)
        assert op_set.ops[-1].end_point == (50.0, 60.0)

    for op_set in Generator().bezier_cubic((0, 0), (10, 40), (50, 40), (60, 0), o).sets:
        assert op_set.ops[0] == Op.move(0, 0)
        assert op_set.ops[-1].end_point == (60.0, 0.0)


def test_fill_sets_come_before_strokes():
    drawable = Generator().rectangle(0, 0, 10, 10, Options(fill="red", hachure_gap=5, hachure_angle=0))

    types = [op_set.op_set_type for op_set in drawable.sets]
    assert types == [OpSetType.FILL_SKETCH, OpSetType.PATH, OpSetType.PATH]
    assert len(drawable.fill_sets()) == 1
    moves = [op for op in drawable.sets[0].ops if op.op is OpType.MOVE]
    assert len(moves) == 4


def test_missing_stroke_leaves_only_the_fill():
    drawable = Generator().ellipse(0, 0, 40, 40, Options(stroke=None, fill="blue"))

    assert [s.op_set_type for s in drawable.sets] == [OpSetType.FILL_SKETCH]


def test_solid_ellipse_fill_is_a_fill_path():
    drawable = Generator().circle(0, 0, 40, Options(fill="blue", fill_style="solid"))

    fill = drawable.sets[0]
    assert fill.op_set_type is OpSetType.FILL_PATH
    assert fill.fill_style is FillStyle.SOLID
    assert fill.ops[0].op is OpType.MOVE


def test_smooth_ellipse_draws_a_single_pass():
    drawable = Generator().ellipse(0, 0, 40, 20, Options(roughness=0))

    assert len(drawable.stroke_sets()) == 1


@pytest.mark.parametrize(
    "points",
    [
        [(0, 0), (1, 1)],
        [(0, 0), (0, 0), (1, 1), (1, 1)],
        [],
    ],
)
def test_filled_polygon_needs_three_distinct_points(points):
    with pytest.raises(GeometryError):
        Generator().polygon(points, Options(fill="red"))


def test_collinear_filled_polygon_has_empty_fill():
    drawable = Generator().polygon([(0, 0), (5, 5), (10, 10)], Options(fill="red"))

    assert drawable.sets[0].op_set_type is OpSetType.FILL_SKETCH
    assert drawable.sets[0].ops == []
    assert len(drawable.stroke_sets()) == 2


@pytest.mark.parametrize(
    "draw",
    [
        lambda g, o: g.polygon([(0, 0), (5, 5), (10, 10)], o),
        lambda g, o: g.rectangle(0, 0, 0, 10, o),
        lambda g, o: g.path("M0 0 L5 5 L10 10 Z", o),
    ],
)
def test_zero_area_solid_fill_is_empty(draw):
    drawable = draw(Generator(), Options(fill="red", fill_style="solid"))

    assert drawable.sets[0].op_set_type is OpSetType.FILL_PATH
    assert drawable.sets[0].ops == []


def test_unfilled_two_point_polygon_is_allowed():
    drawable = Generator().polygon([(0, 0), (1, 1)])

    assert len(drawable.stroke_sets()) == 2


def test_closed_arc_is_filled_and_open_arc_is_not():
    o = Options(fill="red")
    g = Generator()

    closed = g.arc(50, 50, 100, 100, 0, math.pi, True, o)
    opened = g.arc(50, 50, 100, 100, 0, math.pi, False, o)

    assert closed.sets[0].op_set_type is OpSetType.FILL_SKETCH
    assert closed.sets[0].ops
    assert opened.fill_sets() == []


def test_empty_arc_has_no_strokes():
    assert Generator().arc(0, 0, 10, 10, 1.0, 1.0).sets == []


def test_curve_and_bezier_fills():
    o = Options(fill="red", hachure_gap=2)
    g = Generator()

    for drawable in (
        g.curve([(0, 0), (10, 30), (40, 10), (60, 50)], o),
        g.bezier_quadratic((0, 0), (30, 40), (60, 0), o),
        g.bezier_cubic((0, 0), (10, 40), (50, 40), (60, 0), o),
    ):
        assert drawable.sets[0].op_set_type is OpSetType.FILL_SKETCH
        assert drawable.sets[0].ops


def test_path_passes_start_with_a_move():
    drawable = Generator().path(SQUARE_PATH)

    assert len(drawable.sets) == 2
    for op_set in drawable.sets:
        assert op_set.ops[0].op is OpType.MOVE


def test_empty_path_has_no_sets():
    drawable = Generator().path("")

    assert drawable.sets == []
    assert drawable.op_count() == 0


def test_simplified_path_is_drawn_as_polylines():
    drawable = Generator().path(
        "M0 0 C10 20 30 20 40 0 L40 40 Z M60 60 L80 60", Options(simplification=0.5)
    )

    assert len(drawable.stroke_sets()) == 2
    for op_set in drawable.stroke_sets():
        assert op_set.ops[0].op is OpType.MOVE
        assert {op.op for op in op_set.ops} <= {OpType.MOVE, OpType.BCURVE_TO}


def test_path_with_solid_fill():
    drawable = Generator().path(SQUARE_PATH, Options(fill="red", fill_style="solid"))

    assert drawable.sets[0].op_set_type is OpSetType.FILL_PATH
    assert len(drawable.stroke_sets()) == 2


def test_bad_path_data_raises_parse_error():
    with pytest.raises(ParseError):
        Generator().path("M0 0 X")


def test_draw_applies_transform_first():
    o = Options(preserve_vertices=True)

    drawable = Generator().draw("M0 0 L10 0", AffineTransform().translate(100, 0), o)

    assert drawable.sets[0].ops[0] == Op.move(100, 0)
    assert drawable.sets[0].ops[-1].end_point == (110.0, 0.0)


def test_draw_without_transform_matches_path():
    g = Generator()

    assert _ops(g.draw(SQUARE_PATH)) == _ops(g.path(SQUARE_PATH))


def test_ops_to_path_formatting():
    op_set = OpSet(
        OpSetType.PATH,
        [Op.move(0, 0), Op.line_to(1.5, 2), Op.bcurve_to(1, 2, 3, 4, 5, 6)],
    )

    assert Generator.ops_to_path(op_set) == "M0 0 L1.5 2 C1 2, 3 4, 5 6"


def test_ops_to_path_fixed_decimals():
    op_set = OpSet(OpSetType.PATH, [Op.move(1.23456, 2), Op.line_to(3.14159, 2.71828)])

    assert Generator.ops_to_path(op_set, 2) == "M1.23 2 L3.14 2.72"


def test_to_paths_describes_each_set():
    o = Options(fill="red")
    drawable = Generator().rectangle(0, 0, 10, 10, o)

    infos = Generator.to_paths(drawable)

    assert len(infos) == 3
    assert all(isinstance(info, PathInfo) for info in infos)
    fill, stroke = infos[0], infos[1]
    assert (fill.stroke, fill.stroke_width, fill.fill) == ("red", 0.5, None)
    assert (stroke.stroke, stroke.stroke_width, stroke.fill) == ("#000000", 1.0, None)
    assert stroke.d.startswith("M")


def test_to_paths_for_solid_fill():
    drawable = Generator().rectangle(0, 0, 10, 10, Options(fill="red", fill_style="solid"))

    info = Generator.to_paths(drawable)[0]

    assert (info.stroke, info.stroke_width, info.fill) == (None, 0.0, "red")


def test_to_paths_honours_fixed_decimals():
    o = Options(fixed_decimal_place_digits=1)
    drawable = Generator().line(0, 0, 10.123, 5.456, o)

    for info in Generator.to_paths(drawable):
        numbers = info.d.replace("M", " ").replace("C", " ").replace(",", " ").split()
        assert all(len(n.split(".")[1]) <= 1 for n in numbers if "." in n and "e" not in n)
