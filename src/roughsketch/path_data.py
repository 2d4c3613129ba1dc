from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import ClassVar, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from .errors import ParseError
from .types import Point


log = logging.getLogger(__name__)


_NUMBER_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_SEPARATORS = frozenset(" \t\r\n\f,")
_NUMBER_START = frozenset("+-.0123456789")
_COMMANDS = frozenset("MmZzLlHhVvCcSsQqTtAa")


def _fmt(value: float) -> str:
    value = float(value)
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(value)


@dataclass(frozen=True)
class MoveTo:
    x: float
    y: float
    absolute: bool = True
    letter: ClassVar[str] = "M"

    def args(self) -> Tuple[float, ...]:
        return (self.x, self.y)


@dataclass(frozen=True)
class LineTo:
    x: float
    y: float
    absolute: bool = True
    letter: ClassVar[str] = "L"

    def args(self) -> Tuple[float, ...]:
        return (self.x, self.y)


@dataclass(frozen=True)
class HorizontalLineTo:
    x: float
    absolute: bool = True
    letter: ClassVar[str] = "H"

    def args(self) -> Tuple[float, ...]:
        return (self.x,)


@dataclass(frozen=True)
class VerticalLineTo:
    y: float
    absolute: bool = True
    letter: ClassVar[str] = "V"

    def args(self) -> Tuple[float, ...]:
        return (self.y,)


@dataclass(frozen=True)
class CurveTo:
    x1: float
    y1: float
    x2: float
    y2: float
    x: float
    y: float
    absolute: bool = True
    letter: ClassVar[str] = "C"

    def args(self) -> Tuple[float, ...]:
        return (self.x1, self.y1, self.x2, self.y2, self.x, self.y)


@dataclass(frozen=True)
class SmoothCurveTo:
    x2: float
    y2: float
    x: float
    y: float
    absolute: bool = True
    letter: ClassVar[str] = "S"

    def args(self) -> Tuple[float, ...]:
        return (self.x2, self.y2, self.x, self.y)


@dataclass(frozen=True)
class Quadratic:
    x1: float
    y1: float
    x: float
    y: float
    absolute: bool = True
    letter: ClassVar[str] = "Q"

    def args(self) -> Tuple[float, ...]:
        return (self.x1, self.y1, self.x, self.y)


@dataclass(frozen=True)
class SmoothQuadratic:
    x: float
    y: float
    absolute: bool = True
    letter: ClassVar[str] = "T"

    def args(self) -> Tuple[float, ...]:
        return (self.x, self.y)


@dataclass(frozen=True)
class EllipticalArc:
    rx: float
    ry: float
    x_axis_rotation: float
    large_arc: bool
    sweep: bool
    x: float
    y: float
    absolute: bool = True
    letter: ClassVar[str] = "A"

    def args(self) -> Tuple[float, ...]:
        return (
            self.rx,
            self.ry,
            self.x_axis_rotation,
            1.0 if self.large_arc else 0.0,
            1.0 if self.sweep else 0.0,
            self.x,
            self.y,
        )


@dataclass(frozen=True)
class ClosePath:
    absolute: bool = True
    letter: ClassVar[str] = "Z"

    def args(self) -> Tuple[float, ...]:
        return ()


PathSegment = Union[
    MoveTo,
    LineTo,
    HorizontalLineTo,
    VerticalLineTo,
    CurveTo,
    SmoothCurveTo,
    Quadratic,
    SmoothQuadratic,
    EllipticalArc,
    ClosePath,
]


def segment_to_string(segment: PathSegment) -> str:
    letter = segment.letter if segment.absolute else segment.letter.lower()
    args = segment.args()
    if not args:
        return letter
    return letter + " ".join(_fmt(v) for v in args)


def _segments_close(a: PathSegment, b: PathSegment, abs_tol: float) -> bool:
    if type(a) is not type(b):
        return False
    for f in fields(a):
        va = getattr(a, f.name)
        vb = getattr(b, f.name)
        if isinstance(va, bool):
            if va != vb:
                return False
        elif not math.isclose(va, vb, rel_tol=0.0, abs_tol=abs_tol):
            return False
    return True


@dataclass(frozen=True)
class Path:
    """An ordered, immutable sequence of path segments."""

    segments: Tuple[PathSegment, ...] = ()

    @classmethod
    def parse(cls, text: str) -> "Path":
        return parse(text)

    def __iter__(self) -> Iterator[PathSegment]:
        return iter(self.segments)

    def __len__(self) -> int:
        return len(self.segments)

    def __getitem__(self, index: int) -> PathSegment:
        return self.segments[index]

    def __str__(self) -> str:
        return self.to_string()

    def is_empty(self) -> bool:
        return not self.segments

    def is_absolute(self) -> bool:
        return all(seg.absolute for seg in self.segments)

    def is_normalized(self) -> bool:
        return all(
            seg.absolute and isinstance(seg, (MoveTo, LineTo, CurveTo, ClosePath))
            for seg in self.segments
        )

    def to_string(self) -> str:
        return " ".join(segment_to_string(seg) for seg in self.segments)

    def isclose(self, other: "Path", abs_tol: float = 1e-9) -> bool:
        if len(self.segments) != len(other.segments):
            return False
        return all(
            _segments_close(a, b, abs_tol) for a, b in zip(self.segments, other.segments)
        )


class _PathScanner:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def skip_separators(self) -> None:
        text = self.text
        while self.pos < len(text) and text[self.pos] in _SEPARATORS:
            self.pos += 1

    def at_end(self) -> bool:
        self.skip_separators()
        return self.pos >= len(self.text)

    def peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def at_number(self) -> bool:
        self.skip_separators()
        return self.peek() in _NUMBER_START and self.peek() != ""

    def read_number(self) -> float:
        self.skip_separators()
        if self.pos >= len(self.text):
            raise ParseError("unexpected end of path data, expected a number", self.pos, self.text)
        match = _NUMBER_RE.match(self.text, self.pos)
        if match is None:
            raise ParseError(
                f"malformed number starting with {self.peek()!r}", self.pos, self.text
            )
        self.pos = match.end()
        return float(match.group(0))

    def read_flag(self) -> bool:
        self.skip_separators()
        ch = self.peek()
        if ch not in ("0", "1"):
            raise ParseError(f"arc flag must be 0 or 1, got {ch!r}", self.pos, self.text)
        self.pos += 1
        return ch == "1"


def _read_segment(scanner: _PathScanner, command: str) -> PathSegment:
    absolute = command.isupper()
    kind = command.lower()
    num = scanner.read_number
    if kind == "m":
        return MoveTo(num(), num(), absolute)
    if kind == "l":
        return LineTo(num(), num(), absolute)
    if kind == "h":
        return HorizontalLineTo(num(), absolute)
    if kind == "v":
        return VerticalLineTo(num(), absolute)
    if kind == "c":
        return CurveTo(num(), num(), num(), num(), num(), num(), absolute)
    if kind == "s":
        return SmoothCurveTo(num(), num(), num(), num(), absolute)
    if kind == "q":
        return Quadratic(num(), num(), num(), num(), absolute)
    if kind == "t":
        return SmoothQuadratic(num(), num(), absolute)
    if kind == "a":
        rx = num()
        ry = num()
        rotation = num()
        large_arc = scanner.read_flag()
        sweep = scanner.read_flag()
        return EllipticalArc(rx, ry, rotation, large_arc, sweep, num(), num(), absolute)
    raise ParseError(f"unknown path command {command!r}", scanner.pos, scanner.text)


def parse(text: str) -> Path:
    """Parse SVG path data into a :class:`Path` without changing any segment."""

    scanner = _PathScanner(text)
    segments: List[PathSegment] = []
    command: Optional[str] = None

    while not scanner.at_end():
        start = scanner.pos
        ch = scanner.peek()
        if ch.isalpha():
            if ch not in _COMMANDS:
                raise ParseError(f"unknown path command {ch!r}", start, text)
            if not segments and ch not in "Mm":
                raise ParseError("path data must start with a move command", start, text)
            scanner.pos += 1
            command = ch
            if ch in "Zz":
                segments.append(ClosePath(ch == "Z"))
                command = None
                continue
        elif ch in _NUMBER_START:
            if command is None:
                if not segments:
                    raise ParseError("path data must start with a move command", start, text)
                raise ParseError("number without a preceding command", start, text)
        else:
            raise ParseError(f"unexpected character {ch!r}", start, text)

        segments.append(_read_segment(scanner, command))
        if command == "M":
            command = "L"
        elif command == "m":
            command = "l"

    return Path(tuple(segments))


def _coerce(path: Union[Path, str, Iterable[PathSegment]]) -> Path:
    if isinstance(path, Path):
        return path
    if isinstance(path, str):
        return parse(path)
    return Path(tuple(path))


def absolutize(path: Union[Path, str, Iterable[PathSegment]]) -> Path:
    """Rewrite relative segments as absolute ones. Segment kinds are kept."""

    cx = cy = 0.0
    sx = sy = 0.0
    out: List[PathSegment] = []
    for seg in _coerce(path):
        if seg.absolute:
            if isinstance(seg, ClosePath):
                cx, cy = sx, sy
            elif isinstance(seg, HorizontalLineTo):
                cx = seg.x
            elif isinstance(seg, VerticalLineTo):
                cy = seg.y
            else:
                cx, cy = seg.x, seg.y
                if isinstance(seg, MoveTo):
                    sx, sy = cx, cy
            out.append(seg)
            continue

        if isinstance(seg, MoveTo):
            new: PathSegment = MoveTo(cx + seg.x, cy + seg.y)
            sx, sy = new.x, new.y
        elif isinstance(seg, LineTo):
            new = LineTo(cx + seg.x, cy + seg.y)
        elif isinstance(seg, HorizontalLineTo):
            new = HorizontalLineTo(cx + seg.x)
        elif isinstance(seg, VerticalLineTo):
            new = VerticalLineTo(cy + seg.y)
        elif isinstance(seg, CurveTo):
            new = CurveTo(
                cx + seg.x1, cy + seg.y1, cx + seg.x2, cy + seg.y2, cx + seg.x, cy + seg.y
            )
        elif isinstance(seg, SmoothCurveTo):
            new = SmoothCurveTo(cx + seg.x2, cy + seg.y2, cx + seg.x, cy + seg.y)
        elif isinstance(seg, Quadratic):
            new = Quadratic(cx + seg.x1, cy + seg.y1, cx + seg.x, cy + seg.y)
        elif isinstance(seg, SmoothQuadratic):
            new = SmoothQuadratic(cx + seg.x, cy + seg.y)
        elif isinstance(seg, EllipticalArc):
            new = replace(seg, x=cx + seg.x, y=cy + seg.y, absolute=True)
        else:
            new = ClosePath()

        if isinstance(new, ClosePath):
            cx, cy = sx, sy
        elif isinstance(new, HorizontalLineTo):
            cx = new.x
        elif isinstance(new, VerticalLineTo):
            cy = new.y
        else:
            cx, cy = new.x, new.y
        out.append(new)

    return Path(tuple(out))


def arc_to_cubic(
    p0: Point,
    rx: float,
    ry: float,
    phi_deg: float,
    large_arc: bool,
    sweep: bool,
    p1: Point,
) -> List[Tuple[Point, Point, Point]]:
    """Convert an SVG endpoint arc into cubic pieces of at most 90 degrees.

    Returns ``(ctrl1, ctrl2, end)`` triples. The last end point is exactly *p1*.
    """

    if rx == 0 or ry == 0:
        return []

    phi = math.radians(phi_deg % 360.0)
    cos_phi = math.cos(phi)
    sin_phi = math.sin(phi)

    x1, y1 = p0
    x2, y2 = p1
    dx = (x1 - x2) / 2.0
    dy = (y1 - y2) / 2.0

    x1p = cos_phi * dx + sin_phi * dy
    y1p = -sin_phi * dx + cos_phi * dy

    rx_abs = abs(rx)
    ry_abs = abs(ry)
    lam = (x1p**2) / (rx_abs**2) + (y1p**2) / (ry_abs**2)
    if lam > 1:
        scale = math.sqrt(lam)
        rx_abs *= scale
        ry_abs *= scale

    sign = -1 if large_arc == sweep else 1
    numerator = rx_abs**2 * ry_abs**2 - rx_abs**2 * y1p**2 - ry_abs**2 * x1p**2
    denom = rx_abs**2 * y1p**2 + ry_abs**2 * x1p**2
    if denom == 0:
        denom = 1e-12
    coef = sign * math.sqrt(max(0.0, numerator / denom))
    cxp = coef * (rx_abs * y1p) / ry_abs
    cyp = coef * -(ry_abs * x1p) / rx_abs

    cx = cos_phi * cxp - sin_phi * cyp + (x1 + x2) / 2.0
    cy = sin_phi * cxp + cos_phi * cyp + (y1 + y2) / 2.0

    def angle(u: Point, v: Point) -> float:
        ux, uy = u
        vx, vy = v
        return math.atan2(ux * vy - uy * vx, ux * vx + uy * vy)

    v1 = ((x1p - cxp) / rx_abs, (y1p - cyp) / ry_abs)
    v2 = ((-x1p - cxp) / rx_abs, (-y1p - cyp) / ry_abs)

    theta1 = angle((1.0, 0.0), v1)
    delta_theta = angle(v1, v2)
    if not sweep and delta_theta > 0:
        delta_theta -= 2 * math.pi
    elif sweep and delta_theta < 0:
        delta_theta += 2 * math.pi

    pieces = max(1, int(math.ceil(abs(delta_theta) / (math.pi / 2 + 1e-9))))
    delta = delta_theta / pieces
    e = 4 * math.tan(delta / 4) / 3

    def on_ellipse(t: float) -> Point:
        return (
            cx + rx_abs * cos_phi * math.cos(t) - ry_abs * sin_phi * math.sin(t),
            cy + rx_abs * sin_phi * math.cos(t) + ry_abs * cos_phi * math.sin(t),
        )

    def derivative(t: float) -> Point:
        return (
            -rx_abs * cos_phi * math.sin(t) - ry_abs * sin_phi * math.cos(t),
            -rx_abs * sin_phi * math.sin(t) + ry_abs * cos_phi * math.cos(t),
        )

    result: List[Tuple[Point, Point, Point]] = []
    for i in range(pieces):
        t1 = theta1 + i * delta
        t2 = t1 + delta
        start = on_ellipse(t1)
        end = p1 if i == pieces - 1 else on_ellipse(t2)
        d1 = derivative(t1)
        d2 = derivative(t2)
        ctrl1 = (start[0] + d1[0] * e, start[1] + d1[1] * e)
        ctrl2 = (end[0] - d2[0] * e, end[1] - d2[1] * e)
        result.append((ctrl1, ctrl2, (float(end[0]), float(end[1]))))
    return result


class _PrevKind(Enum):
    NONE = "none"
    CUBIC = "cubic"
    QUADRATIC = "quadratic"
    OTHER = "other"


@dataclass
class _NormalizerState:
    cx: float = 0.0
    cy: float = 0.0
    sx: float = 0.0
    sy: float = 0.0
    # last control point of the previous curve, for S/T reflection
    lcx: float = 0.0
    lcy: float = 0.0
    prev: _PrevKind = _PrevKind.NONE
    subpath_open: bool = False

    def reflected_control(self, kind: _PrevKind) -> Point:
        if self.prev is kind:
            return 2 * self.cx - self.lcx, 2 * self.cy - self.lcy
        return self.cx, self.cy


def _quad_as_cubic(p0: Point, ctrl: Point, end: Point) -> CurveTo:
    c1x = p0[0] + 2.0 * (ctrl[0] - p0[0]) / 3.0
    c1y = p0[1] + 2.0 * (ctrl[1] - p0[1]) / 3.0
    c2x = end[0] + 2.0 * (ctrl[0] - end[0]) / 3.0
    c2y = end[1] + 2.0 * (ctrl[1] - end[1]) / 3.0
    return CurveTo(c1x, c1y, c2x, c2y, end[0], end[1])


def normalize(path: Union[Path, str, Iterable[PathSegment]]) -> Path:
    """Reduce a path to absolute ``M``, ``L``, ``C`` and ``Z`` segments."""

    state = _NormalizerState()
    out: List[PathSegment] = []

    for seg in absolutize(path):
        kind = _PrevKind.OTHER
        if isinstance(seg, MoveTo):
            out.append(seg)
            state.cx, state.cy = seg.x, seg.y
            state.sx, state.sy = seg.x, seg.y
            state.subpath_open = True
        elif isinstance(seg, ClosePath):
            if state.subpath_open:
                out.append(seg)
                state.subpath_open = False
            state.cx, state.cy = state.sx, state.sy
        else:
            state.subpath_open = True
            if isinstance(seg, LineTo):
                out.append(seg)
                state.cx, state.cy = seg.x, seg.y
            elif isinstance(seg, HorizontalLineTo):
                out.append(LineTo(seg.x, state.cy))
                state.cx = seg.x
            elif isinstance(seg, VerticalLineTo):
                out.append(LineTo(state.cx, seg.y))
                state.cy = seg.y
            elif isinstance(seg, CurveTo):
                out.append(seg)
                state.lcx, state.lcy = seg.x2, seg.y2
                state.cx, state.cy = seg.x, seg.y
                kind = _PrevKind.CUBIC
            elif isinstance(seg, SmoothCurveTo):
                c1 = state.reflected_control(_PrevKind.CUBIC)
                out.append(CurveTo(c1[0], c1[1], seg.x2, seg.y2, seg.x, seg.y))
                state.lcx, state.lcy = seg.x2, seg.y2
                state.cx, state.cy = seg.x, seg.y
                kind = _PrevKind.CUBIC
            elif isinstance(seg, Quadratic):
                out.append(_quad_as_cubic((state.cx, state.cy), (seg.x1, seg.y1), (seg.x, seg.y)))
                state.lcx, state.lcy = seg.x1, seg.y1
                state.cx, state.cy = seg.x, seg.y
                kind = _PrevKind.QUADRATIC
            elif isinstance(seg, SmoothQuadratic):
                ctrl = state.reflected_control(_PrevKind.QUADRATIC)
                out.append(_quad_as_cubic((state.cx, state.cy), ctrl, (seg.x, seg.y)))
                state.lcx, state.lcy = ctrl
                state.cx, state.cy = seg.x, seg.y
                kind = _PrevKind.QUADRATIC
            elif isinstance(seg, EllipticalArc):
                if seg.x == state.cx and seg.y == state.cy:
                    pass
                elif seg.rx == 0 or seg.ry == 0:
                    out.append(LineTo(seg.x, seg.y))
                else:
                    for c1, c2, end in arc_to_cubic(
                        (state.cx, state.cy),
                        seg.rx,
                        seg.ry,
                        seg.x_axis_rotation,
                        seg.large_arc,
                        seg.sweep,
                        (seg.x, seg.y),
                    ):
                        out.append(CurveTo(c1[0], c1[1], c2[0], c2[1], end[0], end[1]))
                state.cx, state.cy = seg.x, seg.y
        state.prev = kind

    return Path(tuple(out))


def subpaths(path: Union[Path, str, Iterable[PathSegment]]) -> List[Path]:
    """Split a normalized path at every move."""

    groups: List[List[PathSegment]] = []
    for seg in normalize(path):
        if isinstance(seg, MoveTo) or not groups:
            groups.append([])
        groups[-1].append(seg)
    return [Path(tuple(g)) for g in groups]


__all__ = [
    "MoveTo",
    "LineTo",
    "HorizontalLineTo",
    "VerticalLineTo",
    "CurveTo",
    "SmoothCurveTo",
    "Quadratic",
    "SmoothQuadratic",
    "EllipticalArc",
    "ClosePath",
    "PathSegment",
    "Path",
    "parse",
    "absolutize",
    "normalize",
    "arc_to_cubic",
    "segment_to_string",
    "subpaths",
]
