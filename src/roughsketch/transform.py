from __future__ import annotations

import logging
import math
import re
from typing import List, Optional, Tuple, Union

import numpy as np

from .errors import ParseError
from .path_data import (
    ClosePath,
    CurveTo,
    EllipticalArc,
    HorizontalLineTo,
    LineTo,
    MoveTo,
    Path,
    PathSegment,
    Quadratic,
    SmoothCurveTo,
    SmoothQuadratic,
    VerticalLineTo,
    absolutize,
    normalize,
)
from .types import Point


log = logging.getLogger(__name__)


_FLOAT_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_FUNCTION_RE = re.compile(r"([a-zA-Z]+)\s*\(([^)]*)\)")
_EPS = 1e-12


def _identity() -> np.ndarray:
    return np.eye(3)


def _translate(tx: float, ty: float) -> np.ndarray:
    m = _identity()
    m[0, 2] = tx
    m[1, 2] = ty
    return m


def _scale(sx: float, sy: float) -> np.ndarray:
    m = _identity()
    m[0, 0] = sx
    m[1, 1] = sy
    return m


def _rotate(angle_deg: float, cx: float = 0.0, cy: float = 0.0) -> np.ndarray:
    theta = math.radians(angle_deg)
    cos_t = math.cos(theta)
    sin_t = math.sin(theta)
    rot = np.array([[cos_t, -sin_t, 0.0], [sin_t, cos_t, 0.0], [0.0, 0.0, 1.0]])
    if cx or cy:
        return _translate(cx, cy) @ rot @ _translate(-cx, -cy)
    return rot


def _skew_x(angle_deg: float) -> np.ndarray:
    m = _identity()
    m[0, 1] = math.tan(math.radians(angle_deg))
    return m


def _skew_y(angle_deg: float) -> np.ndarray:
    m = _identity()
    m[1, 0] = math.tan(math.radians(angle_deg))
    return m


def _coefficients(a: float, b: float, c: float, d: float, e: float, f: float) -> np.ndarray:
    return np.array([[a, c, e], [b, d, f], [0.0, 0.0, 1.0]], dtype=float)


class AffineTransform:
    """Immutable 2-D affine transform.

    Builder calls return a new transform that applies the new operation after
    everything already in the chain, so ``AffineTransform().rotate(90).translate(5)``
    rotates first and translates second.
    """

    __slots__ = ("_m",)

    def __init__(self, matrix: Optional[np.ndarray] = None) -> None:
        if matrix is None:
            m = _identity()
        else:
            m = np.array(matrix, dtype=float)
            if m.shape != (3, 3):
                raise ValueError(f"affine matrix must be 3x3, got shape {m.shape}")
        self._m = m

    @classmethod
    def identity(cls) -> "AffineTransform":
        return cls()

    @classmethod
    def from_coefficients(
        cls, a: float, b: float, c: float, d: float, e: float, f: float
    ) -> "AffineTransform":
        return cls(_coefficients(a, b, c, d, e, f))

    @classmethod
    def from_svg(cls, text: Optional[str]) -> "AffineTransform":
        """Parse an SVG ``transform`` attribute. The rightmost function applies first."""

        if not text or not text.strip():
            return cls()
        result = _identity()
        consumed = 0
        for match in _FUNCTION_RE.finditer(text):
            gap = text[consumed:match.start()]
            if gap.strip(" \t\r\n,"):
                raise ParseError("unexpected text in transform list", consumed, text)
            consumed = match.end()
            name = match.group(1).lower()
            params = [float(v) for v in _FLOAT_RE.findall(match.group(2))]
            if name == "matrix" and len(params) == 6:
                m = _coefficients(*params)
            elif name == "translate" and len(params) in (1, 2):
                m = _translate(params[0], params[1] if len(params) > 1 else 0.0)
            elif name == "scale" and len(params) in (1, 2):
                m = _scale(params[0], params[1] if len(params) > 1 else params[0])
            elif name == "rotate" and len(params) == 1:
                m = _rotate(params[0])
            elif name == "rotate" and len(params) == 3:
                m = _rotate(params[0], params[1], params[2])
            elif name == "skewx" and len(params) == 1:
                m = _skew_x(params[0])
            elif name == "skewy" and len(params) == 1:
                m = _skew_y(params[0])
            else:
                raise ParseError(
                    f"bad transform function {match.group(1)!r} with {len(params)} arguments",
                    match.start(),
                    text,
                )
            result = result @ m
        if text[consumed:].strip(" \t\r\n,"):
            raise ParseError("unexpected text in transform list", consumed, text)
        return cls(result)

    def _chain(self, m: np.ndarray) -> "AffineTransform":
        return AffineTransform(m @ self._m)

    def translate(self, dx: float, dy: float = 0.0) -> "AffineTransform":
        return self._chain(_translate(dx, dy))

    def scale(self, sx: float, sy: Optional[float] = None) -> "AffineTransform":
        return self._chain(_scale(sx, sx if sy is None else sy))

    def rotate(self, angle_deg: float, cx: float = 0.0, cy: float = 0.0) -> "AffineTransform":
        return self._chain(_rotate(angle_deg, cx, cy))

    def skew_x(self, angle_deg: float) -> "AffineTransform":
        return self._chain(_skew_x(angle_deg))

    def skew_y(self, angle_deg: float) -> "AffineTransform":
        return self._chain(_skew_y(angle_deg))

    def matrix(
        self, a: float, b: float, c: float, d: float, e: float, f: float
    ) -> "AffineTransform":
        return self._chain(_coefficients(a, b, c, d, e, f))

    def then(self, other: "AffineTransform") -> "AffineTransform":
        return self._chain(other._m)

    @property
    def coefficients(self) -> Tuple[float, float, float, float, float, float]:
        m = self._m
        return (
            float(m[0, 0]),
            float(m[1, 0]),
            float(m[0, 1]),
            float(m[1, 1]),
            float(m[0, 2]),
            float(m[1, 2]),
        )

    def as_array(self) -> np.ndarray:
        return self._m.copy()

    def determinant(self) -> float:
        a, b, c, d, _, _ = self.coefficients
        return a * d - b * c

    def is_identity(self) -> bool:
        return bool(np.allclose(self._m, _identity(), rtol=0.0, atol=_EPS))

    def is_axis_aligned(self) -> bool:
        _, b, c, _, _, _ = self.coefficients
        return abs(b) <= _EPS and abs(c) <= _EPS

    def is_similarity(self) -> bool:
        a, b, c, d, _, _ = self.coefficients
        rotation = abs(a - d) <= _EPS and abs(b + c) <= _EPS
        reflection = abs(a + d) <= _EPS and abs(b - c) <= _EPS
        return rotation or reflection

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AffineTransform):
            return NotImplemented
        return bool(np.array_equal(self._m, other._m))

    def __hash__(self) -> int:
        return hash(self.coefficients)

    def __repr__(self) -> str:
        a, b, c, d, e, f = self.coefficients
        return f"AffineTransform(matrix({a:g}, {b:g}, {c:g}, {d:g}, {e:g}, {f:g}))"

    def apply_to_point(self, x: float, y: float) -> Point:
        a, b, c, d, e, f = self.coefficients
        return a * x + c * y + e, b * x + d * y + f

    def apply_to_points(self, points) -> List[Point]:
        if len(points) == 0:
            return []
        pts = np.asarray(points, dtype=float).reshape(-1, 2)
        homo = np.hstack([pts, np.ones((pts.shape[0], 1))])
        mapped = homo @ self._m.T
        return [(float(x), float(y)) for x, y in mapped[:, :2]]

    def _keeps_arc(self, arc: EllipticalArc) -> bool:
        if self.is_similarity():
            return True
        return self.is_axis_aligned() and arc.x_axis_rotation % 90.0 == 0.0

    def _map_arc(self, arc: EllipticalArc) -> EllipticalArc:
        a, b, _, d, _, _ = self.coefficients
        x, y = self.apply_to_point(arc.x, arc.y)
        det = self.determinant()
        flip = det < 0
        if self.is_similarity():
            factor = math.sqrt(abs(det))
            angle = math.degrees(math.atan2(b, a))
            rotation = angle - arc.x_axis_rotation if flip else arc.x_axis_rotation + angle
            rx = abs(arc.rx) * factor
            ry = abs(arc.ry) * factor
        else:
            rotation = arc.x_axis_rotation
            if arc.x_axis_rotation % 180.0 == 0.0:
                rx, ry = abs(arc.rx * a), abs(arc.ry * d)
            else:
                rx, ry = abs(arc.rx * d), abs(arc.ry * a)
        return EllipticalArc(
            rx,
            ry,
            rotation,
            arc.large_arc,
            (not arc.sweep) if flip else arc.sweep,
            x,
            y,
        )

    def apply(self, path: Union[Path, str]) -> Path:
        """Map every coordinate and control point of *path* through this transform."""

        src = absolutize(path)
        arcs = [seg for seg in src if isinstance(seg, EllipticalArc)]
        if any(not self._keeps_arc(arc) for arc in arcs):
            log.debug("Converting %d arcs to cubics for %r", len(arcs), self)
            src = normalize(src)

        pt = self.apply_to_point
        axis_aligned = self.is_axis_aligned()
        a, _, _, d, e, f = self.coefficients
        cx = cy = sx = sy = 0.0
        out: List[PathSegment] = []
        for seg in src:
            if isinstance(seg, MoveTo):
                out.append(MoveTo(*pt(seg.x, seg.y)))
                sx, sy = seg.x, seg.y
            elif isinstance(seg, LineTo):
                out.append(LineTo(*pt(seg.x, seg.y)))
            elif isinstance(seg, HorizontalLineTo):
                if axis_aligned:
                    out.append(HorizontalLineTo(a * seg.x + e))
                else:
                    out.append(LineTo(*pt(seg.x, cy)))
                cx = seg.x
                continue
            elif isinstance(seg, VerticalLineTo):
                if axis_aligned:
                    out.append(VerticalLineTo(d * seg.y + f))
                else:
                    out.append(LineTo(*pt(cx, seg.y)))
                cy = seg.y
                continue
            elif isinstance(seg, CurveTo):
                out.append(CurveTo(*pt(seg.x1, seg.y1), *pt(seg.x2, seg.y2), *pt(seg.x, seg.y)))
            elif isinstance(seg, SmoothCurveTo):
                out.append(SmoothCurveTo(*pt(seg.x2, seg.y2), *pt(seg.x, seg.y)))
            elif isinstance(seg, Quadratic):
                out.append(Quadratic(*pt(seg.x1, seg.y1), *pt(seg.x, seg.y)))
            elif isinstance(seg, SmoothQuadratic):
                out.append(SmoothQuadratic(*pt(seg.x, seg.y)))
            elif isinstance(seg, EllipticalArc):
                out.append(self._map_arc(seg))
            else:
                out.append(ClosePath())
                cx, cy = sx, sy
                continue
            cx, cy = seg.x, seg.y
        return Path(tuple(out))


__all__ = ["AffineTransform"]
