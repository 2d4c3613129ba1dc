from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Tuple

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .config import FillStyle, Options

Point = Tuple[float, float]


class OpType(str, Enum):
    MOVE = "move"
    LINE_TO = "lineTo"
    BCURVE_TO = "bcurveTo"


class OpSetType(str, Enum):
    PATH = "path"
    FILL_PATH = "fillPath"
    FILL_SKETCH = "fillSketch"


@dataclass(frozen=True)
class Op:
    op: OpType
    data: Tuple[float, ...]

    @classmethod
    def move(cls, x: float, y: float) -> "Op":
        return cls(OpType.MOVE, (float(x), float(y)))

    @classmethod
    def line_to(cls, x: float, y: float) -> "Op":
        return cls(OpType.LINE_TO, (float(x), float(y)))

    @classmethod
    def bcurve_to(
        cls, x1: float, y1: float, x2: float, y2: float, x: float, y: float
    ) -> "Op":
        return cls(
            OpType.BCURVE_TO,
            (float(x1), float(y1), float(x2), float(y2), float(x), float(y)),
        )

    @property
    def end_point(self) -> Point:
        return self.data[-2], self.data[-1]


@dataclass
class OpSet:
    """One visual pass: a stroke outline, a solid fill, or a pattern fill."""

    op_set_type: OpSetType
    ops: List[Op] = field(default_factory=list)
    fill_style: "FillStyle | None" = None

    @property
    def is_fill(self) -> bool:
        return self.op_set_type is not OpSetType.PATH

    def __len__(self) -> int:
        return len(self.ops)


@dataclass
class Drawable:
    shape: str
    options: "Options"
    sets: List[OpSet] = field(default_factory=list)

    def stroke_sets(self) -> List[OpSet]:
        return [s for s in self.sets if s.op_set_type is OpSetType.PATH]

    def fill_sets(self) -> List[OpSet]:
        return [s for s in self.sets if s.is_fill]

    def op_count(self) -> int:
        return sum(len(s.ops) for s in self.sets)


@dataclass(frozen=True)
class PathInfo:
    d: str
    stroke: Optional[str]
    stroke_width: float
    fill: Optional[str]


__all__ = ["Point", "OpType", "OpSetType", "Op", "OpSet", "Drawable", "PathInfo"]
