from __future__ import annotations

import copy
import logging
import math
import re
from dataclasses import asdict, dataclass, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from .errors import ConfigurationError


log = logging.getLogger(__name__)


class FillStyle(str, Enum):
    HACHURE = "hachure"
    SOLID = "solid"
    ZIGZAG = "zigzag"
    CROSS_HATCH = "cross-hatch"
    DOTS = "dots"
    DASHED = "dashed"
    ZIGZAG_LINE = "zigzag-line"

    @classmethod
    def coerce(cls, value: Union["FillStyle", str]) -> "FillStyle":
        if isinstance(value, FillStyle):
            return value
        if not isinstance(value, str):
            raise ConfigurationError(f"fill_style must be a string, got {type(value).__name__}")
        key = re.sub(r"[\s_\-]", "", value).lower()
        for member in cls:
            if key in (member.name.replace("_", "").lower(), member.value.replace("-", "")):
                return member
        names = ", ".join(m.value for m in cls)
        raise ConfigurationError(f"unknown fill_style {value!r} (expected one of {names})")


MIN_HACHURE_GAP = 0.1

_NON_NEGATIVE = ("max_randomness_offset", "roughness", "bowing")
_POSITIVE_OPTIONAL = ("fill_weight", "hachure_gap", "dash_offset", "dash_gap", "zigzag_offset")
# explicit values that set a scanline spacing
_SCAN_SPACINGS = ("hachure_gap", "zigzag_offset")
_UNIT_INTERVAL = ("curve_fitting", "curve_tightness")
_FLAGS = ("disable_multi_stroke", "disable_multi_stroke_fill", "preserve_vertices")


def _snake_case(key: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


def _number(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    number = float(value)
    if not math.isfinite(number):
        raise ConfigurationError(f"{name} must be finite, got {value!r}")
    return number


def _optional_int(name: str, value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise ConfigurationError(f"{name} must be >= 0, got {value}")
    return value


@dataclass(frozen=True)
class Options:
    """Rendering parameters shared by every generator call."""

    max_randomness_offset: float = 2.0
    roughness: float = 1.0
    bowing: float = 1.0
    stroke: Optional[str] = "#000000"
    stroke_width: float = 1.0
    curve_fitting: float = 0.95
    curve_tightness: float = 0.0
    curve_step_count: float = 9.0
    fill: Optional[str] = None
    fill_style: FillStyle = FillStyle.HACHURE
    fill_weight: Optional[float] = None
    hachure_angle: float = -41.0
    hachure_gap: Optional[float] = None
    simplification: float = 1.0
    dash_offset: Optional[float] = None
    dash_gap: Optional[float] = None
    zigzag_offset: Optional[float] = None
    seed: Optional[int] = 345
    disable_multi_stroke: bool = False
    disable_multi_stroke_fill: bool = False
    preserve_vertices: bool = False
    fixed_decimal_place_digits: Optional[int] = None

    def __post_init__(self) -> None:
        def put(name: str, value: Any) -> None:
            object.__setattr__(self, name, value)

        for name in _NON_NEGATIVE:
            value = _number(name, getattr(self, name))
            if value < 0:
                raise ConfigurationError(f"{name} must be >= 0, got {value}")
            put(name, value)

        for name in _POSITIVE_OPTIONAL:
            raw = getattr(self, name)
            if raw is None:
                continue
            value = _number(name, raw)
            if value <= 0:
                raise ConfigurationError(f"{name} must be > 0, got {value}")
            if name in _SCAN_SPACINGS and value < MIN_HACHURE_GAP:
                raise ConfigurationError(
                    f"{name} must be >= {MIN_HACHURE_GAP}, got {value}"
                )
            put(name, value)

        for name in _UNIT_INTERVAL:
            value = _number(name, getattr(self, name))
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be within [0, 1], got {value}")
            put(name, value)

        stroke_width = _number("stroke_width", self.stroke_width)
        if stroke_width <= 0:
            raise ConfigurationError(f"stroke_width must be > 0, got {stroke_width}")
        put("stroke_width", stroke_width)

        step_count = _number("curve_step_count", self.curve_step_count)
        if step_count < 1:
            raise ConfigurationError(f"curve_step_count must be >= 1, got {step_count}")
        put("curve_step_count", step_count)

        simplification = _number("simplification", self.simplification)
        if not 0.0 < simplification <= 1.0:
            raise ConfigurationError(
                f"simplification must be within (0, 1], got {simplification}"
            )
        put("simplification", simplification)

        put("hachure_angle", _number("hachure_angle", self.hachure_angle))
        put("fill_style", FillStyle.coerce(self.fill_style))
        put("seed", _optional_int("seed", self.seed))
        put(
            "fixed_decimal_place_digits",
            _optional_int("fixed_decimal_place_digits", self.fixed_decimal_place_digits),
        )

        for name in _FLAGS:
            if not isinstance(getattr(self, name), bool):
                raise ConfigurationError(f"{name} must be a boolean, got {getattr(self, name)!r}")

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "Options":
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in mapping.items():
            name = _snake_case(str(key))
            if name not in known:
                raise ConfigurationError(f"unknown option {key!r}")
            kwargs[name] = value
        return cls(**kwargs)

    def replace(self, **changes: Any) -> "Options":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["fill_style"] = self.fill_style.value
        return data

    @property
    def effective_fill_weight(self) -> float:
        if self.fill_weight is not None:
            return self.fill_weight
        return self.stroke_width / 2.0

    @property
    def effective_hachure_gap(self) -> float:
        if self.hachure_gap is not None:
            return self.hachure_gap
        # only the derived default is floored; explicit gaps are validated
        return max(self.effective_fill_weight * 8.0, MIN_HACHURE_GAP)

    @property
    def effective_dash_offset(self) -> float:
        return self.dash_offset if self.dash_offset is not None else self.effective_hachure_gap

    @property
    def effective_dash_gap(self) -> float:
        return self.dash_gap if self.dash_gap is not None else self.effective_hachure_gap

    @property
    def effective_zigzag_offset(self) -> float:
        return (
            self.zigzag_offset if self.zigzag_offset is not None else self.effective_hachure_gap
        )


HARDCODED_DEFAULTS: Dict[str, Any] = {
    f.name: (f.default.value if isinstance(f.default, FillStyle) else f.default)
    for f in fields(Options)
}


def _deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for key in base:
        value = base[key]
        if isinstance(value, Mapping):
            result[key] = copy.deepcopy(value)
        elif isinstance(value, list):
            result[key] = list(value)
        else:
            result[key] = value
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(result.get(key), Mapping):
            result[key] = _deep_merge(result[key], value)  # type: ignore[arg-type]
        else:
            result[key] = value
    return result


def _snake_keys(mapping: Mapping[str, Any]) -> Dict[str, Any]:
    return {_snake_case(str(k)): v for k, v in mapping.items()}


def load_options(
    path: Union[str, Path], overrides: Optional[Mapping[str, Any]] = None
) -> Options:
    """Read options from a YAML file, merged over ``HARDCODED_DEFAULTS``."""

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Options file not found: {p}")
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"invalid YAML in {p}: {exc}") from exc
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"options file {p} must contain a mapping")
    if isinstance(raw.get("options"), Mapping):
        raw = raw["options"]

    config = _deep_merge(HARDCODED_DEFAULTS, _snake_keys(raw))
    if overrides:
        config = _deep_merge(config, _snake_keys(overrides))
    log.debug("Loaded options from %s", p)
    return Options.from_mapping(config)


__all__ = ["FillStyle", "Options", "HARDCODED_DEFAULTS", "MIN_HACHURE_GAP", "load_options"]
