from __future__ import annotations

from typing import Optional


class RoughSketchError(Exception):
    """Base class for all errors raised by roughsketch."""


class ParseError(RoughSketchError, ValueError):
    """Malformed SVG path data. ``offset`` is the character index of the bad token."""

    def __init__(self, message: str, offset: int, text: Optional[str] = None) -> None:
        self.offset = int(offset)
        self.text = text
        super().__init__(f"{message} (at offset {self.offset})")


class ConfigurationError(RoughSketchError, ValueError):
    """An ``Options`` value is unknown or out of range."""


class GeometryError(RoughSketchError, ValueError):
    """Input geometry cannot be processed at all (e.g. a fill for fewer than 3 vertices)."""


__all__ = ["RoughSketchError", "ParseError", "ConfigurationError", "GeometryError"]
