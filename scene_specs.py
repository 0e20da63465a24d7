from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

from PIL import ImageColor

from config import DEFAULT_FONT_SIZE, TEXT_LINE_SPACING
from errors import SceneBuildError


def _clamp(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(value, max_value))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class Vec2:
    x: float
    y: float


Vec2.ZERO = Vec2(0.0, 0.0)
Vec2.ONE = Vec2(1.0, 1.0)


@dataclass(frozen=True)
class Color:
    r: int
    g: int
    b: int
    a: int = 255

    @classmethod
    def rgb(cls, r: int, g: int, b: int) -> "Color":
        return cls(r, g, b, 255)

    @classmethod
    def rgba(cls, r: int, g: int, b: int, a: int) -> "Color":
        return cls(r, g, b, a)

    @classmethod
    def rgba_css(cls, r: int, g: int, b: int, a: float) -> "Color":
        """RGB in 0..255 with a CSS-style alpha in 0..1."""
        return cls(r, g, b, _round_half_up(_clamp(a, 0.0, 1.0) * 255.0))

    @classmethod
    def parse(cls, value: Union["Color", str, Sequence[int]]) -> "Color":
        if isinstance(value, Color):
            return value
        if isinstance(value, str):
            try:
                return cls(*ImageColor.getcolor(value, "RGBA"))
            except ValueError as exc:
                raise SceneBuildError(f"Unknown color '{value}'.") from exc
        try:
            channels = [int(c) for c in value]
        except (TypeError, ValueError) as exc:
            raise SceneBuildError(f"Invalid color {value!r}.") from exc
        if len(channels) not in (3, 4) or any(c < 0 or c > 255 for c in channels):
            raise SceneBuildError(f"Invalid color {value!r}: expected 3 or 4 channels in 0..255.")
        return cls(*channels)

    def with_opacity(self, opacity: float) -> "Color":
        alpha = _round_half_up(self.a * _clamp(opacity, 0.0, 1.0))
        return Color(self.r, self.g, self.b, int(_clamp(alpha, 0, 255)))

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.r, self.g, self.b, self.a)


Color.WHITE = Color(255, 255, 255, 255)
Color.BLACK = Color(0, 0, 0, 255)


@dataclass(frozen=True)
class Transform:
    pos: Vec2 = Vec2.ZERO
    scale: Vec2 = Vec2.ONE
    rotation: float = 0.0  # graus
    opacity: float = 1.0


@dataclass(frozen=True)
class Circle:
    radius: float
    color: Color


@dataclass(frozen=True)
class Rect:
    width: float
    height: float
    color: Color


@dataclass(frozen=True)
class ImageObject:
    path: str


@dataclass(frozen=True)
class TextBlock:
    text: str
    font_size: int = DEFAULT_FONT_SIZE
    color: Color = Color.BLACK
    font_path: Optional[str] = None
    line_spacing: int = TEXT_LINE_SPACING
    align: str = "center"


Shape = Union[Circle, Rect]
SceneObject = Union[Circle, Rect, ImageObject, TextBlock]
