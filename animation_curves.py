from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import singledispatch
from typing import Generic, Iterable, Sequence, Tuple, TypeVar

from errors import SceneBuildError
from scene_specs import Color, Transform, Vec2

T = TypeVar("T")


def _clamp(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(value, max_value))


def _ease_linear(t: float) -> float:
    return t


def _ease_in_quad(t: float) -> float:
    return t * t


def _ease_out_quad(t: float) -> float:
    return 1 - (1 - t) * (1 - t)


def _ease_in_out_quad(t: float) -> float:
    if t < 0.5:
        return 2 * t * t
    return 1 - (-2 * t + 2) ** 2 / 2


def _ease_in_cubic(t: float) -> float:
    return t * t * t


def _ease_out_cubic(t: float) -> float:
    return 1 - (1 - t) ** 3


def _ease_in_out_cubic(t: float) -> float:
    if t < 0.5:
        return 4 * t * t * t
    return 1 - (-2 * t + 2) ** 3 / 2


class Easing(str, Enum):
    LINEAR = "linear"
    EASE_IN_QUAD = "ease_in"
    EASE_OUT_QUAD = "ease_out"
    EASE_IN_OUT_QUAD = "ease_in_out"
    EASE_IN_CUBIC = "cubic_in"
    EASE_OUT_CUBIC = "cubic_out"
    EASE_IN_OUT_CUBIC = "cubic_in_out"

    def apply(self, u: float) -> float:
        return EASING_MAP[self](_clamp(u, 0.0, 1.0))

    @classmethod
    def parse(cls, name: "Easing | str | None") -> "Easing":
        if name is None:
            return cls.LINEAR
        if isinstance(name, Easing):
            return name
        key = str(name).strip()
        for easing in cls:
            if key == easing.value or key.upper() == easing.name:
                return easing
        raise SceneBuildError(f"Unknown easing '{name}'.")


EASING_MAP = {
    Easing.LINEAR: _ease_linear,
    Easing.EASE_IN_QUAD: _ease_in_quad,
    Easing.EASE_OUT_QUAD: _ease_out_quad,
    Easing.EASE_IN_OUT_QUAD: _ease_in_out_quad,
    Easing.EASE_IN_CUBIC: _ease_in_cubic,
    Easing.EASE_OUT_CUBIC: _ease_out_cubic,
    Easing.EASE_IN_OUT_CUBIC: _ease_in_out_cubic,
}


@singledispatch
def lerp(a, b, t: float):
    """Linear interpolation between two values of the same animatable type."""
    raise TypeError(f"Type {type(a).__name__} cannot be interpolated.")


@lerp.register(int)
@lerp.register(float)
def _lerp_number(a, b, t: float) -> float:
    return a + (b - a) * t


@lerp.register(Vec2)
def _lerp_vec2(a: Vec2, b: Vec2, t: float) -> Vec2:
    return Vec2(a.x + (b.x - a.x) * t, a.y + (b.y - a.y) * t)


@lerp.register(Color)
def _lerp_color(a: Color, b: Color, t: float) -> Color:
    def channel(x: int, y: int) -> int:
        return int(_clamp(round(x + (y - x) * t), 0, 255))

    return Color(channel(a.r, b.r), channel(a.g, b.g), channel(a.b, b.b), channel(a.a, b.a))


@dataclass(frozen=True)
class Keyframe(Generic[T]):
    time: float
    value: T
    easing_to_next: Easing = Easing.LINEAR


class Track(Generic[T]):
    """Immutable keyframe timeline; ``sample`` is defined for every real ``t``."""

    __slots__ = ("_keyframes",)

    def __init__(self, keyframes: Iterable[Keyframe[T]]):
        ordered: Tuple[Keyframe[T], ...] = tuple(keyframes)
        if not ordered:
            raise SceneBuildError("Track must have at least one keyframe.")
        for idx in range(1, len(ordered)):
            if ordered[idx].time <= ordered[idx - 1].time:
                raise SceneBuildError(
                    "Keyframe times must be strictly increasing "
                    f"(keyframe {idx} at {ordered[idx].time} after {ordered[idx - 1].time})."
                )
        self._keyframes = ordered

    @classmethod
    def from_constant(cls, value: T) -> "Track[T]":
        return cls([Keyframe(0.0, value, Easing.LINEAR)])

    @property
    def keyframes(self) -> Sequence[Keyframe[T]]:
        return self._keyframes

    @property
    def start_time(self) -> float:
        return self._keyframes[0].time

    @property
    def end_time(self) -> float:
        return self._keyframes[-1].time

    def __len__(self) -> int:
        return len(self._keyframes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Track):
            return NotImplemented
        return self._keyframes == other._keyframes

    def __hash__(self) -> int:
        return hash(self._keyframes)

    def __repr__(self) -> str:
        return f"Track({list(self._keyframes)!r})"

    def sample(self, t: float) -> T:
        first = self._keyframes[0]
        last = self._keyframes[-1]
        if t <= first.time:
            return first.value
        if t >= last.time:
            return last.value

        # poucas keyframes por track: busca linear basta
        for idx in range(len(self._keyframes) - 1):
            k0 = self._keyframes[idx]
            k1 = self._keyframes[idx + 1]
            if k0.time <= t < k1.time:
                span = k1.time - k0.time
                u = (t - k0.time) / span if span > 0 else 0.0
                return lerp(k0.value, k1.value, k0.easing_to_next.apply(u))
        return last.value


@dataclass(frozen=True)
class AnimatedTransform:
    position: Track[Vec2]
    scale: Track[Vec2]
    rotation: Track[float]
    opacity: Track[float]

    @classmethod
    def constant(cls, transform: Transform) -> "AnimatedTransform":
        return cls(
            position=Track.from_constant(transform.pos),
            scale=Track.from_constant(transform.scale),
            rotation=Track.from_constant(transform.rotation),
            opacity=Track.from_constant(transform.opacity),
        )

    @classmethod
    def identity(cls) -> "AnimatedTransform":
        return cls.constant(Transform())

    @property
    def end_time(self) -> float:
        return max(
            self.position.end_time,
            self.scale.end_time,
            self.rotation.end_time,
            self.opacity.end_time,
        )

    def sample(self, t: float) -> Transform:
        return Transform(
            pos=self.position.sample(t),
            scale=self.scale.sample(t),
            rotation=self.rotation.sample(t),
            opacity=self.opacity.sample(t),
        )
