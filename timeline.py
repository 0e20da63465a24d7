from __future__ import annotations

import math
from dataclasses import InitVar, dataclass, field
from typing import Iterator, List, Optional, Sequence, Set, Tuple

from animation_curves import AnimatedTransform
from errors import SampleRangeError, SceneBuildError
from scene_specs import ImageObject, SceneObject, TextBlock, Transform


@dataclass(frozen=True)
class Clip:
    start: float
    end: float
    object: SceneObject
    transform: AnimatedTransform
    duration: InitVar[float]

    def __post_init__(self, duration: float):
        if duration <= 0:
            raise SceneBuildError(f"Timeline duration must be > 0 (got {duration}).")
        if self.start < 0 or self.end <= self.start or self.end > duration:
            raise SceneBuildError(
                "Clip bounds must satisfy 0 <= start < end <= duration "
                f"(start={self.start}, end={self.end}, duration={duration})."
            )

    @property
    def length(self) -> float:
        return self.end - self.start

    def is_active(self, t: float) -> bool:
        return self.start <= t < self.end

    def local_time(self, t: float) -> Optional[float]:
        if self.is_active(t):
            return t - self.start
        return None

    def clamped_local_time(self, t: float) -> float:
        if t <= self.start:
            return 0.0
        if t >= self.end:
            return self.end - self.start
        return t - self.start


@dataclass
class Layer:
    clips: List[Clip] = field(default_factory=list)
    name: str = ""


@dataclass(frozen=True)
class SampledClip:
    layer_index: int
    clip_index: int
    object: SceneObject
    transform: Transform
    local_time: float


@dataclass(frozen=True)
class SampledLayer:
    clips: Tuple[SampledClip, ...]


@dataclass(frozen=True)
class SampledScene:
    """Snapshot of one instant. Build a new one per frame; never reuse it."""

    time: float
    layers: Tuple[SampledLayer, ...]

    def clips(self) -> Iterator[SampledClip]:
        for layer in self.layers:
            yield from layer.clips

    def image_paths(self) -> List[str]:
        seen: Set[str] = set()
        paths: List[str] = []
        for clip in self.clips():
            if isinstance(clip.object, ImageObject) and clip.object.path not in seen:
                seen.add(clip.object.path)
                paths.append(clip.object.path)
        return paths

    def font_specs(self) -> List[Tuple[Optional[str], int]]:
        seen: Set[Tuple[Optional[str], int]] = set()
        specs: List[Tuple[Optional[str], int]] = []
        for clip in self.clips():
            if isinstance(clip.object, TextBlock):
                spec = (clip.object.font_path, clip.object.font_size)
                if spec not in seen:
                    seen.add(spec)
                    specs.append(spec)
        return specs


class Timeline:
    """Layers of clips over ``[0, duration)`` sampled at a fixed ``fps``."""

    def __init__(self, fps: int, duration: float, layers: Sequence[Layer] = ()):
        if isinstance(fps, bool) or not isinstance(fps, int) or fps <= 0:
            raise SceneBuildError(f"fps must be a positive integer (got {fps!r}).")
        if duration <= 0:
            raise SceneBuildError(f"Timeline duration must be > 0 (got {duration}).")
        for layer_idx, layer in enumerate(layers):
            for clip_idx, clip in enumerate(layer.clips):
                if clip.end > duration:
                    raise SceneBuildError(
                        f"Clip {clip_idx} on layer {layer_idx} ends at {clip.end}, "
                        f"after the timeline duration {duration}."
                    )
        self.fps = fps
        self.duration = float(duration)
        self.layers: Tuple[Layer, ...] = tuple(
            Layer(clips=list(layer.clips), name=layer.name) for layer in layers
        )

    def __repr__(self) -> str:
        return f"Timeline(fps={self.fps}, duration={self.duration}, layers={len(self.layers)})"

    def clips(self) -> Iterator[Clip]:
        for layer in self.layers:
            yield from layer.clips

    def sample(self, t: float) -> SampledScene:
        if not (0.0 <= t < self.duration):
            raise SampleRangeError(
                f"Time {t} is outside the valid range [0, {self.duration})."
            )

        layers: List[SampledLayer] = []
        for layer_idx, layer in enumerate(self.layers):
            active: List[SampledClip] = []
            for clip_idx, clip in enumerate(layer.clips):
                local = clip.local_time(t)
                if local is None:
                    continue
                active.append(
                    SampledClip(
                        layer_index=layer_idx,
                        clip_index=clip_idx,
                        object=clip.object,
                        transform=clip.transform.sample(local),
                        local_time=local,
                    )
                )
            layers.append(SampledLayer(clips=tuple(active)))
        return SampledScene(time=t, layers=tuple(layers))

    def validate_window(self, start_time: float, end_time: float) -> None:
        if start_time < 0 or end_time <= start_time or end_time > self.duration:
            raise SampleRangeError(
                "Render window must satisfy 0 <= start < end <= duration "
                f"(start={start_time}, end={end_time}, duration={self.duration})."
            )

    def frame_count(self, start_time: float = 0.0, end_time: Optional[float] = None) -> int:
        end_time = self.duration if end_time is None else end_time
        # tolerancia para (end-start)*fps como 59.99999999
        return max(0, int(math.floor((end_time - start_time) * self.fps + 1e-9)))

    def frame_time(self, index: int, start_time: float = 0.0) -> float:
        return start_time + index / self.fps
