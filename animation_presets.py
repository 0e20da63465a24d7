from __future__ import annotations

from typing import List, Optional, Tuple

from animation_curves import AnimatedTransform, Easing, Keyframe, Track
from scene_specs import Transform, Vec2


def _with_tracks(
    final: Transform,
    position: Optional[Track[Vec2]] = None,
    scale: Optional[Track[Vec2]] = None,
    opacity: Optional[Track[float]] = None,
) -> AnimatedTransform:
    return AnimatedTransform(
        position=position or Track.from_constant(final.pos),
        scale=scale or Track.from_constant(final.scale),
        rotation=Track.from_constant(final.rotation),
        opacity=opacity or Track.from_constant(final.opacity),
    )


def _phase_end(clip_duration: float, fraction: float) -> float:
    return max(1e-3, clip_duration * fraction)


def slide_in(
    final: Transform,
    clip_duration: float,
    direction: str,
    frame_width: int,
    frame_height: int,
    fraction: float = 0.4,
) -> AnimatedTransform:
    """Enter from outside the frame and settle on the final position."""
    direction = (direction or "left").strip().lower()
    end = _phase_end(clip_duration, fraction)
    x, y = final.pos.x, final.pos.y
    if direction == "right":
        start = Vec2(frame_width, y)
    elif direction == "up":
        start = Vec2(x, frame_height)
    elif direction == "down":
        start = Vec2(x, -frame_height)
    else:
        start = Vec2(-frame_width, y)
    position = Track([
        Keyframe(0.0, start, Easing.EASE_OUT_CUBIC),
        Keyframe(end, final.pos),
    ])
    return _with_tracks(final, position=position)


def pop_in(
    final: Transform,
    clip_duration: float,
    fraction: float = 0.3,
    start_scale: float = 0.7,
) -> AnimatedTransform:
    end = _phase_end(clip_duration, fraction)
    scale = Track([
        Keyframe(0.0, Vec2(final.scale.x * start_scale, final.scale.y * start_scale), Easing.LINEAR),
        Keyframe(end, final.scale),
    ])
    return _with_tracks(final, scale=scale)


def walk_in(
    final: Transform,
    clip_duration: float,
    fraction: float = 0.6,
    distance: float = 200.0,
    bob: float = 6.0,
    bob_period: float = 1.0 / 3.0,
) -> AnimatedTransform:
    """Walk in from the left while bobbing vertically, then stand still."""
    end = _phase_end(clip_duration, fraction)
    x, y = final.pos.x, final.pos.y

    keyframes: List[Keyframe[Vec2]] = []
    half = bob_period / 2
    step = 0
    while step * half < end:
        t = step * half
        progress = t / end
        offset = 0.0 if step % 2 == 0 else bob
        keyframes.append(
            Keyframe(t, Vec2(x - distance * (1 - progress), y + offset), Easing.EASE_IN_OUT_QUAD)
        )
        step += 1
    keyframes.append(Keyframe(end, final.pos))
    return _with_tracks(final, position=Track(keyframes))


def fade_in(final: Transform, clip_duration: float, fraction: float = 0.3) -> AnimatedTransform:
    end = _phase_end(clip_duration, fraction)
    opacity = Track([Keyframe(0.0, 0.0), Keyframe(end, final.opacity)])
    return _with_tracks(final, opacity=opacity)


def fade_out(final: Transform, clip_duration: float, fraction: float = 0.3) -> AnimatedTransform:
    start = max(0.0, clip_duration - _phase_end(clip_duration, fraction))
    opacity = Track([Keyframe(start, final.opacity), Keyframe(clip_duration, 0.0)])
    return _with_tracks(final, opacity=opacity)


def build_preset(
    name: Optional[str],
    final: Transform,
    clip_duration: float,
    frame_width: int,
    frame_height: int,
    direction: Optional[str] = None,
) -> Tuple[AnimatedTransform, List[str]]:
    warnings: List[str] = []
    normalized = (name or "").strip().lower()
    clip_duration = max(1e-3, clip_duration)

    if normalized == "slide_in":
        return slide_in(final, clip_duration, direction or "left", frame_width, frame_height), warnings
    if normalized == "pop_in":
        return pop_in(final, clip_duration), warnings
    if normalized == "walk_in":
        return walk_in(final, clip_duration), warnings
    if normalized == "fade_in":
        return fade_in(final, clip_duration), warnings
    if normalized == "fade_out":
        return fade_out(final, clip_duration), warnings

    if normalized:
        warnings.append(f"Unknown animation preset '{name}'. Using a static pose.")
    return AnimatedTransform.constant(final), warnings
