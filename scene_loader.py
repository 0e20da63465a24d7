from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from animation_curves import AnimatedTransform, Easing, Keyframe, Track
from animation_presets import build_preset
from config import DEFAULT_FONT_SIZE, OUT_H, OUT_W, TEXT_LINE_SPACING
from errors import SceneBuildError
from scene_specs import Circle, Color, ImageObject, Rect, SceneObject, TextBlock, Transform, Vec2
from timeline import Clip, Layer, Timeline


@dataclass
class SceneDocument:
    timeline: Timeline
    width: int = OUT_W
    height: int = OUT_H
    background: Optional[Color] = None
    warnings: List[str] = field(default_factory=list)


def _require(data: Dict[str, Any], key: str, where: str) -> Any:
    if not isinstance(data, dict):
        raise SceneBuildError(f"{where}: expected an object, got {type(data).__name__}.")
    if key not in data:
        raise SceneBuildError(f"{where}: missing '{key}'.")
    return data[key]


def _number(value: Any, where: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SceneBuildError(f"{where}: expected a number, got {value!r}.")
    return float(value)


def _positive_int(value: Any, where: str) -> int:
    number = int(_number(value, where))
    if number <= 0:
        raise SceneBuildError(f"{where}: must be > 0, got {value!r}.")
    return number


def _vec2(value: Any, where: str) -> Vec2:
    if isinstance(value, dict):
        return Vec2(_number(_require(value, "x", where), f"{where}.x"),
                    _number(_require(value, "y", where), f"{where}.y"))
    if isinstance(value, (list, tuple)):
        if len(value) != 2:
            raise SceneBuildError(f"{where}: expected [x, y], got {value!r}.")
        return Vec2(_number(value[0], f"{where}[0]"), _number(value[1], f"{where}[1]"))
    # escalar vira vetor uniforme (util para scale)
    v = _number(value, where)
    return Vec2(v, v)


def _color(value: Any, where: str) -> Color:
    try:
        return Color.parse(value)
    except SceneBuildError as exc:
        raise SceneBuildError(f"{where}: {exc}") from exc


def _is_keyframe_list(raw: Any) -> bool:
    return isinstance(raw, list) and all(isinstance(item, dict) for item in raw)


def _track(raw: Any, parse_value: Callable[[Any, str], Any], where: str) -> Track:
    if not _is_keyframe_list(raw):
        return Track.from_constant(parse_value(raw, where))

    keyframes = []
    for idx, item in enumerate(raw):
        kf_where = f"{where}[{idx}]"
        try:
            easing = Easing.parse(item.get("easing"))
        except SceneBuildError as exc:
            raise SceneBuildError(f"{kf_where}: {exc}") from exc
        keyframes.append(
            Keyframe(
                time=_number(_require(item, "time", kf_where), f"{kf_where}.time"),
                value=parse_value(_require(item, "value", kf_where), f"{kf_where}.value"),
                easing_to_next=easing,
            )
        )
    try:
        return Track(keyframes)
    except SceneBuildError as exc:
        raise SceneBuildError(f"{where}: {exc}") from exc


def _pose(raw: Optional[Dict[str, Any]], where: str) -> Transform:
    raw = raw or {}
    if not isinstance(raw, dict):
        raise SceneBuildError(f"{where}: expected an object.")
    return Transform(
        pos=_vec2(raw.get("position", [0.0, 0.0]), f"{where}.position"),
        scale=_vec2(raw.get("scale", 1.0), f"{where}.scale"),
        rotation=_number(raw.get("rotation", 0.0), f"{where}.rotation"),
        opacity=_number(raw.get("opacity", 1.0), f"{where}.opacity"),
    )


def _transform(raw: Optional[Dict[str, Any]], where: str) -> AnimatedTransform:
    if raw is None:
        return AnimatedTransform.identity()
    if not isinstance(raw, dict):
        raise SceneBuildError(f"{where}: expected an object.")
    return AnimatedTransform(
        position=_track(raw.get("position", [0.0, 0.0]), _vec2, f"{where}.position"),
        scale=_track(raw.get("scale", 1.0), _vec2, f"{where}.scale"),
        rotation=_track(raw.get("rotation", 0.0), _number, f"{where}.rotation"),
        opacity=_track(raw.get("opacity", 1.0), _number, f"{where}.opacity"),
    )


def _resolve_path(path: Any, base_dir: Optional[str], where: str) -> str:
    if not isinstance(path, str) or not path:
        raise SceneBuildError(f"{where}: expected a file path.")
    if base_dir and not os.path.isabs(path):
        return os.path.join(base_dir, path)
    return path


def _object(raw: Dict[str, Any], base_dir: Optional[str], where: str) -> SceneObject:
    kind = str(_require(raw, "type", where)).strip().lower()
    if kind == "circle":
        return Circle(
            radius=_number(_require(raw, "radius", where), f"{where}.radius"),
            color=_color(raw.get("color", "black"), f"{where}.color"),
        )
    if kind == "rect":
        return Rect(
            width=_number(_require(raw, "width", where), f"{where}.width"),
            height=_number(_require(raw, "height", where), f"{where}.height"),
            color=_color(raw.get("color", "black"), f"{where}.color"),
        )
    if kind == "image":
        return ImageObject(path=_resolve_path(_require(raw, "path", where), base_dir, f"{where}.path"))
    if kind == "text":
        font_path = raw.get("font_path")
        if font_path is not None:
            font_path = _resolve_path(font_path, base_dir, f"{where}.font_path")
        return TextBlock(
            text=str(_require(raw, "text", where)),
            font_size=_positive_int(raw.get("font_size", DEFAULT_FONT_SIZE), f"{where}.font_size"),
            color=_color(raw.get("color", "black"), f"{where}.color"),
            font_path=font_path,
            line_spacing=int(_number(raw.get("line_spacing", TEXT_LINE_SPACING), f"{where}.line_spacing")),
            align=str(raw.get("align", "center")),
        )
    raise SceneBuildError(f"{where}: unknown object type '{kind}'.")


def scene_from_dict(data: Dict[str, Any], base_dir: Optional[str] = None) -> SceneDocument:
    warnings: List[str] = []
    fps = _require(data, "fps", "scene")
    if isinstance(fps, bool) or not isinstance(fps, int):
        raise SceneBuildError(f"scene.fps: expected an integer, got {fps!r}.")
    duration = _number(_require(data, "duration", "scene"), "scene.duration")
    width = _positive_int(data.get("width", OUT_W), "scene.width")
    height = _positive_int(data.get("height", OUT_H), "scene.height")
    background = data.get("background")

    raw_layers = data.get("layers", [])
    if not isinstance(raw_layers, list):
        raise SceneBuildError("scene.layers: expected a list.")

    layers: List[Layer] = []
    for layer_idx, raw_layer in enumerate(raw_layers):
        layer_where = f"layers[{layer_idx}]"
        raw_clips = _require(raw_layer, "clips", layer_where)
        if not isinstance(raw_clips, list):
            raise SceneBuildError(f"{layer_where}.clips: expected a list.")

        clips: List[Clip] = []
        for clip_idx, raw_clip in enumerate(raw_clips):
            where = f"{layer_where}.clips[{clip_idx}]"
            start = _number(_require(raw_clip, "start", where), f"{where}.start")
            end = _number(_require(raw_clip, "end", where), f"{where}.end")
            obj = _object(_require(raw_clip, "object", where), base_dir, f"{where}.object")

            preset = raw_clip.get("preset")
            if preset is not None:
                if not isinstance(preset, dict):
                    raise SceneBuildError(f"{where}.preset: expected an object.")
                transform, preset_warnings = build_preset(
                    preset.get("name"),
                    _pose(preset.get("final"), f"{where}.preset.final"),
                    clip_duration=end - start,
                    frame_width=width,
                    frame_height=height,
                    direction=preset.get("direction"),
                )
                warnings.extend(f"{where}: {w}" for w in preset_warnings)
            else:
                transform = _transform(raw_clip.get("transform"), f"{where}.transform")

            try:
                clips.append(Clip(start, end, obj, transform, duration))
            except SceneBuildError as exc:
                raise SceneBuildError(f"{where}: {exc}") from exc

        layers.append(Layer(clips=clips, name=str(raw_layer.get("name", ""))))

    return SceneDocument(
        timeline=Timeline(fps=fps, duration=duration, layers=layers),
        width=width,
        height=height,
        background=_color(background, "scene.background") if background is not None else None,
        warnings=warnings,
    )


def load_scene(path: str) -> SceneDocument:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise SceneBuildError(f"{path}: invalid JSON ({exc}).") from exc
    return scene_from_dict(data, base_dir=os.path.dirname(os.path.abspath(path)))


def load_timeline(path: str) -> Timeline:
    return load_scene(path).timeline
