from __future__ import annotations

import math
import time
from typing import Callable, Optional, Protocol, Tuple

from PIL import Image, ImageDraw, ImageOps

from errors import CaptureError
from progress import ProgressObserver, ProgressTracker, RenderProgress, print_progress
from resources import ResourceCache
from scene_specs import Circle, Color, ImageObject, Rect, SceneObject, TextBlock, Transform, Vec2
from text_render import render_text_sprite
from timeline import SampledScene, Timeline

Point = Tuple[float, float]
FrameSink = Callable[[float, bytes], None]


class DrawingSurface(Protocol):
    width: int
    height: int

    def clear(self, color: Color) -> None: ...

    def draw_circle(self, center: Point, radius: float, color: Color) -> None: ...

    def draw_rect(self, center: Point, size: Point, rotation: float, color: Color) -> None: ...

    def draw_sprite(self, sprite: Image.Image, center: Point, scale: Vec2, rotation: float) -> None: ...

    def capture_rgba(self) -> bytes: ...


def graph_to_screen(pos: Vec2, width: int, height: int) -> Point:
    # origem no centro, y do objeto cresce para cima
    return (width / 2.0 + pos.x, height / 2.0 - pos.y)


def apply_opacity(image: Image.Image, opacity: float) -> Image.Image:
    factor = max(0.0, min(opacity, 1.0))
    if factor >= 1.0:
        return image
    output = image.copy()
    alpha = output.getchannel("A").point(lambda v: int(math.floor(v * factor + 0.5)))
    output.putalpha(alpha)
    return output


def rgba_bytes_from_image(image: Optional[Image.Image], expected_w: int, expected_h: int) -> bytes:
    if image is None:
        raise CaptureError("Surface returned no image data.")
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    width, height = image.size
    if width != expected_w or height != expected_h:
        raise CaptureError(
            f"capture size mismatch: got {width}x{height}, expected {expected_w}x{expected_h}"
        )
    data = image.tobytes()
    if len(data) != expected_w * expected_h * 4:
        raise CaptureError(
            f"capture byte length mismatch: got {len(data)}, expected {expected_w * expected_h * 4}"
        )
    return data


class PillowSurface:
    """RGBA raster surface; every draw call is alpha-composited onto the frame."""

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ValueError(f"Surface size must be positive (got {width}x{height}).")
        self.width = width
        self.height = height
        self.image = Image.new("RGBA", (width, height), (0, 0, 0, 0))

    def _blank(self) -> Image.Image:
        return Image.new("RGBA", (self.width, self.height), (0, 0, 0, 0))

    def clear(self, color: Color) -> None:
        self.image = Image.new("RGBA", (self.width, self.height), color.as_tuple())

    def draw_circle(self, center: Point, radius: float, color: Color) -> None:
        if radius <= 0 or color.a == 0:
            return
        cx, cy = center
        overlay = self._blank()
        ImageDraw.Draw(overlay).ellipse(
            (cx - radius, cy - radius, cx + radius, cy + radius), fill=color.as_tuple()
        )
        self.image.alpha_composite(overlay)

    def draw_rect(self, center: Point, size: Point, rotation: float, color: Color) -> None:
        w, h = abs(size[0]), abs(size[1])
        if w <= 0 or h <= 0 or color.a == 0:
            return
        cx, cy = center
        theta = math.radians(rotation)
        cos_t, sin_t = math.cos(theta), math.sin(theta)
        corners = []
        for dx, dy in ((-w / 2, -h / 2), (w / 2, -h / 2), (w / 2, h / 2), (-w / 2, h / 2)):
            # horario na tela (y para baixo)
            corners.append((cx + dx * cos_t - dy * sin_t, cy + dx * sin_t + dy * cos_t))
        overlay = self._blank()
        ImageDraw.Draw(overlay).polygon(corners, fill=color.as_tuple())
        self.image.alpha_composite(overlay)

    def draw_sprite(self, sprite: Image.Image, center: Point, scale: Vec2, rotation: float) -> None:
        w = int(round(sprite.width * abs(scale.x)))
        h = int(round(sprite.height * abs(scale.y)))
        if w < 1 or h < 1:
            return
        if (w, h) != sprite.size:
            sprite = sprite.resize((w, h), Image.Resampling.BICUBIC)
        if scale.x < 0:
            sprite = ImageOps.mirror(sprite)
        if scale.y < 0:
            sprite = ImageOps.flip(sprite)
        if rotation % 360:
            # Pillow gira no sentido anti-horario
            sprite = sprite.rotate(-rotation, resample=Image.Resampling.BICUBIC, expand=True)
        x = int(round(center[0] - sprite.width / 2.0))
        y = int(round(center[1] - sprite.height / 2.0))
        overlay = self._blank()
        overlay.paste(sprite, (x, y))
        self.image.alpha_composite(overlay)

    def capture_rgba(self) -> bytes:
        return rgba_bytes_from_image(self.image, self.width, self.height)


def draw_shape(surface: DrawingSurface, shape, transform: Transform) -> None:
    center = graph_to_screen(transform.pos, surface.width, surface.height)
    color = shape.color.with_opacity(transform.opacity)
    if isinstance(shape, Circle):
        surface.draw_circle(center, shape.radius * max(transform.scale.x, 0.0), color)
    else:
        size = (shape.width * transform.scale.x, shape.height * transform.scale.y)
        surface.draw_rect(center, size, transform.rotation, color)


def draw_image(
    surface: DrawingSurface, cache: ResourceCache, image: ImageObject, transform: Transform
) -> None:
    texture = apply_opacity(cache.get_texture(image.path), transform.opacity)
    center = graph_to_screen(transform.pos, surface.width, surface.height)
    surface.draw_sprite(texture, center, transform.scale, transform.rotation)


def draw_text(
    surface: DrawingSurface, cache: ResourceCache, block: TextBlock, transform: Transform
) -> None:
    font = cache.get_font(block.font_path, block.font_size)
    sprite = render_text_sprite(block, font, transform.opacity)
    center = graph_to_screen(transform.pos, surface.width, surface.height)
    surface.draw_sprite(sprite, center, transform.scale, transform.rotation)


def draw_object(
    surface: DrawingSurface, cache: ResourceCache, obj: SceneObject, transform: Transform
) -> None:
    if isinstance(obj, (Circle, Rect)):
        draw_shape(surface, obj, transform)
    elif isinstance(obj, ImageObject):
        draw_image(surface, cache, obj, transform)
    elif isinstance(obj, TextBlock):
        draw_text(surface, cache, obj, transform)
    else:
        raise TypeError(f"Unsupported scene object: {type(obj).__name__}")


class FrameRenderer:
    def __init__(
        self,
        width: int,
        height: int,
        background: Color = Color.WHITE,
        surface: Optional[DrawingSurface] = None,
        cache: Optional[ResourceCache] = None,
    ):
        self.width = width
        self.height = height
        self.background = background
        self.surface = surface if surface is not None else PillowSurface(width, height)
        self.cache = cache if cache is not None else ResourceCache()

    def render_scene_to_rgba(self, scene: SampledScene) -> bytes:
        self.cache.preload_for_scene(scene)
        self.surface.clear(self.background)
        for clip in scene.clips():
            draw_object(self.surface, self.cache, clip.object, clip.transform)
        rgba = self.surface.capture_rgba()
        if rgba is None or len(rgba) != self.width * self.height * 4:
            raise CaptureError(
                f"capture returned {0 if rgba is None else len(rgba)} bytes, "
                f"expected {self.width * self.height * 4} for {self.width}x{self.height}"
            )
        return rgba

    def render_timeline_rgba(
        self,
        timeline: Timeline,
        start_time: float,
        end_time: float,
        on_frame: FrameSink,
        progress: Optional[RenderProgress] = None,
        on_progress: Optional[ProgressObserver] = None,
        should_stop: Optional[Callable[[], bool]] = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> int:
        """
        Render ``[start_time, end_time)`` frame by frame and hand each frame to ``on_frame``.

        Returns how many frames were delivered; fewer than requested only when
        ``should_stop`` asked to stop at a frame boundary.
        """
        timeline.validate_window(start_time, end_time)
        frames = timeline.frame_count(start_time, end_time)
        settings = progress or RenderProgress()
        tracker = ProgressTracker(frames, timeline.fps, settings, clock=clock)
        observer = on_progress or print_progress

        delivered = 0
        for i in range(frames):
            if should_stop is not None and should_stop():
                break
            t = timeline.frame_time(i, start_time)
            scene = timeline.sample(t)
            rgba = self.render_scene_to_rgba(scene)
            on_frame(t, rgba)
            delivered += 1

            snapshot = tracker.frame_done(delivered)
            if snapshot is not None:
                observer(snapshot, settings)
        return delivered
