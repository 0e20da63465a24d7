from __future__ import annotations

import os
import warnings
from typing import Dict, Optional, Tuple, Union

from PIL import Image, ImageFont, UnidentifiedImageError

from errors import ResourceLoadError
from timeline import SampledScene

FontHandle = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]


def _key(path: Union[str, os.PathLike]) -> str:
    return os.fspath(path)


class ResourceCache:
    """Textures and fonts loaded once per render run."""

    def __init__(self):
        self._textures: Dict[str, Image.Image] = {}
        self._fonts: Dict[Tuple[Optional[str], int], FontHandle] = {}

    def __len__(self) -> int:
        return len(self._textures) + len(self._fonts)

    def clear(self) -> None:
        self._textures.clear()
        self._fonts.clear()

    def has_texture(self, path: Union[str, os.PathLike]) -> bool:
        return _key(path) in self._textures

    def load_texture(self, path: Union[str, os.PathLike]) -> Image.Image:
        key = _key(path)
        cached = self._textures.get(key)
        if cached is not None:
            return cached
        if not os.path.exists(key):
            raise ResourceLoadError(f"Image not found: {key}")
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", UserWarning)
                with Image.open(key) as img:
                    texture = img.convert("RGBA")
        except (UnidentifiedImageError, OSError) as exc:
            raise ResourceLoadError(f"Failed to load image {key}: {exc}") from exc
        self._textures[key] = texture
        return texture

    def get_texture(self, path: Union[str, os.PathLike]) -> Image.Image:
        key = _key(path)
        texture = self._textures.get(key)
        if texture is None:
            raise ResourceLoadError(f"Texture not prepared: {key}")
        return texture

    def load_font(self, font_path: Optional[str], size: int) -> FontHandle:
        key = (font_path, size)
        cached = self._fonts.get(key)
        if cached is not None:
            return cached
        try:
            if font_path is None:
                font = ImageFont.load_default(size=size)
            else:
                font = ImageFont.truetype(font_path, size=size)
        except (OSError, ValueError) as exc:
            raise ResourceLoadError(
                f"Failed to load font {font_path or '<default>'} at size {size}: {exc}"
            ) from exc
        self._fonts[key] = font
        return font

    def get_font(self, font_path: Optional[str], size: int) -> FontHandle:
        font = self._fonts.get((font_path, size))
        if font is None:
            raise ResourceLoadError(f"Font not prepared: {font_path or '<default>'} at size {size}")
        return font

    def preload_for_scene(self, scene: SampledScene) -> None:
        for path in scene.image_paths():
            self.load_texture(path)
        for font_path, size in scene.font_specs():
            self.load_font(font_path, size)
