from __future__ import annotations

from PIL import Image, ImageDraw

from resources import FontHandle
from scene_specs import TextBlock

_ALIGNMENTS = ("left", "center", "right")


def render_text_sprite(block: TextBlock, font: FontHandle, opacity: float) -> Image.Image:
    """Render a text block into a tight RGBA sprite, alpha already scaled by opacity."""
    align = block.align if block.align in _ALIGNMENTS else "center"
    measure = ImageDraw.Draw(Image.new("RGBA", (1, 1)))
    left, top, right, bottom = measure.multiline_textbbox(
        (0, 0), block.text, font=font, spacing=block.line_spacing, align=align
    )
    sprite_w = max(1, right - left)
    sprite_h = max(1, bottom - top)
    sprite = Image.new("RGBA", (sprite_w, sprite_h), (0, 0, 0, 0))
    draw = ImageDraw.Draw(sprite)
    draw.multiline_text(
        (-left, -top),
        block.text,
        font=font,
        fill=block.color.with_opacity(opacity).as_tuple(),
        spacing=block.line_spacing,
        align=align,
    )
    return sprite
