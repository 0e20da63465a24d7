import os
import sys

import pytest

# Ensure repo root is on sys.path
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from animation_curves import AnimatedTransform  # noqa: E402
from scene_specs import Circle, Color  # noqa: E402
from timeline import Clip, Layer, Timeline  # noqa: E402


@pytest.fixture
def red_circle():
    return Circle(radius=10, color=Color.rgb(255, 0, 0))


@pytest.fixture
def red_circle_timeline(red_circle):
    clip = Clip(0.0, 10.0, red_circle, AnimatedTransform.identity(), 10.0)
    return Timeline(fps=30, duration=10.0, layers=[Layer(clips=[clip])])


@pytest.fixture
def png_file(tmp_path):
    from PIL import Image

    path = tmp_path / "sprite.png"
    Image.new("RGBA", (4, 2), (0, 0, 255, 255)).save(path)
    return str(path)

