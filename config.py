from dataclasses import dataclass

OUT_W = 800
OUT_H = 600
FPS = 30
DURATION_SECS = 60
OUTPUT_PATH = "output.mp4"
BG_COLOR = "white"

# Progresso: uma linha a cada N frames, ETA medido em janelas de N frames
PROGRESS_EVERY_FRAMES = 100
ETA_WINDOW_FRAMES = 100

FFMPEG_BIN = "ffmpeg"
FFMPEG_CODEC = "libx264"
FFMPEG_CRF = 18
FFMPEG_OUT_PIX_FMT = "yuv420p"

# A superficie Pillow ja e top-down; so ligue para backends com origem embaixo.
ENCODER_VFLIP = False

DEFAULT_FONT_SIZE = 32
TEXT_LINE_SPACING = 4

DEMO_BALL_RADIUS = 40
DEMO_BALL_COLOR = "red"
DEMO_BOUNCE_PERIOD = 1.2


@dataclass
class RenderConfig:
    width: int = OUT_W
    height: int = OUT_H
    fps: int = FPS
    duration_secs: int = DURATION_SECS
    output_path: str = OUTPUT_PATH
    background: str = BG_COLOR

    def total_frames(self) -> int:
        return max(0, self.fps * self.duration_secs)
