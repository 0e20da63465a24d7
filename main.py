import argparse
import signal
import sys
from typing import List, Optional

from animation_curves import AnimatedTransform, Easing, Keyframe, Track
from config import (
    BG_COLOR,
    DEMO_BALL_COLOR,
    DEMO_BALL_RADIUS,
    DEMO_BOUNCE_PERIOD,
    DURATION_SECS,
    ENCODER_VFLIP,
    FPS,
    OUT_H,
    OUT_W,
    OUTPUT_PATH,
    PROGRESS_EVERY_FRAMES,
    RenderConfig,
)
from console import print_safe
from encoder import FfmpegEncoder
from errors import EncoderError, RenderBackendError, SampleRangeError, SceneBuildError
from progress import RenderProgress
from renderer import FrameRenderer
from scene_loader import load_scene
from scene_specs import Circle, Color, Rect, Transform, Vec2
from timeline import Clip, Layer, Timeline

# =============================================================================
# DEMO
# =============================================================================

def build_demo_timeline(config: RenderConfig) -> Timeline:
    """Bouncing ball over a floor line, used when no scene file is given."""
    duration = float(config.duration_secs)
    floor_y = -config.height / 2 + 60 + DEMO_BALL_RADIUS
    top_y = config.height / 2 - 80 - DEMO_BALL_RADIUS
    half = DEMO_BOUNCE_PERIOD / 2

    keyframes: List[Keyframe[Vec2]] = []
    t = 0.0
    step = 0
    while t < duration:
        x = -config.width / 2 + DEMO_BALL_RADIUS + (config.width - 2 * DEMO_BALL_RADIUS) * (t / duration)
        if step % 2 == 0:
            # subida desacelera, descida acelera
            keyframes.append(Keyframe(t, Vec2(x, floor_y), Easing.EASE_OUT_CUBIC))
        else:
            keyframes.append(Keyframe(t, Vec2(x, top_y), Easing.EASE_IN_CUBIC))
        step += 1
        t = step * half

    squash = Track([
        Keyframe(0.0, Vec2(1.0, 1.0), Easing.EASE_IN_OUT_QUAD),
        Keyframe(half, Vec2(0.9, 1.1), Easing.EASE_IN_OUT_QUAD),
        Keyframe(DEMO_BOUNCE_PERIOD, Vec2(1.0, 1.0)),
    ])
    ball = AnimatedTransform(
        position=Track(keyframes),
        scale=squash,
        rotation=Track.from_constant(0.0),
        opacity=Track([Keyframe(0.0, 0.0), Keyframe(min(1.0, duration / 2), 1.0)]),
    )
    floor = AnimatedTransform.constant(Transform(pos=Vec2(0.0, -config.height / 2 + 30)))

    background = Layer(
        clips=[Clip(0.0, duration, Rect(config.width, 60, Color.parse("dimgray")), floor, duration)],
        name="floor",
    )
    foreground = Layer(
        clips=[Clip(0.0, duration, Circle(DEMO_BALL_RADIUS, Color.parse(DEMO_BALL_COLOR)), ball, duration)],
        name="ball",
    )
    return Timeline(fps=config.fps, duration=duration, layers=[background, foreground])


# =============================================================================
# RENDER
# =============================================================================

class StopFlag:
    """Set by SIGINT; the render loop checks it once per frame."""

    def __init__(self):
        self.requested = False

    def request(self, signum=None, frame=None):
        if not self.requested:
            print_safe("[INFO] Interrupcao pedida. Finalizando no proximo frame...")
        self.requested = True

    def __call__(self) -> bool:
        return self.requested


def render_to_file(
    timeline: Timeline,
    width: int,
    height: int,
    background: Color,
    output_path: str,
    start_time: float,
    end_time: float,
    progress: RenderProgress,
    vflip: bool = ENCODER_VFLIP,
    should_stop=None,
) -> int:
    timeline.validate_window(start_time, end_time)
    renderer = FrameRenderer(width, height, background)
    encoder = FfmpegEncoder.start(width, height, timeline.fps, output_path, vflip=vflip)
    with encoder:
        frames = renderer.render_timeline_rgba(
            timeline,
            start_time,
            end_time,
            on_frame=lambda t, rgba: encoder.write_frame(rgba),
            progress=progress,
            should_stop=should_stop,
        )
        encoder.finish()
    return frames


# =============================================================================
# MAIN
# =============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Renderiza uma timeline de keyframes em video via ffmpeg.")
    parser.add_argument("--scene", help="Arquivo JSON da cena. Se omitido, renderiza a demo da bola.")
    parser.add_argument("--output", default=OUTPUT_PATH, help="Arquivo de video de saida.")
    parser.add_argument("--width", type=int, help=f"Largura do frame (padrao {OUT_W} ou da cena).")
    parser.add_argument("--height", type=int, help=f"Altura do frame (padrao {OUT_H} ou da cena).")
    parser.add_argument("--fps", type=int, default=FPS, help="FPS da demo.")
    parser.add_argument("--duration", type=int, default=DURATION_SECS, help="Duracao da demo em segundos.")
    parser.add_argument("--start", type=float, default=0.0, help="Inicio da janela renderizada (s).")
    parser.add_argument("--end", type=float, help="Fim da janela renderizada (s). Padrao: duracao.")
    parser.add_argument("--background", help=f"Cor de fundo (padrao {BG_COLOR} ou da cena).")
    parser.add_argument("--progress", action="store_true", help="Mostra progresso no console.")
    parser.add_argument("--progress-every", type=int, default=PROGRESS_EVERY_FRAMES,
                        help="Intervalo de frames entre linhas de progresso.")
    parser.add_argument("--no-time", action="store_true", help="Esconde tempo renderizado/total.")
    parser.add_argument("--no-eta", action="store_true", help="Esconde o ETA.")
    parser.add_argument("--vflip", action="store_true", default=ENCODER_VFLIP,
                        help="Pede ao ffmpeg para inverter o video verticalmente.")
    args = parser.parse_args(argv)

    for name in ("width", "height"):
        value = getattr(args, name)
        if value is not None and value <= 0:
            print_safe(f"[ERRO] --{name} precisa ser > 0 (recebido {value})")
            return 1

    try:
        if args.scene:
            document = load_scene(args.scene)
            for warning in document.warnings:
                print_safe(f"[WARN] {warning}")
            timeline = document.timeline
            width = args.width or document.width
            height = args.height or document.height
            background = document.background or Color.parse(BG_COLOR)
        else:
            config = RenderConfig(
                width=args.width or OUT_W,
                height=args.height or OUT_H,
                fps=args.fps,
                duration_secs=args.duration,
                output_path=args.output,
            )
            if config.total_frames() == 0:
                print_safe("[ERRO] fps * duracao precisa ser > 0")
                return 1
            timeline = build_demo_timeline(config)
            width, height = config.width, config.height
            background = Color.parse(config.background)
        if args.background:
            background = Color.parse(args.background)
    except (SceneBuildError, OSError) as e:
        print_safe(f"[ERRO] {e}")
        return 1

    end_time = args.end if args.end is not None else timeline.duration
    progress = RenderProgress(
        enabled=args.progress,
        log_every_frames=args.progress_every,
        show_time=not args.no_time,
        show_eta=not args.no_eta,
    )

    stop = StopFlag()
    previous_handler = signal.signal(signal.SIGINT, stop.request)
    print_safe(f">> Renderizando {timeline} em {width}x{height} -> {args.output}")
    try:
        frames = render_to_file(
            timeline,
            width,
            height,
            background,
            args.output,
            start_time=args.start,
            end_time=end_time,
            progress=progress,
            vflip=args.vflip,
            should_stop=stop,
        )
    except (SampleRangeError, RenderBackendError, EncoderError) as e:
        print_safe(f"[ERRO] {e}")
        return 1
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    if stop.requested:
        print_safe(f"[WARN] Render interrompido apos {frames} frame(s).")
    print_safe(f"OK: {frames} frame(s) -> {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
