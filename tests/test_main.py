import json

import pytest

import main as cli
from config import RenderConfig
from errors import EncoderError, SampleRangeError
from progress import RenderProgress
from scene_specs import Color


class FakeEncoder:
    def __init__(self, fail_on_finish=False):
        self.frames = []
        self.finished = False
        self.aborted = False
        self.fail_on_finish = fail_on_finish

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None:
            self.aborted = True

    def write_frame(self, frame):
        self.frames.append(frame)

    def finish(self):
        if self.fail_on_finish:
            raise EncoderError("ffmpeg exited with status 1")
        self.finished = True


@pytest.fixture
def fake_encoder(monkeypatch):
    holder = {}

    def install(**kwargs):
        def start(width, height, fps, output_path, vflip=False):
            holder["args"] = (width, height, fps, output_path, vflip)
            holder["encoder"] = FakeEncoder(**kwargs)
            return holder["encoder"]

        monkeypatch.setattr(cli.FfmpegEncoder, "start", staticmethod(start))
        return holder

    return install


def test_demo_timeline_is_valid():
    timeline = cli.build_demo_timeline(RenderConfig(width=200, height=100, fps=10, duration_secs=3))
    assert timeline.fps == 10
    assert timeline.duration == 3.0
    assert [layer.name for layer in timeline.layers] == ["floor", "ball"]
    first = timeline.sample(0.0)
    assert len(list(first.clips())) == 2
    ball = first.layers[1].clips[0].transform
    assert ball.opacity == 0.0
    assert timeline.sample(2.9).layers[1].clips[0].transform.opacity == 1.0


def test_stop_flag():
    flag = cli.StopFlag()
    assert not flag()
    flag.request()
    assert flag()


def test_render_to_file_streams_every_frame(fake_encoder):
    holder = fake_encoder()
    timeline = cli.build_demo_timeline(RenderConfig(width=16, height=8, fps=5, duration_secs=2))
    frames = cli.render_to_file(
        timeline, 16, 8, Color.WHITE, "demo.mp4", 0.0, 2.0, RenderProgress(), vflip=True
    )
    encoder = holder["encoder"]
    assert frames == 10
    assert len(encoder.frames) == 10
    assert all(len(f) == 16 * 8 * 4 for f in encoder.frames)
    assert encoder.finished
    assert holder["args"] == (16, 8, 5, "demo.mp4", True)


def test_render_to_file_aborts_encoder_on_failure(fake_encoder):
    holder = fake_encoder(fail_on_finish=True)
    timeline = cli.build_demo_timeline(RenderConfig(width=8, height=8, fps=5, duration_secs=1))
    with pytest.raises(EncoderError):
        cli.render_to_file(timeline, 8, 8, Color.WHITE, "demo.mp4", 0.0, 1.0, RenderProgress())
    assert holder["encoder"].aborted


def test_main_with_scene_file(tmp_path, fake_encoder, capsys):
    holder = fake_encoder()
    scene = {
        "fps": 10,
        "duration": 1,
        "width": 8,
        "height": 6,
        "background": "black",
        "layers": [{"clips": [{"start": 0, "end": 1, "object": {"type": "circle", "radius": 2, "color": "white"}}]}],
    }
    path = tmp_path / "scene.json"
    path.write_text(json.dumps(scene), encoding="utf-8")

    status = cli.main(["--scene", str(path), "--output", str(tmp_path / "out.mp4"), "--progress", "--progress-every", "5"])
    assert status == 0
    assert len(holder["encoder"].frames) == 10
    out = capsys.readouterr().out
    assert "frames: 5/10 (50.0%)" in out
    assert "OK: 10 frame(s)" in out


def test_main_reports_bad_scene(tmp_path, capsys):
    path = tmp_path / "scene.json"
    path.write_text(json.dumps({"fps": 10, "duration": 1, "layers": [{"clips": [{"start": 0, "end": 5}]}]}), encoding="utf-8")
    assert cli.main(["--scene", str(path)]) == 1
    assert "[ERRO]" in capsys.readouterr().out


def test_main_reports_bad_window(fake_encoder, capsys):
    fake_encoder()
    status = cli.main(["--fps", "5", "--duration", "1", "--width", "8", "--height", "8", "--end", "3"])
    assert status == 1
    assert "[ERRO]" in capsys.readouterr().out


def test_render_to_file_checks_window_before_spawning(fake_encoder):
    holder = fake_encoder()
    timeline = cli.build_demo_timeline(RenderConfig(width=8, height=8, fps=5, duration_secs=2))
    with pytest.raises(SampleRangeError):
        cli.render_to_file(timeline, 8, 8, Color.WHITE, "demo.mp4", 0.0, 5.0, RenderProgress())
    assert "encoder" not in holder


@pytest.mark.parametrize("flag", ["--width", "--height"])
def test_main_rejects_non_positive_size(flag, fake_encoder, capsys):
    holder = fake_encoder()
    assert cli.main([flag, "0"]) == 1
    assert f"[ERRO] {flag}" in capsys.readouterr().out
    assert "encoder" not in holder


def test_main_reports_non_positive_scene_size(tmp_path, fake_encoder, capsys):
    fake_encoder()
    scene = {"fps": 10, "duration": 1, "width": 0, "height": -4, "layers": []}
    path = tmp_path / "scene.json"
    path.write_text(json.dumps(scene), encoding="utf-8")
    assert cli.main(["--scene", str(path)]) == 1
    assert "[ERRO] scene.width" in capsys.readouterr().out
