import pytest

from animation_curves import AnimatedTransform, Keyframe, Track
from errors import SampleRangeError, SceneBuildError
from scene_specs import Circle, Color, ImageObject, Rect, TextBlock, Transform, Vec2
from timeline import Clip, Layer, Timeline

RED = Circle(radius=5, color=Color.rgb(255, 0, 0))
BLUE = Rect(width=4, height=2, color=Color.rgb(0, 0, 255))


def _clip(start, end, obj=RED, transform=None, duration=10.0):
    return Clip(start, end, obj, transform or AnimatedTransform.identity(), duration)


# ---------------------------------------------------------------------------
# Clip
# ---------------------------------------------------------------------------


class TestClipConstruction:
    def test_end_before_start_rejected(self):
        with pytest.raises(SceneBuildError, match="0 <= start < end <= duration"):
            _clip(5.0, 3.0)

    def test_end_after_duration_rejected(self):
        with pytest.raises(SceneBuildError):
            _clip(0.0, 11.0)

    def test_negative_start_rejected(self):
        with pytest.raises(SceneBuildError):
            _clip(-0.5, 2.0)

    def test_zero_length_rejected(self):
        with pytest.raises(SceneBuildError):
            _clip(2.0, 2.0)

    def test_non_positive_duration_rejected(self):
        with pytest.raises(SceneBuildError, match="duration must be > 0"):
            _clip(0.0, 1.0, duration=0.0)

    def test_full_span_accepted(self):
        clip = _clip(0.0, 10.0)
        assert clip.length == 10.0


class TestClipTime:
    def test_is_active_is_half_open(self):
        clip = _clip(1.0, 2.0)
        assert clip.is_active(1.0)
        assert clip.is_active(1.999)
        assert not clip.is_active(2.0)
        assert not clip.is_active(0.999)

    def test_local_time(self):
        clip = _clip(1.0, 2.0)
        assert clip.local_time(1.25) == pytest.approx(0.25)
        assert clip.local_time(2.0) is None
        assert clip.local_time(0.5) is None

    def test_clamped_local_time(self):
        clip = _clip(1.0, 3.0)
        assert clip.clamped_local_time(0.0) == 0.0
        assert clip.clamped_local_time(2.5) == pytest.approx(1.5)
        assert clip.clamped_local_time(3.0) == 2.0
        assert clip.clamped_local_time(9.0) == 2.0


# ---------------------------------------------------------------------------
# Timeline
# ---------------------------------------------------------------------------


class TestTimelineConstruction:
    @pytest.mark.parametrize("fps", [0, -30, 29.97, True])
    def test_invalid_fps(self, fps):
        with pytest.raises(SceneBuildError, match="fps"):
            Timeline(fps=fps, duration=10.0)

    def test_invalid_duration(self):
        with pytest.raises(SceneBuildError):
            Timeline(fps=30, duration=0.0)

    def test_clip_longer_than_timeline_rejected(self):
        clip = _clip(0.0, 10.0, duration=10.0)
        with pytest.raises(SceneBuildError, match="after the timeline duration"):
            Timeline(fps=30, duration=5.0, layers=[Layer(clips=[clip])])

    def test_layers_are_copied(self):
        layer = Layer(clips=[_clip(0.0, 1.0)])
        timeline = Timeline(fps=30, duration=10.0, layers=[layer])
        layer.clips.append(_clip(1.0, 2.0))
        assert len(list(timeline.clips())) == 1


class TestTimelineSample:
    def test_constant_red_circle_active_everywhere(self, red_circle_timeline):
        for t in (0.0, 9.99):
            scene = red_circle_timeline.sample(t)
            assert len(scene.layers) == 1
            assert len(scene.layers[0].clips) == 1
            assert scene.layers[0].clips[0].object.color == Color.rgb(255, 0, 0)

    @pytest.mark.parametrize("t", [-0.001, 10.0, 25.0])
    def test_out_of_range(self, red_circle_timeline, t):
        with pytest.raises(SampleRangeError, match=r"\[0, 10.0\)") as info:
            red_circle_timeline.sample(t)
        assert str(t) in str(info.value)

    def test_touching_clips_never_overlap(self):
        layer = Layer(clips=[_clip(0.0, 2.0, RED), _clip(2.0, 4.0, BLUE)])
        timeline = Timeline(fps=30, duration=10.0, layers=[layer])
        at_boundary = timeline.sample(2.0).layers[0].clips
        assert [c.object for c in at_boundary] == [BLUE]
        assert timeline.sample(4.0).layers[0].clips == ()

    def test_draw_order_preserved(self):
        text = TextBlock("hi")
        back = Layer(clips=[_clip(0.0, 5.0, RED), _clip(0.0, 5.0, BLUE)])
        front = Layer(clips=[_clip(0.0, 5.0, text)])
        timeline = Timeline(fps=30, duration=10.0, layers=[back, front])
        scene = timeline.sample(1.0)
        assert [c.object for c in scene.clips()] == [RED, BLUE, text]
        assert [(c.layer_index, c.clip_index) for c in scene.clips()] == [(0, 0), (0, 1), (1, 0)]

    def test_transform_sampled_in_local_time(self):
        slide = AnimatedTransform(
            position=Track([Keyframe(0.0, Vec2(0, 0)), Keyframe(1.0, Vec2(100, 0))]),
            scale=Track.from_constant(Vec2.ONE),
            rotation=Track.from_constant(0.0),
            opacity=Track.from_constant(1.0),
        )
        timeline = Timeline(fps=30, duration=10.0, layers=[Layer(clips=[_clip(4.0, 6.0, RED, slide)])])
        clip = timeline.sample(4.5).layers[0].clips[0]
        assert clip.local_time == pytest.approx(0.5)
        assert clip.transform.pos == Vec2(50, 0)

    def test_sampling_is_order_independent(self, red_circle_timeline):
        forward = [red_circle_timeline.sample(t) for t in (0.1, 5.0, 9.0)]
        backward = [red_circle_timeline.sample(t) for t in (9.0, 5.0, 0.1)]
        assert forward == list(reversed(backward))

    def test_resource_listing(self):
        img = ImageObject("a.png")
        text = TextBlock("hello", font_size=20)
        layer = Layer(clips=[_clip(0.0, 5.0, img), _clip(0.0, 5.0, img), _clip(0.0, 5.0, text), _clip(6.0, 7.0, ImageObject("late.png"))])
        scene = Timeline(fps=30, duration=10.0, layers=[layer]).sample(1.0)
        assert scene.image_paths() == ["a.png"]
        assert scene.font_specs() == [(None, 20)]

    def test_static_pose(self):
        pose = Transform(pos=Vec2(3, 4), rotation=30.0)
        timeline = Timeline(
            fps=30, duration=10.0,
            layers=[Layer(clips=[_clip(0.0, 10.0, RED, AnimatedTransform.constant(pose))])],
        )
        assert timeline.sample(7.0).layers[0].clips[0].transform == pose


class TestFrameMath:
    def test_frame_count_and_times(self, red_circle_timeline):
        assert red_circle_timeline.frame_count(0.0, 2.0) == 60
        assert red_circle_timeline.frame_count() == 300
        assert red_circle_timeline.frame_time(59) == pytest.approx(59 / 30)
        assert red_circle_timeline.frame_time(3, start_time=1.0) == pytest.approx(1.1)

    @pytest.mark.parametrize("start,end", [(-1.0, 2.0), (2.0, 2.0), (3.0, 2.0), (0.0, 10.5)])
    def test_invalid_window(self, red_circle_timeline, start, end):
        with pytest.raises(SampleRangeError):
            red_circle_timeline.validate_window(start, end)
