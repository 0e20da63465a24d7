class SceneBuildError(ValueError):
    """Invalid tracks, clips, timelines or scene documents."""


class SampleRangeError(ValueError):
    """A time or time window outside the timeline's valid range."""


class RenderBackendError(RuntimeError):
    pass


class ResourceLoadError(RenderBackendError):
    pass


class CaptureError(RenderBackendError):
    pass


class EncoderError(RuntimeError):
    pass
