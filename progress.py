from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Callable, Optional

from config import ETA_WINDOW_FRAMES, PROGRESS_EVERY_FRAMES
from console import print_safe


@dataclass(frozen=True)
class RenderProgress:
    enabled: bool = False
    log_every_frames: int = PROGRESS_EVERY_FRAMES
    show_time: bool = True
    show_eta: bool = True


@dataclass(frozen=True)
class ProgressSnapshot:
    frames_done: int
    frames_total: int
    percent: float
    rendered_secs: float
    total_secs: float
    elapsed_secs: float
    eta_secs: Optional[float]


ProgressObserver = Callable[[ProgressSnapshot, RenderProgress], None]


def format_hms(seconds: float) -> str:
    total = int(math.floor(max(0.0, seconds) + 0.5))
    h = total // 3600
    m = (total % 3600) // 60
    s = total % 60
    return f"{h:02d}:{m:02d}:{s:02d}"


def format_progress_line(snapshot: ProgressSnapshot, settings: RenderProgress) -> str:
    line = f"frames: {snapshot.frames_done}/{snapshot.frames_total} ({snapshot.percent:.1f}%)"
    if settings.show_time:
        line += f" time {format_hms(snapshot.rendered_secs)}/{format_hms(snapshot.total_secs)}"
        if settings.show_eta:
            if snapshot.eta_secs is not None:
                line += f" eta {format_hms(snapshot.eta_secs)}"
            else:
                line += f" elapsed {format_hms(snapshot.elapsed_secs)}"
    return line


def print_progress(snapshot: ProgressSnapshot, settings: RenderProgress) -> None:
    print_safe(format_progress_line(snapshot, settings))


class ProgressTracker:
    """
    Observational bookkeeping for a render run.

    The seconds-per-frame rate is re-measured only once ``window`` frames have
    gone by since the last measurement, so the ETA lags sudden rate changes
    and is unknown until the first window completes.
    """

    def __init__(
        self,
        frames_total: int,
        fps: int,
        settings: RenderProgress,
        clock: Callable[[], float] = time.perf_counter,
        window: int = ETA_WINDOW_FRAMES,
    ):
        self.frames_total = frames_total
        self.fps = fps
        self.settings = settings
        self.window = max(1, window)
        self._clock = clock
        self._started_at = clock()
        self._window_frame = 0
        self._window_started_at = self._started_at
        self._last_reported = 0
        self.per_frame_secs: Optional[float] = None

    def frame_done(self, frames_done: int) -> Optional[ProgressSnapshot]:
        if not self.settings.enabled:
            return None

        if frames_done - self._window_frame >= self.window:
            now = self._clock()
            self.per_frame_secs = (now - self._window_started_at) / (frames_done - self._window_frame)
            self._window_frame = frames_done
            self._window_started_at = now

        if frames_done - self._last_reported < max(1, self.settings.log_every_frames):
            return None
        self._last_reported = frames_done

        eta = None
        if self.per_frame_secs is not None:
            eta = max(0, self.frames_total - frames_done) * self.per_frame_secs
        return ProgressSnapshot(
            frames_done=frames_done,
            frames_total=self.frames_total,
            percent=frames_done / max(1, self.frames_total) * 100.0,
            rendered_secs=frames_done / self.fps,
            total_secs=self.frames_total / self.fps,
            elapsed_secs=self._clock() - self._started_at,
            eta_secs=eta,
        )
