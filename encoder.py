from __future__ import annotations

import os
import subprocess
from typing import Any, Dict, List, Optional

from config import FFMPEG_BIN, FFMPEG_CODEC, FFMPEG_CRF, FFMPEG_OUT_PIX_FMT
from errors import EncoderError


def build_ffmpeg_command(
    width: int,
    height: int,
    fps: int,
    output_path: str,
    vflip: bool = False,
    crf: int = FFMPEG_CRF,
    codec: str = FFMPEG_CODEC,
    pix_fmt: str = FFMPEG_OUT_PIX_FMT,
    ffmpeg_bin: str = FFMPEG_BIN,
) -> List[str]:
    cmd = [
        ffmpeg_bin,
        "-y",
        "-loglevel",
        "error",
        "-f",
        "rawvideo",
        "-pix_fmt",
        "rgba",
        "-s",
        f"{width}x{height}",
        "-r",
        str(fps),
        "-i",
        "-",
    ]
    if vflip:
        cmd += ["-vf", "vflip"]
    cmd += [
        "-c:v",
        codec,
        "-pix_fmt",
        pix_fmt,
        "-crf",
        str(crf),
        output_path,
    ]
    return cmd


def _own_process_group() -> Dict[str, Any]:
    # Ctrl-C do terminal fica so com o render; o ffmpeg termina quando o stdin fecha
    if os.name == "nt":
        return {"creationflags": subprocess.CREATE_NEW_PROCESS_GROUP}
    return {"start_new_session": True}


class FfmpegEncoder:
    """Streams raw RGBA frames into an ffmpeg process over its stdin."""

    def __init__(self, process: subprocess.Popen, width: int, height: int, fps: int):
        self.process = process
        self.width = width
        self.height = height
        self.fps = fps
        self.frames_written = 0

    @classmethod
    def start(
        cls,
        width: int,
        height: int,
        fps: int,
        output_path: str,
        vflip: bool = False,
        crf: int = FFMPEG_CRF,
        codec: str = FFMPEG_CODEC,
        pix_fmt: str = FFMPEG_OUT_PIX_FMT,
        ffmpeg_bin: str = FFMPEG_BIN,
    ) -> "FfmpegEncoder":
        cmd = build_ffmpeg_command(
            width, height, fps, output_path,
            vflip=vflip, crf=crf, codec=codec, pix_fmt=pix_fmt, ffmpeg_bin=ffmpeg_bin,
        )
        try:
            process = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.DEVNULL,
                **_own_process_group(),
            )
        except FileNotFoundError as exc:
            raise EncoderError(f"failed to spawn {ffmpeg_bin} (is it on PATH?)") from exc
        if process.stdin is None:
            process.kill()
            raise EncoderError("failed to open ffmpeg stdin")
        return cls(process, width, height, fps)

    @property
    def frame_size(self) -> int:
        return self.width * self.height * 4

    def __enter__(self) -> "FfmpegEncoder":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.abort()

    def write_frame(self, frame: bytes) -> None:
        if len(frame) != self.frame_size:
            raise EncoderError(
                f"frame size mismatch: got {len(frame)}, expected {self.frame_size}"
            )
        stdin = self.process.stdin
        if stdin is None or stdin.closed:
            raise EncoderError("ffmpeg stdin already closed")
        try:
            stdin.write(frame)
        except (BrokenPipeError, OSError) as exc:
            raise EncoderError(f"failed to write frame {self.frames_written}: {exc}") from exc
        self.frames_written += 1

    def _close_stdin(self) -> Optional[Exception]:
        stdin = self.process.stdin
        if stdin is None or stdin.closed:
            return None
        try:
            stdin.flush()
            stdin.close()
        except (BrokenPipeError, OSError) as exc:
            return exc
        return None

    def finish(self) -> None:
        close_error = self._close_stdin()
        status = self.process.wait()
        if status != 0:
            raise EncoderError(f"ffmpeg exited with status {status}")
        if close_error is not None:
            raise EncoderError(f"failed to flush ffmpeg stdin: {close_error}") from close_error

    def abort(self, timeout: float = 5.0) -> None:
        """Best-effort shutdown used when the render run already failed."""
        self._close_stdin()
        try:
            self.process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            self.process.kill()
            self.process.wait()
