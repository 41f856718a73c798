"""Webcam capture backends wrapping ffmpeg and imagesnap."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .errors import CaptureError
from .logging import get_logger
from .platforms import MAC, WINDOWS, Platform
from .shell import run_command

_INPUT_FORMATS = {
    MAC: ("avfoundation", "0"),
    WINDOWS: ("dshow", "video=Integrated Camera"),
}
_LINUX_INPUT = ("v4l2", "/dev/video0")

FRAME_RATE = 10
FRAME_WIDTH = 320


class Capturer:
    """Grabs stills and short clips from a webcam through ffmpeg."""

    def __init__(
        self,
        *,
        device: str | None = None,
        input_format: str = _LINUX_INPUT[0],
        default_device: str = _LINUX_INPUT[1],
        runner: Callable[..., str] | None = None,
    ) -> None:
        self.input_format = input_format
        self.device = device or default_device
        self._runner = runner or run_command
        self.logger = get_logger("capturer")

    def capture_still(self, output: Path, *, delay: int = 0) -> Path:
        args = ["ffmpeg", "-y", "-loglevel", "error", *self._input_args()]
        if delay > 0:
            args.extend(["-ss", str(delay)])
        args.extend(["-frames:v", "1", str(output)])
        self._run(args, output)
        return output

    def capture_video(self, output: Path, *, duration: int, delay: int = 0) -> Path:
        args = ["ffmpeg", "-y", "-loglevel", "error", *self._input_args()]
        if delay > 0:
            args.extend(["-ss", str(delay)])
        args.extend(["-t", str(duration), str(output)])
        self._run(args, output)
        return output

    def extract_frames(
        self,
        video: Path,
        frames_dir: Path,
        *,
        fps: int = FRAME_RATE,
        width: int = FRAME_WIDTH,
    ) -> List[Path]:
        """Explode ``video`` into numbered PNG frames inside an emptied ``frames_dir``."""
        if frames_dir.exists():
            shutil.rmtree(frames_dir)
        frames_dir.mkdir(parents=True)
        pattern = frames_dir / "%09d.png"
        self._run(
            [
                "ffmpeg",
                "-loglevel",
                "error",
                "-i",
                str(video),
                "-vf",
                f"fps={fps},scale={width}:-1:flags=lanczos",
                str(pattern),
            ],
            None,
        )
        frames = sorted(frames_dir.glob("*.png"))
        if not frames:
            raise CaptureError(f"No frames could be extracted from {video}")
        return frames

    def _input_args(self) -> List[str]:
        return ["-f", self.input_format, "-i", self.device]

    def _run(self, args: Sequence[str], output: Optional[Path]) -> None:
        self.logger.debug("Running %s", " ".join(args))
        try:
            self._runner(list(args), capture_output=True)
        except FileNotFoundError as exc:
            raise CaptureError(f"{args[0]} is not installed") from exc
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or "").strip() if isinstance(exc.stderr, str) else ""
            raise CaptureError(f"{args[0]} exited with status {exc.returncode}: {detail}") from exc
        if output is not None and (not output.exists() or output.stat().st_size == 0):
            raise CaptureError(f"Capture produced no image at {output}")


class ImagesnapCapturer(Capturer):
    """macOS stills through imagesnap; clips still go through ffmpeg/avfoundation."""

    def __init__(self, *, device: str | None = None, runner: Callable[..., str] | None = None) -> None:
        super().__init__(
            device=device,
            input_format=_INPUT_FORMATS[MAC][0],
            default_device=_INPUT_FORMATS[MAC][1],
            runner=runner,
        )
        self.still_device = device

    def capture_still(self, output: Path, *, delay: int = 0) -> Path:
        args = ["imagesnap", "-q"]
        if delay > 0:
            args.extend(["-w", str(delay)])
        if self.still_device:
            args.extend(["-d", self.still_device])
        args.append(str(output))
        self._run(args, output)
        return output


def capturer_for(
    platform: Platform, device: str | None = None, runner: Callable[..., str] | None = None
) -> Capturer:
    """Return the capture backend matching the host platform."""
    if platform.is_mac:
        return ImagesnapCapturer(device=device, runner=runner)
    if platform.system in _INPUT_FORMATS:
        input_format, default_device = _INPUT_FORMATS[platform.system]
        if device and platform.is_windows and not device.startswith("video="):
            device = f"video={device}"
        return Capturer(
            device=device, input_format=input_format, default_device=default_device, runner=runner
        )
    return Capturer(device=device, runner=runner)


__all__ = ["Capturer", "ImagesnapCapturer", "capturer_for"]
