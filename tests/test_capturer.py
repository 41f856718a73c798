"""Tests for the webcam capture backends."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from lolcommits.capturer import Capturer, ImagesnapCapturer, capturer_for
from lolcommits.errors import CaptureError
from lolcommits.platforms import Platform
from tests._fixtures.fakes import write_image


class WritingRunner:
    """Records commands and writes the file named by the last argument."""

    def __init__(self, produce: bool = True) -> None:
        self.calls: list[list[str]] = []
        self.produce = produce

    def __call__(self, args, cwd=None, env=None, capture_output=False):  # type: ignore[no-untyped-def]
        self.calls.append(list(args))
        if self.produce:
            target = Path(args[-1])
            if "%" in target.name:
                for index in (1, 2):
                    write_image(target.parent / f"{index:09d}.png", fmt="PNG")
            else:
                write_image(target)
        return ""


def test_capture_still_builds_ffmpeg_command(tmp_path: Path) -> None:
    runner = WritingRunner()
    capturer = Capturer(device="/dev/video2", runner=runner)

    output = capturer.capture_still(tmp_path / "snap.jpg", delay=2)

    assert output.exists()
    assert runner.calls[0] == [
        "ffmpeg", "-y", "-loglevel", "error",
        "-f", "v4l2", "-i", "/dev/video2",
        "-ss", "2",
        "-frames:v", "1", str(tmp_path / "snap.jpg"),
    ]


def test_capture_still_without_output_raises(tmp_path: Path) -> None:
    capturer = Capturer(runner=WritingRunner(produce=False))

    with pytest.raises(CaptureError):
        capturer.capture_still(tmp_path / "snap.jpg")


def test_capture_tool_failure_raises_capture_error(tmp_path: Path) -> None:
    def runner(args, cwd=None, env=None, capture_output=False):  # type: ignore[no-untyped-def]
        raise subprocess.CalledProcessError(1, args, "", "device busy")

    with pytest.raises(CaptureError) as excinfo:
        Capturer(runner=runner).capture_still(tmp_path / "snap.jpg")
    assert "device busy" in str(excinfo.value)


def test_extract_frames_resets_directory(tmp_path: Path) -> None:
    frames_dir = tmp_path / "frames"
    frames_dir.mkdir()
    (frames_dir / "stale.png").write_bytes(b"old")
    capturer = Capturer(runner=WritingRunner())

    frames = capturer.extract_frames(tmp_path / "clip.mov", frames_dir)

    assert [frame.name for frame in frames] == ["000000001.png", "000000002.png"]


def test_capturer_for_selects_backend_per_platform() -> None:
    mac = capturer_for(Platform("Darwin"), "FaceTime")
    windows = capturer_for(Platform("Windows"), "USB Cam")
    linux = capturer_for(Platform("Linux"))

    assert isinstance(mac, ImagesnapCapturer)
    assert windows.input_format == "dshow"
    assert windows.device == "video=USB Cam"
    assert linux.input_format == "v4l2"
    assert linux.device == "/dev/video0"


def test_imagesnap_still_command(tmp_path: Path) -> None:
    runner = WritingRunner()
    capturer = ImagesnapCapturer(device="FaceTime", runner=runner)

    capturer.capture_still(tmp_path / "snap.jpg", delay=1)

    assert runner.calls[0] == [
        "imagesnap", "-q", "-w", "1", "-d", "FaceTime", str(tmp_path / "snap.jpg")
    ]
