"""Host platform detection: capture tooling, animation support and devices."""

from __future__ import annotations

import platform as _platform
import shutil
import subprocess
from pathlib import Path
from typing import Callable, List, Optional

from .errors import FatalPreconditionError
from .logging import get_logger
from .shell import run_command

LINUX = "Linux"
MAC = "Darwin"
WINDOWS = "Windows"

_SUPPORTED = (LINUX, MAC, WINDOWS)


class Platform:
    """Answers questions about the machine lolcommits runs on."""

    def __init__(
        self,
        system: str | None = None,
        *,
        which: Callable[[str], Optional[str]] = shutil.which,
        runner: Callable[..., str] | None = None,
        video_glob_root: Path = Path("/dev"),
    ) -> None:
        self.system = system or _platform.system()
        self._which = which
        self._runner = runner or run_command
        self._video_root = video_glob_root
        self.logger = get_logger("platform")

    @property
    def is_linux(self) -> bool:
        return self.system == LINUX

    @property
    def is_mac(self) -> bool:
        return self.system == MAC

    @property
    def is_windows(self) -> bool:
        return self.system == WINDOWS

    def has_ffmpeg(self) -> bool:
        return self._which("ffmpeg") is not None

    def has_imagesnap(self) -> bool:
        return self._which("imagesnap") is not None

    def can_animate(self) -> bool:
        return self.system in _SUPPORTED and self.has_ffmpeg()

    def fatal_conditions(self) -> List[str]:
        """Human-readable reasons capture cannot work on this host."""
        problems: List[str] = []
        if self.system not in _SUPPORTED:
            problems.append(f"Unsupported platform '{self.system}'.")
            return problems
        if self.is_mac:
            if not self.has_imagesnap():
                problems.append(
                    "imagesnap was not found on PATH. Install it with `brew install imagesnap`."
                )
        elif not self.has_ffmpeg():
            problems.append(
                "ffmpeg was not found on PATH. Install ffmpeg to capture from your webcam."
            )
        return problems

    def die_on_fatal_conditions(self) -> None:
        problems = self.fatal_conditions()
        if problems:
            raise FatalPreconditionError(" ".join(problems))

    def device_list(self) -> List[str]:
        if self.is_linux:
            return sorted(str(path) for path in self._video_root.glob("video*"))
        if self.is_mac and self.has_imagesnap():
            try:
                output = self._runner(["imagesnap", "-l"], capture_output=True)
            except (subprocess.CalledProcessError, FileNotFoundError) as exc:
                self.logger.debug("imagesnap device listing failed: %s", exc)
                return []
            return _parse_imagesnap_devices(output)
        return []

    def default_device(self) -> Optional[str]:
        devices = self.device_list()
        return devices[0] if devices else None


def _parse_imagesnap_devices(output: str) -> List[str]:
    devices: List[str] = []
    for line in output.splitlines():
        stripped = line.strip()
        if stripped.startswith("=> "):
            stripped = stripped[3:]
        elif stripped.startswith("<") or not stripped or stripped.endswith(":"):
            continue
        devices.append(stripped.strip())
    return [device for device in devices if device]


__all__ = ["LINUX", "MAC", "WINDOWS", "Platform"]
