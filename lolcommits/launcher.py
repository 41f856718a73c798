"""Open files and folders with the operating system's preferred viewer."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, List

from .logging import get_logger
from .platforms import MAC, WINDOWS, Platform
from .shell import run_command


class Launcher:
    def __init__(
        self, platform: Platform | None = None, *, runner: Callable[..., str] | None = None
    ) -> None:
        self.platform = platform or Platform()
        self._runner = runner or run_command
        self.logger = get_logger("launcher")

    def command(self, path: Path) -> List[str]:
        if self.platform.system == MAC:
            return ["open", str(path)]
        if self.platform.system == WINDOWS:
            return ["cmd", "/c", "start", "", str(path)]
        return ["xdg-open", str(path)]

    def open(self, path: Path) -> bool:
        """Open ``path``; returns False when no viewer could be launched."""
        args = self.command(path)
        try:
            self._runner(args)
        except (subprocess.CalledProcessError, FileNotFoundError) as exc:
            self.logger.warning("Could not open %s (%s)", path, exc)
            return False
        return True


__all__ = ["Launcher"]
