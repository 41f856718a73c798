"""Subprocess helper shared by adapters that shell out to external tools."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Iterable


def run_command(
    args: Iterable[str],
    *,
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
    capture_output: bool = False,
) -> str:
    """Run ``args`` and return stdout when captured; raises on non-zero exit."""
    completed = subprocess.run(
        list(args),
        cwd=str(cwd) if cwd is not None else None,
        env=env,
        check=True,
        text=True,
        capture_output=capture_output,
    )
    if capture_output:
        return completed.stdout
    return ""


__all__ = ["run_command"]
