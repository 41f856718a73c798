"""Git adapter used to identify the repository and the commit being captured."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Optional

from .logging import get_logger
from .shell import run_command

SHA_LENGTH = 11


class GitInfo:
    """Reads repository facts through the git command line."""

    def __init__(
        self,
        path: str | Path | None = None,
        *,
        runner: Callable[..., str] | None = None,
    ) -> None:
        self.path = Path(path) if path is not None else Path.cwd()
        self._runner = runner or run_command
        self.logger = get_logger("vcs")

    def repo_root(self) -> Optional[Path]:
        output = self._query(["git", "rev-parse", "--show-toplevel"])
        if not output:
            return None
        return Path(output)

    def is_repo(self) -> bool:
        return self.repo_root() is not None

    def local_name(self) -> Optional[str]:
        root = self.repo_root()
        return root.name if root is not None else None

    def sha(self) -> str:
        return self._query(["git", "rev-parse", f"--short={SHA_LENGTH}", "HEAD"]) or ""

    def message(self) -> str:
        body = self._query(["git", "log", "-1", "--pretty=%B"]) or ""
        lines = body.splitlines()
        return lines[0].strip() if lines else ""

    def hooks_dir(self) -> Optional[Path]:
        output = self._query(["git", "rev-parse", "--git-path", "hooks"])
        if not output:
            return None
        hooks = Path(output)
        if not hooks.is_absolute():
            hooks = self.path / hooks
        return hooks

    # ------------------------------------------------------------------
    # Helpers

    def _query(self, args: list[str]) -> Optional[str]:
        try:
            output = self._runner(args, cwd=self.path, capture_output=True)
        except (subprocess.CalledProcessError, FileNotFoundError) as exc:
            self.logger.debug("git query %s failed: %s", " ".join(args[1:]), exc)
            return None
        return output.strip() or None


__all__ = ["GitInfo", "SHA_LENGTH"]
