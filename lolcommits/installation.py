"""Install and remove the git post-commit hook that triggers captures."""

from __future__ import annotations

import os
import re
import shlex
from pathlib import Path
from typing import Mapping, Optional, Sequence

from jinja2 import Environment, FileSystemLoader

from .errors import NotFoundError
from .logging import get_logger
from .vcs import GitInfo

HOOK_NAME = "post-commit"
HOOK_BEGIN = "### lolcommits hook (begin) ###"
HOOK_END = "### lolcommits hook (end) ###"
_TEMPLATE_NAME = "post-commit.sh.j2"
_SHEBANG = "#!/bin/sh\n"

_BLOCK_PATTERN = re.compile(
    rf"^{re.escape(HOOK_BEGIN)}\n.*?^{re.escape(HOOK_END)}\n?", re.MULTILINE | re.DOTALL
)


class Installation:
    """Manages the lolcommits block inside ``.git/hooks/post-commit``.

    Existing hook content that is not ours is kept; only the text between
    the begin and end markers is added, replaced or removed.
    """

    def __init__(
        self,
        vcs: GitInfo,
        *,
        executable: str = "lolcommits",
        templates_dir: Path | None = None,
    ) -> None:
        self.vcs = vcs
        self.executable = executable
        self._env = _create_env(templates_dir)
        self.logger = get_logger("installation")

    def hook_path(self) -> Optional[Path]:
        hooks_dir = self.vcs.hooks_dir() if self.vcs.is_repo() else None
        return hooks_dir / HOOK_NAME if hooks_dir is not None else None

    def render(
        self, arguments: Sequence[str] = (), environment: Mapping[str, str] | None = None
    ) -> str:
        template = self._env.get_template(_TEMPLATE_NAME)
        rendered = template.render(
            begin_marker=HOOK_BEGIN,
            end_marker=HOOK_END,
            executable=self.executable,
            arguments=list(arguments),
            environment=dict(environment or {}),
        )
        return rendered.rstrip("\n") + "\n"

    def is_installed(self) -> bool:
        path = self.hook_path()
        if path is None or not path.exists():
            return False
        return HOOK_BEGIN in path.read_text(encoding="utf-8")

    def install(
        self, arguments: Sequence[str] = (), environment: Mapping[str, str] | None = None
    ) -> Path:
        path = self._require_hook_path()
        existing = path.read_text(encoding="utf-8") if path.exists() else ""
        body = strip_block(existing)
        if not body.strip():
            body = _SHEBANG
        block = self.render(arguments, environment)

        lines = body.rstrip("\n").split("\n")
        if len(lines) > 1 and lines[-1].strip() == "exit 0":
            # a trailing exit would stop the shell before our block runs
            content = "\n".join(lines[:-1]) + "\n" + block + lines[-1] + "\n"
        else:
            content = body.rstrip("\n") + "\n" + block

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        os.chmod(path, 0o755)
        self.logger.debug("Installed hook at %s", path)
        return path

    def uninstall(self) -> Optional[Path]:
        """Remove our block; returns the hook path, or None when nothing was installed."""
        path = self._require_hook_path()
        if not path.exists():
            return None
        existing = path.read_text(encoding="utf-8")
        if HOOK_BEGIN not in existing:
            return None
        remaining = strip_block(existing)
        if remaining.strip() in ("", _SHEBANG.strip()):
            path.unlink()
        else:
            path.write_text(remaining, encoding="utf-8")
        self.logger.debug("Removed hook block from %s", path)
        return path

    def _require_hook_path(self) -> Path:
        path = self.hook_path()
        if path is None:
            raise NotFoundError(
                "You don't appear to be in the base directory of a supported vcs project."
            )
        return path


def strip_block(text: str) -> str:
    return _BLOCK_PATTERN.sub("", text)


def _create_env(templates_dir: Path | None) -> Environment:
    directories = []
    if templates_dir:
        directories.append(str(templates_dir))
    directories.append(str(Path(__file__).with_name("templates")))
    env = Environment(
        loader=FileSystemLoader(directories),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["shell_quote"] = lambda value: shlex.quote(str(value))
    return env


__all__ = ["HOOK_BEGIN", "HOOK_END", "Installation", "strip_block"]
