"""Tests for post-commit hook installation."""

from __future__ import annotations

import os
import stat
import sys
from pathlib import Path

import pytest

from lolcommits.errors import NotFoundError
from lolcommits.installation import HOOK_BEGIN, HOOK_END, Installation
from tests._fixtures.fakes import StaticGit


@pytest.fixture
def hooks_dir(tmp_path: Path) -> Path:
    return tmp_path / "repo" / ".git" / "hooks"


def test_install_writes_executable_hook(hooks_dir: Path) -> None:
    installation = Installation(StaticGit(hooks_dir=hooks_dir))

    path = installation.install(["--delay", "2", "--fork"])

    content = path.read_text(encoding="utf-8")
    assert path == hooks_dir / "post-commit"
    assert content.startswith("#!/bin/sh\n")
    assert HOOK_BEGIN in content and HOOK_END in content
    assert "  lolcommits capture --delay 2 --fork\n" in content
    assert '[ "$LOLCOMMITS_CAPTURE_DISABLED" != "true" ]' in content
    assert installation.is_installed()
    if not sys.platform.startswith("win"):
        assert stat.S_IMODE(os.stat(path).st_mode) & stat.S_IXUSR


def test_install_quotes_arguments_and_exports_environment(hooks_dir: Path) -> None:
    installation = Installation(StaticGit(hooks_dir=hooks_dir))

    content = installation.install(
        ["--device", "My Camera"], environment={"LOLCOMMITS_DIR": "/tmp/lol dir"}
    ).read_text(encoding="utf-8")

    assert "  export LOLCOMMITS_DIR='/tmp/lol dir'\n" in content
    assert "lolcommits capture --device 'My Camera'\n" in content


def test_install_is_idempotent(hooks_dir: Path) -> None:
    installation = Installation(StaticGit(hooks_dir=hooks_dir))

    installation.install(["--fork"])
    content = installation.install(["--stealth"]).read_text(encoding="utf-8")

    assert content.count(HOOK_BEGIN) == 1
    assert "--stealth" in content
    assert "--fork" not in content


def test_install_preserves_foreign_hook_and_trailing_exit(hooks_dir: Path) -> None:
    hooks_dir.mkdir(parents=True)
    hook = hooks_dir / "post-commit"
    hook.write_text("#!/bin/sh\necho 'other hook'\nexit 0\n", encoding="utf-8")

    Installation(StaticGit(hooks_dir=hooks_dir)).install()

    lines = hook.read_text(encoding="utf-8").splitlines()
    assert lines[1] == "echo 'other hook'"
    assert lines[-1] == "exit 0"
    assert lines.index(HOOK_BEGIN) < lines.index("exit 0")


def test_uninstall_removes_only_our_block(hooks_dir: Path) -> None:
    hooks_dir.mkdir(parents=True)
    hook = hooks_dir / "post-commit"
    hook.write_text("#!/bin/sh\necho 'other hook'\n", encoding="utf-8")
    installation = Installation(StaticGit(hooks_dir=hooks_dir))
    installation.install()

    assert installation.uninstall() == hook
    assert hook.read_text(encoding="utf-8") == "#!/bin/sh\necho 'other hook'\n"
    assert installation.is_installed() is False


def test_uninstall_deletes_hook_we_created(hooks_dir: Path) -> None:
    installation = Installation(StaticGit(hooks_dir=hooks_dir))
    path = installation.install()

    installation.uninstall()

    assert not path.exists()


def test_uninstall_without_hook_returns_none(hooks_dir: Path) -> None:
    assert Installation(StaticGit(hooks_dir=hooks_dir)).uninstall() is None


def test_install_outside_repository_is_not_found(hooks_dir: Path) -> None:
    installation = Installation(StaticGit(repo=False, hooks_dir=hooks_dir))

    with pytest.raises(NotFoundError):
        installation.install()
