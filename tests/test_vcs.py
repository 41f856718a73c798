"""Tests for the git adapter."""

from __future__ import annotations

import subprocess
from pathlib import Path

from lolcommits.vcs import GitInfo


def _runner_for(responses: dict[str, str], calls: list):
    def runner(args, cwd=None, env=None, capture_output=False):  # type: ignore[no-untyped-def]
        calls.append((list(args), Path(cwd)))
        key = " ".join(args[1:])
        if key not in responses:
            raise subprocess.CalledProcessError(128, list(args), "", "fatal: not a git repository")
        return responses[key]

    return runner


def test_git_info_reads_commit_details(tmp_path: Path) -> None:
    calls: list = []
    runner = _runner_for(
        {
            "rev-parse --show-toplevel": f"{tmp_path / 'my-project'}\n",
            "rev-parse --short=11 HEAD": "0123456789a\n",
            "log -1 --pretty=%B": "fix the flux capacitor\n\nlonger body here\n",
        },
        calls,
    )
    git = GitInfo(tmp_path, runner=runner)

    assert git.is_repo() is True
    assert git.local_name() == "my-project"
    assert git.sha() == "0123456789a"
    assert git.message() == "fix the flux capacitor"
    assert calls[0] == (["git", "rev-parse", "--show-toplevel"], tmp_path)


def test_git_info_outside_repository(tmp_path: Path) -> None:
    git = GitInfo(tmp_path, runner=_runner_for({}, []))

    assert git.is_repo() is False
    assert git.local_name() is None
    assert git.hooks_dir() is None
    assert git.sha() == ""


def test_git_info_handles_missing_git_binary(tmp_path: Path) -> None:
    def runner(args, cwd=None, env=None, capture_output=False):  # type: ignore[no-untyped-def]
        raise FileNotFoundError("git")

    assert GitInfo(tmp_path, runner=runner).repo_root() is None


def test_hooks_dir_resolves_relative_paths(tmp_path: Path) -> None:
    git = GitInfo(tmp_path, runner=_runner_for({"rev-parse --git-path hooks": ".git/hooks\n"}, []))

    assert git.hooks_dir() == tmp_path / ".git" / "hooks"
