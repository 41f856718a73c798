"""CLI parser and entrypoint behaviour tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from lolcommits.cli import _build_parser, _capture_options, _hook_arguments, main
from tests._fixtures.fakes import StaticGit


@pytest.fixture
def outside_repo(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run main() from a plain directory without consulting git."""
    workdir = tmp_path / "project"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    monkeypatch.setattr("lolcommits.orchestrator.GitInfo", lambda: StaticGit(repo=False))
    return workdir


def test_cli_accepts_debug_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--debug", "last"])
    assert args.debug is True
    assert args.command == "last"


def test_cli_accepts_debug_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["capture", "-D"])
    assert args.debug is True
    assert args.command == "capture"


def test_cli_debug_defaults_to_false() -> None:
    args = _build_parser().parse_args(["plugins"])
    assert args.debug is False


def test_cli_capture_flags() -> None:
    parser = _build_parser()
    args = parser.parse_args(
        ["capture", "-d", "/dev/video2", "-a", "3", "-w", "1", "-s", "--fork", "-t", "--sha", "abc", "--msg", "hi"]
    )

    options = _capture_options(args)

    assert options.device == "/dev/video2"
    assert options.animate == "3"
    assert options.delay == "1"
    assert options.stealth is True
    assert options.fork is True
    assert options.test is True
    assert options.sha == "abc"
    assert options.message == "hi"


def test_cli_capture_flags_left_unset_defer_to_environment() -> None:
    options = _capture_options(_build_parser().parse_args(["capture"]))

    assert options.stealth is None
    assert options.fork is None
    assert options.delay is None
    assert options.test is False


def test_cli_enable_forwards_capture_flags_to_hook() -> None:
    args = _build_parser().parse_args(["enable", "--delay", "2", "--stealth", "--device", "cam"])

    assert _hook_arguments(args) == ["--device", "cam", "--delay", "2", "--stealth"]


def test_cli_configure_plugin_is_optional() -> None:
    parser = _build_parser()
    assert parser.parse_args(["configure"]).plugin == ""
    assert parser.parse_args(["configure", "loltext"]).plugin == "loltext"


def test_cli_timelapse_period_choices() -> None:
    parser = _build_parser()
    assert parser.parse_args(["timelapse"]).period == "today"
    assert parser.parse_args(["timelapse", "--period", "all"]).period == "all"
    with pytest.raises(SystemExit):
        parser.parse_args(["timelapse", "--period", "week"])


def test_cli_requires_a_command() -> None:
    with pytest.raises(SystemExit) as excinfo:
        _build_parser().parse_args([])
    assert excinfo.value.code == 2


def test_main_last_without_captures_exits_with_failure(outside_repo: Path, capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["last"])

    assert excinfo.value.code == 1
    assert "No lolcommits have been captured" in capsys.readouterr().err


def test_main_config_prints_empty_document(outside_repo: Path, capsys) -> None:
    main(["config"])

    assert capsys.readouterr().out == "{}\n"


def test_main_plugins_lists_builtins(outside_repo: Path, capsys) -> None:
    main(["plugins"])

    out = capsys.readouterr().out
    assert " * loltext (enabled)" in out
    assert " * uploldz (disabled)" in out
