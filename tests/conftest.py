from __future__ import annotations

import logging
from pathlib import Path

import pytest

from lolcommits.config import RepoState

_ENV_KEYS = (
    "LOLCOMMITS_DIR",
    "LOLCOMMITS_DEBUG",
    "LOLCOMMITS_DEVICE",
    "LOLCOMMITS_FORK",
    "LOLCOMMITS_STEALTH",
    "LOLCOMMITS_DELAY",
    "LOLCOMMITS_ANIMATE",
)


@pytest.fixture(autouse=True)
def lol_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point LOLCOMMITS_DIR into tmp_path and clear other overrides."""
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    home = tmp_path / "lolhome"
    monkeypatch.setenv("LOLCOMMITS_DIR", str(home))
    return home


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo CLI logging setup so caplog sees lolcommits records."""
    yield
    logger = logging.getLogger("lolcommits")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def state(lol_home: Path) -> RepoState:
    """Repository state for a repository named ``sample``."""
    return RepoState("sample", environ={"LOLCOMMITS_DIR": str(lol_home)})
