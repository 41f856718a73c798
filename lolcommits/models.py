"""Core data models shared across lolcommits components."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .config import RepoState


@dataclass(frozen=True)
class CaptureJob:
    """Parameters of a single capture invocation."""

    state: "RepoState"
    delay: int = 0
    device: Optional[str] = None
    stealth: bool = False
    animate: int = 0
    fork: bool = False
    test: bool = False
    sha: Optional[str] = None
    message: Optional[str] = None

    @property
    def animated(self) -> bool:
        return self.animate > 0


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    DETACHED = "detached"
    ABORTED = "aborted"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass(frozen=True)
class RunOutcome:
    """Terminal result of one orchestrator workflow."""

    status: OutcomeStatus
    path: Optional[Path] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status in (OutcomeStatus.SUCCESS, OutcomeStatus.DETACHED, OutcomeStatus.ABORTED)

    @classmethod
    def success(cls, path: Path | None = None, message: str = "") -> "RunOutcome":
        return cls(OutcomeStatus.SUCCESS, path=path, message=message)

    @classmethod
    def detached(cls, message: str = "") -> "RunOutcome":
        return cls(OutcomeStatus.DETACHED, message=message)

    @classmethod
    def aborted(cls, message: str) -> "RunOutcome":
        return cls(OutcomeStatus.ABORTED, message=message)

    @classmethod
    def not_found(cls, message: str) -> "RunOutcome":
        return cls(OutcomeStatus.NOT_FOUND, message=message)

    @classmethod
    def failed(cls, message: str) -> "RunOutcome":
        return cls(OutcomeStatus.FAILED, message=message)


__all__ = ["CaptureJob", "OutcomeStatus", "RunOutcome"]
