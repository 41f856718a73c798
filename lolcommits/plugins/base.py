"""Base classes for lolcommits plugins."""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, ClassVar, Dict, List, Mapping, Optional

from ..config import RepoState
from ..models import CaptureJob


class _Aborted:
    """Sentinel returned when the user cancels plugin configuration."""

    _instance: ClassVar[Optional["_Aborted"]] = None

    def __new__(cls) -> "_Aborted":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABORTED"

    def __bool__(self) -> bool:
        return False


ABORTED = _Aborted()

Prompt = Callable[[str], str]

_TRUE_ANSWERS = {"y", "yes", "true", "1", "on"}
_FALSE_ANSWERS = {"n", "no", "false", "0", "off"}


@dataclass
class CaptureContext:
    """Everything a capture hook may read or rewrite during one capture."""

    job: CaptureJob
    state: RepoState
    sha: str
    message: str
    main_image: Path
    animated_image: Optional[Path] = None
    repo_name: str = ""


@dataclass(frozen=True)
class OptionPrompt:
    """One interactive question asked while configuring a plugin."""

    key: str
    question: str


class Plugin(ABC):
    """Contract for plugins that run during capture or store configuration.

    Subclasses set ``name`` and override ``run_capture`` when they take part
    in the capture chain. Options resolve as the plugin's defaults overlaid
    by the entry stored under ``name`` in config.yml.
    """

    name: ClassVar[str] = ""
    supports_configure: ClassVar[bool] = True
    supports_capture: ClassVar[bool] = False

    def __init__(self, options: Mapping[str, Any] | None = None) -> None:
        self.options: Dict[str, Any] = {**self.default_options(), **dict(options or {})}

    def default_options(self) -> Dict[str, Any]:
        return {"enabled": False}

    def option_prompts(self) -> List[OptionPrompt]:
        return []

    @property
    def enabled(self) -> bool:
        return bool(self.options.get("enabled"))

    def valid_configuration(self, options: Mapping[str, Any] | None = None) -> bool:
        return True

    def configure_options(self, prompt: Prompt) -> Dict[str, Any] | _Aborted:
        """Ask for option values; returns the new options or ``ABORTED``."""
        enabled = _ask_bool(prompt, f"enable {self.name}? (yes/no) ", self.enabled)
        if enabled is None:
            return ABORTED
        if not enabled:
            return {"enabled": False}

        options: Dict[str, Any] = {"enabled": True}
        for item in self.option_prompts():
            current = self.options.get(item.key)
            suffix = f" [{current}]" if current not in (None, "") else ""
            answer = prompt(f"{item.question}{suffix}: ").strip()
            options[item.key] = _coerce(answer, current) if answer else current

        if not self.valid_configuration(options):
            return ABORTED
        return options

    def run_capture(self, context: CaptureContext) -> None:
        """Process the captured artifact; only called when ``supports_capture``."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} enabled={self.enabled}>"


def _ask_bool(prompt: Prompt, question: str, default: bool) -> Optional[bool]:
    answer = prompt(question).strip().lower()
    if not answer:
        return default
    if answer in _TRUE_ANSWERS:
        return True
    if answer in _FALSE_ANSWERS:
        return False
    return None


def _coerce(answer: str, current: Any) -> Any:
    if isinstance(current, bool):
        lowered = answer.lower()
        if lowered in _TRUE_ANSWERS:
            return True
        if lowered in _FALSE_ANSWERS:
            return False
        return current
    if isinstance(current, int):
        try:
            return int(answer)
        except ValueError:
            return current
    if isinstance(current, float):
        try:
            return float(answer)
        except ValueError:
            return current
    return answer


__all__ = [
    "ABORTED",
    "CaptureContext",
    "OptionPrompt",
    "Plugin",
    "Prompt",
]
