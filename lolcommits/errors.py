"""Exception hierarchy shared by lolcommits components."""

from __future__ import annotations


class LolcommitsError(RuntimeError):
    """Base class for failures surfaced to the CLI."""

    exit_code = 1


class ConfigError(LolcommitsError):
    """Raised when the configuration document cannot be parsed."""


class FatalPreconditionError(LolcommitsError):
    """A required platform dependency is missing; the invocation cannot proceed."""

    exit_code = 3


class NotFoundError(LolcommitsError):
    """A requested plugin or artifact does not exist."""


class PluginNotFoundError(NotFoundError):
    """No discovered plugin matches the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unable to find plugin: '{name}'")
        self.name = name


class ArtifactNotFoundError(NotFoundError):
    """No captured artifact is available for the requested operation."""


class SpawnFailureError(LolcommitsError):
    """A detached background process could not be started."""

    exit_code = 4


class PluginLoadError(LolcommitsError):
    """A single plugin failed to import or instantiate."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Failed to load plugin '{name}': {reason}")
        self.name = name
        self.reason = reason


class CaptureError(LolcommitsError):
    """The capture backend did not produce an image."""


__all__ = [
    "ArtifactNotFoundError",
    "CaptureError",
    "ConfigError",
    "FatalPreconditionError",
    "LolcommitsError",
    "NotFoundError",
    "PluginLoadError",
    "PluginNotFoundError",
    "SpawnFailureError",
]
