"""Workflow orchestration for capture, configure, timelapse and inspect runs."""

from __future__ import annotations

import os
import random
import secrets
from dataclasses import dataclass
from datetime import date
from functools import partial
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional

from .capturer import Capturer, capturer_for
from .config import BASE_DIR_ENV, RepoState
from .errors import NotFoundError
from .installation import Installation
from .launcher import Launcher
from .logging import configure_logging, get_logger
from .models import CaptureJob, RunOutcome
from .platforms import Platform
from .plugins import ABORTED, PluginRegistry
from .runner import Runner
from .supervisor import ProcessSupervisor
from .timelapse import TIMELAPSE_FRAME_DURATION_MS, GifEncoder, timelapse_filename
from .vcs import SHA_LENGTH, GitInfo

DEVICE_ENV = "LOLCOMMITS_DEVICE"
DELAY_ENV = "LOLCOMMITS_DELAY"
ANIMATE_ENV = "LOLCOMMITS_ANIMATE"
STEALTH_ENV = "LOLCOMMITS_STEALTH"
FORK_ENV = "LOLCOMMITS_FORK"
DEBUG_ENV = "LOLCOMMITS_DEBUG"

TEST_REPO_NAME = "test"
PERIODS = ("today", "all")

_TRUTHY = {"1", "true", "yes", "on"}

_TEST_MESSAGES = (
    "this was all a mistake",
    "fixed the build, probably",
    "no idea why this works",
    "refactor all the things",
    "it compiles, ship it",
    "revert revert revert",
)


@dataclass(frozen=True)
class CaptureOptions:
    """Raw capture inputs as given on the command line; ``None`` means not given."""

    device: Optional[str] = None
    delay: Optional[str | int] = None
    animate: Optional[str | int] = None
    stealth: Optional[bool] = None
    fork: Optional[bool] = None
    test: bool = False
    sha: Optional[str] = None
    message: Optional[str] = None


def env_flag(environ: Mapping[str, str], key: str) -> bool:
    return environ.get(key, "").strip().lower() in _TRUTHY


def resolve_flag(option: Optional[bool], environ: Mapping[str, str], key: str) -> bool:
    if option is not None:
        return bool(option)
    return env_flag(environ, key)


def _non_negative_int(value: object) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(str(value).strip())
    except ValueError:
        return None
    return number if number >= 0 else None


def resolve_seconds(option: object, environ: Mapping[str, str], key: str) -> int:
    """Option > environment; missing or invalid input resolves to 0."""
    if option is not None and str(option).strip() != "":
        return _non_negative_int(option) or 0
    return _non_negative_int(environ.get(key)) or 0


def resolve_device(
    option: Optional[str], environ: Mapping[str, str], platform: Platform
) -> Optional[str]:
    """Explicit option, then environment, then the first detected device."""
    for candidate in (option, environ.get(DEVICE_ENV)):
        if candidate and candidate.strip():
            return candidate.strip()
    return platform.default_device()


def resolve_animate(option: object, environ: Mapping[str, str], platform: Platform) -> int:
    seconds = resolve_seconds(option, environ, ANIMATE_ENV)
    if seconds and not platform.can_animate():
        return 0
    return seconds


class Orchestrator:
    """Selects and drives one workflow per CLI invocation."""

    def __init__(
        self,
        *,
        state: RepoState | None = None,
        registry: PluginRegistry | None = None,
        supervisor: ProcessSupervisor | None = None,
        platform: Platform | None = None,
        vcs: GitInfo | None = None,
        launcher: Launcher | None = None,
        encoder: GifEncoder | None = None,
        capturer_factory: Callable[[Optional[str]], Capturer] | None = None,
        environ: Mapping[str, str] | None = None,
        echo: Callable[[str], None] = print,
        ask: Callable[[str], str] = input,
    ) -> None:
        self.environ = os.environ if environ is None else environ
        self.platform = platform or Platform()
        self.vcs = vcs or GitInfo()
        self._state = state
        self._registry = registry
        self.supervisor = supervisor or ProcessSupervisor()
        self.launcher = launcher or Launcher(self.platform)
        self.encoder = encoder
        self._capturer_factory = capturer_factory
        self.echo = echo
        self.ask = ask
        self.logger = get_logger("orchestrator")

    # ------------------------------------------------------------------
    # Collaborators

    @property
    def state(self) -> RepoState:
        if self._state is None:
            self._state = RepoState.for_repository(self.vcs, environ=self.environ)
        return self._state

    @property
    def registry(self) -> PluginRegistry:
        if self._registry is None:
            self._registry = PluginRegistry(self.state)
        return self._registry

    def capturer(self, device: Optional[str]) -> Capturer:
        if self._capturer_factory is not None:
            return self._capturer_factory(device)
        return capturer_for(self.platform, device)

    # ------------------------------------------------------------------
    # Capturing

    def build_job(self, options: CaptureOptions) -> CaptureJob:
        env = self.environ
        # outside test mode the commit details always come from the repository
        sha: Optional[str] = None
        message: Optional[str] = None
        if options.test:
            sha = options.sha or f"test-{secrets.token_hex(SHA_LENGTH)[:SHA_LENGTH]}"
            message = options.message or random.choice(_TEST_MESSAGES)
        elif options.sha or options.message:
            self.logger.warning("--sha and --msg are only used with --test; reading the commit from git")
        return CaptureJob(
            state=self.state,
            delay=resolve_seconds(options.delay, env, DELAY_ENV),
            device=resolve_device(options.device, env, self.platform),
            stealth=resolve_flag(options.stealth, env, STEALTH_ENV),
            animate=resolve_animate(options.animate, env, self.platform),
            fork=resolve_flag(options.fork, env, FORK_ENV),
            test=options.test,
            sha=sha,
            message=message,
        )

    def run_capture(self, options: CaptureOptions) -> RunOutcome:
        if options.test:
            if self._state is None:
                self._state = RepoState(TEST_REPO_NAME, environ=self.environ)
        elif not self.vcs.is_repo():
            return RunOutcome.not_found(
                "You don't appear to be in a directory of a supported vcs project."
            )

        # Directory permissions are checked before anything touches the camera.
        self.state.resolve()
        self.platform.die_on_fatal_conditions()

        job = self.build_job(options)
        self.logger.debug("Resolved capture job: %s", job)
        if not job.stealth:
            self.echo("*** Preserving this moment in history.")

        if job.fork:
            self.supervisor.run(True, partial(self._execute, job, detached=True))
            return RunOutcome.detached("Capturing in the background")

        path = self.supervisor.run(False, partial(self._execute, job))
        if job.test and not job.stealth and path is not None:
            self.launcher.open(path)
        return RunOutcome.success(path)

    def _execute(self, job: CaptureJob, *, detached: bool = False) -> Path:
        if detached:
            configure_logging(
                verbose=env_flag(self.environ, DEBUG_ENV),
                log_file=job.state.log_path,
                console=False,
            )
        runner = Runner(
            job,
            registry=self.registry,
            capturer_factory=self.capturer,
            vcs=None if job.test else self.vcs,
            encoder=self.encoder,
        )
        return runner.run()

    # ------------------------------------------------------------------
    # Configuring

    def run_configure(self, plugin_name: str | None) -> RunOutcome:
        requested = (plugin_name or "").strip()
        prompted = not requested
        if prompted:
            requested = self.registry.prompt_for_name(ask=self.ask, echo=self.echo)
        descriptor = self.registry.find(requested) if requested else None
        if descriptor is None:
            self.echo(f"Unable to find plugin: '{requested}'")
            # the prompt already showed the list
            if not prompted:
                self.echo(self.registry.plugins_list())
            return RunOutcome.not_found(f"Unable to find plugin: '{requested}'")

        settings = self.registry.configure(descriptor, self.ask)
        if settings is ABORTED:
            message = f"Aborted plugin configuration for: {descriptor.name}"
            self.echo(f"\n{message}")
            return RunOutcome.aborted(message)

        document = self.state.read_config()
        document[descriptor.name] = settings
        path = self.state.save_config(document)
        self.echo(self.state.to_yaml())
        self.echo(f"\nSuccessfully configured plugin: {descriptor.name} at path '{path}'")
        return RunOutcome.success(path)

    # ------------------------------------------------------------------
    # Timelapse

    def run_timelapse(self, period: str = "today", *, today: date | None = None) -> RunOutcome:
        if period not in PERIODS:
            raise ValueError(f"Unknown timelapse period '{period}'")
        day = today or date.today()
        images = self.state.daily_artifacts(day) if period == "today" else self.state.jpg_images()
        if not images:
            return RunOutcome.not_found(f"No lolcommits have been captured for period '{period}'")

        output = self.state.archivedir / timelapse_filename(period, day.strftime("%Y%m%d"))
        encoder = self.encoder or GifEncoder(frame_duration_ms=TIMELAPSE_FRAME_DURATION_MS)
        encoder.encode(images, output)
        self.echo(f"Timelapse with {len(images)} lolcommits saved to {output}")
        return RunOutcome.success(output)

    # ------------------------------------------------------------------
    # Inspecting

    def run_last(self) -> RunOutcome:
        latest = self.state.most_recent()
        if latest is None:
            return RunOutcome.not_found("No lolcommits have been captured for this repository yet.")
        self.launcher.open(latest)
        return RunOutcome.success(latest)

    def run_browse(self) -> RunOutcome:
        if self.state.most_recent() is None:
            return RunOutcome.not_found("No lolcommits have been captured for this repository yet.")
        self.launcher.open(self.state.loldir)
        return RunOutcome.success(self.state.loldir)

    # ------------------------------------------------------------------
    # Hook management and listings

    def hook_environment(self) -> Dict[str, str]:
        """Variables the hook exports so captures land where this shell points."""
        override = (self.environ.get(BASE_DIR_ENV) or "").strip()
        return {BASE_DIR_ENV: override} if override else {}

    def run_enable(self, arguments: List[str]) -> RunOutcome:
        installation = Installation(self.vcs)
        try:
            path = installation.install(arguments, self.hook_environment())
        except NotFoundError as exc:
            return RunOutcome.not_found(str(exc))
        self.echo(f"installed lolcommits hook to:\n  -> {path}")
        self.echo("(to remove later, you can use: lolcommits disable)")
        return RunOutcome.success(path)

    def run_disable(self) -> RunOutcome:
        installation = Installation(self.vcs)
        try:
            path = installation.uninstall()
        except NotFoundError as exc:
            return RunOutcome.not_found(str(exc))
        if path is None:
            return RunOutcome.not_found("lolcommits is not enabled for this repository")
        self.echo(f"uninstalled lolcommits hook (from {path})")
        return RunOutcome.success(path)

    def describe_plugins(self) -> str:
        lines = ["Installed plugins:"]
        for descriptor in self.registry.load_all():
            if descriptor.error is not None:
                lines.append(f" * {descriptor.name} (failed to load: {descriptor.error.reason})")
                continue
            plugin = descriptor.instance
            status = "enabled" if plugin is not None and plugin.enabled else "disabled"
            lines.append(f" * {descriptor.name} ({status})")
        return "\n".join(lines)

    def list_devices(self) -> List[str]:
        return self.platform.device_list()

    def show_config(self) -> str:
        return self.state.to_yaml()


__all__ = [
    "CaptureOptions",
    "Orchestrator",
    "resolve_animate",
    "resolve_device",
    "resolve_flag",
    "resolve_seconds",
]
