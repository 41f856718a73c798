"""Tests for capture job execution."""

from __future__ import annotations

from typing import Any, Dict, List

import pytest
from PIL import Image

from lolcommits.config import RepoState
from lolcommits.errors import CaptureError
from lolcommits.models import CaptureJob
from lolcommits.plugins import CaptureContext, Plugin, PluginRegistry
from lolcommits.runner import Runner
from tests._fixtures.fakes import RecordingCapturer, StaticGit


class RecordingPlugin(Plugin):
    supports_capture = True

    def __init__(self, name: str, log: List[str], *, fail: bool = False) -> None:
        super().__init__()
        self.name = name  # type: ignore[misc]
        self.log = log
        self.fail = fail

    def default_options(self) -> Dict[str, Any]:
        return {"enabled": True}

    def run_capture(self, context: CaptureContext) -> None:
        self.log.append(f"{self.name}:{context.sha}:{context.main_image.name}")
        if self.fail:
            raise RuntimeError("plugin blew up")


def _registry(state: RepoState, *plugins: Plugin) -> PluginRegistry:
    registry = PluginRegistry(state, builtins={}, include_entry_points=False)
    for plugin in plugins:
        registry.register(plugin.name, lambda plugin=plugin: plugin)
    return registry


def test_still_capture_is_named_by_commit_sha(state: RepoState) -> None:
    capturer = RecordingCapturer()
    git = StaticGit(sha="0123456789a", message="tidy up")
    job = CaptureJob(state=state, delay=3)

    path = Runner(job, registry=_registry(state), capturer_factory=lambda _: capturer, vcs=git).run()

    assert path == state.loldir / "0123456789a.jpg"
    assert path.exists()
    assert not state.raw_image().exists()
    assert capturer.calls[0] == ("still", state.raw_image(), 3)
    assert git.queries == ["sha", "message"]


def test_supplied_sha_skips_vcs(state: RepoState) -> None:
    job = CaptureJob(state=state, test=True, sha="test-abc", message="hello")

    path = Runner(
        job, registry=_registry(state), capturer_factory=RecordingCapturer, vcs=None
    ).run()

    assert path.name == "test-abc.jpg"


def test_missing_commit_details_without_vcs_fails(state: RepoState) -> None:
    job = CaptureJob(state=state)

    with pytest.raises(CaptureError):
        Runner(job, registry=_registry(state), capturer_factory=RecordingCapturer).run()


def test_plugins_run_in_order_and_failures_are_isolated(state: RepoState) -> None:
    log: List[str] = []
    registry = _registry(
        state,
        RecordingPlugin("first", log),
        RecordingPlugin("broken", log, fail=True),
        RecordingPlugin("last", log),
    )
    job = CaptureJob(state=state, sha="feedbeef", message="m")

    Runner(job, registry=registry, capturer_factory=RecordingCapturer).run()

    assert log == ["first:feedbeef:feedbeef.jpg", "broken:feedbeef:feedbeef.jpg", "last:feedbeef:feedbeef.jpg"]


def test_device_is_handed_to_capturer_factory(state: RepoState) -> None:
    seen: List[Any] = []

    def factory(device):  # type: ignore[no-untyped-def]
        seen.append(device)
        return RecordingCapturer(device)

    job = CaptureJob(state=state, device="/dev/video3", sha="s", message="m")
    Runner(job, registry=_registry(state), capturer_factory=factory).run()

    assert seen == ["/dev/video3"]


def test_animated_capture_produces_gif_and_still(state: RepoState) -> None:
    capturer = RecordingCapturer(frames=4)
    job = CaptureJob(state=state, animate=2, delay=1, sha="cafe", message="m")

    path = Runner(job, registry=_registry(state), capturer_factory=lambda _: capturer).run()

    assert path == state.loldir / "cafe.gif"
    assert (state.loldir / "cafe.jpg").exists()
    with Image.open(path) as gif:
        assert gif.n_frames == 4
    assert capturer.calls[0] == ("video", state.video_loc, 2, 1)
    assert not state.frames_loc.exists()
    assert not state.video_loc.exists()
