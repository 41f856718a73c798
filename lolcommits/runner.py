"""Executes one capture job: grab the image, then run the plugin chain."""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Callable, Optional

from .capturer import Capturer
from .errors import CaptureError
from .logging import get_logger
from .models import CaptureJob
from .plugins import CaptureContext, PluginRegistry
from .timelapse import GifEncoder, still_from_frame
from .vcs import GitInfo

CapturerFactory = Callable[[Optional[str]], Capturer]


class Runner:
    """Runs a single :class:`CaptureJob` to completion."""

    def __init__(
        self,
        job: CaptureJob,
        *,
        registry: PluginRegistry,
        capturer_factory: CapturerFactory,
        vcs: GitInfo | None = None,
        encoder: GifEncoder | None = None,
    ) -> None:
        self.job = job
        self.registry = registry
        self.capturer_factory = capturer_factory
        self.vcs = vcs
        self.encoder = encoder or GifEncoder()
        self.logger = get_logger("runner")

    def run(self) -> Path:
        job = self.job
        state = job.state
        sha, message = self._commit_details()
        self.logger.debug("Capturing %s (%s) into %s", sha, message, state.loldir)

        capturer = self.capturer_factory(job.device)
        main_image = state.main_image(sha)
        animated_image: Optional[Path] = None

        if job.animated:
            animated_image = state.main_image(sha, "gif")
            self._capture_animated(capturer, main_image, animated_image)
        else:
            raw = state.raw_image()
            capturer.capture_still(raw, delay=job.delay)
            if not raw.exists():
                raise CaptureError(f"Capture produced no image at {raw}")
            os.replace(raw, main_image)

        context = CaptureContext(
            job=job,
            state=state,
            sha=sha,
            message=message,
            main_image=main_image,
            animated_image=animated_image,
            repo_name=state.name,
        )
        self._run_plugins(context)
        self.logger.info("Captured %s", context.animated_image or context.main_image)
        return context.animated_image or context.main_image

    # ------------------------------------------------------------------
    # Helpers

    def _commit_details(self) -> tuple[str, str]:
        sha = self.job.sha
        message = self.job.message
        if sha is None or message is None:
            if self.vcs is None:
                raise CaptureError("No commit details supplied and no repository to read them from")
            sha = sha if sha is not None else self.vcs.sha()
            message = message if message is not None else self.vcs.message()
        if not sha:
            raise CaptureError("Unable to determine the commit sha to capture")
        return sha, message or ""

    def _capture_animated(self, capturer: Capturer, still: Path, animated: Path) -> None:
        state = self.job.state
        video = capturer.capture_video(state.video_loc, duration=self.job.animate, delay=self.job.delay)
        frames = capturer.extract_frames(video, state.frames_loc)
        self.encoder.encode(frames, animated)
        still_from_frame(frames[0], still)
        shutil.rmtree(state.frames_loc, ignore_errors=True)
        state.video_loc.unlink(missing_ok=True)

    def _run_plugins(self, context: CaptureContext) -> None:
        for plugin in self.registry.capture_chain():
            self.logger.debug("Running capture hook for plugin '%s'", plugin.name)
            try:
                plugin.run_capture(context)
            except Exception as exc:
                self.logger.warning("Plugin '%s' failed during capture: %s", plugin.name, exc)
                self.logger.debug("Plugin traceback", exc_info=True)


__all__ = ["CapturerFactory", "Runner"]
