"""Animated GIF assembly for timelapses and animated captures."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence, Tuple

from PIL import Image

from .errors import ArtifactNotFoundError
from .logging import get_logger

DEFAULT_FRAME_DURATION_MS = 100
TIMELAPSE_FRAME_DURATION_MS = 500


class GifEncoder:
    """Turns an ordered list of image files into a looping animated GIF."""

    def __init__(
        self,
        *,
        frame_duration_ms: int = DEFAULT_FRAME_DURATION_MS,
        max_size: Tuple[int, int] | None = (640, 480),
        loop: int = 0,
    ) -> None:
        self.frame_duration_ms = frame_duration_ms
        self.max_size = max_size
        self.loop = loop
        self.logger = get_logger("timelapse")

    def encode(self, frames: Sequence[Path], output: Path) -> Path:
        if not frames:
            raise ArtifactNotFoundError("No frames were supplied to build an animation")
        images = [self._load(frame) for frame in frames]
        first, rest = images[0], images[1:]
        output.parent.mkdir(parents=True, exist_ok=True)
        first.save(
            output,
            format="GIF",
            save_all=True,
            append_images=rest,
            duration=self.frame_duration_ms,
            loop=self.loop,
            optimize=False,
        )
        for image in images:
            image.close()
        self.logger.debug("Encoded %d frames into %s", len(images), output)
        return output

    def _load(self, path: Path) -> Image.Image:
        with Image.open(path) as source:
            image = source.convert("RGB")
        if self.max_size is not None:
            image.thumbnail(self.max_size)
        return image


def still_from_frame(frame: Path, output: Path) -> Path:
    """Write ``frame`` as a JPEG still."""
    with Image.open(frame) as source:
        source.convert("RGB").save(output, format="JPEG", quality=90)
    return output


def timelapse_filename(period: str, stamp: str) -> str:
    return f"timelapse-{period}-{stamp}.gif"


__all__ = [
    "DEFAULT_FRAME_DURATION_MS",
    "GifEncoder",
    "TIMELAPSE_FRAME_DURATION_MS",
    "still_from_frame",
    "timelapse_filename",
]
