"""Caption plugin: draws the commit message and sha onto the captured image."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

from PIL import Image, ImageDraw, ImageFont

from ..logging import get_logger
from .base import CaptureContext, OptionPrompt, Plugin

_MARGIN_RATIO = 0.03
_FONT_RATIO = 0.07
_MAX_MESSAGE_LINES = 3


class Loltext(Plugin):
    """Overlays the commit message (bottom) and short sha (top right)."""

    name = "loltext"
    supports_capture = True

    def __init__(self, options: Mapping[str, Any] | None = None) -> None:
        super().__init__(options)
        self.logger = get_logger("plugins.loltext")

    def default_options(self) -> Dict[str, Any]:
        return {
            "enabled": True,
            "font": "",
            "font_size": 0,
            "message_color": "white",
            "sha_color": "white",
            "stroke_color": "black",
        }

    def option_prompts(self) -> List[OptionPrompt]:
        return [
            OptionPrompt("font", "Path to a TrueType font (blank for the default)"),
            OptionPrompt("font_size", "Font size in pixels (0 scales with the image)"),
            OptionPrompt("message_color", "Commit message colour"),
            OptionPrompt("sha_color", "Commit sha colour"),
            OptionPrompt("stroke_color", "Text outline colour"),
        ]

    def valid_configuration(self, options: Mapping[str, Any] | None = None) -> bool:
        candidate = self.options if options is None else options
        size = candidate.get("font_size", 0)
        return isinstance(size, int) and size >= 0

    def run_capture(self, context: CaptureContext) -> None:
        path = context.main_image
        with Image.open(path) as source:
            image = source.convert("RGB")

        width, height = image.size
        size = int(self.options.get("font_size") or 0) or max(12, int(height * _FONT_RATIO))
        font = self._font(size)
        stroke = max(1, size // 12)
        margin = int(min(width, height) * _MARGIN_RATIO)
        draw = ImageDraw.Draw(image)

        if context.sha:
            sha_width = draw.textlength(context.sha, font=font)
            draw.text(
                (width - margin - sha_width, margin),
                context.sha,
                font=font,
                fill=self.options["sha_color"],
                stroke_width=stroke,
                stroke_fill=self.options["stroke_color"],
            )

        lines = wrap_text(draw, context.message, font, width - 2 * margin)[:_MAX_MESSAGE_LINES]
        line_height = size + stroke * 2
        top = height - margin - line_height * len(lines)
        for index, line in enumerate(lines):
            draw.text(
                (margin, top + index * line_height),
                line,
                font=font,
                fill=self.options["message_color"],
                stroke_width=stroke,
                stroke_fill=self.options["stroke_color"],
            )

        image.save(path, format="JPEG", quality=90)
        self.logger.debug("Captioned %s", path)

    def _font(self, size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
        font_path = self.options.get("font")
        if font_path:
            try:
                return ImageFont.truetype(str(font_path), size)
            except OSError:
                self.logger.warning("Font '%s' could not be loaded; using the default", font_path)
        return ImageFont.load_default(size=size)


def wrap_text(draw: ImageDraw.ImageDraw, text: str, font: Any, max_width: float) -> List[str]:
    """Greedy word wrap measured in rendered pixels."""
    lines: List[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if current and draw.textlength(candidate, font=font) > max_width:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines


__all__ = ["Loltext", "wrap_text"]
