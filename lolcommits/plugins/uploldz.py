"""Upload plugin: POSTs each capture to an HTTP endpoint."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

import httpx

from ..logging import get_logger
from .base import CaptureContext, OptionPrompt, Plugin


class Uploldz(Plugin):
    """Sends the captured image plus commit metadata as multipart form data."""

    name = "uploldz"
    supports_capture = True

    def __init__(
        self,
        options: Mapping[str, Any] | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(options)
        self._transport = transport
        self.logger = get_logger("plugins.uploldz")

    def default_options(self) -> Dict[str, Any]:
        return {"enabled": False, "endpoint": "", "optional_key": "", "timeout": 10.0}

    def option_prompts(self) -> List[OptionPrompt]:
        return [
            OptionPrompt("endpoint", "Endpoint URL (e.g. https://example.com/uplol)"),
            OptionPrompt("optional_key", "Optional key sent with every upload"),
            OptionPrompt("timeout", "Request timeout in seconds"),
        ]

    def valid_configuration(self, options: Mapping[str, Any] | None = None) -> bool:
        candidate = self.options if options is None else options
        endpoint = str(candidate.get("endpoint") or "")
        return endpoint.startswith(("http://", "https://"))

    def run_capture(self, context: CaptureContext) -> None:
        if not self.valid_configuration():
            self.logger.warning("uploldz is enabled but has no valid endpoint; skipping upload")
            return

        upload = context.animated_image or context.main_image
        media_type = "image/gif" if upload.suffix == ".gif" else "image/jpeg"
        data = {
            "sha": context.sha,
            "repo": context.repo_name,
            "message": context.message,
        }
        if self.options.get("optional_key"):
            data["key"] = str(self.options["optional_key"])

        with httpx.Client(transport=self._transport, timeout=float(self.options["timeout"])) as client:
            with upload.open("rb") as handle:
                response = client.post(
                    str(self.options["endpoint"]),
                    data=data,
                    files={"file": (upload.name, handle, media_type)},
                )
        response.raise_for_status()
        self.logger.info("Uploaded %s to %s", upload.name, self.options["endpoint"])


__all__ = ["Uploldz"]
