"""Default sink for sampler probe failures."""

from __future__ import annotations

from typing import Any

import structlog


class LogReporter:
    """ProbeReporter that writes probe failures to structlog."""

    def __init__(self, logger: Any | None = None) -> None:
        self._log = logger or structlog.get_logger("opmetrics.sampler")

    def report(self, message: str) -> None:
        self._log.warning("sampler.probe_failed", detail=message)
