"""structlog setup routing stdlib and structlog records through one handler."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from opmetrics.config import Config


def _shared_processors() -> list[Processor]:
    return [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _build_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        *_shared_processors(),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]


def setup_logging(
    level: str = "INFO",
    json_logs: bool = False,
    log_dir: str | Path | None = None,
) -> structlog.stdlib.BoundLogger:
    """Route structlog and stdlib logging through one handler.

    With ``log_dir`` set, NDJSON lines go to ``log_dir/app.ndjson``;
    otherwise records go to stderr, rendered as JSON or for the console.
    """
    handler: logging.Handler
    if log_dir is not None:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path / "app.ndjson", encoding="utf-8")
        json_logs = True
    else:
        handler = logging.StreamHandler(sys.stderr)

    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=[
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            *_shared_processors(),
        ],
    )
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level.upper())
    root_logger.addHandler(handler)

    structlog.configure(
        processors=_build_processors(),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return structlog.stdlib.get_logger()


def configure_logging(config: Config) -> structlog.stdlib.BoundLogger:
    """Apply the ``logging`` section of a loaded config."""
    cfg = config.logging
    return setup_logging(cfg.level, json_logs=cfg.json_logs, log_dir=cfg.log_dir)
