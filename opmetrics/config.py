"""Instrumentation config loaded from YAML with environment overrides."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, ClassVar, cast

from pydantic import BaseModel, Field

DISABLE_SAMPLING_ENV = "OPMETRICS_DISABLE_SAMPLING"
SAMPLE_INTERVAL_ENV = "OPMETRICS_SAMPLE_INTERVAL_MS"


class SamplerCfg(BaseModel):
    model_config: ClassVar[dict[str, Any]] = {"extra": "forbid"}

    interval_ms: float = 100.0
    enabled: bool = True


class LoggingCfg(BaseModel):
    model_config: ClassVar[dict[str, Any]] = {"extra": "forbid"}

    level: str = "INFO"
    json_logs: bool = False
    log_dir: Path | None = None


class Config(BaseModel):
    model_config: ClassVar[dict[str, Any]] = {"extra": "forbid"}

    sampler: SamplerCfg = Field(default_factory=SamplerCfg)
    logging: LoggingCfg = Field(default_factory=LoggingCfg)


def _read_yaml(path: Path) -> dict[str, Any]:
    """Safe YAML read; returns {} if file missing/empty."""
    import yaml  # lazy import

    if not path.exists():
        return {}
    text = path.read_text(encoding="utf-8")
    data = yaml.safe_load(text)
    return data or {}


def _apply_env(data: dict[str, Any]) -> dict[str, Any]:
    sampler = dict(data.get("sampler") or {})
    if os.getenv(DISABLE_SAMPLING_ENV) == "1":
        sampler["enabled"] = False
    interval = os.getenv(SAMPLE_INTERVAL_ENV)
    if interval:
        try:
            sampler["interval_ms"] = float(interval)
        except ValueError as exc:
            msg = f"{SAMPLE_INTERVAL_ENV} must be a number, got {interval!r}"
            raise ValueError(msg) from exc
    if sampler:
        data["sampler"] = sampler
    return data


def load_config(path: str | Path | None = None) -> Config:
    """Load instrumentation config from a YAML file plus environment overrides.

    A missing or empty file yields the defaults.
    """
    data = _read_yaml(Path(path)) if path is not None else {}
    return cast(Config, Config.model_validate(_apply_env(data)))
