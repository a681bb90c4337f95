"""Lightweight timing, error and sampling instrumentation for units of work."""

from opmetrics.config import Config, LoggingCfg, SamplerCfg, load_config
from opmetrics.contracts import (
    FieldSummaryMap,
    MetricsRecord,
    ProbeReporter,
    SummaryStatistics,
    UnsupportedInputKindError,
    Work,
)
from opmetrics.decorators import instrumented
from opmetrics.instrument import Instrumented, WorkCapabilities, instrument
from opmetrics.logging import configure_logging, setup_logging
from opmetrics.reporting import LogReporter
from opmetrics.sampler import Sampler, SamplerState
from opmetrics.stats import flatten_record, summarize
from opmetrics.timing import end, start, timestamp

__all__ = [
    "Config",
    "FieldSummaryMap",
    "Instrumented",
    "LogReporter",
    "LoggingCfg",
    "MetricsRecord",
    "ProbeReporter",
    "Sampler",
    "SamplerCfg",
    "SamplerState",
    "SummaryStatistics",
    "UnsupportedInputKindError",
    "Work",
    "WorkCapabilities",
    "configure_logging",
    "end",
    "flatten_record",
    "instrument",
    "instrumented",
    "load_config",
    "setup_logging",
    "start",
    "summarize",
    "timestamp",
]
