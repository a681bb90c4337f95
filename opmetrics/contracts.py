"""Contracts for instrumentation records and summary statistics.

This module defines the value objects produced by the statistics engine,
the error raised for unsupported sample kinds, and the protocols consumed
by the sampler and the instrumentation wrapper.
"""

from __future__ import annotations

from collections.abc import Awaitable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol, TypeAlias

MetricsRecord: TypeAlias = dict[str, Any]

ProbeResult: TypeAlias = "float | Mapping[str, Any]"

_STAT_FIELDS = ("min", "max", "mean", "stdev", "median", "q1", "q3")


class UnsupportedInputKindError(TypeError):
    """Raised when samples are neither numbers nor mappings."""

    def __init__(self, kind: str) -> None:
        super().__init__(f"cannot summarize values of type {kind}")
        self.kind = kind


@dataclass(frozen=True)
class SummaryStatistics:
    """Descriptive statistics over one numeric series.

    Attributes:
        min: Smallest value
        max: Largest value
        mean: Arithmetic mean
        stdev: Sample standard deviation (NaN for a single value)
        median: 50th percentile
        q1: 25th percentile
        q3: 75th percentile
    """

    min: float
    max: float
    mean: float
    stdev: float
    median: float
    q1: float
    q3: float

    def to_dict(self) -> dict[str, float]:
        """Serialize to dictionary.

        Returns:
            Mapping of statistic name to value, in declaration order
        """
        return {name: getattr(self, name) for name in _STAT_FIELDS}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SummaryStatistics:
        """Deserialize from dictionary.

        Args:
            data: Mapping with all seven statistic fields

        Returns:
            SummaryStatistics instance
        """
        missing = [name for name in _STAT_FIELDS if name not in data]
        if missing:
            raise ValueError(f"missing statistic fields: {missing}")
        return cls(**{name: data[name] for name in _STAT_FIELDS})


FieldSummaryMap: TypeAlias = dict[str, SummaryStatistics]

Statistics: TypeAlias = "SummaryStatistics | FieldSummaryMap"


class ProbeReporter(Protocol):
    """Sink for human-readable probe failure messages."""

    def report(self, message: str) -> None: ...


class Work(Protocol):
    """Unit of work accepted by ``instrument``.

    Only ``execute`` is required. Work objects may additionally define
    ``metrics(error, result, segment)``, ``sample()`` and
    ``sample_interval()``; each may be sync or async.
    """

    def execute(self, *args: Any, **kwargs: Any) -> Any | Awaitable[Any]: ...


def statistics_to_record(stats: Statistics) -> MetricsRecord:
    """Convert a reduction result into plain fields for a MetricsRecord.

    Args:
        stats: SummaryStatistics, FieldSummaryMap or an empty mapping

    Returns:
        Flat statistic fields for a scalar summary, one nested dict per
        field for a FieldSummaryMap
    """
    if isinstance(stats, SummaryStatistics):
        return stats.to_dict()
    return {field: summary.to_dict() for field, summary in stats.items()}
