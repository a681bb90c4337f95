"""Wall-clock timing fields for metrics records."""

from __future__ import annotations

import time

from opmetrics.contracts import MetricsRecord

TIMING_FIELDS = ("start", "end", "duration")


def timestamp() -> int:
    """Milliseconds since the Unix epoch."""
    return time.time_ns() // 1_000_000


def start(metrics: MetricsRecord | None = None) -> MetricsRecord:
    """Add a ``start`` timestamp to ``metrics``.

    Timing left over from a previous call on the same record is cleared.

    Args:
        metrics: Record to update (a new one is created if omitted)

    Returns:
        The same record
    """
    if metrics is None:
        metrics = {}
    metrics.pop("end", None)
    metrics.pop("duration", None)
    metrics["start"] = timestamp()
    return metrics


def end(metrics: MetricsRecord) -> MetricsRecord:
    """Add ``end`` and ``duration`` to a record that has been started.

    Args:
        metrics: Record previously passed to ``start``

    Returns:
        The same record

    Raises:
        ValueError: If the record has no numeric ``start`` or was already ended
    """
    started = metrics.get("start")
    if not isinstance(started, int) or isinstance(started, bool):
        raise ValueError(f"metrics must have an integer start timestamp, got {started!r}")
    if "end" in metrics:
        raise ValueError("metrics segment has already been ended")

    metrics["end"] = timestamp()
    metrics["duration"] = metrics["end"] - started
    return metrics


def close(metrics: MetricsRecord, started: int) -> MetricsRecord:
    """Write the timing of a call that began at ``started``.

    Unlike ``end``, this overwrites timing left by an overlapping call on the
    same record, keeping ``duration == end - start`` for the last writer.

    Args:
        metrics: Record to update
        started: Timestamp taken when the call began

    Returns:
        The same record
    """
    ended = timestamp()
    metrics["start"] = started
    metrics["end"] = ended
    metrics["duration"] = ended - started
    return metrics
