"""Instrumentation wrapper recording timing, errors and samples for a unit of work."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from opmetrics import timing
from opmetrics.config import Config
from opmetrics.contracts import (
    MetricsRecord,
    ProbeReporter,
    Statistics,
    Work,
    statistics_to_record,
)
from opmetrics.reporting import LogReporter
from opmetrics.sampler import Sampler, resolve

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkCapabilities:
    """Callables resolved once from the wrapped work.

    Methods are kept bound, so state on a work object is shared between
    ``execute``, ``metrics`` and ``sample``.
    """

    execute: Callable[..., Any]
    metrics: Callable[[BaseException | None, Any, MetricsRecord], Any] | None = None
    sample: Callable[[], Any] | None = None
    sample_interval: Callable[[], Any] | None = None

    @classmethod
    def of(cls, work: Work | Callable[..., Any]) -> WorkCapabilities:
        """Resolve capabilities from a bare callable or a work object.

        Raises:
            TypeError: If ``work`` is neither callable nor has ``execute``
        """
        execute = getattr(work, "execute", None)
        if callable(execute):
            return cls(
                execute=execute,
                metrics=_optional_callable(work, "metrics"),
                sample=_optional_callable(work, "sample"),
                sample_interval=_optional_callable(work, "sample_interval"),
            )
        if callable(work):
            return cls(execute=work)
        raise TypeError(f"work must be callable or define execute(), got {type(work)}")


def _optional_callable(work: Any, attr: str) -> Callable[..., Any] | None:
    member = getattr(work, attr, None)
    return member if callable(member) else None


def describe_error(error: BaseException) -> dict[str, str]:
    """Error descriptor stored under the top-level ``error`` key."""
    return {"name": type(error).__name__, "message": str(error)}


class Instrumented:
    """Execute a unit of work and record its metrics.

    Timing is written to a segment of ``metrics``: the record itself, or the
    nested record under ``name``. A failure additionally sets the top-level
    ``error`` field and is re-raised once the segment is complete.
    """

    def __init__(
        self,
        work: Work | Callable[..., Any],
        metrics: MetricsRecord | None = None,
        name: str | None = None,
        *,
        config: Config | None = None,
        reporter: ProbeReporter | None = None,
    ) -> None:
        """Initialize wrapper.

        Args:
            work: Callable, or object with ``execute`` and optional
                ``metrics``, ``sample`` and ``sample_interval``
            metrics: Record to update (created if omitted)
            name: Key to nest this call's fields under
            config: Sampler defaults (interval, on/off switch)
            reporter: Sink for probe and post-failure errors
        """
        self.capabilities = WorkCapabilities.of(work)
        self.metrics: MetricsRecord = metrics if metrics is not None else {}
        self.name = name
        self._config = config or Config()
        self._reporter: ProbeReporter = reporter or LogReporter()

    def _segment(self) -> MetricsRecord:
        if self.name is None:
            return self.metrics
        segment: MetricsRecord = self.metrics.setdefault(self.name, {})
        return segment

    def _start_sampler(self) -> Sampler | None:
        caps = self.capabilities
        if caps.sample is None:
            return None
        if not self._config.sampler.enabled:
            logger.debug("instrument.sampling_disabled", extra={"metrics_name": self.name})
            return None

        interval = caps.sample_interval or self._config.sampler.interval_ms
        sampler = Sampler(caps.sample, interval, reporter=self._reporter)
        sampler.start()
        return sampler

    async def execute(self, *args: Any, **kwargs: Any) -> Any:
        """Run the work, awaiting it if needed, and record metrics.

        Returns:
            The work's result

        Raises:
            Exception: The work's own exception, unchanged
        """
        segment = self._segment()
        started = timing.start(segment)["start"]
        sampler = self._start_sampler()

        try:
            result = await resolve(self.capabilities.execute(*args, **kwargs))
        except Exception as exc:
            timing.close(segment, started)
            self.metrics["error"] = describe_error(exc)
            logger.debug(
                "instrument.work_failed",
                extra={"metrics_name": self.name, "error_type": type(exc).__name__},
            )
            await self._finalize_after_failure(segment, sampler, exc)
            raise
        except BaseException:
            # cancelled: the sampling loop must not outlive the call
            timing.close(segment, started)
            if sampler is not None:
                try:
                    await sampler.cancel()
                except Exception as exc:
                    self._reporter.report(f"Sampler failed after cancellation with {exc}")
            raise

        timing.close(segment, started)
        stats = await sampler.finish() if sampler is not None else {}
        await self._merge_metrics(segment, None, result)
        self._merge_statistics(segment, stats)
        return result

    def _merge_statistics(
        self, segment: MetricsRecord, stats: Statistics | dict[str, Any]
    ) -> None:
        fields = statistics_to_record(stats)
        for key in timing.TIMING_FIELDS:
            if key in fields:
                del fields[key]
                self._reporter.report(f"Sample field {key!r} clashes with timing, dropped")
        segment.update(fields)

    async def _merge_metrics(
        self, segment: MetricsRecord, error: BaseException | None, result: Any
    ) -> None:
        if self.capabilities.metrics is None:
            return
        fields = await resolve(self.capabilities.metrics(error, result, segment))
        _merge_fields(segment, fields)

    async def _finalize_after_failure(
        self, segment: MetricsRecord, sampler: Sampler | None, error: Exception
    ) -> None:
        # the work's exception is re-raised by the caller, so failures here are
        # reported instead of replacing it
        stats: Any = {}
        if sampler is not None:
            try:
                stats = await sampler.finish()
            except Exception as exc:
                self._reporter.report(f"Sampler failed after work error with {exc}")
        try:
            await self._merge_metrics(segment, error, None)
        except Exception as exc:
            self._reporter.report(f"Metrics callback failed after work error with {exc}")
        self._merge_statistics(segment, stats)

    def execute_sync(self, *args: Any, **kwargs: Any) -> Any:
        """Synchronous variant of ``execute`` without sampling.

        Raises:
            TypeError: If the work samples, or returns an awaitable
        """
        caps = self.capabilities
        if caps.sample is not None:
            raise TypeError("work with a sample() capability must be run with execute()")

        segment = self._segment()
        started = timing.start(segment)["start"]
        try:
            result = caps.execute(*args, **kwargs)
            if inspect.isawaitable(result):
                _close_awaitable(result)
                raise TypeError("execute_sync() cannot run asynchronous work")
        except Exception as exc:
            timing.close(segment, started)
            self.metrics["error"] = describe_error(exc)
            try:
                self._merge_metrics_sync(segment, exc, None)
            except Exception as callback_exc:
                self._reporter.report(
                    f"Metrics callback failed after work error with {callback_exc}"
                )
            raise

        timing.close(segment, started)
        self._merge_metrics_sync(segment, None, result)
        return result

    def _merge_metrics_sync(
        self, segment: MetricsRecord, error: BaseException | None, result: Any
    ) -> None:
        if self.capabilities.metrics is None:
            return
        fields = self.capabilities.metrics(error, result, segment)
        if inspect.isawaitable(fields):
            _close_awaitable(fields)
            raise TypeError("execute_sync() cannot await an asynchronous metrics callback")
        _merge_fields(segment, fields)


def _merge_fields(segment: MetricsRecord, fields: Any) -> None:
    if fields is None:
        return
    if not isinstance(fields, Mapping):
        raise TypeError(f"metrics callback must return a mapping, got {type(fields)}")
    segment.update(fields)


def _close_awaitable(awaitable: Any) -> None:
    close = getattr(awaitable, "close", None)
    if callable(close):
        close()


def instrument(
    work: Work | Callable[..., Any],
    metrics: MetricsRecord | None = None,
    name: str | None = None,
    *,
    config: Config | None = None,
    reporter: ProbeReporter | None = None,
) -> Instrumented:
    """Wrap ``work`` so that each ``execute`` call records metrics.

    Example:
        metrics = {}
        result = await instrument(fetch_page, metrics, "fetch").execute(url)
        # metrics == {"fetch": {"start": ..., "end": ..., "duration": ...}}
    """
    return Instrumented(work, metrics, name, config=config, reporter=reporter)
