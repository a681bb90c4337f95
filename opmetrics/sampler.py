"""Periodic sampler that reduces probe results to summary statistics."""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, TypeAlias, TypeVar

from opmetrics.contracts import ProbeReporter, ProbeResult, Statistics
from opmetrics.reporting import LogReporter
from opmetrics.stats import summarize

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 100.0

T = TypeVar("T")

Probe: TypeAlias = "Callable[[], ProbeResult | Awaitable[ProbeResult]]"
IntervalSource: TypeAlias = "float | Callable[[], float | Awaitable[float]]"


async def resolve(value: T | Awaitable[T]) -> T:
    """Await ``value`` if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


class SamplerState(str, Enum):
    CREATED = "created"
    RUNNING = "running"
    STOPPED = "stopped"


class Sampler:
    """Invoke a probe at an interval and summarize what it returns.

    The first probe runs one interval after ``start()``. Each following
    delay is resolved again once the previous probe completes, so the
    interval may be a callable that adapts to load. A probe that raises is
    reported and skipped; the loop keeps running.
    """

    def __init__(
        self,
        probe: Probe,
        interval: IntervalSource = DEFAULT_INTERVAL_MS,
        *,
        reporter: ProbeReporter | None = None,
    ) -> None:
        """Initialize sampler.

        Args:
            probe: Zero-argument callable (sync or async) returning a sample
            interval: Milliseconds between probes, or a zero-argument callable
                (sync or async) returning it before every tick
            reporter: Sink for probe failures (defaults to structlog)
        """
        if not callable(probe):
            raise TypeError(f"probe must be callable, got {type(probe)}")
        self._probe = probe
        self._interval = interval
        self._reporter: ProbeReporter = reporter or LogReporter()
        self._samples: list[Any] = []
        self._state = SamplerState.CREATED
        self._stop = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def state(self) -> SamplerState:
        return self._state

    @property
    def samples(self) -> tuple[Any, ...]:
        """Samples gathered so far, in arrival order."""
        return tuple(self._samples)

    def start(self) -> None:
        """Start the sampling loop.

        No-op unless the sampler is freshly created and has a positive (or
        dynamic) interval. Must be called from a running event loop.
        """
        if self._state is not SamplerState.CREATED:
            return
        if not callable(self._interval) and self._interval <= 0:
            return

        self._task = asyncio.get_running_loop().create_task(self._run())
        self._state = SamplerState.RUNNING
        logger.debug("sampler.started", extra={"interval": self._interval})

    async def sample(self) -> None:
        """Invoke the probe once and record its result.

        Raises:
            Exception: Whatever the probe raises
        """
        value = await resolve(self._probe())
        self._samples.append(value)

    def get_values(self) -> Statistics | dict[str, Any]:
        """Summarize samples gathered so far without stopping the loop."""
        return summarize(self._samples)

    async def finish(self) -> Statistics | dict[str, Any]:
        """Stop sampling and summarize.

        Waits for an in-flight probe to complete before reducing.

        Returns:
            Summary statistics over all samples, ``{}`` if there are none

        Raises:
            Exception: If resolving the interval failed inside the loop
        """
        self._stop.set()
        self._state = SamplerState.STOPPED
        if self._task is not None:
            task, self._task = self._task, None
            await task
            logger.debug("sampler.stopped", extra={"samples": len(self._samples)})
        return self.get_values()

    async def cancel(self) -> None:
        """Stop sampling without waiting for an in-flight probe.

        Samples gathered so far are kept.
        """
        self._stop.set()
        self._state = SamplerState.STOPPED
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.debug("sampler.cancelled", extra={"samples": len(self._samples)})

    async def _next_delay(self) -> float:
        if callable(self._interval):
            return float(await resolve(self._interval()))
        return float(self._interval)

    async def _run(self) -> None:
        while not self._stop.is_set():
            delay_ms = await self._next_delay()
            if delay_ms <= 0:
                logger.debug("sampler.interval_disabled", extra={"interval_ms": delay_ms})
                return

            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stop.wait(), timeout=delay_ms / 1000)
            if self._stop.is_set():
                return

            try:
                await self.sample()
            except Exception as exc:
                self._reporter.report(f"Sampler probe failed with error {exc}")
