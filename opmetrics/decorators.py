"""Decorators for automatic metrics instrumentation."""

from __future__ import annotations

import functools
import inspect
from collections.abc import Callable
from typing import Any, TypeVar, cast

from opmetrics.config import Config
from opmetrics.contracts import MetricsRecord, ProbeReporter
from opmetrics.instrument import Instrumented

F = TypeVar("F", bound=Callable[..., Any])


def instrumented(
    metrics: MetricsRecord,
    name: str | None = None,
    *,
    config: Config | None = None,
    reporter: ProbeReporter | None = None,
) -> Callable[[F], F]:
    """Decorator recording timing and errors of every call into ``metrics``.

    Args:
        metrics: Record updated on each call
        name: Key to nest the call's fields under
        config: Instrumentation config
        reporter: Sink for errors raised while finalizing a failed call

    Returns:
        Decorator function

    Example:
        request_metrics: dict[str, Any] = {}

        @instrumented(request_metrics, "handle_request")
        async def handle_request(self, req: Request) -> Response:
            ...
    """

    def decorator(func: F) -> F:
        if not callable(func):
            raise TypeError(f"instrumented can only decorate callable, got {type(func)}")

        wrapper_ = Instrumented(func, metrics, name, config=config, reporter=reporter)

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                return await wrapper_.execute(*args, **kwargs)

            return cast(F, async_wrapper)
        else:
            # Sync function: timing and errors only, no sampling
            @functools.wraps(func)
            def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
                return wrapper_.execute_sync(*args, **kwargs)

            return cast(F, sync_wrapper)

    return decorator
