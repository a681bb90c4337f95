from __future__ import annotations

import asyncio
import math
from collections.abc import Callable
from typing import Any


class RecordingReporter:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def report(self, message: str) -> None:
        self.messages.append(message)


async def async_sleep_echo(ms: int) -> int:
    await asyncio.sleep(ms / 1000)
    return ms


def counter_probe() -> Callable[[], int]:
    counter = 0

    def probe() -> int:
        nonlocal counter
        counter += 1
        return counter

    return probe


def rounded(value: float, digits: int = 3) -> float:
    return round(value, digits)


def stats_close(actual: dict[str, Any], expected: dict[str, float]) -> bool:
    """Compare statistic dicts, treating NaN as equal to NaN."""
    if set(actual) != set(expected):
        return False
    for key, value in expected.items():
        if math.isnan(value):
            if not math.isnan(actual[key]):
                return False
        elif not math.isclose(actual[key], value, rel_tol=1e-9, abs_tol=1e-3):
            return False
    return True
