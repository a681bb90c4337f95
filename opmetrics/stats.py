"""Reduce numeric samples or structured records to summary statistics."""

from __future__ import annotations

import math
import numbers
import statistics
from collections.abc import Iterable, Mapping
from typing import Any

from opmetrics.contracts import (
    FieldSummaryMap,
    Statistics,
    SummaryStatistics,
    UnsupportedInputKindError,
)


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _is_present(value: Any) -> bool:
    """Numeric and not NaN."""
    return _is_number(value) and not math.isnan(value)


def _quartiles(ordered: list[float]) -> tuple[float, float, float]:
    """First quartile, median and third quartile, interpolated linearly."""
    if len(ordered) == 1:
        return ordered[0], ordered[0], ordered[0]
    q1, median, q3 = statistics.quantiles(ordered, n=4, method="inclusive")
    return q1, median, q3


def summarize_numbers(values: Iterable[Any]) -> SummaryStatistics | None:
    """Compute SummaryStatistics over the valid numbers in ``values``.

    Args:
        values: Numbers; ``None`` and NaN entries are ignored

    Returns:
        SummaryStatistics, or None when no valid value remains
    """
    series = [value for value in values if _is_present(value)]
    if not series:
        return None

    ordered = sorted(series)
    stdev = statistics.stdev(ordered) if len(ordered) > 1 else math.nan
    q1, median, q3 = _quartiles(ordered)
    return SummaryStatistics(
        min=ordered[0],
        max=ordered[-1],
        mean=statistics.fmean(ordered),
        stdev=stdev,
        median=median,
        q1=q1,
        q3=q3,
    )


def flatten_record(record: Mapping[str, Any], separator: str = "_") -> dict[str, Any]:
    """Flatten nested mappings and lists into a single level.

    Nested paths are joined with ``separator``, and periods inside keys are
    replaced as well, so ``{"mem": {"usage": 1}}`` and ``{"mem.usage": 1}``
    both become ``{"mem_usage": 1}``.

    Args:
        record: Possibly nested mapping
        separator: Path separator in the flattened keys

    Returns:
        Single-level dict, keys in first-visit order
    """
    flat: dict[str, Any] = {}

    def _walk(path: str, value: Any) -> None:
        if isinstance(value, Mapping) and value:
            for key, child in value.items():
                _walk(f"{path}.{key}", child)
        elif isinstance(value, (list, tuple)) and value:
            for index, child in enumerate(value):
                _walk(f"{path}.{index}", child)
        else:
            flat[path.replace(".", separator)] = value

    for key, value in record.items():
        _walk(str(key), value)
    return flat


def summarize_records(records: Iterable[Mapping[str, Any] | None]) -> FieldSummaryMap:
    """Compute per-field statistics over structured records.

    A field is summarized when every value it takes across the records is
    numeric; ``None`` and NaN count as absent for that record only.

    Args:
        records: Mappings, possibly nested; ``None`` entries are skipped

    Returns:
        FieldSummaryMap keyed by flattened field name

    Raises:
        UnsupportedInputKindError: If a record is not a mapping
    """
    series: dict[str, list[Any]] = {}
    non_numeric: set[str] = set()

    for record in records:
        if record is None:
            continue
        if not isinstance(record, Mapping):
            raise UnsupportedInputKindError(type(record).__name__)
        for key, value in flatten_record(record).items():
            values = series.setdefault(key, [])
            if value is None or (_is_number(value) and math.isnan(value)):
                continue
            if not _is_number(value):
                non_numeric.add(key)
                continue
            values.append(value)

    result: FieldSummaryMap = {}
    for key, values in series.items():
        if key in non_numeric:
            continue
        summary = summarize_numbers(values)
        if summary is not None:
            result[key] = summary
    return result


def summarize(data: Iterable[Any]) -> Statistics | dict[str, Any]:
    """Calculate summary statistics from an iterable of samples.

    Input is one of:

    - numbers, reduced to a single SummaryStatistics
    - mappings with numeric fields, reduced to one SummaryStatistics per
      field
    - nested mappings, flattened first (``mem.usage`` becomes ``mem_usage``)

    Args:
        data: Finite iterable of samples, consumed once

    Returns:
        SummaryStatistics, a FieldSummaryMap, or ``{}`` for empty input

    Raises:
        UnsupportedInputKindError: If the first sample is neither a number
            nor a mapping
    """
    values = list(data)
    if not values:
        return {}

    first = values[0]
    if _is_number(first):
        summary = summarize_numbers(values)
        return summary if summary is not None else {}
    if isinstance(first, Mapping):
        return summarize_records(values)
    raise UnsupportedInputKindError(type(first).__name__)
