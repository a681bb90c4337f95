"""Tests for timing helpers."""

from __future__ import annotations

import time

import pytest

from opmetrics.timing import close, end, start, timestamp


class TestTiming:
    """Tests for timestamp/start/end."""

    def test_timestamp_is_epoch_millis(self) -> None:
        before = int(time.time() * 1000)
        value = timestamp()
        after = int(time.time() * 1000)

        assert isinstance(value, int)
        assert before - 1 <= value <= after + 1

    def test_start_creates_record(self) -> None:
        record = start()

        assert isinstance(record["start"], int)

    def test_start_updates_given_record(self) -> None:
        metrics: dict[str, int] = {}

        record = start(metrics)

        assert record is metrics
        assert isinstance(metrics["start"], int)

    def test_end_sets_duration(self) -> None:
        record = start()

        ended = end(record)

        assert ended is record
        assert record["end"] - record["start"] == record["duration"]
        assert record["duration"] >= 0

    def test_end_requires_start(self) -> None:
        with pytest.raises(ValueError, match="start timestamp"):
            end({})

    def test_end_rejects_non_integer_start(self) -> None:
        with pytest.raises(ValueError, match="start timestamp"):
            end({"start": "yesterday"})

    def test_end_never_retimes(self) -> None:
        """Test a finalized segment keeps its original timing."""
        record = end(start())
        snapshot = dict(record)

        with pytest.raises(ValueError, match="already been ended"):
            end(record)

        assert record == snapshot

    def test_start_opens_new_segment(self) -> None:
        """Test restarting a record clears the previous end and duration."""
        record = end(start())

        start(record)

        assert "end" not in record
        assert "duration" not in record
        end(record)
        assert record["end"] - record["start"] == record["duration"]

    def test_close_overwrites_ended_record(self) -> None:
        """Test closing an overlapping call replaces the timing written before it."""
        record = end(start())
        started = record["start"] - 5

        close(record, started)

        assert record["start"] == started
        assert record["end"] - record["start"] == record["duration"]
        assert record["duration"] >= 5
