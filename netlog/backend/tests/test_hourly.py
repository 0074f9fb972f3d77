"""
tests/test_hourly.py

Tests for aggregation/hourly.py — 24 UTC hour buckets for one day.
"""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from netlog.backend.aggregation.hourly import (
    HOURS_PER_DAY,
    get_hourly_totals,
    hour_windows,
    parse_query_date,
)
from netlog.backend.errors import InternalFailure, InvalidRequest, StorageFailure
from netlog.backend.models import FlowRecord
from netlog.backend.storage.database import Database
from netlog.backend.storage.repository import FlowStore


@pytest.fixture
def store():
    d = Database(":memory:")
    d.init_schema()
    yield FlowStore(d)
    d.close()


def at(hour: int, minute: int, day: int = 5) -> float:
    return datetime(2024, 3, day, hour, minute, tzinfo=timezone.utc).timestamp()


def make_record(byte_length: int, ts: float) -> FlowRecord:
    return FlowRecord("10.0.0.1", 443, "10.0.0.2", 51000, byte_length, ts)


# ---------------------------------------------------------------------------
# parse_query_date
# ---------------------------------------------------------------------------

class TestParseQueryDate:

    def test_valid(self):
        assert parse_query_date("2024-03-05") == datetime(2024, 3, 5, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [
        None, "", "not-a-date", "2024-3-5", "2024/03/05", "20240305",
        "2024-02-30", "2024-13-01", "2024-03-05T00:00", " 2024-03-05",
    ])
    def test_invalid(self, value):
        with pytest.raises(InvalidRequest):
            parse_query_date(value)


# ---------------------------------------------------------------------------
# hour_windows
# ---------------------------------------------------------------------------

class TestHourWindows:

    def test_24_contiguous_windows(self):
        day = datetime(2024, 3, 5, tzinfo=timezone.utc)
        windows = hour_windows(day)
        assert len(windows) == HOURS_PER_DAY
        assert windows[0][0] == day
        assert windows[-1][1] == datetime(2024, 3, 6, tzinfo=timezone.utc)
        for (_, end), (start, _) in zip(windows, windows[1:]):
            assert end == start


# ---------------------------------------------------------------------------
# get_hourly_totals
# ---------------------------------------------------------------------------

class TestGetHourlyTotals:

    def test_scenario_three_records(self, store):
        store.append(make_record(100, at(1, 10)))
        store.append(make_record(50, at(1, 50)))
        store.append(make_record(30, at(2, 5)))
        totals = get_hourly_totals(store, "2024-03-05")
        assert len(totals) == 24
        assert totals[1] == 150.0
        assert totals[2] == 30.0
        assert sum(totals) == 180.0
        assert all(v == 0.0 for i, v in enumerate(totals) if i not in (1, 2))

    def test_empty_day_is_all_zeros(self, store):
        assert get_hourly_totals(store, "2024-03-05") == [0.0] * 24

    def test_other_days_excluded(self, store):
        store.append(make_record(999, at(23, 59, day=4)))
        store.append(make_record(777, at(0, 0, day=6)))
        store.append(make_record(5, at(0, 0, day=5)))
        totals = get_hourly_totals(store, "2024-03-05")
        assert totals[0] == 5.0
        assert sum(totals) == 5.0

    def test_hour_boundary_belongs_to_next_hour(self, store):
        store.append(make_record(10, at(3, 0)))
        totals = get_hourly_totals(store, "2024-03-05")
        assert totals[2] == 0.0
        assert totals[3] == 10.0

    def test_invalid_date_does_not_touch_store(self):
        mock_store = MagicMock()
        with pytest.raises(InvalidRequest):
            get_hourly_totals(mock_store, "not-a-date")
        mock_store.sum_between.assert_not_called()

    def test_storage_failure_becomes_internal_failure(self):
        mock_store = MagicMock()
        mock_store.sum_between.side_effect = [0.0] * 5 + [StorageFailure("disk I/O error")]
        with pytest.raises(InternalFailure):
            get_hourly_totals(mock_store, "2024-03-05")
        assert mock_store.sum_between.call_count == 6

    def test_queries_run_in_hour_order(self):
        mock_store = MagicMock()
        mock_store.sum_between.return_value = 0.0
        get_hourly_totals(mock_store, "2024-03-05")
        starts = [c.args[0] for c in mock_store.sum_between.call_args_list]
        assert starts == sorted(starts)
        assert starts[0] == datetime(2024, 3, 5, tzinfo=timezone.utc)
