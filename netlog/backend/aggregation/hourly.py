"""
aggregation/hourly.py

Hourly byte totals for one calendar day (UTC).

get_hourly_totals() issues 24 sequential point queries, one per hour
window [day + h, day + h + 1h). Running them one after another keeps the
store's one-operation-at-a-time contract trivial; each query is an index
range scan on observed_at.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone

from ..errors import InternalFailure, InvalidRequest, StorageFailure
from ..storage.repository import FlowStore

logger = logging.getLogger(__name__)

HOURS_PER_DAY = 24

_DATE_FORMAT = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def parse_query_date(value: str | None) -> datetime:
    """
    Parse a YYYY-MM-DD string into midnight UTC of that day.

    Raises:
        InvalidRequest: value is missing, not in YYYY-MM-DD form, or not a real date.
    """
    if not value:
        raise InvalidRequest("missing 'date' parameter (expected YYYY-MM-DD)")
    if not _DATE_FORMAT.fullmatch(value):
        raise InvalidRequest(f"invalid date {value!r} (expected YYYY-MM-DD)")
    try:
        day = datetime.strptime(value, "%Y-%m-%d")
    except ValueError as exc:
        raise InvalidRequest(f"invalid date {value!r}: {exc}") from exc
    return day.replace(tzinfo=timezone.utc)


def hour_windows(day_start: datetime) -> list[tuple[datetime, datetime]]:
    """The 24 half-open [start, end) hour windows of the day starting at day_start."""
    return [
        (day_start + timedelta(hours=h), day_start + timedelta(hours=h + 1))
        for h in range(HOURS_PER_DAY)
    ]


def get_hourly_totals(store: FlowStore, date: str | None) -> list[float]:
    """
    Return total bytes observed in each hour 0..23 of `date` (UTC).

    Raises:
        InvalidRequest:  `date` is malformed. The store is not touched.
        InternalFailure: any store query failed. No partial result is returned.
    """
    day_start = parse_query_date(date)

    totals: list[float] = []
    for start, end in hour_windows(day_start):
        try:
            totals.append(store.sum_between(start, end))
        except StorageFailure as exc:
            logger.error("Hourly totals for %s aborted at %s: %s", date, start.isoformat(), exc)
            raise InternalFailure(f"could not compute totals for {date}") from exc
    return totals
