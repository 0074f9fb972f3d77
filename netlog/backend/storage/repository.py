"""
storage/repository.py

FlowStore — append-only log of FlowRecords plus windowed byte totals.

Every operation runs under one lock, so appends and queries are totally
ordered: a query sees every append that finished before it started and
never sees a partially written row.
"""

from __future__ import annotations

import logging
import math
import sqlite3
import threading
from datetime import datetime, timezone

from ..errors import StorageFailure
from ..models import FlowRecord
from .database import Database

logger = logging.getLogger(__name__)

_INSERT = """
    INSERT INTO flows (
        source_address, source_port,
        destination_address, destination_port,
        byte_length, observed_at
    ) VALUES (?, ?, ?, ?, ?, ?)
"""

_SUM_BETWEEN = """
    SELECT TOTAL(byte_length) FROM flows
    WHERE observed_at >= ? AND observed_at < ?
"""


def to_epoch(value: datetime | float) -> float:
    """Convert a window bound to epoch seconds. Naive datetimes are taken as UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp()
    return float(value)


class FlowStore:
    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = threading.Lock()

    # ==================================================================
    # Write methods
    # ==================================================================

    def append(self, record: FlowRecord) -> None:
        """Persist one record in its own transaction. Raises StorageFailure."""
        with self._lock:
            try:
                self._db.execute(
                    _INSERT,
                    (
                        record.source_address,
                        record.source_port,
                        record.destination_address,
                        record.destination_port,
                        record.byte_length,
                        record.observed_at,
                    ),
                )
                self._db.commit()
            except sqlite3.Error as exc:
                self._safe_rollback()
                logger.error("append failed: %s", exc)
                raise StorageFailure(f"append failed: {exc}") from exc

    # ==================================================================
    # Read methods
    # ==================================================================

    def sum_between(
        self,
        start_inclusive: datetime | float,
        end_exclusive: datetime | float,
    ) -> float:
        """
        Total byte_length of records observed in [start_inclusive, end_exclusive).

        Bounds may be datetimes or epoch seconds (±inf allowed).
        Returns 0.0 when nothing matches.
        """
        start = to_epoch(start_inclusive)
        end = to_epoch(end_exclusive)
        if math.isnan(start) or math.isnan(end):
            raise ValueError("window bounds must not be NaN")
        with self._lock:
            try:
                row = self._db.execute(_SUM_BETWEEN, (start, end)).fetchone()
            except sqlite3.Error as exc:
                logger.error("sum_between failed: %s", exc)
                raise StorageFailure(f"sum_between failed: {exc}") from exc
        return float(row[0]) if row and row[0] is not None else 0.0

    def count(self) -> int:
        with self._lock:
            try:
                row = self._db.execute("SELECT COUNT(*) FROM flows").fetchone()
            except sqlite3.Error as exc:
                raise StorageFailure(f"count failed: {exc}") from exc
        return row[0] if row else 0

    # ==================================================================
    # Internal helpers
    # ==================================================================

    def _safe_rollback(self) -> None:
        try:
            self._db.rollback()
        except sqlite3.Error:
            # connection already closed; nothing to undo
            pass
