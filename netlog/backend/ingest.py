"""
backend/ingest.py

IngestionLoop — capture lines → parser → FlowStore.

The loop is a fold over a lazy sequence of parse results:
  - FlowRecord  → appended to the store
  - None        → line skipped, counted, loop continues
It ends normally when the line source is exhausted. A StorageFailure from
the store is not handled here: it propagates to the caller, which decides
to terminate the process (no buffering, no retry).
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterable, AsyncIterator

from .capture.parser import parse_line
from .errors import StorageFailure
from .metrics import METRICS
from .models import FlowRecord
from .storage.repository import FlowStore

logger = logging.getLogger(__name__)


async def parse_stream(lines: AsyncIterable[str]) -> AsyncIterator[FlowRecord | None]:
    """Yield one parse result per input line (None for skipped lines)."""
    async for line in lines:
        METRICS.lines_read.inc()
        record = parse_line(line)
        if record is None:
            METRICS.lines_skipped.inc()
            logger.debug("Skipped line: %r", line[:200])
        else:
            METRICS.flows_parsed.inc()
        yield record


class IngestionLoop:
    """
    Consumes capture lines and persists every well-formed one.

    Args:
        store: Shared FlowStore. Its lock serialises appends against queries.
    """

    def __init__(self, store: FlowStore) -> None:
        self._store = store

    async def run(self, lines: AsyncIterable[str]) -> None:
        """Run until `lines` is exhausted. Raises StorageFailure on write errors."""
        logger.info("Ingestion loop started")
        async for record in parse_stream(lines):
            if record is None:
                continue
            try:
                # commit on a worker thread so the event loop keeps serving HTTP
                await asyncio.to_thread(self._store.append, record)
            except StorageFailure:
                METRICS.storage_errors.inc()
                raise
            METRICS.flows_stored.inc()
        logger.info("Capture stream closed — ingestion loop finished (%s)", METRICS.as_dict())
