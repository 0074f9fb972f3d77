"""
api/routes/stats.py

GET /stats?date=YYYY-MM-DD — 24 hourly byte totals (UTC), hour 0 first.

The handler is a plain `def`, so FastAPI runs it on its worker thread pool
and the 24 store queries never block the ingestion loop's event loop.
Any failure (bad date or storage) is a 500; a partial array is never sent.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from ...aggregation import get_hourly_totals
from ...errors import InternalFailure, InvalidRequest
from ...storage.repository import FlowStore

logger = logging.getLogger(__name__)
router = APIRouter(tags=["stats"])


def _get_store() -> FlowStore:
    """FastAPI dependency — replaced in tests via app.dependency_overrides."""
    from ..main import get_store
    return get_store()


@router.get("/stats", response_model=list[float])
def get_stats(
    date: Annotated[str | None, Query(description="Day to report, YYYY-MM-DD")] = None,
    store: FlowStore = Depends(_get_store),
) -> list[float]:
    """Return total bytes observed in each hour of `date`."""
    try:
        return get_hourly_totals(store, date)
    except InvalidRequest as exc:
        logger.warning("Rejected stats request: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except InternalFailure as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
