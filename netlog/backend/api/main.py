"""
api/main.py

FastAPI application factory for the query endpoint.

The FlowStore is injected once at startup via set_store(); route handlers
obtain it through a dependency so tests can swap it.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..config import settings
from ..metrics import METRICS
from .routes import stats as stats_router

logger = logging.getLogger(__name__)

_store = None


def set_store(store) -> None:
    global _store
    _store = store


def get_store():
    if _store is None:
        raise RuntimeError("Store not initialised — call set_store() first")
    return _store


def create_app(cors_origins: list[str] | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("FastAPI startup")
        yield
        logger.info("FastAPI shutdown")

    app = FastAPI(
        title="netlog — network flow telemetry",
        version="1.0.0",
        description="Hourly traffic volume collected from a packet-capture stream",
        lifespan=lifespan,
    )

    # The dashboard is served from a different origin.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins if cors_origins is not None else settings.CORS_ORIGINS,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.include_router(stats_router.router)

    @app.get("/health")
    def health() -> dict:
        return {
            "status": "ok",
            "flows_stored": get_store().count(),
            "ingest": METRICS.as_dict(),
        }

    return app
