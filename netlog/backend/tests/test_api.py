"""
tests/test_api.py

FastAPI route tests using TestClient (synchronous).
Injects a FlowStore backed by in-memory SQLite so no file DB is needed.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from netlog.backend.api.main import create_app, get_store, set_store
from netlog.backend.models import FlowRecord
from netlog.backend.storage.database import Database
from netlog.backend.storage.repository import FlowStore

ORIGIN = {"Origin": "http://dashboard.example"}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def client():
    """TestClient with a fresh in-memory store per test."""
    db = Database(":memory:")
    db.init_schema()
    store = FlowStore(db)
    set_store(store)

    app = create_app(cors_origins=["*"])
    with TestClient(app) as c:
        yield c, store, db
    set_store(None)
    db.close()


def seed(store: FlowStore, hour: int, minute: int, byte_length: int) -> None:
    ts = datetime(2024, 3, 5, hour, minute, tzinfo=timezone.utc).timestamp()
    store.append(FlowRecord("10.0.0.1", 443, "10.0.0.2", 51000, byte_length, ts))


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

def test_health(client):
    c, store, _ = client
    seed(store, 0, 0, 1)
    resp = c.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["flows_stored"] == 1
    assert "lines_read" in body["ingest"]


def test_get_store_requires_initialisation():
    set_store(None)
    with pytest.raises(RuntimeError):
        get_store()


# ---------------------------------------------------------------------------
# GET /stats
# ---------------------------------------------------------------------------

class TestStats:

    def test_hourly_totals(self, client):
        c, store, _ = client
        seed(store, 1, 10, 100)
        seed(store, 1, 50, 50)
        seed(store, 2, 5, 30)
        resp = c.get("/stats", params={"date": "2024-03-05"})
        assert resp.status_code == 200
        body = resp.json()
        assert len(body) == 24
        assert body[1] == 150
        assert body[2] == 30
        assert sum(body) == 180

    def test_empty_day(self, client):
        c, _, _ = client
        resp = c.get("/stats?date=1999-12-31")
        assert resp.status_code == 200
        assert resp.json() == [0.0] * 24

    def test_values_are_numbers(self, client):
        c, store, _ = client
        seed(store, 5, 0, 7)
        body = c.get("/stats?date=2024-03-05").json()
        assert all(isinstance(v, (int, float)) for v in body)

    def test_malformed_date_is_server_error(self, client):
        c, store, _ = client
        resp = c.get("/stats?date=not-a-date")
        assert resp.status_code == 500
        assert store.count() == 0

    def test_missing_date_is_server_error(self, client):
        c, _, _ = client
        resp = c.get("/stats")
        assert resp.status_code == 500

    def test_storage_failure_is_server_error(self, client):
        c, _, db = client
        db.close()
        resp = c.get("/stats?date=2024-03-05")
        assert resp.status_code == 500

    @pytest.mark.parametrize("method", ["post", "put", "delete", "patch"])
    def test_non_get_rejected(self, client, method):
        c, _, _ = client
        resp = getattr(c, method)("/stats?date=2024-03-05")
        assert resp.status_code == 405

    def test_cors_header_present(self, client):
        c, _, _ = client
        resp = c.get("/stats?date=2024-03-05", headers=ORIGIN)
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_cors_header_on_error(self, client):
        c, _, _ = client
        resp = c.get("/stats?date=bad", headers=ORIGIN)
        assert resp.status_code == 500
        assert resp.headers["access-control-allow-origin"] == "*"
