"""
storage/database.py

SQLite connection and schema initialisation for the netlog storage layer.

Design decisions:
  - WAL journal mode so a reader never sees a half-committed insert.
  - check_same_thread=False: appends run on asyncio.to_thread workers
    and queries on the HTTP worker thread pool.
    FlowStore serialises every use behind a single lock.
  - busy_timeout=5000ms: other processes (e.g. an operator's sqlite3 shell)
    may hold the file briefly.
  - Initialisation is idempotent; re-running it never touches existing rows.
"""

from __future__ import annotations

import logging
import os
import sqlite3

logger = logging.getLogger(__name__)

_MEMORY = ":memory:"


class Database:
    """
    Thin wrapper around a sqlite3 connection.

    Usage:
        db = Database("netlog.db")
        db.init_schema()
        # ... pass db to FlowStore ...
        db.close()
    """

    def __init__(self, db_path: str = "netlog.db") -> None:
        self.db_path = db_path
        if db_path != _MEMORY:
            os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)
        self.conn = sqlite3.connect(db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row  # rows behave like dicts
        self._configure()
        logger.info("Database opened — path=%r", db_path)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def _configure(self) -> None:
        """Apply performance and safety PRAGMAs."""
        cur = self.conn.cursor()
        cur.execute("PRAGMA journal_mode=WAL")
        cur.execute("PRAGMA busy_timeout=5000")
        cur.execute("PRAGMA synchronous=NORMAL")  # safe with WAL
        self.conn.commit()

    # ------------------------------------------------------------------
    # Schema initialisation
    # ------------------------------------------------------------------

    def init_schema(self) -> None:
        """Create the flows table and its time index if they don't already exist."""
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS flows (
                id                  INTEGER PRIMARY KEY,
                source_address      TEXT    NOT NULL,
                source_port         INTEGER NOT NULL,
                destination_address TEXT    NOT NULL,
                destination_port    INTEGER NOT NULL,
                byte_length         INTEGER NOT NULL CHECK (byte_length > 0),
                observed_at         REAL    NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_flows_observed_at
                ON flows(observed_at);
        """)
        self.conn.commit()
        logger.info("Schema initialised — path=%r", self.db_path)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Flush and close the SQLite connection."""
        try:
            self.conn.commit()
            self.conn.close()
            logger.info("Database closed — path=%r", self.db_path)
        except sqlite3.Error as exc:
            logger.warning("Error closing database: %s", exc)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        """Execute a single parameterized statement."""
        return self.conn.execute(sql, params)

    def commit(self) -> None:
        self.conn.commit()

    def rollback(self) -> None:
        self.conn.rollback()
