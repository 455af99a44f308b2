"""SQLite database service."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from collections.abc import Generator

logger = structlog.get_logger(__name__)

MEMORY_DB = ":memory:"


class Database:
    """SQLite database service with schema management."""

    def __init__(self, db_path: str = "data/activity.db") -> None:
        self.db_path = db_path
        self._ensure_directory()
        self._connection: sqlite3.Connection | None = None
        self._transaction_depth = 0

    def _ensure_directory(self) -> None:
        """Ensure the parent directory of the database file exists."""
        if self.db_path != MEMORY_DB:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

    @property
    def connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = sqlite3.connect(self.db_path)
            self._connection.row_factory = sqlite3.Row
            self._connection.execute("PRAGMA journal_mode=WAL")
            self._connection.execute("PRAGMA foreign_keys=ON")
        return self._connection

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Cursor, None, None]:
        """Context manager for database transactions.

        Nested calls join the outermost transaction; only the outermost
        commits or rolls back.
        """
        conn = self.connection
        cursor = conn.cursor()
        self._transaction_depth += 1
        try:
            yield cursor
        except Exception:
            if self._transaction_depth == 1:
                conn.rollback()
            raise
        else:
            if self._transaction_depth == 1:
                conn.commit()
        finally:
            self._transaction_depth -= 1

    def execute(self, sql: str, params: tuple[Any, ...] | dict[str, Any] = ()) -> sqlite3.Cursor:
        """Execute a single SQL statement."""
        return self.connection.execute(sql, params)

    def fetchone(
        self, sql: str, params: tuple[Any, ...] | dict[str, Any] = ()
    ) -> sqlite3.Row | None:
        """Execute and fetch one row."""
        cursor = self.execute(sql, params)
        return cursor.fetchone()

    def fetchall(
        self, sql: str, params: tuple[Any, ...] | dict[str, Any] = ()
    ) -> list[sqlite3.Row]:
        """Execute and fetch all rows."""
        cursor = self.execute(sql, params)
        return cursor.fetchall()

    def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def init_db(self) -> None:
        """Initialize database schema. Creates all tables and indexes."""
        logger.info("initializing_database", path=self.db_path)

        with self.transaction() as cursor:
            # content_pages: latest known state per URL
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS content_pages (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    url TEXT NOT NULL UNIQUE,
                    domain TEXT,
                    path TEXT,
                    market TEXT,
                    language TEXT,
                    title TEXT,
                    description TEXT,
                    text_content TEXT,
                    word_count INTEGER NOT NULL DEFAULT 0,
                    change_hash TEXT NOT NULL,
                    change_pct INTEGER NOT NULL DEFAULT 0
                        CHECK (change_pct BETWEEN 0 AND 100),
                    publish_date TEXT,
                    summary TEXT,
                    summary_en TEXT,
                    category TEXT,
                    content_type TEXT,
                    tags TEXT,
                    signals TEXT,
                    quality_score INTEGER NOT NULL DEFAULT 0
                        CHECK (quality_score BETWEEN 0 AND 100),
                    last_crawled_at TEXT NOT NULL,
                    last_modified_at TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_content_pages_market ON content_pages(market)"
            )
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_content_pages_last_modified"
                " ON content_pages(last_modified_at)"
            )
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_content_pages_category ON content_pages(category)"
            )

            # page_events: append-only activity log
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS page_events (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    page_id INTEGER,
                    url TEXT,
                    event_type TEXT NOT NULL
                        CHECK (event_type IN ('created', 'updated', 'pattern', 'alert')),
                    event_at TEXT NOT NULL,
                    change_pct INTEGER CHECK (change_pct BETWEEN 0 AND 100),
                    market TEXT,
                    language TEXT,
                    title TEXT,
                    summary TEXT,
                    FOREIGN KEY (page_id) REFERENCES content_pages(id)
                )
            """)
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_page_events_event_at ON page_events(event_at)"
            )
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_page_events_page_id ON page_events(page_id)"
            )
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_page_events_market ON page_events(market)"
            )

            # processing_errors table
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS processing_errors (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    entity_type TEXT NOT NULL,
                    entity_id INTEGER,
                    url TEXT,
                    error_type TEXT NOT NULL,
                    error_message TEXT NOT NULL,
                    retry_count INTEGER DEFAULT 0,
                    occurred_at TEXT NOT NULL
                )
            """)

        logger.info("database_initialized", path=self.db_path)
