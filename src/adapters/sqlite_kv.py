"""SQLite key-value adapter.

Implements the core KeyValueSlotPort using a simple SQLite database.
"""

from __future__ import annotations

import os
import sqlite3
from datetime import datetime, timezone
from typing import Callable, Optional


class SQLiteKeyValueStore:
    """Thin SQLite wrapper that satisfies the KeyValueSlotPort contract."""

    def __init__(self, db_path: str, timeout: float = 5.0) -> None:
        self._db_path = db_path
        self._timeout = timeout

    @property
    def db_path(self) -> str:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        # Autocommit mode; write transactions are opened explicitly below.
        conn = sqlite3.connect(self._db_path, timeout=self._timeout, isolation_level=None)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - kv: named slots, each holding one serialized value
        """

        directory = os.path.dirname(self._db_path)
        if directory and self._db_path != ":memory:":
            os.makedirs(directory, exist_ok=True)

        conn = self._connect()
        try:
            # kv keeps one row per slot; a write replaces the whole value.
            # Fields:
            # - key: slot name (PRIMARY KEY)
            # - value: serialized payload
            # - updated_at: timestamp of the last write
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
                """
            )
        finally:
            conn.close()

    def get(self, key: str) -> Optional[str]:
        """Return the stored value for a slot, if any."""

        conn = self._connect()
        try:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        finally:
            conn.close()
        return str(row["value"]) if row else None

    @staticmethod
    def _upsert(conn: sqlite3.Connection, key: str, value: str) -> None:
        conn.execute(
            """
            INSERT INTO kv (key, value, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
            """,
            (key, value, datetime.now(timezone.utc).isoformat()),
        )

    def put(self, key: str, value: str) -> None:
        """Replace a slot's value in one statement."""

        conn = self._connect()
        try:
            self._upsert(conn, key, value)
        finally:
            conn.close()

    def update(self, key: str, mutate: Callable[[Optional[str]], str]) -> str:
        """Read-modify-write a slot under an exclusive write lock.

        BEGIN IMMEDIATE takes the database write lock before the read, so two
        processes appending at once cannot lose each other's update.
        """

        conn = self._connect()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
                current = str(row["value"]) if row else None
                new_value = mutate(current)
                self._upsert(conn, key, new_value)
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
            return new_value
        finally:
            conn.close()
