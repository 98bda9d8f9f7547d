"""SQLite-backed secret storage."""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path

from sn_token_broker.storage.base import StorageError


class SqliteStorage:
    def __init__(self, path: str, wal: bool = True) -> None:
        if path != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = sqlite3.connect(path, check_same_thread=False)
            if wal:
                self._conn.execute("PRAGMA journal_mode=WAL")
            self._init_schema()
        except sqlite3.Error as exc:
            raise StorageError(f"Opening storage at {path} failed: {exc}") from exc
        self._lock = threading.Lock()
        self._closed = False

    def _init_schema(self) -> None:
        self._conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS secrets (
                path TEXT PRIMARY KEY,
                value BLOB NOT NULL
            );
            """
        )
        self._conn.commit()

    def get(self, path: str) -> bytes | None:
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT value FROM secrets WHERE path = ?", (path,)
                ).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Reading from storage failed: {exc}") from exc
        if row is None:
            return None
        return bytes(row[0])

    def put(self, path: str, value: bytes) -> None:
        try:
            with self._lock:
                self._conn.execute(
                    "INSERT INTO secrets (path, value) VALUES (?, ?) "
                    "ON CONFLICT(path) DO UPDATE SET value = excluded.value",
                    (path, sqlite3.Binary(value)),
                )
                self._conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"Putting to storage failed: {exc}") from exc

    def delete(self, path: str) -> None:
        try:
            with self._lock:
                self._conn.execute("DELETE FROM secrets WHERE path = ?", (path,))
                self._conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"Deleting from storage failed: {exc}") from exc

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._conn.close()
            self._closed = True
