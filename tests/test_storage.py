from __future__ import annotations

import sqlite3
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from sn_token_broker.config import StorageSettings
from sn_token_broker.storage import (
    InMemoryStorage,
    SqliteStorage,
    StorageError,
    create_storage,
)


@pytest.fixture
def sqlite_storage(tmp_path: Path):
    store = SqliteStorage(str(tmp_path / "secrets.sqlite"))
    yield store
    store.close()


@pytest.fixture(params=["memory", "sqlite"])
def any_storage(request, tmp_path: Path):
    if request.param == "memory":
        yield InMemoryStorage()
        return
    store = SqliteStorage(str(tmp_path / "secrets.sqlite"), wal=False)
    yield store
    store.close()


def test_get_missing_returns_none(any_storage) -> None:
    assert any_storage.get("acct1") is None


def test_put_then_get(any_storage) -> None:
    any_storage.put("acct1", b'{"a":1}')
    assert any_storage.get("acct1") == b'{"a":1}'


def test_put_overwrites(any_storage) -> None:
    any_storage.put("acct1", b"first")
    any_storage.put("acct1", b"second")
    assert any_storage.get("acct1") == b"second"


def test_delete_is_idempotent(any_storage) -> None:
    any_storage.put("acct1", b"value")
    any_storage.delete("acct1")
    any_storage.delete("acct1")
    assert any_storage.get("acct1") is None


def test_paths_are_independent(any_storage) -> None:
    any_storage.put("team/a", b"a")
    any_storage.put("team/b", b"b")
    any_storage.delete("team/a")
    assert any_storage.get("team/b") == b"b"


def test_sqlite_persists_across_connections(tmp_path: Path) -> None:
    db_path = str(tmp_path / "secrets.sqlite")
    first = SqliteStorage(db_path)
    first.put("acct1", b"value")
    first.close()

    second = SqliteStorage(db_path)
    try:
        assert second.get("acct1") == b"value"
    finally:
        second.close()


def test_sqlite_close_is_idempotent(sqlite_storage: SqliteStorage) -> None:
    sqlite_storage.close()
    sqlite_storage.close()


def test_sqlite_errors_are_wrapped(sqlite_storage: SqliteStorage) -> None:
    conn = MagicMock()
    conn.execute.side_effect = sqlite3.OperationalError("database is locked")
    sqlite_storage._conn = conn

    with pytest.raises(StorageError, match="Reading from storage failed: database is locked"):
        sqlite_storage.get("acct1")
    with pytest.raises(StorageError, match="Putting to storage failed"):
        sqlite_storage.put("acct1", b"v")
    with pytest.raises(StorageError, match="Deleting from storage failed"):
        sqlite_storage.delete("acct1")


def test_sqlite_use_after_close_raises_storage_error(tmp_path: Path) -> None:
    store = SqliteStorage(str(tmp_path / "secrets.sqlite"))
    store.close()
    with pytest.raises(StorageError):
        store.get("acct1")


def test_create_storage_selects_backend(tmp_path: Path) -> None:
    assert isinstance(create_storage(StorageSettings(backend="memory")), InMemoryStorage)

    store = create_storage(
        StorageSettings(backend="sqlite", sqlite_path=str(tmp_path / "s.sqlite"))
    )
    try:
        assert isinstance(store, SqliteStorage)
    finally:
        store.close()
