"""Secret storage backends."""

from __future__ import annotations

from sn_token_broker.config import StorageSettings
from sn_token_broker.storage.base import SecretStorage, StorageError
from sn_token_broker.storage.memory import InMemoryStorage
from sn_token_broker.storage.sqlite import SqliteStorage


def create_storage(settings: StorageSettings) -> SecretStorage:
    if settings.backend == "memory":
        return InMemoryStorage()
    return SqliteStorage(settings.sqlite_path, wal=settings.sqlite_wal)


__all__ = [
    "InMemoryStorage",
    "SecretStorage",
    "SqliteStorage",
    "StorageError",
    "create_storage",
]
