"""Secret storage interface."""

from __future__ import annotations

from typing import Protocol


class StorageError(Exception):
    """Raised when the storage backend fails to get, put or delete a path."""


class SecretStorage(Protocol):
    """Opaque byte blobs keyed by secret path, atomic per key."""

    def get(self, path: str) -> bytes | None:
        ...

    def put(self, path: str, value: bytes) -> None:
        ...

    def delete(self, path: str) -> None:
        """Remove *path*; a missing entry is not an error."""
        ...
