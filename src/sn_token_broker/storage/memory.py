"""In-process secret storage."""

from __future__ import annotations

import threading


class InMemoryStorage:
    def __init__(self) -> None:
        self._entries: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def get(self, path: str) -> bytes | None:
        with self._lock:
            return self._entries.get(path)

    def put(self, path: str, value: bytes) -> None:
        with self._lock:
            self._entries[path] = bytes(value)

    def delete(self, path: str) -> None:
        with self._lock:
            self._entries.pop(path, None)
