"""Scoped transient key files handed to the issuer."""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path

from sn_token_broker.issuer.errors import KeyMaterializationError

logger = logging.getLogger(__name__)

KEY_FILE_PREFIX = "snio-key-"
KEY_FILE_SUFFIX = ".json"


@contextlib.contextmanager
def materialized_key_file(content: str, directory: str | None = None) -> Iterator[Path]:
    """Write *content* to an owner-only temp file and yield its path.

    ``mkstemp`` creates the file with mode 0600, so the key is never readable
    by other users. The file is removed when the block exits, whether it
    returns or raises.

    Raises:
        KeyMaterializationError: The file could not be created or written.
    """
    try:
        fd, name = tempfile.mkstemp(
            prefix=KEY_FILE_PREFIX, suffix=KEY_FILE_SUFFIX, dir=directory
        )
    except OSError as exc:
        logger.error("Failed to open temp file: %s", exc)
        raise KeyMaterializationError(f"Failed to create key file: {exc}") from exc

    path = Path(name)
    try:
        try:
            data = memoryview(content.encode("utf-8"))
            while data:
                data = data[os.write(fd, data):]
        except OSError as exc:
            logger.error("Failed to write temp key file: %s", exc)
            raise KeyMaterializationError(f"Failed to write key file: {exc}") from exc
        finally:
            os.close(fd)
        yield path
    finally:
        with contextlib.suppress(FileNotFoundError):
            path.unlink()
