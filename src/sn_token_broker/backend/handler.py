"""Secret path operations: exists, read, write and delete."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from sn_token_broker.credentials.models import (
    CredentialRecord,
    CredentialValidationError,
    RecordEncodingError,
    decode_record,
    encode_record,
    validate_record,
)
from sn_token_broker.issuer.orchestrator import TokenOrchestrator
from sn_token_broker.storage.base import SecretStorage, StorageError
from sn_token_broker.utils.masking import redact_sensitive_fields
from sn_token_broker.utils.time import now_millis

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BackendResponse:
    """Result of a handler operation that the caller should see.

    A response carries either ``data`` or a user-facing ``error``; system
    failures are raised instead.
    """

    data: dict[str, Any] | None = None
    error: str | None = None
    # Set when the error is the normal "nothing stored here" result.
    missing: bool = False

    @classmethod
    def error_response(cls, message: str) -> "BackendResponse":
        return cls(error=message)

    @classmethod
    def no_value(cls, message: str) -> "BackendResponse":
        return cls(error=message, missing=True)

    @property
    def is_error(self) -> bool:
        return self.error is not None


class SecretPathHandler:
    """Binds path operations to stored credential records.

    Storage, encoding and issuer failures propagate as exceptions
    (``StorageError``, ``RecordEncodingError``, ``IssuerError``).
    """

    def __init__(
        self,
        storage: SecretStorage,
        orchestrator: TokenOrchestrator,
        clock: Callable[[], int] = now_millis,
        mount_point: str = "",
    ) -> None:
        self._storage = storage
        self._orchestrator = orchestrator
        self._clock = clock
        self._mount_point = mount_point

    def exists(self, path: str) -> bool:
        return self._storage.get(path) is not None

    def read(self, path: str) -> BackendResponse:
        raw = self._storage.get(path)
        if raw is None:
            return BackendResponse.no_value(f"No value at {self._mount_point}{path}")

        record = decode_record(raw)

        invalid = validate_record(record)
        if invalid is not None:
            return BackendResponse.error_response(str(invalid))

        issued = self._orchestrator.obtain_token(record, path, self._clock())

        if issued.updated_record is not None:
            self._save_cached_token(path, issued.updated_record)

        return BackendResponse(data={"token": issued.token})

    def write(self, path: str, payload: Mapping[str, Any] | None) -> BackendResponse | None:
        if not payload:
            logger.info("Clearing service account at %s", path)
            self._storage.delete(path)
            return None

        try:
            record = CredentialRecord.from_mapping(payload)
        except CredentialValidationError as exc:
            logger.info("Rejected write to %s: %s", path, exc)
            return BackendResponse.error_response(str(exc))

        logger.info(
            "Saving service account at %s: %s", path, redact_sensitive_fields(dict(payload))
        )
        self._storage.put(path, encode_record(record))
        return None

    def delete(self, path: str) -> None:
        self._storage.delete(path)

    def _save_cached_token(self, path: str, record: CredentialRecord) -> None:
        # Best effort; the caller still receives the issued token.
        try:
            self._storage.put(path, encode_record(record))
        except (StorageError, RecordEncodingError):
            logger.exception("Saving token cache to storage failed for %s", path)
            return
        logger.debug("Token cache saved for %s", path)
