"""Credential record model, validation and persisted encoding.

A credential record is stored as a flat JSON object under its secret path.
Field names match the request payload (``key-file``, ``ttl``), and the cache
pair uses ``cachedToken``/``cachedAt``:

    {"key-file": "...", "organization": "o", "cluster": "c",
     "ttl": 60, "cachedToken": "...", "cachedAt": 1700000000000}

Any other payload field is kept as-is in ``extra`` and written back unchanged.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

KEY_FILE_FIELD = "key-file"
ORGANIZATION_FIELD = "organization"
CLUSTER_FIELD = "cluster"
TTL_FIELD = "ttl"
CACHED_TOKEN_FIELD = "cachedToken"
CACHED_AT_FIELD = "cachedAt"

# Checked in this order; the first missing field is reported.
REQUIRED_FIELDS: tuple[str, ...] = (KEY_FILE_FIELD, ORGANIZATION_FIELD, CLUSTER_FIELD)

_KNOWN_FIELDS = frozenset(
    {*REQUIRED_FIELDS, TTL_FIELD, CACHED_TOKEN_FIELD, CACHED_AT_FIELD}
)


class CredentialValidationError(ValueError):
    """User-facing problem with a credential payload or record."""


class MissingFieldError(CredentialValidationError):
    """A required credential field is absent or null."""

    def __init__(self, field_name: str) -> None:
        self.field_name = field_name
        super().__init__(f"No '{field_name}' set")


class TtlCoercionError(CredentialValidationError):
    """The supplied ttl cannot be read as a non-negative number of seconds."""


class RecordEncodingError(Exception):
    """A stored record could not be encoded or decoded."""


@dataclass(frozen=True)
class CredentialRecord:
    key_file: str | None
    organization: str | None
    cluster: str | None
    ttl_seconds: int | None = None
    cached_token: str | None = None
    cached_at_millis: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def __repr__(self) -> str:
        return (
            f"CredentialRecord(organization={self.organization!r}, "
            f"cluster={self.cluster!r}, ttl_seconds={self.ttl_seconds!r}, "
            f"cached={self.cached_token is not None})"
        )

    @property
    def has_cached_token(self) -> bool:
        return self.cached_token is not None and self.cached_at_millis is not None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "CredentialRecord":
        """Build a record from a flat payload mapping.

        Raises:
            TtlCoercionError: ``ttl`` is present but not a usable scalar.
            CredentialValidationError: ``cachedAt`` is present but not an integer.
        """
        ttl = coerce_ttl(data[TTL_FIELD]) if TTL_FIELD in data else None

        cached_token = data.get(CACHED_TOKEN_FIELD)
        cached_at = data.get(CACHED_AT_FIELD)
        if ttl is None or cached_token is None or cached_at is None:
            # The cache pair is all-or-nothing and requires a ttl.
            cached_token = None
            cached_at = None
        else:
            cached_token = str(cached_token)
            cached_at = _coerce_timestamp(cached_at)

        return cls(
            key_file=_key_file_text(data.get(KEY_FILE_FIELD)),
            organization=_optional_text(data.get(ORGANIZATION_FIELD)),
            cluster=_optional_text(data.get(CLUSTER_FIELD)),
            ttl_seconds=ttl,
            cached_token=cached_token,
            cached_at_millis=cached_at,
            extra={k: v for k, v in data.items() if k not in _KNOWN_FIELDS},
        )

    def to_mapping(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.extra)
        for name, value in (
            (KEY_FILE_FIELD, self.key_file),
            (ORGANIZATION_FIELD, self.organization),
            (CLUSTER_FIELD, self.cluster),
            (TTL_FIELD, self.ttl_seconds),
        ):
            if value is not None:
                data[name] = value
        if self.ttl_seconds is not None and self.has_cached_token:
            data[CACHED_TOKEN_FIELD] = self.cached_token
            data[CACHED_AT_FIELD] = self.cached_at_millis
        return data


def validate_record(record: CredentialRecord) -> MissingFieldError | None:
    """Return an error for the first missing required field, if any."""
    values = {
        KEY_FILE_FIELD: record.key_file,
        ORGANIZATION_FIELD: record.organization,
        CLUSTER_FIELD: record.cluster,
    }
    for name in REQUIRED_FIELDS:
        if values[name] is None:
            return MissingFieldError(name)
    return None


def coerce_ttl(value: object) -> int:
    """Coerce a ttl given as int, float or numeric string to whole seconds.

    Floats are truncated toward zero. Booleans, null and containers are
    rejected, as are negative and non-finite values.
    """
    if isinstance(value, bool) or value is None:
        raise TtlCoercionError(f"ttl is not a scalar: {type(value).__name__}")

    if isinstance(value, int):
        seconds = value
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise TtlCoercionError(f"ttl is not an integer: {value!r}")
        seconds = int(value)
    elif isinstance(value, str):
        seconds = _parse_numeric_text(value)
    else:
        raise TtlCoercionError(f"ttl is not a scalar: {type(value).__name__}")

    if seconds < 0:
        raise TtlCoercionError(f"ttl must not be negative: {seconds}")
    return seconds


def encode_record(record: CredentialRecord) -> bytes:
    try:
        return json.dumps(record.to_mapping(), separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise RecordEncodingError(f"json encoding failed: {exc}") from exc


def decode_record(raw: bytes) -> CredentialRecord:
    try:
        data = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise RecordEncodingError(f"json decoding failed: {exc}") from exc
    if not isinstance(data, dict):
        raise RecordEncodingError(
            f"json decoding failed: expected object, got {type(data).__name__}"
        )
    try:
        return CredentialRecord.from_mapping(data)
    except CredentialValidationError as exc:
        raise RecordEncodingError(f"stored record is malformed: {exc}") from exc


def _parse_numeric_text(text: str) -> int:
    stripped = text.strip()
    try:
        return int(stripped)
    except ValueError:
        pass
    try:
        number = float(stripped)
    except ValueError:
        raise TtlCoercionError(f"ttl is not an integer: {text!r}") from None
    if not math.isfinite(number):
        raise TtlCoercionError(f"ttl is not an integer: {text!r}")
    return int(number)


def _coerce_timestamp(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise CredentialValidationError(
            f"cachedAt is not an integer: {type(value).__name__}"
        )
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        raise CredentialValidationError(f"cachedAt is not an integer: {value!r}") from None


def _key_file_text(value: object) -> str | None:
    if value is None:
        return None
    if isinstance(value, Mapping):
        return json.dumps(value)
    return str(value)


def _optional_text(value: object) -> str | None:
    return None if value is None else str(value)
