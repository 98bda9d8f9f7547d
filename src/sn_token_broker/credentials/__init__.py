"""Credential records and token cache policy."""

from sn_token_broker.credentials.cache_policy import is_cache_valid, refresh
from sn_token_broker.credentials.models import (
    CredentialRecord,
    CredentialValidationError,
    MissingFieldError,
    RecordEncodingError,
    TtlCoercionError,
    coerce_ttl,
    decode_record,
    encode_record,
    validate_record,
)

__all__ = [
    "CredentialRecord",
    "CredentialValidationError",
    "MissingFieldError",
    "RecordEncodingError",
    "TtlCoercionError",
    "coerce_ttl",
    "decode_record",
    "encode_record",
    "is_cache_valid",
    "refresh",
    "validate_record",
]
