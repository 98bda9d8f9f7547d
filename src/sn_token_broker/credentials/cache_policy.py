"""Token cache policy.

Pure decisions over a credential record and the current time, both in epoch
milliseconds. A record without a ttl never caches.
"""

from __future__ import annotations

from dataclasses import replace

from sn_token_broker.credentials.models import CredentialRecord


def expires_at_millis(record: CredentialRecord) -> int | None:
    if record.ttl_seconds is None or record.cached_at_millis is None:
        return None
    return record.cached_at_millis + record.ttl_seconds * 1000


def is_cache_valid(record: CredentialRecord, now_millis: int) -> bool:
    """True while the cached token is strictly inside its ttl window."""
    if record.cached_token is None:
        return False
    expires_at = expires_at_millis(record)
    if expires_at is None:
        return False
    return now_millis < expires_at


def refresh(record: CredentialRecord, now_millis: int, token: str) -> CredentialRecord:
    """Return *record* with the cache pair set to *token* issued at *now_millis*.

    Records without a ttl are returned unchanged and must not be persisted.
    """
    if record.ttl_seconds is None:
        return record
    return replace(record, cached_token=token, cached_at_millis=now_millis)
