"""Token issuance orchestration."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sn_token_broker.credentials.cache_policy import is_cache_valid, refresh
from sn_token_broker.credentials.models import CredentialRecord, validate_record
from sn_token_broker.issuer.key_material import materialized_key_file
from sn_token_broker.issuer.snctl import SnctlIssuer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedToken:
    token: str
    # Record to persist after a fresh issuance; None for cache hits and for
    # records without a ttl.
    updated_record: CredentialRecord | None = None
    from_cache: bool = False

    def __repr__(self) -> str:
        return (
            f"IssuedToken(token=***, from_cache={self.from_cache}, "
            f"updated={self.updated_record is not None})"
        )


class TokenOrchestrator:
    """Produces a usable token for a credential record, reusing its cache."""

    def __init__(self, issuer: SnctlIssuer, key_dir: str | None = None) -> None:
        self._issuer = issuer
        self._key_dir = key_dir

    def obtain_token(
        self, record: CredentialRecord, path: str, now_millis: int
    ) -> IssuedToken:
        """Return a cached token if still valid, otherwise issue a new one.

        Args:
            record: A record that passed ``validate_record``.
            path: Secret path of the record, for log context.
            now_millis: Current time in epoch milliseconds.

        Raises:
            MissingFieldError: The record is missing a required field.
            IssuerError: A step of issuance failed; the key file is removed.
        """
        if is_cache_valid(record, now_millis):
            logger.debug("Token cache hit for %s", path)
            return IssuedToken(token=record.cached_token, from_cache=True)

        missing = validate_record(record)
        if missing is not None:
            raise missing

        logger.debug("Reading new token for %s", path)
        self._issuer.ensure_config()

        with materialized_key_file(record.key_file, directory=self._key_dir) as key_path:
            self._issuer.activate_service_account(key_path)
            token = self._issuer.get_token(record.organization, record.cluster, key_path)

        if record.ttl_seconds is None:
            return IssuedToken(token=token)

        logger.debug("Token issued for %s, caching for %ds", path, record.ttl_seconds)
        return IssuedToken(token=token, updated_record=refresh(record, now_millis, token))

