"""Secret path handler."""

from sn_token_broker.backend.handler import BackendResponse, SecretPathHandler

__all__ = ["BackendResponse", "SecretPathHandler"]
