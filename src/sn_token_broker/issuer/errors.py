"""Errors raised while obtaining a token from the external issuer."""

from __future__ import annotations

_MAX_OUTPUT_CHARS = 2_000


class IssuerError(Exception):
    """Raised when a step of token issuance fails.

    ``code`` identifies the failed step; ``output`` carries whatever the
    issuer printed, for diagnostics only.
    """

    code = "issuer_error"

    def __init__(self, message: str, output: str = "") -> None:
        super().__init__(message)
        self.output = output[:_MAX_OUTPUT_CHARS]

    def __str__(self) -> str:
        message = super().__str__()
        if self.output:
            return f"{message}: {self.output.strip()}"
        return message


class IssuerEnvironmentError(IssuerError):
    code = "environment_init_failed"


class KeyMaterializationError(IssuerError):
    code = "key_materialization_failed"


class ServiceAccountActivationError(IssuerError):
    code = "activation_failed"


class TokenIssuanceError(IssuerError):
    code = "issuance_failed"
