"""External token issuer integration."""

from sn_token_broker.issuer.errors import (
    IssuerEnvironmentError,
    IssuerError,
    KeyMaterializationError,
    ServiceAccountActivationError,
    TokenIssuanceError,
)
from sn_token_broker.issuer.orchestrator import IssuedToken, TokenOrchestrator
from sn_token_broker.issuer.runner import CommandResult, CommandRunner, SubprocessRunner
from sn_token_broker.issuer.snctl import SnctlIssuer

__all__ = [
    "CommandResult",
    "CommandRunner",
    "IssuedToken",
    "IssuerEnvironmentError",
    "IssuerError",
    "KeyMaterializationError",
    "ServiceAccountActivationError",
    "SnctlIssuer",
    "SubprocessRunner",
    "TokenIssuanceError",
    "TokenOrchestrator",
]
