"""Application context assembly."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from sn_token_broker.backend.handler import SecretPathHandler
from sn_token_broker.config import Settings, load_settings
from sn_token_broker.issuer.orchestrator import TokenOrchestrator
from sn_token_broker.issuer.snctl import SnctlIssuer
from sn_token_broker.storage import SecretStorage, create_storage


@dataclass
class AppContext:
    """Application-wide dependency container.

    Initialized once at startup and cached for the lifetime of the process.
    """

    settings: Settings
    storage: SecretStorage
    issuer: SnctlIssuer
    orchestrator: TokenOrchestrator
    handler: SecretPathHandler


def build_app_context(settings: Settings) -> AppContext:
    storage = create_storage(settings.storage)
    issuer = SnctlIssuer.from_settings(settings.issuer)
    orchestrator = TokenOrchestrator(issuer, key_dir=settings.issuer.key_dir)
    handler = SecretPathHandler(
        storage,
        orchestrator,
        mount_point=f"{settings.server.mount_point}/",
    )
    return AppContext(
        settings=settings,
        storage=storage,
        issuer=issuer,
        orchestrator=orchestrator,
        handler=handler,
    )


@lru_cache(maxsize=1)
def get_app_context() -> AppContext:
    """Get or create the process-wide application context."""
    return build_app_context(load_settings())
