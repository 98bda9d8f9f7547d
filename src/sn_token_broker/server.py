"""Entrypoint for the StreamNative token broker."""

from __future__ import annotations

import sys
from pathlib import Path

if __package__ in (None, ""):
    sys.path.insert(0, str(Path(__file__).resolve().parents[1]))  # pragma: no cover

from sn_token_broker import __version__
from sn_token_broker.config import load_settings
from sn_token_broker.logging_utils import configure_logging, get_logger


def run_entrypoint() -> None:
    """Serve the broker over HTTP with uvicorn."""
    settings = load_settings()
    configure_logging()
    logger = get_logger(__name__)
    from sn_token_broker.transport.http_server import create_http_app

    try:
        import uvicorn
    except ImportError as exc:
        raise RuntimeError("uvicorn is required to serve the token broker") from exc

    logger.info("Initializing StreamNative token broker v%s", __version__)
    logger.info("Log file configured at: %s", settings.logging.file)
    app = create_http_app()
    uvicorn.run(
        app,
        host=settings.server.host,
        port=settings.server.port,
        ws="none",
        log_config=None,
    )


if __name__ == "__main__":  # pragma: no cover
    run_entrypoint()
