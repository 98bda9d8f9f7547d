from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from sn_token_broker import server


def _settings() -> SimpleNamespace:
    return SimpleNamespace(
        server=SimpleNamespace(host="127.0.0.1", port=8200),
        logging=SimpleNamespace(file=None),
    )


@patch("sn_token_broker.transport.http_server.create_http_app")
@patch("sn_token_broker.server.get_logger")
@patch("sn_token_broker.server.configure_logging")
@patch("sn_token_broker.server.load_settings")
def test_run_entrypoint_serves_app(
    mock_load_settings: MagicMock,
    mock_configure_logging: MagicMock,
    _mock_get_logger: MagicMock,
    mock_create_app: MagicMock,
) -> None:
    mock_load_settings.return_value = _settings()
    app = object()
    mock_create_app.return_value = app

    with patch("uvicorn.run") as mock_run:
        server.run_entrypoint()

    mock_configure_logging.assert_called_once()
    mock_run.assert_called_once_with(
        app, host="127.0.0.1", port=8200, ws="none", log_config=None
    )
