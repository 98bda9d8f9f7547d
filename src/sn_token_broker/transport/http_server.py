"""Starlette HTTP host exposing secret paths under ``/v1/<mount>/``."""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from sn_token_broker import __version__
from sn_token_broker.app import AppContext, get_app_context
from sn_token_broker.backend.handler import BackendResponse, SecretPathHandler
from sn_token_broker.credentials.models import RecordEncodingError
from sn_token_broker.issuer.errors import IssuerError
from sn_token_broker.storage.base import StorageError

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "The StreamNative backend generates Pulsar JWTs on-demand using the "
    "StreamNative API. Write 'key-file', 'organization', 'cluster' and an "
    "optional 'ttl' (seconds) to a path, then read the path to get a token."
)

_SYSTEM_ERRORS = (StorageError, RecordEncodingError)


def _errors(status_code: int, *messages: str) -> JSONResponse:
    return JSONResponse({"errors": list(messages)}, status_code=status_code)


def _to_http(response: BackendResponse | None) -> Response:
    if response is None:
        return Response(status_code=204)
    if response.is_error:
        return _errors(404 if response.missing else 400, response.error or "")
    return JSONResponse({"data": response.data})


async def _read_payload(request: Request) -> dict[str, object] | Response:
    body = await request.body()
    if not body.strip():
        return {}
    try:
        payload = json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        return _errors(400, f"failed to parse JSON input: {exc}")
    if not isinstance(payload, dict):
        return _errors(400, "request body must be a JSON object")
    return payload


def create_http_app(context: AppContext | None = None) -> Starlette:
    """Create the HTTP application around *context* (or the process context)."""
    ctx = context or get_app_context()
    handler: SecretPathHandler = ctx.handler
    mount = ctx.settings.server.mount_point

    async def secret_handler(request: Request) -> Response:
        path = request.path_params["path"]
        method = request.method
        try:
            if method == "HEAD":
                found = await asyncio.to_thread(handler.exists, path)
                return Response(status_code=200 if found else 404)
            if method == "GET":
                return _to_http(await asyncio.to_thread(handler.read, path))
            if method == "DELETE":
                await asyncio.to_thread(handler.delete, path)
                return Response(status_code=204)

            payload = await _read_payload(request)
            if isinstance(payload, Response):
                return payload
            if payload:
                existed = await asyncio.to_thread(handler.exists, path)
                logger.info("%s request for %s/%s", "update" if existed else "create", mount, path)
            return _to_http(await asyncio.to_thread(handler.write, path, payload))
        except IssuerError as exc:
            logger.error("%s %s/%s failed: %s", method, mount, path, exc)
            return JSONResponse({"errors": [exc.args[0]], "code": exc.code}, status_code=500)
        except _SYSTEM_ERRORS as exc:
            logger.error("%s %s/%s failed: %s", method, mount, path, exc)
            return _errors(500, str(exc))

    async def help_handler(request: Request) -> Response:
        return JSONResponse({"help": HELP_TEXT, "version": __version__})

    async def health_handler(request: Request) -> Response:
        return JSONResponse({"status": "healthy"})

    async def ready_handler(request: Request) -> Response:
        return JSONResponse({"status": "ready"})

    routes = [
        Route("/health", endpoint=health_handler, methods=["GET"]),
        Route("/ready", endpoint=ready_handler, methods=["GET"]),
        Route(f"/v1/{mount}", endpoint=help_handler, methods=["GET"]),
        Route(
            f"/v1/{mount}/{{path:path}}",
            endpoint=secret_handler,
            methods=["GET", "HEAD", "PUT", "POST", "DELETE"],
        ),
    ]

    @asynccontextmanager
    async def lifespan(app: Starlette):
        logger.info("Starting token broker on /v1/%s (issuer: %s)", mount, ctx.issuer.executable)
        try:
            yield
        finally:
            logger.info("Stopping token broker...")

    return Starlette(routes=routes, lifespan=lifespan)
