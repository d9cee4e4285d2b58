"""A minimal HTTP API: POST /run with a plain-text prompt."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from http import HTTPStatus
from typing import Any
from wsgiref.simple_server import make_server

logger = logging.getLogger(__name__)

_TEXT = "text/plain; charset=utf-8"

WSGIApp = Callable[[dict[str, Any], Callable[..., Any]], Iterable[bytes]]


def _status(code: int) -> str:
    return f"{code} {HTTPStatus(code).phrase}"


def _error(
    start_response: Callable[..., Any],
    code: int,
    message: str,
    extra: list[tuple[str, str]] | None = None,
) -> list[bytes]:
    body = (message + "\n").encode("utf-8")
    headers = [
        ("Content-Type", _TEXT),
        ("X-Content-Type-Options", "nosniff"),
        ("Content-Length", str(len(body))),
    ]
    start_response(_status(code), headers + (extra or []))
    return [body]


def create_app(orchestrator: Any) -> WSGIApp:
    """Return a WSGI application that sends POST /run bodies to the orchestrator."""

    def app(environ: dict[str, Any], start_response: Callable[..., Any]) -> list[bytes]:
        if environ.get("PATH_INFO", "") != "/run":
            return _error(start_response, 404, "404 page not found")
        if environ.get("REQUEST_METHOD", "GET").upper() != "POST":
            return _error(start_response, 405, "Method Not Allowed", [("Allow", "POST")])

        try:
            length = int(environ.get("CONTENT_LENGTH") or 0)
        except ValueError:
            length = 0
        try:
            body = environ["wsgi.input"].read(length) if length > 0 else b""
        except (OSError, KeyError):
            return _error(start_response, 400, "failed to read request body")

        prompt = body.decode("utf-8", errors="replace")
        if not prompt:
            return _error(start_response, 400, "empty prompt")

        try:
            result = orchestrator.run(prompt)
        except Exception as exc:
            logger.error("web: orchestrator error: %s", exc)
            return _error(start_response, 500, f"orchestrator error: {exc}")

        payload = result.response.encode("utf-8")
        start_response(
            _status(200),
            [("Content-Type", _TEXT), ("Content-Length", str(len(payload)))],
        )
        return [payload]

    return app


def _serve(orchestrator: Any, host: str = "", port: int = 9090) -> None:
    """Serve the API until interrupted."""
    with make_server(host, port, create_app(orchestrator)) as server:
        logger.info("web: starting server addr=%s:%d", host, port)
        server.serve_forever()