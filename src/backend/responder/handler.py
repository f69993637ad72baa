# SPDX-FileCopyrightText: 2025 robot-visual-perception
#
# SPDX-License-Identifier: MIT
"""ASGI component answering every HTTP request with the same response."""

from __future__ import annotations

import asyncio
import logging

from starlette.requests import Request
from starlette.types import ASGIApp, Receive, Scope, Send

from responder.dispatch import BackgroundDispatcher
from responder.payload import RequestInfo, ResponderConfig

logger = logging.getLogger("responder")


def format_remote_addr(client: tuple[str, int] | None) -> str:
    """Render a peer as ``host:port`` (IPv6 hosts bracketed), or ``""`` if unknown."""
    if not client:
        return ""
    host, port = client
    if ":" in host:
        host = f"[{host}]"
    return f"{host}:{port}"


def request_info(scope: Scope) -> RequestInfo:
    """Snapshot the request target, peer address and forwarded-for header."""
    request = Request(scope)
    target = scope.get("raw_path") or scope["path"].encode("utf-8")
    url = target.split(b"?", 1)[0].decode("latin-1")
    if scope.get("query_string"):
        url += "?" + scope["query_string"].decode("latin-1")
    return RequestInfo(
        url=url,
        remote_addr=format_remote_addr(scope.get("client")),
        forwarded_for=request.headers.get("x-forwarded-for", ""),
        method=request.method,
    )


async def watch_disconnect(receive: Receive, disconnected: asyncio.Event) -> None:
    """Consume request messages until the client goes away."""
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            disconnected.set()
            return


async def ensure_connected(disconnected: asyncio.Event) -> None:
    """Let the watcher catch up, then fail if the client has disconnected."""
    await asyncio.sleep(0)
    if disconnected.is_set():
        raise ConnectionResetError(
            "Client disconnected before the response was written"
        )


class UniversalResponder:
    """Answer every HTTP request with the configured status, headers and body.

    Method, path, query, headers and request body never influence the
    response. After the body is written the request metadata goes to
    ``config.on_request``; if writing fails the error goes to
    ``config.on_error`` instead. Both run through the dispatcher, so the
    handler returns without waiting on them and never raises to the server.

    Installed as the outermost ASGI middleware of the host app so that no
    route matching happens; lifespan events are passed through to the app.
    """

    def __init__(
        self,
        app: ASGIApp,
        config: ResponderConfig,
        dispatcher: BackgroundDispatcher,
    ) -> None:
        self.app = app
        self.config = config
        self.dispatcher = dispatcher
        self.raw_headers = config.raw_headers
        if not any(name == b"content-length" for name, _ in self.raw_headers):
            self.raw_headers.append(
                (b"content-length", str(len(config.body)).encode("latin-1"))
            )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            await self.handle(scope, receive, send)
        elif scope["type"] == "websocket":
            await send({"type": "websocket.close", "code": 1000})
        else:
            await self.app(scope, receive, send)

    async def handle(self, scope: Scope, receive: Receive, send: Send) -> None:
        # Servers drop writes to a closed connection silently, so the
        # disconnect is read from ``receive`` instead
        disconnected = asyncio.Event()
        watcher = asyncio.create_task(watch_disconnect(receive, disconnected))
        try:
            await ensure_connected(disconnected)
            await send(
                {
                    "type": "http.response.start",
                    "status": self.config.status,
                    "headers": self.raw_headers,
                }
            )
            await ensure_connected(disconnected)
            await send({"type": "http.response.body", "body": self.config.body})
        except Exception as exc:
            logger.debug("Response write failed", extra={"path": scope.get("path")})
            self.dispatcher.dispatch(self.config.on_error, exc)
            return
        finally:
            watcher.cancel()

        self.dispatcher.dispatch(self.config.on_request, request_info(scope))
