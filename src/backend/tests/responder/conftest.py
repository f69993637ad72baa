# SPDX-FileCopyrightText: 2025 robot-visual-perception
#
# SPDX-License-Identifier: MIT
from __future__ import annotations

import asyncio
import threading
from typing import Any

import pytest

from responder.payload import RequestInfo


class CallbackRecorder:
    """Collects callback invocations from worker threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.requests: list[RequestInfo] = []
        self.errors: list[BaseException] = []

    def on_request(self, info: RequestInfo) -> None:
        with self._lock:
            self.requests.append(info)

    def on_error(self, err: BaseException) -> None:
        with self._lock:
            self.errors.append(err)


class RecordingSend:
    """ASGI ``send`` that stores messages and can fail on a chosen message."""

    def __init__(
        self, fail_on: str | None = None, error: Exception | None = None
    ) -> None:
        self.messages: list[dict[str, Any]] = []
        self.fail_on = fail_on
        self.error = error or ConnectionResetError("client went away")

    async def __call__(self, message: dict[str, Any]) -> None:
        if message["type"] == self.fail_on:
            raise self.error
        self.messages.append(message)

    @property
    def start(self) -> dict[str, Any]:
        return self.messages[0]

    @property
    def body(self) -> bytes:
        return b"".join(m.get("body", b"") for m in self.messages[1:])


def make_scope(
    method: str = "GET",
    path: str = "/",
    query_string: bytes = b"",
    headers: list[tuple[bytes, bytes]] | None = None,
    client: tuple[str, int] | None = ("203.0.113.7", 51234),
) -> dict[str, Any]:
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "path": path,
        "raw_path": path.encode("utf-8"),
        "query_string": query_string,
        "root_path": "",
        "headers": headers or [],
        "client": client,
        "server": ("127.0.0.1", 8080),
    }


async def idle_receive() -> dict[str, Any]:
    """Request body already consumed and the client still connected."""
    await asyncio.get_running_loop().create_future()
    return {"type": "http.disconnect"}


@pytest.fixture
def recorder() -> CallbackRecorder:
    return CallbackRecorder()


@pytest.fixture
def scope_factory():
    return make_scope


@pytest.fixture
def send_factory():
    return RecordingSend


@pytest.fixture
def receive():
    return idle_receive
