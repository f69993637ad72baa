# SPDX-FileCopyrightText: 2025 robot-visual-perception
#
# SPDX-License-Identifier: MIT
"""Fixed response definition shared by every request."""

from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from common.config import Config

logger = logging.getLogger("responder")

# 1x1 PNG of a single white pixel
WHITE_PIXEL_B64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABAQMAAAAl21bKAAAAA1BMVEUAAACnej3aAAAAAXRSTlMA"
    "QObYZgAAAApJREFUCNdjYAAAAAIAAeIhvDMAAAAASUVORK5CYII="
)


class PayloadError(ValueError):
    """The configured response payload could not be loaded."""


@dataclass(frozen=True)
class RequestInfo:
    """Metadata of a request that was answered successfully."""

    url: str
    remote_addr: str
    forwarded_for: str
    method: str = ""


RequestCallback = Callable[[RequestInfo], None]
ErrorCallback = Callable[[BaseException], None]


def log_request(info: RequestInfo) -> None:
    logger.info(
        f"URL requested: {info.url}",
        extra={
            "remote_addr": info.remote_addr,
            "forwarded_for": info.forwarded_for,
            "method": info.method,
        },
    )


def log_write_error(err: BaseException) -> None:
    logger.error("An error happened asynchronously.", extra={"error": str(err)})


@dataclass(frozen=True)
class ResponderConfig:
    """Immutable response served for every request.

    ``headers`` maps a header name to its values in emission order. It is
    frozen into a read-only mapping of tuples on construction, so one
    instance can be shared by all concurrent requests without locking.
    """

    body: bytes
    headers: Mapping[str, Sequence[str]] = field(default_factory=dict)
    status: int = 200
    on_error: ErrorCallback = log_write_error
    on_request: RequestCallback = log_request

    def __post_init__(self) -> None:
        if not 100 <= self.status <= 599:
            raise ValueError(f"Invalid HTTP status code: {self.status}")

        frozen: dict[str, tuple[str, ...]] = {}
        for name, values in self.headers.items():
            if isinstance(values, str):
                raise TypeError(f"Header {name!r} values must be a sequence of strings")
            values = tuple(values)
            if not isinstance(name, str) or not all(isinstance(v, str) for v in values):
                raise TypeError(f"Header {name!r} must map a string to strings")
            frozen[name] = values

        object.__setattr__(self, "body", bytes(self.body))
        object.__setattr__(self, "headers", MappingProxyType(frozen))

    @property
    def raw_headers(self) -> list[tuple[bytes, bytes]]:
        """Headers as ASGI ``(name, value)`` byte pairs, one pair per value."""
        return [
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, values in self.headers.items()
            for value in values
        ]


def decode_payload(encoded: str) -> bytes:
    """Decode a standard base64 payload, rejecting any non-alphabet input."""
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise PayloadError(f"Invalid base64 payload: {exc}") from exc


def load_payload(
    payload_file: Optional[Path] = None, payload_b64: Optional[str] = None
) -> bytes:
    """Load the response body.

    A payload file wins over a base64 string, which wins over the default
    white pixel.
    """
    if payload_file is not None:
        try:
            return payload_file.read_bytes()
        except OSError as exc:
            raise PayloadError(
                f"Cannot read payload file {payload_file}: {exc}"
            ) from exc
    return decode_payload(payload_b64 if payload_b64 is not None else WHITE_PIXEL_B64)


def build_responder_config(
    cfg: Config,
    on_error: ErrorCallback = log_write_error,
    on_request: RequestCallback = log_request,
) -> ResponderConfig:
    """Assemble the process-wide response from configuration.

    Raises:
        PayloadError: if the payload cannot be decoded or read.
    """
    return ResponderConfig(
        body=load_payload(cfg.PAYLOAD_FILE, cfg.PAYLOAD_B64),
        headers={"Content-Type": [cfg.CONTENT_TYPE]},
        status=cfg.STATUS,
        on_error=on_error,
        on_request=on_request,
    )
