# SPDX-FileCopyrightText: 2025 robot-visual-perception
#
# SPDX-License-Identifier: MIT
import base64
import dataclasses
import logging
from pathlib import Path

import pytest

from common.config import Config
from responder.payload import (
    WHITE_PIXEL_B64,
    PayloadError,
    RequestInfo,
    ResponderConfig,
    build_responder_config,
    decode_payload,
    load_payload,
    log_request,
    log_write_error,
)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def test_default_payload_is_png() -> None:
    body = decode_payload(WHITE_PIXEL_B64)
    assert body.startswith(PNG_SIGNATURE)


@pytest.mark.parametrize("encoded", ["not base64!", "iVBORw0KGgo=====", "@@@@"])
def test_invalid_base64_raises_payload_error(encoded: str) -> None:
    with pytest.raises(PayloadError):
        decode_payload(encoded)


def test_payload_file_wins_over_base64(tmp_path: Path) -> None:
    payload = tmp_path / "pixel.gif"
    payload.write_bytes(b"GIF89a")

    assert load_payload(payload, base64.b64encode(b"other").decode()) == b"GIF89a"


def test_base64_override_wins_over_default() -> None:
    assert load_payload(None, base64.b64encode(b"custom").decode()) == b"custom"


def test_missing_payload_file_raises_payload_error(tmp_path: Path) -> None:
    with pytest.raises(PayloadError, match="Cannot read payload file"):
        load_payload(tmp_path / "missing.png")


def test_config_is_immutable() -> None:
    config = ResponderConfig(body=b"x", headers={"Content-Type": ["image/png"]})

    with pytest.raises(dataclasses.FrozenInstanceError):
        config.status = 404  # type: ignore[misc]
    with pytest.raises(TypeError):
        config.headers["Content-Type"] = ["text/plain"]  # type: ignore[index]
    assert config.headers["Content-Type"] == ("image/png",)


def test_config_copies_mutable_inputs() -> None:
    headers = {"X-Tag": ["a"]}
    body = bytearray(b"abc")
    config = ResponderConfig(body=body, headers=headers)  # type: ignore[arg-type]

    headers["X-Tag"].append("b")
    body[0] = ord("z")

    assert config.headers["X-Tag"] == ("a",)
    assert config.body == b"abc"


@pytest.mark.parametrize("status", [0, 99, 600])
def test_invalid_status_rejected(status: int) -> None:
    with pytest.raises(ValueError, match="Invalid HTTP status"):
        ResponderConfig(body=b"", status=status)


def test_header_values_must_be_a_sequence() -> None:
    with pytest.raises(TypeError):
        ResponderConfig(
            body=b"", headers={"Content-Type": "image/png"}  # type: ignore[dict-item]
        )


def test_raw_headers_emit_one_pair_per_value() -> None:
    config = ResponderConfig(
        body=b"", headers={"Set-Cookie": ["a=1", "b=2"], "Content-Type": ["image/png"]}
    )

    assert config.raw_headers == [
        (b"set-cookie", b"a=1"),
        (b"set-cookie", b"b=2"),
        (b"content-type", b"image/png"),
    ]


def test_build_from_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    cfg = Config()
    monkeypatch.setattr(cfg, "PAYLOAD_FILE", None)
    monkeypatch.setattr(cfg, "PAYLOAD_B64", None)
    monkeypatch.setattr(cfg, "CONTENT_TYPE", "image/png")
    monkeypatch.setattr(cfg, "STATUS", 200)

    config = build_responder_config(cfg)

    assert config.status == 200
    assert dict(config.headers) == {"Content-Type": ("image/png",)}
    assert config.body == decode_payload(WHITE_PIXEL_B64)
    assert config.on_request is log_request
    assert config.on_error is log_write_error


def test_build_propagates_decode_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    cfg = Config()
    monkeypatch.setattr(cfg, "PAYLOAD_FILE", None)
    monkeypatch.setattr(cfg, "PAYLOAD_B64", "%%%")

    with pytest.raises(PayloadError):
        build_responder_config(cfg)


def test_log_request_records_metadata(caplog: pytest.LogCaptureFixture) -> None:
    info = RequestInfo(
        url="/a?b=c", remote_addr="10.1.2.3:4000", forwarded_for="1.2.3.4", method="GET"
    )

    with caplog.at_level(logging.INFO, logger="responder"):
        log_request(info)

    record = caplog.records[-1]
    assert record.getMessage() == "URL requested: /a?b=c"
    assert record.remote_addr == "10.1.2.3:4000"
    assert record.forwarded_for == "1.2.3.4"


def test_log_write_error_records_error(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR, logger="responder"):
        log_write_error(ConnectionResetError("peer reset"))

    record = caplog.records[-1]
    assert record.levelno == logging.ERROR
    assert record.error == "peer reset"
