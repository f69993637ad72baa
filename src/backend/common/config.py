# SPDX-FileCopyrightText: 2025 robot-visual-perception
#
# SPDX-License-Identifier: MIT
import os
from typing import Optional
from pathlib import Path


class Config:
    """Application configuration."""

    # Listener settings
    HOST: str = os.getenv("RESPONDER_HOST", "0.0.0.0")
    PORT: int = int(os.getenv("RESPONDER_PORT", "8080"))

    # Response settings
    PAYLOAD_B64: Optional[str] = os.getenv(
        "RESPONDER_PAYLOAD_B64"
    )  # overrides the white pixel
    PAYLOAD_FILE: Optional[Path] = (
        Path(os.environ["RESPONDER_PAYLOAD_FILE"]).resolve()
        if os.getenv("RESPONDER_PAYLOAD_FILE")
        else None
    )  # raw payload, wins over PAYLOAD_B64
    CONTENT_TYPE: str = os.getenv("RESPONDER_CONTENT_TYPE", "image/png")
    STATUS: int = int(os.getenv("RESPONDER_STATUS", "200"))

    # Seconds to wait for pending log dispatches on shutdown
    DRAIN_TIMEOUT: float = float(os.getenv("DRAIN_TIMEOUT", "5.0"))


config = Config()
