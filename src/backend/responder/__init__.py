# SPDX-FileCopyrightText: 2025 robot-visual-perception
#
# SPDX-License-Identifier: MIT
"""Service answering every HTTP request with one fixed image."""

from .dispatch import BackgroundDispatcher  # noqa: F401
from .handler import UniversalResponder  # noqa: F401
from .payload import (  # noqa: F401
    WHITE_PIXEL_B64,
    PayloadError,
    RequestInfo,
    ResponderConfig,
)
