# SPDX-FileCopyrightText: 2025 robot-visual-perception
#
# SPDX-License-Identifier: MIT

"""Responder service application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator
from typing import Optional

from fastapi import FastAPI

from common import __version__
from common.config import config
from responder.dispatch import BackgroundDispatcher
from responder.handler import UniversalResponder
from responder.payload import ResponderConfig, build_responder_config

logger = logging.getLogger("responder")


def create_app(
    responder_config: Optional[ResponderConfig] = None,
    dispatcher: Optional[BackgroundDispatcher] = None,
) -> FastAPI:
    """FastAPI factory for the responder service.

    Every HTTP request is answered by :class:`UniversalResponder` before any
    routing happens. Without an explicit ``responder_config`` one is built from
    the environment, which raises :class:`responder.payload.PayloadError` for
    an undecodable payload.
    """
    if responder_config is None:
        responder_config = build_responder_config(config)
    if dispatcher is None:
        dispatcher = BackgroundDispatcher()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Log startup and flush pending request logs on shutdown."""
        logger.info(
            "Responder ready",
            extra={
                "status": responder_config.status,
                "body_bytes": len(responder_config.body),
            },
        )
        yield
        await dispatcher.drain(timeout=config.DRAIN_TIMEOUT)

    app = FastAPI(
        title="Pixel Responder",
        version=__version__,
        description="Answers every request with a fixed image",
        lifespan=lifespan,
        openapi_url=None,
        docs_url=None,
        redoc_url=None,
    )
    app.state.responder_config = responder_config
    app.state.dispatcher = dispatcher

    app.add_middleware(
        UniversalResponder, config=responder_config, dispatcher=dispatcher
    )
    return app
