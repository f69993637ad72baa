# SPDX-FileCopyrightText: 2025 robot-visual-perception
#
# SPDX-License-Identifier: MIT

"""CLI entry point for the responder service."""

import logging
import sys

import uvicorn

from common import __version__
from common.logging_config import configure_logging
from responder.payload import PayloadError, build_responder_config

logger = logging.getLogger("responder")


def main() -> None:
    """Decode the payload, then serve it until terminated.

    Exits with status 1 without binding the listener when the configuration
    or payload is invalid, and with status 1 when the server fails.
    """
    configure_logging(service_name="responder", service_version=__version__)

    try:
        # Import here so malformed env settings are logged, not raised on import
        from common.config import config

        responder_config = build_responder_config(config)
    except (PayloadError, ValueError) as exc:
        logger.critical(
            "Failed to load responder configuration", extra={"error": str(exc)}
        )
        sys.exit(1)

    from responder.main import create_app

    app = create_app(responder_config)
    logger.info(f"Starting responder service on http://{config.HOST}:{config.PORT}")

    # uvicorn exits with status 1 itself when the address cannot be bound
    try:
        uvicorn.run(app, host=config.HOST, port=config.PORT, log_config=None)
    except Exception as exc:
        logger.critical(
            "Server stopped unexpectedly",
            exc_info=True,
            extra={"error": str(exc)},
        )
        sys.exit(1)


if __name__ == "__main__":
    main()
