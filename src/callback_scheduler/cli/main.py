# src/callback_scheduler/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then serves the HTTP API until
SIGINT/SIGTERM. Pending callbacks are abandoned on shutdown.
"""

from __future__ import annotations

import logging
import sys

from aiohttp import web

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.http_connector import create_app
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = settings.data_dir if settings.log_to_file else None
    setup_logging(log_dir=log_dir, console_level=console_level)

    # keep noisy libs readable
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    state = create_initial_state(settings=settings)
    app = create_app(state)

    logger.info("Starting %s on %s:%d...", settings.app_name, settings.host, settings.port)
    try:
        web.run_app(app, host=settings.host, port=settings.port, print=None)
    except OSError:
        # Failing to bind is the only fatal startup condition.
        logger.exception("Could not listen on %s:%d", settings.host, settings.port)
        sys.exit(1)

    logger.info("Bye.")


if __name__ == "__main__":
    main()
