"""Centralized logging configuration.

Configures one format for every module, logging to stdout and, when
configured, to a file as well.  Modules obtain their logger with
``logging.getLogger(__name__)``.
"""

from __future__ import annotations

import logging
import sys

from marketplace.infrastructure.config import Settings

LOG_FORMAT = "%(asctime)s - %(levelname)s - [PID:%(process)d] - %(name)s - %(message)s"


def setup_logging(settings: Settings | None = None) -> None:
    """Configure the root logger from ``settings`` (environment by default)."""
    settings = settings or Settings.from_env()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file))

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )

    # Reduce verbosity from external libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
