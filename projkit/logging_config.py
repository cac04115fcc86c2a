from __future__ import annotations

import logging
import os
from logging.config import dictConfig

LOG_FORMAT = "[%(levelname)s] %(message)s"


def configure_logging(verbose: bool = False) -> None:
    """Configure console logging for the CLI.

    PROJKIT_LOG_LEVEL wins when set; otherwise DEBUG with --verbose, else INFO.
    Only the `projkit` logger tree is routed to the console handler.
    """
    level = os.getenv("PROJKIT_LOG_LEVEL") or ("DEBUG" if verbose else "INFO")

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "plain": {"format": LOG_FORMAT},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "plain",
                    "stream": "ext://sys.stderr",
                },
            },
            "loggers": {
                "projkit": {
                    "handlers": ["console"],
                    "level": level.upper(),
                    "propagate": False,
                },
            },
        }
    )
    logging.getLogger(__name__).debug("Logging configured at %s", level.upper())
