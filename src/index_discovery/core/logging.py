"""Logging configuration."""

import logging
import sys

from index_discovery.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure logging for the API and the CLI scripts.

    Args:
        level: Overrides ``settings.log_level``; the scripts pass ``DEBUG``
            for ``--verbose``.
    """
    settings = get_settings()

    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # One access line per probe drowns the discovery progress output.
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name (typically __name__ of the module).

    Returns:
        logging.Logger: Configured logger instance.
    """
    return logging.getLogger(name)
