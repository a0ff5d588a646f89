"""Logging setup for the settle-check command."""

import logging
import sys
from typing import Iterable

# Log every WebDriver command, which at DEBUG means one line per settle poll
NOISY_LOGGERS = ("selenium.webdriver.remote.remote_connection", "urllib3.connectionpool")


def setup_logging(level: int = logging.INFO, noisy_loggers: Iterable[str] = NOISY_LOGGERS) -> None:
    """
    Configure timestamped, line-buffered logging for a settle-check run.

    Args:
        level: Logging level for the settle modules (default: INFO)
        noisy_loggers: Driver transport loggers held at WARNING or above
    """
    for stream in (sys.stdout, sys.stderr):
        if hasattr(stream, "reconfigure"):
            stream.reconfigure(line_buffering=True)

    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%H:%M:%S")
    for name in noisy_loggers:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def parse_log_level(name: str) -> int:
    """Map a level name such as "debug" to its logging constant, INFO for unknown names."""
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO
