"""
Logging Configuration

Single stdout handler with a one-line format, configured once at startup.
"""

import logging
import sys


LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s  %(message)s"

# Third-party loggers that are too chatty at DEBUG/INFO
NOISY_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine", "uvicorn.access")


def setup_logging(level_name: str = "INFO") -> None:
    """
    Configure the root logger.
    
    Args:
        level_name: Log level name (DEBUG, INFO, WARNING, ERROR).
    """
    level = getattr(logging, level_name.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z"))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
