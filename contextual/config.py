"""Configuration for contextual applications.

The pipeline core reads no settings; these only control logging for
applications built on it.

Environment Variables:
    LOG_LEVEL: Logging level name (default: INFO)
    LOG_FORMAT: logging format string
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

logger = logging.getLogger(__name__)


def get_log_level() -> int:
    """Get log level from environment or return default."""
    name = os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        logger.warning(f"Invalid LOG_LEVEL {name!r}, using default {DEFAULT_LOG_LEVEL}")
        return logging.getLevelName(DEFAULT_LOG_LEVEL)
    return level


def get_log_format() -> str:
    return os.getenv("LOG_FORMAT", DEFAULT_LOG_FORMAT)


def configure_logging() -> None:
    """Configure the contextual logger hierarchy from the environment."""
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(get_log_format()))

    root = logging.getLogger("contextual")
    root.handlers = [handler]
    root.setLevel(get_log_level())
