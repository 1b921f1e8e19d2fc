"""Logging setup shared by scripts and embedding applications."""

import logging
from typing import Optional

from salon_calendar.core.config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging with a single stream handler.

    Args:
        level: Log level name (e.g. "DEBUG"); defaults to LOG_LEVEL from config
    """
    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler()],
    )
