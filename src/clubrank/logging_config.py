"""
Central logging setup.

Usage:
- Services and scripts call setup_logging() once at startup.
- Level and format come from settings (CLUBRANK_LOG_LEVEL, CLUBRANK_LOG_FORMAT)
  unless passed explicitly.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from clubrank.config import settings

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
PLAIN_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Configure the root logger, replacing any handlers already installed.

    Args:
        level: Level name such as "DEBUG"; defaults to settings.log_level
        log_format: "console" (verbose, with logger name) or "plain"
    """
    level_name = (level or settings.log_level).upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level_name}")

    fmt = PLAIN_FORMAT if (log_format or settings.log_format) == "plain" else CONSOLE_FORMAT

    logging.basicConfig(
        level=numeric_level,
        format=fmt,
        datefmt="%H:%M:%S",
        stream=sys.stdout,
        force=True,
    )
