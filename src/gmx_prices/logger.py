"""Logging setup for gmx-prices.

Records go to stderr; stdout is reserved for ``--show-config`` and tables.
"""

import logging
import os
import sys
from typing import TextIO

# Below DEBUG; shows raw contract calls
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

NOISY_LOGGERS = ("web3", "urllib3", "backoff")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Paints the level name with ANSI colours when ``use_color`` is set."""

    LEVEL_COLORS = {
        "TRACE": "\033[90m",
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"
    BOLD = "\033[1m"

    def __init__(self, *args, use_color: bool = True, **kwargs):
        super().__init__(*args, **kwargs)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname) if self.use_color else None
        if color is None:
            return super().format(record)

        plain = record.levelname
        record.levelname = f"{color}{self.BOLD}{plain}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = plain


def resolve_level(log_level: str | None = None) -> int:
    """Numeric level for ``log_level``, else LOG_LEVEL, else INFO."""
    name = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    if name == "TRACE":
        return TRACE
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def setup_logging(log_level: str | None = None, stream: TextIO | None = None) -> None:
    """Install a single stderr handler on the root logger.

    At DEBUG the web3, urllib3 and backoff loggers are held at WARNING; at
    TRACE they are opened up too.
    """
    stream = stream or sys.stderr
    level = resolve_level(log_level)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        ColoredFormatter(
            fmt=LOG_FORMAT,
            datefmt=DATE_FORMAT,
            use_color=hasattr(stream, "isatty") and stream.isatty(),
        )
    )
    logging.basicConfig(level=level, handlers=[handler], force=True)

    if level == logging.DEBUG:
        noisy_level = logging.WARNING
    elif level == TRACE:
        noisy_level = TRACE
    else:
        return
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
