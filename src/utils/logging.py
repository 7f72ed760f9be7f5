# src/utils/logging.py

import logging
import os
import sys


class ColoredFormatter(logging.Formatter):
    """Formatter that colours the level name for terminal output."""

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        color = self.COLORS.get(record.levelname, self.RESET)
        record.levelname = f"{color}{record.levelname}{self.RESET}"

        return super().format(record)


def get_log_level(default: int = logging.INFO) -> int:
    """
    Resolve the process log level from the LOG_LEVEL environment variable.

    Accepts level names ("debug", "WARNING") or numeric strings ("10").
    Unknown values fall back to `default`.
    """
    raw = os.getenv("LOG_LEVEL")
    if not raw:
        return default

    raw = raw.strip()
    if raw.isdigit():
        return int(raw)

    level = logging.getLevelName(raw.upper())
    return level if isinstance(level, int) else default


def setup_global_logging(level: int = None):
    """
    Configure the root logger once at process startup so that third-party
    libraries (fastmcp, uvicorn, botocore) log in the same format.
    """
    level = level if level is not None else get_log_level()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    if root_logger.handlers:
        root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(ColoredFormatter(
        fmt='%(levelname)s:    %(name)s - %(message)s'
    ))
    root_logger.addHandler(handler)

    # botocore is chatty at INFO
    logging.getLogger("botocore").setLevel(max(level, logging.WARNING))
