"""Logging setup shared by the CLI and the API server.

Log records go to a file and to stderr, so that reports printed by the CLI on
stdout stay clean when redirected. The level comes from LOG_LEVEL (default
INFO).
"""

import logging
import os
import sys
from pathlib import Path
from typing import TextIO

LOG_FORMAT = "[%(asctime)s] %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Marks handlers installed by setup_logging so a second call replaces only them
_HANDLER_TAG = "_condocalc_handler"


def get_log_level() -> int:
    """Level named by LOG_LEVEL (case-insensitive), INFO if unset or unknown."""
    level_str = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    return LOG_LEVEL_MAP.get(level_str, logging.INFO)


def _tagged(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    setattr(handler, _HANDLER_TAG, True)
    return handler


def setup_logging(
    log_file: str = "logs/condocalc.log",
    stream: TextIO | None = None,
) -> logging.Logger:
    """
    Attach file and console handlers to the root logger.

    Args:
        log_file: Path to log file; parent directories are created
        stream: Console stream (default: sys.stderr)

    Returns:
        The package logger ("condocalc")
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    level = get_log_level()

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        if getattr(handler, _HANDLER_TAG, False):
            root_logger.removeHandler(handler)
            handler.close()

    root_logger.setLevel(level)
    root_logger.addHandler(_tagged(logging.StreamHandler(stream or sys.stderr), level))
    root_logger.addHandler(_tagged(logging.FileHandler(log_path, encoding="utf-8"), level))

    logger = logging.getLogger("condocalc")
    requested = os.getenv("LOG_LEVEL")
    if requested and requested.strip().upper() not in LOG_LEVEL_MAP:
        logger.warning("Unknown LOG_LEVEL %r, using INFO", requested)
    return logger
