"""
Logging configuration for the lesswatch daemon.

The daemon is a console tool: progress ("updating: ...") and errors go to
stderr. A daily-rotated log file can be added with --log-file for long
running sessions where the terminal scrollback isn't enough.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class FlushingHandler(logging.handlers.TimedRotatingFileHandler):
    """Handler that flushes after every emit for immediate visibility."""

    def emit(self, record):
        super().emit(record)
        self.flush()


def setup_logging(
    level: int = logging.INFO,
    console: bool = True,
    log_file: Optional[Path] = None,
    backup_count: int = 30,  # Keep 30 days of logs
) -> logging.Logger:
    """
    Set up logging for lesswatch.

    Args:
        level: Logging level (default: INFO)
        console: If True, log to stderr
        log_file: Optional log file, rotated daily at midnight
        backup_count: Number of daily backup files to keep (default: 30 days)

    Returns:
        Configured "lesswatch" logger
    """
    logger = logging.getLogger("lesswatch")
    logger.setLevel(level)

    # Check existing handlers to avoid duplicates
    has_file_handler = any(isinstance(h, FlushingHandler) for h in logger.handlers)
    has_console_handler = any(
        type(h) is logging.StreamHandler and h.stream == sys.stderr for h in logger.handlers
    )

    if console and not has_console_handler:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(console_handler)

    if log_file is not None and not has_file_handler:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = FlushingHandler(
            log_file,
            when="midnight",
            interval=1,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(file_handler)
        logger.debug(f"Log file: {log_file}")

    return logger


def get_logger(name: str = "lesswatch") -> logging.Logger:
    """
    Get a lesswatch logger instance.

    Args:
        name: Logger name (default: "lesswatch")

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
