"""Logging utilities for tabprobe."""
import logging
import sys
import time
from typing import Optional
from pathlib import Path


class ColoredFormatter(logging.Formatter):
    """Colored log formatter for terminal output."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        # Work on a copy so file handlers sharing the record stay uncolored
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, self.RESET)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def setup_logger(
    name: str,
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
    structured: Optional[bool] = None
) -> logging.Logger:
    """
    Set up a logger with console and optional file output.

    Unset arguments fall back to the global config.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file path for log output
        structured: Use structured (JSON) logging

    Returns:
        Configured logger
    """
    logger = logging.getLogger(f"tabprobe.{name}")

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    if level is None or log_file is None or structured is None:
        from tabprobe.utils.config import config
        level = level or config.log_level
        log_file = log_file if log_file is not None else config.log_file
        structured = structured if structured is not None else config.structured_logs

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = False

    # Worker processes keep stdout free; everything goes to stderr
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG)

    if structured:
        console_format = '{"time": "%(asctime)s", "name": "%(name)s", "level": "%(levelname)s", "process": %(process)d, "message": "%(message)s"}'
        console_handler.setFormatter(logging.Formatter(console_format))
    else:
        console_format = '%(asctime)s | %(name)-28s | %(levelname)-8s | %(message)s'
        console_handler.setFormatter(ColoredFormatter(console_format, datefmt='%H:%M:%S'))

    logger.addHandler(console_handler)

    # File handler (optional)
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_format = '%(asctime)s | %(name)s | %(process)d | %(levelname)s | %(message)s'
        file_handler.setFormatter(logging.Formatter(file_format))
        logger.addHandler(file_handler)

    return logger


class TimedStep:
    """Context manager that logs a named stage with its duration."""

    def __init__(self, logger: logging.Logger, name: str):
        self.logger = logger
        self.name = name
        self.start_time: Optional[float] = None
        self.duration: float = 0.0

    def __enter__(self):
        self.start_time = time.monotonic()
        self.logger.info(f"Starting: {self.name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.monotonic() - self.start_time

        if exc_type:
            self.logger.error(f"Failed: {self.name} ({self.duration:.2f}s) - {exc_val}")
        else:
            self.logger.info(f"Completed: {self.name} ({self.duration:.2f}s)")

        return False  # Don't suppress exceptions


def set_log_level(level: str):
    """Change the level of every tabprobe logger, including ones created later."""
    from tabprobe.utils.config import config
    config.log_level = level

    numeric = getattr(logging, level.upper(), logging.INFO)
    for name, logger in logging.root.manager.loggerDict.items():
        if name.startswith("tabprobe.") and isinstance(logger, logging.Logger):
            logger.setLevel(numeric)
