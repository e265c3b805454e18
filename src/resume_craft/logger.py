"""
Logging setup for resume-craft.

Modules log through children of the ``resume_craft`` logger (see
:func:`get_logger`). Nothing is configured on import; the CLI calls
:func:`init_logger` once, which attaches a detailed per-run log file and a
terse stderr handler. Library callers leave handler setup to their host
application.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "resume_craft"
LATEST_POINTER = "latest.log"

FILE_FORMAT = "%(asctime)s [%(levelname)8s] %(name)s:%(funcName)s:%(lineno)d - %(message)s"
CONSOLE_FORMAT = "[%(levelname)s] %(message)s"


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


def _file_handler(log_dir: Path) -> logging.Handler:
    """Open ``resume_craft_<timestamp>.log`` and point ``latest.log`` at it."""
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"{ROOT_LOGGER_NAME}_{datetime.now():%Y%m%d_%H%M%S}.log"
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    try:
        (log_dir / LATEST_POINTER).write_text(log_file.name, encoding="utf-8")
    except OSError as e:
        logging.getLogger(ROOT_LOGGER_NAME).debug(f"Could not update {LATEST_POINTER}: {e}")
    return handler


def setup_logging(
    log_dir: Path,
    log_level: str = "INFO",
    log_to_file: bool = True,
    log_to_console: bool = True,
) -> logging.Logger:
    """
    Replace the handlers of the package logger.

    Args:
        log_dir: Directory for per-run log files
        log_level: Console threshold (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: Write a DEBUG-level log file under ``log_dir``
        log_to_console: Echo records to stderr; stdout is kept for command output

    Returns:
        The configured ``resume_craft`` logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if log_to_file else _level(log_level))
    logger.handlers.clear()

    if log_to_file:
        logger.addHandler(_file_handler(log_dir))

    if log_to_console:
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(_level(log_level))
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        logger.addHandler(console)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger for ``resume_craft.<name>``, or the package logger itself."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}" if name else ROOT_LOGGER_NAME)


# Set by init_logger; stays None for library use
_logger: Optional[logging.Logger] = None


def init_logger(log_dir: Path, log_level: str = "INFO", log_to_file: bool = True) -> logging.Logger:
    """Configure package logging once per process (called by the CLI)."""
    global _logger
    _logger = setup_logging(log_dir, log_level, log_to_file=log_to_file)
    return _logger
