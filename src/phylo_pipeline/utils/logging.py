"""
Logging utilities for the phylogenetic batch pipeline.

This module provides centralized logging configuration using loguru, the
per-stage information banner and execution time reporting.
"""

import sys
from pathlib import Path
from typing import Optional, Any

from loguru import logger


DEFAULT_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None,
) -> None:
    """
    Setup centralized logging configuration.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to a run log file
        format_string: Custom format string
    """
    # Remove default logger
    logger.remove()

    if format_string is None:
        format_string = DEFAULT_FORMAT

    # Console handler
    logger.add(
        sys.stderr,
        format=format_string,
        level=level,
        colorize=True,
    )

    # File handler
    if log_file:
        logger.add(
            log_file,
            format=format_string,
            level=level,
            mode="w",
            enqueue=True,
        )

    logger.debug("Logging system initialized")


def log_stage_info(analysis: str, executable: str, **fields: Any) -> None:
    """
    Log the aligned information banner printed before a stage starts.

    Args:
        analysis: Human readable description of the stage
        executable: External program the stage drives
        **fields: Extra key/value lines, keys use underscores for spaces
    """
    for key, value in fields.items():
        label = key.replace("_", " ").capitalize()
        logger.info(f"{label:18}: {value}")
    logger.info(f"{'Analyses':18}: {analysis}")
    logger.info(f"{'Executable':18}: {executable}")


def format_duration(seconds: float) -> str:
    """Format a duration in seconds as HH:MM:SS."""
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def log_execution_time(seconds: float) -> None:
    """Report the run time; short runs in seconds, longer ones as HH:MM:SS."""
    if seconds < 60:
        logger.info(f"Execution time: {seconds:.2f}s")
    else:
        logger.info(f"Execution time (HH:MM:SS): {format_duration(seconds)}")


class LoggerMixin:
    """Mixin class to add logging capabilities to any class."""

    @property
    def logger(self):
        """Get logger instance with class name."""
        return logger.bind(class_name=self.__class__.__name__)
