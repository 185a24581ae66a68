"""
Logging Configuration Module for the Spam Embedding Pipeline

Configures loguru with a colored console sink and two rotating file sinks in
the logs/ directory: one for every message and one for errors only. Library
modules import `logger` from here and never add sinks themselves.
"""

import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Optional
from loguru import logger as _logger

from src.config import LOGS_DIR


# File format: Full timestamp with source location
FILE_LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"

# Console format: Short timestamp without source location
CONSOLE_LOG_FORMAT = "{time:HH:mm:ss} | {level: <8} | {message}"


def setup_logger(log_level: str = "INFO", logs_dir: Optional[Path] = None) -> Any:
    """
    Configure loguru logger with console and dual file outputs.

    Creates two log files:
    1. pipeline_{timestamp}.log - All log messages (10MB rotation, keep 10 files)
    2. errors_{timestamp}.log - Error/Critical only (5MB rotation, keep 20 files)

    Args:
        log_level: Minimum level for console and pipeline log
        logs_dir: Directory for log files (defaults to LOGS_DIR)

    Returns:
        Configured loguru logger instance
    """
    logs_dir = Path(logs_dir) if logs_dir is not None else LOGS_DIR

    # Remove default handler to avoid duplicate logs
    _logger.remove()

    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    _logger.add(
        sys.stderr,
        format=CONSOLE_LOG_FORMAT,
        level=log_level,
        colorize=True,
    )

    pipeline_log = logs_dir / f"pipeline_{timestamp}.log"
    _logger.add(
        pipeline_log,
        format=FILE_LOG_FORMAT,
        level=log_level,
        rotation="10 MB",
        retention=10,
        compression="zip",
        enqueue=True,  # Thread-safe logging
    )

    error_log = logs_dir / f"errors_{timestamp}.log"
    _logger.add(
        error_log,
        format=FILE_LOG_FORMAT,
        level="ERROR",
        rotation="5 MB",
        retention=20,
        compression="zip",
        enqueue=True,
    )

    _logger.debug(f"Logging configured: {pipeline_log}")
    return _logger


def get_logger(name: str) -> Any:
    """
    Get the global logger with a module name bound to it.

    Example:
        >>> logger = get_logger("generate_embeddings")
        >>> logger.info("Corpus loaded")
    """
    return _logger.bind(name=name)


def log_step_start(step_name: str) -> None:
    """Log the start of a pipeline command with a banner."""
    _logger.info("=" * 80)
    _logger.info(f"STARTING: {step_name}")
    _logger.info("=" * 80)


def log_step_complete(step_name: str, duration: float) -> None:
    """
    Log the completion of a pipeline command with duration.

    Args:
        step_name: Name of the command
        duration: Duration in seconds
    """
    _logger.success(f"COMPLETED: {step_name}")
    _logger.info(f"Duration: {duration:.2f} seconds ({duration / 60:.2f} minutes)")
    _logger.info("=" * 80)


# Export the logger instance for direct use
logger = _logger


__all__ = [
    "setup_logger",
    "get_logger",
    "log_step_start",
    "log_step_complete",
    "logger",
]
