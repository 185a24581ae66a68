"""
Utilities Module for the Spam Embedding Pipeline

Structure:
- logging_config.py: Shared logging utilities
- progress.py: Progress/ETA reporting for long runs
"""

# Re-export logging utilities at top level
from src.utils.logging_config import setup_logger, get_logger, logger

__all__ = [
    "setup_logger",
    "get_logger",
    "logger",
]
