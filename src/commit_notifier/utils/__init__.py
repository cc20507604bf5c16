"""
Utility modules for Commit Notifier
"""

from .config import Config
from .logger import get_logger, setup_logger, LogContext

__all__ = [
    "Config",
    "get_logger",
    "setup_logger",
    "LogContext",
]
