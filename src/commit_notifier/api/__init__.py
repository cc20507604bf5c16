"""
HTTP server for Commit Notifier
"""

from .app import create_app

__all__ = [
    "create_app",
]
