"""Service layer for s3deploy.

Provides the repository session, its statistics, and observer hooks.
"""

from __future__ import annotations

from .base import BaseService
from .listener import LoggingObserver, RepositoryObserver, format_summary
from .repository import Repository, default_client_factory
from .stats import SessionStats

__all__ = [
    "BaseService",
    "Repository",
    "default_client_factory",
    "SessionStats",
    "RepositoryObserver",
    "LoggingObserver",
    "format_summary",
]
