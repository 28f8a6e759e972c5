"""Data models for s3deploy.

Provides upload tasks, statistics records, progress snapshots and Pydantic
models for bucket listings.
"""

from __future__ import annotations

from .base import BaseModel, CommonPrefix, ObjectListing, RemoteObject
from .progress import UploadProgress
from .stats import (
    ExecutionStats,
    RequestType,
    SessionRecord,
    SessionSummary,
    TransferRecord,
)
from .task import PoolSizingConfig, UploadTask

__all__ = [
    # Base
    "BaseModel",
    "RemoteObject",
    "CommonPrefix",
    "ObjectListing",
    # Progress
    "UploadProgress",
    # Statistics
    "RequestType",
    "TransferRecord",
    "SessionRecord",
    "SessionSummary",
    "ExecutionStats",
    # Tasks
    "UploadTask",
    "PoolSizingConfig",
]
