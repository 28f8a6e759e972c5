"""Parallel upload engine for s3deploy.

This module provides:
- Directory walking and upload task construction
- Thread-safe progress aggregation
- The worker-pool scheduler

These are internal implementation details. Use `Repository` from
`s3deploy.services.repository` as the public API.
"""

from s3deploy.uploaders.common import (
    build_upload_tasks,
    collect_files,
    guess_content_type,
    total_bytes,
)
from s3deploy.uploaders.constants import (
    DEFAULT_FILES_PER_WORKER,
    DEFAULT_TIMEOUT,
    DEFAULT_UPLOAD_MAX_WORKERS,
    DEFAULT_UPLOAD_MIN_WORKERS,
    PROGRESS_LOG_STEP_PERCENT,
)
from s3deploy.uploaders.progress import PercentCompleteLogger, ProgressAggregator
from s3deploy.uploaders.scheduler import (
    UploadScheduler,
    compute_worker_count,
    run_batch_upload,
)

__all__ = [
    # Constants
    "DEFAULT_FILES_PER_WORKER",
    "DEFAULT_TIMEOUT",
    "DEFAULT_UPLOAD_MAX_WORKERS",
    "DEFAULT_UPLOAD_MIN_WORKERS",
    "PROGRESS_LOG_STEP_PERCENT",
    # Common utilities
    "build_upload_tasks",
    "collect_files",
    "guess_content_type",
    "total_bytes",
    # Progress
    "PercentCompleteLogger",
    "ProgressAggregator",
    # Scheduler
    "UploadScheduler",
    "compute_worker_count",
    "run_batch_upload",
]
