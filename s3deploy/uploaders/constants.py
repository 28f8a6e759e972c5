"""Shared constants for uploader modules.

The pool defaults suit a CI host deploying a site or repository of many
small files. For slow links, lower the workers with
``-D s3deploy.threads.max=N``.
"""

from s3deploy.core.timeouts import DEFAULT_READ_TIMEOUT_SECONDS
from s3deploy.models.task import DEFAULT_DIVISOR, DEFAULT_MAX_WORKERS, DEFAULT_MIN_WORKERS

# =============================================================================
# Worker Pool
# =============================================================================

# Lower and upper bound on upload threads
DEFAULT_UPLOAD_MIN_WORKERS = DEFAULT_MIN_WORKERS
DEFAULT_UPLOAD_MAX_WORKERS = DEFAULT_MAX_WORKERS

# Files per worker before another worker is added
DEFAULT_FILES_PER_WORKER = DEFAULT_DIVISOR

# =============================================================================
# Transfer
# =============================================================================

# Per-request read timeout
DEFAULT_TIMEOUT = DEFAULT_READ_TIMEOUT_SECONDS

# Log a progress line every N percent during directory uploads
PROGRESS_LOG_STEP_PERCENT = 10
