"""Upload work items and worker-pool sizing."""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path

from s3deploy.core.exceptions import ConfigurationError

DEFAULT_MIN_WORKERS = 10
DEFAULT_MAX_WORKERS = 50
DEFAULT_DIVISOR = 50

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class UploadTask:
    """One file to upload, consumed exactly once by a worker."""

    source_path: Path
    destination_key: str
    size_bytes: int
    content_type: str = DEFAULT_CONTENT_TYPE


@dataclass(frozen=True)
class PoolSizingConfig:
    """Worker-pool sizing.

    ``divisor`` is how many tasks one worker should handle before another
    worker is added.
    """

    min_workers: int = DEFAULT_MIN_WORKERS
    max_workers: int = DEFAULT_MAX_WORKERS
    divisor: int = DEFAULT_DIVISOR

    def __post_init__(self) -> None:
        if self.min_workers < 1:
            raise ConfigurationError(
                "min_workers must be at least 1", field="min_workers", value=self.min_workers
            )
        if self.max_workers < self.min_workers:
            raise ConfigurationError(
                "max_workers must be >= min_workers", field="max_workers", value=self.max_workers
            )
        if self.divisor < 1:
            raise ConfigurationError(
                "divisor must be at least 1", field="divisor", value=self.divisor
            )

    def worker_count(self, task_count: int) -> int:
        """Workers to use for ``task_count`` tasks (0 when there is nothing to do)."""
        if task_count <= 0:
            return 0
        wanted = math.ceil(task_count / self.divisor)
        return max(self.min_workers, min(wanted, self.max_workers))
