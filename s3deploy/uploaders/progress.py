"""Session-wide percent-complete tracking for parallel uploads."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Optional

from s3deploy.models.progress import UploadProgress

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[UploadProgress], None]


class ProgressAggregator:
    """Thread-safe counter of started and finished items.

    ``total`` is fixed at construction. Failed items count as finished so the
    figure reaches 1.0 once every item has been attempted. Callbacks run
    outside the lock.
    """

    def __init__(self, total: int, callback: Optional[ProgressCallback] = None) -> None:
        if total < 0:
            raise ValueError(f"total must be >= 0, got {total}")
        self.total = total
        self._callback = callback
        self._lock = threading.Lock()
        self._started = 0
        self._completed = 0
        self._failed = 0
        self._bytes = 0

    def on_item_started(self) -> None:
        with self._lock:
            self._started += 1

    def on_item_completed(self, success: bool = True, byte_count: int = 0, key: str = "") -> None:
        with self._lock:
            self._completed += 1
            if not success:
                self._failed += 1
            self._bytes += byte_count
            snapshot = UploadProgress(
                current=self._completed,
                total=self.total,
                failed=self._failed,
                bytes_sent=self._bytes,
                key=key,
                success=success,
            )

        if snapshot.current > self.total:
            logger.warning("More completions (%d) than items (%d)", snapshot.current, self.total)
        if self._callback is None:
            return
        try:
            self._callback(snapshot)
        except Exception:
            # Called on an upload worker thread
            logger.exception("Progress callback failed for %s", key)

    @property
    def started(self) -> int:
        with self._lock:
            return self._started

    @property
    def completed(self) -> int:
        with self._lock:
            return self._completed

    @property
    def failed(self) -> int:
        with self._lock:
            return self._failed

    def percent_complete(self) -> float:
        """Fraction of items finished, in ``[0, 1]``."""
        with self._lock:
            if self.total == 0:
                return 0.0
            return min(self._completed / self.total, 1.0)


class PercentCompleteLogger:
    """Progress callback that logs each time another ``step`` percent is done."""

    def __init__(self, step: int = 10, log: Optional[logging.Logger] = None) -> None:
        self.step = step
        self.log = log or logger
        self._lock = threading.Lock()
        self._next = step

    def __call__(self, progress: UploadProgress) -> None:
        with self._lock:
            if progress.percent < self._next:
                return
            reached = int(progress.percent // self.step) * self.step
            self._next = reached + self.step
        self.log.info("%d%% complete (%d/%d)", reached, progress.current, progress.total)
