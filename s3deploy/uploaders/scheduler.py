"""Parallel upload scheduler.

Workers pull tasks from one shared queue, so a worker that finishes a small
file early moves straight on to the next one. A failed task is recorded and
the batch carries on; nothing is retried here (retries belong to the
storage transport).
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from s3deploy.core.exceptions import BatchTransferError, TransferError
from s3deploy.models.stats import ExecutionStats
from s3deploy.models.task import PoolSizingConfig, UploadTask
from s3deploy.uploaders.progress import ProgressAggregator

logger = logging.getLogger(__name__)

UploadFn = Callable[[UploadTask], int]


def compute_worker_count(task_count: int, config: PoolSizingConfig) -> int:
    """Workers for a batch: ``clamp(ceil(count / divisor), min, max)``."""
    return config.worker_count(task_count)


class _BatchState:
    """Counters shared by all workers of one run."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.processed = 0
        self.succeeded = 0
        self.bytes = 0
        self.failures: list[TransferError] = []

    def record_success(self, byte_count: int) -> None:
        with self.lock:
            self.processed += 1
            self.succeeded += 1
            self.bytes += byte_count

    def record_failure(self, error: TransferError) -> None:
        with self.lock:
            self.processed += 1
            self.failures.append(error)


def _as_transfer_error(task: UploadTask, exc: Exception) -> TransferError:
    if isinstance(exc, TransferError):
        return exc
    return TransferError(
        f"Upload failed: {exc}",
        key=task.destination_key,
        source=str(task.source_path),
        cause=exc,
    )


class UploadScheduler:
    """Runs upload tasks on a bounded pool of worker threads."""

    def __init__(self, thread_name_prefix: str = "upload") -> None:
        self.thread_name_prefix = thread_name_prefix

    def run(
        self,
        tasks: Sequence[UploadTask],
        config: PoolSizingConfig,
        upload_fn: UploadFn,
        *,
        progress: Optional[ProgressAggregator] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> ExecutionStats:
        """Upload every task and wait for all workers to exit.

        Args:
            tasks: Tasks to upload.
            config: Pool sizing for this run.
            upload_fn: Uploads one task and returns the bytes sent; raises on
                failure.
            progress: Aggregator to notify as items start and finish.
            cancel_event: When set, workers stop taking new tasks; in-flight
                uploads finish.

        Returns:
            ExecutionStats for the run.

        Raises:
            BatchTransferError: If one or more tasks failed.
        """
        worker_count = compute_worker_count(len(tasks), config)
        if worker_count == 0:
            return ExecutionStats()

        work: queue.Queue[UploadTask] = queue.Queue()
        for task in tasks:
            work.put(task)

        state = _BatchState()

        def worker() -> None:
            while cancel_event is None or not cancel_event.is_set():
                try:
                    task = work.get_nowait()
                except queue.Empty:
                    return
                if progress:
                    progress.on_item_started()
                try:
                    byte_count = upload_fn(task)
                except Exception as e:
                    error = _as_transfer_error(task, e)
                    logger.error("Failed to upload %s: %s", task.destination_key, e)
                    state.record_failure(error)
                    if progress:
                        progress.on_item_completed(success=False, key=task.destination_key)
                else:
                    state.record_success(byte_count)
                    if progress:
                        progress.on_item_completed(byte_count=byte_count, key=task.destination_key)
                finally:
                    work.task_done()

        logger.debug("Uploading %d file(s) with %d worker(s)", len(tasks), worker_count)
        start = time.monotonic()
        with ThreadPoolExecutor(
            max_workers=worker_count, thread_name_prefix=self.thread_name_prefix
        ) as executor:
            futures = [executor.submit(worker) for _ in range(worker_count)]
        for future in futures:
            # Workers catch task errors themselves; anything here is a bug
            future.result()
        elapsed_millis = int((time.monotonic() - start) * 1000)

        cancelled = cancel_event is not None and cancel_event.is_set() and not work.empty()
        if cancelled:
            logger.warning("Upload cancelled with %d task(s) not started", work.qsize())

        stats = ExecutionStats(
            elapsed_millis=elapsed_millis,
            items_processed=state.processed,
            items_succeeded=state.succeeded,
            items_failed=len(state.failures),
            bytes_transferred=state.bytes,
            worker_count=worker_count,
            cancelled=cancelled,
        )

        if state.failures:
            raise BatchTransferError(list(state.failures), stats)
        return stats


def run_batch_upload(
    tasks: Sequence[UploadTask],
    config: PoolSizingConfig,
    upload_fn: UploadFn,
    **kwargs: object,
) -> ExecutionStats:
    """Run one batch on a fresh scheduler. See :meth:`UploadScheduler.run`."""
    return UploadScheduler().run(tasks, config, upload_fn, **kwargs)  # type: ignore[arg-type]
