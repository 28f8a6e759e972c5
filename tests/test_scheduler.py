"""Tests for s3deploy.uploaders.scheduler."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from s3deploy.core.exceptions import BatchTransferError, ConfigurationError, TransferError
from s3deploy.models.task import PoolSizingConfig, UploadTask
from s3deploy.uploaders.progress import ProgressAggregator
from s3deploy.uploaders.scheduler import UploadScheduler, compute_worker_count, run_batch_upload


def _tasks(count: int, size: int = 10) -> list[UploadTask]:
    return [
        UploadTask(
            source_path=Path(f"/src/file{i}.txt"),
            destination_key=f"file{i}.txt",
            size_bytes=size,
        )
        for i in range(count)
    ]


def _size_of(task: UploadTask) -> int:
    return task.size_bytes


# =============================================================================
# Pool Sizing Tests
# =============================================================================


class TestComputeWorkerCount:
    """Tests for compute_worker_count."""

    def test_example(self):
        assert compute_worker_count(5, PoolSizingConfig(1, 10, 2)) == 3

    def test_zero_tasks(self):
        assert compute_worker_count(0, PoolSizingConfig()) == 0

    def test_clamped_to_min(self):
        assert compute_worker_count(1, PoolSizingConfig(10, 50, 50)) == 10

    def test_clamped_to_max(self):
        assert compute_worker_count(100_000, PoolSizingConfig(10, 50, 50)) == 50

    @pytest.mark.parametrize(
        "config",
        [PoolSizingConfig(1, 10, 2), PoolSizingConfig(10, 50, 50), PoolSizingConfig(3, 3, 1)],
    )
    def test_monotonic_and_bounded(self, config: PoolSizingConfig):
        previous = 0
        for count in range(1, 3000, 7):
            workers = compute_worker_count(count, config)
            assert config.min_workers <= workers <= config.max_workers
            assert workers >= previous
            previous = workers

    @pytest.mark.parametrize(
        ("min_workers", "max_workers", "divisor"),
        [(0, 10, 1), (5, 4, 1), (1, 10, 0)],
    )
    def test_invalid_config(self, min_workers: int, max_workers: int, divisor: int):
        with pytest.raises(ConfigurationError):
            PoolSizingConfig(min_workers, max_workers, divisor)


# =============================================================================
# Scheduler Tests
# =============================================================================


class TestUploadScheduler:
    """Tests for UploadScheduler.run."""

    def test_empty_batch(self):
        calls: list[UploadTask] = []

        stats = UploadScheduler().run([], PoolSizingConfig(), calls.append)

        assert stats.items_processed == 0
        assert stats.worker_count == 0
        assert calls == []

    def test_every_task_uploaded_once(self):
        seen: list[str] = []
        lock = threading.Lock()

        def upload(task: UploadTask) -> int:
            with lock:
                seen.append(task.destination_key)
            return task.size_bytes

        tasks = _tasks(57)
        stats = UploadScheduler().run(tasks, PoolSizingConfig(2, 8, 5), upload)

        assert sorted(seen) == sorted(t.destination_key for t in tasks)
        assert stats.items_processed == 57
        assert stats.items_succeeded == 57
        assert stats.items_failed == 0
        assert stats.bytes_transferred == 570
        assert stats.worker_count == 8
        assert not stats.cancelled

    def test_uses_bounded_threads(self):
        names: set[str] = set()
        lock = threading.Lock()

        def upload(task: UploadTask) -> int:
            with lock:
                names.add(threading.current_thread().name)
            return 0

        scheduler = UploadScheduler(thread_name_prefix="deploy")
        scheduler.run(_tasks(40), PoolSizingConfig(1, 4, 1), upload)

        assert 1 <= len(names) <= 4
        assert all(name.startswith("deploy") for name in names)

    def test_one_failure_is_isolated(self):
        def upload(task: UploadTask) -> int:
            if task.destination_key == "file2.txt":
                raise OSError("disk on fire")
            return task.size_bytes

        with pytest.raises(BatchTransferError) as exc_info:
            UploadScheduler().run(_tasks(5), PoolSizingConfig(1, 10, 2), upload)

        error = exc_info.value
        assert error.stats.items_processed == 5
        assert error.stats.items_succeeded == 4
        assert error.stats.worker_count == 3
        assert len(error.failures) == 1
        failure = error.failures[0]
        assert isinstance(failure, TransferError)
        assert failure.key == "file2.txt"
        assert isinstance(failure.cause, OSError)

    def test_transfer_error_kept_as_is(self):
        original = TransferError("denied", key="file0.txt")

        def upload(task: UploadTask) -> int:
            raise original

        with pytest.raises(BatchTransferError) as exc_info:
            UploadScheduler().run(_tasks(1), PoolSizingConfig(1, 1, 1), upload)

        assert exc_info.value.failures == [original]

    def test_reports_progress(self):
        aggregator = ProgressAggregator(12)

        def upload(task: UploadTask) -> int:
            if task.destination_key == "file0.txt":
                raise OSError("nope")
            return task.size_bytes

        with pytest.raises(BatchTransferError):
            UploadScheduler().run(
                _tasks(12), PoolSizingConfig(1, 3, 4), upload, progress=aggregator
            )

        assert aggregator.started == 12
        assert aggregator.completed == 12
        assert aggregator.failed == 1
        assert aggregator.percent_complete() == 1.0

    def test_raising_progress_callback_keeps_batch_result(self):
        def broken(snapshot) -> None:
            raise RuntimeError("callback bug")

        aggregator = ProgressAggregator(6, callback=broken)

        def upload(task: UploadTask) -> int:
            if task.destination_key == "file1.txt":
                raise OSError("nope")
            return task.size_bytes

        with pytest.raises(BatchTransferError) as exc_info:
            UploadScheduler().run(
                _tasks(6), PoolSizingConfig(1, 2, 3), upload, progress=aggregator
            )

        assert exc_info.value.stats.items_processed == 6
        assert exc_info.value.stats.items_succeeded == 5
        assert aggregator.completed == 6

    def test_cancellation_abandons_queued_tasks(self):
        cancel = threading.Event()
        uploaded: list[str] = []

        def upload(task: UploadTask) -> int:
            uploaded.append(task.destination_key)
            cancel.set()
            return task.size_bytes

        stats = UploadScheduler().run(
            _tasks(10), PoolSizingConfig(1, 1, 10), upload, cancel_event=cancel
        )

        assert uploaded == ["file0.txt"]
        assert stats.items_processed == 1
        assert stats.cancelled

    def test_set_cancel_after_last_task_is_not_cancelled(self):
        cancel = threading.Event()

        def upload(task: UploadTask) -> int:
            if task.destination_key == "file2.txt":
                cancel.set()
            return task.size_bytes

        stats = UploadScheduler().run(
            _tasks(3), PoolSizingConfig(1, 1, 10), upload, cancel_event=cancel
        )

        assert stats.items_processed == 3
        assert not stats.cancelled

    def test_run_batch_upload(self):
        stats = run_batch_upload(_tasks(3), PoolSizingConfig(1, 2, 1), _size_of)
        assert stats.items_succeeded == 3
        assert stats.worker_count == 2
