"""Tests for s3deploy.uploaders.progress."""

from __future__ import annotations

import logging
import threading

import pytest

from s3deploy.models.progress import UploadProgress
from s3deploy.uploaders.progress import PercentCompleteLogger, ProgressAggregator


class TestProgressAggregator:
    """Tests for ProgressAggregator."""

    def test_empty_total_is_zero_percent(self):
        assert ProgressAggregator(0).percent_complete() == 0.0

    def test_negative_total_raises(self):
        with pytest.raises(ValueError):
            ProgressAggregator(-1)

    def test_counts_started_and_completed(self):
        aggregator = ProgressAggregator(4)
        aggregator.on_item_started()
        aggregator.on_item_started()
        aggregator.on_item_completed()

        assert aggregator.started == 2
        assert aggregator.completed == 1
        assert aggregator.percent_complete() == 0.25

    def test_failures_count_as_completed(self):
        aggregator = ProgressAggregator(2)
        aggregator.on_item_completed(success=False)
        aggregator.on_item_completed()

        assert aggregator.failed == 1
        assert aggregator.percent_complete() == 1.0

    def test_concurrent_completions_reach_one(self):
        total = 200
        aggregator = ProgressAggregator(total)
        barrier = threading.Barrier(10)

        def worker() -> None:
            barrier.wait()
            for _ in range(total // 10):
                aggregator.on_item_started()
                aggregator.on_item_completed()

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert aggregator.completed == total
        assert aggregator.percent_complete() == 1.0

    def test_callback_receives_snapshots(self):
        snapshots: list[UploadProgress] = []
        aggregator = ProgressAggregator(2, callback=snapshots.append)

        aggregator.on_item_completed(byte_count=10, key="a")
        aggregator.on_item_completed(success=False, key="b")

        assert [s.current for s in snapshots] == [1, 2]
        assert snapshots[-1].failed == 1
        assert snapshots[-1].bytes_sent == 10
        assert snapshots[-1].key == "b"
        assert snapshots[-1].percent == 100.0

    def test_callback_error_is_logged(self, caplog: pytest.LogCaptureFixture):
        def broken(snapshot: UploadProgress) -> None:
            raise RuntimeError("callback bug")

        aggregator = ProgressAggregator(1, callback=broken)

        with caplog.at_level(logging.ERROR):
            aggregator.on_item_completed(key="a.txt")

        assert aggregator.completed == 1
        assert "Progress callback failed for a.txt" in caplog.text


class TestPercentCompleteLogger:
    """Tests for PercentCompleteLogger."""

    def test_logs_each_step_once(self, caplog: pytest.LogCaptureFixture):
        log = logging.getLogger("test.percent")
        reporter = PercentCompleteLogger(step=25, log=log)

        with caplog.at_level(logging.INFO, logger="test.percent"):
            for current in range(1, 9):
                reporter(UploadProgress(current=current, total=8))

        messages = [r.getMessage() for r in caplog.records]
        assert messages == [
            "25% complete (2/8)",
            "50% complete (4/8)",
            "75% complete (6/8)",
            "100% complete (8/8)",
        ]

    def test_jumps_skip_intermediate_steps(self, caplog: pytest.LogCaptureFixture):
        log = logging.getLogger("test.percent.jump")
        reporter = PercentCompleteLogger(step=10, log=log)

        with caplog.at_level(logging.INFO, logger="test.percent.jump"):
            reporter(UploadProgress(current=1, total=2))
            reporter(UploadProgress(current=2, total=2))

        assert [r.getMessage() for r in caplog.records] == [
            "50% complete (1/2)",
            "100% complete (2/2)",
        ]
