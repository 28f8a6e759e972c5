"""Transfer, session and batch statistics.

Timestamps are wall-clock seconds (``time.time()``).
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

Clock = Callable[[], float]


class RequestType(Enum):
    """Direction of a transfer."""

    GET = "get"
    PUT = "put"


# =============================================================================
# Transfer
# =============================================================================


@dataclass
class TransferRecord:
    """Lifecycle of one upload or download.

    Owned by the worker performing the transfer; never shared.
    """

    resource: str
    request_type: RequestType = RequestType.PUT
    initiated_at: float = 0.0
    started_at: Optional[float] = None
    completed_at: Optional[float] = None
    byte_count: int = 0
    uri: Optional[str] = None
    clock: Clock = field(default=time.time, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.initiated_at:
            self.initiated_at = self.clock()

    def record_started(self) -> None:
        self.started_at = max(self.clock(), self.initiated_at)

    def record_progress(self, delta_bytes: int) -> None:
        """Add bytes read for this transfer.

        ``-1`` marks end of stream and is ignored.

        Raises:
            ValueError: If ``delta_bytes`` is negative (other than ``-1``).
        """
        if delta_bytes == -1:
            return
        if delta_bytes < 0:
            raise ValueError(f"Negative byte delta: {delta_bytes}")
        self.byte_count += delta_bytes

    def record_completed(self) -> None:
        """Mark the transfer complete.

        Raises:
            ValueError: If already completed.
        """
        if self.completed_at is not None:
            raise ValueError(f"Transfer already completed: {self.resource}")
        if self.started_at is None:
            self.record_started()
        self.completed_at = max(self.clock(), self.started_at or self.initiated_at)

    @property
    def is_complete(self) -> bool:
        return self.completed_at is not None

    @property
    def display_uri(self) -> str:
        return self.uri or self.resource

    @property
    def duration(self) -> Optional[float]:
        """Seconds from start to completion, if both are known."""
        if self.started_at is None or self.completed_at is None:
            return None
        return self.completed_at - self.started_at


# =============================================================================
# Session
# =============================================================================


@dataclass
class SessionSummary:
    """Totals for one session."""

    transfer_count: int
    total_bytes: int
    elapsed_seconds: float

    @property
    def throughput(self) -> Optional[float]:
        """Bytes per second, or None when no time elapsed."""
        if self.elapsed_seconds <= 0:
            return None
        return self.total_bytes / self.elapsed_seconds


@dataclass
class SessionRecord:
    """One connection lifetime and the transfers made during it."""

    repository_url: str
    opened_at: float
    bucket: Optional[str] = None
    logged_in_at: Optional[float] = None
    logged_off_at: Optional[float] = None
    disconnecting_at: Optional[float] = None
    disconnected_at: Optional[float] = None
    transfers: List[TransferRecord] = field(default_factory=list)

    @property
    def total_bytes(self) -> int:
        return sum(t.byte_count for t in self.transfers)

    def summarize(self) -> Optional[SessionSummary]:
        """Summary for a closed session; None when nothing was transferred."""
        if not self.transfers or self.disconnected_at is None:
            return None
        return SessionSummary(
            transfer_count=len(self.transfers),
            total_bytes=self.total_bytes,
            elapsed_seconds=max(self.disconnected_at - self.opened_at, 0.0),
        )


# =============================================================================
# Batch
# =============================================================================


@dataclass(frozen=True)
class ExecutionStats:
    """Outcome of one scheduler run."""

    elapsed_millis: int = 0
    items_processed: int = 0
    items_succeeded: int = 0
    items_failed: int = 0
    bytes_transferred: int = 0
    worker_count: int = 0
    cancelled: bool = False

    @property
    def rate(self) -> Optional[float]:
        """Bytes per second over the run, or None when no time elapsed."""
        if self.elapsed_millis <= 0:
            return None
        return self.bytes_transferred * 1000 / self.elapsed_millis
