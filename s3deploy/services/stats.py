"""Session statistics shared by every worker of one repository connection."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterable
from typing import Optional

from s3deploy.models.stats import (
    Clock,
    RequestType,
    SessionRecord,
    SessionSummary,
    TransferRecord,
)
from s3deploy.services.listener import RepositoryObserver

logger = logging.getLogger(__name__)


class SessionStats:
    """Tracks one session's lifecycle and transfers and fans events out.

    Transfers are initiated concurrently by upload workers; the transfer list
    is guarded by a lock that is never held while observers run. Each
    TransferRecord handle is then updated only by the worker that owns it.
    """

    def __init__(
        self,
        repository_url: str,
        observers: Iterable[RepositoryObserver] = (),
        clock: Clock = time.time,
    ) -> None:
        self.repository_url = repository_url
        self.observers = list(observers)
        self.clock = clock
        self._lock = threading.Lock()
        self.session = SessionRecord(repository_url=repository_url, opened_at=clock())
        self.summary: Optional[SessionSummary] = None

    def add_observer(self, observer: RepositoryObserver) -> None:
        self.observers.append(observer)

    # =========================================================================
    # Session Lifecycle
    # =========================================================================

    def session_opened(self) -> SessionRecord:
        """Start a fresh session record."""
        with self._lock:
            self.session = SessionRecord(repository_url=self.repository_url, opened_at=self.clock())
            self.summary = None
            session = self.session
        for observer in self.observers:
            observer.on_session_opened(session)
        return session

    def session_logged_in(self, bucket: Optional[str] = None) -> None:
        self.session.bucket = bucket
        self.session.logged_in_at = self.clock()
        for observer in self.observers:
            observer.on_session_logged_in(self.session)

    def session_logged_off(self) -> None:
        self.session.logged_off_at = self.clock()
        for observer in self.observers:
            observer.on_session_logged_off(self.session)

    def session_disconnecting(self) -> None:
        self.session.disconnecting_at = self.clock()
        for observer in self.observers:
            observer.on_session_disconnecting(self.session)

    def session_disconnected(self) -> Optional[SessionSummary]:
        """Close the session and compute its summary (None without transfers)."""
        with self._lock:
            self.session.disconnected_at = self.clock()
            self.summary = self.session.summarize()
            summary = self.summary
        for observer in self.observers:
            observer.on_session_disconnected(self.session, summary)
        return summary

    def session_error(self, error: BaseException) -> None:
        for observer in self.observers:
            observer.on_session_error(self.session, error)

    # =========================================================================
    # Transfers
    # =========================================================================

    def initiate_transfer(
        self,
        resource: str,
        request_type: RequestType = RequestType.PUT,
        uri: Optional[str] = None,
    ) -> TransferRecord:
        """Create and register a transfer record; returns the handle."""
        record = TransferRecord(
            resource=resource,
            request_type=request_type,
            uri=uri,
            clock=self.clock,
        )
        with self._lock:
            self.session.transfers.append(record)
        for observer in self.observers:
            observer.on_transfer_initiated(record)
        return record

    def record_started(self, record: TransferRecord) -> None:
        record.record_started()
        for observer in self.observers:
            observer.on_transfer_started(record)

    def record_progress(self, record: TransferRecord, delta_bytes: int) -> None:
        """Add bytes to a transfer. ``-1`` is end of stream and is ignored.

        Raises:
            ValueError: If ``delta_bytes`` is negative (other than ``-1``).
        """
        if delta_bytes == -1:
            return
        record.record_progress(delta_bytes)
        for observer in self.observers:
            observer.on_transfer_progress(record, delta_bytes)

    def record_completed(self, record: TransferRecord) -> None:
        """Mark a transfer complete.

        Raises:
            ValueError: If the transfer was already completed.
        """
        record.record_completed()
        for observer in self.observers:
            observer.on_transfer_completed(record)

    def record_error(self, record: TransferRecord, error: BaseException) -> None:
        logger.debug("Transfer of %s failed: %s", record.resource, error)
        for observer in self.observers:
            observer.on_transfer_error(record, error)

    # =========================================================================
    # Totals
    # =========================================================================

    @property
    def transfer_count(self) -> int:
        with self._lock:
            return len(self.session.transfers)

    @property
    def total_bytes(self) -> int:
        with self._lock:
            return self.session.total_bytes
