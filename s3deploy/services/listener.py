"""Observer hooks for repository sessions and transfers."""

from __future__ import annotations

import logging
from typing import Optional

from s3deploy.core.output import format_duration, format_size
from s3deploy.models.stats import RequestType, SessionRecord, SessionSummary, TransferRecord

logger = logging.getLogger(__name__)


class RepositoryObserver:
    """Base observer; every hook is a no-op.

    Hooks run on the thread that caused the event, which for transfers is an
    upload worker. Implementations must be thread-safe.
    """

    def on_session_opened(self, session: SessionRecord) -> None:
        pass

    def on_session_logged_in(self, session: SessionRecord) -> None:
        pass

    def on_session_logged_off(self, session: SessionRecord) -> None:
        pass

    def on_session_disconnecting(self, session: SessionRecord) -> None:
        pass

    def on_session_disconnected(
        self, session: SessionRecord, summary: Optional[SessionSummary]
    ) -> None:
        pass

    def on_session_error(self, session: SessionRecord, error: BaseException) -> None:
        pass

    def on_transfer_initiated(self, record: TransferRecord) -> None:
        pass

    def on_transfer_started(self, record: TransferRecord) -> None:
        pass

    def on_transfer_progress(self, record: TransferRecord, delta_bytes: int) -> None:
        pass

    def on_transfer_completed(self, record: TransferRecord) -> None:
        pass

    def on_transfer_error(self, record: TransferRecord, error: BaseException) -> None:
        pass


def format_summary(summary: SessionSummary) -> str:
    """``Transfers: N Time: T Amount: A Throughput: R bytes/second``."""
    throughput = summary.throughput
    rate = "-" if throughput is None else f"{int(throughput)}"
    return (
        f"Transfers: {summary.transfer_count}"
        f" Time: {format_duration(summary.elapsed_seconds)}"
        f" Amount: {format_size(summary.total_bytes)}"
        f" Throughput: {rate} bytes/second"
    )


class LoggingObserver(RepositoryObserver):
    """Writes session and transfer events to a logger."""

    def __init__(self, log: Optional[logging.Logger] = None) -> None:
        self.log = log or logger

    def on_session_logged_in(self, session: SessionRecord) -> None:
        self.log.info("Logged in - %s", session.bucket or session.repository_url)

    def on_session_logged_off(self, session: SessionRecord) -> None:
        self.log.info("Logged off - %s", session.bucket or session.repository_url)

    def on_session_disconnected(
        self, session: SessionRecord, summary: Optional[SessionSummary]
    ) -> None:
        if summary is None:
            self.log.debug("No transfers during session with %s", session.repository_url)
            return
        self.log.info(format_summary(summary))

    def on_session_error(self, session: SessionRecord, error: BaseException) -> None:
        self.log.error("Session error: %s", error)

    def on_transfer_started(self, record: TransferRecord) -> None:
        if record.request_type == RequestType.GET:
            self.log.info("Downloading: %s", record.display_uri)
        else:
            self.log.info("Uploading: %s", record.display_uri)

    def on_transfer_completed(self, record: TransferRecord) -> None:
        self.log.debug("Transferred %s (%s)", record.display_uri, format_size(record.byte_count))

    def on_transfer_error(self, record: TransferRecord, error: BaseException) -> None:
        self.log.error("Transfer error: %s: %s", record.display_uri, error)
