"""Repository sessions: connect to a bucket and move files in and out of it."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from s3deploy.core.client import Boto3StorageClient, StorageClient
from s3deploy.core.config import Profile
from s3deploy.core.credentials import Credentials, resolve_credentials
from s3deploy.core.exceptions import (
    BatchTransferError,
    InvalidPathError,
    S3DeployError,
)
from s3deploy.core.keys import RepositoryLocation, parse_repository_url
from s3deploy.core.logging import get_audit_logger, log_context
from s3deploy.core.output import format_duration, format_rate, format_size
from s3deploy.core.properties import system_properties
from s3deploy.models.progress import UploadProgress
from s3deploy.models.stats import Clock, ExecutionStats, RequestType, SessionSummary
from s3deploy.models.task import UploadTask
from s3deploy.services.base import BaseService
from s3deploy.services.listener import RepositoryObserver
from s3deploy.services.stats import SessionStats
from s3deploy.uploaders.common import build_upload_tasks, guess_content_type, total_bytes
from s3deploy.uploaders.constants import PROGRESS_LOG_STEP_PERCENT
from s3deploy.uploaders.progress import PercentCompleteLogger, ProgressAggregator, ProgressCallback
from s3deploy.uploaders.scheduler import UploadScheduler

logger = logging.getLogger(__name__)

ClientFactory = Callable[[RepositoryLocation, Credentials, Profile, str], StorageClient]
Timestamp = Union[float, datetime]


def default_client_factory(
    location: RepositoryLocation,
    credentials: Credentials,
    profile: Profile,
    protocol: str,
) -> StorageClient:
    """Build a boto3 client from a profile."""
    return Boto3StorageClient.create(
        location.bucket,
        credentials,
        region=profile.region,
        endpoint_url=profile.endpoint_url,
        protocol=protocol,
        timeout=profile.timeout,
        max_workers=profile.max_workers,
    )


def _as_datetime(timestamp: Timestamp) -> datetime:
    if isinstance(timestamp, datetime):
        if timestamp.tzinfo is None:
            return timestamp.replace(tzinfo=timezone.utc)
        return timestamp
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


class Repository(BaseService):
    """A deployment target: one bucket plus a base directory.

    Example:
        >>> repo = Repository("s3://my-bucket/site", observers=[LoggingObserver()])
        >>> with repo:
        ...     repo.put_directory(Path("build"), "")
    """

    def __init__(
        self,
        url: str,
        profile: Optional[Profile] = None,
        *,
        observers: Iterable[RepositoryObserver] = (),
        client_factory: ClientFactory = default_client_factory,
        properties: Optional[Mapping[str, str]] = None,
        scheduler: Optional[UploadScheduler] = None,
        clock: Clock = time.time,
    ) -> None:
        """Initialize a repository.

        Args:
            url: Repository URL, ``s3://bucket[/base/dir]``.
            profile: Connection settings (defaults for everything but the URL
                when omitted).
            observers: Receive session and transfer events.
            client_factory: Builds the storage client on connect.
            properties: Process properties (defaults to the global ones).
            scheduler: Upload scheduler for directory deployments.
            clock: Time source for statistics.

        Raises:
            InvalidURLError: If the URL is not an s3:// URL.
        """
        super().__init__(parse_repository_url(url))
        self.url = url
        self.profile = profile or Profile(url=url)
        self.client_factory = client_factory
        self.properties = system_properties if properties is None else properties
        self.scheduler = scheduler or UploadScheduler()
        self.stats = SessionStats(url, observers, clock)
        self.credentials: Optional[Credentials] = None
        self.acl = self.profile.effective_acl
        self.audit = get_audit_logger()

    def __enter__(self) -> Repository:
        if not self.is_connected:
            self.connect()
        return self

    def __exit__(self, *args: Any) -> None:
        self.disconnect()

    # =========================================================================
    # Connection
    # =========================================================================

    def connect(self, explicit_auth: Optional[tuple[Optional[str], Optional[str]]] = None) -> None:
        """Resolve credentials, build the client and validate the bucket.

        Args:
            explicit_auth: (username, password) overriding the profile's.

        Raises:
            AuthenticationError: If no credentials could be resolved.
            PermissionDeniedError: If the bucket cannot be listed.
            ConfigurationError: If the protocol property is invalid.
        """
        self.stats.session_opened()
        try:
            auth = explicit_auth if explicit_auth is not None else self.profile.explicit_auth
            self.credentials = resolve_credentials(auth, properties=self.properties)
            protocol = self.profile.protocol(self.properties)
            self.client = self.client_factory(
                self.location, self.credentials, self.profile, protocol
            )
            self._validate_bucket()
        except S3DeployError as e:
            self.stats.session_error(e)
            self._close_client()
            raise

        if self.profile.acl:
            logger.info("File permissions: %s", self.acl)
        self.stats.session_logged_in(self.location.bucket)

    def _validate_bucket(self) -> None:
        client = self._require_client()
        bucket = self.location.bucket
        logger.debug("Looking for bucket: %s", bucket)
        if client.get_bucket_location() is not None:
            logger.debug("Found bucket '%s' Validating permissions", bucket)
            client.list_objects(prefix="", delimiter=None, max_keys=0)
        else:
            logger.info("Creating bucket %s", bucket)
            client.create_bucket()

    def _close_client(self) -> None:
        if self.client is not None:
            try:
                self.client.close()
            finally:
                self.client = None

    def disconnect(self) -> Optional[SessionSummary]:
        """Close the session.

        Returns:
            The session summary, or None when nothing was transferred.
        """
        if not self.is_connected:
            return self.stats.summary
        self.stats.session_disconnecting()
        try:
            self._close_client()
        finally:
            self.stats.session_logged_off()
            summary = self.stats.session_disconnected()
        return summary

    # =========================================================================
    # Single Resources
    # =========================================================================

    def resource_exists(self, name: str) -> bool:
        """Check whether a resource exists under the base directory."""
        return self._require_client().head_object(self._key(name))

    def is_remote_newer(self, name: str, timestamp: Timestamp) -> bool:
        """Check whether the remote resource was modified after ``timestamp``.

        Args:
            name: Resource path relative to the base directory.
            timestamp: Epoch seconds or a datetime (naive means UTC).
        """
        return self._require_client().head_object(
            self._key(name), if_modified_since=_as_datetime(timestamp)
        )

    def get_resource(self, name: str, destination: Path) -> int:
        """Download a resource to a local file.

        Returns:
            Bytes downloaded.

        Raises:
            ResourceNotFoundError: If the resource does not exist.
        """
        client = self._require_client()
        key = self._key(name)
        record = self.stats.initiate_transfer(key, RequestType.GET, uri=self._uri(key))
        self.stats.record_started(record)

        def on_bytes(amount: int) -> None:
            if amount > 0:
                self.stats.record_progress(record, amount)

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            client.get_object(key, destination, callback=on_bytes)
        except (S3DeployError, OSError) as e:
            self.stats.record_error(record, e)
            raise
        self.stats.record_completed(record)
        return record.byte_count

    def put_resource(self, source: Path, destination: str) -> int:
        """Upload one file to ``destination`` under the base directory.

        Returns:
            Bytes uploaded.
        """
        destination_key = self._key(destination)
        task = UploadTask(
            source_path=source,
            destination_key=destination_key,
            size_bytes=source.stat().st_size,
            content_type=guess_content_type(destination),
        )
        return self.upload_task(task)

    def upload_task(self, task: UploadTask) -> int:
        """Upload a prepared task; the unit of work for directory uploads."""
        client = self._require_client()
        key = task.destination_key
        record = self.stats.initiate_transfer(key, RequestType.PUT, uri=self._uri(key))
        self.stats.record_started(record)

        def on_bytes(amount: int) -> None:
            # s3transfer reports negative amounts when it rewinds a retried part
            if amount > 0:
                self.stats.record_progress(record, amount)

        try:
            client.put_object(
                key,
                task.source_path,
                content_type=task.content_type,
                acl=self.acl,
                callback=on_bytes,
            )
        except (S3DeployError, OSError) as e:
            self.stats.record_error(record, e)
            raise
        self.stats.record_completed(record)
        return task.size_bytes

    def list_directory(self, directory: Optional[str] = "") -> list[str]:
        """List a directory: object names and sub-directory prefixes.

        Names are relative to the base directory; the directory itself is
        excluded.
        """
        client = self._require_client()
        prefix = self._prefix(directory)
        listing = client.list_objects(prefix=prefix, delimiter="/")
        own_entry = self._relative(prefix)

        names = [self._relative(key.strip()) for key in listing.keys]
        names = [name for name in names if name and name != own_entry]
        names.extend(self._relative(p.strip()) for p in listing.prefixes)
        return names

    # =========================================================================
    # Directories
    # =========================================================================

    def put_directory(
        self,
        source_dir: Path,
        destination_dir: str = "",
        *,
        include_hidden: bool = True,
        progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> ExecutionStats:
        """Upload every file under ``source_dir`` in parallel.

        Args:
            source_dir: Local directory to deploy.
            destination_dir: Directory under the base directory to deploy to.
            include_hidden: Include dot-files and dot-directories.
            progress: Called with a snapshot after each file finishes.
            cancel_event: Stops workers from starting new uploads when set.

        Returns:
            ExecutionStats for the upload.

        Raises:
            InvalidPathError: If source_dir is not a directory or a file maps
                to an invalid key.
            ConfigurationError: If the thread properties are invalid.
            BatchTransferError: If any file failed to upload.
        """
        self._require_client()
        if not source_dir.is_dir():
            raise InvalidPathError(str(source_dir), "not a directory")

        pool_sizing = self.profile.pool_sizing(self.properties)
        tasks = build_upload_tasks(
            source_dir,
            destination_dir,
            self.location.base_dir,
            include_hidden=include_hidden,
        )
        size = total_bytes(tasks)
        logger.info("Files: %d  Bytes: %s", len(tasks), format_size(size))

        percent_logger = PercentCompleteLogger(PROGRESS_LOG_STEP_PERCENT)

        def on_progress(snapshot: UploadProgress) -> None:
            percent_logger(snapshot)
            if progress is not None:
                progress(snapshot)

        aggregator = ProgressAggregator(len(tasks), callback=on_progress)
        audit_key = self._prefix(destination_dir)

        with log_context("put_directory", logger, bucket=self.location.bucket, prefix=audit_key):
            try:
                stats = self.scheduler.run(
                    tasks,
                    pool_sizing,
                    self.upload_task,
                    progress=aggregator,
                    cancel_event=cancel_event,
                )
            except BatchTransferError as e:
                self._log_upload_complete(e.stats)
                self._audit_directory(audit_key, e.stats, success=False)
                raise

        self._log_upload_complete(stats)
        self._audit_directory(audit_key, stats, success=not stats.cancelled)
        return stats

    def _log_upload_complete(self, stats: ExecutionStats) -> None:
        seconds = stats.elapsed_millis / 1000
        logger.info(
            "Files: %d  Time: %s  Rate: %s",
            stats.items_processed,
            format_duration(seconds),
            format_rate(stats.bytes_transferred, seconds),
        )

    def _audit_directory(self, key: str, stats: ExecutionStats, success: bool) -> None:
        self.audit.log_operation(
            "put_directory",
            bucket=self.location.bucket,
            key=key,
            credential_source=self.credentials.source if self.credentials else None,
            success=success,
            details={
                "files": stats.items_processed,
                "failed": stats.items_failed,
                "bytes": stats.bytes_transferred,
                "workers": stats.worker_count,
                "cancelled": stats.cancelled,
            },
        )
