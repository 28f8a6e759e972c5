"""Storage client for S3 and S3-compatible object stores.

Defines the capability set the repository needs and a boto3-backed
implementation. Transport retries and per-request timeouts are delegated to
botocore; large files go through boto3's managed multi-part upload.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Protocol

import boto3
from boto3.exceptions import S3UploadFailedError
from boto3.s3.transfer import TransferConfig
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from s3deploy.core.config import PROTOCOL_HTTP, PROTOCOL_HTTPS
from s3deploy.core.credentials import Credentials
from s3deploy.core.exceptions import (
    NetworkError,
    PermissionDeniedError,
    ResourceNotFoundError,
    S3DeployError,
    TransferError,
)
from s3deploy.core.timeouts import DEFAULT_CONNECT_TIMEOUT_SECONDS, DEFAULT_READ_TIMEOUT_SECONDS
from s3deploy.models.base import ObjectListing

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

DEFAULT_REGION = "us-east-1"
DEFAULT_MAX_ATTEMPTS = 5
HTTP_ENDPOINT = "http://s3.amazonaws.com"
MULTIPART_THRESHOLD = 8 * 1024 * 1024
MULTIPART_CHUNKSIZE = 8 * 1024 * 1024

NOT_FOUND_CODES = {"404", "NoSuchKey", "NoSuchBucket", "NotFound"}
NOT_MODIFIED_CODES = {"304", "NotModified"}
DENIED_CODES = {
    "403",
    "AccessDenied",
    "Forbidden",
    "AllAccessDisabled",
    "InvalidAccessKeyId",
    "SignatureDoesNotMatch",
}

ByteCallback = Callable[[int], None]


# =============================================================================
# Capability Set
# =============================================================================


class StorageClient(Protocol):
    """Operations the repository needs from an object store."""

    bucket: str

    def head_object(self, key: str, if_modified_since: Optional[datetime] = None) -> bool: ...

    def put_object(
        self,
        key: str,
        source: Path,
        *,
        content_type: str,
        acl: Optional[str] = None,
        callback: Optional[ByteCallback] = None,
    ) -> None: ...

    def get_object(
        self, key: str, destination: Path, *, callback: Optional[ByteCallback] = None
    ) -> None: ...

    def list_objects(
        self, prefix: str = "", delimiter: Optional[str] = "/", max_keys: Optional[int] = None
    ) -> ObjectListing: ...

    def create_bucket(self) -> None: ...

    def get_bucket_location(self) -> Optional[str]: ...

    def close(self) -> None: ...


# =============================================================================
# Error Mapping
# =============================================================================


def _error_code(error: ClientError) -> str:
    code = error.response.get("Error", {}).get("Code")
    if code:
        return str(code)
    status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return str(status or "")


def translate_error(
    error: Exception,
    bucket: str,
    key: Optional[str] = None,
    operation: str = "access",
) -> S3DeployError:
    """Map a botocore error onto the s3deploy exception hierarchy."""
    uri = f"s3://{bucket}/{key}" if key else f"s3://{bucket}"
    if isinstance(error, ClientError):
        code = _error_code(error)
        if code in NOT_FOUND_CODES:
            if code == "NoSuchBucket" or key is None:
                return ResourceNotFoundError("Bucket", bucket)
            return ResourceNotFoundError("Object", uri)
        if code in DENIED_CODES:
            return PermissionDeniedError(uri, operation)
        return TransferError(
            f"{operation} {uri} failed: {code}", key=key, cause=error, operation=operation
        )
    return NetworkError(uri, str(error))


def _upload_failure(
    error: S3UploadFailedError, bucket: str, key: str, source: Path
) -> S3DeployError:
    # boto3 wraps the service error raised by the transfer manager
    cause = error.__cause__ or error.__context__
    if isinstance(cause, (ClientError, BotoCoreError)):
        return translate_error(cause, bucket, key, "upload")
    return TransferError(
        f"upload s3://{bucket}/{key} failed: {error}", key=key, source=str(source), cause=error
    )


# =============================================================================
# Boto3StorageClient
# =============================================================================


@dataclass
class Boto3StorageClient:
    """StorageClient backed by a boto3 S3 client."""

    bucket: str
    client: Any = field(repr=False)
    region: str = DEFAULT_REGION
    transfer_config: TransferConfig = field(
        default_factory=lambda: TransferConfig(
            multipart_threshold=MULTIPART_THRESHOLD,
            multipart_chunksize=MULTIPART_CHUNKSIZE,
            use_threads=False,
        ),
        repr=False,
    )

    @classmethod
    def create(
        cls,
        bucket: str,
        credentials: Credentials,
        *,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        protocol: str = PROTOCOL_HTTPS,
        timeout: int = DEFAULT_READ_TIMEOUT_SECONDS,
        max_workers: int = 10,
    ) -> Boto3StorageClient:
        """Build a client for one bucket.

        Args:
            bucket: Bucket name.
            credentials: Resolved credentials.
            region: Region name (defaults to us-east-1).
            endpoint_url: Custom endpoint for S3-compatible stores.
            protocol: ``https`` or ``http``.
            timeout: Per-request read timeout in seconds.
            max_workers: Upload threads that will share the client; sizes
                the connection pool.
        """
        region = region or DEFAULT_REGION
        if protocol == PROTOCOL_HTTP and not endpoint_url:
            endpoint_url = HTTP_ENDPOINT

        session = boto3.session.Session(
            aws_access_key_id=credentials.access_key_id,
            aws_secret_access_key=credentials.secret_access_key,
            aws_session_token=credentials.session_token,
            region_name=region,
        )
        config = BotoConfig(
            connect_timeout=DEFAULT_CONNECT_TIMEOUT_SECONDS,
            read_timeout=timeout,
            retries={"max_attempts": DEFAULT_MAX_ATTEMPTS, "mode": "standard"},
            max_pool_connections=max(max_workers, 10),
        )
        client = session.client(
            "s3",
            endpoint_url=endpoint_url,
            use_ssl=protocol != PROTOCOL_HTTP,
            config=config,
        )
        logger.debug(
            "Created S3 client for %s (region=%s, endpoint=%s)",
            bucket,
            region,
            endpoint_url or "default",
        )
        return cls(bucket=bucket, client=client, region=region)

    def close(self) -> None:
        """Release pooled connections."""
        close = getattr(self.client, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> Boto3StorageClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # =========================================================================
    # Objects
    # =========================================================================

    def head_object(self, key: str, if_modified_since: Optional[datetime] = None) -> bool:
        """Check whether an object exists.

        With ``if_modified_since``, also require it to have been modified
        after that time.
        """
        params: dict[str, Any] = {"Bucket": self.bucket, "Key": key}
        if if_modified_since is not None:
            params["IfModifiedSince"] = if_modified_since
        try:
            self.client.head_object(**params)
        except ClientError as e:
            code = _error_code(e)
            if code in NOT_FOUND_CODES or code in NOT_MODIFIED_CODES:
                return False
            raise translate_error(e, self.bucket, key, "read") from e
        except BotoCoreError as e:
            raise translate_error(e, self.bucket, key, "read") from e
        return True

    def put_object(
        self,
        key: str,
        source: Path,
        *,
        content_type: str,
        acl: Optional[str] = None,
        callback: Optional[ByteCallback] = None,
    ) -> None:
        """Upload a file, using multi-part upload above the threshold."""
        extra_args: dict[str, str] = {"ContentType": content_type}
        if acl:
            extra_args["ACL"] = acl
        try:
            self.client.upload_file(
                str(source),
                self.bucket,
                key,
                ExtraArgs=extra_args,
                Callback=callback,
                Config=self.transfer_config,
            )
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, self.bucket, key, "upload") from e
        except S3UploadFailedError as e:
            raise _upload_failure(e, self.bucket, key, source) from e

    def get_object(
        self, key: str, destination: Path, *, callback: Optional[ByteCallback] = None
    ) -> None:
        """Download an object to a local file."""
        try:
            self.client.download_file(
                self.bucket,
                key,
                str(destination),
                Callback=callback,
                Config=self.transfer_config,
            )
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, self.bucket, key, "download") from e

    def list_objects(
        self, prefix: str = "", delimiter: Optional[str] = "/", max_keys: Optional[int] = None
    ) -> ObjectListing:
        """List keys and common prefixes under a prefix.

        ``max_keys`` limits a single request; without it every page is read.
        """
        params: dict[str, Any] = {"Bucket": self.bucket, "Prefix": prefix}
        if delimiter:
            params["Delimiter"] = delimiter

        contents: list[dict[str, Any]] = []
        prefixes: list[dict[str, Any]] = []
        try:
            if max_keys is not None:
                pages = [self.client.list_objects_v2(MaxKeys=max_keys, **params)]
            else:
                pages = self.client.get_paginator("list_objects_v2").paginate(**params)
            for page in pages:
                contents.extend(page.get("Contents", []))
                prefixes.extend(page.get("CommonPrefixes", []))
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, self.bucket, None, "list") from e

        return ObjectListing.model_validate(
            {"Prefix": prefix, "Contents": contents, "CommonPrefixes": prefixes}
        )

    # =========================================================================
    # Bucket
    # =========================================================================

    def create_bucket(self) -> None:
        params: dict[str, Any] = {"Bucket": self.bucket}
        if self.region != DEFAULT_REGION:
            params["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
        try:
            self.client.create_bucket(**params)
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, self.bucket, None, "create") from e
        logger.debug("Created bucket %s", self.bucket)

    def get_bucket_location(self) -> Optional[str]:
        """Region of the bucket, or None when the bucket does not exist."""
        try:
            resp = self.client.get_bucket_location(Bucket=self.bucket)
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                return None
            raise translate_error(e, self.bucket, None, "read") from e
        except BotoCoreError as e:
            raise translate_error(e, self.bucket, None, "read") from e
        # us-east-1 reports a null constraint
        return resp.get("LocationConstraint") or DEFAULT_REGION
