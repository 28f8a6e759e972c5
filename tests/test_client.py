"""Tests for s3deploy.core.client."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator
from unittest.mock import MagicMock, patch

import boto3
import pytest
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import ClientError, EndpointConnectionError
from botocore.stub import Stubber

from s3deploy.core.client import (
    DEFAULT_MAX_ATTEMPTS,
    HTTP_ENDPOINT,
    Boto3StorageClient,
    translate_error,
)
from s3deploy.core.credentials import Credentials
from s3deploy.core.exceptions import (
    NetworkError,
    PermissionDeniedError,
    ResourceNotFoundError,
    TransferError,
)


def _client_error(code: str, operation: str = "HeadObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


@pytest.fixture
def boto_client() -> MagicMock:
    """Create a mock boto3 S3 client."""
    return MagicMock()


@pytest.fixture
def storage(boto_client: MagicMock) -> Boto3StorageClient:
    """Create a Boto3StorageClient around the mock."""
    return Boto3StorageClient(bucket="my-bucket", client=boto_client)


# =============================================================================
# Error Mapping
# =============================================================================


class TestTranslateError:
    """Tests for translate_error."""

    def test_missing_object(self):
        error = translate_error(_client_error("NoSuchKey"), "my-bucket", "a.txt")
        assert isinstance(error, ResourceNotFoundError)
        assert error.resource_type == "Object"
        assert error.resource_id == "s3://my-bucket/a.txt"

    def test_missing_bucket(self):
        error = translate_error(_client_error("NoSuchBucket"), "my-bucket", "a.txt")
        assert isinstance(error, ResourceNotFoundError)
        assert error.resource_type == "Bucket"

    def test_denied(self):
        error = translate_error(_client_error("AccessDenied"), "my-bucket", "a.txt", "upload")
        assert isinstance(error, PermissionDeniedError)
        assert error.operation == "upload"

    def test_other_client_error(self):
        error = translate_error(_client_error("SlowDown"), "my-bucket", "a.txt", "upload")
        assert isinstance(error, TransferError)
        assert error.key == "a.txt"
        assert "SlowDown" in str(error)

    def test_status_code_fallback(self):
        error = ClientError({"ResponseMetadata": {"HTTPStatusCode": 404}}, "HeadBucket")
        assert isinstance(translate_error(error, "my-bucket"), ResourceNotFoundError)

    def test_transport_error(self):
        error = translate_error(EndpointConnectionError(endpoint_url="https://s3"), "my-bucket")
        assert isinstance(error, NetworkError)


# =============================================================================
# Objects
# =============================================================================


class TestHeadObject:
    """Tests for head_object."""

    def test_exists(self, storage: Boto3StorageClient, boto_client: MagicMock):
        assert storage.head_object("a.txt") is True
        boto_client.head_object.assert_called_once_with(Bucket="my-bucket", Key="a.txt")

    @pytest.mark.parametrize("code", ["404", "NoSuchKey", "304"])
    def test_missing_or_not_modified(
        self, storage: Boto3StorageClient, boto_client: MagicMock, code: str
    ):
        boto_client.head_object.side_effect = _client_error(code)
        assert storage.head_object("a.txt") is False

    def test_if_modified_since(self, storage: Boto3StorageClient, boto_client: MagicMock):
        since = datetime(2024, 1, 1, tzinfo=timezone.utc)

        storage.head_object("a.txt", if_modified_since=since)

        boto_client.head_object.assert_called_once_with(
            Bucket="my-bucket", Key="a.txt", IfModifiedSince=since
        )

    def test_denied_raises(self, storage: Boto3StorageClient, boto_client: MagicMock):
        boto_client.head_object.side_effect = _client_error("403")
        with pytest.raises(PermissionDeniedError):
            storage.head_object("a.txt")


class TestPutObject:
    """Tests for put_object."""

    def test_upload_args(self, storage: Boto3StorageClient, boto_client: MagicMock):
        callback = MagicMock()

        storage.put_object(
            "site/index.html",
            Path("/tmp/index.html"),
            content_type="text/html",
            acl="public-read",
            callback=callback,
        )

        args, kwargs = boto_client.upload_file.call_args
        assert args == ("/tmp/index.html", "my-bucket", "site/index.html")
        assert kwargs["ExtraArgs"] == {"ContentType": "text/html", "ACL": "public-read"}
        assert kwargs["Callback"] is callback
        assert kwargs["Config"] is storage.transfer_config

    def test_no_acl(self, storage: Boto3StorageClient, boto_client: MagicMock):
        storage.put_object("a", Path("/tmp/a"), content_type="text/plain")
        assert boto_client.upload_file.call_args.kwargs["ExtraArgs"] == {
            "ContentType": "text/plain"
        }

    def test_wrapped_failure_without_cause(
        self, storage: Boto3StorageClient, boto_client: MagicMock
    ):
        boto_client.upload_file.side_effect = S3UploadFailedError("connection reset")
        with pytest.raises(TransferError) as exc_info:
            storage.put_object("a", Path("/tmp/a"), content_type="text/plain")
        assert exc_info.value.key == "a"
        assert exc_info.value.source == "/tmp/a"


class TestPutObjectErrors:
    """Upload failures as raised by a real boto3 client."""

    @pytest.fixture
    def stubbed(self) -> Iterator[tuple[Boto3StorageClient, Stubber]]:
        client = boto3.client(
            "s3",
            region_name="us-east-1",
            aws_access_key_id="AKIDEXAMPLE",
            aws_secret_access_key="secret",
        )
        with Stubber(client) as stubber:
            yield Boto3StorageClient(bucket="my-bucket", client=client), stubber

    @pytest.fixture
    def source(self, temp_dir: Path) -> Path:
        path = temp_dir / "a.txt"
        path.write_text("hello")
        return path

    def test_access_denied(self, stubbed, source: Path):
        storage, stubber = stubbed
        stubber.add_client_error("put_object", "AccessDenied", http_status_code=403)

        with pytest.raises(PermissionDeniedError) as exc_info:
            storage.put_object("a.txt", source, content_type="text/plain")

        assert exc_info.value.resource == "s3://my-bucket/a.txt"
        assert exc_info.value.operation == "upload"

    def test_server_error_is_transfer_error(self, stubbed, source: Path):
        storage, stubber = stubbed
        stubber.add_client_error("put_object", "InternalError", http_status_code=500)

        with pytest.raises(TransferError) as exc_info:
            storage.put_object("a.txt", source, content_type="text/plain")

        assert exc_info.value.key == "a.txt"
        assert isinstance(exc_info.value.cause, ClientError)


class TestGetObject:
    """Tests for get_object."""

    def test_download_args(self, storage: Boto3StorageClient, boto_client: MagicMock):
        storage.get_object("a.txt", Path("/tmp/a.txt"))

        args, _ = boto_client.download_file.call_args
        assert args == ("my-bucket", "a.txt", "/tmp/a.txt")

    def test_missing_raises(self, storage: Boto3StorageClient, boto_client: MagicMock):
        boto_client.download_file.side_effect = _client_error("404", "HeadObject")
        with pytest.raises(ResourceNotFoundError):
            storage.get_object("a.txt", Path("/tmp/a.txt"))


class TestListObjects:
    """Tests for list_objects."""

    def test_paginates(self, storage: Boto3StorageClient, boto_client: MagicMock):
        paginator = boto_client.get_paginator.return_value
        paginator.paginate.return_value = [
            {
                "Contents": [{"Key": "site/a.txt", "Size": 1}],
                "CommonPrefixes": [{"Prefix": "site/css/"}],
            },
            {"Contents": [{"Key": "site/b.txt", "Size": 2}]},
        ]

        listing = storage.list_objects(prefix="site/")

        paginator.paginate.assert_called_once_with(
            Bucket="my-bucket", Prefix="site/", Delimiter="/"
        )
        assert listing.keys == ["site/a.txt", "site/b.txt"]
        assert listing.prefixes == ["site/css/"]

    def test_single_request_with_max_keys(
        self, storage: Boto3StorageClient, boto_client: MagicMock
    ):
        boto_client.list_objects_v2.return_value = {"KeyCount": 0}

        listing = storage.list_objects(prefix="", delimiter=None, max_keys=0)

        boto_client.list_objects_v2.assert_called_once_with(
            MaxKeys=0, Bucket="my-bucket", Prefix=""
        )
        assert listing.keys == []

    def test_denied(self, storage: Boto3StorageClient, boto_client: MagicMock):
        boto_client.list_objects_v2.side_effect = _client_error("AccessDenied", "ListObjectsV2")
        with pytest.raises(PermissionDeniedError):
            storage.list_objects(max_keys=0)


# =============================================================================
# Bucket
# =============================================================================


class TestBucket:
    """Tests for bucket operations."""

    def test_create_in_default_region(self, storage: Boto3StorageClient, boto_client: MagicMock):
        storage.create_bucket()
        boto_client.create_bucket.assert_called_once_with(Bucket="my-bucket")

    def test_create_in_other_region(self, boto_client: MagicMock):
        storage = Boto3StorageClient(bucket="my-bucket", client=boto_client, region="eu-west-1")

        storage.create_bucket()

        boto_client.create_bucket.assert_called_once_with(
            Bucket="my-bucket",
            CreateBucketConfiguration={"LocationConstraint": "eu-west-1"},
        )

    def test_location(self, storage: Boto3StorageClient, boto_client: MagicMock):
        boto_client.get_bucket_location.return_value = {"LocationConstraint": "eu-west-1"}
        assert storage.get_bucket_location() == "eu-west-1"

    def test_location_null_is_us_east_1(
        self, storage: Boto3StorageClient, boto_client: MagicMock
    ):
        boto_client.get_bucket_location.return_value = {"LocationConstraint": None}
        assert storage.get_bucket_location() == "us-east-1"

    def test_location_missing_bucket(self, storage: Boto3StorageClient, boto_client: MagicMock):
        boto_client.get_bucket_location.side_effect = _client_error(
            "NoSuchBucket", "GetBucketLocation"
        )
        assert storage.get_bucket_location() is None

    def test_close(self, storage: Boto3StorageClient, boto_client: MagicMock):
        with storage:
            pass
        boto_client.close.assert_called_once()


# =============================================================================
# Factory
# =============================================================================


class TestCreate:
    """Tests for Boto3StorageClient.create."""

    def test_builds_configured_client(self):
        creds = Credentials("AKIAKEY", "secret", "token", "environment")

        with patch("boto3.session.Session") as session_cls:
            storage = Boto3StorageClient.create(
                "my-bucket", creds, region="eu-west-1", timeout=30, max_workers=50
            )

        session_cls.assert_called_once_with(
            aws_access_key_id="AKIAKEY",
            aws_secret_access_key="secret",
            aws_session_token="token",
            region_name="eu-west-1",
        )
        _, kwargs = session_cls.return_value.client.call_args
        config = kwargs["config"]
        assert config.read_timeout == 30
        assert config.max_pool_connections == 50
        assert config.retries == {"max_attempts": DEFAULT_MAX_ATTEMPTS, "mode": "standard"}
        assert kwargs["endpoint_url"] is None
        assert kwargs["use_ssl"] is True
        assert storage.region == "eu-west-1"
        assert storage.client is session_cls.return_value.client.return_value

    def test_http_protocol(self):
        creds = Credentials("AKIAKEY", "secret")

        with patch("boto3.session.Session") as session_cls:
            storage = Boto3StorageClient.create("my-bucket", creds, protocol="http")

        _, kwargs = session_cls.return_value.client.call_args
        assert kwargs["endpoint_url"] == HTTP_ENDPOINT
        assert kwargs["use_ssl"] is False
        assert storage.region == "us-east-1"

    def test_custom_endpoint_kept(self):
        creds = Credentials("AKIAKEY", "secret")

        with patch("boto3.session.Session") as session_cls:
            Boto3StorageClient.create(
                "my-bucket", creds, endpoint_url="http://minio:9000", protocol="http"
            )

        _, kwargs = session_cls.return_value.client.call_args
        assert kwargs["endpoint_url"] == "http://minio:9000"
