"""Pytest configuration and fixtures for s3deploy tests."""

from __future__ import annotations

import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import Generator, Optional

import pytest

from s3deploy.core.exceptions import PermissionDeniedError, ResourceNotFoundError
from s3deploy.core.properties import system_properties
from s3deploy.models.base import ObjectListing

ENV_VARS = (
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_SESSION_TOKEN",
    "S3DEPLOY_URL",
    "S3DEPLOY_PROFILE",
    "S3DEPLOY_REGION",
    "S3DEPLOY_TIMEOUT",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep credentials and settings from the host out of every test."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("AWS_EC2_METADATA_DISABLED", "true")
    system_properties.clear()
    yield
    system_properties.clear()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_config_yaml() -> str:
    """Sample config YAML content."""
    return """
default_profile: test
output_format: table

profiles:
  test:
    url: s3://test-bucket/site
    region: eu-west-1
    timeout: 30
    min_workers: 2
    max_workers: 8
    divisor: 10

  production:
    url: s3://prod-bucket
    acl: private
    timeout: 60
"""


@pytest.fixture
def sample_config_with_credentials_yaml() -> str:
    """Sample config YAML with credentials."""
    return """
default_profile: test
output_format: table

profiles:
  test:
    url: s3://test-bucket/site
    username: AKIATESTUSER
    password: testsecret
    timeout: 30

  production:
    url: s3://prod-bucket
    username: AKIAPRODUSER
    password: prodsecret
    timeout: 60
"""


class FakeStorageClient:
    """In-memory StorageClient for service and CLI tests."""

    def __init__(
        self,
        bucket: str = "test-bucket",
        *,
        exists: bool = True,
        fail_keys: tuple[str, ...] = (),
    ) -> None:
        self.bucket = bucket
        self.exists = exists
        self.fail_keys = set(fail_keys)
        self.denied_keys: set[str] = set()
        self.objects: dict[str, bytes] = {}
        self.metadata: dict[str, dict[str, Optional[str]]] = {}
        self.modified: dict[str, datetime] = {}
        self.created = False
        self.closed = False
        self.list_calls: list[tuple[str, Optional[str], Optional[int]]] = []
        self._lock = threading.Lock()

    def head_object(self, key: str, if_modified_since: Optional[datetime] = None) -> bool:
        if key not in self.objects:
            return False
        if if_modified_since is None:
            return True
        modified = self.modified.get(key)
        return modified is not None and modified > if_modified_since

    def put_object(self, key, source, *, content_type, acl=None, callback=None) -> None:
        if key in self.fail_keys:
            raise OSError(f"simulated failure for {key}")
        if key in self.denied_keys:
            raise PermissionDeniedError(f"s3://{self.bucket}/{key}", "upload")
        data = Path(source).read_bytes()
        if callback is not None:
            callback(len(data))
        with self._lock:
            self.objects[key] = data
            self.metadata[key] = {"content_type": content_type, "acl": acl}

    def get_object(self, key, destination, *, callback=None) -> None:
        if key not in self.objects:
            raise ResourceNotFoundError("Object", f"s3://{self.bucket}/{key}")
        data = self.objects[key]
        Path(destination).write_bytes(data)
        if callback is not None:
            callback(len(data))

    def list_objects(self, prefix="", delimiter="/", max_keys=None) -> ObjectListing:
        self.list_calls.append((prefix, delimiter, max_keys))
        contents = []
        prefixes: list[str] = []
        for key in sorted(self.objects):
            if not key.startswith(prefix):
                continue
            rest = key[len(prefix) :]
            if delimiter and delimiter in rest:
                sub = prefix + rest.split(delimiter, 1)[0] + delimiter
                if sub not in prefixes:
                    prefixes.append(sub)
                continue
            contents.append({"Key": key, "Size": len(self.objects[key])})
        if max_keys is not None:
            contents = contents[:max_keys]
        return ObjectListing.model_validate(
            {
                "Prefix": prefix,
                "Contents": contents,
                "CommonPrefixes": [{"Prefix": p} for p in prefixes],
            }
        )

    def create_bucket(self) -> None:
        self.created = True
        self.exists = True

    def get_bucket_location(self) -> Optional[str]:
        return "us-east-1" if self.exists else None

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_client() -> FakeStorageClient:
    """In-memory storage client for a bucket that exists."""
    return FakeStorageClient()


@pytest.fixture
def credential_properties() -> dict[str, str]:
    """Properties carrying static test credentials."""
    return {"aws.accessKeyId": "AKIATESTKEY", "aws.secretAccessKey": "testsecret"}


@pytest.fixture
def tree(temp_dir: Path) -> Path:
    """A small site to deploy."""
    site = temp_dir / "site"
    (site / "css").mkdir(parents=True)
    (site / "js").mkdir()
    (site / ".well-known").mkdir()
    (site / "index.html").write_text("<html></html>")
    (site / "css" / "style.css").write_text("body {}")
    (site / "js" / "app.js").write_text("console.log(1);")
    (site / ".well-known" / "security.txt").write_text("Contact: ops@example.org")
    return site
