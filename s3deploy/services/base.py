"""Base service with common methods for bucket-backed services."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from s3deploy.core.exceptions import ConnectionError
from s3deploy.core.keys import KEY_SEPARATOR, RepositoryLocation, resolve_key

if TYPE_CHECKING:
    from s3deploy.core.client import StorageClient


class BaseService:
    """Base service class with common functionality."""

    def __init__(
        self,
        location: RepositoryLocation,
        client: Optional["StorageClient"] = None,
    ) -> None:
        """Initialize service.

        Args:
            location: Bucket and base directory the service works under.
            client: Connected storage client, if already available.
        """
        self.location = location
        self.client = client

    @property
    def is_connected(self) -> bool:
        return self.client is not None

    def _require_client(self) -> "StorageClient":
        """Return the storage client.

        Raises:
            ConnectionError: If the service is not connected.
        """
        if self.client is None:
            raise ConnectionError("Not connected to repository", self.location.url)
        return self.client

    def _key(self, name: str) -> str:
        """Canonical object key for a path relative to the base directory.

        Raises:
            InvalidPathError: If the path cannot be mapped to a key.
        """
        return resolve_key(self.location.base_dir, name)

    def _uri(self, key: str) -> str:
        return self.location.uri_for(key)

    def _relative(self, key: str) -> str:
        """Strip the base directory from a key."""
        base_dir = self.location.base_dir
        if base_dir and key.startswith(base_dir):
            return key[len(base_dir) :]
        return key

    def _prefix(self, directory: Optional[str]) -> str:
        """Listing prefix for a directory (the base directory when blank)."""
        trimmed = (directory or "").strip().strip(KEY_SEPARATOR)
        if trimmed in ("", "."):
            return self.location.base_dir
        return self._key(trimmed) + KEY_SEPARATOR
