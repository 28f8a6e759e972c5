"""Object key derivation and repository URL parsing.

Storage keys are derived purely lexically: nothing here touches the local
filesystem, since a destination path need not exist locally.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlsplit

from s3deploy.core.exceptions import InvalidPathError, InvalidURLError

KEY_SEPARATOR = "/"
SUPPORTED_SCHEMES = ("s3",)


@dataclass(frozen=True)
class RepositoryLocation:
    """Bucket plus base directory parsed from a repository URL."""

    url: str
    bucket: str
    base_dir: str

    def uri_for(self, key: str) -> str:
        """Return a display URI for an object key in this bucket."""
        return f"s3://{self.bucket}/{key}"


def base_dir_for(path: str) -> str:
    """Convert a repository path into a key prefix.

    ``/`` becomes ``""``, ``/snapshot/`` and ``/snapshot`` both become
    ``snapshot/``.
    """
    trimmed = path.replace("\\", KEY_SEPARATOR).lstrip(KEY_SEPARATOR)
    if not trimmed:
        return ""
    if not trimmed.endswith(KEY_SEPARATOR):
        trimmed += KEY_SEPARATOR
    return trimmed


def parse_repository_url(url: str) -> RepositoryLocation:
    """Parse ``s3://bucket[/base/dir]`` into a RepositoryLocation.

    Raises:
        InvalidURLError: If the scheme is unsupported or the bucket is missing.
    """
    parts = urlsplit(url.strip())
    if parts.scheme not in SUPPORTED_SCHEMES:
        raise InvalidURLError(url, "expected s3://bucket[/path]")
    if not parts.netloc:
        raise InvalidURLError(url, "missing bucket name")
    return RepositoryLocation(url=url, bucket=parts.netloc, base_dir=base_dir_for(parts.path))


def resolve_key(base_dir: str, destination: str) -> str:
    """Map a destination path under ``base_dir`` to a canonical object key.

    ``.`` and empty segments are dropped and ``..`` removes the previous
    segment. Backslashes count as separators so Windows-style paths map to
    the same key.

    Examples:
        >>> resolve_key("release/", "./css/style.css")
        'release/css/style.css'
        >>> resolve_key("", "/foo/bar/../../css/style.css")
        'css/style.css'

    Raises:
        InvalidPathError: If ``..`` climbs above the root, or nothing is left.
    """
    path = f"{base_dir}{destination}".replace("\\", KEY_SEPARATOR)

    segments: list[str] = []
    for segment in path.split(KEY_SEPARATOR):
        if segment in ("", "."):
            continue
        if segment == "..":
            if not segments:
                raise InvalidPathError(path, "escapes above the repository root")
            segments.pop()
            continue
        segments.append(segment)

    if not segments:
        raise InvalidPathError(path, "does not name an object")

    return KEY_SEPARATOR.join(segments)
