"""Common utilities for uploader modules."""

from __future__ import annotations

import logging
import mimetypes
from collections.abc import Iterable
from pathlib import Path

from s3deploy.core.keys import KEY_SEPARATOR, resolve_key
from s3deploy.models.task import DEFAULT_CONTENT_TYPE, UploadTask

logger = logging.getLogger(__name__)


def guess_content_type(destination: str) -> str:
    """Content type for an object, from the extension of its destination."""
    content_type, _ = mimetypes.guess_type(destination, strict=False)
    return content_type or DEFAULT_CONTENT_TYPE


def collect_files(root: Path, *, include_hidden: bool = True) -> list[Path]:
    """Recursively collect regular files under a root directory.

    Args:
        root: Root directory to search.
        include_hidden: If False, skip files and directories whose name
            starts with a dot.

    Returns:
        Sorted list of file paths.

    Raises:
        ValueError: If root is not a directory.
    """
    if not root.exists() or not root.is_dir():
        raise ValueError(f"Not a directory: {root}")

    files: list[Path] = []
    for path in root.rglob("*"):
        if not path.is_file():
            continue

        if not include_hidden and any(
            part.startswith(".") for part in path.relative_to(root).parts
        ):
            continue

        # Skip broken symlinks
        if path.is_symlink():
            try:
                if not path.resolve().exists():
                    continue
            except (OSError, RuntimeError):
                logger.debug("Skipping unresolvable symlink %s", path)
                continue

        files.append(path)

    return sorted(files)


def destination_for(destination_dir: str, relative: Path) -> str:
    """Destination path for a file relative to the directory being deployed."""
    relative_path = relative.as_posix()
    if not destination_dir:
        return relative_path
    return f"{destination_dir.rstrip(KEY_SEPARATOR)}{KEY_SEPARATOR}{relative_path}"


def build_upload_tasks(
    source_dir: Path,
    destination_dir: str,
    base_dir: str = "",
    *,
    files: Iterable[Path] | None = None,
    include_hidden: bool = True,
) -> list[UploadTask]:
    """Build one UploadTask per file under ``source_dir``.

    Each file keeps its path relative to ``source_dir`` under
    ``destination_dir``; the key is resolved once, here.

    Raises:
        ValueError: If source_dir is not a directory.
        InvalidPathError: If a destination cannot be mapped to a key.
    """
    if files is None:
        files = collect_files(source_dir, include_hidden=include_hidden)

    tasks: list[UploadTask] = []
    for path in files:
        destination = destination_for(destination_dir, path.relative_to(source_dir))
        tasks.append(
            UploadTask(
                source_path=path,
                destination_key=resolve_key(base_dir, destination),
                size_bytes=path.stat().st_size,
                content_type=guess_content_type(destination),
            )
        )
    return tasks


def total_bytes(tasks: Iterable[UploadTask]) -> int:
    return sum(task.size_bytes for task in tasks)
