"""Progress snapshot handed to upload progress callbacks."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class UploadProgress:
    """State of a directory upload after one more file finished.

    ``current`` counts finished files, failed ones included.
    """

    current: int
    total: int
    failed: int = 0
    bytes_sent: int = 0
    key: str = ""
    success: bool = True

    @property
    def percent(self) -> float:
        if self.total == 0:
            return 0.0
        return (self.current / self.total) * 100
