"""Logging utilities for s3deploy.

Library modules log through ``logging.getLogger(__name__)``; the CLI calls
:func:`setup_logging` once. Deployments also emit one audit record per
repository operation on the ``s3deploy.audit`` logger.
"""

from __future__ import annotations

import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Generator, Optional

# =============================================================================
# Constants
# =============================================================================

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
AUDIT_LOGGER_NAME = "s3deploy.audit"

# Transport libraries log every request at INFO/DEBUG
NOISY_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3", "httpx", "httpcore")


# =============================================================================
# Logger Setup
# =============================================================================


def setup_logging(
    level: int = logging.INFO,
    *,
    quiet: bool = False,
    verbose: bool = False,
) -> None:
    """Configure root logging on stderr.

    ``quiet`` wins over ``verbose``. Transport loggers stay at WARNING even
    in verbose mode so per-request chatter does not drown transfer output.
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stderr,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


# =============================================================================
# Log Context
# =============================================================================


class LogContext:
    """Times one repository operation and logs how it ended."""

    def __init__(
        self,
        operation: str,
        logger: Optional[logging.Logger] = None,
        **fields: Any,
    ):
        self.operation = operation
        self.logger = logger or get_logger(__name__)
        self.fields = fields
        self._started: Optional[float] = None

    @property
    def elapsed(self) -> float:
        """Seconds since the context was entered."""
        if self._started is None:
            return 0.0
        return time.monotonic() - self._started

    def describe(self) -> str:
        return " ".join(f"{k}={v}" for k, v in self.fields.items() if v is not None)

    def __enter__(self) -> "LogContext":
        self._started = time.monotonic()
        self.logger.debug("%s started [%s]", self.operation, self.describe())
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if exc_type is None:
            self.logger.debug("%s completed in %.2fs", self.operation, self.elapsed)
            return
        self.logger.error(
            "%s failed after %.2fs [%s]: %s",
            self.operation,
            self.elapsed,
            self.describe(),
            exc_val,
        )


@contextmanager
def log_context(
    operation: str,
    logger: Optional[logging.Logger] = None,
    **fields: Any,
) -> Generator[LogContext, None, None]:
    """Wrap a block in a :class:`LogContext`.

    Example:
        with log_context("put_directory", logger, bucket="site", prefix="v2/"):
            scheduler.run(...)
    """
    with LogContext(operation, logger, **fields) as ctx:
        yield ctx


# =============================================================================
# Audit Logger
# =============================================================================


class AuditLogger:
    """Emits one record per repository write so deployments can be traced."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(AUDIT_LOGGER_NAME)

    def log_operation(
        self,
        operation: str,
        *,
        bucket: Optional[str] = None,
        key: Optional[str] = None,
        credential_source: Optional[str] = None,
        success: bool = True,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """Log an auditable operation.

        Failed operations are logged at WARNING, everything else at INFO.

        Args:
            operation: Repository operation name (``put``, ``put_directory``).
            bucket: Target bucket.
            key: Target key, or key prefix for directory uploads.
            credential_source: Which credential source signed the requests.
            success: Whether the operation succeeded.
            details: Extra counters such as files and bytes transferred.
        """
        record: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "operation": operation,
            "success": success,
        }
        optional = {
            "bucket": bucket,
            "key": key,
            "credential_source": credential_source,
            "details": details,
        }
        record.update({name: value for name, value in optional.items() if value})

        level = logging.INFO if success else logging.WARNING
        self.logger.log(level, "AUDIT: %s", record)


def get_audit_logger() -> AuditLogger:
    return AuditLogger()
