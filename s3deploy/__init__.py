"""s3deploy - Parallel deployment of directory trees to S3 buckets.

This package uploads a local directory to an S3 or S3-compatible bucket,
supporting:
- Canonical object keys derived from relative paths
- An ordered credential chain (properties, environment, profile, EC2 role)
- A bounded worker pool sized from the number of files
- Per-session transfer statistics and throughput
"""

__version__ = "0.1.0"

from s3deploy.core.config import Config, Profile
from s3deploy.core.credentials import resolve_credentials
from s3deploy.core.exceptions import (
    AuthenticationError,
    BatchTransferError,
    ConfigurationError,
    ConnectionError,
    InvalidPathError,
    NetworkError,
    ResourceNotFoundError,
    S3DeployError,
    TransferError,
    ValidationError,
)
from s3deploy.core.keys import resolve_key
from s3deploy.services.repository import Repository

__all__ = [
    "__version__",
    "Repository",
    "Config",
    "Profile",
    "resolve_key",
    "resolve_credentials",
    "S3DeployError",
    "AuthenticationError",
    "BatchTransferError",
    "ConfigurationError",
    "ConnectionError",
    "InvalidPathError",
    "NetworkError",
    "ResourceNotFoundError",
    "TransferError",
    "ValidationError",
]
