"""Core modules for s3deploy.

The storage client and config live in ``s3deploy.core.client`` and
``s3deploy.core.config``; they depend on ``s3deploy.models`` and are not
re-exported here.
"""

from s3deploy.core.credentials import (
    CredentialChain,
    Credentials,
    EnvironmentVariableSource,
    ExplicitAuthSource,
    InstanceMetadataSource,
    SystemPropertySource,
    resolve_credentials,
)
from s3deploy.core.exceptions import (
    AuthenticationError,
    BatchTransferError,
    ConfigurationError,
    ConnectionError,
    InvalidPathError,
    InvalidURLError,
    NetworkError,
    OperationError,
    PermissionDeniedError,
    ProfileNotFoundError,
    ResourceError,
    ResourceNotFoundError,
    S3DeployError,
    TransferError,
    ValidationError,
)
from s3deploy.core.keys import RepositoryLocation, base_dir_for, parse_repository_url, resolve_key
from s3deploy.core.logging import LogContext, get_audit_logger, get_logger, setup_logging
from s3deploy.core.output import (
    OutputFormat,
    console,
    format_duration,
    format_rate,
    format_size,
    print_error,
    print_json,
    print_output,
    print_success,
    print_table,
    print_warning,
)
from s3deploy.core.properties import Properties, parse_definitions, system_properties

__all__ = [
    # Exceptions
    "S3DeployError",
    "AuthenticationError",
    "PermissionDeniedError",
    "ConfigurationError",
    "ProfileNotFoundError",
    "ConnectionError",
    "NetworkError",
    "ResourceError",
    "ResourceNotFoundError",
    "ValidationError",
    "InvalidURLError",
    "InvalidPathError",
    "OperationError",
    "TransferError",
    "BatchTransferError",
    # Keys
    "RepositoryLocation",
    "base_dir_for",
    "parse_repository_url",
    "resolve_key",
    # Credentials
    "Credentials",
    "CredentialChain",
    "SystemPropertySource",
    "EnvironmentVariableSource",
    "ExplicitAuthSource",
    "InstanceMetadataSource",
    "resolve_credentials",
    # Properties
    "Properties",
    "parse_definitions",
    "system_properties",
    # Output
    "OutputFormat",
    "print_output",
    "print_table",
    "print_json",
    "print_error",
    "print_warning",
    "print_success",
    "format_size",
    "format_duration",
    "format_rate",
    "console",
    # Logging
    "get_logger",
    "get_audit_logger",
    "setup_logging",
    "LogContext",
]
