"""Common CLI utilities, decorators, and helpers."""

from __future__ import annotations

import sys
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

import click

from s3deploy.core.config import Config, Profile
from s3deploy.core.exceptions import (
    AuthenticationError,
    BatchTransferError,
    ConfigurationError,
    ConnectionError,
    PermissionDeniedError,
    ProfileNotFoundError,
    S3DeployError,
)
from s3deploy.core.logging import setup_logging
from s3deploy.core.output import OutputFormat, print_error
from s3deploy.core.properties import Properties, parse_definitions, system_properties
from s3deploy.services.listener import LoggingObserver
from s3deploy.services.repository import Repository

F = TypeVar("F", bound=Callable[..., Any])


# =============================================================================
# Exit Codes
# =============================================================================


class ExitCode:
    """Standard exit codes."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    AUTH_ERROR = 2
    NETWORK_ERROR = 3
    PERMISSION_ERROR = 4
    USER_CANCELLED = 5
    TRANSFER_ERROR = 6


# =============================================================================
# Context Object
# =============================================================================


class Context:
    """CLI context object passed to commands."""

    def __init__(self) -> None:
        self.config: Optional[Config] = None
        self.profile_name: Optional[str] = None
        self.output_format: OutputFormat = OutputFormat.TABLE
        self.quiet: bool = False
        self.verbose: bool = False
        self.properties: Properties = Properties(system_properties)

    def get_profile(self, url: Optional[str] = None) -> Profile:
        """Resolve the active profile, with ``url`` overriding its URL.

        Raises:
            ConfigurationError: If no profile is configured and no URL given.
        """
        if self.config is None:
            self.config = Config.load()

        try:
            profile = self.config.get_profile(self.profile_name)
        except ProfileNotFoundError:
            if url:
                return Profile(url=url)
            raise ConfigurationError(
                f"Profile '{self.profile_name or self.config.default_profile}' not found. "
                "Run 's3deploy config init' to create one, or pass --url."
            ) from None

        if url:
            profile = Profile.from_dict({**profile.to_dict(), "url": url})
        return profile

    def get_repository(self, url: Optional[str] = None) -> Repository:
        """Build an unconnected repository for the active profile."""
        profile = self.get_profile(url)
        return Repository(
            profile.url,
            profile,
            observers=[LoggingObserver()],
            properties=self.properties,
        )


pass_context = click.make_pass_decorator(Context, ensure=True)


# =============================================================================
# Global Options
# =============================================================================


def global_options(f: F) -> F:
    """Add global options to a command."""

    @click.option(
        "--profile",
        "-p",
        envvar="S3DEPLOY_PROFILE",
        help="Config profile to use",
    )
    @click.option(
        "--output",
        "-o",
        "output_format",
        type=click.Choice(["json", "table"]),
        default="table",
        help="Output format",
    )
    @click.option(
        "--quiet",
        "-q",
        is_flag=True,
        help="Minimal output (keys only)",
    )
    @click.option(
        "--verbose",
        "-v",
        is_flag=True,
        help="Enable verbose output",
    )
    @click.option(
        "--define",
        "-D",
        "definitions",
        multiple=True,
        metavar="KEY=VALUE",
        help="Set a property, e.g. -D s3deploy.threads.max=20",
    )
    @pass_context
    @wraps(f)
    def wrapper(
        ctx: Context,
        profile: Optional[str],
        output_format: str,
        quiet: bool,
        verbose: bool,
        definitions: tuple[str, ...],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """Populate context from global options and invoke the command."""
        ctx.profile_name = profile
        ctx.output_format = OutputFormat.from_string(output_format)
        ctx.quiet = quiet
        ctx.verbose = verbose

        setup_logging(quiet=quiet, verbose=verbose)

        try:
            ctx.properties.update(parse_definitions(definitions))
            ctx.config = Config.load()
        except ConfigurationError as e:
            print_error(str(e))
            sys.exit(ExitCode.GENERAL_ERROR)

        return f(ctx, *args, **kwargs)

    return wrapper  # type: ignore


def url_option(f: F) -> F:
    """Add --url to override the profile's repository URL."""
    return click.option(
        "--url",
        "-u",
        envvar="S3DEPLOY_URL",
        help="Repository URL (s3://bucket[/path])",
    )(f)


# =============================================================================
# Error Handling
# =============================================================================


def _exit_code_for(error: S3DeployError) -> int:
    if isinstance(error, PermissionDeniedError):
        return ExitCode.PERMISSION_ERROR
    if isinstance(error, AuthenticationError):
        return ExitCode.AUTH_ERROR
    if isinstance(error, ConnectionError):
        return ExitCode.NETWORK_ERROR
    if isinstance(error, BatchTransferError):
        return ExitCode.TRANSFER_ERROR
    return ExitCode.GENERAL_ERROR


def handle_errors(f: F) -> F:
    """Handle common errors and convert to CLI exit codes."""

    @wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        """Capture errors and exit with consistent messaging."""
        try:
            return f(*args, **kwargs)
        except BatchTransferError as e:
            print_error(e.message)
            for failure in e.failures:
                print_error(f"  {failure.key or failure.source}: {failure.message}")
            sys.exit(_exit_code_for(e))
        except S3DeployError as e:
            print_error(str(e))
            sys.exit(_exit_code_for(e))
        except click.ClickException:
            raise
        except Exception as e:
            print_error(f"Unexpected error: {e}")
            sys.exit(ExitCode.GENERAL_ERROR)

    return wrapper  # type: ignore
