"""Authentication commands for s3deploy."""

from __future__ import annotations

from typing import Optional

import click

from s3deploy.cli.common import Context, global_options, handle_errors, url_option
from s3deploy.core.credentials import resolve_credentials
from s3deploy.core.exceptions import ConfigurationError
from s3deploy.core.output import OutputFormat, print_json, print_key_value, print_success


@click.group()
def auth() -> None:
    """Inspect credential resolution."""
    pass


@auth.command("check")
@click.option(
    "--connect",
    is_flag=True,
    help="Also connect to the repository and validate the bucket",
)
@url_option
@global_options
@handle_errors
def auth_check(ctx: Context, connect: bool, url: Optional[str]) -> None:
    """Show which credential source would be used.

    Sources are tried in order: -D aws.accessKeyId/aws.secretAccessKey,
    AWS_ACCESS_KEY_ID/AWS_SECRET_ACCESS_KEY, the profile's username/password,
    then the EC2 instance metadata service.

    Example:
        s3deploy auth check
        s3deploy auth check --connect --url s3://my-bucket
    """
    explicit_auth = None
    try:
        explicit_auth = ctx.get_profile(url).explicit_auth
    except ConfigurationError:
        # No profile; only properties, environment and instance metadata apply
        pass

    credentials = resolve_credentials(explicit_auth, properties=ctx.properties)
    data = {
        "source": credentials.source,
        "access_key_id": credentials.masked_key_id,
        "session_token": credentials.session_token is not None,
    }

    if connect:
        repo = ctx.get_repository(url)
        with repo:
            data["bucket"] = repo.location.bucket
            data["base_dir"] = repo.location.base_dir or "/"

    if ctx.output_format == OutputFormat.JSON:
        print_json(data)
        return
    if not ctx.quiet:
        print_success(f"Credentials resolved from {credentials.source}")
        print_key_value(data)
