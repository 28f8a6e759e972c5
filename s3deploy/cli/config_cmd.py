"""Config commands for s3deploy."""

from __future__ import annotations

from typing import Optional

import click

from s3deploy.core.config import CONFIG_FILE, Config
from s3deploy.core.exceptions import S3DeployError
from s3deploy.core.keys import parse_repository_url
from s3deploy.core.output import (
    OutputFormat,
    print_error,
    print_key_value,
    print_output,
    print_success,
)
from s3deploy.models.task import DEFAULT_DIVISOR, DEFAULT_MAX_WORKERS, DEFAULT_MIN_WORKERS


@click.group()
def config() -> None:
    """Manage s3deploy configuration."""
    pass


@config.command("init")
@click.option("--url", prompt="Repository URL (s3://bucket[/path])", help="Repository URL")
@click.option("--profile", default="default", help="Profile name")
@click.option("--region", default=None, help="Bucket region")
@click.option("--endpoint-url", default=None, help="Endpoint for S3-compatible stores")
@click.option("--acl", default=None, help="Canned ACL for uploaded files (default public-read)")
@click.option("--min-workers", type=int, default=DEFAULT_MIN_WORKERS, help="Minimum upload threads")
@click.option("--max-workers", type=int, default=DEFAULT_MAX_WORKERS, help="Maximum upload threads")
@click.option("--divisor", type=int, default=DEFAULT_DIVISOR, help="Files per upload thread")
@click.option("--force", is_flag=True, help="Overwrite existing profile")
def config_init(
    url: str,
    profile: str,
    region: Optional[str],
    endpoint_url: Optional[str],
    acl: Optional[str],
    min_workers: int,
    max_workers: int,
    divisor: int,
    force: bool,
) -> None:
    """Create configuration file with a new profile.

    Credentials are not stored by default; use the environment or -D
    aws.accessKeyId=... instead.

    Example:
        s3deploy config init --url s3://my-bucket/site --region eu-west-1
    """
    try:
        parse_repository_url(url)
    except S3DeployError as e:
        print_error(str(e))
        raise SystemExit(1)

    try:
        cfg = Config.load()
    except S3DeployError as e:
        print_error(str(e))
        raise SystemExit(1)

    if cfg.has_profile(profile) and not force:
        print_error(f"Profile '{profile}' already exists. Use --force to overwrite.")
        raise SystemExit(1)

    try:
        created = cfg.add_profile(
            name=profile,
            url=url,
            region=region,
            endpoint_url=endpoint_url,
            acl=acl,
            min_workers=min_workers,
            max_workers=max_workers,
            divisor=divisor,
        )
        created.pool_sizing({})
    except S3DeployError as e:
        print_error(str(e))
        raise SystemExit(1)

    if len(cfg.profiles) == 1:
        cfg.default_profile = profile

    cfg.save()

    print_success(f"Configuration saved to {CONFIG_FILE}")
    print_key_value(
        {
            "profile": profile,
            "url": url,
            "region": region or "-",
            "acl": created.effective_acl,
        }
    )


@config.command("show")
@click.option("--output", "-o", type=click.Choice(["json", "table"]), default="table")
def config_show(output: str) -> None:
    """Show current configuration."""
    try:
        cfg = Config.load()
    except S3DeployError as e:
        print_error(f"Failed to load config: {e}")
        raise SystemExit(1)

    if not cfg.profiles:
        print_error("No configuration found. Run 's3deploy config init' first.")
        raise SystemExit(1)

    data = {
        "config_file": str(CONFIG_FILE),
        "default_profile": cfg.default_profile,
        "output_format": cfg.output_format,
        "profiles": list(cfg.profiles.keys()),
    }

    if output == "json":
        data["profile_details"] = {
            name: _redacted(p.to_dict()) for name, p in cfg.profiles.items()
        }
        print_output(data, format=OutputFormat.JSON)
        return

    print_key_value(data, title="Configuration")
    click.echo()
    for name, profile in cfg.profiles.items():
        marker = " (default)" if name == cfg.default_profile else ""
        click.echo(f"Profile: {name}{marker}")
        print_key_value(
            {
                "url": profile.url,
                "region": profile.region or "-",
                "endpoint_url": profile.endpoint_url or "-",
                "acl": profile.effective_acl,
                "timeout": f"{profile.timeout}s",
                "workers": f"{profile.min_workers}-{profile.max_workers}",
                "divisor": profile.divisor,
            },
        )
        click.echo()


def _redacted(data: dict) -> dict:
    if data.get("password"):
        data["password"] = "****"
    return data
