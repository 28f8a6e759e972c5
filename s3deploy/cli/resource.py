"""Single-resource commands for s3deploy."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click

from s3deploy.cli.common import Context, ExitCode, global_options, handle_errors, url_option
from s3deploy.core.keys import resolve_key
from s3deploy.core.output import format_size, print_output, print_success


@click.command("put")
@click.argument(
    "source",
    type=click.Path(exists=True, file_okay=True, dir_okay=False, path_type=Path),
)
@click.argument("destination")
@url_option
@global_options
@handle_errors
def put(ctx: Context, source: Path, destination: str, url: Optional[str]) -> None:
    """Upload one file to DESTINATION under the repository base.

    Example:
        s3deploy put dist/app.tar.gz releases/1.0/app.tar.gz
    """
    repo = ctx.get_repository(url)
    with repo:
        size = repo.put_resource(source, destination)
    key = resolve_key(repo.location.base_dir, destination)

    if ctx.quiet:
        click.echo(key)
    else:
        print_success(f"Uploaded {repo.location.uri_for(key)} ({format_size(size)})")


@click.command("get")
@click.argument("name")
@click.argument(
    "destination",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
)
@url_option
@global_options
@handle_errors
def get(ctx: Context, name: str, destination: Path, url: Optional[str]) -> None:
    """Download resource NAME to a local file.

    Example:
        s3deploy get releases/1.0/app.tar.gz ./app.tar.gz
    """
    repo = ctx.get_repository(url)
    with repo:
        size = repo.get_resource(name, destination)

    if not ctx.quiet:
        print_success(f"Downloaded {name} to {destination} ({format_size(size)})")


@click.command("ls")
@click.argument("directory", default="")
@url_option
@global_options
@handle_errors
def ls(ctx: Context, directory: str, url: Optional[str]) -> None:
    """List objects and sub-directories of DIRECTORY.

    Example:
        s3deploy ls
        s3deploy ls releases/
    """
    repo = ctx.get_repository(url)
    with repo:
        names = repo.list_directory(directory)

    rows = [{"name": name, "type": "dir" if name.endswith("/") else "file"} for name in names]
    print_output(
        rows,
        format=ctx.output_format,
        columns=["name", "type"],
        column_labels={"name": "Name", "type": "Type"},
        quiet=ctx.quiet,
        id_field="name",
    )


@click.command("exists")
@click.argument("name")
@click.option(
    "--newer-than",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Only succeed if the remote copy is newer than this local file",
)
@url_option
@global_options
@handle_errors
def exists(ctx: Context, name: str, newer_than: Optional[Path], url: Optional[str]) -> None:
    """Check whether resource NAME exists (exit code 0 if so, 1 if not).

    Example:
        s3deploy exists releases/1.0/app.tar.gz
        s3deploy exists index.html --newer-than build/index.html
    """
    repo = ctx.get_repository(url)
    with repo:
        if newer_than is not None:
            found = repo.is_remote_newer(name, newer_than.stat().st_mtime)
        else:
            found = repo.resource_exists(name)

    if not ctx.quiet:
        print_output({"name": name, "exists": found}, format=ctx.output_format)
    if not found:
        sys.exit(ExitCode.GENERAL_ERROR)
