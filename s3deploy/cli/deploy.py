"""Deploy command for s3deploy."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from s3deploy.cli.common import Context, global_options, handle_errors, url_option
from s3deploy.core.output import (
    OutputFormat,
    create_progress,
    format_duration,
    format_rate,
    format_size,
    print_output,
    print_success,
    print_warning,
)
from s3deploy.models.progress import UploadProgress


@click.command("deploy")
@click.argument(
    "source_dir",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
)
@click.option(
    "--dest",
    "-d",
    "destination",
    default="",
    help="Directory under the repository base to deploy into",
)
@click.option(
    "--exclude-hidden",
    is_flag=True,
    help="Skip dot-files and dot-directories",
)
@click.option(
    "--progress/--no-progress",
    "show_progress",
    default=True,
    help="Show a progress bar",
)
@url_option
@global_options
@handle_errors
def deploy(
    ctx: Context,
    source_dir: Path,
    destination: str,
    exclude_hidden: bool,
    show_progress: bool,
    url: Optional[str],
) -> None:
    """Upload a directory tree to the repository in parallel.

    Every file keeps its path relative to SOURCE_DIR. The number of upload
    threads grows with the number of files, between s3deploy.threads.min and
    s3deploy.threads.max.

    Example:
        s3deploy deploy build/site --url s3://my-bucket/docs
        s3deploy deploy target/repo -D s3deploy.threads.max=20
    """
    repo = ctx.get_repository(url)
    use_bar = show_progress and not ctx.quiet and ctx.output_format == OutputFormat.TABLE

    with repo:
        if use_bar:
            with create_progress() as bar:
                task_id = bar.add_task(f"Uploading to {repo.location.bucket}", total=None)

                def on_progress(snapshot: UploadProgress) -> None:
                    bar.update(task_id, completed=snapshot.current, total=snapshot.total)

                stats = repo.put_directory(
                    source_dir,
                    destination,
                    include_hidden=not exclude_hidden,
                    progress=on_progress,
                )
        else:
            stats = repo.put_directory(
                source_dir,
                destination,
                include_hidden=not exclude_hidden,
            )

    seconds = stats.elapsed_millis / 1000
    result = {
        "bucket": repo.location.bucket,
        "files": stats.items_processed,
        "bytes": stats.bytes_transferred,
        "size": format_size(stats.bytes_transferred),
        "time": format_duration(seconds),
        "rate": format_rate(stats.bytes_transferred, seconds),
        "workers": stats.worker_count,
    }

    if ctx.quiet:
        return
    if stats.cancelled:
        print_warning("Deployment cancelled before all files were uploaded")
    if ctx.output_format == OutputFormat.JSON:
        print_output(result, format=ctx.output_format)
        return
    if stats.items_processed == 0:
        print_warning(f"No files found in {source_dir}")
        return
    print_success(
        f"Deployed {stats.items_succeeded} file(s) ({result['size']}) "
        f"in {result['time']} at {result['rate']} using {stats.worker_count} worker(s)"
    )
