"""Main CLI entry point for s3deploy."""

from __future__ import annotations

import click

from s3deploy import __version__

# Import commands
from s3deploy.cli.auth import auth
from s3deploy.cli.config_cmd import config
from s3deploy.cli.deploy import deploy
from s3deploy.cli.resource import exists, get, ls, put


# =============================================================================
# Main CLI Group
# =============================================================================


@click.group()
@click.version_option(version=__version__, prog_name="s3deploy")
def cli() -> None:
    """s3deploy - Deploy directory trees to S3 buckets in parallel.

    Uploads every file of a local directory to an S3 (or S3-compatible)
    bucket, with a worker pool sized from the number of files.

    Get started:

      s3deploy config init             # Create config file

      s3deploy auth check              # See which credentials are used

      s3deploy deploy build/site       # Upload a directory

    Use --help on any command for more information.
    """
    pass


# =============================================================================
# Register Commands
# =============================================================================

cli.add_command(config)
cli.add_command(auth)
cli.add_command(deploy)
cli.add_command(put)
cli.add_command(get)
cli.add_command(ls)
cli.add_command(exists)


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
