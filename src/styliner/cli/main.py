"""Styliner CLI entry point: Click group with subcommands."""

import click

from styliner import __version__


@click.group()
@click.version_option(version=__version__, prog_name="styliner")
def cli() -> None:
    """Styliner - inline CSS into HTML email."""


# Import and register subcommands
from styliner.cli.process import process  # noqa: E402
from styliner.cli.serve import serve  # noqa: E402

cli.add_command(process)
cli.add_command(serve)
