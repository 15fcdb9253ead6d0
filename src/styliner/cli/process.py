"""CLI command: styliner process -- inline the stylesheets of an HTML file."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import click

from styliner.config import StylinerOptions
from styliner.core import Styliner
from styliner.errors import StylinerError


def configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
        )


@click.command()
@click.argument("htmlfile", type=click.Path(exists=True, dir_okay=False))
@click.option("-o", "--output", type=click.Path(dir_okay=False), default=None, help="Write the result here instead of stdout")
@click.option(
    "--base-dir",
    type=click.Path(exists=True, file_okay=False),
    default=None,
    help="Directory stylesheet paths are relative to (default: the HTML file's directory)",
)
@click.option("-s", "--stylesheet", "stylesheets", multiple=True, help="Extra stylesheet, relative to the base directory")
@click.option("-c", "--compact", is_flag=True, help="Minify the output")
@click.option("-k", "--keep-rules", is_flag=True, help="Keep rules in a <style> block instead of inlining")
@click.option("--keep-invalid", is_flag=True, help="Keep declarations the CSS parser reports as invalid")
@click.option("--fix-yahoo-mq", is_flag=True, help="Work around Yahoo Mail's media query handling")
@click.option("--no-css", is_flag=True, help="Do not emit a <style> block for rules that cannot be inlined")
@click.option("--url-prefix", default=None, help="Resolve relative URLs against this prefix")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr")
def process(
    htmlfile: str,
    output: str | None,
    base_dir: str | None,
    stylesheets: tuple[str, ...],
    compact: bool,
    keep_rules: bool,
    keep_invalid: bool,
    fix_yahoo_mq: bool,
    no_css: bool,
    url_prefix: str | None,
    verbose: bool,
) -> None:
    """Inline the stylesheets linked from HTMLFILE.

    Relative links in the document resolve from its own directory.
    """
    configure_logging(verbose)

    html_path = Path(htmlfile).resolve()
    root = Path(base_dir).resolve() if base_dir else html_path.parent
    relative_path = os.path.relpath(html_path.parent, root)

    options = StylinerOptions(
        compact=compact,
        keep_rules=keep_rules,
        keep_invalid=keep_invalid,
        fix_yahoo_mq=fix_yahoo_mq,
        no_css=no_css,
        url_prefix=url_prefix,
    )

    try:
        source = html_path.read_text(encoding="utf-8")
        with Styliner(root, options) as styliner:
            result = styliner.process_html(source, relative_path, list(stylesheets))
    except StylinerError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    if output:
        Path(output).write_text(result, encoding="utf-8")
        click.echo(f"Wrote {output}", err=True)
    else:
        click.echo(result)
