"""CLI command: styliner serve -- preview inlined HTML in a browser."""

from __future__ import annotations

import click

from styliner.cli.process import configure_logging
from styliner.config import StylinerOptions


@click.command()
@click.option("--base-dir", type=click.Path(exists=True, file_okay=False), default=".", help="Directory to serve")
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=5000, type=int, help="Port to bind to")
@click.option("-c", "--compact", is_flag=True, help="Minify the output")
@click.option("-k", "--keep-rules", is_flag=True, help="Keep rules in a <style> block instead of inlining")
@click.option("--fix-yahoo-mq", is_flag=True, help="Work around Yahoo Mail's media query handling")
@click.option("--debug/--no-debug", default=False, help="Enable debug mode")
def serve(
    base_dir: str,
    host: str,
    port: int,
    compact: bool,
    keep_rules: bool,
    fix_yahoo_mq: bool,
    debug: bool,
) -> None:
    """Serve BASE_DIR, inlining stylesheets into every HTML page."""
    from styliner.web.app import create_app

    configure_logging(debug)
    options = StylinerOptions(compact=compact, keep_rules=keep_rules, fix_yahoo_mq=fix_yahoo_mq)
    app = create_app(base_dir, options=options)
    click.echo(f"Serving {base_dir} on {host}:{port}")
    app.run(host=host, port=port, debug=debug)
