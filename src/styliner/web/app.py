from __future__ import annotations

import os
from urllib.parse import quote

from flask import Flask

from styliner.config import StylinerOptions
from styliner.core import Styliner
from styliner.errors import StylinerError


def type_query_url(path: str, kind: str = "img") -> str:
    """URL policy that tags each rewritten URL with its reference type."""
    return f"{path}?type={quote(kind, safe='')}"


def handle_styliner_error(exc: StylinerError):
    return str(exc), 500, {"Content-Type": "text/plain; charset=utf-8"}


def create_app(
    base_dir: str | os.PathLike[str] = ".",
    styliner: Styliner | None = None,
    config: dict | None = None,
    options: StylinerOptions | None = None,
) -> Flask:
    """Create and configure the Flask app.

    Without an explicit *styliner*, one is built for *base_dir* from
    *options*; unless those set a URL policy, rewritten URLs get a
    ``?type=`` query naming where they were found.
    """
    app = Flask(__name__)
    app.config.update(config or {})

    if styliner is None:
        options = options or StylinerOptions()
        if not options.rewrites_urls:
            options = options.with_overrides(url=type_query_url)
        styliner = Styliner(base_dir, options)

    app.extensions["styliner"] = styliner
    app.register_error_handler(StylinerError, handle_styliner_error)

    # Register blueprints
    from styliner.web.routes.preview import preview_bp

    app.register_blueprint(preview_bp)

    return app
