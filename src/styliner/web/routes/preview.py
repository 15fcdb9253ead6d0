from __future__ import annotations

import os

from flask import Blueprint, abort, current_app, render_template_string, send_from_directory
from werkzeug.security import safe_join

preview_bp = Blueprint("preview", __name__)

_LISTING = """<!DOCTYPE html>
<html>
<head><title>Styliner preview</title></head>
<body>
<h1>{{ base_dir }}</h1>
<ul>
{% for name in names %}  <li><a href="{{ url_for('preview.page', filename=name) }}">{{ name }}</a></li>
{% endfor %}</ul>
</body>
</html>
"""


def _list_files(base_dir: str) -> list[str]:
    names = []
    for dirpath, dirnames, filenames in os.walk(base_dir):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
        for name in sorted(filenames):
            if name.startswith("."):
                continue
            full = os.path.join(dirpath, name)
            names.append(os.path.relpath(full, base_dir).replace(os.sep, "/"))
    return names


@preview_bp.route("/")
def index():
    """List every file under the base directory."""
    styliner = current_app.extensions["styliner"]
    return render_template_string(
        _LISTING, base_dir=styliner.base_dir, names=_list_files(styliner.base_dir)
    )


@preview_bp.route("/<path:filename>")
def page(filename: str):
    """Serve a file, running HTML pages through Styliner first."""
    styliner = current_app.extensions["styliner"]
    full_path = safe_join(styliner.base_dir, filename)
    if full_path is None or not os.path.isfile(full_path):
        abort(404)

    if not filename.lower().endswith((".html", ".htm")):
        return send_from_directory(styliner.base_dir, filename)

    with open(full_path, encoding="utf-8") as f:
        source = f.read()
    relative_path = os.path.dirname(filename) or "."
    html = styliner.process_html(source, relative_path)
    return html, 200, {"Content-Type": "text/html; charset=utf-8"}
