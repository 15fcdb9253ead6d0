from __future__ import annotations

import pytest

from styliner import Styliner


@pytest.fixture
def inline(tmp_path):
    """Run *html* through Styliner with *css* as an extra stylesheet."""

    def run(css: str, html: str, **options) -> str:
        (tmp_path / "style.css").write_text(css, encoding="utf-8")
        options.setdefault("compact", True)
        styliner = Styliner(tmp_path, **options)
        return styliner.process_html(html, ["style.css"])

    return run
