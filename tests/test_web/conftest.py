from __future__ import annotations

import pytest

from styliner.web.app import create_app


@pytest.fixture
def site(tmp_path):
    """A preview directory with one template, its stylesheet and an image."""
    (tmp_path / "css").mkdir()
    (tmp_path / "css" / "mail.css").write_text(
        "p { color: red } .logo { background: url(../img/logo.png) }"
    )
    (tmp_path / "img").mkdir()
    (tmp_path / "img" / "logo.png").write_bytes(b"\x89PNG\r\n")
    (tmp_path / "emails").mkdir()
    (tmp_path / "emails" / "welcome.html").write_text(
        '<html><head><link rel="stylesheet" href="../css/mail.css"></head>'
        '<body><p>Hi</p><div class="logo"></div><img src="../img/logo.png"></body></html>'
    )
    (tmp_path / ".hidden").write_text("secret")
    return tmp_path


@pytest.fixture
def app(site):
    """Create a Flask app for testing."""
    application = create_app(site)
    application.config["TESTING"] = True
    return application


@pytest.fixture
def client(app):
    """Create a Flask test client."""
    return app.test_client()
