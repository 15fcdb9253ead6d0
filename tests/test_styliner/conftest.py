from __future__ import annotations

import httpx
import pytest

from styliner.loader import ResourceLoader

REMOTE_FILES = {
    "/css/main.css": '@import "extra.css"; p { background: url(img/bg.png) }',
    "/css/extra.css": "p { color: navy }",
}


@pytest.fixture
def site(tmp_path):
    """A small site: templates under emails/, stylesheets under css/."""
    (tmp_path / "css").mkdir()
    (tmp_path / "emails").mkdir()
    (tmp_path / "css" / "base.css").write_text(
        "p { color: red } .logo { background: url(../img/logo.png) }", encoding="utf-8"
    )
    (tmp_path / "css" / "extra.css").write_text(".note { font-style: italic }", encoding="utf-8")
    (tmp_path / "emails" / "local.css").write_text("h1 { color: green }", encoding="utf-8")
    return tmp_path


@pytest.fixture
def remote_loader():
    """A loader whose HTTP client serves REMOTE_FILES from example.test."""
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(str(request.url))
        body = REMOTE_FILES.get(request.url.path)
        if body is None:
            return httpx.Response(404, text="not found")
        return httpx.Response(200, text=body, headers={"Content-Type": "text/css"})

    loader = ResourceLoader(client=httpx.Client(transport=httpx.MockTransport(handler)))
    loader.requests = requests
    yield loader
    loader.client.close()
