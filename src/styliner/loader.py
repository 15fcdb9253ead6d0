"""Resource loader: reads stylesheets from disk, the network and data: URIs."""
from __future__ import annotations

import base64
import binascii
import logging
import re
import threading
from pathlib import Path
from urllib.parse import unquote, urlparse

import httpx

from styliner.errors import ResourceError
from styliner.urls import has_scheme

logger = logging.getLogger(__name__)

_DATA_URI_RE = re.compile(r"^data:([a-zA-Z]+/[a-zA-Z0-9.+-]+)?((?:;[^;,]*)*?)(;base64)?,(.*)$", re.DOTALL)


def parse_data_uri(uri: str) -> str:
    """Decode the text payload of a ``data:`` URI.

    Raises :class:`ResourceError` if *uri* is not a well-formed data URI.
    """
    match = _DATA_URI_RE.match(uri)
    if not match:
        raise ResourceError(f"Malformed data URI: {uri[:60]!r}", location=uri[:60])
    payload = match.group(4)
    if match.group(3):
        try:
            return base64.b64decode(payload).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise ResourceError(
                f"Cannot decode base64 data URI: {exc}", location=uri[:60], cause=exc
            ) from exc
    return unquote(payload)


class ResourceLoader:
    """Loads the raw text of stylesheets.

    Local paths are read from disk; ``http(s)`` URLs go through a shared
    :class:`httpx.Client`.  Every failure is raised as :class:`ResourceError`.
    """

    def __init__(self, client: httpx.Client | None = None, timeout: float = 30.0) -> None:
        self._client = client
        self._timeout = timeout
        self._owns_client = client is None
        self._lock = threading.Lock()

    @property
    def client(self) -> httpx.Client:
        """The HTTP client, created on first use.  Shared by every thread."""
        with self._lock:
            if self._client is None:
                self._client = httpx.Client(timeout=self._timeout, follow_redirects=True)
            return self._client

    def read_text(self, path: str | Path) -> str:
        """Read a local file as UTF-8 text."""
        try:
            return Path(path).read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as exc:
            raise ResourceError(
                f"Cannot read stylesheet '{path}': {exc}", location=str(path), cause=exc
            ) from exc

    def fetch_text(self, url: str) -> str:
        """Load the text behind an absolute URL (``http``, ``https``, ``file`` or ``data``)."""
        scheme = urlparse(url).scheme.lower()
        if scheme == "data":
            return parse_data_uri(url)
        if scheme == "file":
            return self.read_text(self.file_path(url))
        if url.startswith("//"):
            url = "https:" + url
            scheme = "https"
        if scheme not in ("http", "https"):
            raise ResourceError(f"Unsupported URL scheme in '{url}'", location=url)

        logger.debug("Fetching %s", url)
        try:
            resp = self.client.get(url)
        except httpx.HTTPError as exc:
            raise ResourceError(f"Cannot fetch '{url}': {exc}", location=url, cause=exc) from exc
        if resp.status_code >= 300:
            raise ResourceError(
                f"Cannot fetch '{url}': HTTP {resp.status_code}", location=url
            )
        return resp.text

    @staticmethod
    def file_path(url: str) -> str:
        """Return the local path named by a ``file:`` URL."""
        return unquote(urlparse(url).path)

    def load(self, location: str) -> str:
        """Read *location*, dispatching on whether it is a URL or a path."""
        if has_scheme(location):
            return self.fetch_text(location)
        return self.read_text(location)

    def close(self) -> None:
        """Close the HTTP client if this loader created it."""
        with self._lock:
            if self._client is not None and self._owns_client:
                self._client.close()
                self._client = None
