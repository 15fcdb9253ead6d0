"""URL helpers shared by the preprocessor and the loader."""
from __future__ import annotations

import os
import re
from concurrent.futures import Future
from typing import Callable, Union
from urllib.parse import urljoin

UrlResult = Union[str, "Future[str]"]
UrlPolicy = Callable[[str, str], UrlResult]

_SCHEME_RE = re.compile(r"^([a-z][a-z.+-]+:|//)", re.IGNORECASE)
_NEEDS_QUOTES_RE = re.compile(r"['\"\s()]")


def has_scheme(uri: str) -> bool:
    """Return True if *uri* starts with a scheme or is protocol-relative."""
    return bool(_SCHEME_RE.match(uri))


def noop_url_transform(path: str, kind: str = "img") -> str:
    """URL policy that leaves paths untouched.

    Styliner compares against this function to skip rewriting HTML
    attributes when no policy was configured.
    """
    return path


def prefix_url_transform(prefix: str) -> UrlPolicy:
    """Build a URL policy that resolves every path against *prefix*."""

    def transform(path: str, kind: str = "img") -> str:
        return urljoin(prefix, path)

    return transform


def apply_quotes(url: str) -> str:
    """Format *url* for use inside a CSS ``url(...)`` token.

    URLs containing quotes, whitespace or parentheses are single-quoted
    and escaped.
    """
    if _NEEDS_QUOTES_RE.search(url):
        escaped = url.replace("\\", "\\\\").replace("'", "\\'")
        escaped = re.sub(r"\r\n|\n|\r|\f", lambda m: "\\" + m.group(0), escaped)
        return f"'{escaped}'"
    return url


def css_url(url: str) -> str:
    """Return a complete ``url(...)`` token for *url*."""
    return f"url({apply_quotes(url)})"


def resolve_reference(folder: str, uri: str) -> tuple[str, bool]:
    """Resolve *uri* found in a stylesheet located in *folder*.

    Returns ``(resolved, is_local)``.  *is_local* is True when the result
    is a filesystem path the document-time URL policy must still see.
    """
    if has_scheme(uri):
        return uri, False
    if has_scheme(folder):
        return urljoin(folder, uri), False
    joined = os.path.normpath(os.path.join(folder, uri))
    return joined, True


def stylesheet_folder(location: str) -> str:
    """Return the folder that relative URLs in *location* resolve against."""
    if has_scheme(location):
        head, _, _ = location.rpartition("/")
        return head + "/"
    return os.path.dirname(location)


def relative_url(path: str, folder: str) -> str:
    """Express filesystem *path* relative to *folder*, with ``/`` separators."""
    rel = os.path.relpath(path, folder)
    return rel.replace(os.sep, "/")


def resolve_url(policy: UrlPolicy, path: str, kind: str) -> "Future[str]":
    """Run *policy* and always hand back a future for its result."""
    result = policy(path, kind)
    if isinstance(result, Future):
        return result
    future: Future[str] = Future()
    future.set_result(result)
    return future
