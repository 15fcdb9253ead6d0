"""The Styliner instance: stylesheet cache, format registry and ``process_html``."""
from __future__ import annotations

import logging
import os
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Union

from lxml.html import HtmlElement

from styliner.cache import StylesheetCache
from styliner.cascade.resolver import apply_styles
from styliner.config import StylinerOptions
from styliner.context import DocumentContext
from styliner.dom import Document, load_document
from styliner.errors import ConfigurationError
from styliner.loader import ResourceLoader, parse_data_uri
from styliner.stylesheet.compiler import StylesheetCompiler
from styliner.stylesheet.model import CompiledStylesheet
from styliner.transforms.document import document_stylesheet, prepare_html
from styliner.urls import has_scheme

logger = logging.getLogger(__name__)

FormatResult = Union[str, "Future[str]"]
# (source, full_path, options) -> CSS source
StyleFormat = Callable[[str, str, StylinerOptions], FormatResult]


def css_format(source: str, path: str, options: StylinerOptions) -> str:
    return source


def get_extension(path: str) -> str:
    """Return the lower-cased extension of *path* without the dot."""
    _, ext = os.path.splitext(path)
    return ext[1:].lower()


@dataclass(frozen=True)
class StylesheetRef:
    """Where one of a document's stylesheets comes from.

    ``kind`` is ``"source"`` (``value`` is CSS text), ``"absolute"``
    (``value`` is a URL) or ``"relative"`` (``value`` is a path relative to
    the base directory).
    """

    kind: str
    value: str


class Styliner:
    """Inlines CSS into HTML, caching compiled stylesheets.

    *base_dir* is the directory stylesheet paths are relative to.  Options
    may be passed as a :class:`StylinerOptions`, as keyword arguments, or
    both (keywords win)::

        styliner = Styliner("templates", compact=True, url_prefix="https://cdn.example.com/")
        html = styliner.process_html(source, "emails")

    Each instance owns its cache; two instances never share compiled
    stylesheets.
    """

    style_formats: ClassVar[dict[str, StyleFormat]] = {"css": css_format}

    def __init__(
        self,
        base_dir: str | os.PathLike[str],
        options: StylinerOptions | None = None,
        *,
        loader: ResourceLoader | None = None,
        **overrides: Any,
    ) -> None:
        self.base_dir = os.path.abspath(os.fspath(base_dir))
        options = options or StylinerOptions()
        self.options = options.with_overrides(**overrides) if overrides else options
        self.loader = loader or ResourceLoader()
        self.compiler = StylesheetCompiler(self.options, self.loader)
        self.cache = StylesheetCache()
        self.style_formats: dict[str, StyleFormat] = dict(type(self).style_formats)

    # --- formats and cache ----------------------------------------------------

    def register_format(self, extension: str, transform: StyleFormat) -> None:
        """Handle stylesheets ending in *extension* with *transform*.

        *transform* receives ``(source, full_path, options)`` and returns the
        CSS source, or a future for it.
        """
        self.style_formats[extension.lstrip(".").lower()] = transform

    def clear_cache(self) -> None:
        """Discard all compiled stylesheets.  Call this when files change."""
        self.cache.clear()

    def get_stylesheet(self, path: str) -> Future[CompiledStylesheet]:
        """Return a future for the compiled stylesheet at *path*.

        *path* is relative to the base directory (or absolute).  Raises
        :class:`ConfigurationError` straight away for an unregistered
        extension.
        """
        full_path = os.path.realpath(os.path.join(self.base_dir, path))
        fmt = get_extension(full_path)
        transform = self.style_formats.get(fmt)
        if transform is None:
            raise ConfigurationError(f"'{path}' is of unsupported format '{fmt}'")

        def compile_file() -> CompiledStylesheet:
            source = self.loader.read_text(full_path)
            css = transform(source, full_path, self.options)
            if isinstance(css, Future):
                css = css.result()
            return self.compiler.compile(css, full_path)

        return self.cache.get_or_compile(full_path, compile_file)

    def cache_all(self) -> list[CompiledStylesheet]:
        """Compile every stylesheet under the base directory with a registered format."""
        paths = []
        for dirpath, _, filenames in os.walk(self.base_dir):
            for name in sorted(filenames):
                if get_extension(name) in self.style_formats:
                    paths.append(os.path.join(dirpath, name))
        logger.debug("Caching %d stylesheets under %s", len(paths), self.base_dir)

        with ThreadPoolExecutor(max_workers=self.options.max_workers) as pool:
            return list(pool.map(lambda p: self.get_stylesheet(p).result(), paths))

    # --- documents ------------------------------------------------------------

    def process_html(
        self,
        source: str,
        relative_path: str | list[str] = ".",
        stylesheet_paths: list[str] | None = None,
    ) -> str:
        """Inline the stylesheets of an HTML document or fragment.

        *relative_path* is the directory holding the document, relative to
        the base directory; links and URLs resolve from it.  A list passed
        in its place is taken as *stylesheet_paths*, extra stylesheets
        (relative to the base directory) applied after the document's own.

        Raises :class:`~styliner.errors.ResourceError` or
        :class:`~styliner.errors.ConfigurationError`; nothing is returned
        for a document that failed part-way.
        """
        if isinstance(relative_path, (list, tuple)):
            stylesheet_paths = list(relative_path)
            relative_path = "."
        if not source or not source.strip():
            return source

        document = load_document(source, compact=self.options.compact)
        folder = os.path.normpath(os.path.join(self.base_dir, relative_path))
        refs = self.extract_stylesheets(document, relative_path)
        refs.extend(StylesheetRef("relative", p) for p in stylesheet_paths or ())

        context = DocumentContext(
            document=document,
            options=self.options,
            folder=folder,
            url_policy=self.options.url_policy,
        )
        html_path = os.path.join(folder, "-html-")

        with ThreadPoolExecutor(max_workers=self.options.max_workers) as pool:
            futures = [pool.submit(self.load_reference, ref, html_path) for ref in refs]
            prepare_html(context)
            stylesheets = [f.result() for f in futures]

        for stylesheet in stylesheets:
            context.rules.extend(document_stylesheet(stylesheet, context))
        apply_styles(context)
        return document.serialize()

    def extract_stylesheets(self, document: Document, relative_path: str) -> list[StylesheetRef]:
        """Remove ``<link rel=stylesheet>`` and ``<style>`` elements, in document order."""
        refs: list[StylesheetRef] = []
        found: list[HtmlElement] = []
        for el in document.root.iter("link", "style"):
            if el.tag == "style":
                refs.append(StylesheetRef("source", el.text or ""))
            elif "stylesheet" in (el.get("rel") or "").lower().split():
                refs.append(self._link_reference(el, relative_path))
            else:
                continue
            found.append(el)

        for el in found:
            el.drop_tree()
        return refs

    def _link_reference(self, el: HtmlElement, relative_path: str) -> StylesheetRef:
        href = (el.get("href") or "").strip()
        if not href:
            raise ConfigurationError("<link rel=stylesheet> without an href")
        if has_scheme(href):
            return StylesheetRef("absolute", href)
        if href.startswith("/"):
            return StylesheetRef("relative", href.lstrip("/"))
        return StylesheetRef("relative", os.path.normpath(os.path.join(relative_path, href)))

    def load_reference(self, ref: StylesheetRef, html_path: str) -> CompiledStylesheet:
        """Compile the stylesheet behind *ref*.

        Only ``relative`` references go through the cache.  ``<style>`` bodies
        and ``data:`` URIs resolve their URLs against the document folder;
        fetched stylesheets resolve against their own location.
        """
        if ref.kind == "source":
            return self.compiler.compile(ref.value, html_path)
        if ref.kind == "relative":
            return self.get_stylesheet(ref.value).result()
        if ref.kind == "absolute":
            url = ref.value
            if url.lower().startswith("data:"):
                return self.compiler.compile(parse_data_uri(url), html_path)
            if url.lower().startswith("file:"):
                path = self.loader.file_path(url)
                return self.compiler.compile(self.loader.read_text(path), path)
            return self.compiler.compile(self.loader.fetch_text(url), url)
        raise ConfigurationError(f"Unrecognized stylesheet reference {ref!r}")

    def close(self) -> None:
        """Release the HTTP client used for remote stylesheets."""
        self.loader.close()

    def __enter__(self) -> Styliner:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
