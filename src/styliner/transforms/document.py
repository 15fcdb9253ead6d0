"""Document-time preprocessing.

Cached stylesheets are shared by every document, so nothing here modifies
them: a rule whose URLs need the document's URL policy is cloned, and the
returned element list is always a new list.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from dataclasses import dataclass, field

import tinycss2
from lxml.html import HtmlElement

from styliner.context import DocumentContext
from styliner.stylesheet.compiler import property_from_declaration
from styliner.stylesheet.model import CompiledStylesheet, Property, Rule, StyleElement
from styliner.transforms.properties import YAHOO_ROOT_CLASS, prepare_for_cache
from styliner.urls import css_url, has_scheme, noop_url_transform, relative_url, resolve_url

logger = logging.getLogger(__name__)

# HTML attributes holding URLs, by tag.
URL_ATTRIBUTES: dict[str, tuple[str, ...]] = {
    "a": ("href",),
    "applet": ("codebase",),
    "area": ("href",),
    "base": ("href",),
    "blockquote": ("cite",),
    "body": ("background",),
    "del": ("cite",),
    "form": ("action",),
    "frame": ("longdesc", "src"),
    "head": ("profile",),
    "iframe": ("longdesc", "src"),
    "img": ("longdesc", "src", "usemap"),
    "input": ("src", "usemap", "formaction"),
    "ins": ("cite",),
    "link": ("href",),
    "object": ("classid", "codebase", "data", "usemap"),
    "q": ("cite",),
    "script": ("src",),
    "audio": ("src",),
    "button": ("formaction",),
    "command": ("icon",),
    "embed": ("src",),
    "html": ("manifest",),
    "source": ("src",),
    "video": ("poster", "src"),
    "table": ("background",),
}


@dataclass
class PendingProperty:
    """A property whose URLs are being rewritten by the URL policy."""

    prop: Property
    rewrites: list[tuple[str, Future]] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.rewrites)

    def result(self) -> Property:
        """Wait for every rewrite and return the finished property."""
        if not self.rewrites:
            return self.prop
        value = self.prop.value
        for full_url, future in self.rewrites:
            value = value.replace(css_url(full_url), css_url(future.result()), 1)
        return self.prop.clone(value=value, full_urls=())


def start_property(prop: Property, context: DocumentContext) -> PendingProperty:
    """Start rewriting the recorded URLs of *prop* for this document."""
    pending = PendingProperty(prop)
    for full_url in prop.full_urls:
        relative = relative_url(full_url, context.folder)
        pending.rewrites.append((full_url, resolve_url(context.url_policy, relative, "img")))
    return pending


def document_stylesheet(
    stylesheet: CompiledStylesheet, context: DocumentContext
) -> list[StyleElement]:
    """Copy a cached stylesheet's elements for one document.

    All URL rewrites are started before any is waited on.
    """
    started: list[tuple[StyleElement, list[PendingProperty] | PendingProperty | None]] = []
    for elem in stylesheet.elements:
        if isinstance(elem, Rule):
            pending = [start_property(p, context) for p in elem.properties]
            started.append((elem, pending if any(p.changed for p in pending) else None))
        elif isinstance(elem, Property):
            pending_prop = start_property(elem, context)
            started.append((elem, pending_prop if pending_prop.changed else None))
        else:
            started.append((elem, None))

    result: list[StyleElement] = []
    for elem, pending in started:
        if pending is None:
            result.append(elem)
        elif isinstance(pending, PendingProperty):
            result.append(pending.result())
        else:
            result.append(elem.clone(properties=[p.result() for p in pending]))
    return result


def parse_style_attribute(style: str, element: HtmlElement | None = None) -> list[Property]:
    """Parse the declarations of a ``style`` attribute."""
    properties: list[Property] = []
    for decl in tinycss2.parse_declaration_list(style, skip_comments=True, skip_whitespace=True):
        if decl.type == "error":
            logger.warning(
                "Invalid declaration in style attribute of <%s>: %s",
                getattr(element, "tag", "?"),
                decl.message,
            )
            continue
        if decl.type == "declaration":
            properties.append(property_from_declaration(decl))
    return properties


def start_style(element: HtmlElement, context: DocumentContext) -> list[PendingProperty]:
    """Read and preprocess an element's ``style`` attribute, starting its URL rewrites."""
    style = element.get("style")
    if not style:
        return []
    pending: list[PendingProperty] = []
    for prop in parse_style_attribute(style, element):
        for prepared in prepare_for_cache(prop, context.folder, for_element=True):
            pending.append(start_property(prepared, context))
    return pending


def prepare_html(context: DocumentContext) -> None:
    """Apply document-level fixes to the HTML tree.

    Adds the Yahoo media-query marker class to ``<html>`` and, when a URL
    policy is configured, rewrites relative URL attributes.
    """
    document = context.document
    if context.options.fix_yahoo_mq and document.html is not None:
        document.add_class(document.html, YAHOO_ROOT_CLASS)

    if context.url_policy is noop_url_transform:
        return

    rewrites: list[tuple[HtmlElement, str, Future]] = []
    for tag, attrs in URL_ATTRIBUTES.items():
        for el in document.root.iter(tag):
            for attr in attrs:
                url = el.get(attr)
                if not url or has_scheme(url) or url.startswith("#"):
                    continue
                rewrites.append((el, attr, resolve_url(context.url_policy, url, tag)))

    for el, attr, future in rewrites:
        el.set(attr, future.result())
