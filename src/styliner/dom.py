"""Thin HTML document wrapper over :mod:`lxml.html`."""
from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass

import lxml.html
from lxml.html import HtmlElement

_DOCUMENT_RE = re.compile(r"<(!doctype|html|head|body)[\s>/]", re.IGNORECASE)

# Set on the synthetic container of a fragment. Selectors never match an
# element carrying it, so the container is neither ancestor nor parent.
FRAGMENT_CONTAINER_ATTRIBUTE = "data-styliner-fragment"


def _is_element(node) -> bool:
    # Comments and processing instructions carry a non-string tag.
    return isinstance(node.tag, str)


@dataclass
class Document:
    """A parsed HTML document or fragment.

    For fragments, ``root`` is a synthetic ``<div>`` that selectors never
    match; it is not styled or serialized either.
    """

    root: HtmlElement
    is_fragment: bool = False
    doctype: str | None = None

    @property
    def html(self) -> HtmlElement | None:
        if self.is_fragment:
            return None
        return self.root

    def find(self, tag: str) -> HtmlElement | None:
        for el in self.root.iter(tag):
            return el
        return None

    def walk(self) -> Iterator[HtmlElement]:
        """Yield every element that can carry inline styles, in document order.

        The ``<head>`` subtree is skipped.
        """
        if self.is_fragment:
            for child in self.root:
                yield from self._walk(child)
        else:
            yield from self._walk(self.root)

    def _walk(self, el: HtmlElement) -> Iterator[HtmlElement]:
        if not _is_element(el) or el.tag == "head":
            return
        yield el
        for child in el:
            yield from self._walk(child)

    def xpath(self, expression: str) -> list[HtmlElement]:
        return [el for el in self.root.xpath(expression) if _is_element(el)]

    def add_class(self, el: HtmlElement, name: str) -> None:
        classes = (el.get("class") or "").split()
        if name not in classes:
            classes.append(name)
        el.set("class", " ".join(classes))

    def insert_style(self, css: str) -> HtmlElement:
        """Add a ``<style>`` element holding *css*.

        It is appended to ``<head>``, or placed before ``<body>``, or
        prepended to the root, in that order of preference.
        """
        style = lxml.html.Element("style")
        style.text = css
        head = self.find("head")
        body = self.find("body")
        if head is not None:
            head.append(style)
        elif body is not None:
            body.addprevious(style)
        else:
            style.tail = self.root.text
            self.root.text = None
            self.root.insert(0, style)
        return style

    def serialize(self) -> str:
        if self.is_fragment:
            parts = [self.root.text or ""]
            parts.extend(lxml.html.tostring(child, encoding="unicode") for child in self.root)
            return "".join(parts)
        return lxml.html.tostring(self.root, encoding="unicode", doctype=self.doctype or None)


def load_document(source: str, compact: bool = False) -> Document:
    """Parse *source* as a full document or, failing the markers, a fragment."""
    parser = lxml.html.HTMLParser(remove_blank_text=compact)
    if _DOCUMENT_RE.search(source):
        root = lxml.html.document_fromstring(source, parser=parser)
        doctype = root.getroottree().docinfo.doctype
        return Document(root=root, is_fragment=False, doctype=doctype or None)
    container = lxml.html.fragment_fromstring(source, create_parent="div", parser=parser)
    container.set(FRAGMENT_CONTAINER_ATTRIBUTE, "")
    return Document(root=container, is_fragment=True)
