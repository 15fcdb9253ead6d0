"""Per-document processing state."""

from __future__ import annotations

from dataclasses import dataclass, field

from lxml.html import HtmlElement

from styliner.config import StylinerOptions
from styliner.dom import Document
from styliner.stylesheet.model import Property, Rule, Specificity, StyleElement
from styliner.stylesheet.selector import selector_xpath
from styliner.urls import UrlPolicy


@dataclass
class PropertyGroup:
    """The declarations for one property name coming from a single source.

    A rule may declare the same property several times (vendor fallbacks
    such as two ``background`` values); the whole group wins or loses as a
    unit.
    """

    values: list[Property]
    specificity: Specificity
    index: int
    important: bool
    important_override: bool = False


@dataclass
class DynamicInfo:
    """A soft-dynamic declaration that matched an element."""

    prop: Property
    specificity: Specificity
    index: int
    prop_index: int
    important: bool = False


@dataclass
class DocumentContext:
    """State exclusive to one ``process_html`` call.

    ``rules`` is this document's own working list of style elements; it is
    never the list held by a cached stylesheet, and any rule changed while
    resolving the cascade is cloned first.
    """

    document: Document
    options: StylinerOptions
    folder: str
    url_policy: UrlPolicy
    rules: list[StyleElement] = field(default_factory=list)
    # Soft-dynamic declarations made !important, grouped by static selector.
    dynamic_overrides: dict[str, list[DynamicInfo]] = field(default_factory=dict)
    styled_elements: list[HtmlElement] = field(default_factory=list)
    property_values: dict[HtmlElement, dict[str, PropertyGroup]] = field(default_factory=dict)
    _matches: dict[str, set[HtmlElement]] = field(default_factory=dict, repr=False)

    def query(self, static_selector: str) -> set[HtmlElement]:
        """Return every element matched by *static_selector*, cached per document."""
        found = self._matches.get(static_selector)
        if found is None:
            found = set(self.document.xpath(selector_xpath(static_selector)))
            self._matches[static_selector] = found
        return found

    def matches(self, rule: Rule, element: HtmlElement) -> bool:
        if rule.static_selector is None:
            return False
        return element in self.query(rule.static_selector)
