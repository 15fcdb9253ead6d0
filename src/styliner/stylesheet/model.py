"""Stylesheet model: Specificity, Property, Rule, RawFragment and CompiledStylesheet."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum
from functools import cached_property
from typing import Union

import tinycss2

from styliner.errors import ParseWarning


@dataclass(frozen=True, order=True)
class Specificity:
    """CSS specificity as a 4-tuple, ordered lexicographically.

    ``inline`` is 1 only for declarations from a ``style`` attribute, so
    they outrank every selector-derived specificity.
    """

    inline: int = 0
    ids: int = 0
    classes: int = 0
    elements: int = 0

    def as_tuple(self) -> tuple[int, int, int, int]:
        return (self.inline, self.ids, self.classes, self.elements)

    def __str__(self) -> str:
        return ",".join(str(n) for n in self.as_tuple())


INLINE_SPECIFICITY = Specificity(inline=1)


class SelectorKind(StrEnum):
    """How far a selector can be resolved without a live browser."""

    STATIC = "static"
    SOFT_DYNAMIC = "soft-dynamic"
    HARD_DYNAMIC = "hard-dynamic"


@dataclass(frozen=True)
class Property:
    """A single CSS declaration.

    Properties are never mutated; :meth:`clone` returns a modified copy so
    the objects held by a cached stylesheet stay untouched.  ``full_urls``
    lists the absolute filesystem paths inside ``value`` that still need
    the document's URL policy.
    """

    name: str
    value: str
    important: bool = False
    full_urls: tuple[str, ...] = ()

    @cached_property
    def value_parts(self) -> list:
        """Component values of ``value`` without whitespace or comments."""
        tokens = tinycss2.parse_component_value_list(self.value, skip_comments=True)
        return [t for t in tokens if t.type not in ("whitespace", "comment")]

    def clone(self, **changes: object) -> Property:
        return replace(self, **changes)

    def to_css(self, compact: bool = False) -> str:
        if compact:
            return f"{self.name}:{self.value}" + ("!important" if self.important else "")
        return f"{self.name}: {self.value}" + (" !important" if self.important else "")

    def __str__(self) -> str:
        return self.to_css()


@dataclass
class Rule:
    """One selector paired with its declaration block.

    ``static_selector`` is None exactly when the rule is hard-dynamic; for
    soft-dynamic and static rules it holds a selector that matches every
    element the real selector could match.  ``is_clone`` marks a copy owned
    by a single document, which may be changed in place.
    """

    selector_text: str
    specificity: Specificity
    properties: list[Property] = field(default_factory=list)
    is_dynamic: bool = False
    static_selector: str | None = None
    in_media_query: bool = False
    is_clone: bool = field(default=False, compare=False)

    @property
    def kind(self) -> SelectorKind:
        if self.static_selector is None:
            return SelectorKind.HARD_DYNAMIC
        if self.is_dynamic:
            return SelectorKind.SOFT_DYNAMIC
        return SelectorKind.STATIC

    def clone(self, properties: list[Property] | None = None) -> Rule:
        """Return an independent copy that may be mutated freely."""
        return replace(
            self,
            properties=list(self.properties if properties is None else properties),
            is_clone=True,
        )

    def to_css(self, compact: bool = False) -> str:
        if compact:
            body = ";".join(p.to_css(compact=True) for p in self.properties)
            return f"{self.selector_text}{{{body}}}"
        body = "".join(f"\n\t{p.to_css()};" for p in self.properties)
        return f"{self.selector_text} {{{body}\n}}"

    def __str__(self) -> str:
        return self.to_css()


@dataclass(frozen=True)
class RawFragment:
    """Literal CSS text that cannot be inlined, e.g. ``@media ... {``."""

    text: str

    def to_css(self, compact: bool = False) -> str:
        return self.text

    def __str__(self) -> str:
        return self.text


StyleElement = Union[Rule, Property, RawFragment]


def element_to_css(element: StyleElement, compact: bool = False) -> str:
    """Serialize one style element for a ``<style>`` block."""
    if isinstance(element, Rule):
        return element.to_css(compact) + ("" if compact else "\n")
    if isinstance(element, (Property, RawFragment)):
        return element.to_css(compact)
    raise TypeError(f"Unknown style element: {element!r}")


def elements_to_css(elements: list[StyleElement], compact: bool = False) -> str:
    return "".join(element_to_css(e, compact) for e in elements)


@dataclass
class CompiledStylesheet:
    """The ordered output of compiling one stylesheet (imports spliced in).

    Instances held by the cache are shared between documents and must not
    be modified.
    """

    elements: list[StyleElement] = field(default_factory=list)
    source_folder: str = ""
    location: str = ""
    warnings: list[ParseWarning] = field(default_factory=list)

    @property
    def rules(self) -> list[Rule]:
        return [e for e in self.elements if isinstance(e, Rule)]

    def to_css(self, compact: bool = False) -> str:
        return elements_to_css(self.elements, compact)
