"""Selector classification: static, soft-dynamic or hard-dynamic.

A rule can only be inlined when its selector is decided by the DOM alone.
Pseudo-classes that depend on user or browser state (``:hover``,
``:checked``...) make a selector *soft-dynamic*: it stays in the ``<style>``
block, but a copy of the selector with those pseudo-classes stripped (the
*static selector*) still matches a superset of its elements, which lets the
cascade detect inlined values the dynamic rule would have overridden.
Pseudo-elements make a selector *hard-dynamic*: it never matches an element
and has no static selector.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

import cssselect
import tinycss2

from styliner.dom import FRAGMENT_CONTAINER_ATTRIBUTE
from styliner.stylesheet.model import SelectorKind, Specificity

__all__ = [
    "DYNAMIC_PSEUDO_CLASSES",
    "SelectorClass",
    "classify",
    "selector_specificity",
    "selector_xpath",
    "split_selector_list",
]

# Pseudo-classes whose outcome depends on state that is unknown in advance.
DYNAMIC_PSEUDO_CLASSES = frozenset(
    {
        # form elements
        "checked",
        "enabled",
        "disabled",
        "indeterminate",
        "default",
        "valid",
        "invalid",
        "in-range",
        "out-of-range",
        "required",
        "optional",
        "read-only",
        "read-write",
        # link state
        "link",
        "visited",
        "active",
        "hover",
        "focus",
        "target",
    }
)

# Classes that by convention are only present when scripting is enabled.
DYNAMIC_CLASSES = frozenset({"js"})

# CSS 2 pseudo-elements that may be written with a single colon.
LEGACY_PSEUDO_ELEMENTS = frozenset({"before", "after", "first-line", "first-letter"})

_COMBINATORS = frozenset({">", "+", "~"})

class _DocumentTranslator(cssselect.HTMLTranslator):
    """HTML translator whose element tests skip a fragment's container."""

    def xpath_element(self, selector):
        xpath = super().xpath_element(selector)
        return xpath.add_condition(f"not(@{FRAGMENT_CONTAINER_ATTRIBUTE})")


_translator = _DocumentTranslator()


@dataclass(frozen=True)
class SelectorClass:
    """Classification of a single selector."""

    is_dynamic: bool
    static_selector: str | None

    @property
    def kind(self) -> SelectorKind:
        if self.static_selector is None:
            return SelectorKind.HARD_DYNAMIC
        if self.is_dynamic:
            return SelectorKind.SOFT_DYNAMIC
        return SelectorKind.STATIC


class _StaticBuilder:
    """Accumulates the static selector one compound selector at a time."""

    def __init__(self) -> None:
        self._parts: list[str] = []
        self._current: list[str] = []
        self._dropped = False
        self._combinator: str | None = None

    def add(self, text: str) -> None:
        self._start_compound()
        self._current.append(text)

    def drop(self) -> None:
        self._start_compound()
        self._dropped = True

    def combine(self, text: str) -> None:
        if not (self._parts or self._current or self._dropped):
            return
        if text == " ":
            if self._combinator is None:
                self._combinator = " "
        else:
            self._combinator = f" {text} "

    def result(self) -> str:
        self._combinator = None
        if self._current or self._dropped:
            self._close()
        return "".join(self._parts)

    @property
    def kept_anything(self) -> bool:
        return bool(self._parts or self._current)

    def _start_compound(self) -> None:
        if self._combinator is not None:
            self._close()
            self._parts.append(self._combinator)
            self._combinator = None

    def _close(self) -> None:
        if not self._current and self._dropped:
            # Everything in this compound was dynamic; match any element.
            self._current.append("*")
        self._parts.append("".join(self._current))
        self._current = []
        self._dropped = False


class _HardDynamic(Exception):
    """Raised internally to stop scanning at the first pseudo-element."""


def _serialize(token) -> str:
    return tinycss2.serialize([token])


def _walk(
    tokens: list,
    builder: _StaticBuilder,
    dynamic_pseudos: frozenset[str],
    nested: bool,
) -> bool:
    """Scan *tokens* into *builder*; return True if anything dynamic was seen."""
    dynamic = False
    i = 0
    while i < len(tokens):
        token = tokens[i]
        i += 1

        if token.type == "whitespace":
            builder.combine(" ")
            continue

        if token.type == "literal" and token.value in _COMBINATORS:
            builder.combine(token.value)
            continue

        if token.type == "literal" and token.value == ".":
            if i < len(tokens) and tokens[i].type == "ident":
                name = tokens[i]
                i += 1
                if name.value in DYNAMIC_CLASSES:
                    dynamic = True
                    builder.drop()
                else:
                    builder.add("." + _serialize(name))
                continue
            builder.add(".")
            continue

        if token.type == "literal" and token.value == ":":
            if i < len(tokens) and tokens[i].type == "literal" and tokens[i].value == ":":
                # ::pseudo-element
                i += 2
                if nested:
                    dynamic = True
                    builder.drop()
                    continue
                raise _HardDynamic()

            if i >= len(tokens):
                builder.add(":")
                continue
            pseudo = tokens[i]
            i += 1

            if pseudo.type == "ident":
                name = pseudo.lower_value
                if name in LEGACY_PSEUDO_ELEMENTS:
                    if nested:
                        dynamic = True
                        builder.drop()
                        continue
                    raise _HardDynamic()
                if name in dynamic_pseudos:
                    dynamic = True
                    builder.drop()
                    continue
                builder.add(":" + _serialize(pseudo))
                continue

            if pseudo.type == "function" and pseudo.lower_name == "not":
                inner = _StaticBuilder()
                inner_dynamic = _walk(pseudo.arguments, inner, dynamic_pseudos, nested=True)
                if inner_dynamic:
                    # Stripping part of a negation narrows the match, so the
                    # whole :not() is dropped to stay a superset.
                    dynamic = True
                    builder.drop()
                elif inner.kept_anything:
                    builder.add(":not(" + inner.result() + ")")
                continue

            builder.add(":" + _serialize(pseudo))
            continue

        builder.add(_serialize(token))
    return dynamic


def classify(
    tokens: list,
    in_media_query: bool = False,
    dynamic_pseudos: frozenset[str] = DYNAMIC_PSEUDO_CLASSES,
) -> SelectorClass:
    """Classify one selector given as a list of tinycss2 component values.

    Rules inside ``@media`` are always at least soft-dynamic.
    """
    builder = _StaticBuilder()
    try:
        dynamic = _walk(list(tokens), builder, dynamic_pseudos, nested=False)
    except _HardDynamic:
        return SelectorClass(is_dynamic=True, static_selector=None)
    static = builder.result() or "*"
    return SelectorClass(is_dynamic=dynamic or in_media_query, static_selector=static)


def split_selector_list(prelude: list) -> list[list]:
    """Split a rule prelude on its top-level commas."""
    selectors: list[list] = [[]]
    for token in prelude:
        if token.type == "literal" and token.value == ",":
            selectors.append([])
        else:
            selectors[-1].append(token)
    return [s for s in selectors if any(t.type not in ("whitespace", "comment") for t in s)]


def selector_text(tokens: list) -> str:
    """Serialize selector tokens, collapsing top-level whitespace."""
    text = "".join(" " if t.type == "whitespace" else _serialize(t) for t in tokens)
    return text.strip()


def selector_specificity(text: str) -> Specificity:
    """Return the specificity of a single selector.

    Raises :class:`cssselect.SelectorError` if the selector cannot be parsed.
    """
    parsed = cssselect.parse(text)
    if len(parsed) != 1:
        raise cssselect.SelectorSyntaxError(f"Expected a single selector: {text!r}")
    a, b, c = parsed[0].specificity()
    return Specificity(0, a, b, c)


@lru_cache(maxsize=4096)
def selector_xpath(static_selector: str, prefix: str = "descendant-or-self::") -> str:
    """Translate a static selector to XPath for matching against lxml trees.

    Raises :class:`cssselect.SelectorError` for selectors cssselect cannot
    translate.
    """
    return _translator.css_to_xpath(static_selector, prefix=prefix)
