"""Context-free property preprocessing, applied once per compiled stylesheet.

Nothing here looks at an HTML document: relative ``url()`` references are
resolved against the stylesheet's own folder, and ``margin``/``padding``
shorthands are split into their four edges so the cascade can compare them
one edge at a time.
"""

from __future__ import annotations

from dataclasses import replace

import tinycss2

from styliner.stylesheet.model import Property, Rule
from styliner.urls import css_url, has_scheme, resolve_reference

TRBL_PROPERTIES = frozenset({"margin", "padding"})
TRBL_EDGES = ("top", "right", "bottom", "left")


def iter_url_tokens(parts: list):
    """Yield ``(token, url)`` for every URL in *parts*, including nested functions."""
    for token in parts:
        if token.type == "url":
            yield token, token.value
        elif token.type == "function":
            if token.lower_name == "url":
                strings = [a for a in token.arguments if a.type == "string"]
                if strings:
                    yield token, strings[0].value
            else:
                yield from iter_url_tokens(token.arguments)


def rewrite_urls(prop: Property, folder: str) -> Property:
    """Resolve relative URLs in *prop* against *folder*.

    URLs with a scheme, root-relative URLs and fragment references are left
    alone.  Local results are recorded in ``full_urls`` for the
    document-time URL policy.  Running this twice yields the same property.
    """
    value = prop.value
    full_urls: list[str] = []
    for token, url in iter_url_tokens(prop.value_parts):
        if url in prop.full_urls:
            # Resolved by an earlier pass.
            full_urls.append(url)
            continue
        if not url or has_scheme(url) or url.startswith(("#", "/")):
            continue
        resolved, is_local = resolve_reference(folder, url)
        if is_local:
            full_urls.append(resolved)
        value = value.replace(tinycss2.serialize([token]), css_url(resolved), 1)

    if value == prop.value and tuple(full_urls) == prop.full_urls:
        return prop
    return prop.clone(value=value, full_urls=tuple(full_urls))


def split_trbl_property(prop: Property) -> list[Property]:
    """Split a ``margin``/``padding`` shorthand into its four edges.

    One value applies to every edge, two values are vertical/horizontal,
    three values reuse the second for the left edge, four map directly.
    Values that do not have 1-4 components are returned unsplit.
    """
    values = [tinycss2.serialize([part]) for part in prop.value_parts]
    if not 1 <= len(values) <= 4:
        return [prop]

    result = []
    for i, edge in enumerate(TRBL_EDGES):
        if i == 3 and len(values) == 3:
            value = values[1]
        else:
            value = values[i % len(values)]
        result.append(
            Property(
                name=f"{prop.name}-{edge}",
                value=value,
                important=prop.important,
                full_urls=(),
            )
        )
    return result


def prepare_for_cache(prop: Property, folder: str, for_element: bool = True) -> list[Property]:
    """Preprocess a declaration from a stylesheet or ``style`` attribute.

    *for_element* is True for declarations that will be matched against
    elements (rules and ``style`` attributes) and False for loose
    declarations inside at-rules such as ``@font-face``, which are never
    split.
    """
    prop = rewrite_urls(prop, folder)
    if for_element and prop.name in TRBL_PROPERTIES:
        return split_trbl_property(prop)
    return [prop]


# Prepended to selectors inside media queries so that they stop matching
# once Yahoo Mail strips the @media wrapper. Styliner adds the class to <html>.
YAHOO_ROOT_CLASS = "YMQ-Fix-Root"


def prefix_media_selector(rule: Rule) -> Rule:
    """Return *rule* with the Yahoo marker class prepended to its selector."""
    spec = rule.specificity
    return replace(
        rule,
        selector_text=f".{YAHOO_ROOT_CLASS} {rule.selector_text}",
        specificity=replace(spec, classes=spec.classes + 1),
    )
