"""Cascade resolution: merges matched rules into ``style`` attributes.

Each element's inline declarations are seeded first, then every static rule
that matches is applied in source order.  Soft-dynamic rules never inline;
they are only checked afterwards, and a soft-dynamic declaration that would
beat the inlined value in a browser is made ``!important`` so it still wins
once it is all that remains in the ``<style>`` block.

The cached rules are never modified: a promoted rule is cloned into the
document's own element list first.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Protocol

from lxml.html import HtmlElement

from styliner.context import DocumentContext, DynamicInfo, PropertyGroup
from styliner.stylesheet.model import (
    INLINE_SPECIFICITY,
    Property,
    Rule,
    Specificity,
    elements_to_css,
)
from styliner.transforms.document import start_style

logger = logging.getLogger(__name__)


class _Ranked(Protocol):
    specificity: Specificity
    index: int
    important: bool


def overrides(old: _Ranked, new: _Ranked) -> bool:
    """Return True if *new* replaces *old* for the same property name.

    Importance decides first.  Between two declarations of equal importance
    an inline declaration beats a stylesheet one; two stylesheet (or two
    inline) declarations compare by specificity, then by source index.
    """
    if old.important != new.important:
        return new.important
    if old.specificity.inline != new.specificity.inline:
        return new.specificity.inline > old.specificity.inline
    return (new.specificity, new.index) >= (old.specificity, old.index)


def _group(properties: list[Property]) -> dict[str, list[Property]]:
    grouped: dict[str, list[Property]] = {}
    for prop in properties:
        grouped.setdefault(prop.name, []).append(prop)
    return grouped


def _apply(
    values: dict[str, PropertyGroup],
    properties: list[Property],
    specificity: Specificity,
    index: int,
) -> None:
    for name, props in _group(properties).items():
        candidate = PropertyGroup(
            values=props,
            specificity=specificity,
            index=index,
            important=any(p.important for p in props),
        )
        current = values.get(name)
        if current is not None and not overrides(current, candidate):
            continue
        values[name] = candidate


def cascade_properties(
    inline: list[Property], element: HtmlElement, context: DocumentContext
) -> dict[str, PropertyGroup]:
    """Compute the winning declarations for *element*.

    Also promotes soft-dynamic declarations that outrank the inlined value
    and records them in ``context.dynamic_overrides``.
    """
    values: dict[str, PropertyGroup] = {}
    _apply(values, inline, INLINE_SPECIFICITY, len(context.rules) + 1)

    dynamic: dict[str, list[DynamicInfo]] = defaultdict(list)
    for index, rule in enumerate(context.rules):
        if not isinstance(rule, Rule):
            continue
        if rule.is_dynamic:
            if rule.static_selector is None or not context.matches(rule, element):
                continue
            for prop_index, prop in enumerate(rule.properties):
                # Already important: nothing more can be done for it.
                if prop.important:
                    continue
                dynamic[prop.name].append(
                    DynamicInfo(
                        prop=prop,
                        specificity=rule.specificity,
                        index=index,
                        prop_index=prop_index,
                    )
                )
            continue
        if context.matches(rule, element):
            _apply(values, rule.properties, rule.specificity, index)

    for name, applied in values.items():
        for info in dynamic.get(name, ()):
            if overrides(applied, info):
                _promote(info, context)

    context.property_values[element] = values
    if values:
        context.styled_elements.append(element)
    return values


def _promote(info: DynamicInfo, context: DocumentContext) -> None:
    # Look the rule up again: an earlier promotion may have cloned it.
    rule = context.rules[info.index]
    if not rule.is_clone:
        rule = rule.clone()
        context.rules[info.index] = rule
    rule.properties[info.prop_index] = info.prop.clone(important=True)
    context.dynamic_overrides.setdefault(rule.static_selector, []).append(info)
    logger.debug(
        "Made %s in %r !important to keep it above inlined values",
        info.prop.name,
        rule.selector_text,
    )


def fix_dynamic_overrides(context: DocumentContext) -> None:
    """Make inlined values ``!important`` where a promoted rule would wrongly beat them.

    Every element matched by a promoted rule's static selector whose inlined
    value outranks that rule gets the value marked ``!important``, so the
    promotion only takes effect where the rule really should win.
    """
    for selector, infos in context.dynamic_overrides.items():
        for element in context.query(selector):
            values = context.property_values.get(element)
            if not values:
                continue
            for info in infos:
                applied = values.get(info.prop.name)
                if applied is None or applied.important_override:
                    continue
                if overrides(info, applied):
                    applied.important_override = True


def to_style_string(properties: list[Property], compact: bool = False) -> str | None:
    """Serialize declarations for a ``style`` attribute.

    Compact output is ``a:b;c:d``; otherwise ``a: b; c: d;``.
    """
    if not properties:
        return None
    if compact:
        return ";".join(p.to_css(compact=True) for p in properties)
    return " ".join(p.to_css() + ";" for p in properties)


def set_styles(context: DocumentContext) -> None:
    compact = context.options.compact
    for element in context.styled_elements:
        properties: list[Property] = []
        for group in context.property_values[element].values():
            if group.important_override:
                properties.extend(p.clone(important=True) for p in group.values)
            else:
                properties.extend(group.values)
        element.set("style", to_style_string(properties, compact))


def append_style_source(context: DocumentContext) -> None:
    """Emit the remaining style elements as one ``<style>`` block."""
    if not context.rules or context.options.no_css:
        return
    compact = context.options.compact
    css = elements_to_css(context.rules, compact)
    context.document.insert_style(css if compact else f"\n{css}\n")


def apply_styles(context: DocumentContext) -> None:
    """Resolve the cascade for every element and write the results to the tree.

    The URL rewrites of every ``style`` attribute are started before any
    element is resolved; each element then waits only for its own.
    """
    options = context.options
    pending = [(element, start_style(element, context)) for element in context.document.walk()]

    for element, started in pending:
        properties = [p.result() for p in started]
        if options.keep_rules:
            if properties:
                element.set("style", to_style_string(properties, options.compact))
        else:
            cascade_properties(properties, element, context)

    if not options.keep_rules:
        fix_dynamic_overrides(context)
        set_styles(context)
        context.rules = [r for r in context.rules if not isinstance(r, Rule) or r.is_dynamic]
        logger.debug(
            "Inlined styles into %d elements; %d style elements left",
            len(context.styled_elements),
            len(context.rules),
        )

    append_style_source(context)
