"""Stylesheet compiler: turns CSS source into an ordered list of style elements.

The compiler walks the tinycss2 rule tree and emits:

- one :class:`Rule` per comma-separated selector of each qualified rule,
- :class:`RawFragment` text for at-rule boundaries (``@media``,
  ``@font-face``, ``@page``) and for at-rules kept verbatim (``@keyframes``),
- loose :class:`Property` elements for declarations that sit directly
  inside an at-rule.

``@import`` is resolved synchronously and depth-first, so imported rules
land in the element list before the rules that follow the import.
"""

from __future__ import annotations

import logging
import os
import re

import cssselect
import tinycss2
from tinycss2.ast import Declaration

from styliner.config import StylinerOptions
from styliner.errors import ParseWarning
from styliner.loader import ResourceLoader
from styliner.stylesheet.model import (
    CompiledStylesheet,
    Property,
    RawFragment,
    Rule,
    Specificity,
    StyleElement,
)
from styliner.stylesheet.selector import (
    DYNAMIC_PSEUDO_CLASSES,
    SelectorClass,
    classify,
    selector_specificity,
    selector_text,
    selector_xpath,
    split_selector_list,
)
from styliner.transforms.properties import prefix_media_selector, prepare_for_cache
from styliner.urls import has_scheme, resolve_reference, stylesheet_folder

__all__ = ["StylesheetCompiler", "compile_stylesheet", "property_from_declaration"]

logger = logging.getLogger(__name__)

# At-rules whose body is a list of rules evaluated under a condition.
_CONDITIONAL_AT_RULES = frozenset({"media", "supports"})

# At-rules whose body is a declaration list.
_DECLARATION_AT_RULES = frozenset(
    {
        "font-face",
        "page",
        "top-left-corner",
        "top-left",
        "top-center",
        "top-right",
        "top-right-corner",
        "bottom-left-corner",
        "bottom-left",
        "bottom-center",
        "bottom-right",
        "bottom-right-corner",
        "left-top",
        "left-middle",
        "left-bottom",
        "right-top",
        "right-middle",
        "right-bottom",
    }
)


def property_from_declaration(decl: Declaration) -> Property:
    """Build a :class:`Property` from a tinycss2 declaration."""
    name = decl.name if decl.name.startswith("--") else decl.lower_name
    value = tinycss2.serialize(decl.value).strip()
    return Property(name=name, value=value, important=decl.important)


class _Compilation:
    """State for one call to :meth:`StylesheetCompiler.compile`."""

    def __init__(self, compiler: StylesheetCompiler, location: str) -> None:
        self.compiler = compiler
        self.options = compiler.options
        self.elements: list[StyleElement] = []
        self.warnings: list[ParseWarning] = []
        self._stack: list[str] = [_canonical(location)]

    # --- output helpers -------------------------------------------------------

    def push(self, element: StyleElement) -> None:
        self.elements.append(element)

    def open_block(self, header: str) -> None:
        self.push(RawFragment(header + ("{" if self.options.compact else " {\n")))

    def close_block(self) -> None:
        self.push(RawFragment("}" if self.options.compact else "}\n"))

    def warn(self, message: str, location: str, node: object | None = None) -> None:
        warning = ParseWarning(
            message=message,
            source=location,
            line=getattr(node, "source_line", None),
            column=getattr(node, "source_column", None),
        )
        self.warnings.append(warning)
        logger.warning("%s", warning)

    # --- rule lists -----------------------------------------------------------

    def source(self, text: str, location: str, in_media: bool) -> None:
        logger.debug("Started parsing %s", location)
        rules = tinycss2.parse_stylesheet(text, skip_comments=True, skip_whitespace=True)
        self.rule_list(rules, location, stylesheet_folder(location), in_media)
        logger.debug("Finished parsing %s", location)

    def rule_list(self, rules: list, location: str, folder: str, in_media: bool) -> None:
        for rule in rules:
            if rule.type == "error":
                self.warn(f"Parse error: {rule.message}", location, rule)
            elif rule.type == "qualified-rule":
                self.qualified_rule(rule, location, folder, in_media)
            elif rule.type == "at-rule":
                self.at_rule(rule, location, folder, in_media)

    def qualified_rule(self, rule, location: str, folder: str, in_media: bool) -> None:
        declarations = tinycss2.parse_declaration_list(
            rule.content, skip_comments=True, skip_whitespace=True
        )
        properties = self.properties(declarations, location, folder, for_element=True)

        selectors = split_selector_list(rule.prelude)
        if not selectors:
            self.warn("Rule without a selector", location, rule)
            return

        for i, tokens in enumerate(selectors):
            # Each selector gets its own list so later per-rule changes
            # never leak into a sibling selector.
            props = properties if i == 0 else list(properties)
            self.push(self.make_rule(tokens, props, in_media, location, rule))

    def make_rule(
        self, tokens: list, properties: list[Property], in_media: bool, location: str, node
    ) -> Rule:
        text = selector_text(tokens)
        info = classify(tokens, in_media, self.compiler.dynamic_pseudos)
        specificity = Specificity()
        try:
            specificity = selector_specificity(text)
            if info.static_selector is not None:
                selector_xpath(info.static_selector)
        except cssselect.SelectorError as exc:
            self.warn(f"Unsupported selector {text!r} kept as-is: {exc}", location, node)
            info = SelectorClass(is_dynamic=True, static_selector=None)

        rule = Rule(
            selector_text=text,
            specificity=specificity,
            properties=properties,
            is_dynamic=info.is_dynamic,
            static_selector=info.static_selector,
            in_media_query=in_media,
        )
        if self.options.fix_yahoo_mq and in_media:
            rule = prefix_media_selector(rule)
        return rule

    # --- declarations ---------------------------------------------------------

    def properties(
        self, declarations: list, location: str, folder: str, for_element: bool
    ) -> list[Property]:
        result: list[Property] = []
        for decl in declarations:
            if decl.type == "error":
                self.warn(f"Invalid declaration skipped: {decl.message}", location, decl)
                continue
            if decl.type != "declaration":
                continue
            prop = property_from_declaration(decl)
            if not prop.value:
                self.warn(f"Property {prop.name} has no value", location, decl)
                # Dropping it lets earlier valid declarations cascade.
                if not self.options.keep_invalid:
                    continue
            result.extend(prepare_for_cache(prop, folder, for_element))
        return result

    def loose_properties(self, content: list, location: str, folder: str) -> None:
        declarations = tinycss2.parse_declaration_list(
            content, skip_comments=True, skip_whitespace=True
        )
        for decl in declarations:
            if decl.type == "at-rule":
                self.at_rule(decl, location, folder, in_media=False)
                continue
            for prop in self.properties([decl], location, folder, for_element=False):
                self.push(prop)
                self.push(RawFragment(";" if self.options.compact else ";\n"))

    # --- at-rules -------------------------------------------------------------

    def at_rule(self, rule, location: str, folder: str, in_media: bool) -> None:
        keyword = rule.lower_at_keyword
        prelude = self.prelude_text(rule.prelude)

        if keyword == "import":
            self.import_rule(rule, location, folder, in_media)
        elif keyword == "charset":
            return
        elif keyword in _CONDITIONAL_AT_RULES:
            if rule.content is None:
                self.warn(f"@{keyword} without a block ignored", location, rule)
                return
            self.open_block(f"@{keyword} {prelude}".rstrip())
            inner = tinycss2.parse_rule_list(rule.content, skip_comments=True, skip_whitespace=True)
            self.rule_list(inner, location, folder, in_media=True)
            self.close_block()
        elif keyword in _DECLARATION_AT_RULES:
            if rule.content is None:
                self.warn(f"@{keyword} without a block ignored", location, rule)
                return
            self.open_block(f"@{keyword} {prelude}".rstrip())
            self.loose_properties(rule.content, location, folder)
            self.close_block()
        else:
            # @keyframes, @namespace, vendor at-rules...
            self.push(RawFragment(tinycss2.serialize([rule]) + ("" if self.options.compact else "\n")))

    def prelude_text(self, prelude: list) -> str:
        text = selector_text(prelude)
        if self.options.compact:
            text = re.sub(r"\s*,\s*", ",", text)
        return text

    def import_rule(self, rule, location: str, folder: str, in_media: bool) -> None:
        tokens = [t for t in rule.prelude if t.type not in ("whitespace", "comment")]
        url = _import_url(tokens[0]) if tokens else None
        if not url:
            self.warn("@import without a URL ignored", location, rule)
            return
        media = self.prelude_text(tokens[1:])

        if has_scheme(url) or has_scheme(folder):
            target, _ = resolve_reference(folder, url)
        else:
            target = os.path.normpath(os.path.join(folder, url.lstrip("/")))

        canonical = _canonical(target)
        if canonical in self._stack:
            self.warn(f"Circular @import of '{url}' ignored", location, rule)
            return

        text = self.compiler.loader.load(target)
        if media:
            self.open_block(f"@media {media}")
        logger.debug("Started parsing imported file %s", target)
        self._stack.append(canonical)
        try:
            self.source(text, target, in_media or bool(media))
        finally:
            self._stack.pop()
        logger.debug("Finished parsing imported file %s", target)
        if media:
            self.close_block()


def _import_url(token) -> str | None:
    if token.type in ("string", "url"):
        return token.value
    if token.type == "function" and token.lower_name == "url":
        for arg in token.arguments:
            if arg.type == "string":
                return arg.value
    return None


def _canonical(location: str) -> str:
    if has_scheme(location) or not location:
        return location
    return os.path.realpath(location)


class StylesheetCompiler:
    """Compiles CSS source text into a :class:`CompiledStylesheet`.

    *loader* reads ``@import`` targets; a missing import raises
    :class:`~styliner.errors.ResourceError` and aborts the compile.
    """

    def __init__(
        self,
        options: StylinerOptions | None = None,
        loader: ResourceLoader | None = None,
    ) -> None:
        self.options = options or StylinerOptions()
        self.loader = loader or ResourceLoader()
        pseudos = DYNAMIC_PSEUDO_CLASSES
        if self.options.static_link:
            pseudos = pseudos - {"link"}
        self.dynamic_pseudos: frozenset[str] = pseudos

    def compile(self, source: str, location: str) -> CompiledStylesheet:
        """Compile *source*, read from *location* (a file path or URL).

        *location* is used to resolve relative ``url()`` references and
        ``@import`` targets.
        """
        compilation = _Compilation(self, location)
        if source:
            compilation.source(source, location, in_media=False)
        return CompiledStylesheet(
            elements=compilation.elements,
            source_folder=stylesheet_folder(location),
            location=location,
            warnings=compilation.warnings,
        )


def compile_stylesheet(
    source: str,
    location: str = "",
    options: StylinerOptions | None = None,
    loader: ResourceLoader | None = None,
) -> CompiledStylesheet:
    """Compile *source* with a throwaway :class:`StylesheetCompiler`.

    Without a *location*, relative URLs resolve against the working directory.
    """
    location = location or os.path.join(os.getcwd(), "-css-")
    return StylesheetCompiler(options, loader).compile(source, location)
