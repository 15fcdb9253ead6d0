"""Compiled stylesheet model, selector classification and the compiler."""
from __future__ import annotations

from styliner.stylesheet.model import (
    INLINE_SPECIFICITY,
    CompiledStylesheet,
    Property,
    RawFragment,
    Rule,
    SelectorKind,
    Specificity,
    StyleElement,
)
from styliner.stylesheet.compiler import StylesheetCompiler, compile_stylesheet

__all__ = [
    "INLINE_SPECIFICITY",
    "CompiledStylesheet",
    "Property",
    "RawFragment",
    "Rule",
    "SelectorKind",
    "Specificity",
    "StyleElement",
    "StylesheetCompiler",
    "compile_stylesheet",
]
