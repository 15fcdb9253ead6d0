"""Styliner: inlines CSS into HTML for email clients."""
from __future__ import annotations

from styliner.config import StylinerOptions
from styliner.core import Styliner, StylesheetRef
from styliner.errors import ConfigurationError, ParseWarning, ResourceError, StylinerError
from styliner.stylesheet import CompiledStylesheet, StylesheetCompiler, compile_stylesheet

__version__ = "0.1.0"

__all__ = [
    "CompiledStylesheet",
    "ConfigurationError",
    "ParseWarning",
    "ResourceError",
    "Styliner",
    "StylinerError",
    "StylinerOptions",
    "StylesheetCompiler",
    "StylesheetRef",
    "compile_stylesheet",
]
