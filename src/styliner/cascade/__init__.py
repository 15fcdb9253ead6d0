"""Cascade resolution and dynamic-override reconciliation."""
from __future__ import annotations

from styliner.cascade.resolver import (
    apply_styles,
    cascade_properties,
    fix_dynamic_overrides,
    overrides,
    to_style_string,
)

__all__ = [
    "apply_styles",
    "cascade_properties",
    "fix_dynamic_overrides",
    "overrides",
    "to_style_string",
]
