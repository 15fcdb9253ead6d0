"""Configuration for a Styliner instance."""
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any

from styliner.urls import UrlPolicy, noop_url_transform, prefix_url_transform


@dataclass(frozen=True)
class StylinerOptions:
    """Options recognised by :class:`styliner.Styliner`.

    All flags default to False.

    Attributes:
        compact: Minify the emitted CSS, ``style`` attributes and HTML whitespace.
        keep_rules: Keep every rule in a ``<style>`` block instead of inlining
            static rules; only existing ``style`` attributes are rewritten.
        keep_invalid: Keep declarations the CSS grammar reports as invalid.
        fix_yahoo_mq: Prefix media-query selectors with a marker class and add
            that class to ``<html>``, working around Yahoo Mail's media-query bug.
        no_css: Do not emit a ``<style>`` block for rules that cannot be inlined.
        url_prefix: Resolve every relative URL against this prefix.
        url: A ``(path, kind) -> str | Future[str]`` callable used to rewrite
            relative URLs.  *kind* is ``"img"`` for CSS URLs, or the HTML tag
            name for attribute URLs.  Takes precedence over *url_prefix*.
        static_link: Treat ``:link`` as a static pseudo-class.
        max_workers: Threads used to load a document's stylesheets.
    """

    compact: bool = False
    keep_rules: bool = False
    keep_invalid: bool = False
    fix_yahoo_mq: bool = False
    no_css: bool = False
    url_prefix: str | None = None
    url: UrlPolicy | None = field(default=None, compare=False, hash=False)
    static_link: bool = False
    max_workers: int = 8

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")

    @property
    def url_policy(self) -> UrlPolicy:
        """Return the effective URL rewrite policy."""
        if self.url is not None:
            return self.url
        if self.url_prefix:
            return prefix_url_transform(self.url_prefix)
        return noop_url_transform

    @property
    def rewrites_urls(self) -> bool:
        return self.url is not None or bool(self.url_prefix)

    def with_overrides(self, **overrides: Any) -> StylinerOptions:
        """Return a copy with the given fields replaced.

        Unknown option names raise :class:`TypeError`.
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise TypeError(f"Unknown Styliner option(s): {', '.join(unknown)}")
        return replace(self, **overrides)
