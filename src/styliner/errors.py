"""Error hierarchy for styliner."""
from __future__ import annotations

from dataclasses import dataclass


class StylinerError(Exception):
    """Base error for all styliner errors."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ResourceError(StylinerError):
    """A stylesheet, import or remote resource could not be loaded."""

    def __init__(
        self,
        message: str,
        *,
        location: str = "",
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.location = location


class ConfigurationError(StylinerError):
    """A stylesheet reference or format is not supported."""


@dataclass(frozen=True)
class ParseWarning:
    """A non-fatal problem found while compiling CSS.

    Attributes:
        message: Human-readable description of the problem.
        source: The file, URL or ``<style>`` placeholder being compiled.
        line: 1-based source line, if known.
        column: 1-based source column, if known.
    """

    message: str
    source: str = ""
    line: int | None = None
    column: int | None = None

    def __str__(self) -> str:
        location = self.source or "<css>"
        if self.line is not None:
            location += f"#{self.line}"
            if self.column is not None:
                location += f":{self.column}"
        return f"{location}: {self.message}"
