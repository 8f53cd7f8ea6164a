"""Diagnostic model: positional parse messages and the never-raise Result wrapper."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class Severity(Enum):
    """Severity level for a diagnostic message."""

    ERROR = "ERROR"
    WARNING = "WARNING"


@dataclass(frozen=True)
class Diagnostic:
    """A single finding produced while parsing a UserCSS document.

    Attributes:
        severity: Whether the finding lands in ``errors`` or ``warnings``.
        message: Human-readable description of the problem.
        line: 1-based line in the original source, if known.
        column: 1-based column in the original source, if known.
        source: The stage that produced it (``metadata``, ``domains``, ...).
    """

    severity: Severity
    message: str
    line: int | None = None
    column: int | None = None
    source: str | None = None

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    @property
    def is_warning(self) -> bool:
        return self.severity is Severity.WARNING

    def __str__(self) -> str:
        if self.line is not None and self.column is not None:
            return f"{self.message} at line {self.line}, column {self.column}"
        if self.line is not None:
            return f"{self.message} at line {self.line}"
        return self.message


@dataclass(frozen=True)
class Result(Generic[T]):
    """A parsed value together with the errors and warnings found producing it.

    A non-empty ``errors`` list means the value is degraded but still usable.
    """

    value: T
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def split_diagnostics(diagnostics: list[Diagnostic]) -> tuple[list[str], list[str]]:
    """Render diagnostics into ``(errors, warnings)`` string lists, preserving order."""
    errors = [str(d) for d in diagnostics if d.is_error]
    warnings = [str(d) for d in diagnostics if d.is_warning]
    return errors, warnings
