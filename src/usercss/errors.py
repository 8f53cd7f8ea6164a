"""Exception types.

Parsing never raises for string input; these exceptions are used for
programmer errors and for signalling between compiler backends and the
preprocessor engine, which turns them into diagnostic strings.
"""

from __future__ import annotations


class ParseError(Exception):
    """Raised when a rule list cannot be parsed by the domain grammar."""

    def __init__(
        self, message: str, line: int | None = None, column: int | None = None
    ):
        self.line = line
        self.column = column
        super().__init__(message)


class CompilationError(Exception):
    """Raised by a compiler backend when the source does not compile."""

    def __init__(
        self,
        message: str,
        line: int | None = None,
        column: int | None = None,
        filename: str | None = None,
    ):
        self.line = line
        self.column = column
        self.filename = filename
        super().__init__(message)


class BackendUnavailableError(Exception):
    """Raised when a compiler backend cannot be loaded (missing library or executable)."""
