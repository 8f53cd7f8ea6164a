"""Compiler backends for Less and Stylus.

The engine depends only on :class:`CompilerBackend`.  Backends report a
failed compilation by raising :class:`CompilationError` (or returning
``errors``) and a missing library or executable by raising
:class:`BackendUnavailableError`.

Plain CSS ``@import`` rules are lifted out before compiling and emitted
ahead of the output; imports of local preprocessor files are rejected.
"""

from __future__ import annotations

import io
import re
import subprocess
from dataclasses import dataclass, field
from typing import Protocol

from usercss.errors import BackendUnavailableError, CompilationError

_LINE_RE = re.compile(r"\bline:?\s*(\d+)", re.IGNORECASE)
_STYLUS_LOCATION_RE = re.compile(r"(?P<file>[^\s:]+):(?P<line>\d+):(?P<column>\d+)")


_IMPORT_RE = re.compile(
    r"""
    @import\s+
    (?P<options>\([^)]*\)\s*)?              # Less import options, e.g. (css)
    (?P<target>url\([^)]*\)|"[^"]*"|'[^']*')
    [^;\n]*;?
    """,
    re.IGNORECASE | re.VERBOSE,
)


def _is_css_import(target: str, options: str) -> bool:
    if target[:4].lower() == "url(" or "css" in options.lower():
        return True
    path = target[1:-1].strip()
    if "://" in path or path.startswith("//"):
        return True
    return path.split("?", 1)[0].split("#", 1)[0].lower().endswith(".css")


def split_imports(source: str) -> tuple[str, list[str]]:
    """Lift plain CSS ``@import`` rules out of *source*.

    Returns the remaining source and the lifted rules, which the caller
    emits unchanged ahead of the compiled output.  An import of a local
    preprocessor file raises :class:`CompilationError`; compilers never
    read from disk.  Line numbers of the remaining source are preserved.
    """
    lifted: list[str] = []

    def lift(match: re.Match[str]) -> str:
        rule = match.group(0).strip()
        if not _is_css_import(match.group("target"), match.group("options") or ""):
            line = source.count("\n", 0, match.start()) + 1
            raise CompilationError(
                f"Cannot import {match.group('target')}: local file imports are not supported",
                line=line,
            )
        lifted.append(rule if rule.endswith(";") else f"{rule};")
        return ""

    return _IMPORT_RE.sub(lift, source), lifted


def _with_imports(imports: list[str], css: str) -> str:
    if not imports:
        return css
    return "\n".join(imports) + "\n" + css


@dataclass(frozen=True)
class BackendMessage:
    """A diagnostic emitted by a compiler."""

    message: str
    line: int | None = None
    column: int | None = None
    filename: str | None = None
    kind: str = "Warning"


@dataclass
class CompileOutput:
    css: str
    warnings: list[BackendMessage] = field(default_factory=list)
    errors: list[BackendMessage] = field(default_factory=list)


class CompilerBackend(Protocol):
    """A CSS preprocessor compiler."""

    name: str

    def compile(self, source: str) -> CompileOutput: ...


class LessBackend:
    """Compile Less in-process with lesscpy."""

    name = "less"

    def compile(self, source: str) -> CompileOutput:
        try:
            import lesscpy
        except ImportError as exc:
            raise BackendUnavailableError(f"lesscpy is not installed ({exc})") from exc

        body, imports = split_imports(source)
        try:
            css = lesscpy.compile(io.StringIO(body), minify=False)
        except Exception as exc:
            message = str(exc).strip() or exc.__class__.__name__
            line = getattr(exc, "lineno", None) or getattr(exc, "line", None)
            if line is None:
                match = _LINE_RE.search(message)
                line = int(match.group(1)) if match else None
            raise CompilationError(message, line=line) from exc
        return CompileOutput(css=_with_imports(imports, css))


class StylusBackend:
    """Compile Stylus through the ``stylus`` command-line compiler (reads stdin)."""

    name = "stylus"

    def __init__(self, executable: str = "stylus", timeout: float = 10.0) -> None:
        self.executable = executable
        self.timeout = timeout

    def compile(self, source: str) -> CompileOutput:
        body, imports = split_imports(source)
        try:
            proc = subprocess.run(
                [self.executable],
                input=body,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise BackendUnavailableError(
                f"'{self.executable}' executable not found"
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise CompilationError(f"Timed out after {self.timeout}s") from exc

        if proc.returncode != 0:
            raise _stylus_error(proc.stderr)
        warnings = [
            BackendMessage(message=line.strip())
            for line in proc.stderr.splitlines()
            if line.strip().lower().startswith("warning")
        ]
        return CompileOutput(css=_with_imports(imports, proc.stdout), warnings=warnings)


def _stylus_error(stderr: str) -> CompilationError:
    lines = [line.strip() for line in stderr.splitlines() if line.strip()]
    message = lines[-1] if lines else "stylus exited with an error"
    location = _STYLUS_LOCATION_RE.search(stderr)
    if location is None:
        return CompilationError(message)
    filename = location.group("file")
    return CompilationError(
        message,
        line=int(location.group("line")),
        column=int(location.group("column")),
        filename=None if filename == "stdin" else filename,
    )
