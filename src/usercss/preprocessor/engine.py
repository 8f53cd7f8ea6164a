"""Preprocessor engine: compile Less/Stylus through a backend, with an LRU cache."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping

from usercss.errors import BackendUnavailableError
from usercss.preprocessor.backends import (
    BackendMessage,
    CompilerBackend,
    LessBackend,
    StylusBackend,
)
from usercss.preprocessor.cache import LRUCache
from usercss.preprocessor.detector import display_name

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreprocessResult:
    css: str
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def _location(line: int | None, column: int | None, filename: str | None) -> str:
    text = ""
    if line is not None and column is not None:
        text += f" (Line {line}, Column {column})"
    elif line is not None:
        text += f" (Line {line})"
    if filename:
        text += f" in {filename}"
    return text


def format_error(
    engine: str,
    message: str,
    line: int | None = None,
    column: int | None = None,
    filename: str | None = None,
) -> str:
    """``"<Engine> compilation failed: <message> (Line L, Column C) in <file>"``."""
    return f"{display_name(engine)} compilation failed: {message}{_location(line, column, filename)}"


def format_warning(warning: BackendMessage) -> str:
    kind = warning.kind or "Warning"
    return f"{kind}: {warning.message}{_location(warning.line, warning.column, warning.filename)}"


def default_backends(
    stylus_executable: str = "stylus", stylus_timeout: float = 10.0
) -> dict[str, CompilerBackend]:
    return {
        "less": LessBackend(),
        "stylus": StylusBackend(executable=stylus_executable, timeout=stylus_timeout),
    }


class PreprocessorEngine:
    """Compile preprocessor sources, caching successful output per engine.

    Each engine type has its own LRU cache of ``cache_size`` entries keyed by
    the exact source text.  Failures are returned as strings in ``errors``
    (with the source passed through) and are not cached.
    """

    def __init__(
        self,
        cache_size: int = 100,
        backends: Mapping[str, CompilerBackend] | None = None,
    ) -> None:
        self._backends: dict[str, CompilerBackend] = dict(
            backends if backends is not None else default_backends()
        )
        self._caches: dict[str, LRUCache[str, PreprocessResult]] = {
            engine: LRUCache(cache_size) for engine in ("less", "stylus")
        }

    def cache_for(self, engine: str) -> LRUCache[str, PreprocessResult]:
        return self._caches[engine]

    def clear_cache(self) -> None:
        for cache in self._caches.values():
            cache.clear()

    def process(self, source: str, engine: str) -> PreprocessResult:
        """Compile *source* with *engine* (``none``, ``less`` or ``stylus``)."""
        if engine == "none":
            return PreprocessResult(css=source)
        if engine not in self._caches:
            return PreprocessResult(
                css=source, errors=[f"Unsupported preprocessor: {engine}"]
            )

        cache = self._caches[engine]
        cached = cache.get(source)
        if cached is not None:
            log.debug("%s cache hit (%d chars)", engine, len(source))
            return cached
        log.debug("%s cache miss (%d chars)", engine, len(source))

        result = self._compile(source, engine)
        if not result.errors:
            cache.put(source, result)
        return result

    def _compile(self, source: str, engine: str) -> PreprocessResult:
        name = display_name(engine)
        backend = self._backends.get(engine)
        if backend is None:
            return PreprocessResult(
                css=source,
                errors=[f"Failed to process with {name}: no backend registered"],
            )

        log.info("Compiling %d chars with %s", len(source), name)
        try:
            output = backend.compile(source)
        except (BackendUnavailableError, ImportError) as exc:
            log.warning("%s backend unavailable: %s", name, exc)
            return PreprocessResult(css=source, errors=[f"Failed to process with {name}: {exc}"])
        except Exception as exc:
            log.warning("%s compilation failed: %s", name, exc)
            return PreprocessResult(
                css=source,
                errors=[
                    format_error(
                        engine,
                        str(exc),
                        getattr(exc, "line", None),
                        getattr(exc, "column", None),
                        getattr(exc, "filename", None),
                    )
                ],
            )

        warnings = [format_warning(w) for w in output.warnings]
        errors = [
            format_error(engine, e.message, e.line, e.column, e.filename) for e in output.errors
        ]
        return PreprocessResult(
            css=source if errors else output.css, warnings=warnings, errors=errors
        )
