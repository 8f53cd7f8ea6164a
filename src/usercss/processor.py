"""UserCSS processor: header, variables, domains, preprocessing and fonts in one pass.

Pipeline:
    raw source -> header/body split -> directives -> variables (both dialects)
    -> domain rules -> preprocessor detection -> compilation (cached)
    -> font-face ordering -> ParseResult

Parsing never raises for string input; every problem is recorded in the
result's ``errors`` or ``warnings`` and a best-effort result is returned.
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import replace
from typing import Mapping

from usercss.assets import extract_assets
from usercss.config import UserCSSOptions
from usercss.domains import (
    domains_from_hostnames,
    domains_from_match_patterns,
    find_document_rules,
    normalize_domains,
    parse_domains,
)
from usercss.fonts import extract_font_faces, inject_fonts, resolve_font_variables, strip_font_faces
from usercss.metadata import Directive, extract_metadata_block, scan_directives
from usercss.model.diagnostic import Diagnostic, Result, Severity, split_diagnostics
from usercss.model.domain import DomainRule
from usercss.model.style import UNTITLED_STYLE, ParseResult, StyleMeta
from usercss.model.variable import VariableDescriptor
from usercss.preprocessor import (
    PreprocessorDetection,
    PreprocessorEngine,
    detect_preprocessor,
    display_name,
    from_directive,
)
from usercss.preprocessor.engine import default_backends
from usercss.variables import (
    check_variable_default,
    extract_variables,
    merge_variables,
    parse_var_directive,
    resolve_variables,
)

__all__ = ["UserCSSProcessor", "parse_usercss", "style_id"]

log = logging.getLogger(__name__)

# Directive name -> StyleMeta attribute.
SCALAR_DIRECTIVES: dict[str, str] = {
    "name": "name",
    "namespace": "namespace",
    "version": "version",
    "description": "description",
    "author": "author",
    "license": "license",
    "homepageURL": "homepage_url",
    "supportURL": "support_url",
    "updateURL": "update_url",
    "preprocessor": "preprocessor",
}
REPEATABLE_DIRECTIVES = frozenset({"var", "advanced", "-moz-document", "domain", "match"})
REQUIRED_DIRECTIVES = ("name", "namespace", "version")
URL_DIRECTIVES = ("homepageURL", "supportURL", "updateURL")

_URL_RE = re.compile(r"^(https?://|ftp://|file://|data:)")
_STYLE_ID_NAMESPACE = uuid.UUID("6f1c2f3e-8d0b-4b7a-9c55-2b1f6b0e7a10")


def _strip_quotes(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] in "\"'" and value[0] == value[-1]:
        return value[1:-1]
    return value


def style_id(name: str, namespace: str) -> str:
    """Deterministic id for a style: UUID5 of ``namespace:name``."""
    return str(uuid.uuid5(_STYLE_ID_NAMESPACE, f"{namespace}:{name}"))


class UserCSSProcessor:
    """Parse UserCSS documents into a :class:`ParseResult`.

    The processor owns one :class:`PreprocessorEngine`, whose compiled-output
    cache is the only state that survives between calls.
    """

    def __init__(
        self,
        options: UserCSSOptions | None = None,
        engine: PreprocessorEngine | None = None,
    ) -> None:
        self.options = options or UserCSSOptions()
        self.engine = engine or PreprocessorEngine(
            cache_size=self.options.cache_size,
            backends=default_backends(
                self.options.stylus_executable, self.options.stylus_timeout
            ),
        )

    # ---- entry point ----

    def parse(
        self, raw: str, variable_overrides: Mapping[str, str] | None = None
    ) -> ParseResult:
        """Parse *raw* UserCSS into metadata and an injectable stylesheet.

        *variable_overrides* replaces the current value of matching variables.
        """
        if not isinstance(raw, str):
            raise TypeError(f"UserCSS source must be str, not {type(raw).__name__}")

        if len(raw) > self.options.max_file_size:
            return ParseResult(
                meta=StyleMeta(),
                css="",
                errors=[
                    f"Source is {len(raw)} characters, exceeding the maximum of "
                    f"{self.options.max_file_size}"
                ],
            )

        diagnostics: list[Diagnostic] = []
        meta = StyleMeta()
        body = raw
        try:
            body = self._parse_into(raw, meta, diagnostics, variable_overrides or {})
        except Exception as exc:
            log.exception("Unexpected failure while parsing UserCSS")
            diagnostics.append(Diagnostic(Severity.ERROR, f"Parsing error: {exc}"))

        errors, warnings = split_diagnostics(diagnostics)
        return ParseResult(
            meta=meta, css=meta.compiled_css, warnings=warnings, errors=errors, body=body
        )

    # ---- stages ----

    def _parse_into(
        self,
        raw: str,
        meta: StyleMeta,
        diagnostics: list[Diagnostic],
        overrides: Mapping[str, str],
    ) -> str:
        block = extract_metadata_block(raw)
        directives: list[Directive] = []
        if block is None:
            diagnostics.append(
                Diagnostic(
                    Severity.WARNING,
                    "No UserStyle metadata block found; treating the whole input as CSS",
                    source="metadata",
                )
            )
            body = raw
        else:
            body = block.body
            directives = scan_directives(block)
            if "/*" in block.content:
                diagnostics.append(
                    Diagnostic(
                        Severity.WARNING,
                        "Metadata block contains nested comments",
                        line=block.first_line,
                        source="metadata",
                    )
                )
            self._read_fields(directives, meta, diagnostics)
        meta.id = style_id(meta.name, meta.namespace)

        if self.options.extract_variables:
            meta.variables = self._read_variables(directives, body, overrides, diagnostics)
        if self.options.extract_domains:
            self._read_domains(directives, body, meta, diagnostics)

        detection = self._detect(meta.preprocessor, body)
        log.debug(
            "Preprocessor %s (source=%s, confidence=%.2f)",
            detection.type,
            detection.source,
            detection.confidence,
        )
        css = self._compile(body, detection.type, meta.variables, diagnostics)
        css = self._order_fonts(css, meta.variables)

        meta.compiled_css = css
        if self.options.extract_assets:
            meta.assets = extract_assets(css)
        return body

    def _read_fields(
        self, directives: list[Directive], meta: StyleMeta, diagnostics: list[Diagnostic]
    ) -> None:
        seen: dict[str, int] = {}
        for directive in directives:
            name = directive.name
            attr = SCALAR_DIRECTIVES.get(name)
            if attr is None:
                if name not in REPEATABLE_DIRECTIVES:
                    log.debug("Ignoring unknown directive @%s", name)
                continue
            if name in seen:
                diagnostics.append(
                    Diagnostic(
                        Severity.ERROR,
                        f"Duplicate @{name} directive found",
                        line=directive.line,
                        source="metadata",
                    )
                )
                continue
            seen[name] = directive.line
            setattr(meta, attr, _strip_quotes(directive.value))

        for required in REQUIRED_DIRECTIVES:
            if required not in seen or not getattr(meta, SCALAR_DIRECTIVES[required]):
                diagnostics.append(
                    Diagnostic(
                        Severity.ERROR,
                        f"Missing required @{required} directive in metadata block",
                        source="metadata",
                    )
                )
        if not meta.name:
            meta.name = UNTITLED_STYLE

        for directive_name in URL_DIRECTIVES:
            value = getattr(meta, SCALAR_DIRECTIVES[directive_name])
            if value and not _URL_RE.match(value):
                diagnostics.append(
                    Diagnostic(
                        Severity.WARNING,
                        f"Invalid @{directive_name} format: {value}",
                        line=seen.get(directive_name),
                        source="metadata",
                    )
                )

        meta.source_url = meta.homepage_url or meta.support_url or meta.update_url

    def _read_variables(
        self,
        directives: list[Directive],
        body: str,
        overrides: Mapping[str, str],
        diagnostics: list[Diagnostic],
    ) -> dict[str, VariableDescriptor]:
        declared: list[VariableDescriptor] = []
        for directive in directives:
            if directive.name not in ("var", "advanced"):
                continue
            descriptor = parse_var_directive(directive.value)
            if descriptor is None:
                diagnostics.append(
                    Diagnostic(
                        Severity.WARNING,
                        f"Could not parse @{directive.name} directive",
                        line=directive.line,
                        source="variables",
                    )
                )
                continue
            declared.append(descriptor)

        variables = merge_variables(extract_variables(body), declared)
        for name, descriptor in list(variables.items()):
            override = overrides.get(name, overrides.get(descriptor.bare_name))
            if override is not None:
                variables[name] = replace(descriptor, value=str(override))
            problem = check_variable_default(descriptor)
            if problem:
                diagnostics.append(Diagnostic(Severity.WARNING, problem, source="variables"))
        return variables

    def _read_domains(
        self,
        directives: list[Directive],
        body: str,
        meta: StyleMeta,
        diagnostics: list[Diagnostic],
    ) -> None:
        rules: list[DomainRule] = []
        sources: list[str] = []

        def collect(result: Result[list[DomainRule]], line: int | None = None) -> None:
            rules.extend(result.value)
            for message in result.errors:
                diagnostics.append(Diagnostic(Severity.ERROR, message, line=line, source="domains"))
            for message in result.warnings:
                diagnostics.append(
                    Diagnostic(Severity.WARNING, message, line=line, source="domains")
                )

        for directive in directives:
            if directive.name == "-moz-document":
                sources.append(directive.value)
                collect(parse_domains(directive.value), directive.line)
            elif directive.name == "domain":
                collect(domains_from_hostnames(_strip_quotes(directive.value)), directive.line)
            elif directive.name == "match":
                collect(domains_from_match_patterns(_strip_quotes(directive.value)), directive.line)

        for text, _, _ in find_document_rules(body):
            sources.append(text)
            collect(parse_domains(text))

        meta.domains = normalize_domains(rules)
        meta.domain_source = ", ".join(s.strip() for s in sources if s.strip())

    def _detect(self, declared: str, body: str) -> PreprocessorDetection:
        if declared:
            return from_directive(declared)
        detection = detect_preprocessor(body)
        if detection.source == "heuristic" and detection.confidence < self.options.heuristic_threshold:
            log.debug(
                "Ignoring %s heuristic below threshold (%.2f)",
                detection.type,
                detection.confidence,
            )
            return PreprocessorDetection(type="none", source=None, confidence=0.0)
        return detection

    def _compile(
        self,
        body: str,
        preprocessor: str,
        variables: Mapping[str, VariableDescriptor],
        diagnostics: list[Diagnostic],
    ) -> str:
        values = {name: d.value for name, d in variables.items()}
        css = resolve_variables(body, values, variables) if variables else body
        if preprocessor == "none":
            return css
        if not self.options.enable_preprocessors:
            diagnostics.append(
                Diagnostic(
                    Severity.WARNING,
                    f"{display_name(preprocessor)} preprocessing is disabled; CSS left unprocessed",
                    source="preprocessor",
                )
            )
            return css

        result = self.engine.process(
            _variable_definitions(preprocessor, variables) + css, preprocessor
        )
        for message in result.warnings:
            diagnostics.append(Diagnostic(Severity.WARNING, message, source="preprocessor"))
        for message in result.errors:
            diagnostics.append(Diagnostic(Severity.ERROR, message, source="preprocessor"))
        return css if result.errors else result.css

    def _order_fonts(self, css: str, variables: Mapping[str, VariableDescriptor]) -> str:
        font_values = {
            name: d.value for name, d in variables.items() if name.startswith("--font-")
        }
        if font_values:
            css = resolve_font_variables(css, font_values)
        faces = extract_font_faces(css)
        if not faces:
            return css
        return inject_fonts(faces, strip_font_faces(css))


def _variable_definitions(
    preprocessor: str, variables: Mapping[str, VariableDescriptor]
) -> str:
    """Preprocessor variable definitions for every variable with a usable value."""
    lines: list[str] = []
    for descriptor in variables.values():
        value = descriptor.option_css.get(descriptor.value, descriptor.value)
        if not value or "\n" in value or ";" in value:
            continue
        if preprocessor == "less":
            lines.append(f"@{descriptor.bare_name}: {value};")
        else:
            lines.append(f"{descriptor.bare_name} = {value}")
    return "\n".join(lines) + "\n" if lines else ""


_default_processor: UserCSSProcessor | None = None


def parse_usercss(
    raw: str,
    variable_overrides: Mapping[str, str] | None = None,
    *,
    processor: UserCSSProcessor | None = None,
) -> ParseResult:
    """Parse *raw* with *processor*, or with a shared module-level processor."""
    global _default_processor
    if processor is None:
        if _default_processor is None:
            _default_processor = UserCSSProcessor()
        processor = _default_processor
    return processor.parse(raw, variable_overrides)
