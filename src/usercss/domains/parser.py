"""Parse and serialize ``@-moz-document`` domain rule lists.

Syntax example:
    @-moz-document url-prefix("https://example.com/"), domain("example.org"),
        regexp("https?://(www\\.)?example\\.net/.*")

The list is parsed with a lark grammar; when the grammar rejects the text
the position is reported and well-formed ``kind("pattern")`` calls are
salvaged with a regular expression, so a single typo does not drop every
rule.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable
from urllib.parse import urlsplit

from lark import Lark, Token, Transformer
from lark.exceptions import UnexpectedInput

from usercss.errors import ParseError
from usercss.model.diagnostic import Diagnostic, Result, Severity
from usercss.model.domain import DOMAIN_KINDS, DomainRule

__all__ = [
    "NO_VALID_RULES",
    "parse_domains",
    "serialize_domains",
    "normalize_domains",
    "find_document_rules",
    "domains_from_hostnames",
    "domains_from_match_patterns",
]

log = logging.getLogger(__name__)

GRAMMAR_PATH = Path(__file__).parent / "grammar.lark"

NO_VALID_RULES = "No valid domain rules found"

_PARSER = Lark(GRAMMAR_PATH.read_text(encoding="utf-8"), parser="lalr")

# Fallback scanner for text the grammar rejects.
_CALL_RE = re.compile(
    r"""
    (?P<kind>[A-Za-z][A-Za-z0-9_-]*)        # function name
    \(\s*
    (?P<arg>"(?:[^"\\]|\\.)*"               # double-quoted pattern
          |'(?:[^'\\]|\\.)*'                # single-quoted pattern
          |[^\s"'()]*)                      # bare pattern
    \s*\)
    """,
    re.VERBOSE,
)

_DOCUMENT_RE = re.compile(r"@-moz-document\b")
_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)


@dataclass(frozen=True)
class _RuleCall:
    kind: str
    pattern: str
    line: int | None = None
    column: int | None = None


def _unescape(quoted: str) -> str:
    return _ESCAPE_RE.sub(r"\1", quoted[1:-1])


def _escape(pattern: str) -> str:
    return pattern.replace("\\", "\\\\").replace('"', '\\"')


class DomainTransformer(Transformer):  # type: ignore[type-arg]
    """Transform a rule-list parse tree into a flat list of rule calls."""

    def quoted(self, items: list[Token]) -> str:
        return _unescape(str(items[0]))

    def bare(self, items: list[Token]) -> str:
        return str(items[0])

    def rule(self, items: list[object]) -> _RuleCall:
        kind_token = items[0]
        pattern = str(items[1]) if len(items) > 1 else ""
        return _RuleCall(
            kind=str(kind_token),
            pattern=pattern,
            line=getattr(kind_token, "line", None),
            column=getattr(kind_token, "column", None),
        )

    def rule_list(self, items: list[_RuleCall]) -> list[_RuleCall]:
        return list(items)

    def start(self, items: list[object]) -> list[_RuleCall]:
        for item in items:
            if isinstance(item, list):
                return item
        return []


def _parse_calls(source: str) -> list[_RuleCall]:
    try:
        tree = _PARSER.parse(source)
    except UnexpectedInput as e:
        # UnexpectedEOF reports -1 for both.
        line = getattr(e, "line", -1)
        column = getattr(e, "column", -1)
        raise ParseError(
            "Invalid domain rule syntax",
            line=line if line > 0 else None,
            column=column if column > 0 else None,
        ) from e
    return DomainTransformer().transform(tree)


def _salvage_calls(source: str) -> list[_RuleCall]:
    calls: list[_RuleCall] = []
    for match in _CALL_RE.finditer(source):
        arg = match.group("arg")
        if arg[:1] in ("'", '"'):
            arg = _unescape(arg)
        calls.append(_RuleCall(kind=match.group("kind"), pattern=arg))
    return calls


def _cut_at_block(text: str) -> str:
    """Return *text* up to the first ``{`` that is not inside a quoted string."""
    quote = ""
    i = 0
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = ""
        elif ch in ("'", '"'):
            quote = ch
        elif ch == "{":
            return text[:i]
        i += 1
    return text


def parse_domains(text: str) -> Result[list[DomainRule]]:
    """Parse a comma-separated ``kind("pattern")`` list into domain rules.

    An optional ``@-moz-document`` prefix and a trailing ``{ ... }`` block are
    ignored.  Unknown kinds are skipped.  Empty input yields an empty, valid
    rule list (match all sites); non-empty input yielding no rules is an error.
    """
    source = _cut_at_block(text).strip()
    if not source or source == "@-moz-document":
        return Result(value=[])

    warnings: list[str] = []
    try:
        calls = _parse_calls(source)
    except ParseError as exc:
        warnings.append(str(Diagnostic(Severity.WARNING, str(exc), exc.line, exc.column)))
        calls = _salvage_calls(source)

    rules: list[DomainRule] = []
    for call in calls:
        kind = call.kind.lower()
        if kind not in DOMAIN_KINDS:
            log.debug("Skipping unknown domain rule kind %r", call.kind)
            continue
        pattern = call.pattern.strip()
        if not pattern:
            warnings.append(f"Empty pattern in {kind}() rule skipped")
            continue
        if kind == "regexp":
            try:
                re.compile(pattern)
            except re.error as exc:
                warnings.append(f'Invalid regexp pattern "{pattern}" skipped: {exc}')
                continue
        rules.append(DomainRule(kind=kind, pattern=pattern, include=True))

    if not rules:
        return Result(value=[], errors=[NO_VALID_RULES], warnings=warnings)
    return Result(value=rules, warnings=warnings)


def _hostname(pattern: str) -> str:
    if "://" in pattern:
        return (urlsplit(pattern).hostname or "").lower()
    return pattern.split("/", 1)[0].lower()


def serialize_domains(rules: Iterable[DomainRule]) -> str:
    """Serialize rules back into an ``@-moz-document`` rule list.

    A ``domain`` rule whose host is already covered by a ``url-prefix`` rule
    is dropped.  Exclusion rules have no ``@-moz-document`` spelling and are
    not emitted.
    """
    included = [r for r in rules if r.include]
    prefix_hosts = {_hostname(r.pattern) for r in included if r.kind == "url-prefix"}
    parts: list[str] = []
    for rule in included:
        if rule.kind == "domain" and rule.pattern.lower() in prefix_hosts:
            continue
        parts.append(f'{rule.kind}("{_escape(rule.pattern)}")')
    return ", ".join(parts)


def normalize_domains(rules: Iterable[DomainRule]) -> list[DomainRule]:
    """Trim patterns, lowercase hostnames and drop exact duplicates, keeping order."""
    seen: set[tuple[str, str, bool]] = set()
    normalized: list[DomainRule] = []
    for rule in rules:
        pattern = rule.pattern.strip()
        if rule.kind == "domain":
            pattern = pattern.lower()
        if not pattern:
            continue
        key = (rule.kind, pattern, rule.include)
        if key in seen:
            continue
        seen.add(key)
        normalized.append(DomainRule(kind=rule.kind, pattern=pattern, include=rule.include))
    return normalized


def find_document_rules(css: str) -> list[tuple[str, int, int]]:
    """Locate ``@-moz-document`` preludes in *css*.

    Returns ``(rule_list_text, start, end)`` triples where ``start``..``end``
    spans the prelude from ``@-moz-document`` up to (not including) ``{``.
    """
    found: list[tuple[str, int, int]] = []
    for match in _DOCUMENT_RE.finditer(css):
        prelude = _cut_at_block(css[match.end():])
        end = match.end() + len(prelude)
        if end >= len(css):
            # No block follows; not a rule.
            continue
        found.append((prelude.strip(), match.start(), end))
    return found


def domains_from_hostnames(value: str) -> Result[list[DomainRule]]:
    """Build ``domain`` rules from an ``@domain a, b`` directive value."""
    rules: list[DomainRule] = []
    warnings: list[str] = []
    for host in (h.strip() for h in value.split(",")):
        if not host:
            continue
        if "://" in host:
            warnings.append(f'Domain "{host}" includes protocol - should be hostname only')
        elif any(c in host for c in "/?#"):
            warnings.append(f'Domain "{host}" includes path or query - should be hostname only')
        rules.append(DomainRule(kind="domain", pattern=host))
    return Result(value=rules, warnings=warnings)


def domains_from_match_patterns(value: str) -> Result[list[DomainRule]]:
    """Build ``domain`` rules from ``@match`` URL patterns such as ``*://*.example.com/*``."""
    rules: list[DomainRule] = []
    warnings: list[str] = []
    for pattern in (p.strip() for p in value.split(",")):
        if not pattern:
            continue
        candidate = pattern if "://" in pattern else f"https://{pattern}"
        scheme, _, rest = candidate.partition("://")
        host = rest.split("/", 1)[0].split(":", 1)[0].lower()
        if not host or host == "*":
            warnings.append(f"Invalid @match pattern: {pattern}")
            continue
        rules.append(DomainRule(kind="domain", pattern=host))
    return Result(value=rules, warnings=warnings)
