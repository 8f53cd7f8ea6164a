"""Font handling: ``@font-face`` extraction, ``--font-*`` resolution and output ordering."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Mapping

__all__ = [
    "FontFace",
    "extract_font_faces",
    "strip_font_faces",
    "resolve_font_variables",
    "inject_fonts",
]

_FONT_FACE_RE = re.compile(r"@font-face\s*\{(?P<body>[^}]*)\}", re.IGNORECASE)

# property: value, where the value may hold quoted strings and url(...) with ';'
_DECLARATION_RE = re.compile(
    r"""
    (?P<prop>[a-zA-Z-]+)\s*:\s*
    (?P<value>(?:"[^"]*"|'[^']*'|\([^)]*\)|[^;"'()])+)
    """,
    re.VERBOSE,
)

_MODELLED_PROPERTIES = frozenset({"font-family", "src", "font-weight", "font-style", "font-display"})

_FONT_VAR_RE =re.compile(r"var\(\s*(?P<name>--font-[\w-]+)\s*(?:,\s*(?P<fallback>[^)]*))?\)")

GENERIC_FAMILIES = frozenset({
    "serif",
    "sans-serif",
    "monospace",
    "cursive",
    "fantasy",
    "system-ui",
    "ui-serif",
    "ui-sans-serif",
    "ui-monospace",
    "ui-rounded",
    "math",
    "emoji",
    "fangsong",
    "inherit",
    "initial",
    "unset",
})


@dataclass(frozen=True)
class FontFace:
    """Read-only view of one ``@font-face`` rule.  ``family`` is None when the rule lacks one."""

    family: str | None = None
    src: str | None = None
    weight: str | None = None
    style: str | None = None
    display: str | None = None
    # Remaining descriptors (unicode-range, font-stretch, ...) in source order.
    extra: tuple[tuple[str, str], ...] = ()

    def to_css(self) -> str:
        lines = []
        if self.family is not None:
            lines.append(f'  font-family: "{self.family}";')
        for prop, value in (
            ("src", self.src),
            ("font-weight", self.weight),
            ("font-style", self.style),
            ("font-display", self.display),
            *self.extra,
        ):
            if value is not None:
                lines.append(f"  {prop}: {value};")
        body = "\n".join(lines)
        return f"@font-face {{\n{body}\n}}"


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] in "\"'" and value[0] == value[-1]:
        return value[1:-1]
    return value


def extract_font_faces(css: str) -> list[FontFace]:
    """Return every ``@font-face`` rule of *css* in document order.

    Multi-line ``src`` values are joined onto one line.  A rule without
    ``font-family`` still yields a FontFace.  Descriptors other than the
    five modelled ones are kept in ``extra`` so ``to_css`` re-emits them.
    """
    faces: list[FontFace] = []
    for match in _FONT_FACE_RE.finditer(css):
        props: dict[str, str] = {}
        extra: dict[str, str] = {}
        for decl in _DECLARATION_RE.finditer(match.group("body")):
            prop = decl.group("prop").lower()
            value = " ".join(decl.group("value").split())
            if prop in _MODELLED_PROPERTIES:
                props[prop] = value
            else:
                extra[prop] = value
        family = props.get("font-family")
        faces.append(
            FontFace(
                family=_unquote(family) if family is not None else None,
                src=props.get("src"),
                weight=props.get("font-weight"),
                style=props.get("font-style"),
                display=props.get("font-display"),
                extra=tuple(extra.items()),
            )
        )
    return faces


def strip_font_faces(css: str) -> str:
    """Remove ``@font-face`` rules from *css*."""
    stripped = _FONT_FACE_RE.sub("", css)
    return re.sub(r"\n{3,}", "\n\n", stripped).strip("\n")


def _quote_family(name: str) -> str:
    name = name.strip()
    if not name or name[0] in "\"'" or name.lower() in GENERIC_FAMILIES:
        return name
    if any(ch.isspace() for ch in name):
        return f"'{name}'"
    return name


def _quote_stack(value: str) -> str:
    return ", ".join(_quote_family(part) for part in value.split(",") if part.strip())


def resolve_font_variables(css: str, values: Mapping[str, str]) -> str:
    """Replace ``var(--font-*)`` references that have a value in *values*.

    Multi-word family names are quoted, a fallback stack inside the
    ``var()`` is kept after the value, and unmatched references are left
    as written.
    """

    def substitute(match: re.Match[str]) -> str:
        value = values.get(match.group("name"))
        if not value or not value.strip():
            return match.group(0)
        resolved = _quote_stack(value)
        fallback = (match.group("fallback") or "").strip()
        return f"{resolved}, {fallback}" if fallback else resolved

    return _FONT_VAR_RE.sub(substitute, css)


def inject_fonts(faces: Iterable[FontFace], main_css: str) -> str:
    """Return *main_css* preceded by the given ``@font-face`` rules, in order."""
    rules = [face.to_css() for face in faces]
    if not rules:
        return main_css
    return "\n\n".join(rules) + "\n\n" + main_css
