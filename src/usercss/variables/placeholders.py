"""Inline placeholder dialect: ``/*[[--name|type|default|...]]*/`` markers.

Field order after the name:
    type (default ``text``), default (default empty), then
    ``min|max|step|unit`` for number/range or ``options:a,b,c`` for select.

Each marker precedes the literal CSS value it customizes, e.g.
``font-size: /*[[--font-size|number|16|12|24]]*/ 16px;``.
"""

from __future__ import annotations

import re
from typing import Mapping

from usercss.model.variable import VariableDescriptor, VariableOption

__all__ = ["PLACEHOLDER_RE", "extract_variables", "resolve_variables"]

PLACEHOLDER_RE = re.compile(r"/\*\[\[([^\]]+)\]\]\*/")

# A placeholder plus the literal value token that follows it on the same line.
_PLACEHOLDER_WITH_LITERAL_RE = re.compile(
    r"/\*\[\[(?P<fields>[^\]]+)\]\]\*/"
    r"(?:(?P<gap>[ \t]*)(?!/\*)(?P<literal>(?:[^\s;{}!,()]|\([^()]*\))+))?"
)

_NUMBER_RE = re.compile(r"^-?(?:\d+\.?\d*|\.\d+)$")
_UNIT_SUFFIX_RE = re.compile(r"^-?(?:\d+\.?\d*|\.\d+)(?P<unit>[a-zA-Z%]+)$")
_UNIT_RE = re.compile(r"^[a-zA-Z%]+$")

_NUMERIC_TYPES = ("number", "range")


def _to_float(raw: str) -> float | None:
    try:
        return float(raw)
    except ValueError:
        return None


def _parse_options(raw: str) -> list[VariableOption]:
    values = [v.strip() for v in raw[len("options:"):].split(",")]
    return [VariableOption(value=v, label=v) for v in values if v]


def _parse_placeholder(fields: str) -> VariableDescriptor | None:
    parts = [p.strip() for p in fields.split("|")]
    name = parts[0]
    if not name.startswith("--") or len(name) < 3:
        return None
    var_type = parts[1] if len(parts) > 1 and parts[1] else "text"
    if var_type.lower() in ("text", "color", "number", "range", "select", "checkbox"):
        var_type = var_type.lower()
    default = parts[2] if len(parts) > 2 else ""
    extra = parts[3:]

    kwargs: dict[str, object] = {}
    if var_type in _NUMERIC_TYPES:
        numbers: list[float] = []
        for raw in extra:
            number = _to_float(raw)
            if number is None:
                if raw:
                    kwargs["unit"] = raw
                break
            numbers.append(number)
        for key, number in zip(("min", "max", "step"), numbers):
            kwargs[key] = number
    elif var_type == "select":
        for raw in extra:
            if raw.startswith("options:"):
                kwargs["options"] = _parse_options(raw)
                break

    return VariableDescriptor(
        name=name,
        type=var_type,
        default=default,
        value=default,
        label=name[2:],
        **kwargs,  # type: ignore[arg-type]
    )


def extract_variables(css: str) -> list[VariableDescriptor]:
    """Extract placeholder variables from *css* in document order.

    Markers whose name does not start with ``--`` are ignored; on duplicate
    names the first occurrence wins.
    """
    found: dict[str, VariableDescriptor] = {}
    for match in PLACEHOLDER_RE.finditer(css):
        descriptor = _parse_placeholder(match.group(1))
        if descriptor is not None and descriptor.name not in found:
            found[descriptor.name] = descriptor
    return list(found.values())


def _lookup(mapping: Mapping[str, object], name: str) -> object | None:
    if name in mapping:
        return mapping[name]
    alt = name[2:] if name.startswith("--") else f"--{name}"
    return mapping.get(alt)


def _with_unit(replacement: str, literal: str, attached: bool) -> str:
    if not _NUMBER_RE.match(replacement):
        return replacement
    if attached and _UNIT_RE.match(literal):
        # Marker written directly before its unit: ``/*[[--gap|number|4]]*/px``.
        return f"{replacement}{literal}"
    unit = _UNIT_SUFFIX_RE.match(literal)
    return f"{replacement}{unit.group('unit')}" if unit else replacement


def resolve_variables(
    css: str,
    values: Mapping[str, str],
    variables: Mapping[str, VariableDescriptor] | None = None,
    _depth: int = 0,
) -> str:
    """Replace each placeholder and the literal following it with a value.

    The value comes from *values*, else the descriptor default, else the
    default written in the marker.  A select value with an option CSS snippet
    substitutes the snippet.  A marker with no value at all is left untouched.
    Names match with or without the leading ``--``.
    """
    variables = variables or {}

    def substitute(match: re.Match[str]) -> str:
        parts = match.group("fields").split("|")
        name = parts[0].strip()
        literal = match.group("literal") or ""
        descriptor = _lookup(variables, name)
        value = _lookup(values, name)

        if isinstance(descriptor, VariableDescriptor) and descriptor.option_css:
            selected = value if value is not None else descriptor.value or descriptor.default
            snippet = descriptor.option_css.get(str(selected))
            if snippet is not None:
                if _depth < 2:
                    snippet = resolve_variables(snippet, values, variables, _depth + 1)
                return snippet

        replacement: str | None = None
        if value is not None and str(value) != "":
            replacement = str(value)
        elif isinstance(descriptor, VariableDescriptor) and (descriptor.value or descriptor.default):
            replacement = descriptor.value or descriptor.default
        elif len(parts) > 2 and parts[2].strip():
            replacement = parts[2].strip()

        if replacement is None:
            return match.group(0)
        return _with_unit(replacement, literal, attached=not match.group("gap"))

    return _PLACEHOLDER_WITH_LITERAL_RE.sub(substitute, css)
