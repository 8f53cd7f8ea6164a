"""Directive dialect: ``@var`` and ``@advanced`` lines of a UserStyle header.

    @var color accent "Accent color" #5599cc
    @var select theme "Theme" ["light", "dark*"]
    @var range gap "Gap" [8, 0, 32, 2, "px"]
    @advanced dropdown bg "Background" {
        bg-sky  "Sky*"  <<<EOT https://example.com/sky.jpg EOT;
        bg-none "None"  <<<EOT none EOT;
    }

Both ``@var`` and ``@advanced`` funnel into :class:`VariableDescriptor`;
``dropdown`` and ``image`` become ``select`` variables whose option values
map to CSS snippets in ``option_css``.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Iterable

from usercss.model.variable import VariableDescriptor, VariableOption

__all__ = ["parse_var_directive", "merge_variables", "check_variable_default"]

_WORD_RE = re.compile(r"[A-Za-z_-]+")
_IDENT_RE = re.compile(r"[A-Za-z0-9_-]+")
_QUOTES = ("\"", "'", "`")

_HEREDOC_RE = re.compile(
    r"""
    (?P<key>[\w*-]+)\s+                              # option value
    (?P<label>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*'|[^\s<]+)\s*
    <<<EOT\s*(?P<css>.*?)\s*EOT;                     # heredoc body
    """,
    re.VERBOSE | re.DOTALL,
)


@dataclass
class _SelectChoices:
    options: list[VariableOption] = field(default_factory=list)
    default: str = ""
    option_css: dict[str, str] = field(default_factory=dict)


class _DirectiveScanner:
    """Reads ``<type> <name> <label> <rest>`` from a directive value."""

    def __init__(self, source: str) -> None:
        self.source = source
        self.pos = 0

    def _skip_whitespace(self) -> None:
        while self.pos < len(self.source) and self.source[self.pos].isspace():
            self.pos += 1

    def _read(self, pattern: re.Pattern[str]) -> str | None:
        self._skip_whitespace()
        match = pattern.match(self.source, self.pos)
        if not match:
            return None
        self.pos = match.end()
        return match.group(0)

    def read_word(self) -> str | None:
        return self._read(_WORD_RE)

    def read_identifier(self) -> str | None:
        return self._read(_IDENT_RE)

    def read_label(self) -> str | None:
        self._skip_whitespace()
        if self.pos >= len(self.source):
            return None
        quote = self.source[self.pos]
        if quote in _QUOTES:
            self.pos += 1
            chars: list[str] = []
            while self.pos < len(self.source):
                ch = self.source[self.pos]
                if ch == "\\" and self.pos + 1 < len(self.source):
                    chars.append(self.source[self.pos + 1])
                    self.pos += 2
                    continue
                self.pos += 1
                if ch == quote:
                    break
                chars.append(ch)
            return "".join(chars)
        start = self.pos
        while self.pos < len(self.source) and not (
            self.source[self.pos].isspace() or self.source[self.pos] == "{"
        ):
            self.pos += 1
        return self.source[start:self.pos] or None

    def rest(self) -> str:
        return self.source[self.pos:].strip()


def _strip_quotes(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] in _QUOTES and value[0] == value[-1]:
        return value[1:-1]
    return value


def _format_number(number: float) -> str:
    return str(int(number)) if float(number).is_integer() else str(number)


def _split_default_marker(text: str) -> tuple[str, bool]:
    text = text.strip()
    if text.endswith("*"):
        return text[:-1].strip(), True
    return text, False


def _finish_select(choices: _SelectChoices) -> _SelectChoices | None:
    if not choices.options:
        return None
    if not choices.default:
        choices.default = choices.options[0].value
    return choices


def _parse_heredocs(raw: str) -> _SelectChoices | None:
    choices = _SelectChoices()
    for match in _HEREDOC_RE.finditer(raw):
        value, key_default = _split_default_marker(match.group("key"))
        label, label_default = _split_default_marker(_strip_quotes(match.group("label")))
        choices.options.append(VariableOption(value=value, label=label or value))
        choices.option_css[value] = match.group("css").replace("*\\/", "*/")
        if (key_default or label_default) and not choices.default:
            choices.default = value
    return _finish_select(choices)


def _loose_list(raw: str) -> list[str]:
    inner = raw.strip()[1:]
    if inner.endswith("]"):
        inner = inner[:-1]
    return [_strip_quotes(item) for item in inner.split(",") if item.strip()]


def _parse_select(raw: str) -> _SelectChoices | None:
    raw = raw.strip()
    if "<<<EOT" in raw:
        return _parse_heredocs(raw)

    choices = _SelectChoices()
    if raw.startswith("{"):
        try:
            mapping = json.loads(raw)
        except json.JSONDecodeError:
            return None
        if not isinstance(mapping, dict):
            return None
        for raw_key, raw_value in mapping.items():
            name, _, label = str(raw_key).partition(":")
            name, name_default = _split_default_marker(name)
            label, label_default = _split_default_marker(label or name)
            value = str(raw_value)
            choices.options.append(VariableOption(value=value, label=label))
            if (name_default or label_default) and not choices.default:
                choices.default = value
        return _finish_select(choices)

    if raw.startswith("["):
        try:
            items = json.loads(raw)
        except json.JSONDecodeError:
            items = _loose_list(raw)
        if not isinstance(items, list):
            return None
        for item in items:
            text = str(item).strip()
            value, sep, label = text.partition(":")
            value, value_default = _split_default_marker(value)
            if sep:
                label, label_default = _split_default_marker(label)
            else:
                label, label_default = value, False
            choices.options.append(VariableOption(value=value, label=label))
            if (value_default or label_default) and not choices.default:
                choices.default = value
        return _finish_select(choices)

    return None


@dataclass
class _NumericRange:
    value: str
    min: float | None = None
    max: float | None = None
    step: float | None = None
    unit: str | None = None


def _parse_numeric(raw: str, append_unit: bool) -> _NumericRange | None:
    raw = raw.strip()
    if not raw:
        return None
    if raw.startswith("["):
        try:
            entries = json.loads(raw)
        except json.JSONDecodeError:
            entries = _loose_list(raw)
        if not isinstance(entries, list):
            return None
        numbers: list[float | None] = []
        unit: str | None = None
        for entry in entries:
            if entry is None or isinstance(entry, (int, float)):
                numbers.append(entry)
                continue
            try:
                numbers.append(float(str(entry)))
            except ValueError:
                if unit is None and str(entry).strip():
                    unit = str(entry).strip()
        numbers += [None] * (4 - len(numbers))
        default, minimum, maximum, step = numbers[:4]
        value = _format_number(default if default is not None else 0)
        if append_unit and unit:
            value = f"{value}{unit}"
        return _NumericRange(value=value, min=minimum, max=maximum, step=step, unit=unit)
    try:
        return _NumericRange(value=_format_number(float(_strip_quotes(raw))))
    except ValueError:
        return None


def parse_var_directive(value: str) -> VariableDescriptor | None:
    """Parse the value of an ``@var`` / ``@advanced`` directive.

    Returns None when the value has no type, no name, or a select/dropdown
    without any options.  Unknown types are kept as written, with the rest
    of the line as their default.
    """
    scanner = _DirectiveScanner(value.strip())
    raw_type = scanner.read_word()
    if not raw_type:
        return None
    raw_name = scanner.read_identifier()
    if not raw_name:
        return None
    label = scanner.read_label() or raw_name
    remainder = scanner.rest()

    name = raw_name if raw_name.startswith("--") else f"--{raw_name}"
    var_type = raw_type.lower()

    if var_type in ("dropdown", "image", "select"):
        select = _parse_heredocs(remainder) if var_type != "select" else _parse_select(remainder)
        if select is None:
            return None
        return VariableDescriptor(
            name=name,
            type="select",
            label=label,
            default=select.default,
            value=select.default,
            options=select.options,
            option_css=select.option_css,
        )

    if var_type in ("number", "range"):
        numeric = _parse_numeric(remainder, append_unit=var_type == "range")
        if numeric is None:
            fallback = _strip_quotes(remainder)
            return VariableDescriptor(
                name=name, type=var_type, label=label, default=fallback, value=fallback
            )
        return VariableDescriptor(
            name=name,
            type=var_type,
            label=label,
            default=numeric.value,
            value=numeric.value,
            min=numeric.min,
            max=numeric.max,
            step=numeric.step,
            unit=numeric.unit,
        )

    default = _strip_quotes(remainder)
    if var_type == "checkbox":
        default = "1" if default in ("1", "true") else "0"
        return VariableDescriptor(
            name=name, type="checkbox", label=label, default=default, value=default
        )
    if var_type in ("color", "text"):
        return VariableDescriptor(
            name=name, type=var_type, label=label, default=default, value=default
        )
    return VariableDescriptor(
        name=name, type=raw_type, label=label, default=default, value=default
    )


def merge_variables(
    inline: Iterable[VariableDescriptor], directive: Iterable[VariableDescriptor]
) -> dict[str, VariableDescriptor]:
    """Merge both dialects by name; directive entries replace inline ones."""
    merged: dict[str, VariableDescriptor] = {}
    for descriptor in inline:
        merged.setdefault(descriptor.name, descriptor)
    for descriptor in directive:
        merged[descriptor.name] = descriptor
    return merged


def check_variable_default(descriptor: VariableDescriptor) -> str | None:
    """Return a warning when a select/range default is outside its declared domain."""
    if descriptor.type == "select" and descriptor.options:
        if descriptor.default not in descriptor.option_values():
            return (
                f"Default value '{descriptor.default}' of {descriptor.name} "
                "is not one of its options"
            )
        return None
    if descriptor.type in ("number", "range"):
        raw = descriptor.default
        if descriptor.unit and raw.endswith(descriptor.unit):
            raw = raw[: -len(descriptor.unit)]
        try:
            number = float(raw)
        except ValueError:
            return f"Default value '{descriptor.default}' of {descriptor.name} is not numeric"
        if descriptor.min is not None and number < descriptor.min:
            return f"Default value {raw} of {descriptor.name} is below its minimum {_format_number(descriptor.min)}"
        if descriptor.max is not None and number > descriptor.max:
            return f"Default value {raw} of {descriptor.name} is above its maximum {_format_number(descriptor.max)}"
    return None
