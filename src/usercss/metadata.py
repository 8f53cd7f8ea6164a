"""Locate the ``==UserStyle==`` header and split it into directives."""

from __future__ import annotations

import re
from dataclasses import dataclass

__all__ = [
    "HeaderBlock",
    "Directive",
    "extract_metadata_block",
    "scan_directives",
    "position_from_index",
]

OPEN_MARKER = "==UserStyle=="
CLOSE_MARKER = "==/UserStyle=="

_DIRECTIVE_RE = re.compile(r"@?(?P<name>[^\s]+)[^\S\n]*(?P<value>.*)", re.DOTALL)
_HEREDOC_RE = re.compile(r"<<<EOT.*?EOT;", re.DOTALL)


@dataclass(frozen=True)
class HeaderBlock:
    """The header text between the marker lines and the remaining body.

    ``start``/``end`` delimit the marker lines in the original source;
    ``first_line`` is the 1-based line number of the first content line.
    """

    content: str
    body: str
    start: int
    end: int
    first_line: int


@dataclass(frozen=True)
class Directive:
    name: str
    value: str
    line: int


def position_from_index(text: str, index: int) -> tuple[int, int]:
    """Return the 1-based ``(line, column)`` of *index* in *text*."""
    before = text[:index]
    line = before.count("\n") + 1
    column = index - (before.rfind("\n") + 1) + 1
    return line, column


def extract_metadata_block(raw: str) -> HeaderBlock | None:
    """Find the first ``==UserStyle==`` / ``==/UserStyle==`` line pair.

    Works for both ``/* ... */`` and ``// ...`` comment styles.  Returns None
    when either marker line is missing.
    """
    offset = 0
    start = None
    content_start = 0
    first_line = 0
    for number, line in enumerate(raw.splitlines(keepends=True), start=1):
        if start is None:
            if OPEN_MARKER in line:
                start = offset
                content_start = offset + len(line)
                first_line = number + 1
        elif CLOSE_MARKER in line:
            content = raw[content_start:offset]
            trailing = line.split(CLOSE_MARKER, 1)[1].lstrip()
            if trailing.startswith("*/"):
                trailing = trailing[2:]
            end = offset + len(line)
            body = (raw[:start] + trailing + raw[end:]).strip()
            return HeaderBlock(
                content=content, body=body, start=start, end=end, first_line=first_line
            )
        offset += len(line)
    return None


def _is_open(text: str) -> bool:
    """True while a ``{`` block or ``<<<EOT`` heredoc in *text* is unterminated."""
    text = _HEREDOC_RE.sub("", text)
    if "<<<EOT" in text:
        return True
    return text.count("{") > text.count("}")


def _starts_directive(line: str) -> bool:
    stripped = line.lstrip().lstrip("/").lstrip()
    return stripped.startswith("@") or stripped.startswith("-moz-document")


def scan_directives(block: HeaderBlock) -> list[Directive]:
    """Split header content into ``@name value`` directives.

    A value continues on following lines until a line starts a new
    directive; lines inside an open block or heredoc always continue it.
    """
    directives: list[Directive] = []
    current: list[str] = []
    current_line = 0

    def flush() -> None:
        if not current:
            return
        head = current[0].lstrip().lstrip("/").lstrip()
        match = _DIRECTIVE_RE.match("\n".join([head, *current[1:]]))
        if match:
            directives.append(
                Directive(
                    name=match.group("name"),
                    value=match.group("value").strip(),
                    line=current_line,
                )
            )

    for number, line in enumerate(block.content.splitlines(), start=block.first_line):
        if _starts_directive(line) and not (current and _is_open("\n".join(current))):
            flush()
            current = [line]
            current_line = number
        elif current:
            current.append(line)
    flush()
    return directives
