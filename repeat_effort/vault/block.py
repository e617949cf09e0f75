"""Minimal metadata block parsing and serialization.

Only the shapes effort notes use are understood: ``key: value`` scalars and
``key:`` followed by ``- item`` lines (a flat list of strings). This is not
a YAML parser: ``|`` and ``>`` block scalars are carried as raw text, and
anything else inside the block is ignored on read and is not reproduced
when the block is regenerated.
"""

from __future__ import annotations

import re
from itertools import islice

from frontmatter import YAMLHandler

from ..models import Span, StructuredBlock

KEY_LINE = re.compile(r"^\s*([A-Za-z_][\w-]*)\s*:(?:\s+(.*?))?\s*$")
ITEM_LINE = re.compile(r"^\s*-\s+(.*?)\s*$|^\s*-\s*$")
BLOCK_SCALAR = re.compile(r"^[|>][+-]?\d*[+-]?$")

_handler = YAMLHandler()


class MalformedStructuredList(ValueError):
    """A ``- item`` line with no list key above it."""

    def __init__(self, message: str, line: int):
        super().__init__(f"line {line}: {message}")
        self.line = line


def locate_block(text: str) -> Span | None:
    """Find the body of a ``---`` delimited block at the very top of ``text``.

    The returned span starts after the opening delimiter line and ends at the
    start of the closing delimiter line, so the delimiters themselves are
    never rewritten.
    """
    if not _handler.detect(text):
        return None

    boundaries = list(islice(_handler.FM_BOUNDARY.finditer(text), 2))
    if len(boundaries) < 2:
        return None

    opening, closing = boundaries
    newline = text.find("\n", opening.start())
    start = newline + 1 if 0 <= newline < closing.start() else opening.end()
    return Span(start, closing.start(), whole_block=True)


def unquote(value: str) -> str:
    """Strip one pair of matching quotes from a scalar."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value




def _scan_block(body: str) -> tuple[dict[str, str | list[str]], MalformedStructuredList | None]:
    """Read fields leniently; the first malformed list item is returned, not raised."""
    fields: dict[str, str | list[str]] = {}
    current_key: str | None = None
    scalar_key: str | None = None  # key of an open "|" / ">" block scalar
    error: MalformedStructuredList | None = None

    for lineno, line in enumerate(body.splitlines(), 1):
        if scalar_key is not None:
            if not line.strip() or line[:1] in (" ", "\t"):
                fields[scalar_key] += "\n" + line
                continue
            scalar_key = None

        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        item = ITEM_LINE.match(line)
        if item:
            if current_key is None:
                error = error or MalformedStructuredList("list item without a key", lineno)
            elif not isinstance(fields[current_key], list):
                error = error or MalformedStructuredList(f"list item under scalar key '{current_key}'", lineno)
            else:
                fields[current_key].append(item.group(1) or "")
            continue

        key = KEY_LINE.match(line)
        if key:
            name, value = key.group(1), key.group(2)
            fields[name] = value if value else []
            current_key = name
            if value and BLOCK_SCALAR.match(value):
                scalar_key = name

    return fields, error


def parse_block(body: str) -> dict[str, str | list[str]]:
    """Parse block body lines into scalars and lists, in source order.

    Values are kept as written (quotes included) so untouched keys serialize
    back unchanged. A ``|`` or ``>`` scalar keeps its indented lines as part
    of its value.

    Raises:
        MalformedStructuredList: for a list item with no preceding key, or
            whose key already holds a scalar value.
    """
    fields, error = _scan_block(body)
    if error is not None:
        raise error
    return fields


def line_ending(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


def serialize_block(fields: dict[str, str | list[str]], newline: str = "\n") -> str:
    """Render fields back to block body text (each line terminated by ``newline``)."""
    lines: list[str] = []
    for key, value in fields.items():
        if isinstance(value, list):
            lines.append(f"{key}:")
            lines.extend(f"  - {item}" for item in value)
        else:
            lines.append(f"{key}: {value}".replace("\n", newline))
    return "".join(line + newline for line in lines)


def read_block(text: str) -> StructuredBlock | None:
    """Locate and read the metadata block of a note, if it has one.

    Malformed list items do not raise here; they are kept on the block as
    ``error`` for the caller to raise once it knows the block matters.
    """
    span = locate_block(text)
    if span is None:
        return None
    fields, error = _scan_block(text[span.start : span.end])
    return StructuredBlock(fields=fields, span=span, error=error)
