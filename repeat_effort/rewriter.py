"""Write updated goal/repeat/tags values back into note text.

Changes are expressed as an edit list over the original text and applied in
a single pass. Every character outside an edit is preserved.
"""

from __future__ import annotations

import re
from collections import defaultdict, deque
from dataclasses import dataclass
from datetime import date

from .dates import format_goal
from .engine import ACTIVE_TAG, OUTPUT_TAG, Decision
from .models import Notation, NoteRecord, Span, TagSet
from .vault.block import line_ending, serialize_block

_HSPACE = re.compile(r"[ \t]*")


@dataclass(frozen=True)
class Edit:
    """Replace ``text[start:end]`` with ``replacement``."""

    start: int
    end: int
    replacement: str

    @classmethod
    def over(cls, span: Span, replacement: str) -> Edit:
        return cls(span.start, span.end, replacement)


def apply_edits(text: str, edits: list[Edit]) -> str:
    """Apply non-overlapping edits to ``text`` in one pass.

    Raises:
        ValueError: if two edits overlap or an edit falls outside the text.
    """
    out: list[str] = []
    cursor = 0
    for edit in sorted(edits, key=lambda e: (e.start, e.end)):
        if edit.start < cursor:
            raise ValueError(f"overlapping edits at offset {edit.start}")
        if edit.end > len(text):
            raise ValueError(f"edit [{edit.start}, {edit.end}) is outside the text")
        out.append(text[cursor : edit.start])
        out.append(edit.replacement)
        cursor = edit.end
    out.append(text[cursor:])
    return "".join(out)


def goal_line(value: date) -> str:
    return f"goal:: {format_goal(value)}"


# ── Inline notation ───────────────────────────────────────────


def _remove_token(text: str, span: Span, floor: int) -> Edit:
    """Delete a tag token along with one side of its surrounding spaces."""
    trailing = _HSPACE.match(text, span.end).end()
    if trailing > span.end:
        return Edit(span.start, trailing, "")
    leading = span.start
    while leading > floor and text[leading - 1] in " \t":
        leading -= 1
    return Edit(leading, span.end, "")


def inline_tag_edits(
    text: str,
    tags: TagSet,
    active_tag: str = ACTIVE_TAG,
    output_tag: str = OUTPUT_TAG,
) -> list[Edit]:
    """Edits that mark an inline tags line as an active effort.

    ``#output`` is swapped for ``#effort`` in place; when neither tag is
    present ``#effort`` goes right after the ``tags::`` marker.
    """
    output = output_tag.casefold()
    has_active = tags.has(active_tag)
    edits: list[Edit] = []

    outputs = [t for t in tags.tokens if t.name.casefold() == output]
    floor = tags.span.start
    for i, token in enumerate(outputs):
        if i == 0 and not has_active:
            edit = Edit.over(token.span, f"#{active_tag}")
        else:
            edit = _remove_token(text, token.span, floor)
        edits.append(edit)
        floor = edit.end

    if not has_active and not outputs:
        rest = text[tags.marker_end : tags.span.end]
        separator = " " if rest.strip() else ""
        edits.append(Edit(tags.span.start, tags.marker_end, f"tags:: #{active_tag}{separator}"))

    return edits


def inline_edits(record: NoteRecord, decision: Decision, active_tag: str, output_tag: str) -> list[Edit]:
    return [
        Edit.over(record.goal.span, goal_line(decision.next_goal)),
        Edit.over(record.repeat.span, f"repeat:: {record.repeat.text}"),
        *inline_tag_edits(record.text, record.tags, active_tag, output_tag),
    ]


# ── Structured notation ───────────────────────────────────────


def _tag_items(original: list[str] | str, names: list[str]) -> list[str]:
    """Render tag names as list items, reusing the original spelling where one exists."""
    raw_items = original if isinstance(original, list) else []
    spellings: dict[str, deque[str]] = defaultdict(deque)
    for raw in raw_items:
        spellings[raw.strip().strip("'\"").lstrip("#")].append(raw)

    items = []
    for name in names:
        items.append(spellings[name].popleft() if spellings[name] else name)
    return items


def structured_edits(record: NoteRecord, decision: Decision) -> list[Edit]:
    block = record.block
    fields = dict(block.fields)
    fields["goal"] = format_goal(decision.next_goal)
    fields["repeat"] = record.repeat.text
    fields["tags"] = _tag_items(block.fields.get("tags", []), decision.tags)
    newline = line_ending(record.text[block.span.start : block.span.end] or record.text)
    return [Edit.over(block.span, serialize_block(fields, newline))]


def rewrite(
    record: NoteRecord,
    decision: Decision,
    *,
    active_tag: str = ACTIVE_TAG,
    output_tag: str = OUTPUT_TAG,
) -> str:
    """Return the note text with goal, repeat and tags updated per ``decision``."""
    if record.notation is Notation.STRUCTURED:
        edits = structured_edits(record, decision)
    else:
        edits = inline_edits(record, decision, active_tag, output_tag)
    return apply_edits(record.text, edits)
