"""Extraction of goal, repeat and tags fields from note text.

Two notations are understood:

- inline: ``goal:: 2024-01-01``, ``repeat:: 2 weeks`` and a ``tags:: #a #b``
  line, anywhere in the note;
- structured: ``goal``, ``repeat`` and ``tags`` keys inside the ``---``
  block at the top of the note.

A note whose top block declares ``goal`` or ``repeat`` uses the structured
notation; every other note is read inline, including notes whose block only
carries ordinary front matter such as ``tags``.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any

from ..dates import Defaulted, parse_date_or_default
from ..models import (
    GoalField,
    Notation,
    NoteRecord,
    RepeatField,
    RepeatUnit,
    Span,
    StructuredBlock,
    TagSet,
    TagToken,
)
from .block import read_block, unquote

logger = logging.getLogger(__name__)

GOAL_INLINE = re.compile(r"\bgoal::[ \t]*(\S+)")
REPEAT_INLINE = re.compile(r"\brepeat::[ \t]*([^\s#]+)(?:[ \t]+([^\s#]+))?(?=\s|#|$)")
TAGS_INLINE = re.compile(r"\btags::[ \t]*(.*)")
TAG_TOKEN = re.compile(r"#([^\s#]+)")
AMOUNT = re.compile(r"^[+-]?\d+")

STRUCTURED_KEYS = ("goal", "repeat")

# Accepted goal shapes. "strict" admits only the zero-padded form.
GOAL_FORMATS = {
    "lenient": (
        re.compile(r"^\d{4}-\d{2}-\d{2}$"),
        re.compile(r"^\d{4}-\d{2}-\d{1}$"),
        re.compile(r"^\d{4}-\d{1}-\d{1}$"),
    ),
    "strict": (re.compile(r"^\d{4}-\d{2}-\d{2}$"),),
}


def goal_value(raw: str, today: date, goal_formats: str = "lenient") -> tuple[date, bool]:
    """Resolve a declared goal string to a date; returns ``(value, defaulted)``."""
    try:
        patterns = GOAL_FORMATS[goal_formats]
    except KeyError:
        raise ValueError(f"unknown goal_formats '{goal_formats}'") from None

    if not any(p.match(raw) for p in patterns):
        logger.debug("Goal %r is not an accepted date form, using %s", raw, today)
        return today, True

    result = parse_date_or_default(raw, fallback=today)
    return result.value, isinstance(result, Defaulted)


def repeat_parts(amount_raw: str | None, unit_raw: str | None) -> tuple[int, RepeatUnit, str]:
    """Apply repeat defaults: amount 1, unit day."""
    match = AMOUNT.match(amount_raw or "")
    amount = int(match.group(0)) if match else 1
    if amount < 1:
        amount = 1

    unit = RepeatUnit.parse(unit_raw)
    if unit is None:
        return amount, RepeatUnit.DAY, RepeatUnit.DAY.value
    return amount, unit, unit_raw.strip().lower()


def _tag_name(raw: str) -> str:
    return unquote(raw.strip()).lstrip("#")


# ── Inline notation ───────────────────────────────────────────


def _inline_goal(text: str, today: date, goal_formats: str) -> GoalField | None:
    match = GOAL_INLINE.search(text)
    if not match:
        return None
    raw = match.group(1)
    value, defaulted = goal_value(raw, today, goal_formats)
    return GoalField(span=Span(*match.span()), value=value, raw=raw, defaulted=defaulted)


def _inline_repeat(text: str) -> RepeatField | None:
    match = REPEAT_INLINE.search(text)
    if not match:
        return None
    amount, unit, spelling = repeat_parts(match.group(1), match.group(2))
    return RepeatField(span=Span(*match.span()), amount=amount, unit=unit, spelling=spelling)


def _inline_tags(text: str) -> TagSet | None:
    match = TAGS_INLINE.search(text)
    if not match:
        return None
    offset = match.start(1)
    tokens = [
        TagToken(name=m.group(1), span=Span(offset + m.start(), offset + m.end()))
        for m in TAG_TOKEN.finditer(match.group(1))
    ]
    return TagSet(
        names=[t.name for t in tokens],
        span=Span(*match.span()),
        marker_end=offset,
        tokens=tokens,
    )


# ── Structured notation ───────────────────────────────────────


def _block_goal(block: StructuredBlock, today: date, goal_formats: str) -> GoalField | None:
    value = block.fields.get("goal")
    if value is None or isinstance(value, list):
        return None
    raw = unquote(value)
    resolved, defaulted = goal_value(raw, today, goal_formats)
    return GoalField(span=block.span, value=resolved, raw=raw, defaulted=defaulted)


def _block_repeat(block: StructuredBlock) -> RepeatField | None:
    value = block.fields.get("repeat")
    if value is None or isinstance(value, list):
        return None
    parts = unquote(value).split()
    amount, unit, spelling = repeat_parts(
        parts[0] if parts else None,
        parts[1] if len(parts) > 1 else None,
    )
    return RepeatField(span=block.span, amount=amount, unit=unit, spelling=spelling)


def _block_tags(block: StructuredBlock) -> TagSet | None:
    value = block.fields.get("tags")
    if value is None:
        return None
    if isinstance(value, list):
        names = [_tag_name(item) for item in value]
    else:
        # Scalar or flow form: "a, b" / "[a, b]" / "#a #b"
        names = [_tag_name(part) for part in re.split(r"[,\s]+", unquote(value).strip("[]")) if part]
    return TagSet(names=[n for n in names if n], span=block.span)


# ── Entry point ───────────────────────────────────────────────


def detect_notation(block: StructuredBlock | None) -> Notation:
    if block is not None and any(key in block.fields for key in STRUCTURED_KEYS):
        return Notation.STRUCTURED
    return Notation.INLINE


def extract_note(
    identity: Any,
    text: str,
    today: date,
    *,
    goal_formats: str = "lenient",
) -> NoteRecord:
    """Build a NoteRecord from raw note text.

    Missing fields leave the record invalid; they never raise. A malformed
    list inside a structured block raises ``MalformedStructuredList``; the top
    block of any other note is never held against it.
    """
    block = read_block(text)
    notation = detect_notation(block)
    if notation is Notation.STRUCTURED and block.error is not None:
        raise block.error

    record = NoteRecord(identity=identity, text=text, notation=notation, current_date=today)
    if notation is Notation.STRUCTURED:
        record.block = block
        record.goal = _block_goal(block, today, goal_formats)
        record.repeat = _block_repeat(block)
        record.tags = _block_tags(block)
    else:
        record.goal = _inline_goal(text, today, goal_formats)
        record.repeat = _inline_repeat(text)
        record.tags = _inline_tags(text)

    if record.goal is not None and record.goal.defaulted:
        logger.warning("%s: goal %r is not a valid date, treating it as %s", identity, record.goal.raw, today)

    return record
