"""Data models for effort notes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any


class Notation(str, Enum):
    """How a note declares its goal/repeat/tags fields."""

    INLINE = "inline"  # goal:: / repeat:: / tags:: lines in the body
    STRUCTURED = "structured"  # key: value block at the top of the note


class RepeatUnit(str, Enum):
    """Unit of a repeat interval. Plural and capitalized spellings are accepted."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"

    @classmethod
    def _missing_(cls, value: object) -> RepeatUnit | None:
        if isinstance(value, str):
            spelling = value.strip().lower()
            if spelling.endswith("s"):
                spelling = spelling[:-1]
            for member in cls:
                if member.value == spelling:
                    return member
        return None

    @classmethod
    def parse(cls, spelling: str | None) -> RepeatUnit | None:
        """Return the unit for a recognized spelling, or None."""
        if not spelling:
            return None
        try:
            return cls(spelling)
        except ValueError:
            return None


@dataclass(frozen=True)
class Span:
    """A half-open ``[start, end)`` character range into a note's text.

    ``whole_block`` marks a span that stands for the entire structured
    metadata block rather than one field.
    """

    start: int
    end: int
    whole_block: bool = False

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"invalid span [{self.start}, {self.end})")


@dataclass
class GoalField:
    """The declared goal date."""

    span: Span
    value: date
    raw: str  # declared text, before validation
    defaulted: bool = False  # True when `raw` was unusable and `value` is today


@dataclass
class RepeatField:
    """The declared repeat interval, with defaults already applied."""

    span: Span
    amount: int = 1
    unit: RepeatUnit = RepeatUnit.DAY
    spelling: str = "day"  # declared unit word, lower-cased, or "day" if defaulted

    @property
    def text(self) -> str:
        """Canonical ``<amount> <unit>`` form."""
        return f"{self.amount} {self.spelling}"


@dataclass(frozen=True)
class TagToken:
    """One ``#tag`` occurrence on an inline tags line."""

    name: str
    span: Span  # covers the leading '#'


@dataclass
class TagSet:
    """A note's tags in declaration order; duplicates are kept as read."""

    names: list[str]
    span: Span  # inline: the tags line; structured: the whole block
    marker_end: int | None = None  # inline only: offset just after "tags::" and its spaces
    tokens: list[TagToken] = field(default_factory=list)  # inline only

    def has(self, tag: str) -> bool:
        wanted = tag.casefold()
        return any(name.casefold() == wanted for name in self.names)


@dataclass
class StructuredBlock:
    """Parsed metadata block: scalar and flat-list fields in source order."""

    fields: dict[str, str | list[str]]
    span: Span  # the block body between the delimiter lines
    error: ValueError | None = None  # first malformed list item, raised only for effort blocks


@dataclass
class NoteRecord:
    """One note's extracted fields for a single processing cycle."""

    identity: Any  # opaque handle from the document store
    text: str
    notation: Notation
    current_date: date
    goal: GoalField | None = None
    repeat: RepeatField | None = None
    tags: TagSet | None = None
    block: StructuredBlock | None = None

    @property
    def is_valid(self) -> bool:
        """All three fields were located in the text."""
        return self.goal is not None and self.repeat is not None and self.tags is not None

    @property
    def missing(self) -> list[str]:
        names = []
        if self.goal is None:
            names.append("goal")
        if self.repeat is None:
            names.append("repeat")
        if self.tags is None:
            names.append("tags")
        return names
