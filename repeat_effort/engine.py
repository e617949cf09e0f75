"""Recurrence decisions for effort notes.

A note is only touched near the boundary of its next occurrence: once the
computed next goal is within ``skip_window_days`` of today (or the note is
already overdue past it), the goal is advanced one interval and the note is
tagged as an active effort. Everything further away is left alone, so a
scan does not rewrite every note on every trigger.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from .dates import add_interval, days_between
from .models import Notation, NoteRecord

SKIP_WINDOW_DAYS = 4
ACTIVE_TAG = "effort"
OUTPUT_TAG = "output"


@dataclass(frozen=True)
class Decision:
    """Outcome of evaluating one note against the current date."""

    skip: bool
    reached: bool
    next_goal: date
    days_until_next: int
    tags: list[str] = field(default_factory=list)


def has_reached_goal(current: date, goal: date) -> bool:
    return current >= goal


def next_goal_date(record: NoteRecord) -> date:
    """Candidate goal: advanced one interval once reached, unchanged otherwise."""
    goal = record.goal.value
    if has_reached_goal(record.current_date, goal):
        return add_interval(goal, record.repeat.amount, record.repeat.unit)
    return goal


def should_skip(current: date, reached: bool, candidate: date, window: int = SKIP_WINDOW_DAYS) -> bool:
    """Leave the note untouched while the candidate is still beyond the window.

    An overdue note is only processed when today is on or past the advanced
    candidate, or the candidate is within the window.
    """
    return days_between(current, candidate) > window and (not reached or current < candidate)


def normalize_tags(
    names: list[str],
    active_tag: str = ACTIVE_TAG,
    output_tag: str = OUTPUT_TAG,
    *,
    prepend: bool = True,
) -> list[str]:
    """Mark the tag list as an active effort.

    The first ``output_tag`` becomes ``active_tag`` (unless already present);
    any other ``output_tag`` is dropped; a list with neither gains
    ``active_tag`` at the front, or at the end when ``prepend`` is False.
    Comparison is case-insensitive.
    """
    active, output = active_tag.casefold(), output_tag.casefold()
    has_active = any(n.casefold() == active for n in names)

    result: list[str] = []
    replaced = False
    for name in names:
        if name.casefold() == output:
            if not has_active and not replaced:
                result.append(active_tag)
                replaced = True
            continue
        result.append(name)

    if not has_active and not replaced:
        if prepend:
            result.insert(0, active_tag)
        else:
            result.append(active_tag)
    return result


def decide(
    record: NoteRecord,
    *,
    window: int = SKIP_WINDOW_DAYS,
    active_tag: str = ACTIVE_TAG,
    output_tag: str = OUTPUT_TAG,
) -> Decision:
    """Evaluate a valid record. Invalid records must be filtered out beforehand."""
    if not record.is_valid:
        raise ValueError(f"cannot decide on a note missing {', '.join(record.missing)}")

    current = record.current_date
    reached = has_reached_goal(current, record.goal.value)
    candidate = next_goal_date(record)
    skip = should_skip(current, reached, candidate, window)

    return Decision(
        skip=skip,
        reached=reached,
        next_goal=candidate,
        days_until_next=days_between(current, candidate),
        tags=list(record.tags.names) if skip else normalize_tags(
            record.tags.names,
            active_tag,
            output_tag,
            prepend=record.notation is Notation.INLINE,
        ),
    )
