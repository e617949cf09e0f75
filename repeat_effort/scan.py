"""One scan cycle over every note in a store.

Each note is read, parsed, decided and rewritten on its own. A failure in
one note is logged and recorded in the report; it never stops the scan.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Callable, Literal, Protocol, Sequence

from . import dates
from .config import Settings
from .engine import Decision, decide
from .models import NoteRecord
from .rewriter import rewrite
from .vault.parser import extract_note
from .vault.store import VaultStore

logger = logging.getLogger(__name__)

Status = Literal["rewritten", "unchanged", "skipped", "invalid", "failed"]


class NoteStore(Protocol):
    """What a scan needs from the document store."""

    def list_notes(self) -> Sequence[Any]: ...

    def read_text(self, note: Any) -> str: ...

    def write_text(self, note: Any, content: str) -> bool: ...


@dataclass
class NoteOutcome:
    note: Any
    status: Status
    previous_goal: date | None = None
    next_goal: date | None = None
    message: str | None = None

    def to_dict(self, relative: Callable[[Any], str] = str) -> dict[str, Any]:
        d: dict[str, Any] = {"note": relative(self.note), "status": self.status}
        if self.previous_goal:
            d["previous_goal"] = dates.format_goal(self.previous_goal)
        if self.next_goal:
            d["next_goal"] = dates.format_goal(self.next_goal)
        if self.message:
            d["message"] = self.message
        return d


@dataclass
class ScanReport:
    today: date
    dry_run: bool = False
    outcomes: list[NoteOutcome] = field(default_factory=list)

    def by_status(self, status: Status) -> list[NoteOutcome]:
        return [o for o in self.outcomes if o.status == status]

    @property
    def counts(self) -> dict[str, int]:
        counts = {"scanned": len(self.outcomes)}
        for status in ("rewritten", "unchanged", "skipped", "invalid", "failed"):
            counts[status] = len(self.by_status(status))
        return counts

    @property
    def failed(self) -> bool:
        return any(o.status == "failed" for o in self.outcomes)

    def to_dict(self, relative: Callable[[Any], str] = str) -> dict[str, Any]:
        return {
            "today": dates.format_goal(self.today),
            "dry_run": self.dry_run,
            "counts": self.counts,
            "notes": [o.to_dict(relative) for o in self.outcomes if o.status != "invalid"],
        }


def evaluate(record: NoteRecord, settings: Settings) -> tuple[Decision, str]:
    """Decide on a valid record and produce the text it should have."""
    decision = decide(
        record,
        window=settings.skip_window_days,
        active_tag=settings.active_tag,
        output_tag=settings.output_tag,
    )
    if decision.skip:
        return decision, record.text
    new_text = rewrite(record, decision, active_tag=settings.active_tag, output_tag=settings.output_tag)
    return decision, new_text


def process_note(
    store: NoteStore,
    note: Any,
    settings: Settings,
    today: date,
    *,
    dry_run: bool = False,
) -> NoteOutcome:
    """Run read → parse → decide → rewrite → persist for a single note."""
    text = store.read_text(note)
    record = extract_note(note, text, today, goal_formats=settings.goal_formats)
    if not record.is_valid:
        return NoteOutcome(note, "invalid")

    decision, new_text = evaluate(record, settings)
    previous = record.goal.value
    if decision.skip:
        return NoteOutcome(note, "skipped", previous, decision.next_goal)
    if new_text == text:
        return NoteOutcome(note, "unchanged", previous, decision.next_goal)
    if not dry_run and not store.write_text(note, new_text):
        return NoteOutcome(note, "failed", previous, decision.next_goal, "write failed")
    return NoteOutcome(note, "rewritten", previous, decision.next_goal)


def run_scan(
    store: NoteStore,
    settings: Settings | None = None,
    *,
    today: date | None = None,
    dry_run: bool = False,
) -> ScanReport:
    """Process every note the store lists, sequentially."""
    settings = settings or Settings()
    today = today or dates.today()
    report = ScanReport(today=today, dry_run=dry_run)

    for note in store.list_notes():
        try:
            outcome = process_note(store, note, settings, today, dry_run=dry_run)
        except Exception as e:
            logger.warning("Failed to process %s: %s", note, e)
            outcome = NoteOutcome(note, "failed", message=str(e))
        report.outcomes.append(outcome)

    logger.debug("Scan finished: %s", report.counts)
    return report


def store_for(vault_path: Path, settings: Settings) -> VaultStore:
    """The vault store a scan runs over; the trigger note itself is never scanned."""
    return VaultStore(vault_path, exclude=(*settings.exclude, settings.trigger_note))
