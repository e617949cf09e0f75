"""Scan, check and log command implementations."""

import json
from datetime import date
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..audit_log import format_audit_entry, log_scan, read_audit_log
from ..config import Settings
from ..dates import format_goal
from ..scan import ScanReport, evaluate, run_scan, store_for
from ..vault.block import MalformedStructuredList
from ..vault.parser import extract_note
from ..vault.store import VaultStore

STATUS_STYLES = {
    "rewritten": "green",
    "unchanged": "dim",
    "skipped": "dim",
    "failed": "bold red",
}


def _goal(value: date | None) -> str:
    return format_goal(value) if value else "-"


def run_scan_command(
    vault_path: Path,
    settings: Settings,
    *,
    today: date | None = None,
    dry_run: bool = False,
    output_json: bool = False,
    trigger: str = "manual",
) -> int:
    """Run one scan cycle and report it.

    Returns:
        Exit code (0 = success, 1 = at least one note failed)
    """
    err = Console(stderr=True)
    store = store_for(vault_path, settings)

    err.print(f"Scanning {vault_path}...", style="dim")
    report = run_scan(store, settings, today=today, dry_run=dry_run)

    if not dry_run:
        log_scan(vault_path, report, trigger=trigger, relative=store.relative)

    if output_json:
        print(json.dumps(report.to_dict(store.relative), indent=2))
    else:
        print_report(Console(), report, store)

    return 1 if report.failed else 0


def print_report(console: Console, report: ScanReport, store: VaultStore) -> None:
    """Render a scan report as a table plus a one-line summary."""
    title = f"Effort scan as of {format_goal(report.today)}"
    if report.dry_run:
        title += " (dry run)"

    shown = [o for o in report.outcomes if o.status != "invalid"]
    if shown:
        table = Table(title=title)
        table.add_column("Note")
        table.add_column("Status")
        table.add_column("Goal", style="dim")
        table.add_column("Next goal", style="cyan")
        table.add_column("Details")
        for o in shown:
            style = STATUS_STYLES.get(o.status, "")
            table.add_row(
                store.relative(o.note),
                f"[{style}]{o.status}[/{style}]" if style else o.status,
                _goal(o.previous_goal),
                _goal(o.next_goal),
                o.message or "",
            )
        console.print(table)
    else:
        console.print(f"[bold]{title}[/bold]")
        console.print("[dim]No effort notes found.[/dim]")

    c = report.counts
    console.print(
        f"Notes: {c['scanned']} scanned, {c['rewritten']} rewritten, "
        f"{c['skipped']} skipped, {c['unchanged']} unchanged, {c['failed']} failed"
    )


def run_check(
    vault_path: Path,
    settings: Settings,
    note: str,
    *,
    today: date | None = None,
    output_json: bool = False,
) -> int:
    """Show how one note parses and what a scan would do to it. Never writes."""
    from ..dates import today as current_date

    err = Console(stderr=True)
    store = VaultStore(vault_path)
    path = Path(note)
    if not path.is_absolute():
        path = vault_path / path
    if not path.is_file():
        err.print(f"Note not found: {note}", style="bold red")
        return 1

    today = today or current_date()
    text = store.read_text(path)
    try:
        record = extract_note(path, text, today, goal_formats=settings.goal_formats)
    except MalformedStructuredList as e:
        err.print(f"Malformed metadata block in {store.relative(path)}: {e}", style="bold red")
        return 1

    data: dict = {
        "note": store.relative(path),
        "notation": record.notation.value,
        "valid": record.is_valid,
        "missing": record.missing,
    }
    if record.goal:
        data["goal"] = format_goal(record.goal.value)
        data["goal_defaulted"] = record.goal.defaulted
    if record.repeat:
        data["repeat"] = record.repeat.text
    if record.tags:
        data["tags"] = record.tags.names

    if record.is_valid:
        decision, new_text = evaluate(record, settings)
        data["decision"] = {
            "action": "skip" if decision.skip else ("unchanged" if new_text == text else "rewrite"),
            "reached": decision.reached,
            "next_goal": format_goal(decision.next_goal),
            "days_until_next": decision.days_until_next,
            "tags": decision.tags,
        }

    if output_json:
        print(json.dumps(data, indent=2))
        return 0

    console = Console()
    table = Table(title=f"{data['note']} ({data['notation']})", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    for key in ("goal", "repeat", "tags"):
        value = data.get(key)
        if value is None:
            table.add_row(key, "[yellow]missing[/yellow]")
        elif key == "tags":
            table.add_row(key, " ".join(f"#{t}" for t in value))
        elif key == "goal" and data["goal_defaulted"]:
            table.add_row(key, f"{value} [yellow](invalid date, using today)[/yellow]")
        else:
            table.add_row(key, str(value))
    console.print(table)

    decision = data.get("decision")
    if decision is None:
        console.print("[dim]Not an effort note: scans leave it alone.[/dim]")
    else:
        console.print(
            f"Action: [bold]{decision['action']}[/bold] "
            f"(next goal {decision['next_goal']}, {decision['days_until_next']} days away)"
        )
    return 0


def run_log(vault_path: Path, *, last_n: int | None = None, output_json: bool = False) -> int:
    """Show recorded scan cycles."""
    entries = read_audit_log(vault_path, last_n=last_n)

    if output_json:
        print(json.dumps([e.to_dict() for e in entries], indent=2))
        return 0

    console = Console()
    if not entries:
        console.print("[dim]No scans recorded.[/dim]")
        return 0

    for entry in entries:
        console.print(format_audit_entry(entry), highlight=False)
    return 0
