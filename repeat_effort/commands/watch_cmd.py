"""Watch command - run scans whenever the trigger note changes."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from rich.console import Console

from ..audit_log import log_scan
from ..config import Settings
from ..scan import ScanReport, store_for
from ..watcher import run_watch_loop


def run_watch(vault_path: Path, settings: Settings) -> None:
    """
    Watch the vault and scan each time the trigger note is saved.

    This is a blocking command that runs until interrupted (Ctrl+C).
    Each scan is appended to .repeat-effort/audit.log.
    """
    console = Console(stderr=True)
    store = store_for(vault_path, settings)

    console.print(f"[bold]Watching[/bold] {vault_path}")
    console.print(f"  Trigger note: {settings.trigger_note}")
    console.print(f"  Skip window: {settings.skip_window_days} days")
    console.print()
    console.print("[dim]Press Ctrl+C to stop watching[/dim]")
    console.print()

    scan_count = 0

    def on_scan(report: ScanReport) -> None:
        nonlocal scan_count
        scan_count += 1
        log_scan(vault_path, report, trigger="watch", relative=store.relative)
        timestamp = datetime.now().strftime("%H:%M:%S")
        c = report.counts
        line = f"[dim]{timestamp}[/dim] scan: {c['rewritten']} rewritten, {c['skipped']} skipped"
        if c["failed"]:
            line += f", [bold red]{c['failed']} failed[/bold red]"
        console.print(line)
        for outcome in report.by_status("rewritten"):
            console.print(f"  [green]✎[/green] {store.relative(outcome.note)}")
        for outcome in report.by_status("failed"):
            console.print(f"  [red]✗[/red] {store.relative(outcome.note)}: {outcome.message}")

    try:
        run_watch_loop(vault_path=vault_path, settings=settings, on_scan=on_scan)
    except KeyboardInterrupt:
        console.print()
    console.print(f"[bold]Stopped.[/bold] Ran {scan_count} scans.")
