"""
Audit log of scan cycles.

Every scan that may have written notes appends one JSON Lines entry to
``<vault>/.repeat-effort/audit.log`` recording what was rewritten and what
failed, so rewrites of note text can be traced after the fact.
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from .config import state_dir
from .scan import ScanReport


@dataclass
class ScanCounts:
    """Per-status note counts for one scan."""
    scanned: int = 0
    rewritten: int = 0
    unchanged: int = 0
    skipped: int = 0
    invalid: int = 0
    failed: int = 0


@dataclass
class AuditEntry:
    """A single audit log entry."""
    timestamp: str
    trigger: str
    today: str
    counts: ScanCounts
    rewritten: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp,
            "trigger": self.trigger,
            "today": self.today,
            "counts": asdict(self.counts),
            "rewritten": self.rewritten,
            "failed": self.failed,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AuditEntry":
        """Create from dictionary."""
        return cls(
            timestamp=data["timestamp"],
            trigger=data.get("trigger", "unknown"),
            today=data.get("today", ""),
            counts=ScanCounts(**data.get("counts", {})),
            rewritten=list(data.get("rewritten", [])),
            failed=dict(data.get("failed", {})),
        )


def get_audit_log_path(vault_path: Path) -> Path:
    """Get the path to the audit log file."""
    return state_dir(vault_path) / "audit.log"


def log_scan(
    vault_path: Path,
    report: ScanReport,
    trigger: str = "manual",
    relative: Callable[[Any], str] = str,
) -> AuditEntry:
    """
    Append a scan report to the audit log.

    Args:
        vault_path: Path to the vault
        report: Finished scan report
        trigger: What started the scan (e.g., "manual", "watch")
        relative: Callable turning a note handle into a display path

    Returns:
        The created audit entry
    """
    entry = AuditEntry(
        timestamp=datetime.now(timezone.utc).isoformat(),
        trigger=trigger,
        today=report.today.isoformat(),
        counts=ScanCounts(**report.counts),
        rewritten=[relative(o.note) for o in report.by_status("rewritten")],
        failed={relative(o.note): o.message or "" for o in report.by_status("failed")},
    )

    log_path = get_audit_log_path(vault_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # Append as JSON Lines format (one JSON object per line)
    with log_path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(entry.to_dict()) + "\n")

    return entry


def read_audit_log(vault_path: Path, last_n: int | None = None) -> list[AuditEntry]:
    """
    Read entries from the audit log.

    Args:
        vault_path: Path to the vault
        last_n: If specified, return only the last N entries

    Returns:
        List of audit entries, oldest first
    """
    log_path = get_audit_log_path(vault_path)
    if not log_path.exists():
        return []

    entries = []
    with log_path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                try:
                    data = json.loads(line)
                    entries.append(AuditEntry.from_dict(data))
                except (json.JSONDecodeError, KeyError, TypeError):
                    continue  # Skip malformed lines

    if last_n is not None:
        return entries[-last_n:] if last_n > 0 else []
    return entries


def format_audit_entry(entry: AuditEntry) -> str:
    """Format an audit entry for human-readable display."""
    c = entry.counts
    lines = [
        f"[{entry.timestamp}] scan ({entry.trigger}) as of {entry.today}",
        f"  Notes: {c.scanned} scanned, {c.rewritten} rewritten, {c.skipped} skipped, {c.failed} failed",
    ]

    for path in entry.rewritten:
        lines.append(f"  rewritten: {path}")
    for path, message in entry.failed.items():
        lines.append(f"  failed: {path} ({message})")

    return "\n".join(lines)
