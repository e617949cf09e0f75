"""Directory-backed note store: enumerate, read and write markdown notes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from fnmatch import fnmatch
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class VaultStore:
    """Notes are the ``.md`` files under ``root``; hidden paths are never listed."""

    root: Path
    exclude: tuple[str, ...] = field(default_factory=tuple)

    def relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()

    def _is_excluded(self, path: Path) -> bool:
        rel = self.relative(path)
        return any(fnmatch(rel, pattern) for pattern in self.exclude)

    def list_notes(self) -> list[Path]:
        notes = []
        for md_file in self.root.rglob("*.md"):
            rel_parts = md_file.relative_to(self.root).parts
            # Skip hidden files and directories (.obsidian, .trash, .repeat-effort)
            if any(part.startswith(".") for part in rel_parts):
                continue
            if not md_file.is_file() or self._is_excluded(md_file):
                continue
            notes.append(md_file)
        return sorted(notes)

    def read_text(self, note: Path) -> str:
        # newline="" keeps \r\n intact so rewrites touch only the edited spans
        with note.open("r", encoding="utf-8", newline="") as f:
            return f.read()

    def write_text(self, note: Path, content: str) -> bool:
        """Persist ``content``; returns False (and logs) when the write fails."""
        try:
            with note.open("w", encoding="utf-8", newline="") as f:
                f.write(content)
        except OSError as e:
            logger.error("Failed to write %s: %s", self.relative(note), e)
            return False
        logger.info("Updated %s", self.relative(note))
        return True
