"""Pytest configuration and fixtures."""

from datetime import date
from pathlib import Path
from typing import Callable

import pytest

from repeat_effort.config import Settings
from repeat_effort.models import NoteRecord
from repeat_effort.vault.parser import extract_note


@pytest.fixture
def vault_path(tmp_path: Path) -> Path:
    """An empty vault with the default trigger note in place."""
    vault = tmp_path / "vault"
    (vault / ".obsidian").mkdir(parents=True)
    (vault / "Atlas").mkdir()
    (vault / "Atlas" / "Efforts.md").write_text("# Efforts\n", encoding="utf-8")
    return vault


@pytest.fixture
def write_note(vault_path: Path) -> Callable[[str, str], Path]:
    """Write a note relative to the vault root and return its path."""

    def _write(rel: str, text: str) -> Path:
        path = vault_path / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8", newline="")
        return path

    return _write


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def record_for() -> Callable[..., NoteRecord]:
    """Extract a NoteRecord from text as of a given date."""

    def _record(text: str, today: date, **kwargs) -> NoteRecord:
        return extract_note("note.md", text, today, **kwargs)

    return _record
