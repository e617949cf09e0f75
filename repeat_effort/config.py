"""Settings loaded from the vault's ``.repeat-effort/config.toml``."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .engine import ACTIVE_TAG, OUTPUT_TAG, SKIP_WINDOW_DAYS
from .vault.parser import GOAL_FORMATS

STATE_DIR = ".repeat-effort"
CONFIG_NAME = "config.toml"


@dataclass(frozen=True)
class Settings:
    trigger_note: str = "Atlas/Efforts.md"
    skip_window_days: int = SKIP_WINDOW_DAYS
    goal_formats: str = "lenient"
    active_tag: str = ACTIVE_TAG
    output_tag: str = OUTPUT_TAG
    exclude: tuple[str, ...] = field(default_factory=tuple)


def state_dir(vault_path: Path) -> Path:
    return vault_path / STATE_DIR


def default_config_path(vault_path: Path) -> Path:
    return state_dir(vault_path) / CONFIG_NAME


def _string(data: dict[str, Any], key: str, default: str) -> str:
    value = data.get(key, default)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{key} must be a non-empty string")
    return value.strip()


def settings_from_dict(data: dict[str, Any]) -> Settings:
    """Validate raw TOML data into Settings; unknown keys are ignored."""
    defaults = Settings()

    window = data.get("skip_window_days", defaults.skip_window_days)
    if isinstance(window, bool) or not isinstance(window, int) or window < 0:
        raise ValueError("skip_window_days must be a non-negative integer")

    goal_formats = _string(data, "goal_formats", defaults.goal_formats)
    if goal_formats not in GOAL_FORMATS:
        raise ValueError(f"goal_formats must be one of: {', '.join(GOAL_FORMATS)}")

    exclude = data.get("exclude", [])
    if not isinstance(exclude, list) or not all(isinstance(p, str) for p in exclude):
        raise ValueError("exclude must be a list of glob strings")

    return Settings(
        trigger_note=_string(data, "trigger_note", defaults.trigger_note).lstrip("/"),
        skip_window_days=window,
        goal_formats=goal_formats,
        active_tag=_string(data, "active_tag", defaults.active_tag).lstrip("#"),
        output_tag=_string(data, "output_tag", defaults.output_tag).lstrip("#"),
        exclude=tuple(exclude),
    )


def load_settings(path: Path) -> Settings:
    """Load settings from TOML; a missing file yields the defaults."""
    import tomllib

    if not path.exists():
        return Settings()

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Failed to parse {path}: {e}") from e

    return settings_from_dict(data)
