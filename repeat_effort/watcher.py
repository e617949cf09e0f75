"""
File system watcher that triggers scan cycles.

A scan runs whenever the control note (``trigger_note``) is created, saved
or moved into place. Key behaviors:
- Debounces rapid modifications (e.g., editor save cycles)
- Ignores every path except the trigger note
- A scan failure is reported, never fatal to the watch loop
"""

import logging
import time
from pathlib import Path
from typing import Callable

from watchdog.events import (
    FileCreatedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from .config import Settings
from .scan import ScanReport, run_scan, store_for

logger = logging.getLogger(__name__)


class EffortTriggerHandler(FileSystemEventHandler):
    """Runs a scan after the trigger note changes and the change settles."""

    DEBOUNCE_SECONDS = 1.0

    def __init__(
        self,
        vault_path: Path,
        settings: Settings,
        on_scan: Callable[[ScanReport], None] | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the event handler.

        Args:
            vault_path: Path to the vault root
            settings: Scan settings, including the trigger note
            on_scan: Callback receiving each finished scan report
            clock: Time source, replaceable for tests
        """
        super().__init__()
        self.vault_path = vault_path
        self.settings = settings
        self.on_scan = on_scan
        self.clock = clock
        self.trigger_path = (vault_path / settings.trigger_note).resolve()

        # Timestamp of the last trigger event not yet acted on
        self.pending_since: float | None = None

    def _is_trigger(self, path: str | bytes) -> bool:
        if isinstance(path, bytes):
            path = path.decode()
        return Path(path).resolve() == self.trigger_path

    def _mark_pending(self) -> None:
        self.pending_since = self.clock()

    def on_created(self, event: FileCreatedEvent) -> None:
        if not event.is_directory and self._is_trigger(event.src_path):
            self._mark_pending()

    def on_modified(self, event: FileModifiedEvent) -> None:
        if not event.is_directory and self._is_trigger(event.src_path):
            self._mark_pending()

    def on_moved(self, event: FileMovedEvent) -> None:
        # Editors that save via rename land the trigger note as a move target
        if not event.is_directory and self._is_trigger(event.dest_path):
            self._mark_pending()

    def flush_pending(self) -> ScanReport | None:
        """Run one scan if a trigger has passed the debounce window."""
        if self.pending_since is None:
            return None
        if self.clock() - self.pending_since < self.DEBOUNCE_SECONDS:
            return None

        self.pending_since = None
        store = store_for(self.vault_path, self.settings)
        report = run_scan(store, self.settings)
        if self.on_scan:
            self.on_scan(report)
        return report


def watch_vault(
    vault_path: Path,
    settings: Settings,
    on_scan: Callable[[ScanReport], None] | None = None,
) -> tuple[Observer, EffortTriggerHandler]:
    """
    Start watching a vault for trigger note changes.

    Returns:
        Tuple of (observer, handler) - caller should call observer.stop() to stop watching
    """
    handler = EffortTriggerHandler(vault_path=vault_path, settings=settings, on_scan=on_scan)

    observer = Observer()
    observer.schedule(handler, str(vault_path), recursive=True)
    observer.start()

    return observer, handler


def run_watch_loop(
    vault_path: Path,
    settings: Settings,
    on_scan: Callable[[ScanReport], None] | None = None,
) -> None:
    """
    Run the watch loop until interrupted.

    This is a blocking function that watches for trigger events and runs
    pending scans periodically.
    """
    observer, handler = watch_vault(vault_path=vault_path, settings=settings, on_scan=on_scan)

    try:
        while True:
            time.sleep(0.5)
            try:
                handler.flush_pending()
            except Exception as e:
                logger.error("Scan failed: %s", e)
    except KeyboardInterrupt:
        observer.stop()

    observer.join()
