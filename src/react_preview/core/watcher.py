"""
Change notifications for preview files.

Polls file modification times on a background thread and calls back when a
watched file changes.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from pathlib import Path

logger = logging.getLogger(__name__)


class FileWatcher:
    """
    Watches files for changes using polling (cross-platform compatible).

    Uses mtime-based change detection to avoid external dependencies.
    Callback errors are logged and discarded; the watcher keeps running.
    """

    def __init__(
        self,
        paths: list[Path],
        on_change: Callable[[Path], None],
        poll_interval: float = 0.25,
    ):
        """
        Initialize the file watcher.

        Args:
            paths: Files to watch
            on_change: Callback when a file changes
            poll_interval: How often to check for changes (seconds)
        """
        self.paths = paths
        self.on_change = on_change
        self.poll_interval = poll_interval

        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._file_mtimes: dict[Path, tuple[int, int]] = {}

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start watching for file changes."""
        self._file_mtimes = self._scan_files()
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._watch_loop, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop watching and wait for an in-flight callback to finish."""
        self._stop_event.set()
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join(timeout=5)
        self._thread = None

    def _scan_files(self) -> dict[Path, tuple[int, int]]:
        """Return (mtime_ns, size) of every watched file that exists."""
        mtimes: dict[Path, tuple[int, int]] = {}
        for watch_path in self.paths:
            try:
                stat = watch_path.stat()
            except OSError:
                continue
            mtimes[watch_path] = (stat.st_mtime_ns, stat.st_size)
        return mtimes

    def check(self) -> list[Path]:
        """Run one poll: fire callbacks for changed files and return them."""
        current_mtimes = self._scan_files()

        changed_files = [
            file_path
            for file_path, stamp in current_mtimes.items()
            if self._file_mtimes.get(file_path) != stamp
        ]
        self._file_mtimes = current_mtimes

        for file_path in changed_files:
            if self._stop_event.is_set():
                break
            try:
                self.on_change(file_path)
            except Exception as e:
                logger.warning("Error handling change to %s: %s", file_path, e)
        return changed_files

    def _watch_loop(self) -> None:
        """Main watch loop that polls for file changes."""
        while not self._stop_event.wait(self.poll_interval):
            try:
                self.check()
            except Exception as e:
                logger.warning("File watcher error: %s", e)
