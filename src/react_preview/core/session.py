"""
Preview sessions.

A session replaces the application entry file with generated code that mounts
one component, runs the dev server, and puts the original entry file back
when the dev server exits or the process is interrupted.

State machine::

    IDLE -> INSTALLING -> ACTIVE -> RESTORING -> IDLE
      \\-> ABORTED (another session owns the entry file)
"""

from __future__ import annotations

import logging
import signal
import subprocess
import threading
import time
from collections.abc import Callable
from enum import StrEnum
from pathlib import Path
from types import FrameType
from typing import Any

from react_preview.core.codegen import render
from react_preview.core.config import load_preview_config
from react_preview.core.descriptor import resolve
from react_preview.core.environment import PreviewSettings, detect_entry_file
from react_preview.core.errors import (
    BackupError,
    ConflictError,
    DevServerError,
    PreviewError,
    NotFoundError,
    PreviewInterrupted,
)
from react_preview.core.ir.preview import Language
from react_preview.core.state import (
    InstanceStore,
    RunningInstanceMarker,
    SessionBackup,
    discard_backup,
    restore_backup,
)
from react_preview.core.watcher import FileWatcher

logger = logging.getLogger(__name__)

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)
TERMINATE_GRACE = 5.0
WAIT_POLL = 0.5

PopenFactory = Callable[..., subprocess.Popen[Any]]


class SessionState(StrEnum):
    IDLE = "idle"
    INSTALLING = "installing"
    ACTIVE = "active"
    RESTORING = "restoring"
    ABORTED = "aborted"


def resolve_entry(
    config_file: Path, settings: PreviewSettings, entry_dir: Path | None = None
) -> tuple[Path, Language]:
    """Entry file a preview of *config_file* replaces, and its language.

    ``output`` in the preview file wins over entry-directory detection.
    """
    config = load_preview_config(config_file)
    if config.output:
        entry_file = (config_file.parent / config.output).resolve()
        if not entry_file.parent.is_dir():
            raise NotFoundError(f"Directory {entry_file.parent} does not exist.")
        language = config.language or (
            Language.TS if entry_file.suffix in (".tsx", ".ts") else Language.JS
        )
        return entry_file, language
    return detect_entry_file(entry_dir, settings.working_dir, config.language)


def render_preview(
    config_file: Path, settings: PreviewSettings, entry_dir: Path | None = None
) -> tuple[Path, str]:
    """Generated entry file content for *config_file*, without touching disk."""
    entry_file, language = resolve_entry(config_file, settings, entry_dir)
    config = load_preview_config(config_file)
    descriptor = resolve(
        config,
        entry_file,
        config_dir=config_file.parent,
        language=language,
        config_file=config_file,
    )
    return entry_file, render(descriptor)


class PreviewSession:
    """
    One run of the dev server against a generated entry file.

    The original entry file is restored on every exit path: normal dev server
    exit, non-zero exit, spawn failure, installation failure, and
    SIGINT/SIGTERM.
    """

    def __init__(
        self,
        config_file: Path,
        settings: PreviewSettings,
        *,
        entry_dir: Path | None = None,
        popen: PopenFactory = subprocess.Popen,
        handle_signals: bool = True,
        poll_interval: float = 0.25,
    ) -> None:
        self.config_file = config_file.resolve()
        self.settings = settings
        self.entry_dir = entry_dir
        self.store = InstanceStore(settings.temp_dir)
        self.state = SessionState.IDLE

        self.entry_file: Path | None = None
        self.language: Language | None = None
        self.backup: SessionBackup | None = None
        self.marker: RunningInstanceMarker | None = None
        self.process: subprocess.Popen[Any] | None = None

        self._popen = popen
        self._handle_signals = handle_signals
        self._poll_interval = poll_interval
        self._watcher: FileWatcher | None = None
        self._lock = threading.Lock()
        self._generated = False
        self._signal: int | None = None
        self._previous_handlers: dict[int, Any] = {}

    def run(self) -> None:
        """Run the session to completion.

        Afterwards ``backup`` tells whether an original entry file was put
        back (set) or the generated one was removed (None).

        Raises:
            ConflictError: If another session owns the entry file.
            DevServerError: If the dev server cannot start or exits non-zero.
            PreviewInterrupted: If SIGINT/SIGTERM ended the session.
            PreviewError: If installation fails (after restoring).
        """
        self.entry_file, self.language = resolve_entry(
            self.config_file, self.settings, self.entry_dir
        )
        if self.store.exists(self.entry_file):
            self.state = SessionState.ABORTED
            raise ConflictError(
                f"Another preview session is already running for {self.entry_file}"
            )

        self.state = SessionState.INSTALLING
        returncode: int | None = None
        try:
            self._install()
            self.state = SessionState.ACTIVE
            returncode = self._supervise()
        finally:
            self._teardown()

        if self._signal is not None:
            raise PreviewInterrupted(
                f"Interrupted by signal {self._signal}", exit_code=128 + self._signal
            )
        if returncode:
            # Killed by a signal: report it the way a shell would
            exit_code = 128 - returncode if returncode < 0 else returncode
            raise DevServerError(f"Dev server exited with code {returncode}", exit_code=exit_code)

    # ------------------------------------------------------------------
    # Installing
    # ------------------------------------------------------------------

    def _install(self) -> None:
        assert self.entry_file is not None and self.language is not None
        if self.entry_file.exists():
            self.backup = self.store.capture_backup(self.entry_file, self.settings.working_dir)
        self.marker = self.store.write_marker(
            self.entry_file, self.settings.working_dir, self.language.value, self.backup
        )
        if self._handle_signals:
            self._install_signal_handlers()

        with self._lock:
            self._write_generated()

        self._watcher = FileWatcher(
            [self.config_file], self._on_config_change, poll_interval=self._poll_interval
        )
        self._watcher.start()

        command = self.settings.command()
        logger.info("Starting dev server: %s", " ".join(command))
        try:
            self.process = self._popen(command, cwd=self.settings.working_dir)
        except OSError as e:
            raise DevServerError(f"Could not start dev server ({' '.join(command)}): {e}") from e

    def _write_generated(self) -> None:
        assert self.entry_file is not None and self.language is not None
        config = load_preview_config(self.config_file)
        descriptor = resolve(
            config,
            self.entry_file,
            config_dir=self.config_file.parent,
            language=self.language,
            config_file=self.config_file,
        )
        code = render(descriptor)
        self._generated = True
        try:
            self.entry_file.write_text(code, encoding="utf-8")
        except OSError as e:
            raise BackupError(f"Could not write {self.entry_file}: {e}") from e
        logger.debug("Wrote generated entry file %s", self.entry_file)

    def _on_config_change(self, path: Path) -> None:
        with self._lock:
            if self.state is not SessionState.ACTIVE:
                return
            try:
                self._write_generated()
            except PreviewError as e:
                logger.warning("Keeping previous preview, %s is invalid: %s", path, e)
                return
        logger.info("Regenerated preview from %s", path)

    # ------------------------------------------------------------------
    # Active
    # ------------------------------------------------------------------

    def _supervise(self) -> int:
        assert self.process is not None
        deadline: float | None = None
        while True:
            try:
                return self.process.wait(timeout=WAIT_POLL)
            except subprocess.TimeoutExpired:
                if self._signal is None:
                    continue
                if deadline is None:
                    deadline = time.monotonic() + TERMINATE_GRACE
                elif time.monotonic() >= deadline:
                    logger.warning("Dev server ignored termination, killing it")
                    self.process.kill()
                    deadline = float("inf")

    def _install_signal_handlers(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread, signal handlers not installed")
            return
        for signum in HANDLED_SIGNALS:
            self._previous_handlers[signum] = signal.signal(signum, self._on_signal)

    def _restore_signal_handlers(self) -> None:
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        self._previous_handlers.clear()

    def _on_signal(self, signum: int, frame: FrameType | None) -> None:
        if self._signal is None:
            self._signal = signum
        if self.state is SessionState.RESTORING:
            return
        logger.info("Received signal %d, stopping dev server", signum)
        if self.process is not None:
            if self.process.poll() is None:
                self.process.terminate()
            return
        raise PreviewInterrupted(f"Interrupted by signal {signum}", exit_code=128 + signum)

    # ------------------------------------------------------------------
    # Restoring
    # ------------------------------------------------------------------

    def _teardown(self) -> None:
        self.state = SessionState.RESTORING
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None

        if self.process is not None and self.process.poll() is None:
            self.process.terminate()
            try:
                self.process.wait(timeout=TERMINATE_GRACE)
            except subprocess.TimeoutExpired:
                self.process.kill()
                self.process.wait()

        with self._lock:
            restored = self._restore_entry_file()
            if self.backup is not None and restored:
                discard_backup(self.backup)
            if self.marker is not None:
                self.store.remove_marker(self.marker)

        self._restore_signal_handlers()
        self.state = SessionState.IDLE

    def _restore_entry_file(self) -> bool:
        assert self.entry_file is not None
        if self.backup is not None:
            try:
                restore_backup(self.backup)
            except BackupError as e:
                logger.warning(
                    "%s; restore it by hand from the backup kept at %s",
                    e,
                    self.backup.backup_file_path,
                )
                return False
            logger.info("Restored %s", self.entry_file)
            return True
        if self._generated:
            try:
                self.entry_file.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Could not remove generated %s: %s", self.entry_file, e)
                return False
        return True


def run_session(
    config_file: Path,
    settings: PreviewSettings,
    *,
    entry_dir: Path | None = None,
    popen: PopenFactory = subprocess.Popen,
    handle_signals: bool = True,
) -> PreviewSession:
    """Run a preview session for *config_file*; see :class:`PreviewSession`."""
    session = PreviewSession(
        config_file,
        settings,
        entry_dir=entry_dir,
        popen=popen,
        handle_signals=handle_signals,
    )
    session.run()
    return session
