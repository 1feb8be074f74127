"""
Session state persisted in the temp directory.

Tracks:
- Running-instance markers (one JSON file per active session)
- Entry file backups (raw copy of the original entry file)

Markers carry enough information to restore the entry file after a crash,
see :func:`recover_stale_sessions`.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from react_preview.core.codegen import GENERATED_MARKER
from react_preview.core.errors import BackupError

logger = logging.getLogger(__name__)

MARKER_PREFIX = "react_preview_"
MARKER_SUFFIX = ".json"
BACKUP_SUFFIX = ".bak"


@dataclass
class SessionBackup:
    """Original entry file captured before it is replaced."""

    original_file_path: Path
    original_content: bytes
    original_file_mode: int
    working_directory: Path
    backup_file_path: Path
    created_at: str


@dataclass
class RunningInstanceMarker:
    """
    Advisory record of an active session.

    Serialized as ``{indexFilename, workingDirectory, language, createdAt}``
    plus the recovery fields ``pid``, ``fileMode`` and ``backupFile``.
    """

    index_filename: Path
    working_directory: Path
    language: str
    created_at: str
    marker_file: Path
    pid: int = 0
    file_mode: int | None = None
    backup_file: Path | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "indexFilename": str(self.index_filename),
            "workingDirectory": str(self.working_directory),
            "language": self.language,
            "createdAt": self.created_at,
            "pid": self.pid,
            "fileMode": self.file_mode,
            "backupFile": str(self.backup_file) if self.backup_file else None,
        }

    @staticmethod
    def from_dict(data: dict[str, Any], marker_file: Path) -> RunningInstanceMarker:
        """Create a marker from its JSON form."""
        backup = data.get("backupFile")
        return RunningInstanceMarker(
            index_filename=Path(data["indexFilename"]),
            working_directory=Path(data.get("workingDirectory", "")),
            language=data.get("language", ""),
            created_at=data.get("createdAt", ""),
            marker_file=marker_file,
            pid=int(data.get("pid") or 0),
            file_mode=data.get("fileMode"),
            backup_file=Path(backup) if backup else None,
        )


def _now() -> str:
    return datetime.now(UTC).isoformat()


class InstanceStore:
    """Markers and backups under one temp directory."""

    def __init__(self, temp_dir: Path) -> None:
        self.temp_dir = temp_dir

    def markers(self) -> list[RunningInstanceMarker]:
        """All readable markers; unreadable ones are logged and skipped."""
        if not self.temp_dir.is_dir():
            return []
        markers = []
        for entry in sorted(self.temp_dir.iterdir()):
            if not (
                entry.is_file()
                and entry.name.startswith(MARKER_PREFIX)
                and entry.name.endswith(MARKER_SUFFIX)
            ):
                continue
            try:
                data = json.loads(entry.read_text(encoding="utf-8"))
                markers.append(RunningInstanceMarker.from_dict(data, entry))
            except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Ignoring unreadable marker %s: %s", entry, e)
        return markers

    def find(self, index_filename: Path) -> RunningInstanceMarker | None:
        """Marker of the session targeting *index_filename*, if any."""
        target = str(index_filename)
        for marker in self.markers():
            if str(marker.index_filename) == target:
                return marker
        return None

    def exists(self, index_filename: Path) -> bool:
        return self.find(index_filename) is not None

    def capture_backup(self, entry_file: Path, working_dir: Path) -> SessionBackup:
        """Copy the entry file into the temp directory and remember its content.

        Raises:
            BackupError: If the entry file cannot be read or copied.
        """
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        backup_file = self.temp_dir / f"{uuid.uuid4().hex}{BACKUP_SUFFIX}"
        try:
            content = entry_file.read_bytes()
            mode = entry_file.stat().st_mode
            shutil.copyfile(entry_file, backup_file)
        except OSError as e:
            backup_file.unlink(missing_ok=True)
            raise BackupError(f"Cannot back up {entry_file}: {e}") from e
        logger.debug("Backed up %s to %s", entry_file, backup_file)
        return SessionBackup(
            original_file_path=entry_file,
            original_content=content,
            original_file_mode=mode,
            working_directory=working_dir,
            backup_file_path=backup_file,
            created_at=_now(),
        )

    def write_marker(
        self,
        index_filename: Path,
        working_dir: Path,
        language: str,
        backup: SessionBackup | None = None,
    ) -> RunningInstanceMarker:
        """Persist a marker for a new session.

        Raises:
            BackupError: If the marker cannot be written.
        """
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        marker = RunningInstanceMarker(
            index_filename=index_filename,
            working_directory=working_dir,
            language=language,
            created_at=_now(),
            marker_file=self.temp_dir / f"{MARKER_PREFIX}{uuid.uuid4()}{MARKER_SUFFIX}",
            pid=os.getpid(),
            file_mode=backup.original_file_mode if backup else None,
            backup_file=backup.backup_file_path if backup else None,
        )
        try:
            marker.marker_file.write_text(json.dumps(marker.to_dict()), encoding="utf-8")
        except OSError as e:
            raise BackupError(f"Cannot write marker {marker.marker_file}: {e}") from e
        return marker

    def remove_marker(self, marker: RunningInstanceMarker) -> None:
        try:
            marker.marker_file.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove marker %s: %s", marker.marker_file, e)


def restore_backup(backup: SessionBackup) -> None:
    """Write the original content back over the entry file.

    Falls back to copying the persisted backup file if the direct write fails.

    Raises:
        BackupError: If both attempts fail.
    """
    target = backup.original_file_path
    try:
        target.write_bytes(backup.original_content)
        os.chmod(target, backup.original_file_mode)
        return
    except OSError as e:
        logger.warning("Restoring %s failed (%s), copying backup file instead", target, e)

    try:
        shutil.copyfile(backup.backup_file_path, target)
        os.chmod(target, backup.original_file_mode)
    except OSError as e:
        raise BackupError(
            f"Could not restore {target}; original content is kept in {backup.backup_file_path}"
        ) from e


def discard_backup(backup: SessionBackup) -> None:
    try:
        backup.backup_file_path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Could not remove backup %s: %s", backup.backup_file_path, e)


def _pid_alive(pid: int) -> bool:
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    except OSError:
        return False
    return True


def is_generated_file(path: Path) -> bool:
    """True if *path* holds a generated entry file."""
    try:
        with path.open(encoding="utf-8") as f:
            return f.readline().strip() == GENERATED_MARKER
    except (OSError, UnicodeDecodeError):
        return False


def recover_stale_sessions(store: InstanceStore) -> list[RunningInstanceMarker]:
    """Restore entry files left behind by sessions whose process is gone.

    Returns:
        The markers that were recovered.
    """
    recovered = []
    for marker in store.markers():
        if _pid_alive(marker.pid) and marker.pid != os.getpid():
            logger.debug("Session %s (pid %d) is still running", marker.index_filename, marker.pid)
            continue

        target = marker.index_filename
        if marker.backup_file is not None:
            if not marker.backup_file.is_file():
                logger.warning("Backup %s for %s is missing", marker.backup_file, target)
            else:
                try:
                    shutil.copyfile(marker.backup_file, target)
                    if marker.file_mode is not None:
                        os.chmod(target, marker.file_mode)
                except OSError as e:
                    raise BackupError(f"Could not restore {target}: {e}") from e
                marker.backup_file.unlink(missing_ok=True)
        elif target.exists() and is_generated_file(target):
            target.unlink()

        store.remove_marker(marker)
        logger.info("Recovered %s", target)
        recovered.append(marker)
    return recovered
