"""Tests for running-instance markers, backups and stale session recovery."""

from __future__ import annotations

import json
import os
import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from react_preview.core.codegen import GENERATED_MARKER
from react_preview.core.errors import BackupError
from react_preview.core.state import (
    MARKER_PREFIX,
    InstanceStore,
    discard_backup,
    is_generated_file,
    recover_stale_sessions,
    restore_backup,
)

DEAD_PID = 999_999_999


@pytest.fixture
def store(tmp_path: Path) -> InstanceStore:
    return InstanceStore(tmp_path / "state" / "temp")


class TestMarkers:
    def test_write_and_find(self, store: InstanceStore, entry_file: Path, project: Path) -> None:
        marker = store.write_marker(entry_file, project, "ts")
        assert marker.marker_file.name.startswith(MARKER_PREFIX)
        assert marker.marker_file.suffix == ".json"
        assert store.exists(entry_file)
        found = store.find(entry_file)
        assert found is not None
        assert found.pid == os.getpid()
        assert found.backup_file is None

    def test_json_fields(self, store: InstanceStore, entry_file: Path, project: Path) -> None:
        marker = store.write_marker(entry_file, project, "ts")
        data = json.loads(marker.marker_file.read_text())
        assert data["indexFilename"] == str(entry_file)
        assert data["workingDirectory"] == str(project)
        assert data["language"] == "ts"
        assert "createdAt" in data

    def test_other_entry_file_not_found(
        self, store: InstanceStore, entry_file: Path, project: Path
    ) -> None:
        store.write_marker(entry_file, project, "ts")
        assert not store.exists(project / "other" / "index.tsx")

    def test_remove(self, store: InstanceStore, entry_file: Path, project: Path) -> None:
        marker = store.write_marker(entry_file, project, "ts")
        store.remove_marker(marker)
        assert not store.exists(entry_file)
        store.remove_marker(marker)

    def test_unreadable_marker_ignored(self, store: InstanceStore) -> None:
        store.temp_dir.mkdir(parents=True)
        (store.temp_dir / f"{MARKER_PREFIX}broken.json").write_text("{not json")
        (store.temp_dir / "unrelated.json").write_text("{}")
        assert store.markers() == []

    def test_missing_temp_dir(self, store: InstanceStore) -> None:
        assert store.markers() == []


class TestBackup:
    def test_capture_and_restore(
        self, store: InstanceStore, entry_file: Path, project: Path
    ) -> None:
        original = entry_file.read_bytes()
        os.chmod(entry_file, 0o640)
        backup = store.capture_backup(entry_file, project)
        assert backup.backup_file_path.read_bytes() == original

        entry_file.write_text("generated")
        os.chmod(entry_file, 0o600)
        restore_backup(backup)
        assert entry_file.read_bytes() == original
        assert stat.S_IMODE(entry_file.stat().st_mode) == 0o640

    def test_restore_falls_back_to_backup_file(
        self, store: InstanceStore, entry_file: Path, project: Path
    ) -> None:
        original = entry_file.read_bytes()
        backup = store.capture_backup(entry_file, project)
        entry_file.write_text("generated")
        with patch.object(Path, "write_bytes", side_effect=OSError("disk full")):
            restore_backup(backup)
        assert entry_file.read_bytes() == original

    def test_restore_fails_when_both_paths_fail(
        self, store: InstanceStore, entry_file: Path, project: Path
    ) -> None:
        backup = store.capture_backup(entry_file, project)
        backup.backup_file_path.unlink()
        with patch.object(Path, "write_bytes", side_effect=OSError("disk full")):
            with pytest.raises(BackupError):
                restore_backup(backup)

    def test_capture_missing_file(self, store: InstanceStore, project: Path) -> None:
        with pytest.raises(BackupError):
            store.capture_backup(project / "src" / "missing.tsx", project)

    def test_discard(self, store: InstanceStore, entry_file: Path, project: Path) -> None:
        backup = store.capture_backup(entry_file, project)
        discard_backup(backup)
        assert not backup.backup_file_path.exists()

    def test_marker_records_backup(
        self, store: InstanceStore, entry_file: Path, project: Path
    ) -> None:
        backup = store.capture_backup(entry_file, project)
        marker = store.write_marker(entry_file, project, "ts", backup)
        data = json.loads(marker.marker_file.read_text())
        assert data["backupFile"] == str(backup.backup_file_path)
        assert data["fileMode"] == backup.original_file_mode


class TestRecovery:
    def _orphan(self, marker_file: Path) -> None:
        data = json.loads(marker_file.read_text())
        data["pid"] = DEAD_PID
        marker_file.write_text(json.dumps(data))

    def test_restores_backup_of_dead_session(
        self, store: InstanceStore, entry_file: Path, project: Path
    ) -> None:
        original = entry_file.read_bytes()
        backup = store.capture_backup(entry_file, project)
        marker = store.write_marker(entry_file, project, "ts", backup)
        entry_file.write_text(GENERATED_MARKER + "\nleftover\n")
        self._orphan(marker.marker_file)

        recovered = recover_stale_sessions(store)

        assert [m.index_filename for m in recovered] == [entry_file]
        assert entry_file.read_bytes() == original
        assert not marker.marker_file.exists()
        assert not backup.backup_file_path.exists()

    def test_removes_generated_file_without_backup(
        self, store: InstanceStore, project: Path
    ) -> None:
        entry = project / "src" / "index.jsx"
        marker = store.write_marker(entry, project, "js")
        entry.write_text(GENERATED_MARKER + "\n")
        self._orphan(marker.marker_file)

        recover_stale_sessions(store)
        assert not entry.exists()

    def test_keeps_user_file_without_backup(self, store: InstanceStore, project: Path) -> None:
        entry = project / "src" / "index.jsx"
        marker = store.write_marker(entry, project, "js")
        entry.write_text("user content\n")
        self._orphan(marker.marker_file)

        recover_stale_sessions(store)
        assert entry.read_text() == "user content\n"

    def test_live_session_untouched(
        self, store: InstanceStore, entry_file: Path, project: Path
    ) -> None:
        marker = store.write_marker(entry_file, project, "ts")
        with patch("react_preview.core.state.os.getpid", return_value=-1):
            assert recover_stale_sessions(store) == []
        assert marker.marker_file.exists()


def test_is_generated_file(tmp_path: Path) -> None:
    generated = tmp_path / "gen.tsx"
    generated.write_text(GENERATED_MARKER + "\nimport React from 'react';\n")
    plain = tmp_path / "plain.tsx"
    plain.write_text("import React from 'react';\n")
    assert is_generated_file(generated)
    assert not is_generated_file(plain)
    assert not is_generated_file(tmp_path / "missing.tsx")
