"""Tests for BackupService export and import."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from flexrunner.domain.types import Zone
from flexrunner.infrastructure.kvstore import MemoryKeyValueStore
from flexrunner.services.backup import IMPORT_ERROR_MESSAGE, BackupService, backup_filename
from flexrunner.services.result import ErrorCode
from flexrunner.services.store import StateStore
from tests.conftest import FIXED_NOW, deliver, load


class TestExport:
    def test_document(self, store: StateStore, backup: BackupService) -> None:
        load(store, "trunk", "1", "2")
        deliver(store, "2")
        result = backup.export_data()
        assert result.ok
        doc = json.loads(result.data["document"])
        assert doc["packages"] == {"1": "trunk", "2": "trunk"}
        assert doc["delivered"] == ["2"]
        assert doc["packageRange"] == 50
        assert doc["exportDate"] == "2026-10-19T08:30:00.125Z"
        assert doc["version"] == "v10"
        assert result.data["filename"] == "flexrunner-backup-2026-10-19.json"

    def test_export_does_not_change_state(self, store: StateStore, backup: BackupService) -> None:
        load(store, "trunk", "1")
        backup.export_data()
        assert store.model.packages == {"1": Zone.TRUNK}
        assert len(store.history) == 1

    def test_write_backup(self, backup: BackupService, tmp_path: Path) -> None:
        target = tmp_path / "out" / "load.json"
        result = backup.write_backup(target)
        assert result.ok
        assert result.data["path"] == str(target)
        assert json.loads(target.read_text(encoding="utf-8"))["version"] == "v10"

    def test_write_backup_default_name(
        self, backup: BackupService, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        result = backup.write_backup()
        assert (tmp_path / backup_filename(FIXED_NOW)).is_file()
        assert result.ok

    def test_write_backup_failure(self, backup: BackupService, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        result = backup.write_backup(blocker / "nested" / "load.json")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == ErrorCode.FILE_ERROR


class TestImport:
    def test_round_trip_is_noop(self, store: StateStore, backup: BackupService) -> None:
        load(store, "passenger", "3", "12")
        load(store, "backright", "7")
        deliver(store, "12")
        store.set_range(30)
        before = (dict(store.model.packages), list(store.model.delivered), 30)

        result = backup.import_data(backup.export_data().data["document"])
        assert result.ok
        after = (dict(store.model.packages), list(store.model.delivered), store.model.package_range)
        assert after == before

    def test_partial_import(self, store: StateStore, backup: BackupService) -> None:
        load(store, "trunk", "5")
        deliver(store, "5")
        store.set_range(20)
        result = backup.import_data('{"packages": {"1": "trunk"}}')
        assert result.ok
        assert result.data["imported"] == ["packages"]
        assert store.model.packages == {"1": Zone.TRUNK}
        assert store.model.delivered == ["5"]
        assert store.model.package_range == 20

    def test_import_persists(
        self, store: StateStore, backup: BackupService, kv: MemoryKeyValueStore
    ) -> None:
        backup.import_data('{"packages": {"2": "backmid"}, "packageRange": 35}')
        assert kv.get_item("packages_v10") == '{"2":"backmid"}'
        assert kv.get_item("packageRange_v10") == "35"

    def test_skipped_fields_are_warnings(self, store: StateStore, backup: BackupService) -> None:
        result = backup.import_data('{"packages": [1, 2], "packageRange": 35}')
        assert result.ok
        assert result.data["skipped"] == ["packages"]
        assert result.warnings[0].startswith("Skipped packages")
        assert store.model.package_range == 35

    def test_malformed_document(self, store: StateStore, backup: BackupService) -> None:
        load(store, "trunk", "1")
        result = backup.import_data("[1, 2, 3]")
        assert result.error is not None
        assert result.error.code == ErrorCode.IMPORT_MALFORMED
        assert result.error.message == IMPORT_ERROR_MESSAGE
        assert store.model.packages == {"1": Zone.TRUNK}

    def test_parse_failure(self, store: StateStore, backup: BackupService) -> None:
        result = backup.import_data("not json at all")
        assert result.error is not None
        assert result.error.code == ErrorCode.IMPORT_PARSE_FAILED

    def test_import_keeps_history(self, store: StateStore, backup: BackupService) -> None:
        load(store, "trunk", "1")
        backup.import_data('{"packages": {"9": "passenger"}}')
        store.undo()
        assert store.model.packages == {"9": Zone.PASSENGER}

    def test_import_file(self, store: StateStore, backup: BackupService, tmp_path: Path) -> None:
        path = tmp_path / "backup.json"
        path.write_text('{"delivered": ["4"]}', encoding="utf-8")
        assert backup.import_file(path).ok
        assert store.model.delivered == ["4"]

    def test_import_missing_file(self, backup: BackupService, tmp_path: Path) -> None:
        result = backup.import_file(tmp_path / "missing.json")
        assert result.error is not None
        assert result.error.code == ErrorCode.FILE_ERROR
