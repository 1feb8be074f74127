"""Tests for the preview registry."""

from __future__ import annotations

from pathlib import Path

import pytest

from react_preview.core.errors import ConfigError, NotFoundError
from react_preview.core.registry import Registry, RegistryEntry, derive_id


@pytest.fixture
def registry(tmp_path: Path) -> Registry:
    return Registry(tmp_path / "state" / "storage")


class TestRegister:
    def test_id_from_file_name(self, registry: Registry, preview_file: Path) -> None:
        entry = registry.register(preview_file)
        assert entry == RegistryEntry(id="preview", absolute_path=preview_file.resolve())
        assert registry.lookup("preview") == preview_file.resolve()

    def test_id_from_config(self, registry: Registry, card_dir: Path) -> None:
        config = card_dir / "card.preview.yaml"
        config.write_text("id: card\nsource: Card.tsx\n")
        assert registry.register(config).id == "card"
        assert registry.lookup("card") == config.resolve()

    def test_record_holds_absolute_path(self, registry: Registry, preview_file: Path) -> None:
        registry.register(preview_file)
        record = registry.storage_dir / "preview"
        assert record.read_text() == str(preview_file.resolve())

    def test_last_registration_wins(self, registry: Registry, card_dir: Path) -> None:
        first = card_dir / "a.yaml"
        second = card_dir / "b.yaml"
        first.write_text("id: same\nsource: Card.tsx\n")
        second.write_text("id: same\nsource: Card.tsx\n")
        registry.register(first)
        registry.register(second)
        assert registry.lookup("same") == second.resolve()

    def test_missing_file(self, registry: Registry, tmp_path: Path) -> None:
        with pytest.raises(NotFoundError):
            registry.register(tmp_path / "missing.yaml")

    @pytest.mark.parametrize("bad_id", ["a/b", "..", "a\\\\b"])
    def test_invalid_id(self, registry: Registry, card_dir: Path, bad_id: str) -> None:
        config = card_dir / "bad.yaml"
        config.write_text(f"id: '{bad_id}'\nsource: Card.tsx\n")
        with pytest.raises(ConfigError):
            registry.register(config)


class TestUnregister:
    def test_removes_record(self, registry: Registry, preview_file: Path) -> None:
        registry.register(preview_file)
        registry.unregister("preview")
        assert registry.lookup("preview") is None

    def test_unknown_id(self, registry: Registry) -> None:
        with pytest.raises(NotFoundError):
            registry.unregister("ghost")


class TestLookup:
    def test_unknown_id(self, registry: Registry) -> None:
        assert registry.lookup("ghost") is None

    def test_path_like_id_never_matches(self, registry: Registry) -> None:
        assert registry.lookup("../storage") is None

    def test_list_sorted(self, registry: Registry, card_dir: Path) -> None:
        for name in ("zeta", "alpha"):
            config = card_dir / f"{name}.yaml"
            config.write_text("source: Card.tsx\n")
            registry.register(config)
        assert [e.id for e in registry.list_entries()] == ["alpha", "zeta"]

    def test_list_without_storage(self, registry: Registry) -> None:
        assert registry.list_entries() == []


def test_derive_id() -> None:
    assert derive_id(Path("/x/card.preview.yaml")) == "card.preview"
