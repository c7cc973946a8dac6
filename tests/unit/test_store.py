from __future__ import annotations

import json
from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest

from global_libraries.core.store import (
    RegistrySnapshot,
    RegistryStore,
    compute_libraries_digest,
)
from global_libraries.registry.errors import StoreLockError
from global_libraries.registry.lock import StoreLock

if TYPE_CHECKING:
    from pathlib import Path

    from global_libraries.libraries import LibraryDefinition


def test_load_missing(store: RegistryStore) -> None:
    assert store.load() is None


def test_save_and_load(store: RegistryStore) -> None:
    store.save(b"first")
    assert store.load() == b"first"
    assert not store.backup_path.exists()


def test_save_keeps_backup(store: RegistryStore) -> None:
    store.save(b"first")
    store.save(b"second")
    assert store.load() == b"second"
    assert store.backup_path.read_bytes() == b"first"


def test_save_creates_parent(tmp_path: Path) -> None:
    nested = RegistryStore(tmp_path / "a" / "b" / "libraries.json")
    nested.save(b"{}")
    assert nested.path.read_bytes() == b"{}"


def test_failed_write_keeps_previous(store: RegistryStore) -> None:
    store.save(b"first")
    with (
        patch("global_libraries.core.store.os.fsync", side_effect=OSError("io error")),
        pytest.raises(OSError, match="io error"),
    ):
        store.save(b"second")
    assert store.load() == b"first"
    assert [p.name for p in store.path.parent.iterdir() if p.name.startswith(".")] == []


def test_snapshot_bytes_are_stable(foo: LibraryDefinition, bar: LibraryDefinition) -> None:
    data = RegistrySnapshot(libraries=[foo, bar]).to_bytes()
    assert data == RegistrySnapshot.from_bytes(data).to_bytes()
    raw = json.loads(data)
    assert raw["format"] == 2
    assert [lib["name"] for lib in raw["libraries"]] == ["foo", "bar"]


def test_digest_depends_on_order(foo: LibraryDefinition, bar: LibraryDefinition) -> None:
    assert compute_libraries_digest([foo, bar]) != compute_libraries_digest([bar, foo])
    assert compute_libraries_digest([]) == compute_libraries_digest(())


class TestStoreLock:
    def test_held_while_entered(self, store: RegistryStore) -> None:
        lock = StoreLock(store.path)
        assert not lock.held
        with lock:
            assert lock.held
            assert lock.lock_path.exists()
        assert not lock.held

    def test_lock_failure(self, store: RegistryStore) -> None:
        with (
            patch("global_libraries.registry.lock._lock", side_effect=OSError("busy")),
            pytest.raises(StoreLockError, match="busy"),
        ):
            store.save(b"data")
        assert store.load() is None
