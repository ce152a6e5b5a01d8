"""Tests for the fixture registry storage."""

from __future__ import annotations

import json
from pathlib import Path

from fixturekeeper.registry.storage import FixtureRegistry


def test_register_and_find(registry: FixtureRegistry) -> None:
    record_id = registry.register("users", "ada", "doc-1")

    record = registry.find("users", "ada")
    assert record is not None
    assert record.record_id == record_id
    assert record.target_doc_id == "doc-1"
    assert registry.find("users", "grace") is None
    assert registry.find("posts", "ada") is None


def test_find_all_scoped_to_collection_and_identity(registry: FixtureRegistry) -> None:
    registry.register("users", "h1", "a")
    registry.register("users", "h1", "b")
    registry.register("users", "h2", "c")
    registry.register("posts", "h1", "d")

    assert [r.target_doc_id for r in registry.find_all("users")] == ["a", "b", "c"]
    assert [r.target_doc_id for r in registry.find_all("users", "h1")] == ["a", "b"]
    assert registry.count("posts") == 1
    assert registry.collections() == ["posts", "users"]


def test_unregister_filters_by_target_ids(registry: FixtureRegistry) -> None:
    registry.register("users", "h1", "a")
    registry.register("users", "h1", "b")

    assert registry.unregister("users", "h1", target_doc_ids={"b"}) == 1
    assert [r.target_doc_id for r in registry.find_all("users")] == ["a"]
    assert registry.unregister("users", "missing") == 0
    assert registry.unregister("users", "h1") == 1
    assert registry.count("users") == 0


def test_unregister_all_with_empty_id_set_removes_nothing(registry: FixtureRegistry) -> None:
    registry.register("users", "ada", "a")
    registry.register("users", "grace", "b")

    assert registry.unregister_all("users", target_doc_ids=[]) == 0
    assert registry.count("users") == 2
    assert registry.unregister_all("users") == 2
    assert registry.count("users") == 0


def test_records_persist_across_instances(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "fixtures.json"
    FixtureRegistry(path).register("users", "ada", 42)

    entries = json.loads(path.read_text(encoding="utf-8"))
    assert entries[0]["owner_collection"] == "users"
    assert entries[0]["identity"] == "ada"

    reloaded = FixtureRegistry(path)
    record = reloaded.find("users", "ada")
    assert record is not None
    assert record.target_doc_id == 42


def test_in_memory_registry_writes_nothing(tmp_path: Path) -> None:
    registry = FixtureRegistry()
    registry.register("users", "ada", "a")

    assert registry.path is None
    assert registry.count("users") == 1
    assert list(tmp_path.iterdir()) == []
