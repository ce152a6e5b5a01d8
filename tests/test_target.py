"""Tests for the JSON document collection."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

from fixturekeeper.errors import FixtureSerializationError
from fixturekeeper.target.protocols import TargetCollection
from fixturekeeper.target.storage import JsonCollection, matches


def test_selector_matching() -> None:
    document = {"_id": "a", "role": "admin"}

    assert matches(document, {"_id": "a"})
    assert matches(document, {"_id": {"$in": ["a", "b"]}, "role": "admin"})
    assert not matches(document, {"_id": {"$in": []}})
    assert not matches(document, {"role": "guest"})


def test_collection_crud(users: JsonCollection) -> None:
    assert isinstance(users, TargetCollection)
    doc_id = users.create({"name": "ada"})

    assert users.find_one_by_selector({"_id": doc_id}) == {"_id": doc_id, "name": "ada"}
    assert users.update_by_id(doc_id, {"role": "admin"}) == 1
    assert users.update_by_id("missing", {"role": "admin"}) == 0
    assert users.find_by_selector({"role": "admin"})[0]["name"] == "ada"
    assert users.remove_by_selector({"_id": {"$in": [doc_id, "missing"]}}) == 1
    assert len(users) == 0


def test_collection_returns_copies(users: JsonCollection) -> None:
    doc_id = users.create({"tags": ["a"]})
    found = users.find_one_by_selector({"_id": doc_id})
    assert found is not None
    found["tags"].append("b")

    assert users.find_one_by_selector({"_id": doc_id}) == {"_id": doc_id, "tags": ["a"]}


def test_collection_rejects_duplicate_ids(users: JsonCollection) -> None:
    users.create({"_id": "fixed"})
    with pytest.raises(ValueError):
        users.create({"_id": "fixed"})


def test_collection_persists_to_file(tmp_path: Path) -> None:
    path = tmp_path / "users.json"
    doc_id = JsonCollection("users", path).create({"name": "ada"})

    assert json.loads(path.read_text(encoding="utf-8")) == [{"name": "ada", "_id": doc_id}]
    assert JsonCollection("users", path).find_one_by_selector({"_id": doc_id}) is not None


def test_collection_rejects_non_json_documents(tmp_path: Path) -> None:
    path = tmp_path / "users.json"
    collection = JsonCollection("users", path)

    with pytest.raises(FixtureSerializationError):
        collection.create({"joined": datetime(2024, 1, 1, tzinfo=UTC)})
    with pytest.raises(FixtureSerializationError):
        collection.create({"score": float("nan")})
    assert len(collection) == 0
    assert not path.exists()

    doc_id = collection.create({"name": "ada"})
    with pytest.raises(FixtureSerializationError):
        collection.update_by_id(doc_id, {"joined": datetime(2024, 1, 1, tzinfo=UTC)})
    assert JsonCollection("users", path).find_one_by_selector({"_id": doc_id}) == {"_id": doc_id, "name": "ada"}
