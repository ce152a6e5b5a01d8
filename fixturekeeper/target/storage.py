"""JSON-file document collection with Mongo-style selectors.

Documents must be plain JSON (no datetimes, UUIDs or NaN) so a reload returns
exactly what was stored.
"""

from __future__ import annotations

import copy
import json
import secrets
import threading
from pathlib import Path
from typing import Any, Mapping

from fixturekeeper.errors import FixtureSerializationError
from fixturekeeper.target.protocols import Document, Selector

ID_FIELD = "_id"


def _ensure_json(value: Mapping[str, Any]) -> None:
    try:
        json.dumps(value, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise FixtureSerializationError(f"Document is not plain JSON: {exc}") from exc


def matches(document: Mapping[str, Any], selector: Selector) -> bool:
    """Return True when ``document`` satisfies every clause of ``selector``.

    A clause is either a literal value compared for equality or ``{"$in": [...]}``.
    """

    for field, expected in selector.items():
        actual = document.get(field)
        if isinstance(expected, Mapping) and "$in" in expected:
            if actual not in list(expected["$in"]):
                return False
        elif actual != expected:
            return False
    return True


class JsonCollection:
    """Target collection kept in memory and mirrored to a JSON file when ``path`` is set."""

    def __init__(self, name: str, path: Path | None = None) -> None:
        if not name:
            raise ValueError("Collection name must not be empty")
        self._name = name
        self._path = path
        self._lock = threading.Lock()
        self._documents: list[Document] = self._read()

    @property
    def name(self) -> str:
        return self._name

    def create(self, payload: Mapping[str, Any]) -> str:
        document: Document = copy.deepcopy(dict(payload))
        doc_id = document.get(ID_FIELD) or secrets.token_hex(12)
        document[ID_FIELD] = doc_id
        _ensure_json(document)
        with self._lock:
            if any(existing[ID_FIELD] == doc_id for existing in self._documents):
                raise ValueError(f"Duplicate document id '{doc_id}' in collection '{self._name}'")
            self._documents.append(document)
            self._write()
        return doc_id

    def update_by_id(self, doc_id: Any, patch: Mapping[str, Any]) -> int:
        if ID_FIELD in patch and patch[ID_FIELD] != doc_id:
            raise ValueError("Document id cannot be changed by an update")
        _ensure_json(patch)
        with self._lock:
            for document in self._documents:
                if document[ID_FIELD] == doc_id:
                    document.update(copy.deepcopy(dict(patch)))
                    self._write()
                    return 1
        return 0

    def remove_by_selector(self, selector: Selector) -> int:
        with self._lock:
            kept = [document for document in self._documents if not matches(document, selector)]
            removed = len(self._documents) - len(kept)
            if removed:
                self._documents = kept
                self._write()
        return removed

    def find_by_selector(self, selector: Selector) -> list[Document]:
        with self._lock:
            return [copy.deepcopy(document) for document in self._documents if matches(document, selector)]

    def find_one_by_selector(self, selector: Selector) -> Document | None:
        with self._lock:
            for document in self._documents:
                if matches(document, selector):
                    return copy.deepcopy(document)
        return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)

    def _read(self) -> list[Document]:
        if self._path is None or not self._path.exists():
            return []
        return json.loads(self._path.read_text(encoding="utf-8") or "[]")

    def _write(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(self._documents, indent=2), encoding="utf-8")
