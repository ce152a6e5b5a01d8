"""JSON-file storage for the fixture registry.

The registry remembers which target documents were created as fixtures, keyed
by ``(owner_collection, identity)``. Records are only ever appended after the
target document exists and dropped after it is confirmed gone.
"""

from __future__ import annotations

import json
import secrets
import threading
from collections.abc import Collection, Iterable
from pathlib import Path
from typing import Any

from fixturekeeper.lib.logger import get_logger
from fixturekeeper.registry.schemas import FixtureRecord

logger = get_logger(__name__)


class FixtureRegistry:
    """Thread-safe fixture record store, persisted to ``path`` when one is given."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._lock = threading.Lock()
        self._records: list[FixtureRecord] | None = None

    @property
    def path(self) -> Path | None:
        return self._path

    def register(self, owner_collection: str, identity: str, target_doc_id: str | int) -> str:
        """Persist a new record and return its registry id."""

        record = FixtureRecord(
            record_id=secrets.token_hex(16),
            owner_collection=owner_collection,
            identity=identity,
            target_doc_id=target_doc_id,
        )
        with self._lock:
            self._write([*self._load(), record])
        return record.record_id

    def find(self, owner_collection: str, identity: str) -> FixtureRecord | None:
        for record in self.find_all(owner_collection, identity):
            return record
        return None

    def find_all(self, owner_collection: str, identity: str | None = None) -> list[FixtureRecord]:
        """Return live records for a collection, optionally narrowed to one identity."""

        with self._lock:
            return [
                record
                for record in self._load()
                if record.owner_collection == owner_collection and (identity is None or record.identity == identity)
            ]

    def unregister(
        self,
        owner_collection: str,
        identity: str,
        target_doc_ids: Collection[str | int] | None = None,
    ) -> int:
        return self._drop(owner_collection, identity, target_doc_ids)

    def unregister_all(self, owner_collection: str, target_doc_ids: Collection[str | int] | None = None) -> int:
        return self._drop(owner_collection, None, target_doc_ids)

    def count(self, owner_collection: str) -> int:
        return len(self.find_all(owner_collection))

    def collections(self) -> list[str]:
        """Return the distinct collection names holding live records."""

        with self._lock:
            return sorted({record.owner_collection for record in self._load()})

    def _drop(
        self,
        owner_collection: str,
        identity: str | None,
        target_doc_ids: Collection[str | int] | None,
    ) -> int:
        if target_doc_ids is not None and not target_doc_ids:
            return 0

        def matches(record: FixtureRecord) -> bool:
            if record.owner_collection != owner_collection:
                return False
            if identity is not None and record.identity != identity:
                return False
            return target_doc_ids is None or record.target_doc_id in target_doc_ids

        with self._lock:
            records = self._load()
            kept = [record for record in records if not matches(record)]
            removed = len(records) - len(kept)
            if removed:
                self._write(kept)
        return removed

    def _load(self) -> list[FixtureRecord]:
        if self._records is None:
            self._records = list(_read_records(self._path)) if self._path is not None else []
        return self._records

    def _write(self, records: list[FixtureRecord]) -> None:
        if self._path is not None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            entries: list[dict[str, Any]] = [record.model_dump() for record in records]
            self._path.write_text(json.dumps(entries, indent=2), encoding="utf-8")
        self._records = records


def _read_records(path: Path) -> Iterable[FixtureRecord]:
    if not path.exists():
        return []
    entries = json.loads(path.read_text(encoding="utf-8") or "[]")
    if not isinstance(entries, list):
        raise ValueError(f"Fixture registry at {path} is not a JSON list")
    logger.debug("fixture_registry_loaded", extra={"path": str(path), "records": len(entries)})
    return [FixtureRecord.model_validate(entry) for entry in entries]
