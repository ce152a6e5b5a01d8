"""Fixture facades: idempotent insert/update/remove/flush over a target collection.

A ``FixtureKeeper`` is the host-owned context holding the registry, the
mutation counters and one lock per collection name. ``FixtureKeeper.create``
binds a target collection, an identity strategy and optional override
functions into a ``FixtureFacade``.

Removal always touches the target collection first; registry records are
dropped only for documents that are confirmed gone afterwards.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping

from fixturekeeper.config import Settings, get_settings
from fixturekeeper.counter.service import MutationCounterRegistry
from fixturekeeper.errors import CollaboratorResultError
from fixturekeeper.lib.hashing import content_hash
from fixturekeeper.lib.logger import get_logger
from fixturekeeper.lib.scheduler import ThreadingScheduler
from fixturekeeper.registry.schemas import FixtureRecord
from fixturekeeper.registry.storage import FixtureRegistry
from fixturekeeper.target.protocols import Document, Selector, TargetCollection
from fixturekeeper.target.storage import ID_FIELD

logger = get_logger(__name__)

CreateFn = Callable[[Mapping[str, Any]], Any]
UpdateFn = Callable[[Any, Mapping[str, Any]], int]
RemoveFn = Callable[[Selector], int]


class IdentityStrategy(str, Enum):
    """How a facade derives a fixture's identity."""

    KEY = "key"
    CONTENT = "content"


@dataclass(frozen=True)
class Overrides:
    """Functions called in place of the collection's own mutation methods."""

    create: CreateFn | None = None
    update: UpdateFn | None = None
    remove: RemoveFn | None = None


def _ids_selector(doc_ids: list[Any]) -> dict[str, Any]:
    return {ID_FIELD: {"$in": doc_ids}}


def _checked_count(action: str, collection: str, result: Any) -> int:
    if isinstance(result, bool) or not isinstance(result, int) or result < 0:
        raise CollaboratorResultError(action, collection, result)
    return result


class FixtureFacade:
    """Fixture operations scoped to a single target collection."""

    def __init__(
        self,
        collection: TargetCollection,
        registry: FixtureRegistry,
        counters: MutationCounterRegistry,
        lock: threading.RLock,
        identity: IdentityStrategy = IdentityStrategy.KEY,
        overrides: Overrides | None = None,
    ) -> None:
        self._collection = collection
        self._registry = registry
        self._counters = counters
        self._lock = lock
        self._identity = IdentityStrategy(identity)
        overrides = overrides or Overrides()
        self._create: CreateFn = overrides.create or collection.create
        self._update: UpdateFn = overrides.update or collection.update_by_id
        self._remove: RemoveFn = overrides.remove or collection.remove_by_selector

    @property
    def name(self) -> str:
        return self._collection.name

    @property
    def identity(self) -> IdentityStrategy:
        return self._identity

    @property
    def collection(self) -> TargetCollection:
        return self._collection

    def insert(self, ref: Any, payload: Mapping[str, Any] | None = None, *, allow_duplicate: bool = False) -> Any:
        """Create the fixture unless it already exists and return the new document id.

        With key identity ``ref`` is the fixture key and ``payload`` the document.
        With content identity ``ref`` is the document itself. Returns ``None``
        when the fixture already exists or the create call reported no id. A
        created document whose id cannot be registered is removed again before
        the error is raised.
        """

        if self._identity is IdentityStrategy.KEY:
            if allow_duplicate:
                raise ValueError("allow_duplicate is only supported with content identity")
            if payload is None:
                raise ValueError("Key identity requires a payload to insert")
            document = payload
        else:
            if payload is not None:
                raise ValueError("Content identity takes the document as its only argument")
            document = ref
        identity = self._resolve(ref)

        with self._lock:
            if not allow_duplicate and self._registry.find(self.name, identity) is not None:
                logger.debug("fixture_insert_skipped", extra={"collection": self.name, "identity": identity})
                return None

            doc_id = self._create(document)
            if not doc_id:
                logger.warning(
                    "fixture_insert_aborted",
                    extra={"collection": self.name, "identity": identity, "result": repr(doc_id)},
                )
                return None

            if isinstance(doc_id, bool) or not isinstance(doc_id, str | int):
                self._rollback(doc_id)
                raise CollaboratorResultError("create", self.name, doc_id)
            try:
                self._registry.register(self.name, identity, doc_id)
            except Exception:
                self._rollback(doc_id)
                raise
            self._counters.record_added(self.name, 1)

        logger.debug("fixture_inserted", extra={"collection": self.name, "identity": identity, "doc_id": doc_id})
        return doc_id

    def update(self, ref: Any, patch: Mapping[str, Any]) -> int:
        """Apply ``patch`` to the fixture's document(s); 0 when nothing is tracked.

        Updates applied before a failing one are still counted.
        """

        identity = self._resolve(ref)
        with self._lock:
            records = self._registry.find_all(self.name, identity)
            if not records:
                return 0
            changed = 0
            try:
                for record in records:
                    changed += _checked_count("update", self.name, self._update(record.target_doc_id, patch))
            finally:
                self._counters.record_changed(self.name, changed)

        logger.debug("fixture_updated", extra={"collection": self.name, "identity": identity, "changed": changed})
        return changed

    def remove(self, ref: Any) -> int:
        """Remove the fixture's document(s) and forget them; 0 when nothing is tracked."""

        identity = self._resolve(ref)
        with self._lock:
            records = self._registry.find_all(self.name, identity)
            if not records:
                return 0
            removed = self._remove_documents(records)

        logger.debug("fixture_removed", extra={"collection": self.name, "identity": identity, "removed": removed})
        return removed

    def flush(self) -> int:
        """Remove every fixture document of this collection and return the removed count."""

        with self._lock:
            records = self._registry.find_all(self.name)
            if not records:
                return 0
            removed = self._remove_documents(records)

        logger.info("fixtures_flushed", extra={"collection": self.name, "removed": removed})
        return removed

    def count(self) -> int:
        return self._registry.count(self.name)

    def records(self) -> list[FixtureRecord]:
        return self._registry.find_all(self.name)

    def get(self, ref: Any = None) -> Document | list[Document] | None:
        """Return the document for ``ref``, or every tracked document when ``ref`` is None."""

        if ref is None:
            doc_ids = [record.target_doc_id for record in self._registry.find_all(self.name)]
            if not doc_ids:
                return []
            return self._collection.find_by_selector(_ids_selector(doc_ids))

        record = self._registry.find(self.name, self._resolve(ref))
        if record is None:
            return None
        return self._collection.find_one_by_selector({ID_FIELD: record.target_doc_id})

    def _resolve(self, ref: Any) -> str:
        if self._identity is IdentityStrategy.CONTENT:
            return content_hash(ref)
        if not isinstance(ref, str) or not ref:
            raise ValueError("Fixture key must be a non-empty string")
        return ref

    def _rollback(self, doc_id: Any) -> None:
        """Remove a freshly created document that could not be registered."""

        removed = self._remove(_ids_selector([doc_id]))
        logger.warning(
            "fixture_insert_rolled_back",
            extra={"collection": self.name, "doc_id": repr(doc_id), "removed": removed},
        )

    def _remove_documents(self, records: list[FixtureRecord]) -> int:
        doc_ids = [record.target_doc_id for record in records]
        removed = _checked_count("remove", self.name, self._remove(_ids_selector(doc_ids)))

        survivors = {document[ID_FIELD] for document in self._collection.find_by_selector(_ids_selector(doc_ids))}
        confirmed = [doc_id for doc_id in doc_ids if doc_id not in survivors]
        if survivors:
            logger.warning(
                "fixture_orphans",
                extra={"collection": self.name, "doc_ids": sorted(map(str, survivors))},
            )
        self._registry.unregister_all(self.name, confirmed)
        self._counters.record_removed(self.name, removed)
        return removed


class FixtureKeeper:
    """Host context owning the registry, counters and per-collection facades."""

    def __init__(self, registry: FixtureRegistry, counters: MutationCounterRegistry) -> None:
        self.registry = registry
        self.counters = counters
        self._lock = threading.Lock()
        self._name_locks: dict[str, threading.RLock] = {}
        self._facades: dict[str, FixtureFacade] = {}

    def create(
        self,
        collection: TargetCollection,
        callback: Callable[[FixtureFacade], Any] | None = None,
        *,
        identity: IdentityStrategy | str = IdentityStrategy.KEY,
        overrides: Overrides | None = None,
    ) -> FixtureFacade:
        """Build the facade for ``collection`` and hand it to ``callback`` when given.

        Calling ``create`` again for the same collection name replaces the
        facade's strategy and overrides but shares its lock and records.
        """

        facade = FixtureFacade(
            collection,
            self.registry,
            self.counters,
            self._lock_for(collection.name),
            identity=IdentityStrategy(identity),
            overrides=overrides,
        )
        with self._lock:
            self._facades[collection.name] = facade
        if callback is not None:
            callback(facade)
        return facade

    def facade(self, name: str) -> FixtureFacade | None:
        with self._lock:
            return self._facades.get(name)

    def facades(self) -> list[FixtureFacade]:
        with self._lock:
            return [self._facades[name] for name in sorted(self._facades)]

    def _lock_for(self, name: str) -> threading.RLock:
        with self._lock:
            lock = self._name_locks.get(name)
            if lock is None:
                lock = self._name_locks[name] = threading.RLock()
            return lock


def build_fixture_keeper(settings: Settings | None = None) -> FixtureKeeper:
    """Wire a keeper backed by the configured registry file and real timers."""

    settings = settings or get_settings()
    registry = FixtureRegistry(settings.registry_path)
    counters = MutationCounterRegistry(
        ThreadingScheduler(),
        delay=settings.report_delay_seconds,
        history_size=settings.report_history_size,
    )
    logger.info(
        "fixture_keeper_ready",
        extra={"registry_path": str(settings.registry_path), "report_delay_ms": settings.report_delay_ms},
    )
    return FixtureKeeper(registry, counters)
