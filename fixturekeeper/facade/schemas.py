"""Response schemas for the fixture admin routes."""

from __future__ import annotations

from pydantic import BaseModel

from fixturekeeper.facade.service import FixtureFacade, IdentityStrategy
from fixturekeeper.registry.schemas import FixtureRecord


class ManagedCollection(BaseModel):
    """Summary of a collection with a registered fixture facade."""

    collection: str
    identity: IdentityStrategy
    count: int

    @classmethod
    def from_facade(cls, facade: FixtureFacade) -> "ManagedCollection":
        return cls(collection=facade.name, identity=facade.identity, count=facade.count())


class CollectionRecords(BaseModel):
    collection: str
    count: int
    records: list[FixtureRecord]


class FlushResult(BaseModel):
    collection: str
    removed: int
