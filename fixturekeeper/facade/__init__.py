"""Fixture facade package: idempotent fixture operations per target collection."""

from fixturekeeper.facade.routes import router
from fixturekeeper.facade.service import (
    FixtureFacade,
    FixtureKeeper,
    IdentityStrategy,
    Overrides,
    build_fixture_keeper,
)

__all__ = [
    "FixtureFacade",
    "FixtureKeeper",
    "IdentityStrategy",
    "Overrides",
    "build_fixture_keeper",
    "router",
]
