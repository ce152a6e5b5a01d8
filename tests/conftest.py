"""Pytest fixtures for fixturekeeper tests."""

from collections.abc import AsyncIterator, Iterator
import os
from pathlib import Path
from typing import Callable

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

_STORAGE_PATH = Path(__file__).resolve().parent / "__storage"
os.environ.setdefault("FIXTURES_STORAGE_DIR", str(_STORAGE_PATH))
os.environ.setdefault("FIXTURES_REPORT_DELAY_MS", "1000")
_STORAGE_PATH.mkdir(parents=True, exist_ok=True)

from fixturekeeper.counter.schemas import MutationReport
from fixturekeeper.counter.service import MutationCounterRegistry
from fixturekeeper.facade.service import FixtureKeeper
from fixturekeeper.main import create_app
from fixturekeeper.registry.storage import FixtureRegistry
from fixturekeeper.target.storage import JsonCollection


class ManualScheduler:
    """Deterministic scheduler driven by an explicit clock."""

    def __init__(self) -> None:
        self.now = 0.0
        self.scheduled: dict[str, tuple[float, Callable[[], None]]] = {}
        self.cancelled: list[str] = []

    def schedule(self, key: str, delay: float, callback: Callable[[], None]) -> None:
        self.scheduled[key] = (self.now + delay, callback)

    def cancel(self, key: str) -> None:
        if self.scheduled.pop(key, None) is not None:
            self.cancelled.append(key)

    def advance(self, seconds: float) -> None:
        """Move the clock forward and fire every callback that came due."""

        self.now += seconds
        due = sorted(
            ((deadline, key) for key, (deadline, _) in self.scheduled.items() if deadline <= self.now),
        )
        for _, key in due:
            entry = self.scheduled.pop(key, None)
            if entry is not None:
                entry[1]()


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def reports() -> list[MutationReport]:
    """Collects every report emitted by the ``counters`` fixture."""
    return []


@pytest.fixture()
def counters(scheduler: ManualScheduler, reports: list[MutationReport]) -> MutationCounterRegistry:
    return MutationCounterRegistry(scheduler, delay=1.0, reporters=[reports.append])


@pytest.fixture()
def registry(tmp_path: Path) -> FixtureRegistry:
    return FixtureRegistry(tmp_path / "fixtures.json")


@pytest.fixture()
def keeper(registry: FixtureRegistry, counters: MutationCounterRegistry) -> FixtureKeeper:
    return FixtureKeeper(registry, counters)


@pytest.fixture()
def users() -> JsonCollection:
    return JsonCollection("users")


@pytest.fixture()
def app(keeper: FixtureKeeper) -> FastAPI:
    """Return an admin application bound to the test keeper."""
    return create_app(keeper)


@pytest_asyncio.fixture()
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Provide an `httpx.AsyncClient` configured for the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client


@pytest.fixture(autouse=True)
def clean_storage() -> Iterator[None]:
    """Ensure the storage directory is empty before and after each test."""

    for child in _STORAGE_PATH.glob("*"):
        if child.is_file():
            child.unlink()
    yield
    for child in _STORAGE_PATH.glob("*"):
        if child.is_file():
            child.unlink()
