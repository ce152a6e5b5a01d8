"""Admin routes exposing managed fixture collections."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder

from fixturekeeper.facade.schemas import CollectionRecords, FlushResult, ManagedCollection
from fixturekeeper.facade.service import FixtureFacade, FixtureKeeper

router = APIRouter()


def get_fixture_keeper(request: Request) -> FixtureKeeper:
    keeper: FixtureKeeper | None = getattr(request.app.state, "fixture_keeper", None)
    if keeper is None:
        raise RuntimeError("Fixture keeper not configured on application state")
    return keeper


def _facade_or_404(keeper: FixtureKeeper, name: str) -> FixtureFacade:
    facade = keeper.facade(name)
    if facade is None:
        raise HTTPException(status_code=404, detail="Fixture collection not managed")
    return facade


@router.get("")
async def list_collections(keeper: FixtureKeeper = Depends(get_fixture_keeper)) -> JSONResponse:
    """List every collection with a fixture facade and its live record count."""

    data = [ManagedCollection.from_facade(facade).model_dump(mode="json") for facade in keeper.facades()]
    return JSONResponse({"ok": True, "data": data})


@router.get("/{name}")
async def collection_records(name: str, keeper: FixtureKeeper = Depends(get_fixture_keeper)) -> JSONResponse:
    facade = _facade_or_404(keeper, name)
    records = facade.records()
    payload = CollectionRecords(collection=name, count=len(records), records=records)
    return JSONResponse({"ok": True, "data": payload.model_dump(mode="json")})


@router.get("/{name}/documents")
async def collection_documents(name: str, keeper: FixtureKeeper = Depends(get_fixture_keeper)) -> JSONResponse:
    """Return the target documents currently tracked as fixtures."""

    facade = _facade_or_404(keeper, name)
    return JSONResponse({"ok": True, "data": jsonable_encoder(facade.get())})


@router.post("/{name}/flush")
async def flush_collection(name: str, keeper: FixtureKeeper = Depends(get_fixture_keeper)) -> JSONResponse:
    """Remove every fixture document tracked for the collection."""

    facade = _facade_or_404(keeper, name)
    removed = facade.flush()
    return JSONResponse({"ok": True, "data": FlushResult(collection=name, removed=removed).model_dump()})
