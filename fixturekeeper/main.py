"""FastAPI application exposing fixture registry state and mutation reports."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from fixturekeeper.config import get_settings
from fixturekeeper.facade import FixtureKeeper, build_fixture_keeper, router as fixtures_router
from fixturekeeper.lib.logger import configure_logging, get_logger

logger = get_logger(__name__)


def create_app(keeper: FixtureKeeper | None = None) -> FastAPI:
    """Build the admin application around ``keeper`` (a configured one by default)."""

    settings = get_settings()
    configure_logging(settings.log_level)
    keeper = keeper or build_fixture_keeper(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        reports = keeper.counters.flush_pending()
        logger.info("fixture_keeper_shutdown", extra={"flushed_reports": len(reports)})

    app = FastAPI(title="Fixture Keeper", version="0.2.0", lifespan=lifespan)
    app.state.fixture_keeper = keeper
    app.include_router(fixtures_router, prefix="/fixtures", tags=["fixtures"])

    @app.get("/health", tags=["system"], summary="Health check")
    async def health_check() -> JSONResponse:
        """Return liveness response for uptime monitoring."""
        payload = {"ok": True, "data": {"status": "healthy"}}
        return JSONResponse(content=payload)

    @app.get("/metrics", tags=["system"], summary="Mutation counters")
    async def metrics_endpoint() -> JSONResponse:
        counters = app.state.fixture_keeper.counters
        data = {
            "pending": counters.snapshot(),
            "reports": [report.json_payload() for report in counters.reports()],
        }
        return JSONResponse({"ok": True, "data": data})

    return app


app = create_app()
