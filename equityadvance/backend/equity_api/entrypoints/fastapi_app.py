# equity_api/entrypoints/fastapi_app.py
from __future__ import annotations

from fastapi import FastAPI

from ..db import engine
from ..models import Base
from .api.routers import bulk_imports, campaigns, deals, health, pipeline, profiles, properties, underwriting


def create_app() -> FastAPI:
    app = FastAPI(title="Equity Advance - HEA underwriting & offers")

    @app.on_event("startup")
    async def _startup() -> None:
        # Single place where DB tables are created; there are no migrations.
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    # Routers
    app.include_router(health.router)
    app.include_router(underwriting.router)
    app.include_router(properties.router)
    app.include_router(profiles.router)
    app.include_router(deals.router)
    app.include_router(pipeline.router)
    app.include_router(campaigns.router)
    app.include_router(bulk_imports.router)

    return app
