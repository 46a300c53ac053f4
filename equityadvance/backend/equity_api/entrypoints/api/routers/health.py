# equity_api/entrypoints/api/routers/health.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from ....config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health() -> dict[str, Any]:
    provider = settings.PROPERTY_DATA_PROVIDER
    key = settings.ATTOM_API_KEY if provider == "attom" else settings.RENTCAST_API_KEY
    return {
        "status": "ok",
        "env": settings.ENV,
        "property_data_provider": provider,
        "property_data_configured": bool(key),
    }
