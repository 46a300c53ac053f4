# equity_api/adapters/clients/providers.py
from __future__ import annotations

from ...config import settings
from .attom_property import AttomPropertyClient
from .base import PropertyDataProvider
from .rentcast_property import RentCastPropertyClient

_PROVIDERS = {
    "attom": AttomPropertyClient,
    "rentcast": RentCastPropertyClient,
}


def get_provider(name: str | None = None) -> PropertyDataProvider:
    key = (name or settings.PROPERTY_DATA_PROVIDER or "").strip().lower()
    cls = _PROVIDERS.get(key)
    if cls is None:
        raise ValueError(f"Unknown property data provider: {key!r}")
    return cls()
