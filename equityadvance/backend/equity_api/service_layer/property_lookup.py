# equity_api/service_layer/property_lookup.py
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..adapters.clients.base import UNKNOWN_OWNER, PropertyData, PropertyDataProvider
from ..adapters.clients.providers import get_provider
from ..config import settings
from ..domain.address import normalize_address_key
from ..domain.ownership import detect_ownership_type, map_property_type
from ..models import PropertyLookupCache

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class LookupOutcome:
    data: PropertyData
    ownership_type: str
    cached: bool


@dataclass
class LookupStats:
    """
    Process-lifetime counters, handy when tuning the cache TTL.
    """
    hits: int = 0
    misses: int = 0
    fetch_fail: int = 0
    insert_races: int = 0

    def snapshot(self) -> dict[str, int]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "fetch_fail": self.fetch_fail,
            "insert_races": self.insert_races,
        }


STATS = LookupStats()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _ensure_aware_utc(dt: datetime) -> datetime:
    """
    SQLite hands back naive datetimes even for values written as UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _is_fresh(row: PropertyLookupCache, ttl_days: int) -> bool:
    if not row.fetched_at:
        return False
    return _ensure_aware_utc(row.fetched_at) >= (_utcnow() - timedelta(days=ttl_days))


def _outcome(data: PropertyData, cached: bool) -> LookupOutcome:
    if not data.owner_names:
        data.owner_names = UNKNOWN_OWNER
    return LookupOutcome(data=data, ownership_type=detect_ownership_type(data.owner_names), cached=cached)


async def lookup_property(
    session: AsyncSession,
    address: str,
    provider: PropertyDataProvider | None = None,
    ttl_days: int | None = None,
) -> LookupOutcome:
    """
    Property facts for an address, served from PropertyLookupCache while fresh.

    Vendor errors propagate and are not cached, so a retry after fixing the
    address (or the API key) goes straight back to the vendor.
    """
    address = (address or "").strip()
    if not address:
        raise ValueError("Address is required")

    provider = provider or get_provider()
    ttl = settings.LOOKUP_CACHE_TTL_DAYS if ttl_days is None else ttl_days
    key = normalize_address_key(address)

    q = select(PropertyLookupCache).where(
        PropertyLookupCache.provider == provider.name,
        PropertyLookupCache.address_key == key,
    )
    row = (await session.execute(q)).scalars().first()

    if row and _is_fresh(row, ttl):
        STATS.hits += 1
        return _outcome(PropertyData.from_dict(json.loads(row.payload_json)), cached=True)

    STATS.misses += 1
    try:
        data = await provider.lookup(address)
    except Exception:
        STATS.fetch_fail += 1
        raise

    data.property_type = map_property_type(data.property_type)
    payload = json.dumps(data.to_dict(), default=str)
    now = _utcnow()

    if row:
        row.payload_json = payload
        row.fetched_at = now
        await session.flush()
    else:
        try:
            async with session.begin_nested():
                session.add(
                    PropertyLookupCache(provider=provider.name, address_key=key, payload_json=payload, fetched_at=now)
                )
        except IntegrityError:
            # a concurrent lookup cached this address first; its row is as fresh as ours
            STATS.insert_races += 1
            log.info("lookup cache row for %s already written by another request", key)

    log.info("property lookup via %s: value=%s state=%s", provider.name, data.estimated_value, data.state)
    return _outcome(data, cached=False)
