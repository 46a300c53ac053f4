# tests/test_property_lookup_cache.py
import json
from datetime import datetime, timedelta

import pytest
from sqlalchemy import func, select

from equity_api.adapters.clients.base import PropertyLookupError
from equity_api.domain.address import normalize_address_key
from equity_api.models import PropertyLookupCache
from equity_api.service_layer.property_lookup import lookup_property

from conftest import FakeProvider, make_property

ADDRESS = "123 Oak Ave, Phoenix, AZ 85001"


async def test_second_lookup_is_served_from_cache(async_session_maker):
    provider = FakeProvider(default=make_property(property_type="CONDOMINIUM", owner_names="SMITH FAMILY TRUST"))

    async with async_session_maker() as session:
        first = await lookup_property(session, ADDRESS, provider=provider)
        await session.commit()

    async with async_session_maker() as session:
        # same address, different spelling
        second = await lookup_property(session, "  123 oak ave,  Phoenix, AZ 85001 ", provider=provider)

    assert first.cached is False
    assert second.cached is True
    assert provider.calls == [ADDRESS]

    # mapped once, before caching
    assert first.data.property_type == second.data.property_type == "Condo"
    assert second.ownership_type == "Trust"
    assert second.data.estimated_value == 500_000


async def test_stale_rows_are_refetched_and_updated_in_place(async_session_maker):
    provider = FakeProvider(default=make_property())

    async with async_session_maker() as session:
        await lookup_property(session, ADDRESS, provider=provider)
        row = (await session.execute(select(PropertyLookupCache))).scalars().one()
        row.fetched_at = datetime.utcnow() - timedelta(days=31)
        await session.commit()

    async with async_session_maker() as session:
        again = await lookup_property(session, ADDRESS, provider=provider, ttl_days=30)
        await session.commit()
        count = (await session.execute(select(func.count()).select_from(PropertyLookupCache))).scalar_one()

    assert again.cached is False
    assert len(provider.calls) == 2
    assert count == 1


async def test_errors_are_not_cached(async_session_maker):
    provider = FakeProvider(default=PropertyLookupError("Property lookup failed: 404", 404))

    async with async_session_maker() as session:
        with pytest.raises(PropertyLookupError):
            await lookup_property(session, ADDRESS, provider=provider)
        count = (await session.execute(select(func.count()).select_from(PropertyLookupCache))).scalar_one()

    assert count == 0


async def test_blank_owner_becomes_unknown_and_blank_address_is_rejected(async_session_maker):
    provider = FakeProvider(default=make_property(owner_names=""))

    async with async_session_maker() as session:
        out = await lookup_property(session, ADDRESS, provider=provider)
        assert out.data.owner_names == "Unknown Owner"
        assert out.ownership_type == "Personal"

        with pytest.raises(ValueError, match="Address is required"):
            await lookup_property(session, "   ", provider=provider)


async def test_losing_an_insert_race_keeps_the_other_row(async_session_maker):
    async with async_session_maker() as session:

        class RacingProvider(FakeProvider):
            async def lookup(self, address):
                # another request caches the same address while the vendor call is in flight
                session.add(
                    PropertyLookupCache(
                        provider=self.name,
                        address_key=normalize_address_key(address),
                        payload_json=json.dumps(make_property(estimated_value=610_000.0).to_dict()),
                        fetched_at=datetime.utcnow(),
                    )
                )
                await session.flush()
                return await super().lookup(address)

        out = await lookup_property(session, ADDRESS, provider=RacingProvider(default=make_property()))
        await session.commit()

        rows = (await session.execute(select(PropertyLookupCache))).scalars().all()

    assert out.cached is False
    assert out.data.estimated_value == 500_000
    assert len(rows) == 1
    assert json.loads(rows[0].payload_json)["estimated_value"] == 610_000
