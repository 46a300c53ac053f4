# tests/conftest.py
from dataclasses import replace

import httpx
import pytest
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from equity_api.adapters.clients.base import PropertyData
from equity_api.adapters.clients.http_resilience import reset_circuit
from equity_api.config import settings
from equity_api.db import get_session
from equity_api.entrypoints.api.deps import get_session_factory
from equity_api.entrypoints.fastapi_app import create_app
from equity_api.models import Base, Profile, ProfileRole, ProfileStatus
from equity_api.service_layer import property_lookup

TRACKING_DOMAIN = "www.track.example.com"
ENCODED_VALUE = "ABC123"


class FakeProvider:
    """
    Stands in for a property data vendor. `results` maps an address to a
    PropertyData (returned) or an exception (raised).
    """
    name = "fake"

    def __init__(self, results=None, default=None):
        self.results = dict(results or {})
        self.default = default
        self.calls = []

    async def lookup(self, address):
        self.calls.append(address)
        res = self.results.get(address, self.default)
        if isinstance(res, Exception):
            raise res
        if res is None:
            raise AssertionError(f"unexpected lookup: {address}")
        return replace(res)


def make_property(**overrides) -> PropertyData:
    base = dict(
        owner_names="JOHN SMITH",
        state="AZ",
        property_type="Single Family",
        estimated_value=500_000.0,
        source="fake",
        estimated_mortgage_balance=200_000.0,
    )
    base.update(overrides)
    return PropertyData(**base)


@pytest.fixture(autouse=True)
async def _reset_db(engine):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield


@pytest.fixture(autouse=True)
def _isolate_process_state(monkeypatch):
    reset_circuit()
    monkeypatch.setattr(settings, "HTTP_RATE_LIMIT_RPS", 0)
    monkeypatch.setattr(settings, "HTTP_BACKOFF_BASE_S", 0)
    monkeypatch.setattr(settings, "BULK_IMPORT_ITEM_DELAY_S", 0)
    yield
    reset_circuit()


@pytest.fixture
async def engine():
    """
    Fresh in-memory DB per test. StaticPool makes all connections share the same
    in-memory database for the lifetime of this engine fixture.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def async_session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=True)


async def _add_profile(async_session_maker, **kwargs) -> Profile:
    async with async_session_maker() as session:
        p = Profile(**kwargs)
        session.add(p)
        await session.commit()
        return p


@pytest.fixture
async def manager(async_session_maker):
    return await _add_profile(
        async_session_maker,
        email="manager@example.com",
        full_name="Mary Manager",
        role=ProfileRole.manager,
        status=ProfileStatus.active,
        invite_token="team-token",
        tracking_domain=TRACKING_DOMAIN,
        encoded_value=ENCODED_VALUE,
    )


@pytest.fixture
async def officer(async_session_maker, manager):
    return await _add_profile(
        async_session_maker,
        email="officer@example.com",
        full_name="Oscar Officer",
        role=ProfileRole.officer,
        status=ProfileStatus.active,
        parent_id=manager.id,
    )


@pytest.fixture
async def pending_manager(async_session_maker):
    return await _add_profile(
        async_session_maker,
        email="pending@example.com",
        role=ProfileRole.manager,
        status=ProfileStatus.pending,
        tracking_domain=TRACKING_DOMAIN,
        encoded_value=ENCODED_VALUE,
    )


@pytest.fixture
def fake_provider(monkeypatch):
    """Routes every lookup_property call (including the API's) to a FakeProvider."""
    provider = FakeProvider(default=make_property())
    monkeypatch.setattr(property_lookup, "get_provider", lambda name=None: provider)
    return provider


@pytest.fixture
async def api_client(async_session_maker):
    app = create_app()

    async def _session():
        async with async_session_maker() as session:
            yield session

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_session_factory] = lambda: async_session_maker

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
