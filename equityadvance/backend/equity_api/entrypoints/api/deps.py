# equity_api/entrypoints/api/deps.py
from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ...db import AsyncSessionLocal
from ...models import Profile
from ...service_layer.profiles import get_profile
from .errors import http_error


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Background tasks outlive the request session and open their own.
    Overridden in tests to point at the test engine.
    """
    return AsyncSessionLocal


async def load_profile(session: AsyncSession, profile_id: str) -> Profile:
    try:
        return await get_profile(session, profile_id)
    except LookupError as e:
        raise http_error(e) from e
