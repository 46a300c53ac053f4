from __future__ import annotations

import argparse
import asyncio

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from equity_api.db import async_session, engine
from equity_api.models import Base, Profile, ProfileRole, ProfileStatus


async def _ensure_schema() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def _upsert_profile(
    session: AsyncSession,
    *,
    email: str,
    full_name: str,
    role: ProfileRole,
    parent: Profile | None,
    tracking_domain: str | None,
    encoded_value: str | None,
) -> Profile:
    # idempotent on email
    existing = (await session.execute(select(Profile).where(Profile.email == email))).scalars().first()
    p = existing or Profile(email=email)
    p.full_name = full_name
    p.role = role
    p.status = ProfileStatus.active
    p.parent_id = parent.id if parent else None
    p.tracking_domain = tracking_domain
    p.encoded_value = encoded_value
    p.invite_token = p.invite_token or (f"demo-{email.split('@')[0]}" if role == ProfileRole.manager else None)
    if existing is None:
        session.add(p)
    await session.flush()
    return p


async def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--tracking-domain", default="www.example-track.com", help="Affiliate tracking domain")
    parser.add_argument("--encoded-value", default="DEMO123", help="Affiliate encoded value")
    args = parser.parse_args()

    await _ensure_schema()

    async with async_session() as session:
        manager = await _upsert_profile(
            session,
            email="manager@demo.local",
            full_name="Demo Manager",
            role=ProfileRole.manager,
            parent=None,
            tracking_domain=args.tracking_domain,
            encoded_value=args.encoded_value,
        )
        officer = await _upsert_profile(
            session,
            email="officer@demo.local",
            full_name="Demo Officer",
            role=ProfileRole.officer,
            parent=manager,
            tracking_domain=None,
            encoded_value=None,
        )
        await session.commit()

    print(f"Seeded demo manager={manager.id} officer={officer.id}")


if __name__ == "__main__":
    asyncio.run(main())
