# equity_api/service_layer/pipeline.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.pipeline import group_deals_by_stage
from ..models import Deal, Profile
from .profiles import team_member_ids


@dataclass(frozen=True)
class PipelineDeal:
    id: str
    property_address: str
    home_value: float
    max_investment: float
    owner_names: list[str]
    offer_link: str | None
    event_status: str | None
    created_at: datetime
    originator_name: str | None
    originator_role: str


async def load_pipeline(session: AsyncSession, profile: Profile) -> dict[str, list[PipelineDeal]]:
    """Deals visible to `profile`, newest first, bucketed by funnel stage."""
    ids = await team_member_ids(session, profile)

    q = (
        select(Deal, Profile)
        .outerjoin(Profile, Profile.id == Deal.user_id)
        .where(Deal.user_id.in_(ids))
        .order_by(Deal.created_at.desc())
    )
    rows = (await session.execute(q)).all()

    deals = [
        PipelineDeal(
            id=deal.id,
            property_address=deal.property_address,
            home_value=deal.home_value,
            max_investment=deal.max_investment,
            owner_names=list(deal.owner_names or []),
            offer_link=deal.offer_link,
            event_status=deal.event_status,
            created_at=deal.created_at,
            originator_name=owner.full_name if owner else None,
            originator_role=owner.role.value if owner else "manager",
        )
        for deal, owner in rows
    ]
    return group_deals_by_stage(deals)
