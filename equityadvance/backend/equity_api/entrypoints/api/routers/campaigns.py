# equity_api/entrypoints/api/routers/campaigns.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import load_profile
from ..errors import DOMAIN_ERRORS, http_error
from ....db import get_session
from ....models import Campaign
from ....schemas import CampaignCreate, CampaignOut, CampaignUpdate, PlatformOut
from ....service_layer.campaigns import PLATFORMS, create_campaign, funnel, list_campaigns, set_campaign_active

router = APIRouter(prefix="/campaigns", tags=["campaigns"])


def campaign_out(c: Campaign) -> CampaignOut:
    return CampaignOut(
        id=c.id,
        user_id=c.user_id,
        name=c.name,
        platform=c.platform,
        platform_name=PLATFORMS.get(c.platform, c.platform),
        description=c.description,
        offer_link=c.offer_link,
        is_active=c.is_active,
        funnel=funnel(c),
        created_at=c.created_at,
    )


@router.get("/platforms", response_model=list[PlatformOut])
def platforms() -> list[PlatformOut]:
    return [PlatformOut(id=k, name=v) for k, v in PLATFORMS.items()]


@router.post("", response_model=CampaignOut, status_code=201)
async def create(body: CampaignCreate, session: AsyncSession = Depends(get_session)) -> CampaignOut:
    profile = await load_profile(session, body.profile_id)
    try:
        c = await create_campaign(session, profile, body.name, body.platform, body.description)
    except DOMAIN_ERRORS as e:
        raise http_error(e) from e
    await session.commit()
    return campaign_out(c)


@router.get("", response_model=list[CampaignOut])
async def list_for_profile(
    profile_id: str = Query(...),
    session: AsyncSession = Depends(get_session),
) -> list[CampaignOut]:
    profile = await load_profile(session, profile_id)
    return [campaign_out(c) for c in await list_campaigns(session, profile)]


@router.patch("/{campaign_id}", response_model=CampaignOut)
async def update(
    campaign_id: str,
    body: CampaignUpdate,
    session: AsyncSession = Depends(get_session),
) -> CampaignOut:
    try:
        c = await set_campaign_active(session, campaign_id, body.is_active)
    except DOMAIN_ERRORS as e:
        raise http_error(e) from e
    await session.commit()
    return campaign_out(c)
