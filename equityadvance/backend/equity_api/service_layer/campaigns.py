# equity_api/service_layer/campaigns.py
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..domain.offer_links import build_campaign_offer_link
from ..models import Campaign, Profile, ProfileRole
from .profiles import require_active, resolve_tracking_config

log = logging.getLogger(__name__)

# platform id -> display name
PLATFORMS: dict[str, str] = {
    "tiktok": "TikTok",
    "facebook": "Facebook",
    "instagram": "Instagram",
    "linkedin": "LinkedIn",
    "twitter": "X/Twitter",
    "youtube": "YouTube",
    "email": "Email",
    "other": "Other",
}

FUNNEL_COUNTERS = (
    "total_clicks",
    "application_created",
    "application_qualified",
    "estimate_prepared",
    "application_completed",
    "underwriting_submitted",
    "review_requested",
    "final_offer_presented",
    "funds_disbursed",
    "closed_lost",
)

_PENDING_LINK = "pending"


async def create_campaign(
    session: AsyncSession,
    profile: Profile,
    name: str,
    platform: str,
    description: str | None = None,
) -> Campaign:
    name = (name or "").strip()
    if not name:
        raise ValueError("Please enter a campaign name")
    platform = (platform or "").strip().lower()
    if not platform:
        raise ValueError("Please select a platform")
    if platform not in PLATFORMS:
        raise ValueError(f"Unknown platform: {platform}")

    require_active(profile)
    config = await resolve_tracking_config(session, profile)

    campaign = Campaign(
        user_id=profile.id,
        name=name,
        platform=platform,
        description=(description or "").strip() or None,
        offer_link=_PENDING_LINK,
    )
    session.add(campaign)
    await session.flush()

    officer_id = profile.id if profile.role == ProfileRole.officer else None
    campaign.offer_link = build_campaign_offer_link(config, campaign.id, officer_id, settings.OFFER_HASH)
    await session.flush()

    log.info("campaign created: id=%s platform=%s user=%s", campaign.id, platform, profile.id)
    return campaign


async def get_campaign(session: AsyncSession, campaign_id: str) -> Campaign:
    campaign = await session.get(Campaign, campaign_id)
    if campaign is None:
        raise LookupError(f"Campaign not found: {campaign_id}")
    return campaign


async def list_campaigns(session: AsyncSession, profile: Profile) -> list[Campaign]:
    q = select(Campaign).where(Campaign.user_id == profile.id).order_by(Campaign.created_at.desc())
    return list((await session.execute(q)).scalars().all())


async def set_campaign_active(session: AsyncSession, campaign_id: str, is_active: bool) -> Campaign:
    campaign = await get_campaign(session, campaign_id)
    campaign.is_active = is_active
    campaign.updated_at = datetime.utcnow()
    await session.flush()
    return campaign


def funnel(campaign: Campaign) -> dict[str, int]:
    return {k: int(getattr(campaign, k) or 0) for k in FUNNEL_COUNTERS}
