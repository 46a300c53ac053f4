# equity_api/service_layer/deals.py
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..domain.offer_links import build_deal_offer_link
from ..domain.pipeline import PIPELINE_STAGES, is_pipeline_stage
from ..models import Deal, Profile
from .profiles import require_active, resolve_tracking_config
from .underwriting import Prequalification

log = logging.getLogger(__name__)


class DealNotEligible(ValueError):
    def __init__(self, reasons: list[str]) -> None:
        super().__init__(", ".join(reasons) or "Property is not eligible")
        self.reasons = reasons


async def create_deal(session: AsyncSession, profile: Profile, preq: Prequalification) -> Deal:
    """
    Persist an eligible pre-qualification and attach its offer link.

    The link embeds the deal id, so the row is flushed first and the link is
    written second.
    """
    require_active(profile)
    if not preq.is_eligible:
        raise DealNotEligible(preq.failure_reasons)

    config = await resolve_tracking_config(session, profile)

    deal = Deal(
        user_id=profile.id,
        property_address=preq.address,
        home_value=preq.home_value,
        mortgage_balance=preq.mortgage_balance,
        max_investment=preq.max_investment,
        owner_names=preq.owner_name_list,
        event_status=None,
    )
    session.add(deal)
    await session.flush()

    deal.offer_link = build_deal_offer_link(config, deal.id, settings.OFFER_HASH)
    await session.flush()

    log.info("deal created: id=%s user=%s max_investment=%.0f", deal.id, profile.id, deal.max_investment)
    return deal


async def get_deal(session: AsyncSession, deal_id: str) -> Deal:
    deal = await session.get(Deal, deal_id)
    if deal is None:
        raise LookupError(f"Deal not found: {deal_id}")
    return deal


async def update_deal_stage(session: AsyncSession, deal_id: str, stage: str) -> Deal:
    if not is_pipeline_stage(stage):
        raise ValueError(f"Unknown pipeline stage: {stage!r}. Expected one of: {', '.join(PIPELINE_STAGES)}")

    deal = await get_deal(session, deal_id)
    deal.event_status = stage
    deal.updated_at = datetime.utcnow()
    await session.flush()
    return deal
