# equity_api/entrypoints/api/routers/deals.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import load_profile
from ..errors import DOMAIN_ERRORS, http_error
from ....db import get_session
from ....domain.pipeline import stage_of
from ....models import Deal
from ....schemas import DealCreate, DealOut, DealStageUpdate
from ....service_layer.deals import create_deal, get_deal, update_deal_stage
from ....service_layer.underwriting import prequalify

router = APIRouter(prefix="/deals", tags=["deals"])


def deal_out(d: Deal) -> DealOut:
    return DealOut(
        id=d.id,
        user_id=d.user_id,
        property_address=d.property_address,
        home_value=d.home_value,
        mortgage_balance=d.mortgage_balance,
        max_investment=d.max_investment,
        owner_names=list(d.owner_names or []),
        offer_link=d.offer_link,
        stage=stage_of(d.event_status),
        created_at=d.created_at,
    )


@router.post("", response_model=DealOut, status_code=201)
async def create(body: DealCreate, session: AsyncSession = Depends(get_session)) -> DealOut:
    """Pre-qualify the address (with any broker overrides) and, if eligible, issue an offer link."""
    profile = await load_profile(session, body.profile_id)
    try:
        preq = await prequalify(
            session,
            body.address,
            home_value=body.home_value,
            mortgage_balance=body.mortgage_balance,
            state=body.state,
            property_type=body.property_type,
            ownership_type=body.ownership_type,
        )
        deal = await create_deal(session, profile, preq)
    except DOMAIN_ERRORS as e:
        # the lookup cache row is still worth keeping
        await session.commit()
        raise http_error(e) from e
    await session.commit()
    return deal_out(deal)


@router.get("/{deal_id}", response_model=DealOut)
async def get(deal_id: str, session: AsyncSession = Depends(get_session)) -> DealOut:
    try:
        return deal_out(await get_deal(session, deal_id))
    except LookupError as e:
        raise http_error(e) from e


@router.patch("/{deal_id}/stage", response_model=DealOut)
async def set_stage(
    deal_id: str,
    body: DealStageUpdate,
    session: AsyncSession = Depends(get_session),
) -> DealOut:
    try:
        deal = await update_deal_stage(session, deal_id, body.stage)
    except DOMAIN_ERRORS as e:
        raise http_error(e) from e
    await session.commit()
    return deal_out(deal)
