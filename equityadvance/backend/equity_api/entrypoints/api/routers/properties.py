# equity_api/entrypoints/api/routers/properties.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import DOMAIN_ERRORS, http_error
from ....db import get_session
from ....schemas import PropertyLookupOut, PropertyLookupRequest
from ....service_layer.property_lookup import lookup_property

router = APIRouter(prefix="/properties", tags=["properties"])


@router.post("/lookup", response_model=PropertyLookupOut)
async def lookup(
    body: PropertyLookupRequest,
    session: AsyncSession = Depends(get_session),
) -> PropertyLookupOut:
    try:
        outcome = await lookup_property(session, body.address)
    except DOMAIN_ERRORS as e:
        raise http_error(e) from e
    await session.commit()

    d = outcome.data
    return PropertyLookupOut(
        owner_names=d.owner_names,
        ownership_type=outcome.ownership_type,
        state=d.state,
        property_type=d.property_type,
        estimated_value=d.estimated_value,
        estimated_mortgage_balance=d.estimated_mortgage_balance,
        corrected_address=d.corrected_address,
        source=d.source,
        cached=outcome.cached,
    )
