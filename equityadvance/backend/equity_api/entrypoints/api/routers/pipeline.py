# equity_api/entrypoints/api/routers/pipeline.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import load_profile
from ....db import get_session
from ....schemas import PipelineColumnOut, PipelineDealOut, PipelineOut
from ....service_layer.pipeline import load_pipeline

router = APIRouter(tags=["pipeline"])


@router.get("/pipeline", response_model=PipelineOut)
async def pipeline(
    profile_id: str = Query(...),
    session: AsyncSession = Depends(get_session),
) -> PipelineOut:
    profile = await load_profile(session, profile_id)
    grouped = await load_pipeline(session, profile)

    columns = [
        PipelineColumnOut(
            stage=stage,
            count=len(deals),
            deals=[
                PipelineDealOut(
                    id=d.id,
                    property_address=d.property_address,
                    home_value=d.home_value,
                    max_investment=d.max_investment,
                    owner_names=d.owner_names,
                    offer_link=d.offer_link,
                    created_at=d.created_at,
                    originator_name=d.originator_name,
                    originator_role=d.originator_role,
                )
                for d in deals
            ],
        )
        for stage, deals in grouped.items()
    ]
    return PipelineOut(total=sum(c.count for c in columns), columns=columns)
