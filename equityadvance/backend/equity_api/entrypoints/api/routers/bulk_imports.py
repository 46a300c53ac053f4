# equity_api/entrypoints/api/routers/bulk_imports.py
from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..deps import get_session_factory, load_profile
from ..errors import DOMAIN_ERRORS, http_error
from ....db import get_session
from ....jobs.bulk_import import run_batch
from ....models import BulkImportBatch, BulkImportItem
from ....schemas import BulkImportCreate, BulkImportItemOut, BulkImportOut
from ....service_layer.bulk_import import create_batch, get_batch, list_items, progress

router = APIRouter(prefix="/bulk-imports", tags=["bulk-imports"])


def batch_out(batch: BulkImportBatch, items: list[BulkImportItem]) -> BulkImportOut:
    p = progress(batch)
    return BulkImportOut(
        id=batch.id,
        status=p.status,
        total=p.total,
        completed=p.completed,
        success=p.success,
        failed=p.failed,
        percent=p.percent,
        created_at=batch.created_at,
        items=[
            BulkImportItemOut(
                position=i.position,
                address=i.original_address,
                status=i.status.value,
                message=i.result_message,
                deal_id=i.deal_id,
                offer_link=i.offer_link,
                max_investment=i.max_investment,
            )
            for i in items
        ],
    )


@router.post("", response_model=BulkImportOut, status_code=202)
async def submit(
    body: BulkImportCreate,
    background: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> BulkImportOut:
    if body.addresses is None and body.text is None:
        raise HTTPException(status_code=400, detail="Provide addresses or text")

    profile = await load_profile(session, body.profile_id)
    try:
        batch = await create_batch(session, profile, body.addresses if body.addresses is not None else body.text or "")
    except DOMAIN_ERRORS as e:
        raise http_error(e) from e

    out = batch_out(batch, await list_items(session, batch.id))
    # nothing may touch this session after the commit; the batch gets its own
    await session.commit()
    background.add_task(run_batch, session_factory, batch.id)
    return out


@router.get("/{batch_id}", response_model=BulkImportOut)
async def status(batch_id: str, session: AsyncSession = Depends(get_session)) -> BulkImportOut:
    try:
        batch = await get_batch(session, batch_id)
    except LookupError as e:
        raise http_error(e) from e
    return batch_out(batch, await list_items(session, batch_id))
