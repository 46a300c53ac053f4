# equity_api/jobs/scheduler.py
from __future__ import annotations

import asyncio
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlalchemy import func, select

from ..config import settings
from ..db import async_session
from ..models import BatchStatus, BulkImportBatch
from ..service_layer.bulk_import import resume_pending_batches

log = logging.getLogger(__name__)


async def _resume_bulk_imports_quiet() -> None:
    """
    Quiet-by-default: no JobRun row unless some batch is still processing.
    """
    async with async_session() as session:
        open_batches = (
            await session.execute(
                select(func.count()).select_from(BulkImportBatch).where(BulkImportBatch.status == BatchStatus.processing)
            )
        ).scalar_one()

    if int(open_batches) == 0:
        return

    async with async_session() as session:
        summary = await resume_pending_batches(session)
    if summary["batches"]:
        log.info("resumed bulk imports: %s", summary)


def build_scheduler() -> AsyncIOScheduler:
    sched = AsyncIOScheduler()

    sched.add_job(
        lambda: asyncio.create_task(_resume_bulk_imports_quiet()),
        "interval",
        minutes=settings.SCHED_BULK_IMPORT_INTERVAL_MINUTES,
    )

    return sched
