# equity_api/jobs/bulk_import.py
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..service_layer.bulk_import import process_batch
from ..service_layer.jobruns import finish_job_fail, finish_job_success, start_job

log = logging.getLogger(__name__)


async def run_batch(session_factory: async_sessionmaker[AsyncSession], batch_id: str) -> dict[str, Any]:
    """
    Background-task entry point: process one batch in its own session and
    record the run.
    """
    async with session_factory() as session:
        jr = await start_job(session, "bulk_import", meta={"batch_id": batch_id})
        await session.commit()
        try:
            p = await process_batch(session, batch_id)
            res = {"batch_id": p.batch_id, "total": p.total, "success": p.success, "failed": p.failed}
            await finish_job_success(session, jr, res)
            await session.commit()
            return res
        except Exception as e:
            log.exception("bulk import batch %s aborted", batch_id)
            await session.rollback()
            await session.refresh(jr)
            await finish_job_fail(session, jr, e)
            await session.commit()
            raise
