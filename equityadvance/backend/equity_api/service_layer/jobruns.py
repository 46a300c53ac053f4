# equity_api/service_layer/jobruns.py
from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..models import JobRun, JobRunStatus


def _elapsed_s(jr: JobRun) -> float:
    return round((jr.finished_at - jr.started_at).total_seconds(), 3) if jr.finished_at else 0.0


async def start_job(session: AsyncSession, job_name: str, meta: dict[str, Any] | None = None) -> JobRun:
    jr = JobRun(
        job_name=job_name,
        started_at=datetime.utcnow(),
        status=JobRunStatus.running,
        meta_json=json.dumps(meta or {}),
    )
    session.add(jr)
    await session.flush()
    return jr


async def finish_job_success(session: AsyncSession, jr: JobRun, summary: dict[str, Any]) -> None:
    jr.status = JobRunStatus.success
    jr.finished_at = datetime.utcnow()
    jr.summary_json = json.dumps({**summary, "elapsed_s": _elapsed_s(jr)})
    jr.error = None
    await session.flush()


async def finish_job_fail(session: AsyncSession, jr: JobRun, err: Exception) -> None:
    jr.status = JobRunStatus.failed
    jr.finished_at = datetime.utcnow()
    jr.summary_json = json.dumps({"elapsed_s": _elapsed_s(jr)})
    # bounded; vendor errors can carry whole response bodies
    jr.error = f"{type(err).__name__}: {err}"[:2000]
    await session.flush()
