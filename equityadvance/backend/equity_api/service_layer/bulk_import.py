# equity_api/service_layer/bulk_import.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..domain.hea import format_currency
from ..models import BatchStatus, BulkImportBatch, BulkImportItem, ItemStatus, Profile
from .deals import create_deal
from .jobruns import finish_job_fail, finish_job_success, start_job
from .profiles import get_profile, require_active, resolve_tracking_config
from .property_lookup import lookup_property
from .underwriting import Lookup, prequalify

log = logging.getLogger(__name__)

# batches currently being worked by this process
_IN_FLIGHT: set[str] = set()


@dataclass
class BatchProgress:
    batch_id: str
    status: str
    total: int
    completed: int
    success: int
    failed: int

    @property
    def percent(self) -> int:
        return round(self.completed / self.total * 100) if self.total else 100


def parse_addresses(source: str | Iterable[str]) -> list[str]:
    """One address per line; surrounding whitespace and blank lines are dropped."""
    lines = source.splitlines() if isinstance(source, str) else list(source)
    addresses = [str(line).strip() for line in lines if str(line).strip()]

    if not addresses:
        raise ValueError("Please enter at least one address")
    limit = settings.BULK_IMPORT_MAX_ADDRESSES
    if len(addresses) > limit:
        raise ValueError(f"Please limit to {limit} addresses per batch")
    return addresses


async def create_batch(session: AsyncSession, profile: Profile, addresses: str | Iterable[str]) -> BulkImportBatch:
    lines = parse_addresses(addresses)
    require_active(profile)
    # fail the whole batch up front rather than every item later
    await resolve_tracking_config(session, profile)

    batch = BulkImportBatch(
        user_id=profile.id,
        total_count=len(lines),
        status=BatchStatus.processing,
    )
    session.add(batch)
    await session.flush()

    session.add_all(
        BulkImportItem(batch_id=batch.id, position=i, original_address=line, status=ItemStatus.pending)
        for i, line in enumerate(lines)
    )
    await session.flush()
    log.info("bulk import batch %s created with %d addresses", batch.id, len(lines))
    return batch


async def get_batch(session: AsyncSession, batch_id: str) -> BulkImportBatch:
    batch = await session.get(BulkImportBatch, batch_id)
    if batch is None:
        raise LookupError(f"Batch not found: {batch_id}")
    return batch


async def list_items(session: AsyncSession, batch_id: str) -> list[BulkImportItem]:
    q = select(BulkImportItem).where(BulkImportItem.batch_id == batch_id).order_by(BulkImportItem.position.asc())
    return list((await session.execute(q)).scalars().all())


def progress(batch: BulkImportBatch) -> BatchProgress:
    return BatchProgress(
        batch_id=batch.id,
        status=batch.status.value,
        total=batch.total_count,
        completed=batch.completed_count,
        success=batch.success_count,
        failed=batch.failed_count,
    )




def _stale_cutoff(stale_after_minutes: int | None) -> datetime:
    stale = settings.BULK_IMPORT_STALE_MINUTES if stale_after_minutes is None else stale_after_minutes
    return datetime.utcnow() - timedelta(minutes=stale)


async def claim_item(session: AsyncSession, item: BulkImportItem, stale_before: datetime) -> bool:
    """
    Take an item for this worker and commit the claim right away, so a second
    worker (API background task or scheduler, possibly another process) skips
    it. Pending items are free; a processing item is free only once its claim
    is older than `stale_before`.
    """
    now = datetime.utcnow()
    res = await session.execute(
        update(BulkImportItem)
        .where(BulkImportItem.id == item.id)
        .where(
            or_(
                BulkImportItem.status == ItemStatus.pending,
                and_(
                    BulkImportItem.status == ItemStatus.processing,
                    or_(BulkImportItem.claimed_at.is_(None), BulkImportItem.claimed_at <= stale_before),
                ),
            )
        )
        .values(status=ItemStatus.processing, claimed_at=now)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount == 0:
        await session.commit()
        return False

    await session.execute(
        update(BulkImportBatch)
        .where(BulkImportBatch.id == item.batch_id)
        .values(updated_at=now)
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    await session.refresh(item)
    return True


async def _process_item(
    session: AsyncSession,
    profile: Profile,
    item: BulkImportItem,
    lookup: Lookup,
) -> None:
    address = item.original_address
    try:
        # a failure inside one item must not roll back the items before it
        async with session.begin_nested():
            preq = await prequalify(session, address, lookup=lookup)
            if preq.is_eligible:
                deal = await create_deal(session, profile, preq)
                item.status = ItemStatus.success
                item.deal_id = deal.id
                item.offer_link = deal.offer_link
                item.max_investment = deal.max_investment
                item.result_message = f"Max Funding: {format_currency(deal.max_investment)}"
            else:
                item.status = ItemStatus.failed
                item.result_message = ", ".join(preq.failure_reasons)
    except Exception as e:
        log.warning("bulk import item %r failed: %s", address, e)
        item.status = ItemStatus.failed
        item.result_message = str(e) or "Unknown error"


async def _record_result(session: AsyncSession, batch_id: str, ok: bool) -> None:
    # counters move in SQL so two workers cannot overwrite each other's totals
    await session.execute(
        update(BulkImportBatch)
        .where(BulkImportBatch.id == batch_id)
        .values(
            completed_count=BulkImportBatch.completed_count + 1,
            success_count=BulkImportBatch.success_count + (1 if ok else 0),
            failed_count=BulkImportBatch.failed_count + (0 if ok else 1),
            updated_at=datetime.utcnow(),
        )
        .execution_options(synchronize_session=False)
    )


async def process_batch(
    session: AsyncSession,
    batch_id: str,
    *,
    lookup: Lookup = lookup_property,
    delay_s: float | None = None,
    stale_after_minutes: int | None = None,
) -> BatchProgress:
    """
    Work through a batch's open items one at a time.

    Unlike most service functions this commits: each claim, then each result,
    so pollers of GET /bulk-imports/{id} see progress and other workers see
    which items are taken.
    """
    if batch_id in _IN_FLIGHT:
        raise RuntimeError(f"Batch {batch_id} is already being processed")
    _IN_FLIGHT.add(batch_id)
    try:
        return await _process_batch(
            session, batch_id, lookup=lookup, delay_s=delay_s, stale_before=_stale_cutoff(stale_after_minutes)
        )
    finally:
        _IN_FLIGHT.discard(batch_id)


async def _process_batch(
    session: AsyncSession,
    batch_id: str,
    *,
    lookup: Lookup,
    delay_s: float | None,
    stale_before: datetime,
) -> BatchProgress:
    delay = settings.BULK_IMPORT_ITEM_DELAY_S if delay_s is None else delay_s
    batch = await get_batch(session, batch_id)

    try:
        profile = await get_profile(session, batch.user_id)
    except LookupError:
        batch.status = BatchStatus.failed
        await session.commit()
        raise

    open_states = (ItemStatus.pending, ItemStatus.processing)
    items = [i for i in await list_items(session, batch_id) if i.status in open_states]

    for n, item in enumerate(items):
        if not await claim_item(session, item, stale_before):
            log.info("bulk import item %s is held by another worker, skipping", item.id)
            continue

        await _process_item(session, profile, item, lookup)
        await _record_result(session, batch_id, item.status == ItemStatus.success)
        await session.commit()

        if delay > 0 and n < len(items) - 1:
            await asyncio.sleep(delay)

    still_open = (
        await session.execute(
            select(func.count())
            .select_from(BulkImportItem)
            .where(BulkImportItem.batch_id == batch_id, BulkImportItem.status.in_(open_states))
        )
    ).scalar_one()
    if still_open == 0:
        await session.execute(
            update(BulkImportBatch)
            .where(BulkImportBatch.id == batch_id, BulkImportBatch.status == BatchStatus.processing)
            .values(status=BatchStatus.completed, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
    await session.commit()
    await session.refresh(batch)

    log.info(
        "bulk import batch %s: %d ok, %d failed of %d (%d still open)",
        batch.id, batch.success_count, batch.failed_count, batch.total_count, still_open,
    )
    return progress(batch)


async def resume_pending_batches(
    session: AsyncSession,
    *,
    lookup: Lookup = lookup_property,
    delay_s: float | None = None,
    stale_after_minutes: int | None = None,
) -> dict[str, int]:
    """
    Finish batches whose worker went quiet (restart, crash): still processing
    and no heartbeat for `BULK_IMPORT_STALE_MINUTES`. Each pass is recorded
    as a JobRun.
    """
    stale = settings.BULK_IMPORT_STALE_MINUTES if stale_after_minutes is None else stale_after_minutes
    cutoff = _stale_cutoff(stale)

    jr = await start_job(session, "bulk_import_resume", meta={"stale_after_minutes": stale})
    await session.commit()

    summary = {"batches": 0, "items": 0, "success": 0, "failed": 0}
    try:
        q = (
            select(BulkImportBatch.id)
            .where(BulkImportBatch.status == BatchStatus.processing)
            .where(BulkImportBatch.updated_at <= cutoff)
            .order_by(BulkImportBatch.created_at.asc())
        )
        batch_ids = [bid for bid in (await session.execute(q)).scalars().all() if bid not in _IN_FLIGHT]

        for batch_id in batch_ids:
            before = progress(await get_batch(session, batch_id))
            after = await process_batch(
                session, batch_id, lookup=lookup, delay_s=delay_s, stale_after_minutes=stale
            )
            summary["batches"] += 1
            summary["items"] += after.completed - before.completed
            summary["success"] += after.success - before.success
            summary["failed"] += after.failed - before.failed

        await finish_job_success(session, jr, summary)
        await session.commit()
        return summary
    except Exception as e:
        await session.rollback()
        await session.refresh(jr)
        await finish_job_fail(session, jr, e)
        await session.commit()
        raise
