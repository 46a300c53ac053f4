from __future__ import annotations

import asyncio
import logging

from equity_api.config import settings
from equity_api.jobs.scheduler import build_scheduler


def _quiet_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(levelname)s:%(name)s:%(message)s",
    )

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)


async def main() -> None:
    _quiet_logging()

    scheduler = build_scheduler()
    scheduler.start()
    logging.getLogger(__name__).info(
        "Scheduler started (bulk import resume every %d min)", settings.SCHED_BULK_IMPORT_INTERVAL_MINUTES
    )

    try:
        while True:
            await asyncio.sleep(3600)
    except (KeyboardInterrupt, asyncio.CancelledError):
        scheduler.shutdown()
        logging.getLogger(__name__).info("Scheduler stopped")


if __name__ == "__main__":
    asyncio.run(main())
