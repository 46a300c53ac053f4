# scripts/init_db.py
import argparse
import asyncio

from equity_api.config import settings
from equity_api.db import engine
from equity_api.models import Base


async def main() -> None:
    parser = argparse.ArgumentParser(description="Create (or recreate) every table; there are no migrations")
    parser.add_argument("--reset", action="store_true", help="Drop all tables first (dev only)")
    args = parser.parse_args()

    if args.reset and settings.ENV.lower() == "prod":
        raise SystemExit("refusing to --reset with ENV=prod")

    async with engine.begin() as conn:
        if args.reset:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    print(f"OK: tables ready on {settings.DB_URL.split('://', 1)[0]} (reset={args.reset}).")


if __name__ == "__main__":
    asyncio.run(main())
