# scripts/smoke_prequalify.py
import argparse
import asyncio

from equity_api.db import async_session, engine
from equity_api.domain.hea import format_currency
from equity_api.models import Base
from equity_api.service_layer.underwriting import prequalify


async def main() -> None:
    parser = argparse.ArgumentParser(description="Run one live pre-qualification against the configured vendor")
    parser.add_argument("address", help='e.g. "123 Main St, Phoenix, AZ 85001"')
    args = parser.parse_args()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        p = await prequalify(session, args.address)
        await session.commit()

    print("source:", p.source, "(cached)" if p.cached else "")
    print("owners:", p.owner_names, f"[{p.ownership_type}]")
    print("state/type:", p.state, p.property_type)
    print("value:", format_currency(p.home_value), "mortgage:", format_currency(p.mortgage_balance))
    print("max investment:", format_currency(p.max_investment), f"cltv={p.current_cltv:.1f}%")
    print("eligible:", p.is_eligible)
    for r in p.failure_reasons:
        print("  -", r)


if __name__ == "__main__":
    asyncio.run(main())
