# tests/test_underwriting.py
import pytest

from equity_api.service_layer.property_lookup import LookupOutcome
from equity_api.service_layer.underwriting import estimate_settlement, evaluate, prequalify, resolve_mortgage

from conftest import FakeProvider, make_property

ADDRESS = "123 Oak Ave, Phoenix, AZ 85001"


def _lookup_with(provider):
    from equity_api.service_layer.property_lookup import lookup_property

    async def _lookup(session, address):
        return await lookup_property(session, address, provider=provider)

    return _lookup


async def test_prequalify_eligible_property(async_session_maker):
    provider = FakeProvider(default=make_property())

    async with async_session_maker() as session:
        p = await prequalify(session, ADDRESS, lookup=_lookup_with(provider))

    assert p.is_eligible is True
    assert p.failure_reasons == []
    assert p.home_value == 500_000
    assert p.mortgage_balance == 200_000
    assert p.max_investment == 150_000
    assert p.ownership_type == "Personal"
    assert p.owner_name_list == ["JOHN SMITH"]


async def test_prequalify_collects_rule_and_ltv_failures(async_session_maker):
    provider = FakeProvider(
        default=make_property(state="TX", owner_names="ACME HOLDINGS LLC", estimated_mortgage_balance=450_000)
    )

    async with async_session_maker() as session:
        p = await prequalify(session, ADDRESS, lookup=_lookup_with(provider))

    assert p.is_eligible is False
    assert p.ownership_type == "LLC"
    assert p.failure_reasons == [
        "Property must be in an eligible state. TX is not currently supported.",
        "Properties owned by LLC are not eligible. Property must be personally owned.",
        "LTV (90.0%) too high or equity too low",
    ]


async def test_unknown_mortgage_defaults_to_half_the_value(async_session_maker):
    provider = FakeProvider(default=make_property(estimated_mortgage_balance=None, estimated_value=400_001))

    async with async_session_maker() as session:
        p = await prequalify(session, ADDRESS, lookup=_lookup_with(provider))

    assert p.mortgage_balance == 200_001
    assert p.current_cltv == pytest.approx(50.0, abs=0.01)


async def test_overrides_are_clamped(async_session_maker):
    provider = FakeProvider(default=make_property(estimated_value=0, estimated_mortgage_balance=0))

    async with async_session_maker() as session:
        p = await prequalify(
            session,
            ADDRESS,
            home_value=5_000_000,
            mortgage_balance=9_000_000,
            ownership_type="Trust",
            lookup=_lookup_with(provider),
        )

    assert p.home_value == 3_000_000
    assert p.mortgage_balance == pytest.approx(2_850_000)
    assert p.ownership_type == "Trust"
    assert p.is_eligible is False


def test_resolve_mortgage_prefers_override_then_vendor_then_half():
    assert resolve_mortgage(500_000, 120_000, 80_000) == 80_000
    assert resolve_mortgage(500_000, 120_000) == 120_000
    assert resolve_mortgage(500_000, 0) == 250_000
    assert resolve_mortgage(500_000, None, -5) == 0


def test_estimate_settlement_bounds_funding():
    est = estimate_settlement(500_000, 1_000_000, settlement_year=10, hpa_rate=0.03, max_investment=150_000)
    assert est.funding_amount == 150_000
    assert est.equity_share_percent == pytest.approx(60.0)
    assert est.calculation.payoff > 150_000

    low = estimate_settlement(500_000, 1_000, max_investment=150_000)
    assert low.funding_amount == 15_000


@pytest.mark.parametrize(
    "kwargs",
    [
        {"settlement_year": 0},
        {"settlement_year": 11},
        {"hpa_rate": 0.07},
        {"max_investment": 10_000},
    ],
)
def test_estimate_settlement_rejects_out_of_range(kwargs):
    with pytest.raises(ValueError):
        estimate_settlement(500_000, 50_000, **kwargs)


def test_owner_list_splits_joined_vendor_names():
    outcome = LookupOutcome(
        data=make_property(owner_names="JOHN SMITH & JANE SMITH, ACME LLC"), ownership_type="Personal", cached=False
    )
    p = evaluate(address=ADDRESS, outcome=outcome)
    assert p.owner_name_list == ["JOHN SMITH", "JANE SMITH", "ACME LLC"]
