# equity_api/service_layer/underwriting.py
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.hea import (
    DEFAULT_HPA_RATE,
    DEFAULT_SETTLEMENT_YEAR,
    MAX_HOME_VALUE,
    MAX_HPA_RATE,
    MAX_SETTLEMENT_YEAR,
    MIN_FUNDING,
    MIN_HOME_VALUE,
    MIN_HPA_RATE,
    MIN_SETTLEMENT_YEAR,
    HeaCalculation,
    assess_funding,
    calculate_hea_cost,
    equity_share_percent,
    validate_property,
)
from .property_lookup import LookupOutcome, lookup_property

# a mortgage above this share of value is not a realistic input
MAX_MORTGAGE_SHARE = 0.95
UNKNOWN_MORTGAGE_SHARE = 0.5

_OWNER_SEP = re.compile(r"\s*[,&]\s*")

Lookup = Callable[[AsyncSession, str], Awaitable[LookupOutcome]]


@dataclass
class Prequalification:
    address: str
    owner_names: str
    ownership_type: str
    state: str
    property_type: str
    home_value: float
    mortgage_balance: float
    estimated_value: float
    estimated_mortgage_balance: float | None
    max_investment: float
    current_cltv: float
    total_equity: float
    usable_equity: float
    is_eligible: bool
    source: str
    cached: bool = False
    corrected_address: str | None = None
    validation_errors: list[str] = field(default_factory=list)
    failure_reasons: list[str] = field(default_factory=list)

    @property
    def owner_name_list(self) -> list[str]:
        return [n for n in _OWNER_SEP.split(self.owner_names.strip()) if n]


@dataclass(frozen=True)
class SettlementEstimate:
    funding_amount: float
    settlement_year: int
    hpa_rate: float
    equity_share_percent: float
    calculation: HeaCalculation


def _clamp(value: float, lo: float, hi: float) -> float:
    return min(max(value, lo), hi)


def _round_half_up(value: float) -> float:
    return float(int(value + 0.5))


def resolve_mortgage(home_value: float, estimated: float | None, override: float | None = None) -> float:
    """
    User input wins (bounded to 0..95% of value). Otherwise the vendor figure
    when it is positive, else assume half the value is still owed.
    """
    if override is not None:
        return _clamp(override, 0.0, home_value * MAX_MORTGAGE_SHARE)
    if estimated and estimated > 0:
        return estimated
    return _round_half_up(home_value * UNKNOWN_MORTGAGE_SHARE)


def evaluate(
    *,
    address: str,
    outcome: LookupOutcome,
    home_value: float | None = None,
    mortgage_balance: float | None = None,
    state: str | None = None,
    property_type: str | None = None,
    ownership_type: str | None = None,
) -> Prequalification:
    data = outcome.data

    value = _clamp(home_value, MIN_HOME_VALUE, MAX_HOME_VALUE) if home_value is not None else data.estimated_value
    mortgage = resolve_mortgage(value, data.estimated_mortgage_balance, mortgage_balance)
    st = (state or data.state or "").strip().upper()
    ptype = property_type or data.property_type
    otype = ownership_type or outcome.ownership_type

    validation = validate_property(st, ptype, otype, value)
    funding = assess_funding(value, mortgage)

    reasons = list(validation.errors)
    if not funding.is_eligible:
        reasons.append(f"LTV ({funding.current_cltv:.1f}%) too high or equity too low")

    return Prequalification(
        address=address,
        owner_names=data.owner_names,
        ownership_type=otype,
        state=st,
        property_type=ptype,
        home_value=value,
        mortgage_balance=mortgage,
        estimated_value=data.estimated_value,
        estimated_mortgage_balance=data.estimated_mortgage_balance,
        max_investment=funding.max_investment,
        current_cltv=funding.current_cltv,
        total_equity=funding.total_equity,
        usable_equity=funding.usable_equity,
        is_eligible=validation.is_valid and funding.is_eligible,
        source=data.source,
        cached=outcome.cached,
        corrected_address=data.corrected_address,
        validation_errors=list(validation.errors),
        failure_reasons=reasons,
    )


async def prequalify(
    session: AsyncSession,
    address: str,
    *,
    home_value: float | None = None,
    mortgage_balance: float | None = None,
    state: str | None = None,
    property_type: str | None = None,
    ownership_type: str | None = None,
    lookup: Lookup = lookup_property,
) -> Prequalification:
    """Look the property up, apply any broker overrides, then run the program rules."""
    address = (address or "").strip()
    outcome = await lookup(session, address)
    return evaluate(
        address=address,
        outcome=outcome,
        home_value=home_value,
        mortgage_balance=mortgage_balance,
        state=state,
        property_type=property_type,
        ownership_type=ownership_type,
    )


def estimate_settlement(
    home_value: float,
    funding_amount: float,
    settlement_year: int = DEFAULT_SETTLEMENT_YEAR,
    hpa_rate: float = DEFAULT_HPA_RATE,
    max_investment: float | None = None,
) -> SettlementEstimate:
    if home_value <= 0:
        raise ValueError("home_value must be positive")
    if not MIN_SETTLEMENT_YEAR <= settlement_year <= MAX_SETTLEMENT_YEAR:
        raise ValueError(f"settlement_year must be between {MIN_SETTLEMENT_YEAR} and {MAX_SETTLEMENT_YEAR}")
    if not MIN_HPA_RATE <= hpa_rate <= MAX_HPA_RATE:
        raise ValueError(f"hpa_rate must be between {MIN_HPA_RATE} and {MAX_HPA_RATE}")

    upper = max_investment if max_investment is not None else funding_amount
    if upper < MIN_FUNDING:
        raise ValueError("Available equity is too low for this program. Minimum funding is $15,000.")
    funding = _clamp(funding_amount, MIN_FUNDING, upper)

    return SettlementEstimate(
        funding_amount=funding,
        settlement_year=settlement_year,
        hpa_rate=hpa_rate,
        equity_share_percent=equity_share_percent(funding, home_value),
        calculation=calculate_hea_cost(funding, home_value, settlement_year, hpa_rate),
    )
