# equity_api/domain/hea.py
"""
Home Equity Agreement math.

Everything here is pure: no I/O, no settings. The numbers mirror the program
terms the broker sells against (19.9% annualized cost cap, 80% max CLTV,
30% of value, $500K ceiling, $15K floor).
"""
from __future__ import annotations

from dataclasses import dataclass, field

ELIGIBLE_STATES: tuple[str, ...] = (
    "AZ", "CA", "FL", "HI", "ID", "IN", "KY", "MI", "MO", "MT",
    "NV", "NH", "NJ", "NM", "NC", "OH", "OR", "PA", "SC", "TN",
    "UT", "VA", "DC", "WI", "WY",
)

# Labels follow the RentCast vocabulary; see domain/ownership.map_property_type
PROPERTY_TYPES: tuple[str, ...] = (
    "Single Family", "Condo", "Townhouse", "Multi-Family", "Manufactured", "Apartment", "Land",
)
INELIGIBLE_PROPERTY_TYPES: tuple[str, ...] = ("Manufactured", "Apartment", "Land")

OWNERSHIP_TYPES: tuple[str, ...] = ("Personal", "LLC", "Corporation", "Trust", "Partnership")
INELIGIBLE_OWNERSHIP_TYPES: tuple[str, ...] = ("LLC", "Corporation", "Partnership")

COST_CAP_RATE = 0.199
DEFAULT_MULTIPLIER = 2.0

MIN_HOME_VALUE = 175_000
MAX_HOME_VALUE = 3_000_000

MAX_CLTV = 0.8
MAX_PERCENT_OF_VALUE = 0.3
ABSOLUTE_MAX_INVESTMENT = 500_000
MIN_FUNDING = 15_000

# Settlement estimator bounds
MIN_SETTLEMENT_YEAR = 1
MAX_SETTLEMENT_YEAR = 10
MIN_HPA_RATE = -0.02
MAX_HPA_RATE = 0.06
DEFAULT_SETTLEMENT_YEAR = 5
DEFAULT_HPA_RATE = 0.03


@dataclass(frozen=True)
class HeaCalculation:
    payoff: float
    apr: float  # percent
    is_capped: bool
    total_cost: float
    raw_unlock_share: float
    maximum_unlock_share: float
    ending_home_value: float


@dataclass(frozen=True)
class PropertyValidation:
    is_valid: bool
    errors: list[str] = field(default_factory=list)
    home_value: float | None = None
    state: str | None = None


@dataclass(frozen=True)
class FundingAssessment:
    home_value: float
    mortgage_balance: float
    max_investment: float
    current_cltv: float  # percent
    total_equity: float
    usable_equity: float
    is_eligible: bool
    reason: str | None = None


def calculate_hea_cost(
    investment: float,
    starting_value: float,
    term_years: float,
    hpa_rate: float,
    multiplier: float = DEFAULT_MULTIPLIER,
) -> HeaCalculation:
    """
    Payoff under the 19.9% annualized cost cap.

    The homeowner owes the lesser of:
      - the unlock share: ending value * (investment / starting value) * multiplier
      - the cap: investment compounded at 19.9% for the term
    """
    if investment <= 0:
        raise ValueError("investment must be positive")
    if starting_value <= 0:
        raise ValueError("starting_value must be positive")
    if term_years <= 0:
        raise ValueError("term_years must be positive")

    ending_home_value = starting_value * (1 + hpa_rate) ** term_years

    unlock_percentage = (investment / starting_value) * multiplier
    raw_unlock_share = ending_home_value * unlock_percentage

    maximum_unlock_share = investment * (1 + COST_CAP_RATE) ** term_years

    payoff = min(raw_unlock_share, maximum_unlock_share)
    effective_apr = (payoff / investment) ** (1 / term_years) - 1

    return HeaCalculation(
        payoff=payoff,
        apr=effective_apr * 100,
        is_capped=raw_unlock_share > maximum_unlock_share,
        total_cost=payoff - investment,
        raw_unlock_share=raw_unlock_share,
        maximum_unlock_share=maximum_unlock_share,
        ending_home_value=ending_home_value,
    )


def calculate_max_investment(
    home_value: float,
    mortgage_balance: float,
    max_cltv: float = MAX_CLTV,
    max_percent_of_value: float = MAX_PERCENT_OF_VALUE,
    absolute_max: float = ABSOLUTE_MAX_INVESTMENT,
) -> float:
    cltv_max = home_value * max_cltv - mortgage_balance
    percent_max = home_value * max_percent_of_value
    return max(0.0, min(cltv_max, percent_max, absolute_max))


def validate_property(
    state: str,
    property_type: str,
    ownership_type: str,
    home_value: float,
) -> PropertyValidation:
    errors: list[str] = []

    if (state or "").upper() not in ELIGIBLE_STATES:
        errors.append(f"Property must be in an eligible state. {state} is not currently supported.")

    if property_type in INELIGIBLE_PROPERTY_TYPES:
        errors.append(f"{property_type} properties are not eligible for this program.")

    if ownership_type in INELIGIBLE_OWNERSHIP_TYPES:
        errors.append(
            f"Properties owned by {ownership_type} are not eligible. Property must be personally owned."
        )

    if home_value < MIN_HOME_VALUE:
        errors.append("Home value must be at least $175,000.")
    if home_value > MAX_HOME_VALUE:
        errors.append("Home value cannot exceed $3,000,000.")

    ok = not errors
    return PropertyValidation(
        is_valid=ok,
        errors=errors,
        home_value=home_value if ok else None,
        state=state if ok else None,
    )


def current_cltv(home_value: float, mortgage_balance: float) -> float:
    if home_value <= 0:
        return 0.0
    return mortgage_balance / home_value * 100


def assess_funding(home_value: float, mortgage_balance: float) -> FundingAssessment:
    max_investment = calculate_max_investment(home_value, mortgage_balance)
    cltv = current_cltv(home_value, mortgage_balance)
    eligible = cltv <= MAX_CLTV * 100 and max_investment >= MIN_FUNDING

    reason = None
    if not eligible:
        if cltv > MAX_CLTV * 100:
            reason = "Current CLTV exceeds 80%. The client would need to pay down their mortgage to qualify."
        else:
            reason = "Available equity is too low for this program. Minimum funding is $15,000."

    return FundingAssessment(
        home_value=home_value,
        mortgage_balance=mortgage_balance,
        max_investment=max_investment,
        current_cltv=cltv,
        total_equity=home_value - mortgage_balance,
        usable_equity=home_value * MAX_CLTV - mortgage_balance,
        is_eligible=eligible,
        reason=reason,
    )


def equity_share_percent(funding_amount: float, home_value: float, multiplier: float = DEFAULT_MULTIPLIER) -> float:
    if home_value <= 0:
        return 0.0
    return funding_amount / home_value * multiplier * 100


def format_currency(value: float) -> str:
    # half away from zero, like a bank statement (round() would go to even)
    rounded = int(abs(value) + 0.5)
    sign = "-" if value < 0 and rounded else ""
    return f"{sign}${rounded:,}"


def format_percentage(value: float, decimals: int = 1) -> str:
    return f"{value:.{decimals}f}%"
