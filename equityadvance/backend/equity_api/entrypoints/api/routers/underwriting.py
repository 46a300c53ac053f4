# equity_api/entrypoints/api/routers/underwriting.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import DOMAIN_ERRORS, http_error
from ....db import get_session
from ....domain import hea
from ....domain.address import US_STATES
from ....domain.hea import assess_funding, format_currency, validate_property
from ....schemas import (
    FundingOut,
    MaxInvestmentRequest,
    PrequalificationOut,
    PrequalifyRequest,
    ReferenceOut,
    SettlementOut,
    SettlementRequest,
    StateOut,
    ValidateRequest,
    ValidationOut,
)
from ....service_layer.underwriting import Prequalification, estimate_settlement, prequalify

router = APIRouter(prefix="/underwriting", tags=["underwriting"])


def prequalification_out(p: Prequalification) -> PrequalificationOut:
    return PrequalificationOut(
        address=p.address,
        corrected_address=p.corrected_address,
        owner_names=p.owner_names,
        ownership_type=p.ownership_type,
        state=p.state,
        property_type=p.property_type,
        home_value=p.home_value,
        mortgage_balance=p.mortgage_balance,
        estimated_value=p.estimated_value,
        estimated_mortgage_balance=p.estimated_mortgage_balance,
        max_investment=p.max_investment,
        current_cltv=p.current_cltv,
        total_equity=p.total_equity,
        usable_equity=p.usable_equity,
        is_eligible=p.is_eligible,
        validation_errors=p.validation_errors,
        failure_reasons=p.failure_reasons,
        source=p.source,
        cached=p.cached,
    )


@router.get("/reference", response_model=ReferenceOut)
def reference() -> ReferenceOut:
    return ReferenceOut(
        states=[
            StateOut(code=code, name=name, eligible=code in hea.ELIGIBLE_STATES)
            for code, name in sorted(US_STATES.items(), key=lambda kv: kv[1])
        ],
        property_types=list(hea.PROPERTY_TYPES),
        ineligible_property_types=list(hea.INELIGIBLE_PROPERTY_TYPES),
        ownership_types=list(hea.OWNERSHIP_TYPES),
        ineligible_ownership_types=list(hea.INELIGIBLE_OWNERSHIP_TYPES),
        limits={
            "min_home_value": hea.MIN_HOME_VALUE,
            "max_home_value": hea.MAX_HOME_VALUE,
            "max_cltv": hea.MAX_CLTV,
            "max_percent_of_value": hea.MAX_PERCENT_OF_VALUE,
            "absolute_max_investment": hea.ABSOLUTE_MAX_INVESTMENT,
            "min_funding": hea.MIN_FUNDING,
            "cost_cap_rate": hea.COST_CAP_RATE,
        },
    )


@router.post("/validate", response_model=ValidationOut)
def validate(body: ValidateRequest) -> ValidationOut:
    v = validate_property(body.state, body.property_type, body.ownership_type, body.home_value)
    return ValidationOut(is_valid=v.is_valid, errors=v.errors, home_value=v.home_value, state=v.state)


@router.post("/max-investment", response_model=FundingOut)
def max_investment(body: MaxInvestmentRequest) -> FundingOut:
    f = assess_funding(body.home_value, body.mortgage_balance)
    return FundingOut(
        home_value=f.home_value,
        mortgage_balance=f.mortgage_balance,
        max_investment=f.max_investment,
        max_investment_display=format_currency(f.max_investment),
        current_cltv=f.current_cltv,
        total_equity=f.total_equity,
        usable_equity=f.usable_equity,
        is_eligible=f.is_eligible,
        reason=f.reason,
    )


@router.post("/settlement", response_model=SettlementOut)
def settlement(body: SettlementRequest) -> SettlementOut:
    try:
        est = estimate_settlement(
            body.home_value,
            body.funding_amount,
            settlement_year=body.settlement_year,
            hpa_rate=body.hpa_rate,
            max_investment=body.max_investment,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    c = est.calculation
    return SettlementOut(
        funding_amount=est.funding_amount,
        settlement_year=est.settlement_year,
        hpa_rate=est.hpa_rate,
        equity_share_percent=est.equity_share_percent,
        payoff=c.payoff,
        apr=c.apr,
        is_capped=c.is_capped,
        total_cost=c.total_cost,
        raw_unlock_share=c.raw_unlock_share,
        maximum_unlock_share=c.maximum_unlock_share,
        ending_home_value=c.ending_home_value,
    )


@router.post("/prequalify", response_model=PrequalificationOut)
async def prequalify_address(
    body: PrequalifyRequest,
    session: AsyncSession = Depends(get_session),
) -> PrequalificationOut:
    try:
        p = await prequalify(
            session,
            body.address,
            home_value=body.home_value,
            mortgage_balance=body.mortgage_balance,
            state=body.state,
            property_type=body.property_type,
            ownership_type=body.ownership_type,
        )
    except DOMAIN_ERRORS as e:
        raise http_error(e) from e
    # keep the lookup cache row
    await session.commit()
    return prequalification_out(p)
