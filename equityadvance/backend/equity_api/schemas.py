from pydantic import BaseModel, Field
from datetime import datetime
from typing import Literal

ProfileStatusLiteral = Literal["pending", "active", "denied"]


# ----- Underwriting -----

class StateOut(BaseModel):
    code: str
    name: str
    eligible: bool


class ReferenceOut(BaseModel):
    states: list[StateOut]
    property_types: list[str]
    ineligible_property_types: list[str]
    ownership_types: list[str]
    ineligible_ownership_types: list[str]
    limits: dict[str, float]


class ValidateRequest(BaseModel):
    state: str
    property_type: str
    ownership_type: str
    home_value: float


class ValidationOut(BaseModel):
    is_valid: bool
    errors: list[str]
    home_value: float | None = None
    state: str | None = None


class MaxInvestmentRequest(BaseModel):
    home_value: float = Field(..., ge=0)
    mortgage_balance: float = Field(0.0, ge=0)


class FundingOut(BaseModel):
    home_value: float
    mortgage_balance: float
    max_investment: float
    max_investment_display: str
    current_cltv: float
    total_equity: float
    usable_equity: float
    is_eligible: bool
    reason: str | None = None


class SettlementRequest(BaseModel):
    home_value: float = Field(..., gt=0)
    funding_amount: float = Field(..., gt=0)
    settlement_year: int = Field(5, ge=1, le=10)
    hpa_rate: float = Field(0.03, ge=-0.02, le=0.06)
    max_investment: float | None = Field(default=None, ge=0)


class SettlementOut(BaseModel):
    funding_amount: float
    settlement_year: int
    hpa_rate: float
    equity_share_percent: float
    payoff: float
    apr: float
    is_capped: bool
    total_cost: float
    raw_unlock_share: float
    maximum_unlock_share: float
    ending_home_value: float


class PrequalifyRequest(BaseModel):
    address: str = Field(..., min_length=1)
    home_value: float | None = Field(default=None, ge=0)
    mortgage_balance: float | None = Field(default=None, ge=0)
    state: str | None = None
    property_type: str | None = None
    ownership_type: str | None = None


class PrequalificationOut(BaseModel):
    address: str
    corrected_address: str | None = None
    owner_names: str
    ownership_type: str
    state: str
    property_type: str
    home_value: float
    mortgage_balance: float
    estimated_value: float
    estimated_mortgage_balance: float | None = None
    max_investment: float
    current_cltv: float
    total_equity: float
    usable_equity: float
    is_eligible: bool
    validation_errors: list[str]
    failure_reasons: list[str]
    source: str
    cached: bool


# ----- Property lookup -----

class PropertyLookupRequest(BaseModel):
    address: str = Field(..., min_length=1)


class PropertyLookupOut(BaseModel):
    owner_names: str
    ownership_type: str
    state: str
    property_type: str
    estimated_value: float
    estimated_mortgage_balance: float | None = None
    corrected_address: str | None = None
    source: str
    cached: bool


# ----- Profiles -----

class ProfileCreate(BaseModel):
    email: str
    full_name: str | None = None
    company_name: str | None = None
    company_url: str | None = None
    cell_phone: str | None = None
    invite_token: str | None = None


class ProfileUpdate(BaseModel):
    full_name: str | None = None
    company_name: str | None = None
    company_url: str | None = None
    cell_phone: str | None = None

    # back office
    status: ProfileStatusLiteral | None = None
    affiliate_id: str | None = None
    tracking_domain: str | None = None
    encoded_value: str | None = None


class ProfileOut(BaseModel):
    id: str
    email: str
    full_name: str | None = None
    company_name: str | None = None
    company_url: str | None = None
    cell_phone: str | None = None
    role: str
    status: str
    parent_id: str | None = None
    invite_token: str | None = None
    tracking_configured: bool
    created_at: datetime


class TeamMemberOut(BaseModel):
    id: str
    email: str
    full_name: str | None = None
    status: str
    created_at: datetime


# ----- Deals / pipeline -----

class DealCreate(PrequalifyRequest):
    profile_id: str


class DealOut(BaseModel):
    id: str
    user_id: str
    property_address: str
    home_value: float
    mortgage_balance: float
    max_investment: float
    owner_names: list[str]
    offer_link: str | None = None
    stage: str
    created_at: datetime


class DealStageUpdate(BaseModel):
    stage: str


class PipelineDealOut(BaseModel):
    id: str
    property_address: str
    home_value: float
    max_investment: float
    owner_names: list[str]
    offer_link: str | None = None
    created_at: datetime
    originator_name: str | None = None
    originator_role: str


class PipelineColumnOut(BaseModel):
    stage: str
    count: int
    deals: list[PipelineDealOut]


class PipelineOut(BaseModel):
    total: int
    columns: list[PipelineColumnOut]


# ----- Campaigns -----

class PlatformOut(BaseModel):
    id: str
    name: str


class CampaignCreate(BaseModel):
    profile_id: str
    name: str
    platform: str
    description: str | None = None


class CampaignUpdate(BaseModel):
    is_active: bool


class CampaignOut(BaseModel):
    id: str
    user_id: str
    name: str
    platform: str
    platform_name: str
    description: str | None = None
    offer_link: str
    is_active: bool
    funnel: dict[str, int]
    created_at: datetime


# ----- Bulk import -----

class BulkImportCreate(BaseModel):
    profile_id: str
    addresses: list[str] | None = None
    text: str | None = Field(default=None, description="Newline-separated addresses")


class BulkImportItemOut(BaseModel):
    position: int
    address: str
    status: str
    message: str | None = None
    deal_id: str | None = None
    offer_link: str | None = None
    max_investment: float | None = None


class BulkImportOut(BaseModel):
    id: str
    status: str
    total: int = Field(..., ge=0)
    completed: int = Field(..., ge=0)
    success: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)
    percent: int
    created_at: datetime
    items: list[BulkImportItemOut] = []
