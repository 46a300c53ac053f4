# equity_api/models.py
from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


def _uuid() -> str:
    # Deal and campaign ids travel inside public tracking links; keep them unguessable.
    return str(uuid.uuid4())


# -----------------------------
# Core enums
# -----------------------------
class ProfileRole(str, enum.Enum):
    manager = "manager"
    officer = "officer"


class ProfileStatus(str, enum.Enum):
    pending = "pending"
    active = "active"
    denied = "denied"


class BatchStatus(str, enum.Enum):
    processing = "processing"
    completed = "completed"
    failed = "failed"


class ItemStatus(str, enum.Enum):
    pending = "pending"
    processing = "processing"
    success = "success"
    failed = "failed"


class JobRunStatus(str, enum.Enum):
    running = "running"
    success = "success"
    failed = "failed"


# -----------------------------
# Models
# -----------------------------
class Profile(Base):
    """
    ISO partner account. Officers hang off a manager through parent_id and
    generate links with the manager's tracking configuration.
    """
    __tablename__ = "profiles"
    __table_args__ = (UniqueConstraint("email", name="uq_profile_email"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    email: Mapped[str] = mapped_column(String(255))
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    company_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    company_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cell_phone: Mapped[str | None] = mapped_column(String(40), nullable=True)

    role: Mapped[ProfileRole] = mapped_column(Enum(ProfileRole), default=ProfileRole.manager, index=True)
    status: Mapped[ProfileStatus] = mapped_column(Enum(ProfileStatus), default=ProfileStatus.pending, index=True)
    parent_id: Mapped[str | None] = mapped_column(ForeignKey("profiles.id"), nullable=True, index=True)
    # managers hand this out; officers sign up with it to join the team
    invite_token: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)

    # affiliate platform account (tracking link parts)
    affiliate_id: Mapped[str | None] = mapped_column(String(80), nullable=True)
    tracking_domain: Mapped[str | None] = mapped_column(String(255), nullable=True)
    encoded_value: Mapped[str | None] = mapped_column(String(120), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class Deal(Base):
    __tablename__ = "deals"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("profiles.id"), index=True)

    property_address: Mapped[str] = mapped_column(String(255))
    home_value: Mapped[float] = mapped_column(Float)
    mortgage_balance: Mapped[float] = mapped_column(Float)
    max_investment: Mapped[float] = mapped_column(Float)
    owner_names: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)

    offer_link: Mapped[str | None] = mapped_column(Text, nullable=True)

    # last affiliate funnel event; None means "Offer Generated"
    event_status: Mapped[str | None] = mapped_column(String(60), nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class Campaign(Base):
    __tablename__ = "campaigns"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("profiles.id"), index=True)

    name: Mapped[str] = mapped_column(String(255))
    platform: Mapped[str] = mapped_column(String(40))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    offer_link: Mapped[str] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # funnel counters, written by the affiliate sync
    total_clicks: Mapped[int] = mapped_column(Integer, default=0)
    application_created: Mapped[int] = mapped_column(Integer, default=0)
    application_qualified: Mapped[int] = mapped_column(Integer, default=0)
    estimate_prepared: Mapped[int] = mapped_column(Integer, default=0)
    application_completed: Mapped[int] = mapped_column(Integer, default=0)
    underwriting_submitted: Mapped[int] = mapped_column(Integer, default=0)
    review_requested: Mapped[int] = mapped_column(Integer, default=0)
    final_offer_presented: Mapped[int] = mapped_column(Integer, default=0)
    funds_disbursed: Mapped[int] = mapped_column(Integer, default=0)
    closed_lost: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class BulkImportBatch(Base):
    __tablename__ = "bulk_import_batches"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("profiles.id"), index=True)

    total_count: Mapped[int] = mapped_column(Integer, default=0)
    completed_count: Mapped[int] = mapped_column(Integer, default=0)
    success_count: Mapped[int] = mapped_column(Integer, default=0)
    failed_count: Mapped[int] = mapped_column(Integer, default=0)

    status: Mapped[BatchStatus] = mapped_column(Enum(BatchStatus), default=BatchStatus.processing, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    # heartbeat: bumped whenever a worker claims or finishes an item
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)


class BulkImportItem(Base):
    __tablename__ = "bulk_import_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    batch_id: Mapped[str] = mapped_column(ForeignKey("bulk_import_batches.id"), index=True)
    position: Mapped[int] = mapped_column(Integer, default=0)

    original_address: Mapped[str] = mapped_column(String(255))
    status: Mapped[ItemStatus] = mapped_column(Enum(ItemStatus), default=ItemStatus.pending, index=True)
    result_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    deal_id: Mapped[str | None] = mapped_column(ForeignKey("deals.id"), nullable=True)
    offer_link: Mapped[str | None] = mapped_column(Text, nullable=True)
    max_investment: Mapped[float | None] = mapped_column(Float, nullable=True)

    # set when a worker takes the item; a stale claim may be taken over
    claimed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class PropertyLookupCache(Base):
    """
    One row per (provider, normalized address). Only successful lookups land here.
    """
    __tablename__ = "property_lookup_cache"
    __table_args__ = (
        UniqueConstraint("provider", "address_key", name="uq_lookup_provider_address"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    provider: Mapped[str] = mapped_column(String(20), index=True)
    address_key: Mapped[str] = mapped_column(String(255), index=True)

    payload_json: Mapped[str] = mapped_column(Text)
    fetched_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)


class JobRun(Base):
    """
    Tracks job executions (bulk import runs from the API or the scheduler).
    """
    __tablename__ = "job_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    job_name: Mapped[str] = mapped_column(String(80), index=True)

    status: Mapped[JobRunStatus] = mapped_column(Enum(JobRunStatus), default=JobRunStatus.running, index=True)

    started_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    finished_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    error: Mapped[str | None] = mapped_column(Text, nullable=True)

    # optional metadata: {"batch_id": ...}
    meta_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    summary_json: Mapped[str | None] = mapped_column(Text, nullable=True)
