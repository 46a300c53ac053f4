# equity_api/domain/pipeline.py
from __future__ import annotations

from typing import Any, Iterable, TypeVar

# Affiliate funnel, in order. Deals without a recorded event sit in the first stage.
PIPELINE_STAGES: tuple[str, ...] = (
    "Offer Generated",
    "Offer Link Clicked",
    "Application Created",
    "Application Qualified",
    "Estimate Prepared",
    "Application Completed",
    "Underwriting Submitted",
    "Review Requested",
    "Final Offer Presented",
    "Funds Disbursed",
    "Closed Lost",
)

DEFAULT_STAGE = PIPELINE_STAGES[0]

T = TypeVar("T")


def stage_of(event_status: str | None) -> str:
    if event_status and event_status in PIPELINE_STAGES:
        return event_status
    return DEFAULT_STAGE


def is_pipeline_stage(value: str) -> bool:
    return value in PIPELINE_STAGES


def group_deals_by_stage(deals: Iterable[T], status_attr: str = "event_status") -> dict[str, list[T]]:
    """
    Every stage is present in the result (possibly empty), in funnel order.
    Items keep their input order within a stage.
    """
    grouped: dict[str, list[T]] = {stage: [] for stage in PIPELINE_STAGES}
    for deal in deals:
        status: Any = deal.get(status_attr) if isinstance(deal, dict) else getattr(deal, status_attr, None)
        grouped[stage_of(status)].append(deal)
    return grouped
