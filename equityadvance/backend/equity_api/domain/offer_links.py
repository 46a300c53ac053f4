# equity_api/domain/offer_links.py
from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlencode

DEFAULT_OFFER_HASH = "2CTPL"


@dataclass(frozen=True)
class TrackingConfig:
    tracking_domain: str
    encoded_value: str
    role: str  # role of the profile *using* the config, not of its owner


def _base(config: TrackingConfig, offer_hash: str) -> str:
    domain = config.tracking_domain.strip().strip("/")
    for scheme in ("https://", "http://"):
        if domain.startswith(scheme):
            domain = domain[len(scheme):]
    return f"https://{domain}/{config.encoded_value.strip('/')}/{offer_hash}/"


def build_deal_offer_link(config: TrackingConfig, deal_id: str, offer_hash: str = DEFAULT_OFFER_HASH) -> str:
    """sub5 carries the deal id so affiliate events can be tied back to the deal."""
    return f"{_base(config, offer_hash)}?{urlencode({'sub5': deal_id})}"


def build_campaign_offer_link(
    config: TrackingConfig,
    campaign_id: str,
    officer_id: str | None = None,
    offer_hash: str = DEFAULT_OFFER_HASH,
) -> str:
    """sub4 carries the campaign id; sub3 the officer, when an officer created it."""
    params = {"sub4": campaign_id}
    if officer_id:
        params["sub3"] = officer_id
    return f"{_base(config, offer_hash)}?{urlencode(params)}"
