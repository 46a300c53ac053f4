# equity_api/domain/ownership.py
from __future__ import annotations

import re

# Order matters: first match wins (an "LLC" trust is still an LLC).
_OWNERSHIP_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("LLC", re.compile(r"\bLLC\b|\bL\.L\.C\.|LIMITED LIABILITY")),
    ("Trust", re.compile(r"\bTRUST|\bTR\b")),
    ("Corporation", re.compile(r"\bINC\b|\bCORP\b|INCORPORATED|CORPORATION|\bCO[.,]")),
    ("Partnership", re.compile(r"\bLL?P\b|\bL\.(L\.)?P\.|PARTNERSHIP")),
)


def detect_ownership_type(owner_names: str | None) -> str:
    """
    Guess how title is held from the recorded owner names.

    Markers are matched as whole tokens so individuals named e.g. VINCENT or
    ALPHONSE are not mistaken for entities.
    """
    upper = (owner_names or "").upper()
    for label, pattern in _OWNERSHIP_PATTERNS:
        if pattern.search(upper):
            return label
    return "Personal"


# RentCast and ATTOM vocabularies -> our PROPERTY_TYPES labels (keys lowercased)
_PROPERTY_TYPE_MAP: dict[str, str] = {
    "single family": "Single Family",
    "single-family": "Single Family",
    "single family residence": "Single Family",
    "sfr": "Single Family",
    "condo": "Condo",
    "condominium": "Condo",
    "townhouse": "Townhouse",
    "town house": "Townhouse",
    "townhome": "Townhouse",
    "multi-family": "Multi-Family",
    "multifamily": "Multi-Family",
    "duplex": "Multi-Family",
    "triplex": "Multi-Family",
    "fourplex": "Multi-Family",
    "quadruplex": "Multi-Family",
    "apartment": "Apartment",
    "manufactured": "Manufactured",
    "mobile": "Manufactured",
    "mobile home": "Manufactured",
    "land": "Land",
    "vacant land": "Land",
}


def map_property_type(raw: str | None) -> str:
    """Unknown labels pass through untouched; empty ones default to Single Family."""
    s = (raw or "").strip()
    if not s:
        return "Single Family"
    return _PROPERTY_TYPE_MAP.get(s.lower(), s)
