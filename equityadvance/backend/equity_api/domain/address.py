# equity_api/domain/address.py
from __future__ import annotations

import re

US_STATES: dict[str, str] = {
    "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas", "CA": "California",
    "CO": "Colorado", "CT": "Connecticut", "DE": "Delaware", "FL": "Florida", "GA": "Georgia",
    "HI": "Hawaii", "ID": "Idaho", "IL": "Illinois", "IN": "Indiana", "IA": "Iowa",
    "KS": "Kansas", "KY": "Kentucky", "LA": "Louisiana", "ME": "Maine", "MD": "Maryland",
    "MA": "Massachusetts", "MI": "Michigan", "MN": "Minnesota", "MS": "Mississippi", "MO": "Missouri",
    "MT": "Montana", "NE": "Nebraska", "NV": "Nevada", "NH": "New Hampshire", "NJ": "New Jersey",
    "NM": "New Mexico", "NY": "New York", "NC": "North Carolina", "ND": "North Dakota", "OH": "Ohio",
    "OK": "Oklahoma", "OR": "Oregon", "PA": "Pennsylvania", "RI": "Rhode Island", "SC": "South Carolina",
    "SD": "South Dakota", "TN": "Tennessee", "TX": "Texas", "UT": "Utah", "VT": "Vermont",
    "VA": "Virginia", "WA": "Washington", "WV": "West Virginia", "WI": "Wisconsin", "WY": "Wyoming",
    "DC": "District of Columbia",
}

_USA_SUFFIX = re.compile(r",?\s*\bUSA?\s*$", re.IGNORECASE)
_TOKEN_SPLIT = re.compile(r"[,\s]+")
_WS = re.compile(r"\s+")


def state_name(abbr: str) -> str:
    return US_STATES.get((abbr or "").upper(), abbr)


def extract_state_from_address(address: str) -> str:
    """
    Fallback when a vendor returns no state: first token that is a state
    abbreviation. Best effort; "123 Main St, Austin, TX 78701" -> "TX".
    """
    normalized = _USA_SUFFIX.sub("", address or "").upper()
    for part in _TOKEN_SPLIT.split(normalized):
        token = part.strip()
        if token in US_STATES:
            return token
    return ""


def split_address(address: str) -> tuple[str, str]:
    """
    "Street, City, State Zip" -> ("Street", "City, State Zip").
    Raises ValueError with the message shown to users.
    """
    parts = (address or "").split(",")
    if len(parts) < 2:
        raise ValueError('Address format invalid. Expected "Street, City, State Zip"')
    return parts[0].strip(), ",".join(parts[1:]).strip()


def normalize_address_key(address: str) -> str:
    """Cache key: case and whitespace folded, trailing country dropped."""
    s = _USA_SUFFIX.sub("", (address or "").strip())
    s = _WS.sub(" ", s).strip(" ,")
    return s.upper()
