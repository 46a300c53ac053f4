# equity_api/adapters/clients/google_geocode.py
from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from ...config import settings
from .http_resilience import resilient_request

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeocodeResult:
    formatted_address: str
    street_number: str
    route: str
    city: str
    state: str
    zip: str

    @property
    def address1(self) -> str:
        return f"{self.street_number} {self.route}".strip()

    @property
    def address2(self) -> str:
        return f"{self.city}, {self.state} {self.zip}".strip()


async def geocode_address(address: str, api_key: str | None = None) -> GeocodeResult | None:
    """
    Canonicalize a free-form address. Any failure returns None; this is only
    ever a fallback.
    """
    key = api_key if api_key is not None else settings.GOOGLE_MAPS_API_KEY
    if not key:
        return None

    try:
        r = await resilient_request("GET", settings.GOOGLE_GEOCODE_URL, params={"address": address, "key": key})
    except httpx.HTTPError as e:
        log.warning("geocoding failed: %s", type(e).__name__)
        return None

    if r.status_code >= 400:
        log.warning("geocoding API error: %s", r.status_code)
        return None

    data = r.json()
    if not isinstance(data, dict):
        return None
    results = data.get("results")
    if data.get("status") != "OK" or not results:
        log.info("geocoding returned no results for %r", address)
        return None

    top = results[0]
    parts = {"street_number": "", "route": "", "locality": "", "administrative_area_level_1": "", "postal_code": ""}
    for comp in top.get("address_components") or []:
        types = comp.get("types") or []
        for t in parts:
            if t in types:
                # state wants the abbreviation, everything else the long form
                parts[t] = comp.get("short_name" if t == "administrative_area_level_1" else "long_name") or ""

    formatted = top.get("formatted_address") or ""
    log.info("geocoding corrected %r to %r", address, formatted)
    return GeocodeResult(
        formatted_address=formatted,
        street_number=parts["street_number"],
        route=parts["route"],
        city=parts["locality"],
        state=parts["administrative_area_level_1"],
        zip=parts["postal_code"],
    )
