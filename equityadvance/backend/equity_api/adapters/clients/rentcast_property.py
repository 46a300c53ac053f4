# equity_api/adapters/clients/rentcast_property.py
from __future__ import annotations

import logging
from typing import Any

import httpx

from ...config import settings
from ...domain.parsing import first_record, to_float
from .base import UNKNOWN_OWNER, PropertyData, PropertyLookupError, ProviderNotConfigured
from .http_resilience import resilient_request

log = logging.getLogger(__name__)


def _owner_names(record: dict[str, Any]) -> str:
    owner = record.get("owner") if isinstance(record.get("owner"), dict) else {}
    names = [str(n).strip() for n in (owner.get("names") or []) if str(n).strip()]
    return " & ".join(names) if names else UNKNOWN_OWNER


def _avm_value(data: Any) -> float:
    if not isinstance(data, dict):
        return 0.0
    for key in ("price", "priceRangeLow"):
        v = to_float(data.get(key))
        if v:
            return v
    return 0.0


class RentCastPropertyClient:
    """
    Property record + AVM from RentCast.

    /properties gives owner, state and type; /avm/value gives the estimate.
    RentCast has no lien data, so the mortgage balance stays unknown.
    """

    name = "rentcast"

    def __init__(self, api_key: str | None = None, base_url: str | None = None) -> None:
        self.api_key = api_key if api_key is not None else settings.RENTCAST_API_KEY
        self.base_url = (base_url or settings.RENTCAST_BASE_URL).rstrip("/")

    def _headers(self) -> dict[str, str]:
        if not self.api_key:
            raise ProviderNotConfigured("RentCast API key not configured")
        return {"X-Api-Key": self.api_key, "accept": "application/json"}

    async def lookup(self, address: str) -> PropertyData:
        if not self.api_key:
            raise ProviderNotConfigured("RentCast API key not configured")

        log.info("rentcast lookup: %s", address)
        try:
            r = await resilient_request(
                "GET", f"{self.base_url}/properties", headers=self._headers(), params={"address": address}
            )
        except httpx.HTTPStatusError as e:
            raise PropertyLookupError(
                f"Property lookup failed: {e.response.status_code}", e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            raise PropertyLookupError(f"Property lookup failed: {type(e).__name__}") from e

        if r.status_code >= 400:
            log.error("rentcast property error %s: %s", r.status_code, r.text[:500])
            raise PropertyLookupError(f"Property lookup failed: {r.status_code}", r.status_code)

        payload = r.json()
        record = first_record(payload)
        if record is None:
            raise PropertyLookupError("Property lookup failed: 404", 404)

        estimated_value = 0.0
        avm: Any = None
        try:
            ar = await resilient_request(
                "GET", f"{self.base_url}/avm/value", headers=self._headers(), params={"address": address}
            )
            if ar.status_code < 400:
                avm = ar.json()
                estimated_value = _avm_value(avm)
            else:
                log.warning("rentcast AVM lookup failed, continuing without value: %s", ar.status_code)
        except httpx.HTTPError as e:
            log.warning("rentcast AVM lookup failed, continuing without value: %s", type(e).__name__)

        return PropertyData(
            owner_names=_owner_names(record),
            state=str(record.get("state") or ""),
            property_type=str(record.get("propertyType") or "Single Family"),
            estimated_value=estimated_value,
            source=self.name,
            estimated_mortgage_balance=None,
            raw={"property": record, "avm": avm},
        )
