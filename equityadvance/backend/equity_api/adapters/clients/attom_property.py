# equity_api/adapters/clients/attom_property.py
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Awaitable, Callable

import httpx

from ...config import settings
from ...domain.address import extract_state_from_address, split_address
from ...domain.parsing import amount, first_record, get_nested
from .base import UNKNOWN_OWNER, PropertyData, PropertyLookupError, ProviderNotConfigured
from .google_geocode import GeocodeResult, geocode_address
from .http_resilience import resilient_request

log = logging.getLogger(__name__)

Geocoder = Callable[[str], Awaitable[GeocodeResult | None]]

# ATTOM answers 400 with this status message when the request was fine but
# the address is not in its database.
NO_RESULT_MSG = "SuccessWithoutResult"


def _owner_identity(ident: Any) -> str | None:
    if not isinstance(ident, dict):
        return None
    if ident.get("fullname"):
        return str(ident["fullname"]).strip()
    if ident.get("lastname"):
        first = ident.get("firstnameandmi") or ident.get("firstname") or ""
        return f"{first} {ident['lastname']}".strip()
    return None


def extract_owners(owner_obj: Any) -> list[str]:
    if not isinstance(owner_obj, dict):
        return []
    owners: list[str] = []
    for key in ("owner1", "owner2"):
        name = _owner_identity(owner_obj.get(key))
        if name:
            owners.append(name)
    return owners


def _recording_date(rec: dict[str, Any]) -> date:
    raw = str(rec.get("recordingDate") or "")[:10]
    try:
        return date.fromisoformat(raw)
    except ValueError:
        return date.min


def latest_mortgage_amount(records: Any) -> float:
    """Most recently recorded mortgage with a positive amount, else 0."""
    if isinstance(records, dict):
        records = [records]
    if not isinstance(records, list):
        return 0.0
    rows = [r for r in records if isinstance(r, dict)]
    rows.sort(key=_recording_date, reverse=True)
    for rec in rows:
        value = amount(rec.get("amount")) or amount(rec.get("firstConcAmount"))
        if value > 0:
            return value
    return 0.0


def _is_no_result(resp: httpx.Response) -> bool:
    if resp.status_code != 400:
        return False
    try:
        body = resp.json()
    except ValueError:
        return False
    return get_nested(body, "status.msg") == NO_RESULT_MSG


class AttomPropertyClient:
    """
    Owner, type, AVM and lien data from ATTOM.

    Calls, in order: property/detail, attomavm/detail and, only when neither
    carries a mortgage amount, property/detailmortgage. Only the first one
    is required; the rest degrade to zero with a warning.
    """

    name = "attom"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        geocoder: Geocoder | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.ATTOM_API_KEY
        self.base_url = (base_url or settings.ATTOM_BASE_URL).rstrip("/")
        self.geocoder: Geocoder = geocoder or geocode_address

    async def _get(self, path: str, address1: str, address2: str) -> httpx.Response:
        if not self.api_key:
            raise ProviderNotConfigured("ATTOM API key not configured")
        try:
            return await resilient_request(
                "GET",
                f"{self.base_url}/{path}",
                headers={"apikey": self.api_key, "Accept": "application/json"},
                params={"address1": address1, "address2": address2},
            )
        except httpx.HTTPStatusError as e:
            raise PropertyLookupError(
                f"Property lookup failed: {e.response.status_code}", e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            raise PropertyLookupError(f"Property lookup failed: {type(e).__name__}") from e

    async def _optional_json(self, path: str, address1: str, address2: str) -> Any:
        try:
            r = await self._get(path, address1, address2)
        except PropertyLookupError as e:
            log.warning("attom %s failed, continuing: %s", path, e)
            return None
        if r.status_code >= 400:
            log.warning("attom %s failed, continuing: %s", path, r.status_code)
            return None
        return r.json()

    async def lookup(self, address: str) -> PropertyData:
        if not self.api_key:
            raise ProviderNotConfigured("ATTOM API key not configured")

        address1, address2 = split_address(address)
        log.info("attom lookup: %s", address)

        r = await self._get("property/detail", address1, address2)
        if r.status_code < 400:
            return await self._assemble(address, address1, address2, r.json())

        if not _is_no_result(r):
            log.error("attom property error %s: %s", r.status_code, r.text[:500])
            raise PropertyLookupError(f"Property lookup failed: {r.status_code}", r.status_code)

        log.warning("attom has no record for %r, trying geocoder", address)
        geo = await self.geocoder(address)
        if geo and geo.formatted_address and geo.formatted_address != address:
            retry = await self._get("property/detail", geo.address1, geo.address2)
            if retry.status_code < 400:
                data = await self._assemble(
                    address, geo.address1, geo.address2, retry.json(), preferred_state=geo.state
                )
                data.corrected_address = geo.formatted_address
                return data
            log.warning("attom retry with corrected address also failed: %s", retry.status_code)

        # Valid request, unknown property: hand back what we can so the user
        # can fill the rest in by hand.
        return PropertyData(
            owner_names="",
            state=extract_state_from_address(address),
            property_type="",
            estimated_value=0.0,
            source=self.name,
            estimated_mortgage_balance=0.0,
        )

    async def _assemble(
        self,
        original_address: str,
        address1: str,
        address2: str,
        detail: Any,
        preferred_state: str | None = None,
    ) -> PropertyData:
        main = first_record(detail, "property") or {}

        avm = await self._optional_json("attomavm/detail", address1, address2)
        avm_prop = first_record(avm, "property") or {}
        estimated_value = amount(get_nested(avm_prop, "avm.amount.value"))

        owners = (
            extract_owners(get_nested(main, "assessment.owner"))
            or extract_owners(get_nested(avm_prop, "assessment.owner"))
            or extract_owners(avm_prop.get("owner"))
        )

        state = (
            preferred_state
            or get_nested(main, "address.countrySubd")
            or get_nested(avm_prop, "address.countrySubd")
            or extract_state_from_address(original_address)
        )

        property_type = (
            get_nested(main, "summary.propertyType")
            or get_nested(main, "summary.propclass")
            or "Single Family"
        )

        mortgage = amount(get_nested(main, "assessment.mortgage.FirstConcAmount")) + amount(
            get_nested(main, "assessment.mortgage.SecondConcAmount")
        )
        if mortgage == 0:
            mortgage = amount(get_nested(avm_prop, "sale.mortgage.FirstConcurrent.amount")) + amount(
                get_nested(avm_prop, "sale.mortgage.SecondConcurrent.amount")
            )

        history = None
        if mortgage == 0:
            history = await self._optional_json("property/detailmortgage", address1, address2)
            hist_prop = first_record(history, "property") or {}
            mortgage = latest_mortgage_amount(hist_prop.get("mortgage"))
            if mortgage:
                log.info("attom mortgage taken from recording history: %s", mortgage)

        return PropertyData(
            owner_names=" & ".join(owners) if owners else UNKNOWN_OWNER,
            state=str(state or ""),
            property_type=str(property_type),
            estimated_value=estimated_value,
            source=self.name,
            estimated_mortgage_balance=mortgage,
            raw={"property": detail, "avm": avm, "mortgage_history": history},
        )
