# equity_api/entrypoints/api/errors.py
from __future__ import annotations

import logging

from fastapi import HTTPException

from ...adapters.clients.base import PropertyLookupError, ProviderNotConfigured
from ...service_layer.deals import DealNotEligible
from ...service_layer.profiles import ProfileInactive, TrackingNotConfigured

log = logging.getLogger(__name__)

# caught by routers and handed to http_error
DOMAIN_ERRORS = (
    ValueError,
    LookupError,
    PropertyLookupError,
    ProviderNotConfigured,
    TrackingNotConfigured,
    ProfileInactive,
)


def http_error(e: Exception) -> HTTPException:
    """Map a service-layer exception onto the HTTP status the API promises."""
    if isinstance(e, DealNotEligible):
        return HTTPException(status_code=422, detail={"message": "Property is not eligible", "reasons": e.reasons})
    if isinstance(e, PropertyLookupError):
        status = 404 if e.status_code == 404 else 502
        if status == 502:
            log.warning("property vendor error: %s", e)
        return HTTPException(status_code=status, detail=str(e))
    if isinstance(e, ProviderNotConfigured):
        return HTTPException(status_code=503, detail=str(e))
    if isinstance(e, TrackingNotConfigured):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, ProfileInactive):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, LookupError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ValueError):
        return HTTPException(status_code=400, detail=str(e))
    return HTTPException(status_code=500, detail="Internal error")
