# equity_api/adapters/clients/base.py
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Protocol

UNKNOWN_OWNER = "Unknown Owner"


class ProviderNotConfigured(RuntimeError):
    """The selected property data vendor has no API key."""


class PropertyLookupError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class PropertyData:
    """
    Provider-neutral result of a property lookup.

    estimated_mortgage_balance is None when the vendor does not report liens
    at all (RentCast), and 0 when it looked and found nothing.
    """
    owner_names: str
    state: str
    property_type: str
    estimated_value: float
    source: str
    estimated_mortgage_balance: float | None = None
    corrected_address: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PropertyData":
        return cls(**data)


class PropertyDataProvider(Protocol):
    name: str

    async def lookup(self, address: str) -> PropertyData:
        ...
