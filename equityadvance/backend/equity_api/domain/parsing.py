# equity_api/domain/parsing.py
from __future__ import annotations

from typing import Any


def to_float(x: Any) -> float | None:
    if x is None or x == "" or isinstance(x, bool):
        return None
    try:
        return float(x)
    except (TypeError, ValueError):
        return None


def amount(x: Any) -> float:
    """Vendor money field -> float, treating missing/garbage as 0."""
    v = to_float(x)
    return v if v is not None else 0.0


def get_nested(payload: Any, path: str) -> Any:
    """
    Tiny dot-path getter: 'avm.amount.value' or 'property.0.address'.
    Numeric parts index into lists.
    """
    cur: Any = payload
    for part in path.split("."):
        if isinstance(cur, dict):
            cur = cur.get(part)
        elif isinstance(cur, list) and part.isdigit():
            idx = int(part)
            cur = cur[idx] if idx < len(cur) else None
        else:
            return None
        if cur is None:
            return None
    return cur


def first_record(payload: Any, key: str | None = None) -> dict[str, Any] | None:
    """
    Vendors answer with either an object or a list of objects (optionally
    wrapped under `key`). Return the first object, or None.
    """
    data = payload.get(key) if (key and isinstance(payload, dict)) else payload
    if isinstance(data, list):
        data = data[0] if data else None
    return data if isinstance(data, dict) else None
