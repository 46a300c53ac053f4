# equity_api/adapters/clients/http_resilience.py
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

import httpx

from ...config import settings

log = logging.getLogger(__name__)

RETRYABLE_STATUS = (429, 500, 502, 503, 504)


@dataclass
class _Circuit:
    fails: int = 0
    opened_at: float | None = None

    def is_open(self, now: float) -> bool:
        if self.opened_at is None:
            return False
        if (now - self.opened_at) < float(settings.HTTP_CIRCUIT_RESET_S):
            return True
        # half-open: let the next call through
        self.opened_at = None
        self.fails = 0
        return False

    def record_success(self) -> None:
        self.fails = 0
        self.opened_at = None

    def record_failure(self, host: str) -> None:
        self.fails += 1
        if self.fails >= int(settings.HTTP_CIRCUIT_FAIL_THRESHOLD) and self.opened_at is None:
            self.opened_at = time.time()
            log.warning("http circuit for %s opened after %d consecutive failures", host, self.fails)


# one breaker per vendor host; an ATTOM outage must not stop geocoding
_CIRCUITS: dict[str, _Circuit] = {}
_RATE_LOCK = asyncio.Lock()
_LAST_TS = 0.0


def _circuit_for(url: str) -> tuple[str, _Circuit]:
    host = urlsplit(url).netloc.lower()
    return host, _CIRCUITS.setdefault(host, _Circuit())


def reset_circuit() -> None:
    _CIRCUITS.clear()


async def _rate_limit() -> None:
    """Very simple per-process limiter, shared by all vendors."""
    global _LAST_TS
    rps = float(settings.HTTP_RATE_LIMIT_RPS)
    if rps <= 0:
        return
    min_gap = 1.0 / rps
    async with _RATE_LOCK:
        now = time.time()
        wait = (_LAST_TS + min_gap) - now
        if wait > 0:
            await asyncio.sleep(wait)
        _LAST_TS = time.time()


async def resilient_request(
    method: str,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    params: dict[str, Any] | None = None,
    json: Any | None = None,
) -> httpx.Response:
    """
    One vendor call with rate limiting, retries and a circuit breaker.

    Returns the response for 2xx and for non-retryable 4xx (callers inspect
    vendor error bodies). Raises httpx errors for exhausted retries.
    """
    host, circuit = _circuit_for(url)
    if circuit.is_open(time.time()):
        raise httpx.HTTPError(f"circuit_open: refusing external call to {host}")

    await _rate_limit()

    timeout = httpx.Timeout(float(settings.HTTP_TIMEOUT_S))
    max_retries = int(settings.HTTP_MAX_RETRIES)
    backoff = float(settings.HTTP_BACKOFF_BASE_S)

    last_exc: Exception | None = None
    for attempt in range(max_retries + 1):
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                resp = await client.request(method, url, headers=headers, params=params, json=json)

            if resp.status_code in RETRYABLE_STATUS:
                raise httpx.HTTPStatusError(
                    f"{host} answered {resp.status_code}", request=resp.request, response=resp
                )

            circuit.record_success()
            return resp
        except (httpx.TimeoutException, httpx.NetworkError, httpx.HTTPStatusError) as e:
            last_exc = e
            circuit.record_failure(host)
            if attempt >= max_retries:
                break
            log.info("retrying %s %s (attempt %d): %s", method, host, attempt + 1, e)
            await asyncio.sleep(min(5.0, backoff * (2**attempt)))

    assert last_exc is not None
    raise last_exc
