"""Concrete rate sources and factory.

'external-http' talks to an exchangerate-api.com compatible service
(GET <base_url>/<BASE> -> {"rates": {...}}). 'static' serves a fixed
USD-anchored table so the screen works offline and in demos.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Optional

import httpx

from fxconvert.core.config import Settings
from fxconvert.core.errors import RateFetchError
from fxconvert.services.http_client import HttpError, get_json
from .base import RateSource

logger = logging.getLogger("fxconvert.rates")

# Units of currency per 1 USD
_STATIC_USD_RATES: Dict[str, float] = {
    "USD": 1.0,
    "EUR": 0.92,
    "GBP": 0.79,
    "JPY": 149.5,
    "INR": 83.2,
    "SGD": 1.35,
    "MYR": 4.7,
    "CAD": 1.36,
    "AUD": 1.52,
    "CHF": 0.88,
}


def parse_rate_table(payload: Any, base: str) -> Dict[str, float]:
    """Validate a `{"rates": {...}}` body and return a clean code -> rate mapping.

    The returned table always contains `base` itself at 1.0.
    """
    if not isinstance(payload, dict):
        raise RateFetchError(f"rate body for {base} is not a JSON object")
    rates = payload.get("rates")
    if not isinstance(rates, dict) or not rates:
        raise RateFetchError(f"rate body for {base} has no 'rates' object")
    table: Dict[str, float] = {}
    for code, value in rates.items():
        if not isinstance(code, str) or not code.strip():
            raise RateFetchError(f"rate body for {base} has a blank currency code")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise RateFetchError(f"rate for {code} is not a number: {value!r}")
        if not math.isfinite(value) or value <= 0:
            raise RateFetchError(f"rate for {code} must be positive: {value!r}")
        table[code.strip().upper()] = float(value)
    table.setdefault(base, 1.0)
    return table


class StaticRateSource(RateSource):
    name = "static"

    def __init__(self, usd_rates: Optional[Dict[str, float]] = None):
        self._usd_rates = dict(usd_rates or _STATIC_USD_RATES)

    async def fetch_rates(self, base: str) -> Dict[str, float]:
        base = base.upper()
        anchor = self._usd_rates.get(base)
        if not anchor:
            raise RateFetchError(f"static table has no rates for base {base}")
        return {
            code: round(rate / anchor, 6) if code != base else 1.0
            for code, rate in self._usd_rates.items()
        }


class ExternalHTTPRateSource(RateSource):
    name = "external-http"

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def fetch_rates(self, base: str) -> Dict[str, float]:
        base = base.upper()
        url = f"{self._base_url}/{base}"
        try:
            data = await get_json(url, timeout=self._timeout, client=self._get_client())
        except HttpError as e:
            logger.error("rate fetch failed for base %s: %s", base, e, extra={"base": base})
            raise RateFetchError(f"could not fetch rates for {base}: {e}") from e
        try:
            table = parse_rate_table(data, base)
        except RateFetchError:
            logger.error("malformed rate body for base %s", base, exc_info=True, extra={"base": base})
            raise
        logger.debug("fetched %d rates for base %s", len(table), base)
        return table

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None


_PROVIDER_REGISTRY = {
    "static": lambda settings: StaticRateSource(),
    "external-http": lambda settings: ExternalHTTPRateSource(
        settings.rates_base_url, timeout=settings.http_timeout_seconds
    ),
}


def make_rate_source(kind: str, settings: Settings) -> RateSource:
    factory = _PROVIDER_REGISTRY.get(kind)
    if not factory:
        raise ValueError(f"Unknown rate provider kind '{kind}'")
    return factory(settings)
