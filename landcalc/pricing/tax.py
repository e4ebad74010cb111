"""Sales tax resolution by postal code.

Rates come from an external postal tax-rate service and are cached in process
for an hour. Any lookup failure falls back to a static state base-rate table,
and finally to 0: computing tax never raises.
"""

from __future__ import annotations

import logging
import math

import httpx

from landcalc.config import TaxConfig
from landcalc.core.cache import TTLCache
from landcalc.exceptions import ExternalServiceFailure
from landcalc.models import TaxResult

logger = logging.getLogger(__name__)

# State base rates used when the rate service is unavailable
STATE_FALLBACK: dict[str, float] = {
    "CA": 0.0725,
    "TX": 0.0625,
    "AZ": 0.056,
    "NV": 0.0685,
    "WA": 0.065,
    "OR": 0.0,
}

# Shared by every resolver that is not handed its own cache
_rate_cache: TTLCache[float] = TTLCache(ttl_seconds=TaxConfig().cache_ttl_seconds)


class TaxResolver:
    """Resolves sales-tax rates and computes tax for a subtotal.

    Usage:
        async with httpx.AsyncClient() as client:
            resolver = TaxResolver(client=client)
            result = await resolver.compute_tax(1250.0, zip="90001", state="CA")
    """

    def __init__(
        self,
        config: TaxConfig | None = None,
        client: httpx.AsyncClient | None = None,
        cache: TTLCache[float] | None = None,
    ):
        """Initialize resolver.

        Args:
            config: Endpoint, cache TTL and timeout
            client: HTTP client to reuse; a short-lived one is opened per lookup otherwise
            cache: Rate cache keyed by zip (default: process-wide cache)
        """
        self.config = config or TaxConfig()
        self.client = client
        self.cache = cache if cache is not None else _rate_cache

    async def get_rate(self, zip: str | None, state: str | None = None) -> float:
        """Tax rate for a zip, with state fallback. Never raises."""
        if not zip:
            return 0.0

        cached = self.cache.get(zip)
        if cached is not None:
            return cached

        try:
            rate = await self._fetch_rate(zip)
        except ExternalServiceFailure as e:
            fallback = STATE_FALLBACK.get((state or "").upper(), 0.0)
            logger.warning(f"{e}; using state fallback {fallback} for {state or 'unknown state'}")
            return fallback

        self.cache.set(zip, rate)
        return rate

    async def compute_tax(
        self, subtotal: float, zip: str | None = None, state: str | None = None
    ) -> TaxResult:
        """Compute tax on a subtotal; negative subtotals are taxed as 0."""
        rate = await self.get_rate(zip, state)
        return TaxResult(rate=rate, tax=max(0.0, subtotal) * rate)

    async def _fetch_rate(self, zip: str) -> float:
        params = {"country": "usa", "postal": zip}
        try:
            if self.client is not None:
                response = await self.client.get(
                    self.config.api_url, params=params, timeout=self.config.timeout_seconds
                )
            else:
                async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as client:
                    response = await client.get(self.config.api_url, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise ExternalServiceFailure("tax-rate", f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise ExternalServiceFailure("tax-rate", f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            raise ExternalServiceFailure("tax-rate", f"invalid JSON: {e}") from e

        rate = data.get("totalRate") if isinstance(data, dict) else None
        if isinstance(rate, bool) or not isinstance(rate, (int, float)):
            raise ExternalServiceFailure("tax-rate", "response has no numeric totalRate")
        if not math.isfinite(rate) or rate < 0:
            raise ExternalServiceFailure("tax-rate", f"unusable totalRate {rate}")
        return float(rate)
