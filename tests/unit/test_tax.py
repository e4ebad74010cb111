"""Unit tests for sales-tax resolution."""

from __future__ import annotations

import httpx
import pytest

from landcalc.config import TaxConfig
from landcalc.core.cache import TTLCache
from landcalc.pricing.tax import STATE_FALLBACK, TaxResolver


def make_resolver(handler, cache: TTLCache | None = None) -> tuple[TaxResolver, httpx.AsyncClient]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    resolver = TaxResolver(TaxConfig(api_url="https://tax.test/postal"), client=client, cache=cache or TTLCache(3600))
    return resolver, client


class TestGetRate:
    @pytest.mark.asyncio
    async def test_rate_from_service(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"totalRate": 0.095})

        resolver, client = make_resolver(handler)
        async with client:
            rate = await resolver.get_rate("90001", "CA")

        assert rate == 0.095
        assert seen[0].url.params["postal"] == "90001"
        assert seen[0].url.params["country"] == "usa"

    @pytest.mark.asyncio
    async def test_cached_for_subsequent_lookups(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json={"totalRate": 0.095})

        resolver, client = make_resolver(handler)
        async with client:
            await resolver.get_rate("90001", "CA")
            rate = await resolver.get_rate("90001", "CA")

        assert rate == 0.095
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_failure_falls_back_to_state_rate(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503)

        resolver, client = make_resolver(handler)
        async with client:
            rate = await resolver.get_rate("90001", "CA")

        assert rate == 0.0725

    @pytest.mark.asyncio
    async def test_network_error_falls_back(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        resolver, client = make_resolver(handler)
        async with client:
            rate = await resolver.get_rate("75001", "tx")

        assert rate == STATE_FALLBACK["TX"]

    @pytest.mark.asyncio
    async def test_missing_total_rate_falls_back(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"rates": []})

        resolver, client = make_resolver(handler)
        async with client:
            rate = await resolver.get_rate("85001", "AZ")

        assert rate == 0.056

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [b'{"totalRate": NaN}', b'{"totalRate": Infinity}', b'{"totalRate": -0.05}'])
    async def test_unusable_total_rate_falls_back_uncached(self, body):
        cache = TTLCache(3600)

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=body, headers={"Content-Type": "application/json"})

        resolver, client = make_resolver(handler, cache)
        async with client:
            rate = await resolver.get_rate("90001", "CA")

        assert rate == STATE_FALLBACK["CA"]
        assert cache.get("90001") is None

    @pytest.mark.asyncio
    async def test_unknown_state_falls_back_to_zero(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500)

        resolver, client = make_resolver(handler)
        async with client:
            assert await resolver.get_rate("10001", "NY") == 0.0
            assert await resolver.get_rate("10001", None) == 0.0

    @pytest.mark.asyncio
    async def test_fallback_is_not_cached(self):
        responses = [httpx.Response(503), httpx.Response(200, json={"totalRate": 0.1025})]

        def handler(request: httpx.Request) -> httpx.Response:
            return responses.pop(0)

        resolver, client = make_resolver(handler)
        async with client:
            assert await resolver.get_rate("90001", "CA") == 0.0725
            assert await resolver.get_rate("90001", "CA") == 0.1025

    @pytest.mark.asyncio
    async def test_no_zip_is_zero_without_lookup(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no lookup expected")

        resolver, client = make_resolver(handler)
        async with client:
            assert await resolver.get_rate(None, "CA") == 0.0


class TestComputeTax:
    @pytest.mark.asyncio
    async def test_tax_on_subtotal(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"totalRate": 0.1})

        resolver, client = make_resolver(handler)
        async with client:
            result = await resolver.compute_tax(1250.0, zip="90001", state="CA")

        assert result.rate == 0.1
        assert result.tax == pytest.approx(125.0)

    @pytest.mark.asyncio
    async def test_negative_subtotal_taxed_as_zero(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"totalRate": 0.1})

        resolver, client = make_resolver(handler)
        async with client:
            result = await resolver.compute_tax(-50.0, zip="90001")

        assert result.tax == 0.0
