"""Unit tests for address geocoding and location enrichment."""

from __future__ import annotations

import httpx
import pytest

from landcalc.config import GeocoderConfig
from landcalc.logistics.geocode import Geocoder
from landcalc.models import Location

NOMINATIM_HIT = [
    {
        "lat": "34.0522",
        "lon": "-118.2437",
        "address": {
            "house_number": "200",
            "road": "N Spring St",
            "city": "Los Angeles",
            "state": "California",
            "postcode": "90012",
            "country": "United States",
        },
    }
]


def make_geocoder(handler) -> tuple[Geocoder, httpx.AsyncClient]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return Geocoder(GeocoderConfig(url="https://geo.test/search"), client=client), client


@pytest.mark.asyncio
async def test_geocode_parses_best_match():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["q"] == "200 N Spring St, Los Angeles"
        assert "landcalc" in request.headers["User-Agent"]
        return httpx.Response(200, json=NOMINATIM_HIT)

    geocoder, client = make_geocoder(handler)
    async with client:
        result = await geocoder.geocode("200 N Spring St, Los Angeles")

    assert result.address == "200 N Spring St"
    assert result.city == "Los Angeles"
    assert result.postal_code == "90012"
    assert result.latitude == pytest.approx(34.0522)
    assert result.longitude == pytest.approx(-118.2437)


@pytest.mark.asyncio
async def test_geocode_no_match():
    geocoder, client = make_geocoder(lambda request: httpx.Response(200, json=[]))
    async with client:
        assert await geocoder.geocode("nowhere") is None


@pytest.mark.asyncio
async def test_geocode_failure_returns_none():
    geocoder, client = make_geocoder(lambda request: httpx.Response(500))
    async with client:
        assert await geocoder.geocode("200 N Spring St") is None


@pytest.mark.asyncio
async def test_enrich_fills_missing_fields():
    geocoder, client = make_geocoder(lambda request: httpx.Response(200, json=NOMINATIM_HIT))
    async with client:
        location = await geocoder.enrich(Location(address="200 N Spring St"))

    assert location.zip == "90012"
    assert location.state == "CA"
    assert location.city == "Los Angeles"
    assert location.address == "200 N Spring St"


@pytest.mark.asyncio
async def test_enrich_skips_when_zip_present():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no lookup expected")

    geocoder, client = make_geocoder(handler)
    original = Location(address="200 N Spring St", zip="90001")
    async with client:
        assert await geocoder.enrich(original) is original


@pytest.mark.asyncio
async def test_enrich_keeps_location_on_failure():
    geocoder, client = make_geocoder(lambda request: httpx.Response(502))
    original = Location(address="200 N Spring St", city="LA")
    async with client:
        assert await geocoder.enrich(original) == original


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [["unexpected"], [None], {"lat": "1"}])
async def test_malformed_payload_keeps_location(payload):
    geocoder, client = make_geocoder(lambda request: httpx.Response(200, json=payload))
    original = Location(address="somewhere")
    async with client:
        assert await geocoder.geocode("somewhere") is None
        assert await geocoder.enrich(original) == original
