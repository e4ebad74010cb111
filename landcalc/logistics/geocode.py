"""Free-text address geocoding (Nominatim search API).

Used only to enrich a job-site location. Failures degrade to None.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from landcalc.config import GeocoderConfig
from landcalc.exceptions import ExternalServiceFailure
from landcalc.models import GeocodeResult, Location

logger = logging.getLogger(__name__)


class Geocoder:
    """Client for a Nominatim-compatible ``/search`` endpoint."""

    def __init__(self, config: GeocoderConfig | None = None, client: httpx.AsyncClient | None = None):
        self.config = config or GeocoderConfig()
        self.client = client

    async def geocode(self, query: str) -> GeocodeResult | None:
        """Best match for ``query``, or None on no match or any failure."""
        if not query or not query.strip():
            return None
        try:
            items = await self._search(query)
        except ExternalServiceFailure as e:
            logger.warning(str(e))
            return None

        if not items:
            return None
        return self._parse(items[0])

    async def enrich(self, location: Location) -> Location:
        """Fill zip/state/city/lat/lng from ``location.address``.

        Only locations with an address but neither zip nor state are looked
        up. Existing fields are never overwritten; a failed lookup returns the
        location unchanged.
        """
        if not location.address or location.zip or location.state:
            return location

        found = await self.geocode(location.address)
        if found is None:
            return location

        return location.model_copy(
            update={
                "zip": location.zip or found.postal_code,
                "state": location.state or _state_code(found.state),
                "city": location.city or found.city,
                "lat": location.lat if location.lat is not None else found.latitude,
                "lng": location.lng if location.lng is not None else found.longitude,
            }
        )

    async def _search(self, query: str) -> list[dict[str, Any]]:
        params = {"q": query, "format": "json", "addressdetails": "1", "limit": "1"}
        headers = {"User-Agent": self.config.user_agent}
        try:
            if self.client is not None:
                response = await self.client.get(
                    self.config.url, params=params, headers=headers,
                    timeout=self.config.timeout_seconds,
                )
            else:
                async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as client:
                    response = await client.get(self.config.url, params=params, headers=headers)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise ExternalServiceFailure("geocode", f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            raise ExternalServiceFailure("geocode", f"invalid JSON: {e}") from e

        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            raise ExternalServiceFailure("geocode", "unexpected response shape")
        return data

    @staticmethod
    def _parse(best: dict[str, Any]) -> GeocodeResult:
        a = best.get("address") or {}
        line = " ".join(p for p in (a.get("house_number"), a.get("road")) if p)
        city = a.get("city") or a.get("town") or a.get("village") or a.get("hamlet")

        return GeocodeResult(
            address=line or None,
            city=city,
            state=a.get("state") or a.get("region"),
            postal_code=a.get("postcode"),
            country=a.get("country"),
            latitude=_to_float(best.get("lat")),
            longitude=_to_float(best.get("lon")),
        )


US_STATE_CODES = {
    "alabama": "AL", "alaska": "AK", "arizona": "AZ", "arkansas": "AR",
    "california": "CA", "colorado": "CO", "connecticut": "CT", "delaware": "DE",
    "florida": "FL", "georgia": "GA", "hawaii": "HI", "idaho": "ID",
    "illinois": "IL", "indiana": "IN", "iowa": "IA", "kansas": "KS",
    "kentucky": "KY", "louisiana": "LA", "maine": "ME", "maryland": "MD",
    "massachusetts": "MA", "michigan": "MI", "minnesota": "MN", "mississippi": "MS",
    "missouri": "MO", "montana": "MT", "nebraska": "NE", "nevada": "NV",
    "new hampshire": "NH", "new jersey": "NJ", "new mexico": "NM", "new york": "NY",
    "north carolina": "NC", "north dakota": "ND", "ohio": "OH", "oklahoma": "OK",
    "oregon": "OR", "pennsylvania": "PA", "rhode island": "RI", "south carolina": "SC",
    "south dakota": "SD", "tennessee": "TN", "texas": "TX", "utah": "UT",
    "vermont": "VT", "virginia": "VA", "washington": "WA", "west virginia": "WV",
    "wisconsin": "WI", "wyoming": "WY", "district of columbia": "DC",
}


def _state_code(name: str | None) -> str | None:
    """Two-letter code for a US state name; unknown names pass through."""
    if not name:
        return None
    return US_STATE_CODES.get(name.strip().lower(), name)


def _to_float(value: Any) -> float | None:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None
