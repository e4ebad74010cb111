"""Regional cost multipliers."""

from __future__ import annotations

import logging

from landcalc.db.price_queries import PriceRepository
from landcalc.models import Location

logger = logging.getLogger(__name__)

NEUTRAL_FACTOR = 1.0


def make_region_key(location: Location | None) -> str | None:
    """Derive the region key for a location.

    Priority: zip, then ``US-<state>-<city without spaces>``, then
    ``US-<state>``; None when nothing usable is present.
    """
    if location is None:
        return None
    if location.zip:
        return location.zip
    if location.state and location.city:
        return f"US-{location.state}-{location.city.replace(' ', '')}"
    if location.state:
        return f"US-{location.state}"
    return None


class RegionalFactorResolver:
    """Looks up the cost multiplier for a region key (default 1.0)."""

    def __init__(self, repository: PriceRepository):
        self.repository = repository

    async def get_factor(self, region_key: str | None = None) -> float:
        if not region_key:
            return NEUTRAL_FACTOR
        factor = await self.repository.get_regional_factor(region_key)
        if factor is None:
            logger.debug(f"No regional factor for {region_key}, using {NEUTRAL_FACTOR}")
            return NEUTRAL_FACTOR
        return float(factor)

    async def factor_for(self, location: Location | None) -> float:
        return await self.get_factor(make_region_key(location))
