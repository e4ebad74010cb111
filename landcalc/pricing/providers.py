"""Price providers.

A provider is one price-data source. The resolver walks them in a fixed
priority order (supplier feed, retail feed, regional index) and stops at the
first hit. Adding or reordering sources only touches ``default_providers``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from landcalc.db.price_queries import PriceRepository
from landcalc.models import PriceQuery, PriceResult

logger = logging.getLogger(__name__)


class PriceProvider(ABC):
    """Interface every price source implements."""

    name: str
    type: str

    def can_handle(self, query: PriceQuery) -> bool:
        return bool(query.material_slug)

    @abstractmethod
    async def get_price(self, query: PriceQuery) -> PriceResult | None:
        """Return a price for ``query`` or None if this source has none."""


class VendorFeedProvider(PriceProvider):
    """Provider backed by ``VendorPrice`` rows of one vendor type.

    Subclasses only pick the vendor type, the provider name, and whether the
    job-site zip participates in the lookup.
    """

    location_aware: bool = True

    def __init__(self, repository: PriceRepository, currency: str = "USD"):
        self.repository = repository
        self.currency = currency

    async def get_price(self, query: PriceQuery) -> PriceResult | None:
        material = await self.repository.get_material(query.material_slug)
        if material is None:
            return None

        row = await self.repository.latest_vendor_price(
            material.id,
            self.type,
            zip=query.zip,
            location_aware=self.location_aware,
        )
        if row is None:
            return None

        price, vendor = row
        logger.debug(
            f"{self.name}: {query.material_slug} @ {price.unit_cost} "
            f"(vendor={vendor.name}, location={price.location_key})"
        )
        return PriceResult(
            unit_cost=float(price.unit_cost),
            currency=self.currency,
            source=self.type,
            provider=self.name,
            fetched_at=price.fetched_at,
            meta=self._meta(price, vendor),
        )

    def _meta(self, price, vendor) -> dict:
        return {
            "vendorId": str(vendor.id),
            "vendorName": vendor.name,
            "sku": price.sku,
            "locationKey": price.location_key,
        }


class SupplierProvider(VendorFeedProvider):
    """Contractor supplier price lists (CSV imports)."""

    name = "SupplierCSV"
    type = "supplier"


class RetailProvider(VendorFeedProvider):
    """Retail store pricing."""

    name = "RetailX"
    type = "retail"


class IndexProvider(VendorFeedProvider):
    """City-wide baseline index; location is ignored."""

    name = "CityIndex"
    type = "index"
    location_aware = False

    def _meta(self, price, vendor) -> dict:
        return {"vendorId": str(vendor.id), "vendorName": vendor.name}


def default_providers(repository: PriceRepository, currency: str = "USD") -> list[PriceProvider]:
    """Providers in resolution priority order."""
    return [
        SupplierProvider(repository, currency),
        RetailProvider(repository, currency),
        IndexProvider(repository, currency),
    ]
