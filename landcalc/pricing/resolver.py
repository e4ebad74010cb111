"""Unit price resolution.

Resolution order for a material:

1. snapshot cache, when a zip is given and the newest snapshot for
   (material, zip) is younger than its TTL;
2. the provider chain in priority order, first hit wins;
3. nothing: the caller decides between an error and manual pricing.

A provider hit with a zip is written back as a new snapshot row. Concurrent
resolutions of the same uncached pair may both write a row; reads take the
newest, so the duplicate is harmless and no lock is taken.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Sequence
from datetime import datetime

from landcalc.config import PricingConfig
from landcalc.core.timeutil import minutes_between, utcnow
from landcalc.db.models import PriceSnapshotModel
from landcalc.db.price_queries import PriceRepository
from landcalc.exceptions import MaterialNotFound
from landcalc.models import PriceQuery, PriceResult
from landcalc.pricing.providers import PriceProvider, default_providers

logger = logging.getLogger(__name__)


class PriceResolver:
    """Resolves unit prices through the snapshot cache and provider chain.

    Usage:
        resolver = PriceResolver(PriceRepository(session))
        result = await resolver.resolve_price("base-rock-34-minus", zip="94103")
    """

    def __init__(
        self,
        repository: PriceRepository,
        providers: Sequence[PriceProvider] | None = None,
        config: PricingConfig | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """Initialize resolver.

        Args:
            repository: Price data access
            providers: Providers in priority order (default: supplier, retail, index)
            config: Pricing config holding per-provider TTLs
            clock: Source of "now" as naive UTC (injectable for tests)
        """
        self.repository = repository
        self.config = config or PricingConfig()
        self.providers = list(
            providers if providers is not None else default_providers(repository, self.config.currency)
        )
        self.clock = clock

    async def resolve_price(
        self,
        material_slug: str,
        uom: str | None = None,
        qty: float | None = None,
        zip: str | None = None,
    ) -> PriceResult | None:
        """Resolve the unit price for a material.

        Args:
            material_slug: Material identifier
            uom: Unit of measure requested by the caller (passed to providers)
            qty: Quantity requested (passed to providers)
            zip: Job-site zip; enables the snapshot cache and location matching

        Returns:
            PriceResult, or None when no cache entry or provider has a price
        """
        query = PriceQuery(material_slug=material_slug, uom=uom, qty=qty, zip=zip)
        return await self.resolve(query)

    async def resolve(self, query: PriceQuery) -> PriceResult | None:
        if query.zip:
            cached = await self._cached(query)
            if cached is not None:
                return cached

        for provider in self.providers:
            if not await self._can_handle(provider, query):
                continue

            result = await provider.get_price(query)
            if result is None:
                continue

            logger.info(
                f"Price for {query.material_slug} from {provider.name}: "
                f"{result.unit_cost} {result.currency}"
            )
            if query.zip:
                await self._write_snapshot(query, result)
            return result

        logger.info(f"No price found for {query.material_slug} (zip={query.zip})")
        return None

    async def require_price(
        self,
        material_slug: str,
        uom: str | None = None,
        qty: float | None = None,
        zip: str | None = None,
    ) -> PriceResult:
        """Like ``resolve_price`` but raises when nothing resolves.

        Raises:
            MaterialNotFound: If no cache entry or provider has a price
        """
        result = await self.resolve_price(material_slug, uom=uom, qty=qty, zip=zip)
        if result is None:
            raise MaterialNotFound(material_slug, zip)
        return result

    async def price_history(self, material_slug: str, zip: str, limit: int = 10) -> list[PriceResult]:
        """Snapshots recorded for (material, zip), newest first, stale ones included."""
        rows = await self.repository.snapshot_history(material_slug, zip, limit=limit)
        return [_to_result(row) for row in rows]

    async def _cached(self, query: PriceQuery) -> PriceResult | None:
        snapshot = await self.repository.latest_snapshot(query.material_slug, query.zip)
        if snapshot is None:
            return None

        age_minutes = minutes_between(snapshot.fetched_at, self.clock())
        ttl = snapshot.ttl_minutes if snapshot.ttl_minutes is not None else self.config.default_ttl_minutes
        if age_minutes > ttl:
            logger.debug(
                f"Snapshot for {query.material_slug}/{query.zip} stale "
                f"({age_minutes:.0f} > {ttl} min)"
            )
            return None

        logger.debug(f"Snapshot hit for {query.material_slug}/{query.zip}")
        return _to_result(snapshot)

    async def _write_snapshot(self, query: PriceQuery, result: PriceResult) -> None:
        material = await self.repository.get_material(query.material_slug)
        if material is None:
            return

        # The snapshot's clock starts at resolution time; the provider's own
        # observation time is kept in the metadata.
        meta = dict(result.meta)
        meta["observedAt"] = result.fetched_at.isoformat()

        await self.repository.add_snapshot(
            material_id=material.id,
            zip=query.zip,
            unit_cost=result.unit_cost,
            currency=result.currency,
            source=result.source,
            provider=result.provider,
            fetched_at=self.clock(),
            ttl_minutes=self.config.ttl_for(result.provider),
            meta=meta,
        )

    @staticmethod
    async def _can_handle(provider: PriceProvider, query: PriceQuery) -> bool:
        outcome = provider.can_handle(query)
        if inspect.isawaitable(outcome):
            outcome = await outcome
        return bool(outcome)


def _to_result(snapshot: PriceSnapshotModel) -> PriceResult:
    return PriceResult(
        unit_cost=float(snapshot.unit_cost),
        currency=snapshot.currency,
        source=snapshot.source,
        provider=snapshot.provider,
        fetched_at=snapshot.fetched_at,
        meta=dict(snapshot.meta or {}),
    )
