"""Price data access.

All price tables are append-only, so every "current" lookup is a newest-first
query rather than a flag check. ``PriceRepository`` is the seam injected into
the price providers and the resolver.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import and_, case, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from landcalc.db.models import (
    MaterialModel,
    PriceSnapshotModel,
    RegionalFactorModel,
    VendorModel,
    VendorPriceModel,
)


class PriceRepository:
    """Queries over materials, vendor prices and price snapshots."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def get_material(self, slug: str) -> MaterialModel | None:
        stmt = select(MaterialModel).where(MaterialModel.slug == slug)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def latest_vendor_price(
        self,
        material_id,
        vendor_type: str,
        zip: str | None = None,
        location_aware: bool = True,
    ) -> tuple[VendorPriceModel, VendorModel] | None:
        """Most relevant price from vendors of ``vendor_type``.

        Args:
            material_id: Material primary key
            vendor_type: "supplier", "retail" or "index"
            zip: Job-site zip used for location matching
            location_aware: When False, location keys are ignored entirely

        Returns:
            (price, vendor) or None. Location-aware lookups with a zip accept
            rows for that zip or global rows (NULL location) and prefer the zip
            match; without a zip, global rows are preferred. Ties go to the
            most recently fetched row.
        """
        stmt = (
            select(VendorPriceModel, VendorModel)
            .join(VendorModel, VendorModel.id == VendorPriceModel.vendor_id)
            .where(
                and_(
                    VendorPriceModel.material_id == material_id,
                    VendorModel.type == vendor_type,
                )
            )
        )

        if location_aware and zip:
            stmt = stmt.where(
                or_(
                    VendorPriceModel.location_key == zip,
                    VendorPriceModel.location_key.is_(None),
                )
            ).order_by(
                case((VendorPriceModel.location_key == zip, 0), else_=1),
                VendorPriceModel.fetched_at.desc(),
            )
        elif location_aware:
            stmt = stmt.order_by(
                case((VendorPriceModel.location_key.is_(None), 0), else_=1),
                VendorPriceModel.fetched_at.desc(),
            )
        else:
            stmt = stmt.order_by(VendorPriceModel.fetched_at.desc())

        result = await self.session.execute(stmt.limit(1))
        row = result.first()
        if row is None:
            return None
        return row[0], row[1]

    async def latest_snapshot(self, material_slug: str, zip: str) -> PriceSnapshotModel | None:
        """Newest snapshot for (material, zip), regardless of freshness."""
        stmt = (
            select(PriceSnapshotModel)
            .join(MaterialModel, MaterialModel.id == PriceSnapshotModel.material_id)
            .where(
                and_(
                    MaterialModel.slug == material_slug,
                    PriceSnapshotModel.zip == zip,
                )
            )
            .order_by(PriceSnapshotModel.fetched_at.desc(), PriceSnapshotModel.created_at.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def add_snapshot(
        self,
        material_id,
        zip: str,
        unit_cost: float,
        currency: str,
        source: str,
        provider: str,
        fetched_at: datetime,
        ttl_minutes: int,
        meta: dict[str, Any] | None = None,
    ) -> PriceSnapshotModel:
        """Insert a new snapshot row. Existing rows are never touched."""
        snapshot = PriceSnapshotModel(
            material_id=material_id,
            zip=zip,
            unit_cost=unit_cost,
            currency=currency,
            source=source,
            provider=provider,
            fetched_at=fetched_at,
            ttl_minutes=ttl_minutes,
            meta=meta or {},
        )
        self.session.add(snapshot)
        await self.session.flush()
        return snapshot

    async def snapshot_history(
        self, material_slug: str, zip: str, limit: int = 10
    ) -> list[PriceSnapshotModel]:
        """Snapshots for (material, zip), most recent first."""
        stmt = (
            select(PriceSnapshotModel)
            .join(MaterialModel, MaterialModel.id == PriceSnapshotModel.material_id)
            .where(
                and_(
                    MaterialModel.slug == material_slug,
                    PriceSnapshotModel.zip == zip,
                )
            )
            .order_by(PriceSnapshotModel.fetched_at.desc(), PriceSnapshotModel.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_regional_factor(self, region_key: str) -> float | None:
        stmt = select(RegionalFactorModel.factor).where(
            RegionalFactorModel.region_key == region_key
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
