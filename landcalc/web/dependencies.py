"""Shared dependencies for LandCalc web routes.

Engine components are built per request around the request-scoped session
from ``get_db``, so tests can swap the session with a single override.

Usage:
    from fastapi import Depends
    from landcalc.web.dependencies import get_estimate_builder

    @router.post("/api/estimates")
    async def create(body: EstimateRequest, builder=Depends(get_estimate_builder)):
        return await builder.build(body)
"""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from landcalc.budget.expenses import ExpenseLedger
from landcalc.budget.report import BudgetReportAggregator
from landcalc.budget.snapshot import BudgetSnapshotBuilder
from landcalc.catalog.assemblies import AssemblyCatalog
from landcalc.config import get_config
from landcalc.db.connection import get_db
from landcalc.db.price_queries import PriceRepository
from landcalc.estimating.builder import EstimateBuilder
from landcalc.logistics.delivery import DeliveryEstimator
from landcalc.logistics.geocode import Geocoder
from landcalc.pricing.resolver import PriceResolver
from landcalc.pricing.tax import TaxResolver


def get_tax_resolver() -> TaxResolver:
    """Tax resolver sharing the process-wide rate cache."""
    return TaxResolver(get_config().tax)


def get_geocoder() -> Geocoder | None:
    """Geocoder, or None when geocoding is disabled."""
    config = get_config().geocoder
    return Geocoder(config) if config.enabled else None


def get_price_resolver(db: AsyncSession = Depends(get_db)) -> PriceResolver:
    return PriceResolver(PriceRepository(db), config=get_config().pricing)


def get_estimate_builder(
    db: AsyncSession = Depends(get_db),
    price_resolver: PriceResolver = Depends(get_price_resolver),
    tax: TaxResolver = Depends(get_tax_resolver),
    geocoder: Geocoder | None = Depends(get_geocoder),
) -> EstimateBuilder:
    return EstimateBuilder(db, price_resolver=price_resolver, tax=tax, geocoder=geocoder)


def get_snapshot_builder(db: AsyncSession = Depends(get_db)) -> BudgetSnapshotBuilder:
    return BudgetSnapshotBuilder(db)


def get_report_aggregator(db: AsyncSession = Depends(get_db)) -> BudgetReportAggregator:
    return BudgetReportAggregator(db)


def get_expense_ledger(db: AsyncSession = Depends(get_db)) -> ExpenseLedger:
    return ExpenseLedger(db)


def get_assembly_catalog(db: AsyncSession = Depends(get_db)) -> AssemblyCatalog:
    return AssemblyCatalog(db)


def get_delivery_estimator() -> DeliveryEstimator:
    return DeliveryEstimator(get_config().delivery)
