"""Pytest configuration and fixtures for LandCalc tests.

Provides common fixtures for testing.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from landcalc.config import reset_config
from landcalc.core.cache import TTLCache
from landcalc.db.models import (
    AssemblyItemModel,
    AssemblyModel,
    Base,
    MaterialModel,
    ProjectModel,
    VendorModel,
    VendorPriceModel,
)
from landcalc.pricing.tax import TaxResolver


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("GEOCODER_ENABLED", "false")
    reset_config()
    yield
    reset_config()


@pytest_asyncio.fixture()
async def db_session() -> AsyncSession:
    """Create in-memory database for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    SessionLocal = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        await session.close()
        await engine.dispose()


@pytest_asyncio.fixture()
async def project(db_session: AsyncSession) -> ProjectModel:
    """A project in Los Angeles."""
    project = ProjectModel(name="Backyard Refresh", slug="backyard-refresh", city="Los Angeles", state="CA", zip="90001")
    db_session.add(project)
    await db_session.flush()
    return project


@pytest.fixture
def make_material(db_session: AsyncSession) -> Callable:
    """Factory for materials."""

    async def _make(slug: str = "base-rock-34-minus", uom: str = "ton") -> MaterialModel:
        material = MaterialModel(slug=slug, name=slug.replace("-", " ").title(), uom=uom)
        db_session.add(material)
        await db_session.flush()
        return material

    return _make


@pytest.fixture
def make_vendor_price(db_session: AsyncSession) -> Callable:
    """Factory for a vendor plus one price row."""

    async def _make(
        material: MaterialModel,
        vendor_type: str,
        unit_cost: float,
        location_key: str | None = None,
        fetched_at: datetime | None = None,
        vendor_name: str | None = None,
    ) -> VendorPriceModel:
        vendor = VendorModel(name=vendor_name or f"{vendor_type.title()} Co", type=vendor_type)
        db_session.add(vendor)
        await db_session.flush()

        kwargs = {"fetched_at": fetched_at} if fetched_at else {}
        price = VendorPriceModel(
            material_id=material.id,
            vendor_id=vendor.id,
            sku=f"{material.slug.upper()}-{vendor_type[:3].upper()}",
            unit_cost=unit_cost,
            location_key=location_key,
            **kwargs,
        )
        db_session.add(price)
        await db_session.flush()
        return price

    return _make


@pytest.fixture
def make_assembly(db_session: AsyncSession) -> Callable:
    """Factory for an assembly with items given as (name, unit, cost, formula[, material_slug])."""

    async def _make(
        name: str = "Paver Patio",
        items: list[tuple] | None = None,
        waste_pct: float = 0.0,
        slug: str | None = None,
    ) -> AssemblyModel:
        assembly = AssemblyModel(
            slug=slug or name.lower().replace(" ", "-"),
            name=name,
            trade="Hardscape",
            unit="sqft",
            waste_pct=waste_pct,
        )
        db_session.add(assembly)
        await db_session.flush()

        for position, row in enumerate(items or [("Pavers", "sqft", 5.0, "area")]):
            item_name, unit, cost, formula, *rest = row
            db_session.add(
                AssemblyItemModel(
                    assembly_id=assembly.id,
                    position=position,
                    name=item_name,
                    unit=unit,
                    unit_cost=cost,
                    qty_formula=formula,
                    material_slug=rest[0] if rest else None,
                )
            )
        await db_session.flush()
        return assembly

    return _make


def _tax_transport(rate: float | None = None, status_code: int = 200) -> httpx.MockTransport:
    """Mock tax-rate service answering every zip with ``rate``."""

    def handler(request: httpx.Request) -> httpx.Response:
        if rate is None:
            return httpx.Response(status_code, json={})
        return httpx.Response(status_code, json={"totalRate": rate})

    return httpx.MockTransport(handler)


@pytest.fixture
def tax_transport() -> Callable[..., httpx.MockTransport]:
    return _tax_transport


@pytest_asyncio.fixture()
async def tax_resolver() -> TaxResolver:
    """Tax resolver answering 9.5% for every zip, with a private cache."""
    async with httpx.AsyncClient(transport=_tax_transport(0.095)) as client:
        yield TaxResolver(client=client, cache=TTLCache(ttl_seconds=3600))
