"""SQLAlchemy async database models for LandCalc.

Price observations (vendor prices, price snapshots) are append-only: newer
rows supersede older ones, nothing is updated in place.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from landcalc.core.timeutil import utcnow


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class ProjectModel(Base):
    """Customer job that owns estimates, budget snapshots and expenses."""

    __tablename__ = "projects"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str | None] = mapped_column(Text, index=True)
    city: Mapped[str | None] = mapped_column(Text)
    state: Mapped[str | None] = mapped_column(String(2))
    zip: Mapped[str | None] = mapped_column(String(10))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


# ---------------------------------------------------------------------------
# Assemblies (cost templates)
# ---------------------------------------------------------------------------


class AssemblyModel(Base):
    """Reusable cost template, e.g. a paver patio per square foot."""

    __tablename__ = "assemblies"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    slug: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    trade: Mapped[str | None] = mapped_column(Text)
    unit: Mapped[str] = mapped_column(Text, nullable=False)  # base unit, e.g. "sqft"
    waste_pct: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


class AssemblyItemModel(Base):
    """One priced component of an assembly with its quantity formula."""

    __tablename__ = "assembly_items"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    assembly_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("assemblies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    unit: Mapped[str] = mapped_column(Text, nullable=False)
    unit_cost: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    qty_formula: Mapped[str] = mapped_column(Text, nullable=False)

    # When set, the unit cost is resolved through the price chain instead of
    # using the informational unit_cost above.
    material_slug: Mapped[str | None] = mapped_column(Text, index=True)


# ---------------------------------------------------------------------------
# Materials & prices
# ---------------------------------------------------------------------------


class MaterialModel(Base):
    """Canonical priceable good."""

    __tablename__ = "materials"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    slug: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    uom: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


class VendorModel(Base):
    """Price source: supplier feed, retail feed or regional index."""

    __tablename__ = "vendors"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    __table_args__ = (
        CheckConstraint(
            "type IN ('supplier', 'retail', 'index')", name="check_vendor_type"
        ),
    )


class VendorPriceModel(Base):
    """Point price observation from a vendor. Newest wins."""

    __tablename__ = "vendor_prices"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    material_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("materials.id", ondelete="CASCADE"), nullable=False
    )
    vendor_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False
    )
    sku: Mapped[str | None] = mapped_column(Text)
    unit_cost: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    location_key: Mapped[str | None] = mapped_column(Text)  # zip; NULL = global
    fetched_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("unit_cost >= 0", name="check_vendor_unit_cost_non_negative"),
        Index("idx_vendor_price_lookup", "material_id", "vendor_id", "fetched_at"),
    )


class PriceSnapshotModel(Base):
    """Cached price resolution for (material, zip).

    The newest row per pair is authoritative while
    ``now - fetched_at <= ttl_minutes``. Stale rows are kept as history.
    """

    __tablename__ = "price_snapshots"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    material_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("materials.id", ondelete="CASCADE"), nullable=False
    )
    zip: Mapped[str] = mapped_column(String(10), nullable=False)
    unit_cost: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    source: Mapped[str] = mapped_column(String(20), nullable=False)
    provider: Mapped[str] = mapped_column(Text, nullable=False)
    fetched_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    ttl_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=1440)
    meta: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        # Current-snapshot lookups (most common query)
        Index("idx_price_snapshot_current", "material_id", "zip", "fetched_at"),
    )


class RegionalFactorModel(Base):
    """Geographic cost multiplier keyed by zip, US-<state>-<city> or US-<state>."""

    __tablename__ = "regional_factors"

    region_key: Mapped[str] = mapped_column(Text, primary_key=True)
    factor: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)


# ---------------------------------------------------------------------------
# Estimates
# ---------------------------------------------------------------------------


class EstimateModel(Base):
    """Priced estimate for a project. Immutable once finalized."""

    __tablename__ = "estimates"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    location: Mapped[dict | None] = mapped_column(JSON)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    tax_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    tax: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")
    finalized_at: Mapped[datetime | None] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("status IN ('draft', 'finalized')", name="check_estimate_status"),
    )


class EstimateLineModel(Base):
    """One assembly applied to user inputs within an estimate."""

    __tablename__ = "estimate_lines"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    estimate_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("estimates.id", ondelete="CASCADE"), nullable=False, index=True
    )
    assembly_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("assemblies.id", ondelete="SET NULL")
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    inputs: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    items: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    line_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)


# ---------------------------------------------------------------------------
# Budget tracking
# ---------------------------------------------------------------------------


class BudgetSnapshotModel(Base):
    """Baseline cost breakdown captured when an estimate is finalized.

    ``by_category`` is a denormalized copy; it is never recomputed from the
    estimate afterwards.
    """

    __tablename__ = "budget_snapshots"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    estimate_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("estimates.id", ondelete="SET NULL")
    )
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    by_category: Mapped[dict] = mapped_column(JSON, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_budget_snapshot_latest", "project_id", "created_at"),
    )


class ExpenseModel(Base):
    """Actual spend recorded against a project."""

    __tablename__ = "expenses"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    estimate_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True))
    estimate_line_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True))
    category: Mapped[str] = mapped_column(String(20), nullable=False, default="OTHER")
    vendor: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    receipt_url: Mapped[str | None] = mapped_column(Text)
    meta: Mapped[dict | None] = mapped_column(JSON)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "category IN ('MATERIAL', 'LABOR', 'EQUIPMENT', 'SUBCONTRACTOR', 'OTHER')",
            name="check_expense_category",
        ),
        Index("idx_expenses_project_category", "project_id", "category"),
    )


class ChangeOrderModel(Base):
    """Delta to contract value, pending until approved."""

    __tablename__ = "change_orders"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    estimate_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True))
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING")
    decided_at: Mapped[datetime | None] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
