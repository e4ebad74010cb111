"""LandCalc Pydantic models for type-safe data validation.

These are the engine's boundary types: validated requests coming in from the
API/CLI layer and structured results going out. Field names are snake_case in
Python and camelCase on the wire.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, FiniteFloat, field_validator
from pydantic.alias_generators import to_camel


class ExpenseCategory(str, Enum):
    """Cost categories shared by budget snapshots and expenses."""

    MATERIAL = "MATERIAL"
    LABOR = "LABOR"
    EQUIPMENT = "EQUIPMENT"
    SUBCONTRACTOR = "SUBCONTRACTOR"
    OTHER = "OTHER"


CATEGORIES: tuple[str, ...] = tuple(c.value for c in ExpenseCategory)

PriceSource = Literal["supplier", "retail", "marketplace", "index"]


def empty_category_totals() -> dict[str, float]:
    """Fixed five-key category map, every category present at 0."""
    return {cat: 0.0 for cat in CATEGORIES}


class WireModel(BaseModel):
    """Base for models serialized over the API (camelCase aliases)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Geography
# ---------------------------------------------------------------------------


class Coordinates(WireModel):
    lat: FiniteFloat = Field(ge=-90, le=90)
    lng: FiniteFloat = Field(ge=-180, le=180)


class Location(WireModel):
    """Job-site location. Every field is optional."""

    zip: str | None = None
    state: str | None = None
    city: str | None = None
    lat: FiniteFloat | None = None
    lng: FiniteFloat | None = None
    address: str | None = None

    @field_validator("state")
    @classmethod
    def normalize_state(cls, v: str | None) -> str | None:
        return v.strip().upper() if v else v


class GeocodeResult(WireModel):
    address: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None
    latitude: float | None = None
    longitude: float | None = None


# ---------------------------------------------------------------------------
# Pricing
# ---------------------------------------------------------------------------


class PriceQuery(WireModel):
    """Price lookup for one material, optionally scoped to a zip."""

    material_slug: str = Field(min_length=1)
    uom: str | None = None
    qty: FiniteFloat | None = None
    zip: str | None = None


class PriceResult(WireModel):
    """Resolved unit price with provenance."""

    unit_cost: float
    currency: str = "USD"
    source: PriceSource
    provider: str
    fetched_at: datetime
    meta: dict[str, Any] = Field(default_factory=dict)


class TaxResult(WireModel):
    rate: float
    tax: float


class DeliveryRequest(WireModel):
    origin: Coordinates
    dest: Coordinates
    avg_speed_mph: FiniteFloat | None = None


class DeliveryQuote(WireModel):
    """Delivery cost breakdown; every field rounded to 2 decimals."""

    miles: float
    minutes: float
    base: float
    variable: float
    fuel: float
    total: float


# ---------------------------------------------------------------------------
# Estimates
# ---------------------------------------------------------------------------


class EstimateLineRequest(WireModel):
    assembly_id: UUID
    inputs: dict[str, FiniteFloat] = Field(default_factory=dict)


class EstimateRequest(WireModel):
    """Validated request to build and persist an estimate."""

    project_id: UUID
    location: Location | None = None
    lines: list[EstimateLineRequest] = Field(min_length=1)


class PricedItem(WireModel):
    name: str
    qty: float
    unit: str
    unit_cost: float
    extended: float
    source: str = "assembly"


class EstimateLineResult(WireModel):
    id: UUID | None = None
    assembly_id: UUID | None
    assembly_name: str
    inputs: dict[str, float]
    items: list[PricedItem]
    line_total: float


class EstimateResult(WireModel):
    id: UUID
    project_id: UUID
    location: Location | None = None
    subtotal: float
    tax_rate: float
    tax: float
    total: float
    status: str = "draft"
    lines: list[EstimateLineResult]


# ---------------------------------------------------------------------------
# Assembly catalog
# ---------------------------------------------------------------------------


class AssemblyItemCreate(WireModel):
    name: str = Field(min_length=1)
    unit: str = Field(min_length=1)
    unit_cost: FiniteFloat = Field(ge=0)
    qty_formula: str = Field(min_length=1)
    material_slug: str | None = None


class AssemblyCreate(WireModel):
    slug: str = Field(min_length=1)
    name: str = Field(min_length=1)
    trade: str | None = None
    unit: str = Field(min_length=1)
    waste_pct: FiniteFloat = 0.0
    items: list[AssemblyItemCreate] = Field(default_factory=list)

    @field_validator("slug")
    @classmethod
    def normalize_slug(cls, v: str) -> str:
        return v.strip().lower()


class AssemblyItemOut(WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: UUID
    position: int
    name: str
    unit: str
    unit_cost: float
    qty_formula: str
    material_slug: str | None = None


class AssemblyOut(WireModel):
    """An assembly with its items in position order."""

    id: UUID
    slug: str
    name: str
    trade: str | None = None
    unit: str
    waste_pct: float
    items: list[AssemblyItemOut]


# ---------------------------------------------------------------------------
# Budget
# ---------------------------------------------------------------------------


class BudgetSnapshot(WireModel):
    id: UUID
    project_id: UUID
    estimate_id: UUID | None
    total: float
    by_category: dict[str, float]
    created_at: datetime


class BudgetReport(WireModel):
    """Baseline vs. actual spend per category."""

    has_baseline: bool
    baseline_total: float = 0.0
    by_category: dict[str, float] = Field(default_factory=empty_category_totals)
    actual_by_category: dict[str, float] = Field(default_factory=empty_category_totals)
    remaining_by_category: dict[str, float] = Field(default_factory=empty_category_totals)
    total_actual: float = 0.0
    total_remaining: float = 0.0
    change_order_total: float = 0.0


class ExpenseCreate(WireModel):
    project_id: UUID | None = None
    project_slug: str | None = None
    estimate_id: UUID | None = None
    estimate_line_id: UUID | None = None
    category: str | None = None
    vendor: str | None = None
    description: str | None = None
    amount: str | float | None = None
    currency: str | None = None
    date: str | None = None
    receipt_url: str | None = None
    meta: dict[str, Any] | None = None


class ChangeOrderCreate(WireModel):
    project_id: UUID
    estimate_id: UUID | None = None
    title: str = Field(min_length=1)
    description: str | None = None
    amount: FiniteFloat


class ExpenseOut(WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: UUID
    project_id: UUID
    estimate_id: UUID | None = None
    estimate_line_id: UUID | None = None
    category: str
    vendor: str | None = None
    description: str | None = None
    amount: float
    currency: str
    date: datetime
    receipt_url: str | None = None
    meta: dict[str, Any] | None = None
    created_at: datetime


class ChangeOrderOut(WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: UUID
    project_id: UUID
    estimate_id: UUID | None = None
    title: str
    description: str | None = None
    amount: float
    status: str
    decided_at: datetime | None = None
    created_at: datetime
