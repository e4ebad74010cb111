"""Estimate builder.

Turns an ``EstimateRequest`` into a persisted, priced estimate:

    for each line:
        for each assembly item:
            qty       = apply_waste(evaluate(formula, inputs), assembly.waste_pct)
            unit_cost = resolved price (or the item's base cost) * regional factor
            extended  = qty * unit_cost
    subtotal = sum(line totals); tax via TaxResolver; total = subtotal + tax

Every line is evaluated and priced before anything is written. An invalid
formula, unknown assembly or missing material price aborts the whole build.
Tax and geocoding degrade to safe defaults instead of failing.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from landcalc.db.models import (
    AssemblyItemModel,
    AssemblyModel,
    EstimateLineModel,
    EstimateModel,
    ProjectModel,
)
from landcalc.db.price_queries import PriceRepository
from landcalc.estimating.formula import apply_waste, evaluate
from landcalc.exceptions import AssemblyNotFound, EstimateNotFound, InvalidInput
from landcalc.logistics.geocode import Geocoder
from landcalc.models import (
    EstimateLineResult,
    EstimateRequest,
    EstimateResult,
    Location,
    PricedItem,
)
from landcalc.pricing.regional import RegionalFactorResolver
from landcalc.pricing.resolver import PriceResolver
from landcalc.pricing.tax import TaxResolver

logger = logging.getLogger(__name__)


def round_money(value: float) -> float:
    return round(value, 2)


class EstimateBuilder:
    """Builds and persists priced estimates.

    Collaborators are injected so tests can swap any of them; by default they
    share the builder's session.
    """

    def __init__(
        self,
        session: AsyncSession,
        price_resolver: PriceResolver | None = None,
        regional: RegionalFactorResolver | None = None,
        tax: TaxResolver | None = None,
        geocoder: Geocoder | None = None,
    ):
        """Initialize builder.

        Args:
            session: Database session used for assemblies and persistence
            price_resolver: Resolves items linked to a material
            regional: Regional cost multiplier lookup
            tax: Sales-tax resolver
            geocoder: Optional location enrichment (skipped when None)
        """
        self.session = session
        repository = PriceRepository(session)
        self.price_resolver = price_resolver or PriceResolver(repository)
        self.regional = regional or RegionalFactorResolver(repository)
        self.tax = tax or TaxResolver()
        self.geocoder = geocoder

    async def build(self, request: EstimateRequest | Mapping[str, Any]) -> EstimateResult:
        """Price and persist an estimate.

        Args:
            request: Validated request, or a raw mapping to validate

        Returns:
            EstimateResult for the newly created estimate

        Raises:
            InvalidInput: If the request is malformed or the project is unknown
            AssemblyNotFound: If a line references an unknown assembly
            InvalidFormula: If any item formula cannot be evaluated
            MaterialNotFound: If a material-linked item has no price
        """
        request = self._validate(request)

        if await self.session.get(ProjectModel, request.project_id) is None:
            raise InvalidInput(f"Unknown project: {request.project_id}")

        location = request.location
        if location is not None and self.geocoder is not None:
            location = await self.geocoder.enrich(location)

        assemblies = await self._load_assemblies([line.assembly_id for line in request.lines])

        # Quantities first: a bad formula anywhere aborts before any pricing I/O
        quantities: list[list[float]] = []
        for line in request.lines:
            assembly, items = assemblies[line.assembly_id]
            quantities.append(
                [apply_waste(evaluate(item.qty_formula, line.inputs), assembly.waste_pct) for item in items]
            )

        factor = await self.regional.factor_for(location)
        zip_code = location.zip if location else None

        lines: list[EstimateLineResult] = []
        for line, qtys in zip(request.lines, quantities):
            assembly, items = assemblies[line.assembly_id]
            priced = [
                await self._price_item(item, qty, factor, zip_code)
                for item, qty in zip(items, qtys)
            ]
            lines.append(
                EstimateLineResult(
                    assembly_id=assembly.id,
                    assembly_name=assembly.name,
                    inputs=dict(line.inputs),
                    items=priced,
                    line_total=round_money(sum(p.extended for p in priced)),
                )
            )

        subtotal = round_money(sum(line.line_total for line in lines))
        tax = await self.tax.compute_tax(
            subtotal,
            zip=zip_code,
            state=location.state if location else None,
        )
        tax_amount = round_money(tax.tax)
        total = round_money(subtotal + tax_amount)

        estimate = EstimateModel(
            project_id=request.project_id,
            location=location.model_dump(by_alias=True, exclude_none=True) if location else None,
            subtotal=subtotal,
            tax_rate=tax.rate,
            tax=tax_amount,
            total=total,
        )
        self.session.add(estimate)
        await self.session.flush()

        for position, line in enumerate(lines):
            row = EstimateLineModel(
                estimate_id=estimate.id,
                assembly_id=line.assembly_id,
                position=position,
                inputs=line.inputs,
                items=[item.model_dump(by_alias=True) for item in line.items],
                line_total=line.line_total,
            )
            self.session.add(row)
            await self.session.flush()
            line.id = row.id

        logger.info(
            f"Estimate {estimate.id} for project {request.project_id}: "
            f"{len(lines)} lines, subtotal={subtotal}, tax={tax_amount} ({tax.rate}), total={total}"
        )

        return EstimateResult(
            id=estimate.id,
            project_id=request.project_id,
            location=location,
            subtotal=subtotal,
            tax_rate=tax.rate,
            tax=tax_amount,
            total=total,
            status=estimate.status or "draft",
            lines=lines,
        )

    async def get_estimate(self, estimate_id: UUID) -> EstimateResult:
        """Load a persisted estimate with its lines in order.

        Raises:
            EstimateNotFound: If the estimate does not exist
        """
        estimate = await self.session.get(EstimateModel, estimate_id)
        if estimate is None:
            raise EstimateNotFound(estimate_id)

        stmt = (
            select(EstimateLineModel, AssemblyModel.name)
            .outerjoin(AssemblyModel, AssemblyModel.id == EstimateLineModel.assembly_id)
            .where(EstimateLineModel.estimate_id == estimate_id)
            .order_by(EstimateLineModel.position)
        )
        result = await self.session.execute(stmt)

        lines = [
            EstimateLineResult(
                id=row.id,
                assembly_id=row.assembly_id,
                assembly_name=name or "",
                inputs=row.inputs or {},
                items=[PricedItem.model_validate(item) for item in row.items or []],
                line_total=float(row.line_total),
            )
            for row, name in result.all()
        ]

        return EstimateResult(
            id=estimate.id,
            project_id=estimate.project_id,
            location=Location.model_validate(estimate.location) if estimate.location else None,
            subtotal=float(estimate.subtotal),
            tax_rate=estimate.tax_rate,
            tax=float(estimate.tax),
            total=float(estimate.total),
            status=estimate.status,
            lines=lines,
        )

    async def _price_item(
        self, item: AssemblyItemModel, qty: float, factor: float, zip_code: str | None
    ) -> PricedItem:
        if item.material_slug:
            price = await self.price_resolver.require_price(
                item.material_slug, uom=item.unit, qty=qty, zip=zip_code
            )
            base_cost, source = price.unit_cost, f"{price.source}:{price.provider}"
        else:
            base_cost, source = float(item.unit_cost), "assembly"

        unit_cost = round(base_cost * factor, 4)
        return PricedItem(
            name=item.name,
            qty=round(qty, 4),
            unit=item.unit,
            unit_cost=unit_cost,
            extended=round_money(qty * unit_cost),
            source=source,
        )

    async def _load_assemblies(
        self, assembly_ids: list[UUID]
    ) -> dict[UUID, tuple[AssemblyModel, list[AssemblyItemModel]]]:
        wanted = set(assembly_ids)
        result = await self.session.execute(
            select(AssemblyModel).where(AssemblyModel.id.in_(wanted))
        )
        found = {a.id: a for a in result.scalars().all()}

        missing = [a for a in assembly_ids if a not in found]
        if missing:
            raise AssemblyNotFound(missing[0])

        result = await self.session.execute(
            select(AssemblyItemModel)
            .where(AssemblyItemModel.assembly_id.in_(wanted))
            .order_by(AssemblyItemModel.assembly_id, AssemblyItemModel.position)
        )
        items: dict[UUID, list[AssemblyItemModel]] = {a: [] for a in wanted}
        for item in result.scalars().all():
            items[item.assembly_id].append(item)

        return {a: (found[a], items[a]) for a in wanted}

    @staticmethod
    def _validate(request: EstimateRequest | Mapping[str, Any]) -> EstimateRequest:
        if isinstance(request, EstimateRequest):
            return request
        try:
            return EstimateRequest.model_validate(request)
        except ValidationError as e:
            raise InvalidInput(f"Invalid estimate request: {e}") from e
