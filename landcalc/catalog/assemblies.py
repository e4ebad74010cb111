"""Assembly catalog: list and create reusable cost templates."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from landcalc.db.models import AssemblyItemModel, AssemblyModel
from landcalc.exceptions import InvalidInput
from landcalc.models import AssemblyCreate, AssemblyItemOut, AssemblyOut

logger = logging.getLogger(__name__)


class AssemblyCatalog:
    """Reads and writes assemblies together with their items."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_assemblies(self) -> list[AssemblyOut]:
        """All assemblies ordered by name, each with items in position order."""
        result = await self.session.execute(select(AssemblyModel).order_by(AssemblyModel.name))
        assemblies = list(result.scalars().all())
        if not assemblies:
            return []

        items = await self._items_for([a.id for a in assemblies])
        return [_to_out(a, items[a.id]) for a in assemblies]

    async def create_assembly(self, data: AssemblyCreate | Mapping[str, Any]) -> AssemblyOut:
        """Store an assembly and its items.

        Item positions follow the order given.

        Raises:
            InvalidInput: If the payload is malformed or the slug is taken
        """
        if not isinstance(data, AssemblyCreate):
            try:
                data = AssemblyCreate.model_validate(data)
            except ValidationError as e:
                raise InvalidInput(str(e)) from e
        if not data.slug:
            raise InvalidInput("slug is required")

        existing = await self.session.execute(
            select(AssemblyModel.id).where(AssemblyModel.slug == data.slug)
        )
        if existing.scalar_one_or_none() is not None:
            raise InvalidInput(f"Assembly slug already exists: {data.slug}")

        assembly = AssemblyModel(
            slug=data.slug,
            name=data.name,
            trade=data.trade,
            unit=data.unit,
            waste_pct=data.waste_pct,
        )
        self.session.add(assembly)
        await self.session.flush()

        items = [
            AssemblyItemModel(
                assembly_id=assembly.id,
                position=position,
                name=item.name,
                unit=item.unit,
                unit_cost=item.unit_cost,
                qty_formula=item.qty_formula,
                material_slug=item.material_slug or None,
            )
            for position, item in enumerate(data.items)
        ]
        self.session.add_all(items)
        await self.session.flush()

        logger.info(f"Created assembly {assembly.slug} with {len(items)} items")
        return _to_out(assembly, items)

    async def _items_for(self, assembly_ids: list[UUID]) -> dict[UUID, list[AssemblyItemModel]]:
        result = await self.session.execute(
            select(AssemblyItemModel)
            .where(AssemblyItemModel.assembly_id.in_(assembly_ids))
            .order_by(AssemblyItemModel.assembly_id, AssemblyItemModel.position)
        )
        grouped: dict[UUID, list[AssemblyItemModel]] = {a: [] for a in assembly_ids}
        for item in result.scalars().all():
            grouped[item.assembly_id].append(item)
        return grouped


def _to_out(assembly: AssemblyModel, items: list[AssemblyItemModel]) -> AssemblyOut:
    return AssemblyOut(
        id=assembly.id,
        slug=assembly.slug,
        name=assembly.name,
        trade=assembly.trade,
        unit=assembly.unit,
        waste_pct=assembly.waste_pct,
        items=[AssemblyItemOut.model_validate(item) for item in items],
    )
