"""Budget baseline snapshots.

A snapshot freezes an estimate's cost per category at finalize time. It is a
denormalized copy: later edits to assemblies or estimates never change it,
and a project may accumulate several snapshots (reports use the newest).
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from landcalc.core.timeutil import utcnow
from landcalc.db.models import AssemblyModel, BudgetSnapshotModel, EstimateLineModel, EstimateModel
from landcalc.exceptions import EstimateAlreadyFinalized, EstimateNotFound, InvalidInput
from landcalc.models import BudgetSnapshot, ExpenseCategory, empty_category_totals

logger = logging.getLogger(__name__)


def categorize_line(assembly_name: str | None) -> ExpenseCategory:
    """Infer a cost category from an assembly name.

    Case-insensitive substring heuristic: "labor", "equip", "sub", else
    MATERIAL. Assemblies carry no explicit category, so this is a best guess.
    """
    if not assembly_name:
        return ExpenseCategory.MATERIAL
    name = assembly_name.lower()
    if "labor" in name:
        return ExpenseCategory.LABOR
    if "equip" in name:
        return ExpenseCategory.EQUIPMENT
    if "sub" in name:
        return ExpenseCategory.SUBCONTRACTOR
    return ExpenseCategory.MATERIAL


def to_snapshot(row: BudgetSnapshotModel) -> BudgetSnapshot:
    by_category = empty_category_totals()
    by_category.update({k: float(v) for k, v in (row.by_category or {}).items()})
    return BudgetSnapshot(
        id=row.id,
        project_id=row.project_id,
        estimate_id=row.estimate_id,
        total=float(row.total),
        by_category=by_category,
        created_at=row.created_at,
    )


class BudgetSnapshotBuilder:
    """Creates immutable budget baselines from estimates."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_snapshot(self, project_id: UUID, estimate_id: UUID) -> BudgetSnapshot:
        """Categorize an estimate's lines and persist a new baseline.

        Args:
            project_id: Project the baseline belongs to
            estimate_id: Estimate to snapshot

        Returns:
            The new BudgetSnapshot

        Raises:
            EstimateNotFound: If the estimate does not exist
            InvalidInput: If the estimate belongs to another project
        """
        estimate = await self.session.get(EstimateModel, estimate_id)
        if estimate is None:
            raise EstimateNotFound(estimate_id)
        if estimate.project_id != project_id:
            raise InvalidInput(f"Estimate {estimate_id} does not belong to project {project_id}")

        stmt = (
            select(EstimateLineModel.line_total, AssemblyModel.name)
            .outerjoin(AssemblyModel, AssemblyModel.id == EstimateLineModel.assembly_id)
            .where(EstimateLineModel.estimate_id == estimate_id)
        )
        result = await self.session.execute(stmt)

        by_category = empty_category_totals()
        for line_total, assembly_name in result.all():
            by_category[categorize_line(assembly_name).value] += float(line_total)

        by_category = {cat: round(value, 2) for cat, value in by_category.items()}
        total = round(sum(by_category.values()), 2)

        row = BudgetSnapshotModel(
            project_id=project_id,
            estimate_id=estimate_id,
            total=total,
            by_category=by_category,
        )
        self.session.add(row)
        await self.session.flush()

        logger.info(f"Budget snapshot {row.id} for project {project_id}: total={total}")
        return to_snapshot(row)

    async def finalize_estimate(self, estimate_id: UUID) -> BudgetSnapshot:
        """Freeze an estimate and capture its budget baseline.

        Raises:
            EstimateNotFound: If the estimate does not exist
            EstimateAlreadyFinalized: If it was finalized before
        """
        estimate = await self.session.get(EstimateModel, estimate_id)
        if estimate is None:
            raise EstimateNotFound(estimate_id)
        if estimate.status == "finalized":
            raise EstimateAlreadyFinalized(estimate_id)

        estimate.status = "finalized"
        estimate.finalized_at = utcnow()
        await self.session.flush()

        return await self.create_snapshot(estimate.project_id, estimate_id)
