"""Budget vs. actual reporting."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from landcalc.budget.snapshot import to_snapshot
from landcalc.db.models import BudgetSnapshotModel, ChangeOrderModel, ExpenseModel
from landcalc.models import CATEGORIES, BudgetReport, BudgetSnapshot, empty_category_totals


class BudgetReportAggregator:
    """Compares the latest baseline against recorded expenses."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def latest_snapshot(self, project_id: UUID) -> BudgetSnapshot | None:
        stmt = (
            select(BudgetSnapshotModel)
            .where(BudgetSnapshotModel.project_id == project_id)
            .order_by(BudgetSnapshotModel.created_at.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        row = result.scalar_one_or_none()
        return to_snapshot(row) if row else None

    async def actual_by_category(self, project_id: UUID) -> dict[str, float]:
        stmt = (
            select(ExpenseModel.category, func.sum(ExpenseModel.amount))
            .where(ExpenseModel.project_id == project_id)
            .group_by(ExpenseModel.category)
        )
        result = await self.session.execute(stmt)

        actual = empty_category_totals()
        for category, amount in result.all():
            actual[category] = round(float(amount or 0), 2)
        return actual

    async def approved_change_order_total(self, project_id: UUID) -> float:
        stmt = select(func.sum(ChangeOrderModel.amount)).where(
            and_(
                ChangeOrderModel.project_id == project_id,
                ChangeOrderModel.status == "APPROVED",
            )
        )
        result = await self.session.execute(stmt)
        return round(float(result.scalar() or 0), 2)

    async def get_report(self, project_id: UUID) -> BudgetReport:
        """Budget, actual and remaining figures per category.

        Without a baseline the report has ``has_baseline=False`` and zeros
        everywhere. Remaining amounts may go negative (over budget). Approved
        change orders raise the baseline total.
        """
        snapshot = await self.latest_snapshot(project_id)
        if snapshot is None:
            return BudgetReport(has_baseline=False)

        baseline = snapshot.by_category
        actual = await self.actual_by_category(project_id)
        remaining = {cat: round(baseline[cat] - actual[cat], 2) for cat in CATEGORIES}

        change_orders = await self.approved_change_order_total(project_id)
        baseline_total = round(sum(baseline.values()) + change_orders, 2)
        total_actual = round(sum(actual.values()), 2)

        return BudgetReport(
            has_baseline=True,
            baseline_total=baseline_total,
            by_category=baseline,
            actual_by_category=actual,
            remaining_by_category=remaining,
            total_actual=total_actual,
            total_remaining=round(baseline_total - total_actual, 2),
            change_order_total=change_orders,
        )
