"""Project financial dashboard.

Contract value is the sum of a project's estimate totals plus approved change
orders; gross profit is contract value minus recorded expenses.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from landcalc.db.models import ChangeOrderModel, EstimateModel, ExpenseModel, ProjectModel


async def _sum_by_project(session: AsyncSession, column, *where) -> dict:
    model = column.class_
    stmt = select(model.project_id, func.sum(column)).where(*where).group_by(model.project_id)
    result = await session.execute(stmt)
    return {project_id: float(total or 0) for project_id, total in result.all()}


async def project_financials(session: AsyncSession) -> list[dict[str, Any]]:
    """Per-project estimate, expense and change-order totals, newest first."""
    result = await session.execute(select(ProjectModel).order_by(ProjectModel.created_at.desc()))
    projects = result.scalars().all()

    estimates = await _sum_by_project(session, EstimateModel.total)
    expenses = await _sum_by_project(session, ExpenseModel.amount)
    change_orders = await _sum_by_project(
        session, ChangeOrderModel.amount, ChangeOrderModel.status == "APPROVED"
    )

    rows = []
    for p in projects:
        estimates_total = estimates.get(p.id, 0.0)
        expenses_total = expenses.get(p.id, 0.0)
        approved = change_orders.get(p.id, 0.0)
        contract_value = estimates_total + approved

        rows.append({
            "id": str(p.id),
            "name": p.name,
            "city": p.city,
            "state": p.state,
            "createdAt": p.created_at.isoformat(),
            "estimatesTotal": round(estimates_total, 2),
            "expensesTotal": round(expenses_total, 2),
            "approvedChangeOrdersTotal": round(approved, 2),
            "contractValue": round(contract_value, 2),
            "grossProfit": round(contract_value - expenses_total, 2),
        })
    return rows


async def dashboard_summary(session: AsyncSession) -> dict[str, Any]:
    """Totals across every project."""
    rows = await project_financials(session)

    result = await session.execute(select(func.count()).select_from(EstimateModel))
    total_estimates = result.scalar() or 0

    total_estimate_value = sum(r["estimatesTotal"] for r in rows)
    total_expenses = sum(r["expensesTotal"] for r in rows)
    total_change_orders = sum(r["approvedChangeOrdersTotal"] for r in rows)
    contract_value = total_estimate_value + total_change_orders

    return {
        "totalProjects": len(rows),
        "totalEstimates": total_estimates,
        "totalEstimateValue": round(total_estimate_value, 2),
        "totalExpenses": round(total_expenses, 2),
        "totalApprovedChangeOrders": round(total_change_orders, 2),
        "contractValue": round(contract_value, 2),
        "grossProfit": round(contract_value - total_expenses, 2),
    }
