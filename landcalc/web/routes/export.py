"""CSV export routes.

Routes:
- GET /api/export/budget.csv?projectId=   - Budget variance per category
- GET /api/export/expenses.csv?projectId= - Expense ledger, oldest first
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from landcalc.budget.expenses import ExpenseLedger
from landcalc.budget.report import BudgetReportAggregator
from landcalc.reporting.csv_export import budget_csv, expenses_csv
from landcalc.web.dependencies import get_expense_ledger, get_report_aggregator

router = APIRouter(prefix="/api/export", tags=["export"])


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/budget.csv")
async def export_budget(
    project_id: UUID = Query(..., alias="projectId"),
    aggregator: BudgetReportAggregator = Depends(get_report_aggregator),
):
    report = await aggregator.get_report(project_id)
    return _csv_response(budget_csv(report), f"budget-{project_id}.csv")


@router.get("/expenses.csv")
async def export_expenses(
    project_id: UUID = Query(..., alias="projectId"),
    ledger: ExpenseLedger = Depends(get_expense_ledger),
):
    expenses = await ledger.list_expenses(project_id)
    return _csv_response(expenses_csv(expenses), f"expenses-{project_id}.csv")
