"""Budget reporting routes.

Routes:
- GET /api/reports/budget?projectId= - Baseline vs. actual spend per category
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from landcalc.budget.report import BudgetReportAggregator
from landcalc.models import BudgetReport
from landcalc.web.dependencies import get_report_aggregator

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("/budget", response_model=BudgetReport)
async def budget_report(
    project_id: UUID = Query(..., alias="projectId"),
    aggregator: BudgetReportAggregator = Depends(get_report_aggregator),
):
    """Latest baseline against recorded expenses.

    ``hasBaseline`` is false until an estimate has been finalized.
    """
    return await aggregator.get_report(project_id)
