"""Expense ledger routes.

Routes:
- POST /api/expenses            - Record an expense
- GET  /api/expenses?projectId= - List a project's expenses, oldest first
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from landcalc.budget.expenses import ExpenseLedger
from landcalc.models import ExpenseCreate, ExpenseOut
from landcalc.web.dependencies import get_expense_ledger

router = APIRouter(prefix="/api/expenses", tags=["expenses"])


@router.post("", response_model=ExpenseOut, status_code=status.HTTP_201_CREATED)
async def create_expense(
    body: ExpenseCreate,
    ledger: ExpenseLedger = Depends(get_expense_ledger),
):
    return await ledger.record_expense(body)


@router.get("", response_model=list[ExpenseOut])
async def list_expenses(
    project_id: UUID = Query(..., alias="projectId"),
    take: int | None = Query(default=None, ge=1, le=500),
    skip: int | None = Query(default=None, ge=0),
    ledger: ExpenseLedger = Depends(get_expense_ledger),
):
    return await ledger.list_expenses(project_id, take=take, skip=skip)
