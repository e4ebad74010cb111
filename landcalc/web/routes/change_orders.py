"""Change order routes.

Routes:
- POST /api/change-orders              - Create a pending change order
- GET  /api/change-orders?projectId=   - List a project's change orders, newest first
- POST /api/change-orders/{id}/approve - Approve a change order
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from landcalc.budget.expenses import ExpenseLedger
from landcalc.models import ChangeOrderCreate, ChangeOrderOut
from landcalc.web.dependencies import get_expense_ledger

router = APIRouter(prefix="/api/change-orders", tags=["change-orders"])


@router.post("", response_model=ChangeOrderOut, status_code=status.HTTP_201_CREATED)
async def create_change_order(
    body: ChangeOrderCreate,
    ledger: ExpenseLedger = Depends(get_expense_ledger),
):
    return await ledger.create_change_order(body)


@router.get("", response_model=list[ChangeOrderOut])
async def list_change_orders(
    project_id: UUID = Query(..., alias="projectId"),
    ledger: ExpenseLedger = Depends(get_expense_ledger),
):
    return await ledger.list_change_orders(project_id)


@router.post("/{change_order_id}/approve", response_model=ChangeOrderOut)
async def approve_change_order(
    change_order_id: UUID,
    ledger: ExpenseLedger = Depends(get_expense_ledger),
):
    return await ledger.approve_change_order(change_order_id)
