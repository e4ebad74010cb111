"""Actual spend and change orders.

Expenses are only ever compared against budget snapshots; recording one
never touches snapshot data.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from landcalc.core.timeutil import as_naive_utc, utcnow
from landcalc.db.models import ChangeOrderModel, ExpenseModel, ProjectModel
from landcalc.exceptions import ChangeOrderNotFound, InvalidInput
from landcalc.models import CATEGORIES, ChangeOrderCreate, ExpenseCategory, ExpenseCreate

logger = logging.getLogger(__name__)


def parse_category(value: str | None) -> ExpenseCategory:
    """Case-insensitive category; anything unrecognized is OTHER."""
    v = (value or "").strip().upper()
    return ExpenseCategory(v) if v in CATEGORIES else ExpenseCategory.OTHER


def parse_amount(value: Any) -> float:
    """Finite number from a number or numeric string.

    Raises:
        InvalidInput: If the value is missing or not a finite number
    """
    if value is None or isinstance(value, bool):
        raise InvalidInput("Invalid amount")
    try:
        amount = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidInput("Invalid amount") from e
    if not math.isfinite(amount):
        raise InvalidInput("Invalid amount")
    return amount


def parse_date(value: str | None) -> datetime:
    """ISO 8601 date or datetime, normalized to naive UTC.

    Raises:
        InvalidInput: If the value is missing or unparseable
    """
    if not value:
        raise InvalidInput("date is required")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return as_naive_utc(datetime.fromisoformat(text))
    except ValueError as e:
        raise InvalidInput(f"Invalid date: {value}") from e


class ExpenseLedger:
    """Records expenses and change orders for projects."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def resolve_project_id(
        self, project_id: UUID | None = None, project_slug: str | None = None
    ) -> UUID:
        """Project id from an explicit id, else by slug (first match).

        Raises:
            InvalidInput: If neither is given or the project is unknown
        """
        if project_id is not None:
            if await self.session.get(ProjectModel, project_id) is None:
                raise InvalidInput(f"Unknown project: {project_id}")
            return project_id

        if project_slug and project_slug.strip():
            slug = project_slug.strip()
            stmt = select(ProjectModel.id).where(ProjectModel.slug == slug).limit(1)
            result = await self.session.execute(stmt)
            found = result.scalar_one_or_none()
            if found is None:
                raise InvalidInput(f"Project not found for slug: {slug}")
            return found

        raise InvalidInput("projectId or projectSlug is required")

    async def record_expense(self, data: ExpenseCreate | Mapping[str, Any]) -> ExpenseModel:
        """Validate and store an expense.

        Raises:
            InvalidInput: On a missing project, bad amount or bad date
        """
        data = _validate(ExpenseCreate, data)

        project_id = await self.resolve_project_id(data.project_id, data.project_slug)
        amount = parse_amount(data.amount)
        when = parse_date(data.date)

        expense = ExpenseModel(
            project_id=project_id,
            estimate_id=data.estimate_id,
            estimate_line_id=data.estimate_line_id,
            category=parse_category(data.category).value,
            vendor=data.vendor or None,
            description=data.description or None,
            amount=amount,
            currency=(data.currency or "").strip() or "USD",
            date=when,
            receipt_url=data.receipt_url or None,
            meta=data.meta,
        )
        self.session.add(expense)
        await self.session.flush()

        logger.info(f"Expense {expense.id}: {expense.category} {amount} for project {project_id}")
        return expense

    async def list_expenses(
        self, project_id: UUID, take: int | None = None, skip: int | None = None
    ) -> list[ExpenseModel]:
        stmt = (
            select(ExpenseModel)
            .where(ExpenseModel.project_id == project_id)
            .order_by(ExpenseModel.date.asc())
        )
        if skip:
            stmt = stmt.offset(skip)
        if take:
            stmt = stmt.limit(take)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create_change_order(
        self, data: ChangeOrderCreate | Mapping[str, Any]
    ) -> ChangeOrderModel:
        """Store a PENDING change order.

        Raises:
            InvalidInput: On a missing title, bad amount or unknown project
        """
        data = _validate(ChangeOrderCreate, data)
        project_id = await self.resolve_project_id(data.project_id)

        change_order = ChangeOrderModel(
            project_id=project_id,
            estimate_id=data.estimate_id,
            title=data.title,
            description=data.description,
            amount=data.amount,
        )
        self.session.add(change_order)
        await self.session.flush()
        return change_order

    async def approve_change_order(self, change_order_id: UUID) -> ChangeOrderModel:
        """Mark a change order approved.

        Raises:
            ChangeOrderNotFound: If the id does not exist
        """
        change_order = await self.session.get(ChangeOrderModel, change_order_id)
        if change_order is None:
            raise ChangeOrderNotFound(change_order_id)

        change_order.status = "APPROVED"
        change_order.decided_at = utcnow()
        await self.session.flush()

        logger.info(f"Change order {change_order_id} approved ({change_order.amount})")
        return change_order

    async def list_change_orders(self, project_id: UUID) -> list[ChangeOrderModel]:
        stmt = (
            select(ChangeOrderModel)
            .where(ChangeOrderModel.project_id == project_id)
            .order_by(ChangeOrderModel.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


def _validate(model, data):
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise InvalidInput(str(e)) from e
