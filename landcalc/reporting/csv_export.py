"""CSV export for budget reports and expense ledgers.

Provides CSV generation for:
- Budget variance (baseline, actual and remaining per category)
- Expense ledger (one row per expense, oldest first)
"""

from __future__ import annotations

import csv
from collections.abc import Iterable
from io import StringIO

from landcalc.db.models import ExpenseModel
from landcalc.models import CATEGORIES, BudgetReport

BUDGET_HEADERS = ["Category", "Budget", "Actual", "Remaining"]
EXPENSE_HEADERS = ["Date", "Category", "Vendor", "Description", "Amount", "ReceiptUrl"]


def budget_csv(report: BudgetReport) -> str:
    """Variance table with one row per category, amounts to 2 decimals.

    A report without a baseline yields the header row only.
    """
    output = StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(BUDGET_HEADERS)

    if report.has_baseline:
        for category in CATEGORIES:
            writer.writerow(
                [
                    category,
                    f"{report.by_category.get(category, 0.0):.2f}",
                    f"{report.actual_by_category.get(category, 0.0):.2f}",
                    f"{report.remaining_by_category.get(category, 0.0):.2f}",
                ]
            )

    return output.getvalue()


def expenses_csv(expenses: Iterable[ExpenseModel]) -> str:
    """Expense ledger, every field quoted."""
    output = StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(EXPENSE_HEADERS)

    for expense in expenses:
        writer.writerow(
            [
                expense.date.strftime("%Y-%m-%d"),
                expense.category,
                expense.vendor or "",
                expense.description or "",
                f"{float(expense.amount):.2f}",
                expense.receipt_url or "",
            ]
        )

    return output.getvalue()
