"""Budget baselines, expenses and variance reporting."""

from landcalc.budget.expenses import ExpenseLedger
from landcalc.budget.report import BudgetReportAggregator
from landcalc.budget.snapshot import BudgetSnapshotBuilder, categorize_line

__all__ = [
    "BudgetReportAggregator",
    "BudgetSnapshotBuilder",
    "ExpenseLedger",
    "categorize_line",
]
