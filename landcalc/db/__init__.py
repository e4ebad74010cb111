"""Database layer for LandCalc with async SQLAlchemy."""

from landcalc.db.connection import get_db, get_session, init_db
from landcalc.db.models import (
    AssemblyItemModel,
    AssemblyModel,
    Base,
    BudgetSnapshotModel,
    ChangeOrderModel,
    EstimateLineModel,
    EstimateModel,
    ExpenseModel,
    MaterialModel,
    PriceSnapshotModel,
    ProjectModel,
    RegionalFactorModel,
    VendorModel,
    VendorPriceModel,
)

__all__ = [
    "Base",
    "ProjectModel",
    "AssemblyModel",
    "AssemblyItemModel",
    "MaterialModel",
    "VendorModel",
    "VendorPriceModel",
    "PriceSnapshotModel",
    "RegionalFactorModel",
    "EstimateModel",
    "EstimateLineModel",
    "BudgetSnapshotModel",
    "ExpenseModel",
    "ChangeOrderModel",
    "get_db",
    "get_session",
    "init_db",
]
