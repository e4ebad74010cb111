"""Dashboard routes.

Routes:
- GET /api/dashboard/summary  - Totals across every project
- GET /api/dashboard/projects - Per-project financials
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from landcalc.db.connection import get_db
from landcalc.reporting.dashboard import dashboard_summary, project_financials

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/summary")
async def summary(db: AsyncSession = Depends(get_db)):
    return await dashboard_summary(db)


@router.get("/projects")
async def projects(db: AsyncSession = Depends(get_db)):
    return await project_financials(db)
