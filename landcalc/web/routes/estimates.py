"""Estimate routes.

Routes:
- POST /api/estimates                - Build and persist a priced estimate
- GET  /api/estimates/{id}           - Fetch a stored estimate
- POST /api/estimates/{id}/finalize  - Freeze an estimate and capture its budget baseline
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status

from landcalc.budget.snapshot import BudgetSnapshotBuilder
from landcalc.estimating.builder import EstimateBuilder
from landcalc.models import BudgetSnapshot, EstimateRequest, EstimateResult
from landcalc.web.dependencies import get_estimate_builder, get_snapshot_builder

router = APIRouter(prefix="/api/estimates", tags=["estimates"])


@router.post("", response_model=EstimateResult, status_code=status.HTTP_201_CREATED)
async def create_estimate(
    body: EstimateRequest,
    builder: EstimateBuilder = Depends(get_estimate_builder),
):
    """Price every line and store the estimate.

    Nothing is stored when any line fails to evaluate or price.
    """
    return await builder.build(body)


@router.get("/{estimate_id}", response_model=EstimateResult)
async def get_estimate(
    estimate_id: UUID,
    builder: EstimateBuilder = Depends(get_estimate_builder),
):
    return await builder.get_estimate(estimate_id)


@router.post("/{estimate_id}/finalize", response_model=BudgetSnapshot)
async def finalize_estimate(
    estimate_id: UUID,
    snapshots: BudgetSnapshotBuilder = Depends(get_snapshot_builder),
):
    return await snapshots.finalize_estimate(estimate_id)
