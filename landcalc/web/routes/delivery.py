"""Delivery quote routes.

Routes:
- POST /api/delivery/estimate - Quote a delivery between two coordinates
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from landcalc.logistics.delivery import DeliveryEstimator
from landcalc.models import DeliveryQuote, DeliveryRequest
from landcalc.web.dependencies import get_delivery_estimator

router = APIRouter(prefix="/api/delivery", tags=["delivery"])


@router.post("/estimate", response_model=DeliveryQuote)
async def estimate_delivery(
    body: DeliveryRequest,
    estimator: DeliveryEstimator = Depends(get_delivery_estimator),
):
    return estimator.estimate(body.origin, body.dest, avg_speed_mph=body.avg_speed_mph)
