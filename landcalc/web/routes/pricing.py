"""Material pricing routes.

Routes:
- POST /api/pricing/price-material - Resolve a unit price (404 when nothing resolves)
- GET  /api/pricing/history        - Snapshots recorded for a material and zip, newest first
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from landcalc.models import PriceQuery, PriceResult
from landcalc.pricing.resolver import PriceResolver
from landcalc.web.dependencies import get_price_resolver

router = APIRouter(prefix="/api/pricing", tags=["pricing"])


@router.post("/price-material", response_model=PriceResult)
async def price_material(
    body: PriceQuery,
    resolver: PriceResolver = Depends(get_price_resolver),
):
    """Resolve a material price through the snapshot cache and provider chain."""
    result = await resolver.resolve(body)
    if result is None:
        raise HTTPException(status_code=404, detail="No price found")
    return result


@router.get("/history", response_model=list[PriceResult])
async def price_history(
    material_slug: str = Query(..., alias="materialSlug", min_length=1),
    zip: str = Query(..., min_length=1),
    limit: int = Query(default=10, ge=1, le=100),
    resolver: PriceResolver = Depends(get_price_resolver),
):
    return await resolver.price_history(material_slug, zip, limit=limit)
