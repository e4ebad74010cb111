"""Assembly catalog routes.

Routes:
- GET  /api/assemblies - List assemblies with their items
- POST /api/assemblies - Create an assembly with items
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from landcalc.catalog.assemblies import AssemblyCatalog
from landcalc.models import AssemblyCreate, AssemblyOut
from landcalc.web.dependencies import get_assembly_catalog

router = APIRouter(prefix="/api/assemblies", tags=["assemblies"])


@router.get("", response_model=list[AssemblyOut])
async def list_assemblies(catalog: AssemblyCatalog = Depends(get_assembly_catalog)):
    return await catalog.list_assemblies()


@router.post("", response_model=AssemblyOut, status_code=status.HTTP_201_CREATED)
async def create_assembly(
    body: AssemblyCreate,
    catalog: AssemblyCatalog = Depends(get_assembly_catalog),
):
    """Create an assembly; item positions follow the order given."""
    return await catalog.create_assembly(body)
