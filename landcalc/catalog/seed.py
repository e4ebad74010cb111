"""Default catalog: landscaping assemblies and baseline material prices.

Idempotent by slug, so running it twice adds nothing.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from landcalc.db.models import (
    AssemblyItemModel,
    AssemblyModel,
    MaterialModel,
    VendorModel,
    VendorPriceModel,
)

logger = logging.getLogger(__name__)

# Bulk materials whose price is resolved through the provider chain.
# Unit costs seed the city-wide index (lowest priority provider).
MATERIALS: list[dict] = [
    {"slug": "base-rock-34-minus", "name": "Base Rock 3/4\" Minus", "uom": "ton", "index_cost": 38.0},
    {"slug": "bedding-sand", "name": "Bedding Sand", "uom": "ton", "index_cost": 45.0},
    {"slug": "decomposed-granite", "name": "Decomposed Granite", "uom": "ton", "index_cost": 46.0},
    {"slug": "drainage-gravel", "name": "Drainage Gravel", "uom": "ton", "index_cost": 42.0},
    {"slug": "bark-mulch", "name": "Bark Mulch", "uom": "cubic-yd", "index_cost": 38.0},
]

INDEX_VENDOR = {"name": "City Baseline Index", "type": "index"}

ASSEMBLIES: list[dict] = [
    {
        "slug": "paver-patio",
        "name": "Paver Patio",
        "trade": "Hardscape",
        "unit": "sqft",
        "waste_pct": 0.07,
        "items": [
            ("Paver Pallet", "pallet", 520.0, "area/100", None),
            ("Bedding Sand", "ton", 45.0, "(area*0.083)/27", "bedding-sand"),
            ("Base Rock", "ton", 38.0, "(area*0.25)/27", "base-rock-34-minus"),
            ("Labor", "hr", 45.0, "area/25", None),
        ],
    },
    {
        "slug": "artificial-turf",
        "name": "Artificial Turf",
        "trade": "Landscape",
        "unit": "sqft",
        "waste_pct": 0.1,
        "items": [
            ("Turf Rolls", "sqft", 2.85, "area * 1.05", None),
            ("Weed Barrier Fabric", "sqft", 0.15, "area", None),
            ("Decomposed Granite Base", "ton", 46.0, "(area*0.25)/27", "decomposed-granite"),
            ("Silica Sand Infill", "lb", 0.12, "area * 1.75", None),
            ("Labor", "hr", 40.0, "area/40", None),
        ],
    },
    {
        "slug": "irrigation",
        "name": "Irrigation System",
        "trade": "Landscape",
        "unit": "sqft",
        "waste_pct": 0.0,
        "items": [
            ("PVC Pipe 1\"", "ft", 1.75, "area/10", None),
            ("Sprinkler Heads", "each", 5.5, "area/200", None),
            ("Valve + Box", "each", 65.0, "area/1000", None),
            ("Controller & Wiring", "allowance", 150.0, "1", None),
            ("Labor", "hr", 48.0, "area/75", None),
        ],
    },
    {
        "slug": "fence",
        "name": "Wood Fence",
        "trade": "Carpentry",
        "unit": "linear-ft",
        "waste_pct": 0.05,
        "items": [
            ("Fence Boards", "each", 3.25, "length * (12/5)", None),
            ("4x4 Posts", "each", 18.5, "length/8", None),
            ("2x4 Rails", "each", 9.0, "length/4", None),
            ("Concrete", "bag", 5.5, "length/8", None),
            ("Labor", "hr", 50.0, "length/10", None),
        ],
    },
    {
        "slug": "plantings",
        "name": "Plantings",
        "trade": "Landscape",
        "unit": "sqft",
        "waste_pct": 0.05,
        "items": [
            ("Shrubs (5 gal)", "each", 32.0, "area/40", None),
            ("Trees (15 gal)", "each", 95.0, "area/300", None),
            ("Mulch", "cubic-yd", 38.0, "area/100", "bark-mulch"),
            ("Soil Amendment", "bag", 7.0, "area/50", None),
            ("Labor", "hr", 38.0, "area/60", None),
        ],
    },
    {
        "slug": "retaining-wall",
        "name": "Retaining Wall",
        "trade": "Hardscape",
        "unit": "linear-ft",
        "waste_pct": 0.08,
        "items": [
            ("Wall Blocks", "each", 2.25, "length * 1.25", None),
            ("Cap Blocks", "each", 3.75, "length", None),
            ("Base Rock", "ton", 38.0, "length * 0.05", "base-rock-34-minus"),
            ("Drainage Gravel", "ton", 42.0, "length * 0.04", "drainage-gravel"),
            ("Drain Pipe", "ft", 1.1, "length", None),
            ("Labor", "hr", 52.0, "length/6", None),
        ],
    },
]


async def seed_catalog(session: AsyncSession) -> dict[str, int]:
    """Insert missing materials, the index vendor and default assemblies.

    Returns:
        Counts of newly created materials and assemblies
    """
    created = {"materials": 0, "assemblies": 0}

    result = await session.execute(
        select(VendorModel).where(
            VendorModel.name == INDEX_VENDOR["name"], VendorModel.type == INDEX_VENDOR["type"]
        )
    )
    vendor = result.scalar_one_or_none()
    if vendor is None:
        vendor = VendorModel(**INDEX_VENDOR)
        session.add(vendor)
        await session.flush()

    for entry in MATERIALS:
        result = await session.execute(select(MaterialModel).where(MaterialModel.slug == entry["slug"]))
        if result.scalar_one_or_none() is not None:
            continue
        material = MaterialModel(slug=entry["slug"], name=entry["name"], uom=entry["uom"])
        session.add(material)
        await session.flush()
        session.add(
            VendorPriceModel(material_id=material.id, vendor_id=vendor.id, unit_cost=entry["index_cost"])
        )
        created["materials"] += 1

    for entry in ASSEMBLIES:
        result = await session.execute(select(AssemblyModel).where(AssemblyModel.slug == entry["slug"]))
        if result.scalar_one_or_none() is not None:
            continue

        assembly = AssemblyModel(
            slug=entry["slug"],
            name=entry["name"],
            trade=entry["trade"],
            unit=entry["unit"],
            waste_pct=entry["waste_pct"],
        )
        session.add(assembly)
        await session.flush()

        for position, (name, unit, unit_cost, formula, material_slug) in enumerate(entry["items"]):
            session.add(
                AssemblyItemModel(
                    assembly_id=assembly.id,
                    position=position,
                    name=name,
                    unit=unit,
                    unit_cost=unit_cost,
                    qty_formula=formula,
                    material_slug=material_slug,
                )
            )
        created["assemblies"] += 1

    await session.flush()
    logger.info(f"Seeded {created['materials']} materials and {created['assemblies']} assemblies")
    return created
