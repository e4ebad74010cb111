"""Assembly and material catalog."""

from landcalc.catalog.seed import ASSEMBLIES, MATERIALS, seed_catalog

__all__ = ["ASSEMBLIES", "MATERIALS", "seed_catalog"]
