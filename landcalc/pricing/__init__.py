"""Pricing: provider chain, snapshot cache, regional factors and sales tax."""

from landcalc.pricing.providers import (
    IndexProvider,
    PriceProvider,
    RetailProvider,
    SupplierProvider,
    default_providers,
)
from landcalc.pricing.regional import RegionalFactorResolver, make_region_key
from landcalc.pricing.resolver import PriceResolver
from landcalc.pricing.tax import TaxResolver

__all__ = [
    "PriceProvider",
    "SupplierProvider",
    "RetailProvider",
    "IndexProvider",
    "default_providers",
    "PriceResolver",
    "RegionalFactorResolver",
    "make_region_key",
    "TaxResolver",
]
