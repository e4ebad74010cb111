"""Distance, delivery and geocoding."""

from landcalc.logistics.delivery import DeliveryEstimator
from landcalc.logistics.distance import haversine_miles
from landcalc.logistics.geocode import Geocoder

__all__ = ["DeliveryEstimator", "Geocoder", "haversine_miles"]
