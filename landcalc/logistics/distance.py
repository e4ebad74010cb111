"""Great-circle distance."""

from __future__ import annotations

import math

from landcalc.models import Coordinates

EARTH_RADIUS_MILES = 3958.8


def haversine_miles(a: Coordinates, b: Coordinates) -> float:
    """Great-circle distance between two points in statute miles."""
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)

    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    return 2 * EARTH_RADIUS_MILES * math.asin(math.sqrt(min(1.0, h)))
