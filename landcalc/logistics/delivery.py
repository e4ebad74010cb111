"""Delivery cost estimation.

Cost model: flat base fee + per-mile + per-minute drive time, plus a fuel
surcharge on the sum.
"""

from __future__ import annotations

from landcalc.config import DeliveryConfig
from landcalc.logistics.distance import haversine_miles
from landcalc.models import Coordinates, DeliveryQuote

MIN_SPEED_MPH = 1.0


class DeliveryEstimator:
    """Converts origin/destination coordinates into a delivery quote."""

    def __init__(self, config: DeliveryConfig | None = None):
        self.config = config or DeliveryConfig()

    def estimate(
        self,
        origin: Coordinates,
        dest: Coordinates,
        avg_speed_mph: float | None = None,
    ) -> DeliveryQuote:
        """Quote a delivery between two points.

        Args:
            origin: Yard or supplier location
            dest: Job site
            avg_speed_mph: Average driving speed (default from config, clamped to >= 1)

        Returns:
            DeliveryQuote with every field rounded to 2 decimals
        """
        conf = self.config
        speed = max(MIN_SPEED_MPH, avg_speed_mph if avg_speed_mph is not None else conf.avg_speed_mph)

        miles = haversine_miles(origin, dest)
        minutes = (miles / speed) * 60
        base = conf.base
        variable = miles * conf.per_mile + minutes * conf.per_min
        fuel = (base + variable) * conf.fuel_pct
        total = base + variable + fuel

        return DeliveryQuote(
            miles=round(miles, 2),
            minutes=round(minutes, 2),
            base=round(base, 2),
            variable=round(variable, 2),
            fuel=round(fuel, 2),
            total=round(total, 2),
        )
