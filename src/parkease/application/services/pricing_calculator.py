"""Fare computation for bookings and extensions."""

import math
from decimal import Decimal
from typing import Union

from parkease.domain.exceptions import ValidationError
from parkease.domain.value_objects.pricing_table import DEFAULT_RATE, PricingTable
from parkease.domain.value_objects.vehicle_types import VehicleType


class PricingCalculator:
    """Pure fare calculator.

    A booking is charged per started interval: ``ceil(duration / interval)``
    intervals at the location's rate for the vehicle type. Extensions are a
    flat fee for a fixed number of minutes.
    """

    def __init__(
        self,
        interval_minutes: int = 15,
        default_rate: Union[Decimal, int, str] = DEFAULT_RATE,
        extension_fee: Union[Decimal, int, str] = Decimal("10"),
        extension_minutes: int = 15
    ):
        if interval_minutes <= 0:
            raise ValueError("Interval length must be positive")
        if extension_minutes <= 0:
            raise ValueError("Extension length must be positive")
        self._interval_minutes = interval_minutes
        self._default_rate = Decimal(str(default_rate))
        self._extension_fee = Decimal(str(extension_fee))
        self._extension_minutes = extension_minutes

    @property
    def interval_minutes(self) -> int:
        return self._interval_minutes

    @property
    def extension_minutes(self) -> int:
        return self._extension_minutes

    def intervals(self, duration_minutes: int) -> int:
        """Number of started intervals in a duration."""
        if duration_minutes <= 0:
            raise ValidationError("Duration must be positive", details={"duration_minutes": duration_minutes})
        return math.ceil(duration_minutes / self._interval_minutes)

    def base_rate(self, vehicle_type: VehicleType, pricing_table: PricingTable) -> Decimal:
        """Rate of one interval for a vehicle type at a location."""
        return pricing_table.rate_for(vehicle_type, self._default_rate)

    def price(self, vehicle_type: VehicleType, duration_minutes: int, pricing_table: PricingTable) -> Decimal:
        """Total fare of a booking."""
        return self.base_rate(vehicle_type, pricing_table) * self.intervals(duration_minutes)

    def extension_fee(self) -> Decimal:
        return self._extension_fee
