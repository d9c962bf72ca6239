"""Pricing table value object: amount per 15-minute interval per vehicle type."""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Dict, Mapping, Union

from .vehicle_types import VehicleType

DEFAULT_RATE = Decimal("15")

# Rates a new location starts with when the operator does not set one.
DEFAULT_LOCATION_RATES: Dict[VehicleType, Decimal] = {
    VehicleType.CAR: Decimal("15"),
    VehicleType.BIKE: Decimal("10"),
    VehicleType.BUS: Decimal("25"),
    VehicleType.VAN: Decimal("20"),
    VehicleType.TRUCK: Decimal("22"),
}

RateValue = Union[Decimal, int, float, str]


def _to_rate(value: RateValue) -> Decimal:
    try:
        rate = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid rate: {value!r}") from e
    if rate < 0:
        raise ValueError(f"Rate cannot be negative: {value!r}")
    return rate


@dataclass(frozen=True)
class PricingTable:
    """Immutable mapping from vehicle type to the rate of one interval."""

    rates: Mapping[VehicleType, Decimal] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Normalize rates to Decimal and validate them."""
        normalized = {}
        for vehicle_type, rate in dict(self.rates).items():
            if not isinstance(vehicle_type, VehicleType):
                vehicle_type = VehicleType(vehicle_type)
            normalized[vehicle_type] = _to_rate(rate)
        object.__setattr__(self, "rates", normalized)

    @classmethod
    def with_defaults(cls, overrides: Mapping[Union[VehicleType, str], RateValue] = None) -> "PricingTable":
        """Build a table from the standard location rates, applying overrides."""
        rates: Dict[VehicleType, RateValue] = dict(DEFAULT_LOCATION_RATES)
        for key, value in (overrides or {}).items():
            rates[VehicleType(key) if not isinstance(key, VehicleType) else key] = value
        return cls(rates=rates)

    @classmethod
    def from_dict(cls, data: Mapping[str, RateValue]) -> "PricingTable":
        """Build a table from a plain ``{"car": "15", ...}`` mapping."""
        return cls(rates={VehicleType(key): value for key, value in (data or {}).items()})

    def rate_for(self, vehicle_type: VehicleType, default: RateValue = DEFAULT_RATE) -> Decimal:
        """Rate for one interval; types missing from the table are charged ``default``."""
        if vehicle_type in self.rates:
            return self.rates[vehicle_type]
        return _to_rate(default)

    def merged(self, overrides: Mapping[Union[VehicleType, str], RateValue]) -> "PricingTable":
        """Return a new table with some rates replaced."""
        rates: Dict[VehicleType, RateValue] = dict(self.rates)
        for key, value in overrides.items():
            rates[VehicleType(key) if not isinstance(key, VehicleType) else key] = value
        return PricingTable(rates=rates)

    def to_dict(self) -> Dict[str, str]:
        """Serialize rates keyed by vehicle type value."""
        return {vehicle_type.value: str(rate) for vehicle_type, rate in self.rates.items()}
