"""Vehicle type enumerations."""

from enum import Enum


class VehicleType(Enum):
    """Vehicle types that can be booked into a slot."""
    CAR = "car"
    BIKE = "bike"
    BUS = "bus"
    VAN = "van"
    TRUCK = "truck"


class SlotVehicleClass(Enum):
    """Vehicle class a slot accepts."""
    ALL = "all"
    CAR = "car"
    BIKE = "bike"
    BUS = "bus"
    VAN = "van"
    TRUCK = "truck"

    def accepts(self, vehicle_type: VehicleType) -> bool:
        """Check whether a vehicle of the given type fits this slot."""
        return self is SlotVehicleClass.ALL or self.value == vehicle_type.value
