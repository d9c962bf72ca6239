"""Port interfaces for repositories (Dependency Inversion Principle)."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from parkease.domain.entities.booking import Booking, BookingStatus
    from parkease.domain.entities.location import Location
    from parkease.domain.entities.slot import Slot, SlotStatus
    from parkease.domain.value_objects.availability import AvailabilitySnapshot
    from parkease.domain.value_objects.vehicle_types import VehicleType


class SlotRepository(ABC):
    """Port interface for slot repository.

    Status changes are expressed as compare-and-set operations so that two
    concurrent writers can never both move a slot out of the same state.
    """

    @abstractmethod
    async def add(self, slot: "Slot") -> "Slot":
        """Insert a new slot."""
        raise NotImplementedError

    @abstractmethod
    async def update(self, slot: "Slot") -> "Slot":
        """Persist descriptive attributes of an existing slot."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_id(self, slot_id: UUID, for_update: bool = False) -> Optional["Slot"]:
        """Find slot by ID, optionally locking the row for the current unit of work."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_number(self, location_id: UUID, slot_number: str) -> Optional["Slot"]:
        """Find a slot by its number within a location (active or not)."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_location(
        self,
        location_id: UUID,
        status: Optional["SlotStatus"] = None,
        active: Optional[bool] = True
    ) -> List["Slot"]:
        """Find slots of a location ordered by slot number."""
        raise NotImplementedError

    @abstractmethod
    async def find_available(
        self,
        location_id: UUID,
        start_time: Optional[datetime] = None,
        vehicle_type: Optional["VehicleType"] = None
    ) -> List["Slot"]:
        """Find active available slots free from ``start_time`` for a vehicle type."""
        raise NotImplementedError

    @abstractmethod
    async def compare_and_set_status(
        self,
        slot_id: UUID,
        expected: "SlotStatus",
        new: "SlotStatus",
        next_available_time: Optional[datetime] = None,
        now: Optional[datetime] = None,
        require_active: bool = True
    ) -> bool:
        """Atomically move a slot from ``expected`` to ``new``. Returns False if it was not in ``expected``."""
        raise NotImplementedError

    @abstractmethod
    async def set_next_available_time(self, slot_id: UUID, until: datetime, now: Optional[datetime] = None) -> bool:
        """Move the hold of a booked slot. Returns False if the slot is not booked."""
        raise NotImplementedError

    @abstractmethod
    async def deactivate(self, slot_id: UUID, now: Optional[datetime] = None) -> bool:
        """Soft delete an active slot that is not booked. Returns False otherwise."""
        raise NotImplementedError

    @abstractmethod
    async def count_by_location(self, location_id: UUID) -> "AvailabilitySnapshot":
        """Count active and active+available slots of a location."""
        raise NotImplementedError


class LocationRepository(ABC):
    """Port interface for location repository."""

    @abstractmethod
    async def add(self, location: "Location") -> "Location":
        """Insert a new location."""
        raise NotImplementedError

    @abstractmethod
    async def update(self, location: "Location") -> "Location":
        """Persist descriptive attributes and pricing (never the counters)."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_id(self, location_id: UUID) -> Optional["Location"]:
        """Find location by ID."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_code(self, code: str) -> Optional["Location"]:
        """Find location by its operator-facing code."""
        raise NotImplementedError

    @abstractmethod
    async def find_all_active(self) -> List["Location"]:
        """Find all active locations, newest first."""
        raise NotImplementedError

    @abstractmethod
    async def adjust_counters(self, location_id: UUID, total_delta: int = 0, available_delta: int = 0) -> bool:
        """Atomically add deltas to the availability counters."""
        raise NotImplementedError

    @abstractmethod
    async def set_counters(self, location_id: UUID, snapshot: "AvailabilitySnapshot") -> bool:
        """Overwrite the availability counters."""
        raise NotImplementedError

    @abstractmethod
    async def get_counters(self, location_id: UUID) -> Optional["AvailabilitySnapshot"]:
        """Read the availability counters."""
        raise NotImplementedError


class BookingRepository(ABC):
    """Port interface for booking repository."""

    @abstractmethod
    async def save(self, booking: "Booking") -> "Booking":
        """Save a booking (create or update)."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_id(self, booking_id: UUID, for_update: bool = False) -> Optional["Booking"]:
        """Find booking by ID, optionally locking the row."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_user_id(self, user_id: UUID, status: Optional["BookingStatus"] = None) -> List["Booking"]:
        """Find bookings of a user, newest first."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_slot_id(self, slot_id: UUID) -> List["Booking"]:
        """Find all bookings that reference a slot."""
        raise NotImplementedError

    @abstractmethod
    async def delete(self, booking_id: UUID) -> bool:
        """Delete a booking."""
        raise NotImplementedError
