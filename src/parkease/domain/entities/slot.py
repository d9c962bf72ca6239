"""Slot entity: one physical parking space at a location."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from ..exceptions import SlotCurrentlyBookedError, SlotUnavailableError, ValidationError
from ..time import utcnow
from ..value_objects.vehicle_types import SlotVehicleClass


class SlotStatus(Enum):
    """Slot occupancy status."""
    AVAILABLE = "available"
    BOOKED = "booked"
    MAINTENANCE = "maintenance"


class Slot:
    """Parking slot entity.

    Status changes go through the guarded mutators below; callers outside the
    slot store never assign status directly.
    """

    def __init__(
        self,
        location_id: UUID,
        slot_number: str,
        vehicle_class: SlotVehicleClass = SlotVehicleClass.ALL,
        slot_id: Optional[UUID] = None,
        status: SlotStatus = SlotStatus.AVAILABLE,
        next_available_time: Optional[datetime] = None,
        is_active: bool = True,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        slot_number = (slot_number or "").strip()
        if not slot_number:
            raise ValidationError("Slot number is required")

        self._id = slot_id or uuid4()
        self._location_id = location_id
        self._slot_number = slot_number
        self._vehicle_class = vehicle_class
        self._status = status
        self._created_at = created_at or utcnow()
        self._updated_at = updated_at or self._created_at
        self._next_available_time = next_available_time or self._created_at
        self._is_active = is_active

    @property
    def id(self) -> UUID:
        return self._id

    @property
    def location_id(self) -> UUID:
        return self._location_id

    @property
    def slot_number(self) -> str:
        return self._slot_number

    @property
    def vehicle_class(self) -> SlotVehicleClass:
        return self._vehicle_class

    @property
    def status(self) -> SlotStatus:
        return self._status

    @property
    def next_available_time(self) -> datetime:
        """Instant after which the slot may be offered for a new reservation."""
        return self._next_available_time

    @property
    def is_active(self) -> bool:
        return self._is_active

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def is_available(self) -> bool:
        """Check if the slot can be reserved right now."""
        return self._is_active and self._status == SlotStatus.AVAILABLE

    def mark_booked(self, until: datetime, now: Optional[datetime] = None) -> None:
        """Reserve the slot until the given instant."""
        if not self.is_available:
            raise SlotUnavailableError(self._id)
        self._status = SlotStatus.BOOKED
        self._next_available_time = until
        self._touch(now)

    def mark_available(self, at: datetime, now: Optional[datetime] = None) -> bool:
        """Release a booked slot. Returns whether the status changed."""
        if self._status != SlotStatus.BOOKED:
            return False
        self._status = SlotStatus.AVAILABLE
        self._next_available_time = at
        self._touch(now)
        return True

    def extend_hold(self, until: datetime, now: Optional[datetime] = None) -> None:
        """Move the end of the current reservation forward."""
        if self._status != SlotStatus.BOOKED:
            raise SlotUnavailableError(self._id)
        if until > self._next_available_time:
            self._next_available_time = until
            self._touch(now)

    def start_maintenance(self, now: Optional[datetime] = None) -> bool:
        """Block the slot for maintenance. Returns whether the status changed."""
        if self._status == SlotStatus.BOOKED:
            raise SlotCurrentlyBookedError(self._id)
        if self._status == SlotStatus.MAINTENANCE:
            return False
        self._status = SlotStatus.MAINTENANCE
        self._touch(now)
        return True

    def end_maintenance(self, now: Optional[datetime] = None) -> bool:
        """Return a slot from maintenance. Returns whether the status changed."""
        if self._status != SlotStatus.MAINTENANCE:
            return False
        self._status = SlotStatus.AVAILABLE
        self._touch(now)
        return True

    def deactivate(self, now: Optional[datetime] = None) -> bool:
        """Soft delete the slot. Returns whether it was active."""
        if self._status == SlotStatus.BOOKED:
            raise SlotCurrentlyBookedError(self._id)
        if not self._is_active:
            return False
        self._is_active = False
        self._touch(now)
        return True

    def update_details(
        self,
        slot_number: Optional[str] = None,
        vehicle_class: Optional[SlotVehicleClass] = None,
        now: Optional[datetime] = None
    ) -> None:
        """Update descriptive attributes."""
        if slot_number is not None:
            slot_number = slot_number.strip()
            if not slot_number:
                raise ValidationError("Slot number is required")
            self._slot_number = slot_number
        if vehicle_class is not None:
            self._vehicle_class = vehicle_class
        self._touch(now)

    def _touch(self, now: Optional[datetime]) -> None:
        self._updated_at = now or utcnow()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Slot):
            return False
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __str__(self) -> str:
        return f"Slot({self._id}, {self._slot_number}, {self._status.value})"
