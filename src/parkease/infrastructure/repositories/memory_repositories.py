"""In-memory repository implementations for testing and development.

All repositories share one ``InMemoryDataStore``. They are only used inside an
``InMemoryUnitOfWork``, which holds the store lock for the whole unit, so a
check followed by a write on the store is never interleaved with another unit.
"""

import asyncio
import copy
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from parkease.application.ports.repositories import BookingRepository, LocationRepository, SlotRepository
from parkease.application.ports.unit_of_work import UnitOfWork
from parkease.domain.entities.booking import Booking, BookingStatus
from parkease.domain.entities.location import Location
from parkease.domain.entities.slot import Slot, SlotStatus
from parkease.domain.exceptions import DuplicateLocationError, DuplicateSlotNumberError
from parkease.domain.value_objects.availability import AvailabilitySnapshot
from parkease.domain.value_objects.vehicle_types import VehicleType


class InMemoryDataStore:
    """Shared state of the in-memory backend."""

    def __init__(self):
        self.slots: Dict[UUID, Slot] = {}
        self.locations: Dict[UUID, Location] = {}
        self.bookings: Dict[UUID, Booking] = {}
        self.lock = asyncio.Lock()

    def snapshot(self) -> tuple:
        """Deep copy of all records, used to roll a unit of work back."""
        return copy.deepcopy((self.slots, self.locations, self.bookings))

    def restore(self, snapshot: tuple) -> None:
        self.slots, self.locations, self.bookings = snapshot


class InMemorySlotRepository(SlotRepository):
    """In-memory implementation of slot repository."""

    def __init__(self, store: InMemoryDataStore):
        self._store = store

    async def add(self, slot: Slot) -> Slot:
        if await self.find_by_number(slot.location_id, slot.slot_number):
            raise DuplicateSlotNumberError(slot.slot_number, slot.location_id)
        self._store.slots[slot.id] = slot
        return slot

    async def update(self, slot: Slot) -> Slot:
        clash = await self.find_by_number(slot.location_id, slot.slot_number)
        if clash and clash.id != slot.id:
            raise DuplicateSlotNumberError(slot.slot_number, slot.location_id)
        self._store.slots[slot.id] = slot
        return slot

    async def find_by_id(self, slot_id: UUID, for_update: bool = False) -> Optional[Slot]:
        return self._store.slots.get(slot_id)

    async def find_by_number(self, location_id: UUID, slot_number: str) -> Optional[Slot]:
        for slot in self._store.slots.values():
            if slot.location_id == location_id and slot.slot_number == slot_number:
                return slot
        return None

    async def find_by_location(
        self,
        location_id: UUID,
        status: Optional[SlotStatus] = None,
        active: Optional[bool] = True
    ) -> List[Slot]:
        slots = [
            slot for slot in self._store.slots.values()
            if slot.location_id == location_id
            and (status is None or slot.status == status)
            and (active is None or slot.is_active == active)
        ]
        return sorted(slots, key=lambda s: s.slot_number)

    async def find_available(
        self,
        location_id: UUID,
        start_time: Optional[datetime] = None,
        vehicle_type: Optional[VehicleType] = None
    ) -> List[Slot]:
        slots = await self.find_by_location(location_id, status=SlotStatus.AVAILABLE, active=True)
        return [
            slot for slot in slots
            if (start_time is None or slot.next_available_time <= start_time)
            and (vehicle_type is None or slot.vehicle_class.accepts(vehicle_type))
        ]

    async def compare_and_set_status(
        self,
        slot_id: UUID,
        expected: SlotStatus,
        new: SlotStatus,
        next_available_time: Optional[datetime] = None,
        now: Optional[datetime] = None,
        require_active: bool = True
    ) -> bool:
        slot = self._store.slots.get(slot_id)
        if slot is None or slot.status != expected or (require_active and not slot.is_active):
            return False

        if new == SlotStatus.BOOKED:
            slot.mark_booked(next_available_time, now)
        elif expected == SlotStatus.BOOKED and new == SlotStatus.AVAILABLE:
            slot.mark_available(next_available_time or now, now)
        elif new == SlotStatus.MAINTENANCE:
            slot.start_maintenance(now)
        else:
            slot.end_maintenance(now)
        return True

    async def set_next_available_time(self, slot_id: UUID, until: datetime, now: Optional[datetime] = None) -> bool:
        slot = self._store.slots.get(slot_id)
        if slot is None or slot.status != SlotStatus.BOOKED:
            return False
        slot.extend_hold(until, now)
        return True

    async def deactivate(self, slot_id: UUID, now: Optional[datetime] = None) -> bool:
        slot = self._store.slots.get(slot_id)
        if slot is None or not slot.is_active or slot.status == SlotStatus.BOOKED:
            return False
        return slot.deactivate(now)

    async def count_by_location(self, location_id: UUID) -> AvailabilitySnapshot:
        active = await self.find_by_location(location_id, active=True)
        return AvailabilitySnapshot(
            total=len(active),
            available=sum(1 for slot in active if slot.status == SlotStatus.AVAILABLE)
        )


class InMemoryLocationRepository(LocationRepository):
    """In-memory implementation of location repository."""

    def __init__(self, store: InMemoryDataStore):
        self._store = store

    async def add(self, location: Location) -> Location:
        if await self.find_by_code(location.code):
            raise DuplicateLocationError(location.code)
        self._store.locations[location.id] = location
        return location

    async def update(self, location: Location) -> Location:
        current = self._store.locations.get(location.id)
        if current is not None and current is not location:
            # Counters belong to the ledger; keep the stored values.
            location.set_counters(current.availability())
        self._store.locations[location.id] = location
        return location

    async def find_by_id(self, location_id: UUID) -> Optional[Location]:
        return self._store.locations.get(location_id)

    async def find_by_code(self, code: str) -> Optional[Location]:
        for location in self._store.locations.values():
            if location.code == code:
                return location
        return None

    async def find_all_active(self) -> List[Location]:
        active = [location for location in self._store.locations.values() if location.is_active]
        return sorted(active, key=lambda l: l.created_at, reverse=True)

    async def adjust_counters(self, location_id: UUID, total_delta: int = 0, available_delta: int = 0) -> bool:
        location = self._store.locations.get(location_id)
        if location is None:
            return False
        location.adjust_counters(total_delta, available_delta)
        return True

    async def set_counters(self, location_id: UUID, snapshot: AvailabilitySnapshot) -> bool:
        location = self._store.locations.get(location_id)
        if location is None:
            return False
        location.set_counters(snapshot)
        return True

    async def get_counters(self, location_id: UUID) -> Optional[AvailabilitySnapshot]:
        location = self._store.locations.get(location_id)
        if location is None:
            return None
        return AvailabilitySnapshot(total=location.total_slots, available=location.available_slots)


class InMemoryBookingRepository(BookingRepository):
    """In-memory implementation of booking repository."""

    def __init__(self, store: InMemoryDataStore):
        self._store = store

    async def save(self, booking: Booking) -> Booking:
        self._store.bookings[booking.id] = booking
        return booking

    async def find_by_id(self, booking_id: UUID, for_update: bool = False) -> Optional[Booking]:
        return self._store.bookings.get(booking_id)

    async def find_by_user_id(self, user_id: UUID, status: Optional[BookingStatus] = None) -> List[Booking]:
        bookings = [
            booking for booking in self._store.bookings.values()
            if booking.user_id == user_id and (status is None or booking.status == status)
        ]
        return sorted(bookings, key=lambda b: b.created_at, reverse=True)

    async def find_by_slot_id(self, slot_id: UUID) -> List[Booking]:
        return [booking for booking in self._store.bookings.values() if booking.slot_id == slot_id]

    async def delete(self, booking_id: UUID) -> bool:
        if booking_id in self._store.bookings:
            del self._store.bookings[booking_id]
            return True
        return False


class InMemoryUnitOfWork(UnitOfWork):
    """Serializes units on the store lock and restores a snapshot on rollback."""

    def __init__(self, store: InMemoryDataStore):
        self._store = store
        self._snapshot: Optional[tuple] = None
        self._locked = False

    async def begin(self) -> None:
        await self._store.lock.acquire()
        self._locked = True
        self._snapshot = self._store.snapshot()
        self.slots = InMemorySlotRepository(self._store)
        self.locations = InMemoryLocationRepository(self._store)
        self.bookings = InMemoryBookingRepository(self._store)

    async def commit(self) -> None:
        self._snapshot = None

    async def rollback(self) -> None:
        if self._snapshot is not None:
            self._store.restore(self._snapshot)

    async def close(self) -> None:
        self._snapshot = None
        if self._locked:
            self._locked = False
            self._store.lock.release()
