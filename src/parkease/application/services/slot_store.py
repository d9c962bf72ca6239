"""Slot status management."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from parkease.application.ports.repositories import SlotRepository
from parkease.application.ports.system import Clock
from parkease.application.services.availability_ledger import AvailabilityLedger
from parkease.domain.entities.slot import Slot, SlotStatus
from parkease.domain.exceptions import SlotCurrentlyBookedError, SlotNotFoundError, SlotUnavailableError
from parkease.infrastructure.logging import get_logger, log_business_rule_violation, log_slot_transition


class SlotStore:
    """The only component that changes a slot's status.

    Bound to the repositories of one unit of work. Every status change to or
    from ``available`` on an active slot is paired with exactly one ledger
    adjustment in the same unit.
    """

    def __init__(self, slot_repository: SlotRepository, ledger: AvailabilityLedger, clock: Clock):
        self._slots = slot_repository
        self._ledger = ledger
        self._clock = clock
        self._logger = get_logger(__name__)

    async def get(self, slot_id: UUID, for_update: bool = False) -> Slot:
        slot = await self._slots.find_by_id(slot_id, for_update=for_update)
        if slot is None:
            raise SlotNotFoundError(slot_id)
        return slot

    async def reserve(self, slot_id: UUID, until: datetime) -> Slot:
        """Move an active slot from available to booked, holding it until ``until``."""
        reserved = await self._slots.compare_and_set_status(
            slot_id,
            expected=SlotStatus.AVAILABLE,
            new=SlotStatus.BOOKED,
            next_available_time=until,
            now=self._clock.now()
        )
        slot = await self.get(slot_id)
        if not reserved:
            log_business_rule_violation(
                self._logger,
                "slot_unavailable",
                f"Slot {slot_id} could not be reserved",
                slot_id=str(slot_id),
                slot_status=slot.status.value,
                slot_active=slot.is_active
            )
            raise SlotUnavailableError(slot_id)

        await self._ledger.on_slot_became_unavailable(slot.location_id)
        log_slot_transition(
            self._logger, slot_id, SlotStatus.AVAILABLE.value, SlotStatus.BOOKED.value,
            next_available_time=until.isoformat()
        )
        return slot

    async def release(self, slot_id: UUID, at: Optional[datetime] = None) -> Slot:
        """Return a booked slot to the pool. A slot that is not booked is left as is."""
        now = self._clock.now()
        at = at or now
        slot = await self.get(slot_id, for_update=True)
        if slot.status != SlotStatus.BOOKED:
            return slot

        released = await self._slots.compare_and_set_status(
            slot_id,
            expected=SlotStatus.BOOKED,
            new=SlotStatus.AVAILABLE,
            next_available_time=at,
            now=now,
            require_active=False
        )
        slot = await self.get(slot_id)
        if released:
            if slot.is_active:
                await self._ledger.on_slot_became_available(slot.location_id)
            log_slot_transition(self._logger, slot_id, SlotStatus.BOOKED.value, SlotStatus.AVAILABLE.value)
        return slot

    async def set_maintenance(self, slot_id: UUID, on: bool) -> Slot:
        """Toggle maintenance on an active slot; repeating the current state is a no-op."""
        slot = await self.get(slot_id, for_update=True)
        if not slot.is_active:
            raise SlotNotFoundError(slot_id)

        if on:
            if slot.status == SlotStatus.BOOKED:
                raise SlotCurrentlyBookedError(slot_id)
            if slot.status == SlotStatus.MAINTENANCE:
                return slot
            expected, new = SlotStatus.AVAILABLE, SlotStatus.MAINTENANCE
        else:
            if slot.status != SlotStatus.MAINTENANCE:
                return slot
            expected, new = SlotStatus.MAINTENANCE, SlotStatus.AVAILABLE

        if not await self._slots.compare_and_set_status(slot_id, expected, new, now=self._clock.now()):
            raise SlotCurrentlyBookedError(slot_id)

        if on:
            await self._ledger.on_slot_became_unavailable(slot.location_id)
        else:
            await self._ledger.on_slot_became_available(slot.location_id)
        log_slot_transition(self._logger, slot_id, expected.value, new.value)
        return await self.get(slot_id)

    async def deactivate(self, slot_id: UUID) -> Slot:
        """Soft delete a slot that is not booked."""
        slot = await self.get(slot_id, for_update=True)
        if not slot.is_active:
            return slot
        if slot.status == SlotStatus.BOOKED:
            raise SlotCurrentlyBookedError(slot_id)

        was_available = slot.status == SlotStatus.AVAILABLE
        if not await self._slots.deactivate(slot_id, now=self._clock.now()):
            raise SlotCurrentlyBookedError(slot_id)

        await self._ledger.on_slot_removed(slot.location_id, was_available=was_available)
        self._logger.info(
            f"Slot {slot.slot_number} deactivated",
            extra={"slot_id": str(slot_id), "location_id": str(slot.location_id)}
        )
        return await self.get(slot_id)

    async def extend_hold(self, slot_id: UUID, until: datetime) -> Slot:
        """Move the end of a booked slot's hold forward."""
        if not await self._slots.set_next_available_time(slot_id, until, now=self._clock.now()):
            await self.get(slot_id)
            raise SlotUnavailableError(slot_id)
        return await self.get(slot_id)

    async def add(self, slot: Slot) -> Slot:
        """Create a slot and count it in its location."""
        saved = await self._slots.add(slot)
        await self._ledger.on_slot_added(saved.location_id)
        self._logger.info(
            f"Slot {saved.slot_number} created",
            extra={"slot_id": str(saved.id), "location_id": str(saved.location_id)}
        )
        return saved
