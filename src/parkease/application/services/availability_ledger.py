"""Per-location availability counters."""

import logging
from uuid import UUID

from parkease.application.ports.repositories import LocationRepository, SlotRepository
from parkease.domain.exceptions import LocationNotFoundError
from parkease.domain.value_objects.availability import AvailabilitySnapshot
from parkease.infrastructure.logging import get_logger, log_with_extra


class AvailabilityLedger:
    """Keeps ``total_slots`` and ``available_slots`` of a location in step with its slots.

    Counters are only ever changed by delta through the repository, inside the
    unit of work that performs the slot transition, so they can neither drift
    nor lose concurrent updates.
    """

    def __init__(self, location_repository: LocationRepository, slot_repository: SlotRepository):
        self._locations = location_repository
        self._slots = slot_repository
        self._logger = get_logger(__name__)

    async def on_slot_became_available(self, location_id: UUID) -> None:
        await self._adjust(location_id, available_delta=1)

    async def on_slot_became_unavailable(self, location_id: UUID) -> None:
        await self._adjust(location_id, available_delta=-1)

    async def on_slot_added(self, location_id: UUID) -> None:
        await self._adjust(location_id, total_delta=1, available_delta=1)

    async def on_slot_removed(self, location_id: UUID, was_available: bool) -> None:
        await self._adjust(location_id, total_delta=-1, available_delta=-1 if was_available else 0)

    async def snapshot(self, location_id: UUID) -> AvailabilitySnapshot:
        """Current counters of a location."""
        snapshot = await self._locations.get_counters(location_id)
        if snapshot is None:
            raise LocationNotFoundError(location_id)
        return snapshot

    async def recount(self, location_id: UUID) -> AvailabilitySnapshot:
        """Derive the counters from the slot records."""
        return await self._slots.count_by_location(location_id)

    async def reconcile(self, location_id: UUID) -> AvailabilitySnapshot:
        """Overwrite the counters with a recount and return it."""
        current = await self.snapshot(location_id)
        recounted = await self.recount(location_id)
        if recounted != current:
            self._logger.warning(
                "Availability counters drifted, reconciling",
                extra={
                    "location_id": str(location_id),
                    "stored_total": current.total,
                    "stored_available": current.available,
                    "counted_total": recounted.total,
                    "counted_available": recounted.available,
                }
            )
        await self._locations.set_counters(location_id, recounted)
        return recounted

    async def _adjust(self, location_id: UUID, total_delta: int = 0, available_delta: int = 0) -> None:
        if not await self._locations.adjust_counters(location_id, total_delta, available_delta):
            raise LocationNotFoundError(location_id)
        log_with_extra(
            self._logger,
            logging.DEBUG,
            "Availability counters adjusted",
            location_id=str(location_id),
            total_delta=total_delta,
            available_delta=available_delta
        )
