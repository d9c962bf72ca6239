"""Booking use cases exposed to the request layer."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Union
from uuid import UUID

from parkease.application.ports.system import Clock
from parkease.application.ports.unit_of_work import UnitOfWorkFactory
from parkease.application.services.booking_allocator import BookingAllocator
from parkease.application.services.booking_lifecycle import BookingLifecycle
from parkease.domain.entities.booking import Booking, BookingStatus
from parkease.domain.exceptions import BookingNotFoundError, ForbiddenError
from parkease.domain.value_objects.actor import Actor
from parkease.domain.value_objects.vehicle_types import VehicleType
from parkease.infrastructure.logging import get_logger


@dataclass
class BookingCategories:
    """A user's bookings grouped the way the booking history screen shows them."""

    past: List[Booking] = field(default_factory=list)
    current: List[Booking] = field(default_factory=list)
    upcoming: List[Booking] = field(default_factory=list)


class BookingService:
    """Application service for booking management.

    Mutations are delegated to the allocator and the lifecycle; this class
    adds the read side.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        allocator: BookingAllocator,
        lifecycle: BookingLifecycle,
        clock: Clock
    ):
        self._uow_factory = uow_factory
        self._allocator = allocator
        self._lifecycle = lifecycle
        self._clock = clock
        self._logger = get_logger(__name__)

    async def create_booking(
        self,
        actor: Actor,
        slot_id: UUID,
        location_id: UUID,
        vehicle_number: str,
        vehicle_type: Union[VehicleType, str],
        booking_date: datetime,
        start_time: datetime,
        end_time: datetime
    ) -> Booking:
        return await self._allocator.create(
            actor=actor,
            slot_id=slot_id,
            location_id=location_id,
            vehicle_number=vehicle_number,
            vehicle_type=vehicle_type,
            booking_date=booking_date,
            start_time=start_time,
            end_time=end_time
        )

    async def start_timer(self, booking_id: UUID, actor: Actor) -> Booking:
        return await self._lifecycle.start_timer(booking_id, actor)

    async def stop_timer(self, booking_id: UUID, actor: Actor) -> Booking:
        return await self._lifecycle.stop_timer(booking_id, actor)

    async def cancel_booking(self, booking_id: UUID, actor: Actor, reason: Optional[str] = None) -> Booking:
        return await self._lifecycle.cancel(booking_id, actor, reason)

    async def extend_booking(self, booking_id: UUID, actor: Actor) -> Booking:
        return await self._lifecycle.extend(booking_id, actor)

    async def delete_booking(self, booking_id: UUID, actor: Actor) -> None:
        await self._lifecycle.delete(booking_id, actor)

    async def get_booking(self, booking_id: UUID, actor: Actor) -> Booking:
        """Get a booking visible to the actor (its owner or an administrator)."""
        async with self._uow_factory() as uow:
            booking = await uow.bookings.find_by_id(booking_id)

        if booking is None:
            raise BookingNotFoundError(booking_id)
        if not (actor.is_admin or actor.owns(booking.user_id)):
            self._logger.warning(
                "Booking access denied",
                extra={"booking_id": str(booking_id), "user_id": str(actor.user_id)}
            )
            raise ForbiddenError("Access denied", details={"booking_id": str(booking_id)})
        return booking

    async def get_user_bookings(self, actor: Actor, status: Optional[BookingStatus] = None) -> List[Booking]:
        """Get all bookings of the actor, newest first."""
        async with self._uow_factory() as uow:
            return await uow.bookings.find_by_user_id(actor.user_id, status)

    async def categorize_user_bookings(
        self,
        actor: Actor,
        status: Optional[BookingStatus] = None
    ) -> BookingCategories:
        """Split the actor's bookings into past, current and upcoming."""
        now = self._clock.now()
        categories = BookingCategories()

        for booking in await self.get_user_bookings(actor, status):
            if booking.is_terminal:
                categories.past.append(booking)
            elif booking.status == BookingStatus.ACTIVE and booking.start_time <= now <= booking.end_time:
                categories.current.append(booking)
            elif booking.status == BookingStatus.UPCOMING and booking.start_time > now:
                categories.upcoming.append(booking)
            else:
                categories.past.append(booking)

        return categories
