"""Booking state machine: timer events, cancellation, extension and deletion."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from parkease.application.ports.system import BookingNumberGenerator, Clock
from parkease.application.ports.unit_of_work import UnitOfWork, UnitOfWorkFactory
from parkease.application.services.availability_ledger import AvailabilityLedger
from parkease.application.services.pricing_calculator import PricingCalculator
from parkease.application.services.slot_store import SlotStore
from parkease.domain.entities.booking import Booking
from parkease.domain.entities.location import Location
from parkease.domain.entities.slot import Slot
from parkease.domain.exceptions import BookingNotFoundError, ForbiddenError
from parkease.domain.value_objects.actor import Actor
from parkease.domain.value_objects.vehicle_types import VehicleType
from parkease.infrastructure.logging import (
    get_logger,
    log_booking_transition,
    log_business_rule_violation,
)


class BookingLifecycle:
    """Drives a booking from ``upcoming`` to a terminal state.

    Each transition runs in its own unit of work: the booking change, the slot
    change and the ledger change commit together or not at all.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        pricing: PricingCalculator,
        clock: Clock,
        number_generator: BookingNumberGenerator
    ):
        self._uow_factory = uow_factory
        self._pricing = pricing
        self._clock = clock
        self._number_generator = number_generator
        self._logger = get_logger(__name__)

    def slot_store(self, uow: UnitOfWork) -> SlotStore:
        """Slot store bound to the repositories of a unit of work."""
        return SlotStore(uow.slots, AvailabilityLedger(uow.locations, uow.slots), self._clock)

    async def initialize(
        self,
        uow: UnitOfWork,
        actor: Actor,
        slot: Slot,
        location: Location,
        vehicle_number: str,
        vehicle_type: VehicleType,
        booking_date: datetime,
        start_time: datetime,
        end_time: datetime,
        base_rate: Decimal,
        total_amount: Decimal
    ) -> Booking:
        """Create the booking record for an already reserved slot.

        Payment is settled at booking time, so the booking starts ``upcoming``
        with a completed payment.
        """
        now = self._clock.now()
        booking = Booking(
            booking_number=self._number_generator.next_booking_number(),
            user_id=actor.user_id,
            slot_id=slot.id,
            location_id=location.id,
            vehicle_number=vehicle_number,
            vehicle_type=vehicle_type,
            booking_date=booking_date,
            start_time=start_time,
            end_time=end_time,
            base_rate=base_rate,
            total_amount=total_amount,
            created_at=now
        )
        booking.settle_payment(self._number_generator.next_payment_reference(), now)
        saved = await uow.bookings.save(booking)

        log_booking_transition(
            self._logger,
            saved,
            "created",
            user_id=str(actor.user_id),
            slot_id=str(slot.id),
            location_id=str(location.id),
            total_amount=str(saved.total_amount)
        )
        return saved

    async def start_timer(self, booking_id: UUID, actor: Actor) -> Booking:
        """Mark the start of actual occupancy."""
        async with self._uow_factory() as uow:
            booking = await self._load_owned(uow, booking_id, actor, "start_timer")
            booking.start_timer(self._clock.now())
            saved = await uow.bookings.save(booking)

        log_booking_transition(self._logger, saved, "timer_started")
        return saved

    async def stop_timer(self, booking_id: UUID, actor: Actor) -> Booking:
        """Complete the booking and release its slot.

        ``duration_minutes`` becomes the elapsed occupancy while the amount
        quoted at booking time is kept.
        """
        async with self._uow_factory() as uow:
            booking = await self._load_owned(uow, booking_id, actor, "stop_timer")
            now = self._clock.now()
            booking.stop_timer(now)
            await self.slot_store(uow).release(booking.slot_id, now)
            saved = await uow.bookings.save(booking)

        if now > saved.end_time:
            self._logger.warning(
                f"Booking {saved.booking_number} overstayed its paid window",
                extra={
                    "booking_id": str(saved.id),
                    "end_time": saved.end_time.isoformat(),
                    "actual_end_time": now.isoformat(),
                    "duration_minutes": saved.duration_minutes,
                }
            )
        log_booking_transition(self._logger, saved, "timer_stopped", duration_minutes=saved.duration_minutes)
        return saved

    async def cancel(self, booking_id: UUID, actor: Actor, reason: str = None) -> Booking:
        """Cancel a booking before its timer starts, refund it and release its slot."""
        async with self._uow_factory() as uow:
            booking = await self._load_owned(uow, booking_id, actor, "cancel")
            now = self._clock.now()
            booking.cancel(now, reason)
            await self.slot_store(uow).release(booking.slot_id, now)
            saved = await uow.bookings.save(booking)

        log_booking_transition(self._logger, saved, "cancelled", reason=saved.cancellation_reason)
        return saved

    async def extend(self, booking_id: UUID, actor: Actor) -> Booking:
        """Extend a running booking by one extension period."""
        async with self._uow_factory() as uow:
            booking = await self._load_owned(uow, booking_id, actor, "extend")
            booking.extend(self._pricing.extension_minutes, self._pricing.extension_fee(), self._clock.now())
            await self.slot_store(uow).extend_hold(booking.slot_id, booking.end_time)
            saved = await uow.bookings.save(booking)

        log_booking_transition(
            self._logger,
            saved,
            "extended",
            end_time=saved.end_time.isoformat(),
            total_amount=str(saved.total_amount)
        )
        return saved

    async def delete(self, booking_id: UUID, actor: Actor) -> None:
        """Remove a completed or cancelled booking. Owner or administrator only."""
        async with self._uow_factory() as uow:
            booking = await self._load(uow, booking_id)
            if not (actor.is_admin or actor.owns(booking.user_id)):
                self._forbid(booking, actor, "delete")
            booking.ensure_deletable()
            await uow.bookings.delete(booking.id)

        self._logger.info(
            f"Booking {booking.booking_number} deleted",
            extra={"booking_id": str(booking.id), "deleted_by": str(actor.user_id)}
        )

    async def _load(self, uow: UnitOfWork, booking_id: UUID) -> Booking:
        booking = await uow.bookings.find_by_id(booking_id, for_update=True)
        if booking is None:
            raise BookingNotFoundError(booking_id)
        return booking

    async def _load_owned(self, uow: UnitOfWork, booking_id: UUID, actor: Actor, action: str) -> Booking:
        booking = await self._load(uow, booking_id)
        if not actor.owns(booking.user_id):
            self._forbid(booking, actor, action)
        return booking

    def _forbid(self, booking: Booking, actor: Actor, action: str) -> None:
        log_business_rule_violation(
            self._logger,
            "booking_not_owned",
            f"User {actor.user_id} attempted to {action} booking {booking.id}",
            booking_id=str(booking.id),
            user_id=str(actor.user_id)
        )
        raise ForbiddenError(
            "You can only manage your own bookings",
            details={"booking_id": str(booking.id)}
        )
