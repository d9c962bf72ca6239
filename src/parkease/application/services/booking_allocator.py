"""Booking creation: reserve the slot, price the stay, record the booking."""

from datetime import datetime
from typing import Union
from uuid import UUID

from parkease.application.ports.unit_of_work import UnitOfWorkFactory
from parkease.application.services.booking_lifecycle import BookingLifecycle
from parkease.application.services.pricing_calculator import PricingCalculator
from parkease.domain.entities.booking import Booking
from parkease.domain.exceptions import LocationNotFoundError, SlotNotFoundError, ValidationError
from parkease.domain.time import ceil_minutes
from parkease.domain.value_objects.actor import Actor
from parkease.domain.value_objects.vehicle_types import VehicleType
from parkease.infrastructure.logging import get_logger, log_business_rule_violation


class BookingAllocator:
    """Orchestrates booking creation inside one unit of work.

    The slot is reserved before the booking record is written, and any failure
    after the reservation rolls the whole unit back, so a slot is never left
    booked without a booking.
    """

    def __init__(self, uow_factory: UnitOfWorkFactory, lifecycle: BookingLifecycle, pricing: PricingCalculator):
        self._uow_factory = uow_factory
        self._lifecycle = lifecycle
        self._pricing = pricing
        self._logger = get_logger(__name__)

    async def create(
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
        """Reserve a slot and create an upcoming, paid booking for it.

        Raises:
            ValidationError: empty vehicle number, unknown vehicle type or an
                empty or inverted time window
            LocationNotFoundError: location missing or inactive
            SlotNotFoundError: slot missing or inactive
            SlotUnavailableError: slot not available at the moment of reservation
        """
        vehicle_type = self._validate(vehicle_number, vehicle_type, start_time, end_time)
        duration_minutes = ceil_minutes(start_time, end_time)

        async with self._uow_factory() as uow:
            location = await uow.locations.find_by_id(location_id)
            if location is None or not location.is_active:
                raise LocationNotFoundError(location_id)

            slot = await uow.slots.find_by_id(slot_id)
            if slot is None or not slot.is_active:
                raise SlotNotFoundError(slot_id)
            if slot.location_id != location.id:
                log_business_rule_violation(
                    self._logger,
                    "slot_location_mismatch",
                    f"Slot {slot_id} does not belong to location {location_id}",
                    slot_id=str(slot_id),
                    location_id=str(location_id)
                )
                raise ValidationError(
                    "Slot does not belong to this location",
                    details={"slot_id": str(slot_id), "location_id": str(location_id)}
                )
            if not slot.vehicle_class.accepts(vehicle_type):
                raise ValidationError(
                    f"Slot does not accept vehicle type {vehicle_type.value}",
                    details={"slot_id": str(slot_id), "vehicle_class": slot.vehicle_class.value}
                )

            slot = await self._lifecycle.slot_store(uow).reserve(slot_id, end_time)

            base_rate = self._pricing.base_rate(vehicle_type, location.pricing)
            total_amount = self._pricing.price(vehicle_type, duration_minutes, location.pricing)

            booking = await self._lifecycle.initialize(
                uow,
                actor=actor,
                slot=slot,
                location=location,
                vehicle_number=vehicle_number,
                vehicle_type=vehicle_type,
                booking_date=booking_date,
                start_time=start_time,
                end_time=end_time,
                base_rate=base_rate,
                total_amount=total_amount
            )

        return booking

    def _validate(
        self,
        vehicle_number: str,
        vehicle_type: Union[VehicleType, str],
        start_time: datetime,
        end_time: datetime
    ) -> VehicleType:
        if not vehicle_number or not vehicle_number.strip():
            raise ValidationError("Vehicle number is required")

        if not isinstance(vehicle_type, VehicleType):
            try:
                vehicle_type = VehicleType(vehicle_type)
            except ValueError as e:
                raise ValidationError(
                    f"Unknown vehicle type: {vehicle_type}",
                    details={"vehicle_type": str(vehicle_type)}
                ) from e

        if start_time is None or end_time is None:
            raise ValidationError("Start time and end time are required")
        if end_time <= start_time:
            self._logger.warning(
                "Rejected booking with empty or inverted window",
                extra={"start_time": start_time.isoformat(), "end_time": end_time.isoformat()}
            )
            raise ValidationError(
                "End time must be after start time",
                details={"start_time": start_time.isoformat(), "end_time": end_time.isoformat()}
            )
        return vehicle_type
