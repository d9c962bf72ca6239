"""Administration of parking locations and their slots."""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Union
from uuid import UUID

from parkease.application.ports.system import Clock
from parkease.application.ports.unit_of_work import UnitOfWork, UnitOfWorkFactory
from parkease.application.services.availability_ledger import AvailabilityLedger
from parkease.application.services.slot_store import SlotStore
from parkease.domain.entities.location import Location
from parkease.domain.entities.slot import Slot
from parkease.domain.exceptions import ForbiddenError, LocationNotFoundError, SlotNotFoundError, ValidationError
from parkease.domain.value_objects.actor import Actor
from parkease.domain.value_objects.availability import AvailabilitySnapshot
from parkease.domain.value_objects.pricing_table import PricingTable
from parkease.domain.value_objects.vehicle_types import SlotVehicleClass, VehicleType
from parkease.infrastructure.logging import get_logger, log_business_rule_violation, log_with_extra

PricingInput = Dict[str, Union[str, int, float]]


class LocationService:
    """Service for managing parking locations and slots.

    Reads are public; every mutation requires an administrator. Slot status
    changes and counter updates go through ``SlotStore`` and
    ``AvailabilityLedger`` like booking transitions do.
    """

    def __init__(self, uow_factory: UnitOfWorkFactory, clock: Clock):
        self._uow_factory = uow_factory
        self._clock = clock
        self._logger = get_logger(__name__)

    # Locations

    async def create_location(
        self,
        actor: Actor,
        code: str,
        name: str,
        address: str,
        latitude: float,
        longitude: float,
        pricing: Optional[PricingInput] = None
    ) -> Location:
        """Create a location; missing rates are filled with the standard ones.

        Raises:
            ForbiddenError: actor is not an administrator
            DuplicateLocationError: code already used
            ValidationError: invalid attributes or rates
        """
        self._require_admin(actor, "create_location")
        try:
            pricing_table = PricingTable.with_defaults(pricing)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        location = Location(
            code=code,
            name=name,
            address=address,
            latitude=latitude,
            longitude=longitude,
            created_by=actor.user_id,
            pricing=pricing_table,
            created_at=self._clock.now()
        )

        async with self._uow_factory() as uow:
            saved = await uow.locations.add(location)

        log_with_extra(
            self._logger,
            logging.INFO,
            f"Location {saved.code} created",
            location_id=str(saved.id),
            created_by=str(actor.user_id)
        )
        return saved

    async def update_location(
        self,
        location_id: UUID,
        actor: Actor,
        name: Optional[str] = None,
        address: Optional[str] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        is_active: Optional[bool] = None,
        pricing: Optional[PricingInput] = None
    ) -> Location:
        """Update descriptive attributes; rates given here are merged into the table."""
        self._require_admin(actor, "update_location")
        async with self._uow_factory() as uow:
            location = await self._get_location(uow, location_id)
            now = self._clock.now()
            location.update_details(
                name=name,
                address=address,
                latitude=latitude,
                longitude=longitude,
                is_active=is_active,
                now=now
            )
            if pricing:
                location.update_pricing(pricing, now)
            await uow.locations.update(location)
            return await self._get_location(uow, location_id)

    async def update_pricing(self, location_id: UUID, actor: Actor, pricing: PricingInput) -> Location:
        """Merge rates into a location's pricing table."""
        self._require_admin(actor, "update_pricing")
        async with self._uow_factory() as uow:
            location = await self._get_location(uow, location_id)
            location.update_pricing(pricing, self._clock.now())
            await uow.locations.update(location)
            updated = await self._get_location(uow, location_id)

        self._logger.info(
            f"Pricing updated for location {updated.code}",
            extra={"location_id": str(location_id), "pricing": updated.pricing.to_dict()}
        )
        return updated

    async def deactivate_location(self, location_id: UUID, actor: Actor) -> Location:
        """Soft delete a location."""
        self._require_admin(actor, "deactivate_location")
        async with self._uow_factory() as uow:
            location = await self._get_location(uow, location_id)
            location.deactivate(self._clock.now())
            await uow.locations.update(location)

        self._logger.info(f"Location {location.code} deactivated", extra={"location_id": str(location_id)})
        return location

    async def get_location(self, location_id: UUID) -> Location:
        async with self._uow_factory() as uow:
            return await self._get_location(uow, location_id)

    async def list_locations(self) -> List[Location]:
        """Active locations, newest first."""
        async with self._uow_factory() as uow:
            return await uow.locations.find_all_active()

    async def get_availability(self, location_id: UUID) -> AvailabilitySnapshot:
        async with self._uow_factory() as uow:
            return await AvailabilityLedger(uow.locations, uow.slots).snapshot(location_id)

    async def reconcile_availability(self, location_id: UUID, actor: Actor) -> AvailabilitySnapshot:
        """Rewrite a location's counters from its slot records."""
        self._require_admin(actor, "reconcile_availability")
        async with self._uow_factory() as uow:
            return await AvailabilityLedger(uow.locations, uow.slots).reconcile(location_id)

    # Slots

    async def create_slot(
        self,
        actor: Actor,
        location_id: UUID,
        slot_number: str,
        vehicle_class: Union[SlotVehicleClass, str] = SlotVehicleClass.ALL
    ) -> Slot:
        """Add a slot to an active location and count it as available."""
        self._require_admin(actor, "create_slot")
        vehicle_class = self._parse_vehicle_class(vehicle_class)
        async with self._uow_factory() as uow:
            location = await self._get_location(uow, location_id)
            if not location.is_active:
                raise LocationNotFoundError(location_id)

            slot = Slot(
                location_id=location.id,
                slot_number=slot_number,
                vehicle_class=vehicle_class,
                created_at=self._clock.now()
            )
            return await self._slot_store(uow).add(slot)

    async def update_slot(
        self,
        slot_id: UUID,
        actor: Actor,
        slot_number: Optional[str] = None,
        vehicle_class: Optional[Union[SlotVehicleClass, str]] = None
    ) -> Slot:
        """Change a slot's number or accepted vehicle class."""
        self._require_admin(actor, "update_slot")
        if vehicle_class is not None:
            vehicle_class = self._parse_vehicle_class(vehicle_class)
        async with self._uow_factory() as uow:
            slot = await self._get_active_slot(uow, slot_id)
            slot.update_details(slot_number=slot_number, vehicle_class=vehicle_class, now=self._clock.now())
            return await uow.slots.update(slot)

    async def set_slot_maintenance(self, slot_id: UUID, actor: Actor, on: bool) -> Slot:
        """Block a slot for maintenance or return it to service."""
        self._require_admin(actor, "set_slot_maintenance")
        async with self._uow_factory() as uow:
            return await self._slot_store(uow).set_maintenance(slot_id, on)

    async def delete_slot(self, slot_id: UUID, actor: Actor) -> Slot:
        """Soft delete a slot that is not booked."""
        self._require_admin(actor, "delete_slot")
        async with self._uow_factory() as uow:
            return await self._slot_store(uow).deactivate(slot_id)

    async def get_slot(self, slot_id: UUID) -> Slot:
        async with self._uow_factory() as uow:
            return await self._get_active_slot(uow, slot_id)

    async def list_slots(self, location_id: UUID) -> List[Slot]:
        """Active slots of a location ordered by slot number."""
        async with self._uow_factory() as uow:
            return await uow.slots.find_by_location(location_id, active=True)

    async def list_available_slots(
        self,
        location_id: UUID,
        start_time: Optional[datetime] = None,
        vehicle_type: Optional[Union[VehicleType, str]] = None
    ) -> List[Slot]:
        """Slots that can be booked from ``start_time`` for a vehicle type."""
        if vehicle_type is not None and not isinstance(vehicle_type, VehicleType):
            try:
                vehicle_type = VehicleType(vehicle_type)
            except ValueError as e:
                raise ValidationError(f"Unknown vehicle type: {vehicle_type}") from e
        async with self._uow_factory() as uow:
            return await uow.slots.find_available(location_id, start_time=start_time, vehicle_type=vehicle_type)

    def _slot_store(self, uow: UnitOfWork) -> SlotStore:
        return SlotStore(uow.slots, AvailabilityLedger(uow.locations, uow.slots), self._clock)

    @staticmethod
    async def _get_location(uow: UnitOfWork, location_id: UUID) -> Location:
        location = await uow.locations.find_by_id(location_id)
        if location is None:
            raise LocationNotFoundError(location_id)
        return location

    @staticmethod
    async def _get_active_slot(uow: UnitOfWork, slot_id: UUID) -> Slot:
        slot = await uow.slots.find_by_id(slot_id)
        if slot is None or not slot.is_active:
            raise SlotNotFoundError(slot_id)
        return slot

    @staticmethod
    def _parse_vehicle_class(value: Union[SlotVehicleClass, str]) -> SlotVehicleClass:
        if isinstance(value, SlotVehicleClass):
            return value
        try:
            return SlotVehicleClass(value)
        except ValueError as e:
            raise ValidationError(f"Unknown vehicle class: {value}") from e

    def _require_admin(self, actor: Actor, action: str) -> None:
        if actor.is_admin:
            return
        log_business_rule_violation(
            self._logger,
            "admin_required",
            f"User {actor.user_id} attempted {action} without admin role",
            user_id=str(actor.user_id)
        )
        raise ForbiddenError("Admin access required", details={"action": action})
