"""Unit tests for location and slot administration."""

from datetime import datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from parkease.domain.entities.slot import SlotStatus
from parkease.domain.exceptions import (
    DuplicateLocationError,
    DuplicateSlotNumberError,
    ForbiddenError,
    LocationNotFoundError,
    SlotCurrentlyBookedError,
    SlotNotFoundError,
    ValidationError,
)
from parkease.domain.value_objects.availability import AvailabilitySnapshot
from parkease.domain.value_objects.vehicle_types import SlotVehicleClass, VehicleType


class TestLocations:
    """Test cases for location administration."""

    @pytest.mark.asyncio
    async def test_create_location_fills_default_rates(self, location_service, location):
        assert location.code == "LOC-001"
        assert location.pricing.rate_for(VehicleType.CAR) == Decimal("15")
        assert location.pricing.rate_for(VehicleType.VAN) == Decimal("20")
        assert location.availability() == AvailabilitySnapshot(total=0, available=0)

    @pytest.mark.asyncio
    async def test_non_admin_cannot_create_location(self, location_service, user):
        with pytest.raises(ForbiddenError):
            await location_service.create_location(
                actor=user, code="LOC-9", name="Mall", address="Road 1", latitude=0.0, longitude=0.0
            )

    @pytest.mark.asyncio
    async def test_duplicate_code_is_conflict(self, location_service, admin, location):
        with pytest.raises(DuplicateLocationError):
            await location_service.create_location(
                actor=admin, code="LOC-001", name="Other", address="Road 2", latitude=0.0, longitude=0.0
            )

    @pytest.mark.asyncio
    async def test_invalid_rates_are_rejected(self, location_service, admin):
        with pytest.raises(ValidationError):
            await location_service.create_location(
                actor=admin, code="LOC-9", name="Mall", address="Road 1",
                latitude=0.0, longitude=0.0, pricing={"car": "-3"}
            )

    @pytest.mark.asyncio
    async def test_update_pricing_merges(self, location_service, admin, location):
        updated = await location_service.update_pricing(location.id, admin, {"bus": "40"})

        assert updated.pricing.rate_for(VehicleType.BUS) == Decimal("40")
        assert updated.pricing.rate_for(VehicleType.CAR) == Decimal("15")

    @pytest.mark.asyncio
    async def test_update_location_keeps_counters(self, location_service, admin, location, slots):
        updated = await location_service.update_location(location.id, admin, name="Central Plaza East")

        assert updated.name == "Central Plaza East"
        assert updated.availability() == AvailabilitySnapshot(total=3, available=3)

    @pytest.mark.asyncio
    async def test_deactivated_location_is_hidden_from_listing(self, location_service, admin, location):
        await location_service.deactivate_location(location.id, admin)

        assert await location_service.list_locations() == []
        assert not (await location_service.get_location(location.id)).is_active

    @pytest.mark.asyncio
    async def test_unknown_location(self, location_service):
        with pytest.raises(LocationNotFoundError):
            await location_service.get_location(uuid4())
        with pytest.raises(LocationNotFoundError):
            await location_service.get_availability(uuid4())

    @pytest.mark.asyncio
    async def test_reconcile_requires_admin(self, location_service, user, admin, location, slots):
        with pytest.raises(ForbiddenError):
            await location_service.reconcile_availability(location.id, user)

        assert await location_service.reconcile_availability(location.id, admin) == AvailabilitySnapshot(3, 3)


class TestSlots:
    """Test cases for slot administration."""

    @pytest.mark.asyncio
    async def test_create_slot_counts_it(self, location_service, location, slots):
        assert [slot.slot_number for slot in await location_service.list_slots(location.id)] == ["A1", "A2", "A3"]
        assert await location_service.get_availability(location.id) == AvailabilitySnapshot(total=3, available=3)

    @pytest.mark.asyncio
    async def test_duplicate_slot_number_is_conflict(self, location_service, admin, location, slots):
        with pytest.raises(DuplicateSlotNumberError):
            await location_service.create_slot(admin, location.id, "A1")

        assert await location_service.get_availability(location.id) == AvailabilitySnapshot(total=3, available=3)

    @pytest.mark.asyncio
    async def test_same_number_in_another_location_is_allowed(self, location_service, admin, location, slots):
        other = await location_service.create_location(
            actor=admin, code="LOC-002", name="Depot", address="2 Dock Road", latitude=1.0, longitude=2.0
        )

        slot = await location_service.create_slot(admin, other.id, "A1")

        assert slot.location_id == other.id

    @pytest.mark.asyncio
    async def test_create_slot_in_inactive_location_fails(self, location_service, admin, location):
        await location_service.deactivate_location(location.id, admin)

        with pytest.raises(LocationNotFoundError):
            await location_service.create_slot(admin, location.id, "B1")

    @pytest.mark.asyncio
    async def test_non_admin_cannot_manage_slots(self, location_service, user, location, slots):
        with pytest.raises(ForbiddenError):
            await location_service.create_slot(user, location.id, "B1")
        with pytest.raises(ForbiddenError):
            await location_service.set_slot_maintenance(slots[0].id, user, True)
        with pytest.raises(ForbiddenError):
            await location_service.delete_slot(slots[0].id, user)

    @pytest.mark.asyncio
    async def test_update_slot_renames_and_reclassifies(self, location_service, admin, slots):
        updated = await location_service.update_slot(slots[0].id, admin, slot_number="A10", vehicle_class="bike")

        assert updated.slot_number == "A10"
        assert updated.vehicle_class == SlotVehicleClass.BIKE

    @pytest.mark.asyncio
    async def test_update_slot_to_taken_number_fails(self, location_service, admin, slots):
        with pytest.raises(DuplicateSlotNumberError):
            await location_service.update_slot(slots[0].id, admin, slot_number="A2")

    @pytest.mark.asyncio
    async def test_unknown_vehicle_class_is_rejected(self, location_service, admin, location):
        with pytest.raises(ValidationError):
            await location_service.create_slot(admin, location.id, "B1", "hovercraft")

    @pytest.mark.asyncio
    async def test_delete_slot_hides_it(self, location_service, admin, location, slots):
        await location_service.delete_slot(slots[0].id, admin)

        with pytest.raises(SlotNotFoundError):
            await location_service.get_slot(slots[0].id)
        assert len(await location_service.list_slots(location.id)) == 2
        assert await location_service.get_availability(location.id) == AvailabilitySnapshot(total=2, available=2)

    @pytest.mark.asyncio
    async def test_delete_booked_slot_fails(self, location_service, booking_service, admin, user, location, slots):
        await booking_service.create_booking(
            actor=user,
            slot_id=slots[0].id,
            location_id=location.id,
            vehicle_number="KA01AB1234",
            vehicle_type="car",
            booking_date=datetime(2025, 6, 1, 10, 0),
            start_time=datetime(2025, 6, 1, 10, 0),
            end_time=datetime(2025, 6, 1, 11, 0)
        )

        with pytest.raises(SlotCurrentlyBookedError):
            await location_service.delete_slot(slots[0].id, admin)

    @pytest.mark.asyncio
    async def test_maintenance_round_trip(self, location_service, admin, location, slots):
        blocked = await location_service.set_slot_maintenance(slots[0].id, admin, True)
        assert blocked.status == SlotStatus.MAINTENANCE
        assert await location_service.get_availability(location.id) == AvailabilitySnapshot(total=3, available=2)

        restored = await location_service.set_slot_maintenance(slots[0].id, admin, False)
        assert restored.status == SlotStatus.AVAILABLE
        assert await location_service.get_availability(location.id) == AvailabilitySnapshot(total=3, available=3)

    @pytest.mark.asyncio
    async def test_list_available_slots_filters(self, location_service, booking_service, admin, user, location, slots):
        bike_slot = await location_service.create_slot(admin, location.id, "M1", "bike")
        await location_service.set_slot_maintenance(slots[1].id, admin, True)
        await booking_service.create_booking(
            actor=user,
            slot_id=slots[0].id,
            location_id=location.id,
            vehicle_number="KA01AB1234",
            vehicle_type="car",
            booking_date=datetime(2025, 6, 1, 10, 0),
            start_time=datetime(2025, 6, 1, 10, 0),
            end_time=datetime(2025, 6, 1, 11, 0)
        )

        available = await location_service.list_available_slots(location.id)
        assert [slot.slot_number for slot in available] == ["A3", "M1"]

        for_cars = await location_service.list_available_slots(location.id, vehicle_type="car")
        assert [slot.id for slot in for_cars] == [slots[2].id]

        for_bikes = await location_service.list_available_slots(location.id, vehicle_type=VehicleType.BIKE)
        assert {slot.id for slot in for_bikes} == {slots[2].id, bike_slot.id}

    @pytest.mark.asyncio
    async def test_list_available_slots_respects_start_time(self, location_service, location, slots):
        before_creation = datetime(2025, 6, 1, 8, 0)

        assert await location_service.list_available_slots(location.id, start_time=before_creation) == []
        assert len(await location_service.list_available_slots(location.id, start_time=datetime(2025, 6, 1, 9, 0))) == 3

    @pytest.mark.asyncio
    async def test_list_available_slots_rejects_unknown_type(self, location_service, location):
        with pytest.raises(ValidationError):
            await location_service.list_available_slots(location.id, vehicle_type="rocket")
