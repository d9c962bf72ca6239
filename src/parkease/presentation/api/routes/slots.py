"""Slot endpoints. Reads are public; mutations require an administrator."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from parkease.application.services.location_service import LocationService
from parkease.domain.time import to_naive_utc
from parkease.domain.value_objects.actor import Actor
from parkease.domain.value_objects.vehicle_types import VehicleType
from parkease.presentation.api.middleware.identity import require_admin
from parkease.presentation.api.routes.locations import get_location_service
from parkease.presentation.api.schemas.slot_schemas import (
    SlotCreateRequest,
    SlotMaintenanceRequest,
    SlotResponse,
    SlotUpdateRequest,
)

router = APIRouter()


@router.get("/location/{location_id}")
async def list_slots(
    location_id: UUID,
    service: LocationService = Depends(get_location_service)
) -> List[SlotResponse]:
    """Active slots of a location ordered by slot number."""
    return [SlotResponse.from_entity(slot) for slot in await service.list_slots(location_id)]


@router.get("/location/{location_id}/available")
async def list_available_slots(
    location_id: UUID,
    start_time: Optional[datetime] = Query(default=None, alias="startTime"),
    vehicle_type: Optional[VehicleType] = Query(default=None, alias="vehicleType"),
    service: LocationService = Depends(get_location_service)
) -> List[SlotResponse]:
    """Slots that can be booked from ``startTime`` for a vehicle type."""
    slots = await service.list_available_slots(
        location_id,
        start_time=to_naive_utc(start_time) if start_time else None,
        vehicle_type=vehicle_type
    )
    return [SlotResponse.from_entity(slot) for slot in slots]


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_slot(
    request: SlotCreateRequest,
    actor: Actor = Depends(require_admin),
    service: LocationService = Depends(get_location_service)
) -> SlotResponse:
    slot = await service.create_slot(
        actor,
        location_id=request.location_id,
        slot_number=request.slot_number,
        vehicle_class=request.vehicle_class
    )
    return SlotResponse.from_entity(slot)


@router.put("/{slot_id}")
async def update_slot(
    slot_id: UUID,
    request: SlotUpdateRequest,
    actor: Actor = Depends(require_admin),
    service: LocationService = Depends(get_location_service)
) -> SlotResponse:
    slot = await service.update_slot(
        slot_id,
        actor,
        slot_number=request.slot_number,
        vehicle_class=request.vehicle_class
    )
    return SlotResponse.from_entity(slot)


@router.patch("/{slot_id}/maintenance")
async def set_maintenance(
    slot_id: UUID,
    request: SlotMaintenanceRequest,
    actor: Actor = Depends(require_admin),
    service: LocationService = Depends(get_location_service)
) -> SlotResponse:
    slot = await service.set_slot_maintenance(slot_id, actor, request.maintenance)
    return SlotResponse.from_entity(slot)


@router.delete("/{slot_id}")
async def delete_slot(
    slot_id: UUID,
    actor: Actor = Depends(require_admin),
    service: LocationService = Depends(get_location_service)
) -> dict[str, str]:
    """Soft delete a slot that is not booked."""
    await service.delete_slot(slot_id, actor)
    return {"message": "Slot deleted successfully"}
