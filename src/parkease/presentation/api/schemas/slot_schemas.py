"""Pydantic schemas for slot API requests and responses."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from parkease.domain.entities.slot import Slot, SlotStatus
from parkease.domain.value_objects.vehicle_types import SlotVehicleClass


class SlotCreateRequest(BaseModel):
    """Request model for creating a slot."""
    location_id: UUID
    slot_number: str = Field(..., min_length=1, max_length=50)
    vehicle_class: SlotVehicleClass = SlotVehicleClass.ALL

    @field_validator('slot_number')
    @classmethod
    def strip_slot_number(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('Slot number cannot be empty')
        return v.strip()


class SlotUpdateRequest(BaseModel):
    """Request model for updating a slot; omitted fields are unchanged."""
    slot_number: Optional[str] = Field(default=None, min_length=1, max_length=50)
    vehicle_class: Optional[SlotVehicleClass] = None


class SlotMaintenanceRequest(BaseModel):
    """Request model for toggling maintenance."""
    maintenance: bool = Field(..., description="True to block the slot, False to return it to service")


class SlotResponse(BaseModel):
    """Response model for a slot."""
    id: UUID
    location_id: UUID
    slot_number: str
    vehicle_class: SlotVehicleClass
    status: SlotStatus
    next_available_time: datetime
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, slot: Slot) -> "SlotResponse":
        return cls(
            id=slot.id,
            location_id=slot.location_id,
            slot_number=slot.slot_number,
            vehicle_class=slot.vehicle_class,
            status=slot.status,
            next_available_time=slot.next_available_time,
            is_active=slot.is_active,
            created_at=slot.created_at,
            updated_at=slot.updated_at
        )
