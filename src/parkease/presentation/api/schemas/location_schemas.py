"""Pydantic schemas for location API requests and responses."""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from parkease.domain.entities.location import Location
from parkease.domain.value_objects.availability import AvailabilitySnapshot
from parkease.domain.value_objects.vehicle_types import VehicleType


def _check_rates(value: Optional[Dict[str, Decimal]]) -> Optional[Dict[str, Decimal]]:
    if value is None:
        return value
    for key, rate in value.items():
        VehicleType(key)
        if rate < 0:
            raise ValueError(f"Rate for {key} cannot be negative")
    return value


class LocationCreateRequest(BaseModel):
    """Request model for creating a location."""
    location_id: str = Field(..., min_length=1, max_length=50, description="Operator-facing location code")
    name: str = Field(..., min_length=1, max_length=200)
    address: str = Field(..., min_length=1, max_length=500)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    pricing: Optional[Dict[str, Decimal]] = Field(
        default=None, description="Rate per 15-minute interval keyed by vehicle type"
    )

    @field_validator('location_id', 'name', 'address')
    @classmethod
    def strip_text(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('Value cannot be empty')
        return v.strip()

    @field_validator('pricing')
    @classmethod
    def validate_pricing(cls, v):
        return _check_rates(v)


class LocationUpdateRequest(BaseModel):
    """Request model for updating a location; omitted fields are unchanged."""
    name: Optional[str] = Field(default=None, max_length=200)
    address: Optional[str] = Field(default=None, max_length=500)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    is_active: Optional[bool] = None
    pricing: Optional[Dict[str, Decimal]] = None

    @field_validator('pricing')
    @classmethod
    def validate_pricing(cls, v):
        return _check_rates(v)


class PricingUpdateRequest(BaseModel):
    """Request model for merging rates into a location's pricing table."""
    pricing: Dict[str, Decimal] = Field(..., min_length=1)

    @field_validator('pricing')
    @classmethod
    def validate_pricing(cls, v):
        return _check_rates(v)


class AvailabilityResponse(BaseModel):
    """Response model for a location's availability counters."""
    location_id: UUID
    total_slots: int
    available_slots: int
    occupied_slots: int

    @classmethod
    def from_snapshot(cls, location_id: UUID, snapshot: AvailabilitySnapshot) -> "AvailabilityResponse":
        return cls(
            location_id=location_id,
            total_slots=snapshot.total,
            available_slots=snapshot.available,
            occupied_slots=snapshot.occupied
        )


class LocationResponse(BaseModel):
    """Response model for a location."""
    id: UUID
    location_id: str
    name: str
    address: str
    latitude: float
    longitude: float
    pricing: Dict[str, Decimal]
    total_slots: int
    available_slots: int
    is_active: bool
    created_by: UUID
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, location: Location) -> "LocationResponse":
        return cls(
            id=location.id,
            location_id=location.code,
            name=location.name,
            address=location.address,
            latitude=location.latitude,
            longitude=location.longitude,
            pricing={vehicle_type.value: rate for vehicle_type, rate in location.pricing.rates.items()},
            total_slots=location.total_slots,
            available_slots=location.available_slots,
            is_active=location.is_active,
            created_by=location.created_by,
            created_at=location.created_at,
            updated_at=location.updated_at
        )


class LocationListResponse(BaseModel):
    """Response model for listing locations."""
    locations: List[LocationResponse]
    total_count: int
