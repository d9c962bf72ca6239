"""Pydantic schemas for booking API requests and responses."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from parkease.application.services.booking_service import BookingCategories
from parkease.domain.entities.booking import Booking, BookingStatus, PaymentStatus
from parkease.domain.time import to_naive_utc
from parkease.domain.value_objects.vehicle_types import VehicleType


class BookingCreateRequest(BaseModel):
    """Request model for creating a booking."""
    slot_id: UUID
    location_id: UUID
    vehicle_number: str = Field(..., min_length=1, max_length=20, description="Vehicle registration number")
    vehicle_type: VehicleType
    booking_date: Optional[datetime] = Field(default=None, description="Defaults to the start time")
    start_time: datetime
    end_time: datetime

    @field_validator('vehicle_number')
    @classmethod
    def normalize_vehicle_number(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('Vehicle number cannot be empty')
        return v.strip().upper()

    @field_validator('booking_date', 'start_time', 'end_time')
    @classmethod
    def normalize_datetime(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Store all instants as naive UTC."""
        return to_naive_utc(v) if v is not None else v

    @model_validator(mode='after')
    def default_booking_date(self):
        if self.booking_date is None:
            self.booking_date = self.start_time
        return self


class BookingCancelRequest(BaseModel):
    """Request model for cancelling a booking."""
    reason: Optional[str] = Field(default=None, max_length=255)


class BookingResponse(BaseModel):
    """Response model for a booking."""
    id: UUID
    booking_id: str
    user_id: UUID
    slot_id: UUID
    location_id: UUID
    vehicle_number: str
    vehicle_type: VehicleType
    booking_date: datetime
    start_time: datetime
    end_time: datetime
    actual_start_time: Optional[datetime] = None
    actual_end_time: Optional[datetime] = None
    duration_minutes: int
    base_rate: Decimal
    total_amount: Decimal
    payment_status: PaymentStatus
    payment_id: Optional[str] = None
    booking_status: BookingStatus
    timer_started: bool
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, booking: Booking) -> "BookingResponse":
        return cls(
            id=booking.id,
            booking_id=booking.booking_number,
            user_id=booking.user_id,
            slot_id=booking.slot_id,
            location_id=booking.location_id,
            vehicle_number=booking.vehicle_number,
            vehicle_type=booking.vehicle_type,
            booking_date=booking.booking_date,
            start_time=booking.start_time,
            end_time=booking.end_time,
            actual_start_time=booking.actual_start_time,
            actual_end_time=booking.actual_end_time,
            duration_minutes=booking.duration_minutes,
            base_rate=booking.base_rate,
            total_amount=booking.total_amount,
            payment_status=booking.payment_status,
            payment_id=booking.payment_reference,
            booking_status=booking.status,
            timer_started=booking.timer_started,
            cancellation_reason=booking.cancellation_reason,
            cancelled_at=booking.cancelled_at,
            created_at=booking.created_at,
            updated_at=booking.updated_at
        )


class BookingActionResponse(BaseModel):
    """Response model for booking actions (create, timer, cancel, extend)."""
    message: str
    booking: BookingResponse


class CategorizedBookingsResponse(BaseModel):
    """A user's bookings grouped into past, current and upcoming."""
    past: List[BookingResponse]
    current: List[BookingResponse]
    upcoming: List[BookingResponse]

    @classmethod
    def from_categories(cls, categories: BookingCategories) -> "CategorizedBookingsResponse":
        return cls(
            past=[BookingResponse.from_entity(b) for b in categories.past],
            current=[BookingResponse.from_entity(b) for b in categories.current],
            upcoming=[BookingResponse.from_entity(b) for b in categories.upcoming]
        )


class ErrorResponse(BaseModel):
    """Response model for errors."""
    detail: str
    type: str
    code: Optional[str] = None
