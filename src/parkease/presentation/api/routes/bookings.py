"""Booking endpoints."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, status

from parkease.application.services.booking_service import BookingService
from parkease.domain.entities.booking import BookingStatus
from parkease.domain.value_objects.actor import Actor
from parkease.infrastructure.services import get_service_factory
from parkease.presentation.api.middleware.identity import get_current_actor
from parkease.presentation.api.schemas.booking_schemas import (
    BookingActionResponse,
    BookingCancelRequest,
    BookingCreateRequest,
    BookingResponse,
    CategorizedBookingsResponse,
)

router = APIRouter()


def get_booking_service() -> BookingService:
    return get_service_factory().booking_service


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_booking(
    request: BookingCreateRequest,
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service)
) -> BookingActionResponse:
    """Reserve a slot and create a paid booking for it."""
    booking = await service.create_booking(
        actor=actor,
        slot_id=request.slot_id,
        location_id=request.location_id,
        vehicle_number=request.vehicle_number,
        vehicle_type=request.vehicle_type,
        booking_date=request.booking_date,
        start_time=request.start_time,
        end_time=request.end_time
    )
    return BookingActionResponse(message="Booking created successfully", booking=BookingResponse.from_entity(booking))


@router.get("/my-bookings")
async def get_my_bookings(
    booking_status: Optional[BookingStatus] = Query(default=None, alias="status"),
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service)
) -> CategorizedBookingsResponse:
    """Get the caller's bookings grouped into past, current and upcoming."""
    categories = await service.categorize_user_bookings(actor, booking_status)
    return CategorizedBookingsResponse.from_categories(categories)


@router.get("/{booking_id}")
async def get_booking(
    booking_id: UUID,
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service)
) -> BookingResponse:
    """Get a booking owned by the caller (any booking for administrators)."""
    booking = await service.get_booking(booking_id, actor)
    return BookingResponse.from_entity(booking)


@router.post("/{booking_id}/start-timer")
async def start_timer(
    booking_id: UUID,
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service)
) -> BookingActionResponse:
    booking = await service.start_timer(booking_id, actor)
    return BookingActionResponse(message="Timer started successfully", booking=BookingResponse.from_entity(booking))


@router.post("/{booking_id}/stop-timer")
async def stop_timer(
    booking_id: UUID,
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service)
) -> BookingActionResponse:
    booking = await service.stop_timer(booking_id, actor)
    return BookingActionResponse(message="Timer stopped successfully", booking=BookingResponse.from_entity(booking))


@router.post("/{booking_id}/cancel")
async def cancel_booking(
    booking_id: UUID,
    request: Optional[BookingCancelRequest] = Body(default=None),
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service)
) -> BookingActionResponse:
    """Cancel a booking whose timer has not started; the payment is refunded."""
    reason = request.reason if request else None
    booking = await service.cancel_booking(booking_id, actor, reason)
    return BookingActionResponse(message="Booking cancelled successfully", booking=BookingResponse.from_entity(booking))


@router.post("/{booking_id}/extend")
async def extend_booking(
    booking_id: UUID,
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service)
) -> BookingActionResponse:
    """Extend a running booking by one extension period for the extension fee."""
    booking = await service.extend_booking(booking_id, actor)
    return BookingActionResponse(message="Booking extended successfully", booking=BookingResponse.from_entity(booking))


@router.delete("/{booking_id}")
async def delete_booking(
    booking_id: UUID,
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service)
) -> dict[str, str]:
    """Delete a completed or cancelled booking."""
    await service.delete_booking(booking_id, actor)
    return {"message": "Booking deleted successfully"}
