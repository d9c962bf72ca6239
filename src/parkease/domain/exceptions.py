"""Domain exceptions for slot allocation and booking lifecycle.

Every failure raised by the core belongs to one of five kinds:

- ``NotFoundError``: a slot, location or booking does not exist.
- ``ConflictError``: the current state of a record forbids the operation.
- ``InvalidTransitionError``: a ``ConflictError`` raised when a booking
  transition is attempted from an incompatible state.
- ``ForbiddenError``: the actor is not the owner (or an administrator).
- ``ValidationError``: malformed input.

The presentation layer maps kinds to HTTP statuses; the core only raises.
"""

from typing import Any, Dict, Optional


class ParkingError(Exception):
    """Base exception for all domain errors."""

    kind = "error"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(ParkingError):
    """Raised when a requested record does not exist."""

    kind = "not_found"


class ConflictError(ParkingError):
    """Raised when the current state of a record forbids the operation."""

    kind = "conflict"


class InvalidTransitionError(ConflictError):
    """Raised when a booking transition is attempted from an incompatible state."""

    kind = "invalid_transition"


class ForbiddenError(ParkingError):
    """Raised when the actor may not act on the record."""

    kind = "forbidden"


class ValidationError(ParkingError, ValueError):
    """Raised when input data is malformed."""

    kind = "validation_error"


# Not found

class SlotNotFoundError(NotFoundError):
    def __init__(self, slot_id: Any) -> None:
        super().__init__(f"Slot not found: {slot_id}", details={"slot_id": str(slot_id)})


class LocationNotFoundError(NotFoundError):
    def __init__(self, location_id: Any) -> None:
        super().__init__(f"Location not found: {location_id}", details={"location_id": str(location_id)})


class BookingNotFoundError(NotFoundError):
    def __init__(self, booking_id: Any) -> None:
        super().__init__(f"Booking not found: {booking_id}", details={"booking_id": str(booking_id)})


# Conflicts on slots and locations

class SlotUnavailableError(ConflictError):
    def __init__(self, slot_id: Any) -> None:
        super().__init__("Slot is not available", details={"slot_id": str(slot_id)})


class SlotCurrentlyBookedError(ConflictError):
    def __init__(self, slot_id: Any) -> None:
        super().__init__("Slot is currently booked", details={"slot_id": str(slot_id)})


class DuplicateSlotNumberError(ConflictError):
    def __init__(self, slot_number: str, location_id: Any) -> None:
        super().__init__(
            "Slot number already exists for this location",
            details={"slot_number": slot_number, "location_id": str(location_id)},
        )


class DuplicateLocationError(ConflictError):
    def __init__(self, code: str) -> None:
        super().__init__("Location ID already exists", details={"code": code})


# Booking transitions

class TimerAlreadyStartedError(InvalidTransitionError):
    def __init__(self, booking_id: Any, message: str = "Timer already started") -> None:
        super().__init__(message, details={"booking_id": str(booking_id)})


class TimerNotStartedError(InvalidTransitionError):
    def __init__(self, booking_id: Any, message: str = "Timer not started") -> None:
        super().__init__(message, details={"booking_id": str(booking_id)})


class TooEarlyError(InvalidTransitionError):
    def __init__(self, booking_id: Any) -> None:
        super().__init__(
            "Cannot start timer before booking start time",
            details={"booking_id": str(booking_id)},
        )


class BookingTerminalError(InvalidTransitionError):
    def __init__(self, booking_id: Any, status: str) -> None:
        super().__init__(
            f"Booking already {status}",
            details={"booking_id": str(booking_id), "status": status},
        )


class BookingNotDeletableError(InvalidTransitionError):
    def __init__(self, booking_id: Any, status: str) -> None:
        super().__init__(
            "Can only delete completed or cancelled bookings",
            details={"booking_id": str(booking_id), "status": status},
        )
