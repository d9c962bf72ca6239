"""Booking entity: one reservation of one slot by one user."""

from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from ..exceptions import (
    BookingNotDeletableError,
    BookingTerminalError,
    TimerAlreadyStartedError,
    TimerNotStartedError,
    TooEarlyError,
    ValidationError,
)
from ..time import ceil_minutes, utcnow
from ..value_objects.vehicle_types import VehicleType


class BookingStatus(Enum):
    """Booking status enumeration."""
    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


class PaymentStatus(Enum):
    """Payment status enumeration."""
    PENDING = "pending"
    COMPLETED = "completed"
    REFUNDED = "refunded"


TERMINAL_STATUSES = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW})
DELETABLE_STATUSES = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED})

DEFAULT_CANCELLATION_REASON = "User cancelled"


class Booking:
    """Booking entity representing a parking reservation."""

    def __init__(
        self,
        booking_number: str,
        user_id: UUID,
        slot_id: UUID,
        location_id: UUID,
        vehicle_number: str,
        vehicle_type: VehicleType,
        booking_date: datetime,
        start_time: datetime,
        end_time: datetime,
        base_rate: Decimal,
        total_amount: Decimal,
        duration_minutes: Optional[int] = None,
        booking_id: Optional[UUID] = None,
        status: BookingStatus = BookingStatus.UPCOMING,
        payment_status: PaymentStatus = PaymentStatus.PENDING,
        payment_reference: Optional[str] = None,
        timer_started: bool = False,
        actual_start_time: Optional[datetime] = None,
        actual_end_time: Optional[datetime] = None,
        cancellation_reason: Optional[str] = None,
        cancelled_at: Optional[datetime] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        vehicle_number = (vehicle_number or "").strip().upper()
        if not vehicle_number:
            raise ValidationError("Vehicle number is required")

        self._id = booking_id or uuid4()
        self._booking_number = booking_number
        self._user_id = user_id
        self._slot_id = slot_id
        self._location_id = location_id
        self._vehicle_number = vehicle_number
        self._vehicle_type = vehicle_type
        self._booking_date = booking_date
        self._start_time = start_time
        self._end_time = end_time
        self._duration_minutes = (
            duration_minutes if duration_minutes is not None else ceil_minutes(start_time, end_time)
        )
        self._base_rate = Decimal(base_rate)
        self._total_amount = Decimal(total_amount)
        self._status = status
        self._payment_status = payment_status
        self._payment_reference = payment_reference
        self._timer_started = timer_started
        self._actual_start_time = actual_start_time
        self._actual_end_time = actual_end_time
        self._cancellation_reason = cancellation_reason
        self._cancelled_at = cancelled_at
        self._created_at = created_at or utcnow()
        self._updated_at = updated_at or self._created_at

    @property
    def id(self) -> UUID:
        return self._id

    @property
    def booking_number(self) -> str:
        """Human-facing unique booking identifier."""
        return self._booking_number

    @property
    def user_id(self) -> UUID:
        return self._user_id

    @property
    def slot_id(self) -> UUID:
        return self._slot_id

    @property
    def location_id(self) -> UUID:
        return self._location_id

    @property
    def vehicle_number(self) -> str:
        return self._vehicle_number

    @property
    def vehicle_type(self) -> VehicleType:
        return self._vehicle_type

    @property
    def booking_date(self) -> datetime:
        return self._booking_date

    @property
    def start_time(self) -> datetime:
        return self._start_time

    @property
    def end_time(self) -> datetime:
        return self._end_time

    @property
    def duration_minutes(self) -> int:
        return self._duration_minutes

    @property
    def base_rate(self) -> Decimal:
        return self._base_rate

    @property
    def total_amount(self) -> Decimal:
        return self._total_amount

    @property
    def status(self) -> BookingStatus:
        return self._status

    @property
    def payment_status(self) -> PaymentStatus:
        return self._payment_status

    @property
    def payment_reference(self) -> Optional[str]:
        return self._payment_reference

    @property
    def timer_started(self) -> bool:
        return self._timer_started

    @property
    def actual_start_time(self) -> Optional[datetime]:
        return self._actual_start_time

    @property
    def actual_end_time(self) -> Optional[datetime]:
        return self._actual_end_time

    @property
    def cancellation_reason(self) -> Optional[str]:
        return self._cancellation_reason

    @property
    def cancelled_at(self) -> Optional[datetime]:
        return self._cancelled_at

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def is_terminal(self) -> bool:
        return self._status.is_terminal

    @property
    def holds_slot(self) -> bool:
        """Whether this booking keeps its slot booked."""
        return self._status in (BookingStatus.UPCOMING, BookingStatus.ACTIVE)

    def settle_payment(self, reference: str, now: Optional[datetime] = None) -> None:
        """Record payment taken at booking time."""
        self._payment_status = PaymentStatus.COMPLETED
        self._payment_reference = reference
        self._updated_at = now or utcnow()

    def start_timer(self, now: datetime) -> None:
        """Mark the start of actual occupancy."""
        if self._timer_started:
            raise TimerAlreadyStartedError(self._id)
        if self._status != BookingStatus.UPCOMING:
            raise BookingTerminalError(self._id, self._status.value)
        if now < self._start_time:
            raise TooEarlyError(self._id)
        self._timer_started = True
        self._actual_start_time = now
        self._status = BookingStatus.ACTIVE
        self._updated_at = now

    def stop_timer(self, now: datetime) -> None:
        """Mark the end of actual occupancy and complete the booking.

        The duration becomes the elapsed occupancy; the amount paid at booking
        time is kept as is.
        """
        if self.is_terminal:
            raise BookingTerminalError(self._id, self._status.value)
        if not self._timer_started:
            raise TimerNotStartedError(self._id)
        self._actual_end_time = now
        if self._actual_start_time is not None:
            self._duration_minutes = ceil_minutes(self._actual_start_time, now)
        self._status = BookingStatus.COMPLETED
        self._updated_at = now

    def cancel(self, now: datetime, reason: Optional[str] = None) -> None:
        """Cancel before occupancy starts and refund the payment."""
        if self._timer_started:
            raise TimerAlreadyStartedError(self._id, "Cannot cancel booking after timer has started")
        if self.is_terminal:
            raise BookingTerminalError(self._id, self._status.value)
        self._status = BookingStatus.CANCELLED
        self._payment_status = PaymentStatus.REFUNDED
        self._cancellation_reason = (reason or "").strip() or DEFAULT_CANCELLATION_REASON
        self._cancelled_at = now
        self._updated_at = now

    def extend(self, minutes: int, fee: Decimal, now: Optional[datetime] = None) -> None:
        """Push the end time back and charge the extension fee."""
        if not self._timer_started:
            raise TimerNotStartedError(self._id, "Timer must be started to extend booking")
        if self.is_terminal:
            raise BookingTerminalError(self._id, self._status.value)
        self._end_time = self._end_time + timedelta(minutes=minutes)
        self._total_amount = self._total_amount + Decimal(fee)
        self._duration_minutes = ceil_minutes(self._start_time, self._end_time)
        self._updated_at = now or utcnow()

    def ensure_deletable(self) -> None:
        """Raise unless the booking reached a deletable terminal state."""
        if self._status not in DELETABLE_STATUSES:
            raise BookingNotDeletableError(self._id, self._status.value)

    def __eq__(self, other: object) -> bool:
        """Check equality based on booking ID."""
        if not isinstance(other, Booking):
            return False
        return self._id == other._id

    def __hash__(self) -> int:
        """Hash based on booking ID."""
        return hash(self._id)

    def __str__(self) -> str:
        """String representation."""
        return f"Booking({self._booking_number}, {self._vehicle_number}, {self._status.value})"
