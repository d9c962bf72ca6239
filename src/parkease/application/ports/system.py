"""Port interfaces for system collaborators: clock and identifier generation."""

from abc import ABC, abstractmethod
from datetime import datetime


class Clock(ABC):
    """Source of the current time (naive UTC)."""

    @abstractmethod
    def now(self) -> datetime:
        """Get the current instant."""
        raise NotImplementedError


class BookingNumberGenerator(ABC):
    """Source of unique booking numbers."""

    @abstractmethod
    def next_booking_number(self) -> str:
        """Generate a new booking number."""
        raise NotImplementedError

    @abstractmethod
    def next_payment_reference(self) -> str:
        """Generate a reference for the payment settled at booking time."""
        raise NotImplementedError
