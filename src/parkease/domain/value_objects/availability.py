"""Availability snapshot value object."""

from dataclasses import dataclass


@dataclass(frozen=True)
class AvailabilitySnapshot:
    """Aggregate slot counters of one location."""

    total: int
    available: int

    def __post_init__(self) -> None:
        """Validate counters."""
        if self.total < 0:
            raise ValueError("Total slots cannot be negative")
        if self.available < 0:
            raise ValueError("Available slots cannot be negative")

    @property
    def occupied(self) -> int:
        """Active slots that are not available (booked or in maintenance)."""
        return self.total - self.available

    @property
    def is_full(self) -> bool:
        return self.available == 0
