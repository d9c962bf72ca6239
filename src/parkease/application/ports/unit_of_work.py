"""Unit of work port: the atomicity boundary of every mutating operation."""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from .repositories import BookingRepository, LocationRepository, SlotRepository


class UnitOfWork(ABC):
    """Groups slot, ledger and booking writes into one all-or-nothing commit.

    Used as an async context manager. Leaving the block normally commits;
    leaving it through an exception rolls everything back.
    """

    slots: SlotRepository
    locations: LocationRepository
    bookings: BookingRepository

    async def __aenter__(self) -> "UnitOfWork":
        await self.begin()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> Optional[bool]:
        try:
            if exc_type is None:
                await self.commit()
            else:
                await self.rollback()
        finally:
            await self.close()
        return None

    @abstractmethod
    async def begin(self) -> None:
        """Start the unit and bind repositories."""
        raise NotImplementedError

    @abstractmethod
    async def commit(self) -> None:
        """Make all changes durable."""
        raise NotImplementedError

    @abstractmethod
    async def rollback(self) -> None:
        """Discard all changes."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release resources held by the unit."""


UnitOfWorkFactory = Callable[[], UnitOfWork]
