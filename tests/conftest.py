"""Shared fixtures: a controllable clock and services wired to the in-memory store."""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest
import pytest_asyncio

from parkease.application.ports.system import Clock
from parkease.application.services.booking_allocator import BookingAllocator
from parkease.application.services.booking_lifecycle import BookingLifecycle
from parkease.application.services.booking_service import BookingService
from parkease.application.services.location_service import LocationService
from parkease.application.services.pricing_calculator import PricingCalculator
from parkease.domain.value_objects.actor import Actor, Role
from parkease.infrastructure.repositories.memory_repositories import InMemoryDataStore, InMemoryUnitOfWork
from parkease.infrastructure.system import TimestampBookingNumberGenerator


class FixedClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, now: datetime):
        self._now = now

    def now(self) -> datetime:
        return self._now

    def set(self, now: datetime) -> None:
        self._now = now

    def advance(self, minutes: int = 0, seconds: int = 0) -> None:
        self._now = self._now + timedelta(minutes=minutes, seconds=seconds)


@pytest.fixture
def clock():
    return FixedClock(datetime(2025, 6, 1, 9, 0))


@pytest.fixture
def store():
    return InMemoryDataStore()


@pytest.fixture
def uow_factory(store):
    return lambda: InMemoryUnitOfWork(store)


@pytest.fixture
def pricing():
    return PricingCalculator()


@pytest.fixture
def lifecycle(uow_factory, pricing, clock):
    return BookingLifecycle(uow_factory, pricing, clock, TimestampBookingNumberGenerator(clock))


@pytest.fixture
def allocator(uow_factory, lifecycle, pricing):
    return BookingAllocator(uow_factory, lifecycle, pricing)


@pytest.fixture
def booking_service(uow_factory, allocator, lifecycle, clock):
    return BookingService(uow_factory, allocator, lifecycle, clock)


@pytest.fixture
def location_service(uow_factory, clock):
    return LocationService(uow_factory, clock)


@pytest.fixture
def admin():
    return Actor(user_id=uuid4(), role=Role.ADMIN)


@pytest.fixture
def user():
    return Actor(user_id=uuid4())


@pytest.fixture
def other_user():
    return Actor(user_id=uuid4())


@pytest_asyncio.fixture
async def location(location_service, admin):
    """A location charging 15 per interval for cars."""
    return await location_service.create_location(
        actor=admin,
        code="LOC-001",
        name="Central Plaza",
        address="1 Main Street",
        latitude=12.97,
        longitude=77.59,
        pricing={"car": "15"}
    )


@pytest_asyncio.fixture
async def slots(location_service, admin, location):
    """Three available slots at the location."""
    return [
        await location_service.create_slot(admin, location.id, f"A{number}")
        for number in range(1, 4)
    ]
