"""Dependency injection and service factory."""

from typing import Optional

from parkease.application.ports.system import BookingNumberGenerator, Clock
from parkease.application.ports.unit_of_work import UnitOfWork
from parkease.application.services.booking_allocator import BookingAllocator
from parkease.application.services.booking_lifecycle import BookingLifecycle
from parkease.application.services.booking_service import BookingService
from parkease.application.services.location_service import LocationService
from parkease.application.services.pricing_calculator import PricingCalculator
from parkease.infrastructure.database.connection import DatabaseManager
from parkease.infrastructure.logging import get_logger
from parkease.infrastructure.repositories.memory_repositories import InMemoryDataStore, InMemoryUnitOfWork
from parkease.infrastructure.repositories.sql_repositories import SQLAlchemyUnitOfWork
from parkease.infrastructure.system import SystemClock, TimestampBookingNumberGenerator
from parkease.presentation.api.config import Settings, get_settings

logger = get_logger(__name__)


class ServiceFactory:
    """Factory for creating application services with proper dependencies."""

    def __init__(
        self,
        settings: Settings,
        clock: Optional[Clock] = None,
        number_generator: Optional[BookingNumberGenerator] = None
    ):
        self._settings = settings
        self._connected = False
        self.clock = clock or SystemClock()
        self.number_generator = number_generator or TimestampBookingNumberGenerator(self.clock)

        if settings.uses_memory_store:
            self.database_manager = None
            self.memory_store = InMemoryDataStore()
        else:
            self.database_manager = DatabaseManager(
                settings.database_url,
                echo=settings.database_echo,
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_pre_ping=settings.db_pool_pre_ping
            )
            self.memory_store = None

        self.pricing = PricingCalculator(
            interval_minutes=settings.pricing_interval_minutes,
            default_rate=settings.pricing_default_rate,
            extension_fee=settings.extension_fee,
            extension_minutes=settings.extension_minutes
        )
        self.lifecycle = BookingLifecycle(self.unit_of_work, self.pricing, self.clock, self.number_generator)
        self.allocator = BookingAllocator(self.unit_of_work, self.lifecycle, self.pricing)
        self.booking_service = BookingService(self.unit_of_work, self.allocator, self.lifecycle, self.clock)
        self.location_service = LocationService(self.unit_of_work, self.clock)

    def unit_of_work(self) -> UnitOfWork:
        """Create a unit of work on the configured store."""
        if self.memory_store is not None:
            return InMemoryUnitOfWork(self.memory_store)
        return SQLAlchemyUnitOfWork(self.database_manager.new_session, self.database_manager.unit_lock)

    async def initialize(self):
        """Initialize the service factory."""
        if self._connected:
            return
        if self.database_manager is not None:
            await self.database_manager.connect()
            if self._settings.create_tables_on_startup:
                await self.database_manager.create_tables()
        self._connected = True
        logger.info(
            "Services initialized",
            extra={"store": "memory" if self.memory_store is not None else "sql"}
        )

    async def shutdown(self):
        """Shutdown the service factory."""
        if self._connected and self.database_manager is not None:
            await self.database_manager.disconnect()
        self._connected = False


# Global service factory instance
_service_factory: ServiceFactory | None = None


def get_service_factory() -> ServiceFactory:
    """Get the global service factory instance."""
    global _service_factory

    if _service_factory is None:
        _service_factory = ServiceFactory(get_settings())

    return _service_factory


def set_service_factory(factory: Optional[ServiceFactory]) -> None:
    """Replace the global service factory (``None`` resets it)."""
    global _service_factory
    _service_factory = factory


async def initialize_services():
    """Initialize application services."""
    factory = get_service_factory()
    await factory.initialize()


async def shutdown_services():
    """Shutdown application services."""
    factory = get_service_factory()
    await factory.shutdown()
