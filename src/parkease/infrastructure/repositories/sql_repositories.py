"""SQLAlchemy repository implementations.

Slot status changes are conditional UPDATEs checked by rowcount, and ledger
counters are changed with in-place arithmetic, so concurrent transactions can
neither double-book a slot nor lose a counter update.
"""

import asyncio
from datetime import datetime
from typing import Callable, List, Optional
from uuid import UUID

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from parkease.application.ports.repositories import BookingRepository, LocationRepository, SlotRepository
from parkease.application.ports.unit_of_work import UnitOfWork
from parkease.domain.entities.booking import Booking, BookingStatus
from parkease.domain.entities.location import Location
from parkease.domain.entities.slot import Slot, SlotStatus
from parkease.domain.exceptions import DuplicateLocationError, DuplicateSlotNumberError
from parkease.domain.time import utcnow
from parkease.domain.value_objects.availability import AvailabilitySnapshot
from parkease.domain.value_objects.pricing_table import PricingTable
from parkease.domain.value_objects.vehicle_types import SlotVehicleClass, VehicleType
from parkease.infrastructure.database.models import BookingModel, LocationModel, SlotModel
from parkease.infrastructure.logging import get_logger, log_database_operation


class SQLAlchemySlotRepository(SlotRepository):
    """SQLAlchemy implementation of slot repository."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self._logger = get_logger(__name__)

    async def add(self, slot: Slot) -> Slot:
        """Insert a slot; slot numbers are unique per location."""
        if await self.find_by_number(slot.location_id, slot.slot_number):
            raise DuplicateSlotNumberError(slot.slot_number, slot.location_id)

        log_database_operation(self._logger, "INSERT", "SlotModel", slot_id=str(slot.id))
        self._session.add(SlotModel(
            id=slot.id,
            location_id=slot.location_id,
            slot_number=slot.slot_number,
            vehicle_class=slot.vehicle_class,
            status=slot.status,
            next_available_time=slot.next_available_time,
            is_active=slot.is_active,
            created_at=slot.created_at,
            updated_at=slot.updated_at
        ))
        try:
            await self._session.flush()
        except IntegrityError as e:
            raise DuplicateSlotNumberError(slot.slot_number, slot.location_id) from e
        return slot

    async def update(self, slot: Slot) -> Slot:
        """Persist slot number and vehicle class; status is never written here."""
        clash = await self.find_by_number(slot.location_id, slot.slot_number)
        if clash and clash.id != slot.id:
            raise DuplicateSlotNumberError(slot.slot_number, slot.location_id)

        log_database_operation(self._logger, "UPDATE", "SlotModel", slot_id=str(slot.id))
        stmt = (
            update(SlotModel)
            .where(SlotModel.id == slot.id)
            .values(
                slot_number=slot.slot_number,
                vehicle_class=slot.vehicle_class,
                updated_at=slot.updated_at
            )
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(stmt)
        return slot

    async def find_by_id(self, slot_id: UUID, for_update: bool = False) -> Optional[Slot]:
        stmt = select(SlotModel).where(SlotModel.id == slot_id).execution_options(populate_existing=True)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    async def find_by_number(self, location_id: UUID, slot_number: str) -> Optional[Slot]:
        stmt = select(SlotModel).where(
            SlotModel.location_id == location_id,
            SlotModel.slot_number == slot_number
        ).execution_options(populate_existing=True)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    async def find_by_location(
        self,
        location_id: UUID,
        status: Optional[SlotStatus] = None,
        active: Optional[bool] = True
    ) -> List[Slot]:
        stmt = select(SlotModel).where(SlotModel.location_id == location_id)
        if status is not None:
            stmt = stmt.where(SlotModel.status == status)
        if active is not None:
            stmt = stmt.where(SlotModel.is_active == active)
        stmt = stmt.order_by(SlotModel.slot_number).execution_options(populate_existing=True)

        result = await self._session.execute(stmt)
        return [self._model_to_entity(model) for model in result.scalars().all()]

    async def find_available(
        self,
        location_id: UUID,
        start_time: Optional[datetime] = None,
        vehicle_type: Optional[VehicleType] = None
    ) -> List[Slot]:
        log_database_operation(
            self._logger,
            "SELECT",
            "SlotModel",
            location_id=str(location_id),
            start_time=str(start_time),
            query="availability_check"
        )
        stmt = select(SlotModel).where(
            SlotModel.location_id == location_id,
            SlotModel.status == SlotStatus.AVAILABLE,
            SlotModel.is_active.is_(True)
        )
        if start_time is not None:
            stmt = stmt.where(SlotModel.next_available_time <= start_time)
        if vehicle_type is not None:
            stmt = stmt.where(or_(
                SlotModel.vehicle_class == SlotVehicleClass.ALL,
                SlotModel.vehicle_class == SlotVehicleClass(vehicle_type.value)
            ))
        stmt = stmt.order_by(SlotModel.slot_number).execution_options(populate_existing=True)

        result = await self._session.execute(stmt)
        return [self._model_to_entity(model) for model in result.scalars().all()]

    async def compare_and_set_status(
        self,
        slot_id: UUID,
        expected: SlotStatus,
        new: SlotStatus,
        next_available_time: Optional[datetime] = None,
        now: Optional[datetime] = None,
        require_active: bool = True
    ) -> bool:
        """Conditional UPDATE: only a row still in ``expected`` is changed."""
        values = {"status": new, "updated_at": now or utcnow()}
        if next_available_time is not None:
            values["next_available_time"] = next_available_time

        stmt = update(SlotModel).where(SlotModel.id == slot_id, SlotModel.status == expected)
        if require_active:
            stmt = stmt.where(SlotModel.is_active.is_(True))
        stmt = stmt.values(**values).execution_options(synchronize_session=False)

        result = await self._session.execute(stmt)
        changed = result.rowcount == 1
        log_database_operation(
            self._logger,
            "UPDATE",
            "SlotModel",
            slot_id=str(slot_id),
            expected_status=expected.value,
            new_status=new.value,
            rows_affected=result.rowcount
        )
        return changed

    async def set_next_available_time(self, slot_id: UUID, until: datetime, now: Optional[datetime] = None) -> bool:
        stmt = (
            update(SlotModel)
            .where(
                SlotModel.id == slot_id,
                SlotModel.status == SlotStatus.BOOKED,
                SlotModel.next_available_time < until
            )
            .values(next_available_time=until, updated_at=now or utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 1:
            return True
        # Already held at least until ``until`` counts as success for a booked slot
        slot = await self.find_by_id(slot_id)
        return slot is not None and slot.status == SlotStatus.BOOKED

    async def deactivate(self, slot_id: UUID, now: Optional[datetime] = None) -> bool:
        stmt = (
            update(SlotModel)
            .where(
                SlotModel.id == slot_id,
                SlotModel.is_active.is_(True),
                SlotModel.status != SlotStatus.BOOKED
            )
            .values(is_active=False, updated_at=now or utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        log_database_operation(
            self._logger, "UPDATE", "SlotModel", slot_id=str(slot_id), action="deactivate",
            rows_affected=result.rowcount
        )
        return result.rowcount == 1

    async def count_by_location(self, location_id: UUID) -> AvailabilitySnapshot:
        base = select(func.count(SlotModel.id)).where(
            SlotModel.location_id == location_id,
            SlotModel.is_active.is_(True)
        )
        total = (await self._session.execute(base)).scalar() or 0
        available = (await self._session.execute(
            base.where(SlotModel.status == SlotStatus.AVAILABLE)
        )).scalar() or 0
        return AvailabilitySnapshot(total=total, available=available)

    def _model_to_entity(self, model: SlotModel) -> Slot:
        """Convert database model to domain entity."""
        return Slot(
            slot_id=model.id,
            location_id=model.location_id,
            slot_number=model.slot_number,
            vehicle_class=model.vehicle_class,
            status=model.status,
            next_available_time=model.next_available_time,
            is_active=model.is_active,
            created_at=model.created_at,
            updated_at=model.updated_at
        )


class SQLAlchemyLocationRepository(LocationRepository):
    """SQLAlchemy implementation of location repository."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self._logger = get_logger(__name__)

    async def add(self, location: Location) -> Location:
        if await self.find_by_code(location.code):
            raise DuplicateLocationError(location.code)

        log_database_operation(self._logger, "INSERT", "LocationModel", location_id=str(location.id))
        self._session.add(LocationModel(
            id=location.id,
            code=location.code,
            name=location.name,
            address=location.address,
            latitude=location.latitude,
            longitude=location.longitude,
            pricing=location.pricing.to_dict(),
            total_slots=location.total_slots,
            available_slots=location.available_slots,
            is_active=location.is_active,
            created_by=location.created_by,
            created_at=location.created_at,
            updated_at=location.updated_at
        ))
        try:
            await self._session.flush()
        except IntegrityError as e:
            raise DuplicateLocationError(location.code) from e
        return location

    async def update(self, location: Location) -> Location:
        """Persist descriptive attributes and pricing; counters are left alone."""
        log_database_operation(self._logger, "UPDATE", "LocationModel", location_id=str(location.id))
        stmt = (
            update(LocationModel)
            .where(LocationModel.id == location.id)
            .values(
                name=location.name,
                address=location.address,
                latitude=location.latitude,
                longitude=location.longitude,
                pricing=location.pricing.to_dict(),
                is_active=location.is_active,
                updated_at=location.updated_at
            )
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(stmt)
        return location

    async def find_by_id(self, location_id: UUID) -> Optional[Location]:
        stmt = select(LocationModel).where(
            LocationModel.id == location_id
        ).execution_options(populate_existing=True)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    async def find_by_code(self, code: str) -> Optional[Location]:
        stmt = select(LocationModel).where(LocationModel.code == code).execution_options(populate_existing=True)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    async def find_all_active(self) -> List[Location]:
        stmt = (
            select(LocationModel)
            .where(LocationModel.is_active.is_(True))
            .order_by(LocationModel.created_at.desc())
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return [self._model_to_entity(model) for model in result.scalars().all()]

    async def adjust_counters(self, location_id: UUID, total_delta: int = 0, available_delta: int = 0) -> bool:
        """In-place arithmetic UPDATE; never a read-modify-write in Python."""
        stmt = (
            update(LocationModel)
            .where(LocationModel.id == location_id)
            .values(
                total_slots=LocationModel.total_slots + total_delta,
                available_slots=LocationModel.available_slots + available_delta
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        log_database_operation(
            self._logger,
            "UPDATE",
            "LocationModel",
            location_id=str(location_id),
            total_delta=total_delta,
            available_delta=available_delta,
            rows_affected=result.rowcount
        )
        return result.rowcount == 1

    async def set_counters(self, location_id: UUID, snapshot: AvailabilitySnapshot) -> bool:
        stmt = (
            update(LocationModel)
            .where(LocationModel.id == location_id)
            .values(total_slots=snapshot.total, available_slots=snapshot.available)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def get_counters(self, location_id: UUID) -> Optional[AvailabilitySnapshot]:
        stmt = select(LocationModel.total_slots, LocationModel.available_slots).where(
            LocationModel.id == location_id
        )
        row = (await self._session.execute(stmt)).first()
        if row is None:
            return None
        return AvailabilitySnapshot(total=row.total_slots, available=row.available_slots)

    def _model_to_entity(self, model: LocationModel) -> Location:
        """Convert database model to domain entity."""
        return Location(
            location_id=model.id,
            code=model.code,
            name=model.name,
            address=model.address,
            latitude=model.latitude,
            longitude=model.longitude,
            pricing=PricingTable.from_dict(model.pricing or {}),
            total_slots=model.total_slots,
            available_slots=model.available_slots,
            is_active=model.is_active,
            created_by=model.created_by,
            created_at=model.created_at,
            updated_at=model.updated_at
        )


class SQLAlchemyBookingRepository(BookingRepository):
    """SQLAlchemy implementation of booking repository."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self._logger = get_logger(__name__)

    async def save(self, booking: Booking) -> Booking:
        """Save a booking to the database."""
        stmt = select(BookingModel).where(BookingModel.id == booking.id)
        result = await self._session.execute(stmt)
        existing = result.scalar_one_or_none()

        if existing:
            log_database_operation(self._logger, "UPDATE", "BookingModel", booking_id=str(booking.id))
            self._copy_to_model(booking, existing)
        else:
            log_database_operation(self._logger, "INSERT", "BookingModel", booking_id=str(booking.id))
            model = BookingModel(id=booking.id, created_at=booking.created_at)
            self._copy_to_model(booking, model)
            self._session.add(model)

        await self._session.flush()
        return booking

    async def find_by_id(self, booking_id: UUID, for_update: bool = False) -> Optional[Booking]:
        stmt = select(BookingModel).where(BookingModel.id == booking_id).execution_options(populate_existing=True)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    async def find_by_user_id(self, user_id: UUID, status: Optional[BookingStatus] = None) -> List[Booking]:
        stmt = select(BookingModel).where(BookingModel.user_id == user_id)
        if status is not None:
            stmt = stmt.where(BookingModel.status == status)
        stmt = stmt.order_by(BookingModel.created_at.desc()).execution_options(populate_existing=True)

        result = await self._session.execute(stmt)
        return [self._model_to_entity(model) for model in result.scalars().all()]

    async def find_by_slot_id(self, slot_id: UUID) -> List[Booking]:
        stmt = (
            select(BookingModel)
            .where(BookingModel.slot_id == slot_id)
            .order_by(BookingModel.start_time)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return [self._model_to_entity(model) for model in result.scalars().all()]

    async def delete(self, booking_id: UUID) -> bool:
        """Delete a booking."""
        log_database_operation(self._logger, "DELETE", "BookingModel", booking_id=str(booking_id))

        stmt = delete(BookingModel).where(BookingModel.id == booking_id).execution_options(
            synchronize_session=False
        )
        result = await self._session.execute(stmt)

        success = result.rowcount > 0
        if not success:
            self._logger.warning(
                "Booking deletion failed - not found",
                extra={"booking_id": str(booking_id)}
            )
        return success

    @staticmethod
    def _copy_to_model(booking: Booking, model: BookingModel) -> None:
        model.booking_number = booking.booking_number
        model.user_id = booking.user_id
        model.slot_id = booking.slot_id
        model.location_id = booking.location_id
        model.vehicle_number = booking.vehicle_number
        model.vehicle_type = booking.vehicle_type
        model.booking_date = booking.booking_date
        model.start_time = booking.start_time
        model.end_time = booking.end_time
        model.timer_started = booking.timer_started
        model.actual_start_time = booking.actual_start_time
        model.actual_end_time = booking.actual_end_time
        model.duration_minutes = booking.duration_minutes
        model.base_rate = booking.base_rate
        model.total_amount = booking.total_amount
        model.payment_status = booking.payment_status
        model.payment_reference = booking.payment_reference
        model.status = booking.status
        model.cancellation_reason = booking.cancellation_reason
        model.cancelled_at = booking.cancelled_at
        model.updated_at = booking.updated_at

    def _model_to_entity(self, model: BookingModel) -> Booking:
        """Convert database model to domain entity."""
        return Booking(
            booking_id=model.id,
            booking_number=model.booking_number,
            user_id=model.user_id,
            slot_id=model.slot_id,
            location_id=model.location_id,
            vehicle_number=model.vehicle_number,
            vehicle_type=model.vehicle_type,
            booking_date=model.booking_date,
            start_time=model.start_time,
            end_time=model.end_time,
            duration_minutes=model.duration_minutes,
            base_rate=model.base_rate,
            total_amount=model.total_amount,
            status=model.status,
            payment_status=model.payment_status,
            payment_reference=model.payment_reference,
            timer_started=model.timer_started,
            actual_start_time=model.actual_start_time,
            actual_end_time=model.actual_end_time,
            cancellation_reason=model.cancellation_reason,
            cancelled_at=model.cancelled_at,
            created_at=model.created_at,
            updated_at=model.updated_at
        )


class SQLAlchemyUnitOfWork(UnitOfWork):
    """One ``AsyncSession`` transaction shared by all repositories of the unit.

    When ``lock`` is given it is held from ``begin`` until ``close``, so units
    on a database without row locks never interleave.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession], lock: Optional[asyncio.Lock] = None):
        self._session_factory = session_factory
        self._session: Optional[AsyncSession] = None
        self._lock = lock
        self._locked = False

    async def begin(self) -> None:
        if self._lock is not None:
            await self._lock.acquire()
            self._locked = True
        try:
            self._session = self._session_factory()
        except Exception:
            self._release()
            raise
        self.slots = SQLAlchemySlotRepository(self._session)
        self.locations = SQLAlchemyLocationRepository(self._session)
        self.bookings = SQLAlchemyBookingRepository(self._session)

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()

    async def close(self) -> None:
        try:
            if self._session is not None:
                await self._session.close()
                self._session = None
        finally:
            self._release()

    def _release(self) -> None:
        if self._locked:
            self._locked = False
            self._lock.release()
