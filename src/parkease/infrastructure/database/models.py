"""SQLAlchemy database models."""

from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum as SQLEnum,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import declarative_base

from parkease.domain.entities.booking import BookingStatus, PaymentStatus
from parkease.domain.entities.slot import SlotStatus
from parkease.domain.time import utcnow
from parkease.domain.value_objects.vehicle_types import SlotVehicleClass, VehicleType

Base = declarative_base()


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class LocationModel(Base):
    """SQLAlchemy model for parking locations."""

    __tablename__ = "locations"

    # Primary key
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)

    # Location details
    code = Column(String(50), nullable=False, unique=True, index=True)
    name = Column(String(200), nullable=False)
    address = Column(String(500), nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)

    # Rates per 15-minute interval keyed by vehicle type
    pricing = Column(JSON, nullable=False, default=dict)

    # Availability ledger, maintained with in-place arithmetic updates only
    total_slots = Column(Integer, nullable=False, default=0)
    available_slots = Column(Integer, nullable=False, default=0)

    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(Uuid(as_uuid=True), nullable=False)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<LocationModel(id={self.id}, code='{self.code}', available={self.available_slots}/{self.total_slots})>"


class SlotModel(Base):
    """SQLAlchemy model for parking slots."""

    __tablename__ = "slots"

    # Primary key
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)

    # Slot details
    location_id = Column(Uuid(as_uuid=True), ForeignKey("locations.id"), nullable=False, index=True)
    slot_number = Column(String(50), nullable=False)
    vehicle_class = Column(
        SQLEnum(SlotVehicleClass, name="slot_vehicle_class", values_callable=_enum_values),
        nullable=False,
        default=SlotVehicleClass.ALL
    )

    # Occupancy
    status = Column(
        SQLEnum(SlotStatus, name="slot_status", values_callable=_enum_values),
        nullable=False,
        default=SlotStatus.AVAILABLE
    )
    next_available_time = Column(DateTime, nullable=False, default=utcnow)
    is_active = Column(Boolean, nullable=False, default=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("location_id", "slot_number", name="uq_slot_number_per_location"),
        Index("ix_slots_location_status_active", "location_id", "status", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<SlotModel(id={self.id}, slot_number='{self.slot_number}', status='{self.status}')>"


class BookingModel(Base):
    """SQLAlchemy model for bookings."""

    __tablename__ = "bookings"

    # Primary key
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    booking_number = Column(String(40), nullable=False, unique=True, index=True)

    # References
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    slot_id = Column(Uuid(as_uuid=True), ForeignKey("slots.id"), nullable=False, index=True)
    location_id = Column(Uuid(as_uuid=True), ForeignKey("locations.id"), nullable=False, index=True)

    # Vehicle
    vehicle_number = Column(String(20), nullable=False)
    vehicle_type = Column(
        SQLEnum(VehicleType, name="vehicle_type", values_callable=_enum_values),
        nullable=False
    )

    # Requested window
    booking_date = Column(DateTime, nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)

    # Timer-driven window
    timer_started = Column(Boolean, nullable=False, default=False)
    actual_start_time = Column(DateTime, nullable=True)
    actual_end_time = Column(DateTime, nullable=True)
    duration_minutes = Column(Integer, nullable=False, default=0)

    # Fare
    base_rate = Column(Numeric(precision=10, scale=2), nullable=False)
    total_amount = Column(Numeric(precision=10, scale=2), nullable=False)
    payment_status = Column(
        SQLEnum(PaymentStatus, name="payment_status", values_callable=_enum_values),
        nullable=False,
        default=PaymentStatus.PENDING
    )
    payment_reference = Column(String(40), nullable=True)

    # Lifecycle
    status = Column(
        SQLEnum(BookingStatus, name="booking_status", values_callable=_enum_values),
        nullable=False,
        default=BookingStatus.UPCOMING
    )
    cancellation_reason = Column(String(255), nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_bookings_user_status", "user_id", "status"),
        Index("ix_bookings_slot_start", "slot_id", "start_time"),
    )

    def __repr__(self) -> str:
        return f"<BookingModel(id={self.id}, booking_number='{self.booking_number}', status='{self.status}')>"
