"""Location entity: a parking site and the aggregate view of its slots."""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from ..exceptions import ValidationError
from ..time import utcnow
from ..value_objects.availability import AvailabilitySnapshot
from ..value_objects.pricing_table import PricingTable


class Location:
    """Parking location entity.

    ``total_slots`` and ``available_slots`` are owned by the availability
    ledger. They are loaded here for reads and never edited through this class.
    """

    def __init__(
        self,
        code: str,
        name: str,
        address: str,
        latitude: float,
        longitude: float,
        created_by: UUID,
        pricing: Optional[PricingTable] = None,
        location_id: Optional[UUID] = None,
        total_slots: int = 0,
        available_slots: int = 0,
        is_active: bool = True,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        code = (code or "").strip()
        if not code:
            raise ValidationError("Location ID is required")
        self._validate_name(name)
        self._validate_address(address)
        self._validate_coordinates(latitude, longitude)

        self._id = location_id or uuid4()
        self._code = code
        self._name = name.strip()
        self._address = address.strip()
        self._latitude = latitude
        self._longitude = longitude
        self._created_by = created_by
        self._pricing = pricing or PricingTable.with_defaults()
        self._total_slots = total_slots
        self._available_slots = available_slots
        self._is_active = is_active
        self._created_at = created_at or utcnow()
        self._updated_at = updated_at or self._created_at

    @property
    def id(self) -> UUID:
        return self._id

    @property
    def code(self) -> str:
        return self._code

    @property
    def name(self) -> str:
        return self._name

    @property
    def address(self) -> str:
        return self._address

    @property
    def latitude(self) -> float:
        return self._latitude

    @property
    def longitude(self) -> float:
        return self._longitude

    @property
    def created_by(self) -> UUID:
        return self._created_by

    @property
    def pricing(self) -> PricingTable:
        return self._pricing

    @property
    def total_slots(self) -> int:
        return self._total_slots

    @property
    def available_slots(self) -> int:
        return self._available_slots

    @property
    def is_active(self) -> bool:
        return self._is_active

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    def availability(self) -> AvailabilitySnapshot:
        """Current counters as a snapshot."""
        return AvailabilitySnapshot(total=self._total_slots, available=self._available_slots)

    def adjust_counters(self, total_delta: int = 0, available_delta: int = 0) -> None:
        """Apply a counter delta. Only the ledger's repository calls this."""
        self._total_slots += total_delta
        self._available_slots += available_delta

    def set_counters(self, snapshot: AvailabilitySnapshot) -> None:
        """Overwrite counters with a recount."""
        self._total_slots = snapshot.total
        self._available_slots = snapshot.available

    def update_details(
        self,
        name: Optional[str] = None,
        address: Optional[str] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        is_active: Optional[bool] = None,
        now: Optional[datetime] = None
    ) -> None:
        """Update descriptive attributes; ``None`` leaves a field unchanged."""
        if name is not None:
            self._validate_name(name)
            self._name = name.strip()
        if address is not None:
            self._validate_address(address)
            self._address = address.strip()
        new_latitude = self._latitude if latitude is None else latitude
        new_longitude = self._longitude if longitude is None else longitude
        self._validate_coordinates(new_latitude, new_longitude)
        self._latitude = new_latitude
        self._longitude = new_longitude
        if is_active is not None:
            self._is_active = is_active
        self._updated_at = now or utcnow()

    def update_pricing(self, overrides: dict, now: Optional[datetime] = None) -> None:
        """Merge new rates into the pricing table."""
        if not overrides:
            raise ValidationError("Pricing data is required")
        try:
            self._pricing = self._pricing.merged(overrides)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        self._updated_at = now or utcnow()

    def deactivate(self, now: Optional[datetime] = None) -> None:
        """Soft delete the location."""
        self._is_active = False
        self._updated_at = now or utcnow()

    @staticmethod
    def _validate_name(name: str) -> None:
        if not name or not name.strip():
            raise ValidationError("Location name is required")

    @staticmethod
    def _validate_address(address: str) -> None:
        if not address or not address.strip():
            raise ValidationError("Address is required")

    @staticmethod
    def _validate_coordinates(latitude: float, longitude: float) -> None:
        if latitude is None or not -90 <= latitude <= 90:
            raise ValidationError(f"Latitude must be between -90 and 90: {latitude}")
        if longitude is None or not -180 <= longitude <= 180:
            raise ValidationError(f"Longitude must be between -180 and 180: {longitude}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Location):
            return False
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __str__(self) -> str:
        return f"Location({self._id}, {self._code}, {self._available_slots}/{self._total_slots})"
