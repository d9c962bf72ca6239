"""System clock and booking number generator."""

import secrets
import string
from datetime import datetime

from parkease.application.ports.system import BookingNumberGenerator, Clock
from parkease.domain.time import utcnow

_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits


class SystemClock(Clock):
    """Wall clock returning naive UTC."""

    def now(self) -> datetime:
        return utcnow()


class TimestampBookingNumberGenerator(BookingNumberGenerator):
    """Booking numbers of the form ``BK<epoch-ms><random suffix>``."""

    def __init__(self, clock: Clock = None, suffix_length: int = 9):
        self._clock = clock or SystemClock()
        self._suffix_length = suffix_length

    def next_booking_number(self) -> str:
        return f"BK{self._epoch_millis()}{self._suffix()}"

    def next_payment_reference(self) -> str:
        return f"PAY{self._epoch_millis()}{self._suffix()}"

    def _epoch_millis(self) -> int:
        return int((self._clock.now() - datetime(1970, 1, 1)).total_seconds() * 1000)

    def _suffix(self) -> str:
        return "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(self._suffix_length))
