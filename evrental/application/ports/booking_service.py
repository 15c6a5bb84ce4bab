from __future__ import annotations

from abc import ABC, abstractmethod

from evrental.domain.entities.booking import Booking
from evrental.domain.entities.inspection import ServiceAck


class BookingServicePort(ABC):
    @abstractmethod
    async def get_booking(self, booking_id: str) -> Booking:
        """Fetch the authoritative booking record."""
        raise NotImplementedError

    @abstractmethod
    async def start(self, booking_id: str) -> ServiceAck:
        """Explicitly start a reserved booking."""
        raise NotImplementedError
