from __future__ import annotations

from abc import ABC, abstractmethod

from evrental.domain.entities.inspection import ServiceAck
from evrental.domain.entities.upload import UploadedFile


class ContractServicePort(ABC):
    @abstractmethod
    async def upload(self, booking_id: str, file: UploadedFile) -> ServiceAck:
        """Attach a signed contract to the booking."""
        raise NotImplementedError

    @abstractmethod
    async def delete(self, booking_id: str) -> ServiceAck:
        """Remove the contract attached to the booking."""
        raise NotImplementedError
