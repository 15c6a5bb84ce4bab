from abc import ABC, abstractmethod

from evrental.domain.entities.inspection import DamageReport, ServiceAck


class DamageReportServicePort(ABC):
    @abstractmethod
    async def submit(self, booking_id: str, report: DamageReport) -> ServiceAck:
        raise NotImplementedError
