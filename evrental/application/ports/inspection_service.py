from __future__ import annotations

from abc import ABC, abstractmethod

from evrental.domain.entities.inspection import ConditionReport, ServiceAck


class InspectionServicePort(ABC):
    @abstractmethod
    async def log_pre_rental(self, booking_id: str, report: ConditionReport) -> ServiceAck:
        """
        Record vehicle condition before hand-over.

        The back end is expected to move the booking from "reserved" to "active".
        """
        raise NotImplementedError

    @abstractmethod
    async def log_post_rental(self, booking_id: str, report: ConditionReport) -> ServiceAck:
        """Record vehicle condition on return."""
        raise NotImplementedError
