from __future__ import annotations

from abc import ABC, abstractmethod

from evrental.application.use_cases.booking_workflow import BookingWorkflow


class WorkflowSessionStorePort(ABC):
    @abstractmethod
    def get(self, booking_id: str) -> BookingWorkflow | None:
        raise NotImplementedError

    @abstractmethod
    def put(self, booking_id: str, workflow: BookingWorkflow) -> None:
        raise NotImplementedError

    @abstractmethod
    def discard(self, booking_id: str) -> BookingWorkflow | None:
        """Remove the session for a booking. Returns the removed workflow, if any."""
        raise NotImplementedError
