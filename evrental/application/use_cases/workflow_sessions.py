from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from evrental.application.ports.booking_service import BookingServicePort
from evrental.application.ports.session_store import WorkflowSessionStorePort
from evrental.application.use_cases.booking_workflow import BookingWorkflow
from evrental.domain.entities.booking import Booking

WorkflowFactory = Callable[[Booking], BookingWorkflow]


@dataclass
class WorkflowSessionManager:
    """Hands out one workflow per booking, always synced to the latest booking record."""

    store: WorkflowSessionStorePort
    bookings: BookingServicePort
    factory: WorkflowFactory

    async def open(self, booking_id: str) -> BookingWorkflow:
        booking = await self.bookings.get_booking(booking_id)
        workflow = self.store.get(booking_id)
        if workflow is None:
            workflow = self.factory(booking)
            self.store.put(booking_id, workflow)
            logging.getLogger(__name__).info("Workflow session opened", extra={"booking_id": booking_id})
        else:
            workflow.load_booking(booking)
        return workflow

    def close(self, booking_id: str) -> bool:
        closed = self.store.discard(booking_id) is not None
        if closed:
            logging.getLogger(__name__).info("Workflow session closed", extra={"booking_id": booking_id})
        return closed
