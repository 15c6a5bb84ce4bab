from __future__ import annotations

import logging

from evrental.application.use_cases.booking_workflow import BookingWorkflow
from evrental.application.use_cases.workflow_sessions import WorkflowSessionManager
from evrental.core.config import settings
from evrental.domain.entities.booking import Booking
from evrental.infrastructure.mock.memory_backend import MemoryRentalBackend
from evrental.infrastructure.rental_api.rental_api_client import RentalApiClient
from evrental.infrastructure.store.memory_store import MemoryWorkflowSessionStore


_backend: MemoryRentalBackend | RentalApiClient | None = None
_session_store: MemoryWorkflowSessionStore | None = None
_session_manager: WorkflowSessionManager | None = None


def get_rental_backend() -> MemoryRentalBackend | RentalApiClient:
    global _backend
    if _backend is None:
        logger = logging.getLogger(__name__)
        if settings.ENV.lower() in {"dev", "local"}:
            logger.info("Using MemoryRentalBackend (ENV=%s)", settings.ENV)
            _backend = MemoryRentalBackend(
                late_fee=settings.MOCK_LATE_FEE,
                deposit_amount=settings.MOCK_DEPOSIT_AMOUNT,
            )
        else:
            logger.info("Using RentalApiClient base_url=%s", settings.RENTAL_API_BASE_URL)
            _backend = RentalApiClient()
    return _backend


def get_session_store() -> MemoryWorkflowSessionStore:
    global _session_store
    if _session_store is None:
        _session_store = MemoryWorkflowSessionStore()
    return _session_store


def build_workflow(booking: Booking) -> BookingWorkflow:
    backend = get_rental_backend()
    logger = logging.getLogger(__name__)

    def on_update() -> None:
        logger.info("Booking refresh requested", extra={"booking_id": booking.id})

    return BookingWorkflow(
        booking=booking,
        contracts=backend,
        inspections=backend,
        damage_reports=backend,
        refunds=backend,
        bookings=backend,
        on_update=on_update,
        success_delay=settings.WORKFLOW_SUCCESS_DELAY_SECONDS,
        chain_delay=settings.WORKFLOW_CHAIN_DELAY_SECONDS,
        enforce_preconditions=settings.WORKFLOW_ENFORCE_PRECONDITIONS,
    )


def get_session_manager() -> WorkflowSessionManager:
    global _session_manager
    if _session_manager is None:
        _session_manager = WorkflowSessionManager(
            store=get_session_store(),
            bookings=get_rental_backend(),
            factory=build_workflow,
        )
    return _session_manager


async def shutdown() -> None:
    global _backend, _session_store, _session_manager
    if isinstance(_backend, RentalApiClient):
        await _backend.aclose()
    _backend = None
    _session_store = None
    _session_manager = None
