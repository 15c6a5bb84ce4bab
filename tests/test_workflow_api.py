"""
Tests for the staff workflow HTTP API.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from evrental.application.use_cases.booking_workflow import BookingWorkflow
from evrental.application.use_cases.workflow_sessions import WorkflowSessionManager
from evrental.domain.entities.booking import BookingStatus
from evrental.infrastructure.mock.memory_backend import MemoryRentalBackend
from evrental.infrastructure.store.memory_store import MemoryWorkflowSessionStore
from evrental.main import app
from evrental.wiring.dependencies import get_session_manager

PREFIX = "/api/v1/bookings"


@pytest.fixture
def backend() -> MemoryRentalBackend:
    return MemoryRentalBackend(deposit_amount=500000)


@pytest.fixture
def client(backend: MemoryRentalBackend):
    def factory(booking):
        return BookingWorkflow(
            booking=booking,
            contracts=backend,
            inspections=backend,
            damage_reports=backend,
            refunds=backend,
            bookings=backend,
            success_delay=0,
            # Keep the chained summary fetch out of the way of explicit requests
            chain_delay=60,
        )

    manager = WorkflowSessionManager(store=MemoryWorkflowSessionStore(), bookings=backend, factory=factory)
    app.dependency_overrides[get_session_manager] = lambda: manager
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_health(client: TestClient):
    assert client.get("/health").json() == {"status": "ok"}


def test_workflow_view_for_reserved_booking(client: TestClient, backend: MemoryRentalBackend):
    backend.add_booking("bk_1", status=BookingStatus.reserved)

    body = client.get(f"{PREFIX}/bk_1/workflow").json()

    assert body["status"] == "reserved"
    assert body["has_contract"] is False
    steps = {s["number"]: s for s in body["steps"]}
    assert len(steps) == 8
    assert steps[3]["action"] is True
    assert steps[4]["action"] is False
    assert steps[4]["step_status"] == "current"
    assert steps[5]["step_status"] == "upcoming"
    assert body["state"]["loading"] is False


def test_unknown_booking_returns_404(client: TestClient):
    response = client.get(f"{PREFIX}/missing/workflow")
    assert response.status_code == 404
    assert response.json()["detail"] == "Booking not found"


def test_rental_through_refund(client: TestClient, backend: MemoryRentalBackend):
    backend.add_booking("bk_2", status=BookingStatus.reserved, late_fee=150000)

    response = client.post(
        f"{PREFIX}/bk_2/workflow/contract",
        files={"file": ("contract.pdf", b"%PDF-1.4", "application/pdf")},
    )
    assert response.status_code == 200
    assert response.json()["result"]["message"] == "Contract uploaded"

    response = client.post(
        f"{PREFIX}/bk_2/workflow/pre-rental",
        data={"battery_level": "90", "mileage": "15000"},
        files=[("damage_photos", ("front.jpg", b"\xff\xd8", "image/jpeg"))],
    )
    assert response.status_code == 200
    assert response.json()["state"]["success"] == "Pre-rental condition recorded successfully"
    assert client.get(f"{PREFIX}/bk_2/workflow").json()["status"] == "active"

    response = client.post(f"{PREFIX}/bk_2/workflow/return", data={"battery_level": "25", "mileage": "15320"})
    assert response.status_code == 200
    assert response.json()["state"]["post_rental_submitted"] is True

    response = client.post(f"{PREFIX}/bk_2/workflow/refund-summary")
    summary = response.json()["state"]["refund_summary"]
    assert summary["refund_amount"] == 350000
    assert summary["action"] == "refund"
    assert response.json()["state"]["show_refund_summary"] is True

    response = client.post(f"{PREFIX}/bk_2/workflow/refund", data={"notes": "Bank transfer"})
    assert response.status_code == 200
    assert response.json()["state"]["show_refund_summary"] is False

    view = client.get(f"{PREFIX}/bk_2/workflow").json()
    assert view["status"] == "completed"
    assert all(s["step_status"] == "completed" for s in view["steps"])


def test_additional_payment_requires_proof(client: TestClient, backend: MemoryRentalBackend):
    backend.add_booking("bk_3", status=BookingStatus.returning, deposit_amount=200000, late_fee=450000)
    client.post(f"{PREFIX}/bk_3/workflow/refund-summary")

    response = client.post(f"{PREFIX}/bk_3/workflow/pay-additional", data={"amount": "250000"})
    assert response.status_code == 422
    assert response.json()["result"]["message"] == "Please enter amount and select proof image"
    assert ("pay_additional", "bk_3") not in backend.calls

    response = client.post(
        f"{PREFIX}/bk_3/workflow/pay-additional",
        data={"amount": "250000"},
        files={"proof_image": ("receipt.jpg", b"\xff\xd8", "image/jpeg")},
    )
    assert response.status_code == 200
    assert response.json()["result"]["message"] == "Additional payment processed successfully"


def test_damage_report_marks_submission(client: TestClient, backend: MemoryRentalBackend):
    backend.add_booking("bk_4", status=BookingStatus.returning)

    response = client.post(
        f"{PREFIX}/bk_4/workflow/damage-report",
        data={"description": "Cracked tail light", "estimated_cost": "80000"},
    )

    assert response.status_code == 200
    assert response.json()["state"]["damage_report_submitted"] is True
    steps = {s["number"]: s for s in client.get(f"{PREFIX}/bk_4/workflow").json()["steps"]}
    assert steps[6]["action"] is False

    assert client.delete(f"{PREFIX}/bk_4/workflow/session").status_code == 204
    assert client.get(f"{PREFIX}/bk_4/workflow").json()["state"]["damage_report_submitted"] is False


def test_back_end_rejection_maps_to_502(client: TestClient, backend: MemoryRentalBackend):
    backend.add_booking("bk_5", status=BookingStatus.reserved)

    response = client.delete(f"{PREFIX}/bk_5/workflow/contract")

    assert response.status_code == 502
    assert response.json()["result"]["message"] == "No contract to remove"
    assert response.json()["state"]["error"] == "No contract to remove"


def test_battery_level_out_of_range_is_rejected(client: TestClient, backend: MemoryRentalBackend):
    backend.add_booking("bk_6", status=BookingStatus.active)

    response = client.post(f"{PREFIX}/bk_6/workflow/return", data={"battery_level": "140", "mileage": "10"})

    assert response.status_code == 422
    assert ("log_post_rental", "bk_6") not in backend.calls


def test_settlement_preview(client: TestClient):
    body = client.get("/api/v1/settlement/preview", params={"total_deposit": 200000, "late_fee": 450000}).json()

    assert body["refund_amount"] == -250000
    assert body["action"] == "pay_additional"
    assert body["amount_due"] == 250000
    assert body["requires_proof_image"] is True
