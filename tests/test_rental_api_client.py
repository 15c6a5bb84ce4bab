"""
Tests for the REST adapter using httpx's mock transport.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest

from evrental.application.exceptions import ServiceError
from evrental.domain.entities.booking import BookingStatus
from evrental.domain.entities.inspection import AdditionalPayment, ConditionReport, RefundInstruction
from evrental.domain.entities.upload import UploadedFile
from evrental.infrastructure.rental_api.rental_api_client import RentalApiClient, parse_booking

PROOF = UploadedFile(filename="proof.jpg", content=b"\xff\xd8", content_type="image/jpeg")


def _client(handler) -> RentalApiClient:
    return RentalApiClient(
        base_url="https://rental.test/api",
        token="staff-token",
        timeout=5.0,
        transport=httpx.MockTransport(handler),
    )


def test_parse_booking_maps_back_end_payload():
    booking = parse_booking(
        {
            "_id": "665f",
            "status": "reserved",
            "deposit": {"amount": 500000, "currency": "VND", "providerRef": "payos_1", "status": "captured"},
            "contract": {"_id": "c9", "url": "https://cdn.test/c9.pdf"},
        }
    )
    assert booking.id == "665f"
    assert booking.status == BookingStatus.reserved
    assert booking.deposit.amount == 500000
    assert booking.deposit.provider_ref == "payos_1"
    assert booking.contract.url == "https://cdn.test/c9.pdf"


def test_parse_booking_treats_expired_as_cancelled():
    assert parse_booking({"_id": "1", "status": "expired"}).status == BookingStatus.cancelled


def test_parse_booking_rejects_unknown_status():
    with pytest.raises(ServiceError):
        parse_booking({"_id": "1", "status": "teleported"})


def test_get_summary_reads_totals():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(
            200,
            json={"success": True, "data": {"totalDeposit": 500000, "lateFee": 120000, "refundAmount": 380000}},
        )

    async def scenario():
        client = _client(handler)
        totals = await client.get_summary("bk_1")
        await client.aclose()
        return totals

    totals = asyncio.run(scenario())
    assert totals.total_deposit == 500000
    assert totals.late_fee == 120000
    assert seen["path"] == "/api/staff/bookings/bk_1/refund-summary"
    assert seen["auth"] == "Bearer staff-token"


def _summary_client(data) -> RentalApiClient:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": True, "data": data})

    return _client(handler)


@pytest.mark.parametrize(
    "data",
    [
        {"lateFee": 150000},
        {"totalDeposit": 500000},
        {"totalDeposit": None, "lateFee": 150000},
        {"totalDeposit": "lots", "lateFee": 150000},
    ],
)
def test_get_summary_rejects_missing_or_invalid_totals(data):
    """A summary without usable totals must not settle against a zero deposit or fee."""

    async def scenario():
        client = _summary_client(data)
        try:
            await client.get_summary("bk_1")
        finally:
            await client.aclose()

    with pytest.raises(ServiceError) as exc_info:
        asyncio.run(scenario())
    assert exc_info.value.message == "Refund summary response is malformed"


def test_get_summary_ignores_unreadable_refund_amount():
    async def scenario():
        client = _summary_client({"totalDeposit": 500000, "lateFee": 100, "refundAmount": "N/A"})
        totals = await client.get_summary("bk_1")
        await client.aclose()
        return totals

    totals = asyncio.run(scenario())
    assert totals.total_deposit == 500000
    assert totals.late_fee == 100


def test_error_body_message_becomes_service_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(409, json={"success": False, "message": "Booking is not active"})

    async def scenario():
        client = _client(handler)
        try:
            await client.log_post_rental("bk_1", ConditionReport(battery_level=50, mileage=10))
        finally:
            await client.aclose()

    with pytest.raises(ServiceError) as exc_info:
        asyncio.run(scenario())
    assert exc_info.value.message == "Booking is not active"
    assert exc_info.value.status_code == 409


def test_transport_error_has_no_message():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async def scenario():
        client = _client(handler)
        try:
            await client.delete("bk_1")
        finally:
            await client.aclose()

    with pytest.raises(ServiceError) as exc_info:
        asyncio.run(scenario())
    assert exc_info.value.message is None


def test_multipart_uploads_carry_files_and_fields():
    bodies: list[bytes] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(request.read())
        return httpx.Response(200, json={"success": True, "message": "Recorded"})

    async def scenario():
        client = _client(handler)
        ack = await client.pay_additional("bk_1", AdditionalPayment(amount=250000, proof_image=PROOF))
        refund_ack = await client.refund("bk_1", RefundInstruction(notes="cash"))
        await client.aclose()
        return ack, refund_ack

    ack, refund_ack = asyncio.run(scenario())
    assert ack.message == "Recorded"
    assert refund_ack.message == "Recorded"
    assert b'name="proofImage"; filename="proof.jpg"' in bodies[0]
    assert b"250000" in bodies[0]
    assert b"notes=cash" in bodies[1]
