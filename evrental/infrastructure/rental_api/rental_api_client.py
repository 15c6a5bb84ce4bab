from __future__ import annotations

import logging
from typing import Any

import httpx

from evrental.application.exceptions import ServiceError
from evrental.application.ports.booking_service import BookingServicePort
from evrental.application.ports.contract_service import ContractServicePort
from evrental.application.ports.damage_report_service import DamageReportServicePort
from evrental.application.ports.inspection_service import InspectionServicePort
from evrental.application.ports.refund_service import RefundServicePort
from evrental.core.config import settings
from evrental.domain.entities.booking import Booking, BookingStatus, ContractRef, Deposit
from evrental.domain.entities.inspection import (
    AdditionalPayment,
    ConditionReport,
    DamageReport,
    RefundInstruction,
    ServiceAck,
)
from evrental.domain.entities.refund_summary import RefundTotals
from evrental.domain.entities.upload import UploadedFile

# Back-end statuses that the workflow treats as a terminal deviation
_TERMINAL_ALIASES = {"expired": BookingStatus.cancelled}


class RentalApiClient(
    BookingServicePort,
    ContractServicePort,
    InspectionServicePort,
    DamageReportServicePort,
    RefundServicePort,
):
    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or settings.RENTAL_API_BASE_URL).rstrip("/")
        headers = {"Accept": "application/json"}
        api_token = token if token is not None else settings.RENTAL_API_TOKEN
        if api_token:
            headers["Authorization"] = f"Bearer {api_token}"
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=timeout or settings.RENTAL_API_TIMEOUT_SECONDS,
            transport=transport,
        )
        self._logger = logging.getLogger(__name__)

    async def aclose(self) -> None:
        await self._client.aclose()

    # BookingServicePort

    async def get_booking(self, booking_id: str) -> Booking:
        body = await self._request("GET", f"/bookings/{booking_id}", booking_id=booking_id)
        return parse_booking(body.get("data") or body)

    async def start(self, booking_id: str) -> ServiceAck:
        return self._ack(await self._request("POST", self._staff_path(booking_id, "start"), booking_id=booking_id))

    # ContractServicePort

    async def upload(self, booking_id: str, file: UploadedFile) -> ServiceAck:
        body = await self._request(
            "POST",
            self._staff_path(booking_id, "contract"),
            booking_id=booking_id,
            files=[("contract", file.as_multipart())],
        )
        return self._ack(body)

    async def delete(self, booking_id: str) -> ServiceAck:
        return self._ack(await self._request("DELETE", self._staff_path(booking_id, "contract"), booking_id=booking_id))

    # InspectionServicePort

    async def log_pre_rental(self, booking_id: str, report: ConditionReport) -> ServiceAck:
        body = await self._request(
            "POST",
            self._staff_path(booking_id, "pre-rental"),
            booking_id=booking_id,
            data=_condition_fields(report),
            files=[("damagePhotos", photo.as_multipart()) for photo in report.photos],
        )
        return self._ack(body)

    async def log_post_rental(self, booking_id: str, report: ConditionReport) -> ServiceAck:
        body = await self._request(
            "POST",
            self._staff_path(booking_id, "return"),
            booking_id=booking_id,
            data=_condition_fields(report),
            files=[("dashboardPhotos", photo.as_multipart()) for photo in report.photos],
        )
        return self._ack(body)

    # DamageReportServicePort

    async def submit(self, booking_id: str, report: DamageReport) -> ServiceAck:
        data = {"description": report.description}
        if report.estimated_cost is not None:
            data["estimatedCost"] = str(report.estimated_cost)
        body = await self._request(
            "POST",
            self._staff_path(booking_id, "damage-report"),
            booking_id=booking_id,
            data=data,
            files=[("photos", photo.as_multipart()) for photo in report.photos],
        )
        return self._ack(body)

    # RefundServicePort

    async def get_summary(self, booking_id: str) -> RefundTotals:
        body = await self._request("GET", self._staff_path(booking_id, "refund-summary"), booking_id=booking_id)
        data = body.get("data") or {}
        try:
            totals = RefundTotals(
                total_deposit=float(data["totalDeposit"]),
                late_fee=float(data["lateFee"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            self._logger.error(
                "Refund summary response is malformed",
                extra={"booking_id": booking_id, "data": data},
            )
            raise ServiceError("Refund summary response is malformed") from e

        reported = _float_or_none(data.get("refundAmount"))
        if reported is not None and reported != totals.total_deposit - totals.late_fee:
            self._logger.warning(
                "Refund amount from back end differs from deposit minus fees",
                extra={"booking_id": booking_id, "reported": data.get("refundAmount")},
            )
        return totals

    async def refund(self, booking_id: str, instruction: RefundInstruction) -> ServiceAck:
        data = {"notes": instruction.notes} if instruction.notes else None
        files = [("proofImage", instruction.proof_image.as_multipart())] if instruction.proof_image else None
        body = await self._request(
            "POST",
            self._staff_path(booking_id, "refund"),
            booking_id=booking_id,
            data=data,
            files=files,
        )
        return self._ack(body)

    async def pay_additional(self, booking_id: str, payment: AdditionalPayment) -> ServiceAck:
        body = await self._request(
            "POST",
            self._staff_path(booking_id, "pay-additional"),
            booking_id=booking_id,
            data={"amount": str(payment.amount)},
            files=[("proofImage", payment.proof_image.as_multipart())],
        )
        return self._ack(body)

    # transport

    def _staff_path(self, booking_id: str, action: str) -> str:
        return f"/staff/bookings/{booking_id}/{action}"

    async def _request(self, method: str, path: str, booking_id: str, **kwargs: Any) -> dict[str, Any]:
        kwargs = {k: v for k, v in kwargs.items() if v}
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            self._logger.error(
                "Rental API request failed",
                extra={"booking_id": booking_id, "path": path, "error": str(e)},
            )
            raise ServiceError(None) from e

        body = _json_or_empty(resp)
        if resp.status_code >= 400 or body.get("success") is False:
            message = _error_message(body)
            self._logger.error(
                "Rental API rejected request",
                extra={
                    "booking_id": booking_id,
                    "path": path,
                    "http_status": resp.status_code,
                    "reason": message,
                },
            )
            raise ServiceError(message, resp.status_code)
        return body

    def _ack(self, body: dict[str, Any]) -> ServiceAck:
        data = body.get("data")
        return ServiceAck(message=body.get("message"), data=data if isinstance(data, dict) else {})


def _json_or_empty(resp: httpx.Response) -> dict[str, Any]:
    try:
        body = resp.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _float_or_none(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _error_message(body: dict[str, Any]) -> str | None:
    error = body.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    message = body.get("message")
    return str(message) if message else None


def _condition_fields(report: ConditionReport) -> dict[str, str]:
    return {"batteryLevel": str(report.battery_level), "mileage": str(report.mileage)}


def parse_booking(payload: dict[str, Any]) -> Booking:
    raw_status = str(payload.get("status") or "pending").lower()
    try:
        status = _TERMINAL_ALIASES.get(raw_status) or BookingStatus(raw_status)
    except ValueError as e:
        raise ServiceError(f"Unknown booking status: {raw_status}") from e

    deposit_raw = payload.get("deposit") or {}
    deposit = Deposit(
        amount=float(deposit_raw.get("amount") or 0),
        currency=deposit_raw.get("currency") or "VND",
        provider_ref=deposit_raw.get("providerRef"),
        status=deposit_raw.get("status") or "none",
    )

    contract_raw = payload.get("contract")
    contract = None
    if contract_raw:
        contract = ContractRef(id=str(contract_raw.get("_id") or contract_raw.get("id") or ""), url=contract_raw.get("url"))

    return Booking(
        id=str(payload.get("_id") or payload.get("id") or payload.get("bookingId")),
        status=status,
        deposit=deposit,
        contract=contract,
    )
