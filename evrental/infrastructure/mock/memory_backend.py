from __future__ import annotations

import logging
from dataclasses import replace

from evrental.application.exceptions import ServiceError
from evrental.application.ports.booking_service import BookingServicePort
from evrental.application.ports.contract_service import ContractServicePort
from evrental.application.ports.damage_report_service import DamageReportServicePort
from evrental.application.ports.inspection_service import InspectionServicePort
from evrental.application.ports.refund_service import RefundServicePort
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


class MemoryRentalBackend(
    BookingServicePort,
    ContractServicePort,
    InspectionServicePort,
    DamageReportServicePort,
    RefundServicePort,
):
    """
    In-process stand-in for the rental back end.

    Applies the same status transitions the real service does: pre-rental or start
    moves reserved -> active, a recorded return moves active -> returning, and a
    refund or additional payment closes the booking.
    """

    def __init__(self, late_fee: float = 0, deposit_amount: float = 500000) -> None:
        self._bookings: dict[str, Booking] = {}
        self._late_fees: dict[str, float] = {}
        self._damage_costs: dict[str, float] = {}
        self._conditions: dict[str, dict[str, ConditionReport]] = {}
        self._default_late_fee = late_fee
        self._default_deposit = deposit_amount
        self._contract_seq = 0
        self.calls: list[tuple[str, str]] = []
        self._logger = logging.getLogger(__name__)

    def add_booking(
        self,
        booking_id: str,
        status: BookingStatus = BookingStatus.reserved,
        deposit_amount: float | None = None,
        late_fee: float | None = None,
        contract: ContractRef | None = None,
    ) -> Booking:
        amount = self._default_deposit if deposit_amount is None else deposit_amount
        booking = Booking(
            id=booking_id,
            status=status,
            deposit=Deposit(amount=amount, status="captured"),
            contract=contract,
        )
        self._bookings[booking_id] = booking
        self._late_fees[booking_id] = self._default_late_fee if late_fee is None else late_fee
        return booking

    def set_late_fee(self, booking_id: str, late_fee: float) -> None:
        self._late_fees[booking_id] = late_fee

    def condition(self, booking_id: str, phase: str) -> ConditionReport | None:
        return self._conditions.get(booking_id, {}).get(phase)

    async def get_booking(self, booking_id: str) -> Booking:
        self.calls.append(("get_booking", booking_id))
        return self._require(booking_id)

    async def start(self, booking_id: str) -> ServiceAck:
        self.calls.append(("start", booking_id))
        booking = self._require(booking_id, BookingStatus.reserved)
        if not booking.has_contract:
            raise ServiceError("Contract must be uploaded before starting the booking", 409)
        self._set_status(booking, BookingStatus.active)
        return ServiceAck(message="Booking started")

    async def upload(self, booking_id: str, file: UploadedFile) -> ServiceAck:
        self.calls.append(("upload_contract", booking_id))
        booking = self._require(booking_id, BookingStatus.reserved)
        if booking.has_contract:
            raise ServiceError("Contract already uploaded", 409)
        self._contract_seq += 1
        contract = ContractRef(
            id=f"mock_contract_{self._contract_seq}",
            url=f"memory://contracts/{booking_id}/{file.filename}",
        )
        self._bookings[booking_id] = replace(booking, contract=contract)
        self._logger.info("Mock contract stored", extra={"booking_id": booking_id, "contract_id": contract.id})
        return ServiceAck(message="Contract uploaded", data={"url": contract.url})

    async def delete(self, booking_id: str) -> ServiceAck:
        self.calls.append(("delete_contract", booking_id))
        booking = self._require(booking_id, BookingStatus.reserved)
        if not booking.has_contract:
            raise ServiceError("No contract to remove", 404)
        self._bookings[booking_id] = replace(booking, contract=None)
        return ServiceAck(message="Contract removed")

    async def log_pre_rental(self, booking_id: str, report: ConditionReport) -> ServiceAck:
        self.calls.append(("log_pre_rental", booking_id))
        booking = self._require(booking_id, BookingStatus.reserved)
        if not booking.has_contract:
            raise ServiceError("Contract must be uploaded before the pre-rental check", 409)
        self._conditions.setdefault(booking_id, {})["pre"] = report
        self._set_status(booking, BookingStatus.active)
        return ServiceAck(message=None)

    async def log_post_rental(self, booking_id: str, report: ConditionReport) -> ServiceAck:
        self.calls.append(("log_post_rental", booking_id))
        booking = self._require(booking_id, BookingStatus.active)
        self._conditions.setdefault(booking_id, {})["post"] = report
        self._set_status(booking, BookingStatus.returning)
        return ServiceAck(message=None)

    async def submit(self, booking_id: str, report: DamageReport) -> ServiceAck:
        self.calls.append(("damage_report", booking_id))
        self._require(booking_id, BookingStatus.returning)
        self._damage_costs[booking_id] = self._damage_costs.get(booking_id, 0) + (report.estimated_cost or 0)
        return ServiceAck(message=None)

    async def get_summary(self, booking_id: str) -> RefundTotals:
        self.calls.append(("get_refund_summary", booking_id))
        booking = self._require(booking_id, BookingStatus.returning)
        late_fee = self._late_fees.get(booking_id, 0) + self._damage_costs.get(booking_id, 0)
        return RefundTotals(total_deposit=booking.deposit.amount, late_fee=late_fee)

    async def refund(self, booking_id: str, instruction: RefundInstruction) -> ServiceAck:
        self.calls.append(("refund_deposit", booking_id))
        booking = self._require(booking_id, BookingStatus.returning)
        self._close(booking, deposit_status="refunded")
        return ServiceAck(message=None)

    async def pay_additional(self, booking_id: str, payment: AdditionalPayment) -> ServiceAck:
        self.calls.append(("pay_additional", booking_id))
        booking = self._require(booking_id, BookingStatus.returning)
        self._close(booking, deposit_status="captured")
        return ServiceAck(message=None, data={"amount": payment.amount})

    def _require(self, booking_id: str, status: BookingStatus | None = None) -> Booking:
        booking = self._bookings.get(booking_id)
        if booking is None:
            raise ServiceError("Booking not found", 404)
        if status is not None and booking.status != status:
            raise ServiceError(f"Booking is {booking.status.value}, expected {status.value}", 409)
        return booking

    def _set_status(self, booking: Booking, status: BookingStatus) -> None:
        self._bookings[booking.id] = replace(booking, status=status)
        self._logger.info(
            "Mock booking status changed",
            extra={"booking_id": booking.id, "status": status.value},
        )

    def _close(self, booking: Booking, deposit_status: str) -> None:
        closed = replace(
            booking,
            status=BookingStatus.completed,
            deposit=replace(booking.deposit, status=deposit_status),
        )
        self._bookings[booking.id] = closed
        self._logger.info("Mock booking completed", extra={"booking_id": booking.id})
