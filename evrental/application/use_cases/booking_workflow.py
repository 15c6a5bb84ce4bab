from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import replace
from typing import Any, Awaitable, Callable

from evrental.application.exceptions import ServiceError, WorkflowValidationError
from evrental.application.ports.booking_service import BookingServicePort
from evrental.application.ports.contract_service import ContractServicePort
from evrental.application.ports.damage_report_service import DamageReportServicePort
from evrental.application.ports.inspection_service import InspectionServicePort
from evrental.application.ports.refund_service import RefundServicePort
from evrental.application.utils.settlement import settle_totals
from evrental.application.utils.state_helpers import (
    begin_submission,
    finish_submission,
    hide_refund_summary,
    reset_submission_state,
    with_error,
    with_refund_summary,
    with_success,
)
from evrental.domain.entities.action_result import ActionResult, WorkflowEvent
from evrental.domain.entities.booking import Booking, BookingStatus
from evrental.domain.entities.inspection import (
    AdditionalPayment,
    ConditionReport,
    DamageReport,
    RefundInstruction,
    ServiceAck,
)
from evrental.domain.entities.submission_state import SubmissionState
from evrental.domain.entities.upload import UploadedFile

PAYMENT_VALIDATION_MESSAGE = "Please enter amount and select proof image"

UpdateCallback = Callable[[], Any]
EventListener = Callable[[WorkflowEvent], None]


class BookingWorkflow:
    """
    Drives the staff actions for one booking and keeps the shared submission state.

    Each operation runs Idle -> Submitting -> Succeeded/Failed -> Idle. Only one
    operation may be submitting at a time; a second call while ``loading`` is set
    is rejected with a ``busy`` result and leaves the state untouched.

    After a successful mutation the success message stays visible for
    ``success_delay`` seconds, then it is cleared and ``on_update`` is called so the
    host can re-fetch the booking. A damage report additionally re-fetches the
    settlement summary once ``chain_delay`` has passed.
    """

    def __init__(
        self,
        booking: Booking,
        contracts: ContractServicePort,
        inspections: InspectionServicePort,
        damage_reports: DamageReportServicePort,
        refunds: RefundServicePort,
        on_update: UpdateCallback | None = None,
        bookings: BookingServicePort | None = None,
        success_delay: float = 2.0,
        chain_delay: float = 1.5,
        enforce_preconditions: bool = False,
    ) -> None:
        self._booking = booking
        self._contracts = contracts
        self._inspections = inspections
        self._damage_reports = damage_reports
        self._refunds = refunds
        self._bookings = bookings
        self._on_update = on_update
        self._success_delay = success_delay
        self._chain_delay = chain_delay
        self._enforce_preconditions = enforce_preconditions
        self._state = SubmissionState()
        self._pending: set[asyncio.Task] = set()
        self._listeners: list[EventListener] = []
        self._logger = logging.getLogger(__name__)

    @property
    def booking(self) -> Booking:
        return self._booking

    @property
    def state(self) -> SubmissionState:
        return self._state

    @property
    def has_pending_continuations(self) -> bool:
        return bool(self._pending)

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -- operations -----------------------------------------------------------

    async def upload_contract(self, file: UploadedFile) -> ActionResult:
        return await self._mutate(
            "upload_contract",
            lambda: self._contracts.upload(self._booking.id, file),
            success_message="Contract uploaded successfully",
            failure_message="Contract upload failed",
            allowed=lambda b: b.status == BookingStatus.reserved and not b.has_contract,
        )

    async def delete_contract(self) -> ActionResult:
        return await self._mutate(
            "delete_contract",
            lambda: self._contracts.delete(self._booking.id),
            success_message="Contract removed successfully",
            failure_message="Failed to remove contract",
            allowed=lambda b: b.status == BookingStatus.reserved and b.has_contract,
        )

    async def upload_pre_rental_condition(
        self,
        battery_level: float,
        mileage: float,
        damage_photos: list[UploadedFile] | None = None,
    ) -> ActionResult:
        report = ConditionReport(
            battery_level=battery_level,
            mileage=mileage,
            photos=tuple(damage_photos or ()),
        )
        return await self._mutate(
            "upload_pre_rental_condition",
            lambda: self._inspections.log_pre_rental(self._booking.id, report),
            success_message="Pre-rental condition recorded successfully",
            failure_message="Failed to record pre-rental condition",
            allowed=lambda b: b.status == BookingStatus.reserved and b.has_contract,
        )

    async def start_booking(self) -> ActionResult:
        if self._bookings is None:
            raise RuntimeError("start_booking requires a booking service")
        bookings = self._bookings
        return await self._mutate(
            "start_booking",
            lambda: bookings.start(self._booking.id),
            success_message="Booking start successful",
            failure_message="Failed to start booking",
            allowed=lambda b: b.status == BookingStatus.reserved and b.has_contract,
        )

    async def mark_returned(
        self,
        battery_level: float,
        mileage: float,
        dashboard_photos: list[UploadedFile] | None = None,
    ) -> ActionResult:
        report = ConditionReport(
            battery_level=battery_level,
            mileage=mileage,
            photos=tuple(dashboard_photos or ()),
        )
        return await self._mutate(
            "mark_returned",
            lambda: self._inspections.log_post_rental(self._booking.id, report),
            success_message="Vehicle return recorded successfully",
            failure_message="Failed to record vehicle return",
            allowed=lambda b: b.status == BookingStatus.active,
            before_success=lambda: replace(self._state, post_rental_submitted=True),
        )

    async def get_refund_summary(self) -> ActionResult:
        operation = "get_refund_summary"
        rejected = self._reject(operation, allowed=lambda b: b.status == BookingStatus.returning)
        if rejected is not None:
            return rejected

        # A read: the previous success message is kept and no refresh is scheduled.
        self._state = begin_submission(self._state, clear_success=False)
        self._log_started(operation)
        try:
            return await self._fetch_refund_summary(operation)
        finally:
            self._state = finish_submission(self._state)

    async def refund_deposit(
        self,
        proof_image: UploadedFile | None = None,
        notes: str | None = None,
    ) -> ActionResult:
        instruction = RefundInstruction(proof_image=proof_image, notes=notes or None)
        return await self._mutate(
            "refund_deposit",
            lambda: self._refunds.refund(self._booking.id, instruction),
            success_message="Refund processed successfully",
            failure_message="Refund processing failed",
            allowed=lambda b: self._state.refund_summary is not None
            and self._state.refund_summary.refund_amount >= 0,
            after_success=hide_refund_summary,
        )

    async def pay_additional(
        self,
        amount: float | None,
        proof_image: UploadedFile | None,
    ) -> ActionResult:
        operation = "pay_additional"
        rejected = self._reject(
            operation,
            allowed=lambda b: self._state.refund_summary is not None
            and self._state.refund_summary.refund_amount < 0,
        )
        if rejected is not None:
            return rejected

        if proof_image is None or not amount or amount <= 0:
            self._state = with_error(self._state, PAYMENT_VALIDATION_MESSAGE)
            self._logger.info("Additional payment rejected by validation", extra=self._extra(operation))
            return ActionResult.failure(operation, PAYMENT_VALIDATION_MESSAGE, reason="validation")

        payment = AdditionalPayment(amount=amount, proof_image=proof_image)
        return await self._mutate(
            operation,
            lambda: self._refunds.pay_additional(self._booking.id, payment),
            success_message="Additional payment processed successfully",
            failure_message="Additional payment failed",
            after_success=hide_refund_summary,
            check_preconditions=False,
        )

    async def damage_report(
        self,
        description: str,
        estimated_cost: float | None = None,
        photos: list[UploadedFile] | None = None,
    ) -> ActionResult:
        report = DamageReport(
            description=description,
            estimated_cost=estimated_cost,
            photos=tuple(photos or ()),
        )
        return await self._mutate(
            "damage_report",
            lambda: self._damage_reports.submit(self._booking.id, report),
            success_message="Damage report submitted successfully",
            failure_message="Damage report failed",
            allowed=lambda b: b.status == BookingStatus.returning,
            before_success=lambda: replace(self._state, damage_report_submitted=True),
            continuation=self._continue_after_damage_report,
        )

    # -- session control ------------------------------------------------------

    def dismiss_error(self) -> None:
        self._state = replace(self._state, error=None)

    def dismiss_success(self) -> None:
        self._state = replace(self._state, success=None)

    def reset(self, booking: Booking | None = None) -> None:
        """Drop all session state and pending continuations, optionally switching booking."""
        for task in list(self._pending):
            task.cancel()
        self._pending.clear()
        self._state = reset_submission_state()
        if booking is not None:
            self._booking = booking

    def load_booking(self, booking: Booking) -> None:
        if booking.id != self._booking.id:
            self.reset(booking)
        else:
            self._booking = booking

    async def drain(self) -> None:
        """Wait for scheduled refreshes and chained calls to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # -- internals ------------------------------------------------------------

    async def _mutate(
        self,
        operation: str,
        call: Callable[[], Awaitable[ServiceAck]],
        success_message: str,
        failure_message: str,
        allowed: Callable[[Booking], bool] | None = None,
        before_success: Callable[[], SubmissionState] | None = None,
        after_success: Callable[[SubmissionState], SubmissionState] | None = None,
        continuation: Callable[[], Awaitable[None]] | None = None,
        check_preconditions: bool = True,
    ) -> ActionResult:
        if check_preconditions:
            rejected = self._reject(operation, allowed=allowed)
            if rejected is not None:
                return rejected

        self._state = begin_submission(self._state)
        self._log_started(operation)
        try:
            ack = await call()
        except ServiceError as exc:
            return self._fail(operation, exc.message or failure_message)
        except Exception:
            self._logger.exception("Workflow action crashed", extra=self._extra(operation))
            raise
        finally:
            self._state = finish_submission(self._state)

        message = ack.message or success_message
        if before_success is not None:
            self._state = before_success()
        self._state = with_success(self._state, message)
        if after_success is not None:
            self._state = after_success(self._state)

        self._logger.info("Workflow action succeeded", extra=self._extra(operation))
        self._emit(WorkflowEvent(kind="completed", operation=operation, booking_id=self._booking.id, message=message))
        self._schedule(continuation() if continuation else self._refresh_after(operation, self._success_delay))
        return ActionResult.success(operation, message=message, value=ack.data or None)

    def _reject(self, operation: str, allowed: Callable[[Booking], bool] | None) -> ActionResult | None:
        if self._state.loading:
            self._logger.warning(
                "Workflow action ignored while another is in flight",
                extra={**self._extra(operation), "reason": "busy"},
            )
            return ActionResult.busy(operation)

        if self._enforce_preconditions and allowed is not None and not allowed(self._booking):
            status = BookingStatus(self._booking.status).value
            message = f"{operation} is not allowed while booking is {status}"
            self._state = with_error(self._state, message)
            self._logger.info(
                "Workflow action blocked by precondition",
                extra={**self._extra(operation), "reason": "precondition"},
            )
            return ActionResult.failure(operation, message, reason="precondition")
        return None

    def _fail(self, operation: str, message: str) -> ActionResult:
        self._state = with_error(self._state, message)
        self._logger.warning("Workflow action failed", extra={**self._extra(operation), "reason": message})
        self._emit(WorkflowEvent(kind="failed", operation=operation, booking_id=self._booking.id, message=message))
        return ActionResult.failure(operation, message)

    async def _refresh_after(self, operation: str, delay: float) -> None:
        await asyncio.sleep(delay)
        self._state = replace(self._state, success=None)
        await self._refresh(operation)

    async def _continue_after_damage_report(self) -> None:
        await self._refresh_after("damage_report", self._chain_delay)
        # Runs even while another action is submitting; the loading flag belongs to that action.
        await self._fetch_refund_summary("get_refund_summary")

    async def _fetch_refund_summary(self, operation: str) -> ActionResult:
        try:
            totals = await self._refunds.get_summary(self._booking.id)
            summary = settle_totals(totals)
        except ServiceError as exc:
            return self._fail(operation, exc.message or "Failed to fetch refund summary")
        except WorkflowValidationError as exc:
            return self._fail(operation, str(exc))
        except Exception:
            self._logger.exception("Workflow action crashed", extra=self._extra(operation))
            raise

        self._state = with_refund_summary(self._state, summary)
        self._logger.info(
            "Refund summary loaded",
            extra={**self._extra(operation), "refund_amount": summary.refund_amount},
        )
        return ActionResult.success(operation, value=summary)

    async def _refresh(self, operation: str) -> None:
        if self._bookings is not None:
            try:
                self._booking = await self._bookings.get_booking(self._booking.id)
            except ServiceError as exc:
                self._logger.warning(
                    "Booking refresh failed",
                    extra={**self._extra(operation), "reason": exc.message},
                )
        self._emit(WorkflowEvent(kind="refreshed", operation=operation, booking_id=self._booking.id))
        if self._on_update is None:
            return
        try:
            outcome = self._on_update()
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            self._logger.exception("on_update callback failed", extra=self._extra(operation))

    def _schedule(self, coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _emit(self, event: WorkflowEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                self._logger.exception("Workflow event listener failed", extra=self._extra(event.operation))

    def _log_started(self, operation: str) -> None:
        self._logger.info("Workflow action started", extra=self._extra(operation))

    def _extra(self, operation: str) -> dict[str, Any]:
        return {
            "booking_id": self._booking.id,
            "operation": operation,
            "status": BookingStatus(self._booking.status).value,
        }
