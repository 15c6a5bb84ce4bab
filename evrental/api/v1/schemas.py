from __future__ import annotations

from pydantic import BaseModel

from evrental.domain.entities.action_result import ActionResult
from evrental.domain.entities.booking import BookingStatus
from evrental.domain.entities.refund_summary import RefundSummary, SettlementAction
from evrental.domain.entities.submission_state import SubmissionState
from evrental.domain.entities.workflow_step import StepStatus


class RefundSummarySchema(BaseModel):
    total_deposit: float
    late_fee: float
    refund_amount: float
    action: SettlementAction
    amount_due: float
    requires_proof_image: bool

    @classmethod
    def from_summary(cls, summary: RefundSummary) -> "RefundSummarySchema":
        return cls(
            total_deposit=summary.total_deposit,
            late_fee=summary.late_fee,
            refund_amount=summary.refund_amount,
            action=summary.action,
            amount_due=summary.amount_due,
            requires_proof_image=summary.requires_proof_image,
        )


class SubmissionStateSchema(BaseModel):
    loading: bool
    error: str | None = None
    success: str | None = None
    damage_report_submitted: bool
    post_rental_submitted: bool
    refund_summary: RefundSummarySchema | None = None
    show_refund_summary: bool

    @classmethod
    def from_state(cls, state: SubmissionState) -> "SubmissionStateSchema":
        return cls(
            loading=state.loading,
            error=state.error,
            success=state.success,
            damage_report_submitted=state.damage_report_submitted,
            post_rental_submitted=state.post_rental_submitted,
            refund_summary=(
                RefundSummarySchema.from_summary(state.refund_summary) if state.refund_summary else None
            ),
            show_refund_summary=state.show_refund_summary,
        )


class WorkflowStepSchema(BaseModel):
    number: int
    label: str
    status: BookingStatus
    description: str
    action: bool | None = None
    step_status: StepStatus


class WorkflowViewSchema(BaseModel):
    booking_id: str
    status: BookingStatus
    contract_url: str | None = None
    has_contract: bool
    deposit_amount: float
    currency: str
    steps: list[WorkflowStepSchema]
    state: SubmissionStateSchema


class ActionResultSchema(BaseModel):
    status: str
    operation: str
    message: str | None = None
    reason: str | None = None

    @classmethod
    def from_result(cls, result: ActionResult) -> "ActionResultSchema":
        return cls(
            status=result.status,
            operation=result.operation,
            message=result.message,
            reason=result.reason,
        )


class ActionResponseSchema(BaseModel):
    result: ActionResultSchema
    state: SubmissionStateSchema
