from __future__ import annotations

from dataclasses import dataclass, replace

from evrental.application.utils.step_status import step_status_of
from evrental.domain.entities.booking import Booking, BookingStatus
from evrental.domain.entities.submission_state import SubmissionState
from evrental.domain.entities.workflow_step import StepStatus, WorkflowStep

WORKFLOW_STEPS: tuple[WorkflowStep, ...] = (
    WorkflowStep(1, "Renter creates booking", BookingStatus.pending, "Customer creates booking in the system"),
    WorkflowStep(2, "Renter pays deposit", BookingStatus.reserved, "Customer pays the deposit"),
    WorkflowStep(3, "Staff upload contract", BookingStatus.reserved, "Staff uploads signed contract"),
    WorkflowStep(
        4,
        "Staff record pre-rental",
        BookingStatus.reserved,
        "Staff records vehicle pre-rental condition (auto switches to active)",
    ),
    WorkflowStep(
        5,
        "Record vehicle return",
        BookingStatus.returning,
        "Record post-return condition (battery, mileage, damage photos)",
    ),
    WorkflowStep(6, "Staff damage report (optional)", BookingStatus.returning, "Staff reports damage if any"),
    WorkflowStep(7, "Check refund/payment", BookingStatus.returning, "Check refundable or payable amount"),
    WorkflowStep(8, "Completed", BookingStatus.completed, "Booking completed"),
)


@dataclass(frozen=True)
class EvaluatedStep:
    step: WorkflowStep
    step_status: StepStatus


def step_action(step_number: int, booking: Booking, state: SubmissionState) -> bool | None:
    status = booking.status
    if step_number == 3:
        return status == BookingStatus.reserved and not booking.has_contract
    if step_number == 4:
        return status == BookingStatus.reserved and booking.has_contract
    if step_number == 5:
        return status == BookingStatus.active and not state.post_rental_submitted
    if step_number == 6:
        return status == BookingStatus.returning and not state.damage_report_submitted
    if step_number == 7:
        return status == BookingStatus.returning
    return None


def evaluate_steps(booking: Booking, state: SubmissionState | None = None) -> list[EvaluatedStep]:
    """Replay the fixed step list against one booking."""
    state = state or SubmissionState()
    return [
        EvaluatedStep(
            step=replace(step, action=step_action(step.number, booking, state)),
            step_status=step_status_of(booking.status, step.number),
        )
        for step in WORKFLOW_STEPS
    ]
