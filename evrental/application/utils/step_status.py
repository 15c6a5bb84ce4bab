from __future__ import annotations

from evrental.application.exceptions import WorkflowValidationError
from evrental.domain.entities.booking import BookingStatus
from evrental.domain.entities.workflow_step import StepStatus

# Gaps leave room for several steps under one status (steps 2-4 are all "reserved").
LADDER_POSITIONS: dict[BookingStatus, int] = {
    BookingStatus.pending: 1,
    BookingStatus.reserved: 3,
    BookingStatus.active: 5,
    BookingStatus.returning: 6,
    BookingStatus.completed: 9,
    BookingStatus.cancelled: 0,
}


def ladder_position(status: BookingStatus | str) -> int:
    try:
        return LADDER_POSITIONS[BookingStatus(status)]
    except ValueError as e:
        raise WorkflowValidationError(f"Unknown booking status: {status!r}") from e


def step_status_of(current_status: BookingStatus | str, step_number: int) -> StepStatus:
    """
    Classify a workflow step against the booking's current status.

    A cancelled booking reads as upcoming on every step, including step 1 which
    position 0 alone would mark as current.
    """
    current = ladder_position(current_status)
    if current == LADDER_POSITIONS[BookingStatus.cancelled]:
        return StepStatus.upcoming
    if current >= step_number:
        return StepStatus.completed
    if current == step_number - 1:
        return StepStatus.current
    return StepStatus.upcoming
