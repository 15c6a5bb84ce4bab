"""
Tests for the booking status ladder.
"""

from __future__ import annotations

import pytest

from evrental.application.exceptions import WorkflowValidationError
from evrental.application.utils.step_status import LADDER_POSITIONS, ladder_position, step_status_of
from evrental.domain.entities.booking import BookingStatus
from evrental.domain.entities.workflow_step import StepStatus

LADDER_ORDER = [
    BookingStatus.pending,
    BookingStatus.reserved,
    BookingStatus.active,
    BookingStatus.returning,
    BookingStatus.completed,
]


def test_pending_booking_steps():
    """Pending sits at position 1: step 1 done, step 2 next, step 3 later."""
    assert step_status_of("pending", 1) == StepStatus.completed
    assert step_status_of("pending", 2) == StepStatus.current
    assert step_status_of("pending", 3) == StepStatus.upcoming


def test_returning_booking_steps():
    assert step_status_of(BookingStatus.returning, 6) == StepStatus.completed
    assert step_status_of(BookingStatus.returning, 7) == StepStatus.current
    assert step_status_of(BookingStatus.returning, 8) == StepStatus.upcoming


def test_completed_booking_marks_every_step_completed():
    assert all(step_status_of("completed", n) == StepStatus.completed for n in range(1, 9))


def test_cancelled_booking_shows_every_step_upcoming():
    statuses = [step_status_of("cancelled", n) for n in range(1, 9)]
    assert statuses == [StepStatus.upcoming] * 8


def test_no_step_completed_beyond_ladder_position():
    for status in LADDER_ORDER:
        position = LADDER_POSITIONS[status]
        for step in range(1, 9):
            if step > position:
                assert step_status_of(status, step) != StepStatus.completed


def test_at_most_one_current_step_per_status():
    for status in LADDER_ORDER:
        current = [n for n in range(1, 9) if step_status_of(status, n) == StepStatus.current]
        assert len(current) <= 1


def test_completed_steps_grow_along_the_ladder():
    counts = [
        sum(1 for n in range(1, 9) if step_status_of(status, n) == StepStatus.completed)
        for status in LADDER_ORDER
    ]
    assert counts == sorted(counts)


def test_repeated_evaluation_is_stable():
    first = [step_status_of(s, n) for s in LADDER_ORDER for n in range(1, 9)]
    second = [step_status_of(s, n) for s in LADDER_ORDER for n in range(1, 9)]
    assert first == second


def test_unknown_status_is_rejected():
    with pytest.raises(WorkflowValidationError):
        ladder_position("expired")


def test_unknown_status_error_keeps_enum_cause():
    with pytest.raises(WorkflowValidationError) as exc_info:
        ladder_position("teleported")
    assert isinstance(exc_info.value.__cause__, ValueError)
