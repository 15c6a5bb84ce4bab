from __future__ import annotations

from dataclasses import replace

from evrental.domain.entities.refund_summary import RefundSummary
from evrental.domain.entities.submission_state import SubmissionState


def begin_submission(state: SubmissionState, clear_success: bool = True) -> SubmissionState:
    """Enter the submitting state, dropping the previous outcome."""
    return replace(
        state,
        loading=True,
        error=None,
        success=None if clear_success else state.success,
    )


def finish_submission(state: SubmissionState) -> SubmissionState:
    return replace(state, loading=False)


def with_error(state: SubmissionState, message: str) -> SubmissionState:
    return replace(state, error=message)


def with_success(state: SubmissionState, message: str) -> SubmissionState:
    return replace(state, success=message)


def with_refund_summary(state: SubmissionState, summary: RefundSummary) -> SubmissionState:
    return replace(state, refund_summary=summary, show_refund_summary=True)


def hide_refund_summary(state: SubmissionState) -> SubmissionState:
    return replace(state, show_refund_summary=False)


def reset_submission_state() -> SubmissionState:
    """Fresh state for a new booking session."""
    return SubmissionState()
