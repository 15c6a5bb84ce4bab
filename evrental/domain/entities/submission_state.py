from __future__ import annotations

from dataclasses import dataclass

from evrental.domain.entities.refund_summary import RefundSummary


@dataclass(frozen=True)
class SubmissionState:
    loading: bool = False
    error: str | None = None
    success: str | None = None
    # Completion flags local to one workflow session
    damage_report_submitted: bool = False
    post_rental_submitted: bool = False
    refund_summary: RefundSummary | None = None
    show_refund_summary: bool = False
