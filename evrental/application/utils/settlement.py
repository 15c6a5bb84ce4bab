from __future__ import annotations

from evrental.application.exceptions import WorkflowValidationError
from evrental.domain.entities.refund_summary import RefundSummary, RefundTotals


def compute_settlement(total_deposit: float, late_fee: float) -> RefundSummary:
    """
    Decide between refunding the renter and charging them extra.

    Amounts are used as given; rounding and currency formatting belong to the caller.
    """
    if total_deposit < 0:
        raise WorkflowValidationError(f"total_deposit must be >= 0, got {total_deposit}")
    if late_fee < 0:
        raise WorkflowValidationError(f"late_fee must be >= 0, got {late_fee}")
    return RefundSummary(
        total_deposit=total_deposit,
        late_fee=late_fee,
        refund_amount=total_deposit - late_fee,
    )


def settle_totals(totals: RefundTotals) -> RefundSummary:
    return compute_settlement(totals.total_deposit, totals.late_fee)
