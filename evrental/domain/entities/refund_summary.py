from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SettlementAction(str, Enum):
    refund = "refund"
    pay_additional = "pay_additional"
    none = "none"


@dataclass(frozen=True)
class RefundTotals:
    """Raw figures reported by the refund service."""

    total_deposit: float
    late_fee: float


@dataclass(frozen=True)
class RefundSummary:
    total_deposit: float
    late_fee: float
    refund_amount: float  # > 0 refund owed to renter, < 0 renter owes, 0 settled

    @property
    def action(self) -> SettlementAction:
        if self.refund_amount > 0:
            return SettlementAction.refund
        if self.refund_amount < 0:
            return SettlementAction.pay_additional
        return SettlementAction.none

    @property
    def amount_due(self) -> float:
        return abs(self.refund_amount) if self.refund_amount < 0 else 0

    @property
    def requires_proof_image(self) -> bool:
        return self.action is SettlementAction.pay_additional
