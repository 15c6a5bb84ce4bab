from __future__ import annotations

from abc import ABC, abstractmethod

from evrental.domain.entities.inspection import AdditionalPayment, RefundInstruction, ServiceAck
from evrental.domain.entities.refund_summary import RefundTotals


class RefundServicePort(ABC):
    @abstractmethod
    async def get_summary(self, booking_id: str) -> RefundTotals:
        """
        Fetch the settlement figures for a returned booking.

        Returns:
            RefundTotals with the captured deposit and the accumulated late fee
            (damage costs already folded in by the back end).
        """
        raise NotImplementedError

    @abstractmethod
    async def refund(self, booking_id: str, instruction: RefundInstruction) -> ServiceAck:
        raise NotImplementedError

    @abstractmethod
    async def pay_additional(self, booking_id: str, payment: AdditionalPayment) -> ServiceAck:
        raise NotImplementedError
