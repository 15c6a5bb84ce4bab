from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class BookingStatus(str, Enum):
    pending = "pending"
    reserved = "reserved"
    active = "active"
    returning = "returning"
    completed = "completed"
    cancelled = "cancelled"


@dataclass(frozen=True)
class Deposit:
    amount: float = 0
    currency: str = "VND"
    provider_ref: str | None = None
    status: str = "none"  # "none", "pending", "captured", "refunded", ...


@dataclass(frozen=True)
class ContractRef:
    id: str
    url: str | None = None


@dataclass(frozen=True)
class Booking:
    id: str
    status: BookingStatus = BookingStatus.pending
    deposit: Deposit = Deposit()
    contract: ContractRef | None = None

    @property
    def has_contract(self) -> bool:
        return self.contract is not None
