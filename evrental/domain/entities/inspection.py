from __future__ import annotations

from dataclasses import dataclass, field

from evrental.domain.entities.upload import UploadedFile


@dataclass(frozen=True)
class ConditionReport:
    battery_level: float
    mileage: float
    photos: tuple[UploadedFile, ...] = ()


@dataclass(frozen=True)
class DamageReport:
    description: str
    estimated_cost: float | None = None
    photos: tuple[UploadedFile, ...] = ()


@dataclass(frozen=True)
class RefundInstruction:
    proof_image: UploadedFile | None = None
    notes: str | None = None


@dataclass(frozen=True)
class AdditionalPayment:
    amount: float
    proof_image: UploadedFile


@dataclass(frozen=True)
class ServiceAck:
    message: str | None = None
    data: dict = field(default_factory=dict)
