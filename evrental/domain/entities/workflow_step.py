from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from evrental.domain.entities.booking import BookingStatus


class StepStatus(str, Enum):
    completed = "completed"
    current = "current"
    upcoming = "upcoming"


@dataclass(frozen=True)
class WorkflowStep:
    number: int
    label: str
    status: BookingStatus
    description: str
    action: bool | None = None  # evaluated per booking, None for steps with nothing to do
