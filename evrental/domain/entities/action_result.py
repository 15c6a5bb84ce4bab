from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ActionResult:
    status: str  # "ok", "error", "busy"
    operation: str
    message: str | None = None
    value: Any = None
    reason: str | None = None  # for errors: "service", "validation", "precondition"

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @staticmethod
    def success(operation: str, message: str | None = None, value: Any = None) -> "ActionResult":
        return ActionResult(status="ok", operation=operation, message=message, value=value)

    @staticmethod
    def failure(operation: str, message: str, reason: str = "service") -> "ActionResult":
        return ActionResult(status="error", operation=operation, message=message, reason=reason)

    @staticmethod
    def busy(operation: str) -> "ActionResult":
        return ActionResult(
            status="busy",
            operation=operation,
            message="Another action is still being submitted",
            reason="busy",
        )


@dataclass(frozen=True)
class WorkflowEvent:
    kind: str  # "completed", "failed", "refreshed"
    operation: str
    booking_id: str
    message: str | None = None
