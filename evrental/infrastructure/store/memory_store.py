from __future__ import annotations

from collections import OrderedDict

from evrental.application.ports.session_store import WorkflowSessionStorePort
from evrental.application.use_cases.booking_workflow import BookingWorkflow


class MemoryWorkflowSessionStore(WorkflowSessionStorePort):
    def __init__(self, max_sessions: int = 200) -> None:
        self._sessions: OrderedDict[str, BookingWorkflow] = OrderedDict()
        self._max_sessions = max_sessions

    def get(self, booking_id: str) -> BookingWorkflow | None:
        workflow = self._sessions.get(booking_id)
        if workflow is not None:
            self._sessions.move_to_end(booking_id)
        return workflow

    def put(self, booking_id: str, workflow: BookingWorkflow) -> None:
        self._sessions[booking_id] = workflow
        self._sessions.move_to_end(booking_id)
        while len(self._sessions) > self._max_sessions:
            _, evicted = self._sessions.popitem(last=False)
            evicted.reset()

    def discard(self, booking_id: str) -> BookingWorkflow | None:
        workflow = self._sessions.pop(booking_id, None)
        if workflow is not None:
            workflow.reset()
        return workflow

    def __len__(self) -> int:
        return len(self._sessions)
