"""Externally observable workflow state."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class WorkflowPhase(Enum):
    """Phase of a workflow run."""
    IDLE = "idle"
    UPLOADING = "uploading"
    UPLOADED = "uploaded"
    TRANSCRIBING = "transcribing"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (WorkflowPhase.DONE, WorkflowPhase.FAILED)


_FORWARD_ORDER = {
    WorkflowPhase.IDLE: 0,
    WorkflowPhase.UPLOADING: 1,
    WorkflowPhase.UPLOADED: 2,
    WorkflowPhase.TRANSCRIBING: 3,
    WorkflowPhase.DONE: 4,
}


def can_transition(current: WorkflowPhase, target: WorkflowPhase) -> bool:
    """Return True if moving from ``current`` to ``target`` goes forward."""
    if current.is_terminal:
        return False
    if target is WorkflowPhase.FAILED:
        return True
    return _FORWARD_ORDER[target] == _FORWARD_ORDER[current] + 1


@dataclass
class WorkflowState:
    """Single source of truth for one run, read by the presentation layer."""
    phase: WorkflowPhase = WorkflowPhase.IDLE
    progress_percent: int = 0
    result_text: Optional[str] = None
    error_message: Optional[str] = None
    source_url: Optional[str] = None
    run_id: int = 0

    @property
    def is_busy(self) -> bool:
        return self.phase in (
            WorkflowPhase.UPLOADING,
            WorkflowPhase.UPLOADED,
            WorkflowPhase.TRANSCRIBING,
        )
