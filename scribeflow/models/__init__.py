"""Data models for the ScribeFlow application."""

from .media import MediaFile, UploadProgress
from .transcription import (
    TranscriptionStatus,
    TranscriptionJobHandle,
    TranscriptionResult,
    TranscriptResponse,
)
from .workflow import WorkflowPhase, WorkflowState, can_transition

__all__ = [
    "MediaFile",
    "UploadProgress",
    "TranscriptionStatus",
    "TranscriptionJobHandle",
    "TranscriptionResult",
    "TranscriptResponse",
    "WorkflowPhase",
    "WorkflowState",
    "can_transition",
]
