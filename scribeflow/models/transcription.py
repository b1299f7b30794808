"""Transcription-related data models."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class TranscriptionStatus(Enum):
    """Provider-side status of a transcription job."""
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (TranscriptionStatus.COMPLETED, TranscriptionStatus.ERROR)


@dataclass(frozen=True)
class TranscriptionJobHandle:
    """Identifies a submitted job."""
    job_id: str
    created_at: float  # Monotonic clock reading at submission


@dataclass(frozen=True)
class TranscriptionResult:
    """Terminal or intermediate outcome of a transcription job."""
    status: TranscriptionStatus
    text: Optional[str] = None
    error_message: Optional[str] = None

    def __post_init__(self):
        if self.status is TranscriptionStatus.COMPLETED and self.text is None:
            raise ValueError("A completed transcription must carry text")
        if self.status is TranscriptionStatus.ERROR and self.error_message is None:
            raise ValueError("A failed transcription must carry an error message")


class TranscriptResponse(BaseModel):
    """JSON body returned by the provider for a transcript resource."""
    model_config = ConfigDict(extra="ignore")

    id: str
    status: TranscriptionStatus
    text: Optional[str] = None
    error: Optional[str] = None

    def to_result(self) -> TranscriptionResult:
        if self.status is TranscriptionStatus.COMPLETED:
            return TranscriptionResult(status=self.status, text=self.text or "")
        if self.status is TranscriptionStatus.ERROR:
            return TranscriptionResult(
                status=self.status,
                error_message=self.error or "Transcription error",
            )
        return TranscriptionResult(status=self.status)
