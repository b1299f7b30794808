"""Custom exceptions for the ScribeFlow application."""

from enum import Enum
from typing import Optional


class ScribeFlowError(Exception):
    """Base class for exceptions in this package."""
    pass


class ConfigurationError(ScribeFlowError):
    """Exception raised for errors in configuration loading."""
    pass


class RejectionReason(Enum):
    """Why a candidate file was refused before a run started."""
    NO_FILE_SELECTED = "no_file_selected"
    MULTIPLE_FILES_NOT_ALLOWED = "multiple_files_not_allowed"
    UNSUPPORTED_TYPE = "unsupported_type"
    TOO_LARGE = "too_large"


class ValidationError(ScribeFlowError):
    """Exception raised when a candidate file is rejected."""

    def __init__(self, reason: RejectionReason, message: str):
        super().__init__(message)
        self.reason = reason


class UploadError(ScribeFlowError):
    """Exception raised when the transfer to the blob store fails."""
    pass


class SubmissionError(ScribeFlowError):
    """Exception raised when the transcription job could not be created."""
    pass


class PollError(ScribeFlowError):
    """Exception raised when polling hits an error status or a permanent failure."""
    pass


class TranscriptionTimeoutError(ScribeFlowError):
    """Exception raised when no terminal status arrives before the deadline."""
    pass


class ProviderRequestError(ScribeFlowError):
    """Exception raised by provider adapters for a failed HTTP exchange.

    ``status`` is None for network-level failures (connection reset, DNS,
    client timeout). ``permanent`` overrides the status-based classification
    for failures that retrying cannot fix, such as an unreadable body.
    """

    PERMANENT_STATUSES = frozenset({400, 401, 403, 404})

    def __init__(self, message: str, status: Optional[int] = None, permanent: Optional[bool] = None):
        super().__init__(message)
        self.status = status
        self._permanent = permanent

    @property
    def is_permanent(self) -> bool:
        if self._permanent is not None:
            return self._permanent
        return self.status in self.PERMANENT_STATUSES
