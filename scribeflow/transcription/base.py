"""Abstract base classes for transcription providers."""

from abc import ABC, abstractmethod
import logging

from ..models.transcription import TranscriptResponse

logger = logging.getLogger(__name__)


class AbstractTranscriptionProvider(ABC):
    """Abstract base class for remote transcription services."""

    @abstractmethod
    async def create_transcript(self, audio_url: str) -> str:
        """Ask the provider to transcribe the audio at ``audio_url``.

        Returns:
            Provider job id

        Raises:
            ProviderRequestError: On a non-success response or network failure
        """
        pass

    @abstractmethod
    async def get_transcript(self, job_id: str) -> TranscriptResponse:
        """Fetch the current status of a job.

        Raises:
            ProviderRequestError: On a non-success response or network failure
        """
        pass
