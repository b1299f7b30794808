"""Abstract base classes for blob store backends."""

from abc import ABC, abstractmethod
from typing import AsyncIterator
import logging

from ..models.media import MediaFile, UploadProgress

logger = logging.getLogger(__name__)


class AbstractUploadHandle(ABC):
    """One in-flight transfer of a file to a destination key."""

    def __init__(self, key: str, media: MediaFile):
        self.key = key
        self.media = media

    @abstractmethod
    def send(self) -> AsyncIterator[UploadProgress]:
        """Transfer the file bytes.

        Yields:
            UploadProgress at whatever granularity the transport reports.
            Iteration ends once the object is fully stored.
        """
        pass

    @abstractmethod
    async def abort(self) -> None:
        """Discard the partial upload so no further bytes are stored."""
        pass


class AbstractBlobStore(ABC):
    """Abstract base class for blob stores that hold uploaded media."""

    @abstractmethod
    async def create_upload_handle(self, key: str, media: MediaFile) -> AbstractUploadHandle:
        """Open a resumable transfer for ``media`` at ``key``."""
        pass

    @abstractmethod
    async def resolve_public_url(self, handle: AbstractUploadHandle) -> str:
        """Return a URL the transcription provider can fetch the stored object from."""
        pass
