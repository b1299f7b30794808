"""Single resumable upload of one media file."""

import asyncio
import logging
import time
from typing import Callable, Optional

from ..exceptions import UploadError
from ..models.media import MediaFile, UploadProgress
from .base import AbstractBlobStore, AbstractUploadHandle

logger = logging.getLogger(__name__)

_last_key_ns = 0


def timestamped_key(media: MediaFile, prefix: str = "uploads") -> str:
    """Build a destination key from a strictly increasing timestamp and the file name."""
    global _last_key_ns
    now_ns = max(time.time_ns(), _last_key_ns + 1)
    _last_key_ns = now_ns
    return f"{prefix}/{now_ns}_{media.name}"


class UploadSession:
    """Owns one transfer to the blob store. A session is started at most once."""

    def __init__(self, blob_store: AbstractBlobStore):
        self.blob_store = blob_store
        self.handle: Optional[AbstractUploadHandle] = None
        self.cancelled = False
        self._task: Optional[asyncio.Task] = None

    async def start(self,
                    media: MediaFile,
                    destination_key_fn: Callable[[MediaFile], str] = timestamped_key,
                    on_progress: Optional[Callable[[UploadProgress], None]] = None) -> str:
        """Upload ``media`` and resolve the stored object's URL.

        Args:
            media: Accepted file to upload
            destination_key_fn: Builds the object key for this run
            on_progress: Called with each progress event while the session is live

        Returns:
            Publicly fetchable URL of the stored object

        Raises:
            UploadError: If the transfer fails at any point
            asyncio.CancelledError: If the session or its task is cancelled
        """
        if self._task is not None:
            raise RuntimeError("UploadSession can only be started once")
        self._task = asyncio.current_task()

        key = destination_key_fn(media)
        logger.info(f"Uploading {media.name} ({media.size_bytes} bytes) to {key}")

        try:
            self.handle = await self.blob_store.create_upload_handle(key, media)
            async for progress in self.handle.send():
                if self.cancelled:
                    break
                logger.debug(f"Upload progress for {key}: {progress.percent}%")
                if on_progress:
                    on_progress(progress)
            if self.cancelled:
                raise asyncio.CancelledError()
            url = await self.blob_store.resolve_public_url(self.handle)
        except asyncio.CancelledError:
            logger.info(f"Upload of {key} cancelled")
            await self._abort()
            raise
        except Exception as e:
            logger.error(f"Upload of {key} failed: {e}")
            await self._abort()
            raise UploadError(f"Upload failed: {e}") from e

        logger.info(f"Upload of {key} complete")
        return url

    def cancel(self) -> None:
        """Stop the transfer; no progress or completion is reported afterwards."""
        if self.cancelled:
            return
        self.cancelled = True
        if self._task is not None and not self._task.done() and self._task is not asyncio.current_task():
            self._task.cancel()

    async def _abort(self) -> None:
        if self.handle is None:
            return
        try:
            await self.handle.abort()
        except Exception as e:
            logger.warning(f"Error aborting upload of {self.handle.key}: {e}")
