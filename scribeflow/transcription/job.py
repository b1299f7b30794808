"""Submission and status polling of one transcription job."""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from ..exceptions import PollError, ProviderRequestError, SubmissionError, TranscriptionTimeoutError
from ..models.transcription import TranscriptionJobHandle, TranscriptionResult
from .base import AbstractTranscriptionProvider

logger = logging.getLogger(__name__)


class TranscriptionJob:
    """Submits a source URL to the provider and polls until a terminal status.

    The poll loop runs in whichever task awaits ``poll_until_terminal``;
    cancelling that task (or calling ``cancel``) stops it. Time is read from
    ``clock`` and waited on with ``sleep`` so the deadline can be driven
    deterministically.
    """

    def __init__(self,
                 provider: AbstractTranscriptionProvider,
                 poll_interval_seconds: float = 2.0,
                 timeout_seconds: float = 300.0,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self.provider = provider
        self.poll_interval_seconds = poll_interval_seconds
        self.timeout_seconds = timeout_seconds
        self.clock = clock
        self.sleep = sleep
        self.cancelled = False
        self.poll_count = 0
        self._task: Optional[asyncio.Task] = None

    async def submit(self, source_url: str) -> TranscriptionJobHandle:
        """Create the job. Any failure is fatal for the run.

        Raises:
            SubmissionError: With the provider's message when it supplied one
        """
        try:
            job_id = await self.provider.create_transcript(source_url)
        except ProviderRequestError as e:
            logger.error(f"Transcription submission failed: {e}")
            raise SubmissionError(str(e)) from e

        handle = TranscriptionJobHandle(job_id=job_id, created_at=self.clock())
        logger.info(f"Submitted transcription job {job_id}")
        return handle

    async def poll_until_terminal(self, handle: TranscriptionJobHandle) -> TranscriptionResult:
        """Poll on a fixed cadence until ``completed`` or ``error``.

        Returns:
            The terminal TranscriptionResult

        Raises:
            TranscriptionTimeoutError: If the budget measured from submission runs out
            PollError: If the job can never be read (not found, rejected credentials)
        """
        self._task = asyncio.current_task()

        while not self.cancelled:
            remaining = self.timeout_seconds - self._elapsed(handle)
            if remaining <= 0:
                raise self._timed_out(handle)

            result = await self._poll_once(handle, remaining)
            if result is not None and result.status.is_terminal:
                logger.info(f"Transcription job {handle.job_id} finished with status {result.status.value}")
                return result

            remaining = self.timeout_seconds - self._elapsed(handle)
            await self.sleep(max(0.0, min(self.poll_interval_seconds, remaining)))

        raise asyncio.CancelledError()

    async def _poll_once(self, handle: TranscriptionJobHandle, remaining: float) -> Optional[TranscriptionResult]:
        """Fetch the job status once, waiting at most ``remaining`` seconds.

        Returns None for a transient failure.
        """
        self.poll_count += 1
        try:
            response = await asyncio.wait_for(self.provider.get_transcript(handle.job_id), timeout=remaining)
        except asyncio.TimeoutError:
            raise self._timed_out(handle)
        except ProviderRequestError as e:
            if e.is_permanent:
                logger.error(f"Polling job {handle.job_id} failed permanently: {e}")
                raise PollError(str(e)) from e
            logger.warning(f"Transient failure polling job {handle.job_id}, will retry: {e}")
            return None

        logger.debug(f"Job {handle.job_id} poll #{self.poll_count}: {response.status.value}")
        return response.to_result()

    def _timed_out(self, handle: TranscriptionJobHandle) -> TranscriptionTimeoutError:
        logger.error(f"Transcription job {handle.job_id} timed out after {self.poll_count} polls")
        return TranscriptionTimeoutError(
            f"Transcription timed out after {self.timeout_seconds:g} seconds; "
            f"the job may still be running on the provider"
        )

    def _elapsed(self, handle: TranscriptionJobHandle) -> float:
        return self.clock() - handle.created_at

    def cancel(self) -> None:
        """Stop polling; any in-flight response is discarded."""
        if self.cancelled:
            return
        self.cancelled = True
        if self._task is not None and not self._task.done() and self._task is not asyncio.current_task():
            self._task.cancel()
