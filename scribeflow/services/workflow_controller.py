"""Workflow controller sequencing upload, submission and polling for one file at a time."""

import asyncio
import logging
import time
from dataclasses import replace
from typing import Any, Awaitable, Callable, Optional, Sequence, Union

from ..config import WorkflowSettings
from ..exceptions import (
    PollError,
    SubmissionError,
    TranscriptionTimeoutError,
    UploadError,
    ValidationError,
)
from ..models.media import MediaFile, UploadProgress
from ..models.transcription import TranscriptionStatus
from ..models.workflow import WorkflowPhase, WorkflowState, can_transition
from ..storage.base import AbstractBlobStore
from ..storage.upload_session import UploadSession, timestamped_key
from ..transcription.base import AbstractTranscriptionProvider
from ..transcription.job import TranscriptionJob
from .file_validator import FileConstraints, FileValidator
from .state_publisher import WorkflowStatePublisher

logger = logging.getLogger(__name__)

Candidates = Union[MediaFile, Sequence[MediaFile], None]


class WorkflowController:
    """Owns the WorkflowState and drives one run at a time.

    Every run gets a new run id. Anything dispatched for a run carries that id,
    and a state change whose id is no longer current is dropped, so a
    superseded run can never overwrite the state of the one that replaced it.
    """

    def __init__(self,
                 settings: WorkflowSettings,
                 blob_store: AbstractBlobStore,
                 provider: AbstractTranscriptionProvider,
                 publisher: Optional[WorkflowStatePublisher] = None,
                 destination_key_fn: Callable[[MediaFile], str] = timestamped_key,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        """Initialize workflow controller.

        Args:
            settings: Size limits, accepted types and polling cadence
            blob_store: Destination for uploaded media
            provider: Remote transcription service
            publisher: Receives every state change; defaults to one on settings.state_topic
            destination_key_fn: Builds the object key for each run
            clock: Monotonic time source for the transcription deadline
            sleep: Awaitable used between polls
        """
        self.settings = settings
        self.blob_store = blob_store
        self.provider = provider
        self.publisher = publisher or WorkflowStatePublisher(settings.state_topic)
        self.destination_key_fn = destination_key_fn
        self.clock = clock
        self.sleep = sleep
        self.validator = FileValidator(FileConstraints(
            max_size_bytes=settings.max_file_size_bytes,
            accepted_mime_prefixes=settings.accepted_mime_prefixes,
        ))

        self.media: Optional[MediaFile] = None
        self._run_id = 0
        self._state = WorkflowState()
        self._task: Optional[asyncio.Task] = None
        self._upload_session: Optional[UploadSession] = None
        self._job: Optional[TranscriptionJob] = None

    @property
    def state(self) -> WorkflowState:
        """Snapshot of the current state."""
        return replace(self._state)

    @property
    def run_id(self) -> int:
        return self._run_id

    def validate(self, files: Candidates) -> MediaFile:
        """Check candidates against the configured constraints without touching state."""
        return self.validator.validate(files)

    def start(self, files: Candidates) -> Optional[asyncio.Task]:
        """Begin a new run, superseding any run in flight.

        Must be called from inside a running event loop.

        Returns:
            The task driving the run, or None if the file was rejected
        """
        loop = asyncio.get_running_loop()
        self._cancel_active_run()
        self._run_id += 1
        run_id = self._run_id

        try:
            media = self.validator.validate(files)
        except ValidationError as e:
            logger.warning(f"Run {run_id} rejected ({e.reason.value}): {e}")
            self.media = None
            self._replace_state(WorkflowState(
                phase=WorkflowPhase.FAILED,
                error_message=str(e),
                run_id=run_id,
            ))
            return None

        self.media = media
        logger.info(f"Starting run {run_id} for {media.name} ({media.size_mb:.2f} MB)")
        self._replace_state(WorkflowState(phase=WorkflowPhase.UPLOADING, run_id=run_id))
        self._task = loop.create_task(self._run(run_id, media), name=f"workflow-run-{run_id}")
        return self._task

    async def run(self, files: Candidates) -> WorkflowState:
        """Start a run and wait until it ends or is superseded."""
        task = self.start(files)
        if task is not None:
            await asyncio.wait({task})
        return self.state

    def reset(self) -> None:
        """Abandon any run in flight and return to idle."""
        self._cancel_active_run()
        self._run_id += 1
        self.media = None
        logger.info("Workflow reset")
        self._replace_state(WorkflowState(run_id=self._run_id))

    async def shutdown(self) -> None:
        """Cancel any run in flight and wait for it to unwind."""
        task = self._task
        self._cancel_active_run()
        self._run_id += 1
        if task is not None and not task.done():
            await asyncio.wait({task})
        logger.info("Workflow controller shut down")

    def on_upload_progress(self, run_id: int, progress: UploadProgress) -> None:
        """Apply an upload progress event for ``run_id``.

        The displayed percentage never goes backwards, so repeated or late
        events from the transport cannot make the bar jump back.
        """
        if not self._is_current(run_id, "upload progress"):
            return
        if self._state.phase is not WorkflowPhase.UPLOADING:
            return

        percent = max(self._state.progress_percent, progress.percent)
        if percent != self._state.progress_percent:
            self._state.progress_percent = percent
            self._publish()

    async def _run(self, run_id: int, media: MediaFile) -> None:
        upload = UploadSession(self.blob_store)
        job = TranscriptionJob(
            self.provider,
            poll_interval_seconds=self.settings.poll_interval_seconds,
            timeout_seconds=self.settings.transcription_timeout_seconds,
            clock=self.clock,
            sleep=self.sleep,
        )
        self._upload_session, self._job = upload, job

        try:
            url = await upload.start(
                media,
                self.destination_key_fn,
                on_progress=lambda progress: self.on_upload_progress(run_id, progress),
            )
            self._transition(run_id, WorkflowPhase.UPLOADED, progress_percent=100, source_url=url)

            handle = await job.submit(url)
            self._transition(run_id, WorkflowPhase.TRANSCRIBING)

            result = await job.poll_until_terminal(handle)
            if result.status is TranscriptionStatus.COMPLETED:
                self._transition(run_id, WorkflowPhase.DONE, result_text=result.text)
            else:
                self._fail(run_id, result.error_message)
        except asyncio.CancelledError:
            logger.info(f"Run {run_id} cancelled")
            raise
        except (UploadError, SubmissionError, PollError, TranscriptionTimeoutError) as e:
            self._fail(run_id, str(e))
        except Exception as e:
            logger.error(f"Unexpected error in run {run_id}: {e}", exc_info=True)
            self._fail(run_id, str(e) or "Unexpected error")
        finally:
            if run_id == self._run_id:
                self._upload_session = None
                self._job = None

    def _cancel_active_run(self) -> None:
        if self._upload_session is not None:
            self._upload_session.cancel()
        if self._job is not None:
            self._job.cancel()
        if self._task is not None and not self._task.done():
            logger.info(f"Cancelling run {self._run_id}")
            self._task.cancel()
        self._upload_session = None
        self._job = None

    def _is_current(self, run_id: int, what: str) -> bool:
        if run_id != self._run_id:
            logger.debug(f"Ignoring stale {what} from run {run_id} (current run {self._run_id})")
            return False
        return True

    def _transition(self, run_id: int, phase: WorkflowPhase, **changes: Any) -> None:
        if not self._is_current(run_id, f"transition to {phase.value}"):
            return
        current = self._state.phase
        if not can_transition(current, phase):
            raise RuntimeError(f"Illegal workflow transition {current.value} -> {phase.value}")

        self._state.phase = phase
        for field_name, value in changes.items():
            setattr(self._state, field_name, value)
        logger.info(f"Run {run_id}: {current.value} -> {phase.value}")
        self._publish()

    def _fail(self, run_id: int, message: str) -> None:
        if run_id == self._run_id:
            logger.error(f"Run {run_id} failed: {message}")
        self._transition(run_id, WorkflowPhase.FAILED, error_message=message)

    def _replace_state(self, state: WorkflowState) -> None:
        self._state = state
        self._publish()

    def _publish(self) -> None:
        self.publisher.publish_state(self._state)
