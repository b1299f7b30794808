"""Pytest configuration and fixtures for ScribeFlow tests."""

import asyncio
import logging
import uuid
from typing import List, Optional, Sequence

import pytest
from pubsub import pub

from scribeflow.config import WorkflowSettings
from scribeflow.models.media import MediaFile, UploadProgress
from scribeflow.models.transcription import TranscriptResponse, TranscriptionStatus
from scribeflow.models.workflow import WorkflowState
from scribeflow.services.state_publisher import WorkflowStatePublisher
from scribeflow.services.workflow_controller import WorkflowController
from scribeflow.storage.base import AbstractBlobStore, AbstractUploadHandle
from scribeflow.transcription.base import AbstractTranscriptionProvider


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

MB = 1024 * 1024


class FakeClock:
    """Monotonic clock that only moves when the code under test sleeps."""

    def __init__(self, start: float = 1000.0):
        self.start = start
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)

    @property
    def elapsed(self) -> float:
        return self.now - self.start


class FakeUploadHandle(AbstractUploadHandle):
    """Yields scripted progress, then optionally hangs or fails."""

    def __init__(self, key: str, media: MediaFile, store: "FakeBlobStore"):
        super().__init__(key, media)
        self.store = store
        self.aborted = False
        self.yielded: List[UploadProgress] = []

    async def send(self):
        total = self.media.size_bytes
        for percent in self.store.percents:
            await asyncio.sleep(0)
            progress = UploadProgress(total * percent // 100, total)
            self.yielded.append(progress)
            yield progress
        if self.store.hold:
            await asyncio.sleep(3600)
        if self.store.error is not None:
            raise self.store.error

    async def abort(self) -> None:
        self.aborted = True


class FakeBlobStore(AbstractBlobStore):
    """In-memory blob store recording every handle it opens."""

    def __init__(self,
                 percents: Sequence[int] = (0, 50, 100),
                 error: Optional[Exception] = None,
                 hold: bool = False):
        self.percents = list(percents)
        self.error = error
        self.hold = hold
        self.handles: List[FakeUploadHandle] = []

    async def create_upload_handle(self, key: str, media: MediaFile) -> FakeUploadHandle:
        handle = FakeUploadHandle(key, media, self)
        self.handles.append(handle)
        return handle

    async def resolve_public_url(self, handle: AbstractUploadHandle) -> str:
        return f"https://storage.example.com/{handle.key}"


def transcript(status: str, text: Optional[str] = None, error: Optional[str] = None,
               job_id: str = "job-1") -> TranscriptResponse:
    return TranscriptResponse(id=job_id, status=TranscriptionStatus(status), text=text, error=error)


class FakeProvider(AbstractTranscriptionProvider):
    """Replays scripted poll responses; the last one repeats forever.

    Entries may be TranscriptResponse objects or exceptions to raise.
    """

    def __init__(self, responses=None, submit_error: Optional[Exception] = None, job_id: str = "job-1"):
        self.responses = list(responses or [transcript("completed", text="hello world")])
        self.submit_error = submit_error
        self.job_id = job_id
        self.submitted: List[str] = []
        self.polls = 0

    async def create_transcript(self, audio_url: str) -> str:
        self.submitted.append(audio_url)
        await asyncio.sleep(0)
        if self.submit_error is not None:
            raise self.submit_error
        return self.job_id

    async def get_transcript(self, job_id: str) -> TranscriptResponse:
        self.polls += 1
        await asyncio.sleep(0)
        item = self.responses[min(self.polls, len(self.responses)) - 1]
        if isinstance(item, Exception):
            raise item
        return item


class StateRecorder:
    """Collects every WorkflowState published on a topic."""

    def __init__(self, topic: str):
        self.topic = topic
        self.states: List[WorkflowState] = []
        pub.subscribe(self.on_state, topic)

    def on_state(self, state: WorkflowState) -> None:
        self.states.append(state)

    @property
    def phases(self) -> List[str]:
        """Distinct consecutive phases, in order."""
        phases = []
        for state in self.states:
            if not phases or phases[-1] != state.phase.value:
                phases.append(state.phase.value)
        return phases

    def close(self) -> None:
        pub.unsubscribe(self.on_state, self.topic)


@pytest.fixture
def state_topic():
    """A fresh pub/sub topic per test so listeners never leak between tests."""
    return f"workflow{uuid.uuid4().hex}"


@pytest.fixture
def recorder(state_topic):
    rec = StateRecorder(state_topic)
    yield rec
    rec.close()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def settings(state_topic):
    return WorkflowSettings(state_topic=state_topic)


@pytest.fixture
def make_controller(settings, fake_clock):
    """Factory building a controller wired to fakes and the fake clock."""
    def _make(blob_store=None, provider=None, **overrides):
        return WorkflowController(
            settings=overrides.pop("settings", settings),
            blob_store=blob_store or FakeBlobStore(),
            provider=provider or FakeProvider(),
            publisher=WorkflowStatePublisher(settings.state_topic),
            clock=fake_clock,
            sleep=fake_clock.sleep,
            **overrides,
        )
    return _make


@pytest.fixture
def video_file():
    """A 10 MB mp4 as offered by the file picker."""
    return MediaFile(name="clip.mp4", size_bytes=10 * MB, mime_type="video/mp4")


@pytest.fixture
def sample_video_path(tmp_path):
    """A small file on disk with a video extension."""
    file_path = tmp_path / "sample.mp4"
    file_path.write_bytes(bytes(range(256)) * 40)  # 10240 bytes
    return file_path
