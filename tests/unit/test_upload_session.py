"""Unit tests for UploadSession."""

import asyncio
import re

import pytest

from conftest import FakeBlobStore
from scribeflow.exceptions import UploadError
from scribeflow.storage.upload_session import UploadSession, timestamped_key


@pytest.mark.unit
class TestTimestampedKey:
    """Test cases for destination key generation."""

    def test_key_format(self, video_file):
        key = timestamped_key(video_file)

        assert re.fullmatch(r"uploads/\d+_clip\.mp4", key)

    def test_custom_prefix(self, video_file):
        assert timestamped_key(video_file, prefix="incoming").startswith("incoming/")

    def test_keys_are_unique_in_tight_loop(self, video_file):
        """Test two runs for the same file never share a key."""
        keys = [timestamped_key(video_file) for _ in range(1000)]

        assert len(set(keys)) == len(keys)


@pytest.mark.unit
class TestUploadSession:
    """Test cases for UploadSession."""

    def test_upload_reports_progress_and_returns_url(self, video_file):
        """Test every transport event reaches the callback and the URL is resolved."""
        store = FakeBlobStore(percents=[0, 50, 100])
        session = UploadSession(store)
        seen = []

        url = asyncio.run(session.start(video_file, lambda media: "uploads/fixed_clip.mp4", seen.append))

        assert url == "https://storage.example.com/uploads/fixed_clip.mp4"
        assert [p.percent for p in seen] == [0, 50, 100]
        assert store.handles[0].key == "uploads/fixed_clip.mp4"
        assert not store.handles[0].aborted

    def test_progress_callback_is_optional(self, video_file):
        url = asyncio.run(UploadSession(FakeBlobStore()).start(video_file))

        assert url.startswith("https://storage.example.com/uploads/")

    def test_transport_failure_raises_upload_error(self, video_file):
        """Test a mid-transfer failure is wrapped and the partial upload aborted."""
        store = FakeBlobStore(percents=[0, 30], error=ConnectionResetError("connection reset by peer"))
        session = UploadSession(store)

        with pytest.raises(UploadError) as exc_info:
            asyncio.run(session.start(video_file))

        assert str(exc_info.value) == "Upload failed: connection reset by peer"
        assert store.handles[0].aborted

    def test_cancel_stops_progress_and_aborts(self, video_file):
        """Test a cancelled session delivers nothing further and never resolves."""
        store = FakeBlobStore(percents=[0, 10], hold=True)
        session = UploadSession(store)
        seen = []

        async def scenario():
            task = asyncio.create_task(session.start(video_file, on_progress=seen.append))
            while len(seen) < 2:
                await asyncio.sleep(0)
            session.cancel()
            await asyncio.wait({task})
            return task

        task = asyncio.run(scenario())

        assert task.cancelled()
        assert session.cancelled
        assert [p.percent for p in seen] == [0, 10]
        assert store.handles[0].aborted

    def test_session_cannot_be_reused(self, video_file):
        session = UploadSession(FakeBlobStore())

        async def scenario():
            await session.start(video_file)
            await session.start(video_file)

        with pytest.raises(RuntimeError):
            asyncio.run(scenario())
