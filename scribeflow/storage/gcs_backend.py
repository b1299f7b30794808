"""Google Cloud Storage blob store backend.

Firebase Storage buckets are plain GCS buckets, so this backend serves both.
The resumable session is opened with the google-cloud-storage client; the
bytes themselves are sent as chunked PUTs over aiohttp so progress can be
reported between chunks without blocking the event loop.
"""

import asyncio
import logging
from datetime import timedelta
from typing import AsyncIterator, BinaryIO, Optional

import aiohttp
from google.cloud import storage
from google.oauth2 import service_account

from ..exceptions import UploadError
from ..models.media import MediaFile, UploadProgress
from .base import AbstractBlobStore, AbstractUploadHandle

logger = logging.getLogger(__name__)

# GCS requires every non-final chunk to be a multiple of 256 KiB
CHUNK_GRANULARITY = 256 * 1024
DEFAULT_CHUNK_SIZE = 8 * 1024 * 1024
MAX_SIGNED_URL_TTL_SECONDS = 7 * 24 * 3600
MAX_STALLED_CHUNKS = 3


def persisted_offset(range_header: Optional[str]) -> int:
    """Translate a 308 response's ``Range: bytes=0-N`` header into the next offset."""
    if not range_header:
        return 0
    _, _, span = range_header.partition("=")
    _, _, last = span.partition("-")
    try:
        return int(last) + 1
    except ValueError:
        raise UploadError(f"Malformed Range header from storage: {range_header!r}")


class GCSUploadHandle(AbstractUploadHandle):
    """Resumable upload session against a GCS session URI."""

    def __init__(self,
                 key: str,
                 media: MediaFile,
                 session_url: str,
                 chunk_size: int = DEFAULT_CHUNK_SIZE,
                 request_timeout_seconds: float = 120.0):
        super().__init__(key, media)
        self.session_url = session_url
        self.chunk_size = chunk_size
        self.timeout = aiohttp.ClientTimeout(total=request_timeout_seconds)

    async def send(self) -> AsyncIterator[UploadProgress]:
        if self.media.path is None:
            raise UploadError(f"No local file to read for {self.media.name}")

        total = self.media.size_bytes
        offset = 0
        stalled = 0

        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            with open(self.media.path, 'rb') as source:
                if total == 0:
                    await self._put_chunk(session, b"", "bytes */0")
                    yield UploadProgress(0, 0)
                    return

                while offset < total:
                    chunk = await asyncio.to_thread(self._read_chunk, source, offset)
                    if not chunk:
                        raise UploadError(f"{self.media.name} ended at byte {offset} of {total}")

                    content_range = f"bytes {offset}-{offset + len(chunk) - 1}/{total}"
                    next_offset = await self._put_chunk(session, chunk, content_range)
                    if next_offset is None:
                        next_offset = total

                    if next_offset <= offset:
                        stalled += 1
                        if stalled > MAX_STALLED_CHUNKS:
                            raise UploadError(f"Storage stopped accepting data at byte {offset}")
                    else:
                        stalled = 0
                    offset = min(next_offset, total)
                    yield UploadProgress(offset, total)

    def _read_chunk(self, source: BinaryIO, offset: int) -> bytes:
        source.seek(offset)
        return source.read(self.chunk_size)

    async def _put_chunk(self,
                         session: aiohttp.ClientSession,
                         chunk: bytes,
                         content_range: str) -> Optional[int]:
        """PUT one chunk. Returns the next offset, or None once the object is complete."""
        headers = {"Content-Range": content_range}
        async with session.put(self.session_url, data=chunk, headers=headers, allow_redirects=False) as response:
            if response.status in (200, 201):
                return None
            if response.status == 308:
                return persisted_offset(response.headers.get("Range"))
            error_text = await response.text()
            raise UploadError(f"Storage returned {response.status}: {error_text.strip()}")

    async def abort(self) -> None:
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.delete(self.session_url) as response:
                # GCS answers a cancelled session with 499
                logger.info(f"Aborted upload session for {self.key} (status {response.status})")


class GCSBlobStore(AbstractBlobStore):
    """Google Cloud Storage backend using a service account."""

    def __init__(self,
                 bucket_name: str,
                 credentials_path: str,
                 chunk_size: int = DEFAULT_CHUNK_SIZE,
                 public_urls: bool = False,
                 signed_url_ttl_seconds: int = MAX_SIGNED_URL_TTL_SECONDS,
                 request_timeout_seconds: float = 120.0):
        """Initialize GCS backend.

        Args:
            bucket_name: Destination bucket (e.g. 'my-app.appspot.com')
            credentials_path: Path to Google Cloud service account JSON file
            chunk_size: Bytes per PUT; must be a multiple of 256 KiB
            public_urls: Return the bucket's public URL instead of a signed one
            signed_url_ttl_seconds: Lifetime of signed URLs (at most 7 days)
            request_timeout_seconds: Total timeout for each chunk request
        """
        if not credentials_path:
            raise ValueError("Storage credentials path is required - cannot initialize without credentials")
        if chunk_size <= 0 or chunk_size % CHUNK_GRANULARITY:
            raise ValueError(f"Chunk size must be a positive multiple of {CHUNK_GRANULARITY} bytes")
        if not 0 < signed_url_ttl_seconds <= MAX_SIGNED_URL_TTL_SECONDS:
            raise ValueError(f"Signed URL lifetime must be between 1 and {MAX_SIGNED_URL_TTL_SECONDS} seconds")

        self.bucket_name = bucket_name
        self.credentials_path = credentials_path
        self.chunk_size = chunk_size
        self.public_urls = public_urls
        self.signed_url_ttl_seconds = signed_url_ttl_seconds
        self.request_timeout_seconds = request_timeout_seconds
        self.client = None
        self.bucket = None

    def initialize(self) -> bool:
        """Initialize the storage client and verify credentials."""
        logger.info(f"Loading storage credentials from: {self.credentials_path}")
        credentials = service_account.Credentials.from_service_account_file(self.credentials_path)

        self.client = storage.Client(credentials=credentials, project=credentials.project_id)
        self.bucket = self.client.bucket(self.bucket_name)

        logger.info(f"GCS blob store initialized for bucket {self.bucket_name}")
        return True

    def _require_bucket(self):
        if self.bucket is None:
            raise RuntimeError("GCSBlobStore.initialize() must be called before use")
        return self.bucket

    async def create_upload_handle(self, key: str, media: MediaFile) -> GCSUploadHandle:
        blob = self._require_bucket().blob(key)
        session_url = await asyncio.to_thread(
            blob.create_resumable_upload_session,
            content_type=media.mime_type,
            size=media.size_bytes,
        )
        logger.debug(f"Opened resumable session for {key}")
        return GCSUploadHandle(
            key=key,
            media=media,
            session_url=session_url,
            chunk_size=self.chunk_size,
            request_timeout_seconds=self.request_timeout_seconds,
        )

    async def resolve_public_url(self, handle: AbstractUploadHandle) -> str:
        blob = self._require_bucket().blob(handle.key)
        if self.public_urls:
            return blob.public_url
        return await asyncio.to_thread(
            blob.generate_signed_url,
            version="v4",
            expiration=timedelta(seconds=self.signed_url_ttl_seconds),
            method="GET",
        )
