"""AssemblyAI transcription provider."""

import asyncio
import logging
from typing import Any, Dict

import aiohttp
from pydantic import ValidationError as SchemaError

from ..exceptions import ProviderRequestError
from ..models.transcription import TranscriptResponse
from .base import AbstractTranscriptionProvider

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.assemblyai.com/v2"


class AssemblyAIProvider(AbstractTranscriptionProvider):
    """Thin client for the AssemblyAI transcript endpoints."""

    def __init__(self,
                 api_key: str,
                 base_url: str = DEFAULT_BASE_URL,
                 request_timeout_seconds: float = 30.0):
        """Initialize AssemblyAI provider.

        Args:
            api_key: AssemblyAI API key, sent as the authorization header
            base_url: API root, without a trailing slash
            request_timeout_seconds: Total timeout for each request
        """
        if not api_key:
            raise ValueError("AssemblyAI API key is required")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=request_timeout_seconds)

        logger.info(f"AssemblyAIProvider initialized with base URL: {self.base_url}")

    def _headers(self) -> Dict[str, str]:
        return {
            "authorization": self.api_key,
            "content-type": "application/json",
        }

    async def create_transcript(self, audio_url: str) -> str:
        body = await self._request("POST", "/transcript", json={"audio_url": audio_url})
        job_id = body.get("id")
        if not job_id:
            raise ProviderRequestError("Transcription provider returned no job id")
        return str(job_id)

    async def get_transcript(self, job_id: str) -> TranscriptResponse:
        body = await self._request("GET", f"/transcript/{job_id}")
        try:
            return TranscriptResponse.model_validate(body)
        except SchemaError as e:
            # A body we cannot read will not get better on the next poll
            raise ProviderRequestError(f"Unexpected transcript payload: {e}", permanent=True) from e

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.request(method, url, headers=self._headers(), **kwargs) as response:
                    if response.status >= 400:
                        message = await self._error_message(response)
                        raise ProviderRequestError(message, status=response.status)
                    body = await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise ProviderRequestError(f"Request to transcription provider failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise ProviderRequestError("Request to transcription provider timed out") from e
        except ValueError as e:
            raise ProviderRequestError(f"Transcription provider returned invalid JSON: {e}", permanent=True) from e

        if not isinstance(body, dict):
            raise ProviderRequestError("Transcription provider returned a non-object body", permanent=True)
        return body

    @staticmethod
    async def _error_message(response: aiohttp.ClientResponse) -> str:
        """Prefer the provider's own ``error`` field over a generic status line."""
        text = await response.text()
        try:
            body = await response.json(content_type=None)
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return f"Transcription provider returned {response.status}: {text.strip() or response.reason}"
