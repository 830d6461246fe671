"""OpenAI Whisper transcription backend."""

import asyncio
import logging
import aiohttp
from typing import Optional

from .base import AbstractTranscriptionBackend
from ..errors import TranscriptionFailedError
from ..models.transcription import TranscriptEntry
from ..storage.transcript_manager import format_timestamp

logger = logging.getLogger(__name__)


class WhisperBackend(AbstractTranscriptionBackend):
    """OpenAI audio transcription API backend."""

    service_name = "OpenAI Whisper"

    def __init__(self,
                 api_key: str,
                 model: str = "whisper-1",
                 base_url: str = "https://api.openai.com/v1",
                 timeout_seconds: float = 30.0):
        """Initialize Whisper backend.

        Args:
            api_key: OpenAI API key
            model: Transcription model to use
            base_url: API root, overridable for compatible servers
            timeout_seconds: Total timeout for one HTTP request
        """
        super().__init__()
        if not api_key:
            raise ValueError("OpenAI API key is required - cannot initialize without credentials")
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip('/')
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

        logger.info(f"WhisperBackend initialized with model: {model}")

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.api_key}"}

    def transcribe(self, wav_data: bytes) -> Optional[TranscriptEntry]:
        """Transcribe one WAV unit; runs its own event loop on the calling thread."""
        return asyncio.run(self.transcribe_async(wav_data))

    async def transcribe_async(self, wav_data: bytes) -> Optional[TranscriptEntry]:
        """Send a WAV unit to the transcription endpoint.

        Raises:
            TranscriptionFailedError: On HTTP errors, timeouts or connection failures
        """
        form = aiohttp.FormData()
        form.add_field('file', wav_data, filename='chunk.wav', content_type='audio/wav')
        form.add_field('model', self.model)

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(f"{self.base_url}/audio/transcriptions",
                                        headers=self._headers(), data=form) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise TranscriptionFailedError(
                            f"Transcription API error: {response.status} - {error_text}")
                    result = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TranscriptionFailedError(f"Transcription API error: {e}") from e

        text = (result.get("text") or "").strip()
        if not text:
            logger.debug("--- NO SPEECH DETECTED ---")
            return None

        logger.debug(f"Transcribed {len(wav_data)} bytes: '{text}'")
        return TranscriptEntry(timestamp=format_timestamp(), text=text)

    def health_check(self) -> bool:
        """Verify the API key by listing models (a lightweight call)."""
        return asyncio.run(self.health_check_async())

    async def health_check_async(self) -> bool:
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(f"{self.base_url}/models", headers=self._headers()) as response:
                    if response.status != 200:
                        logger.error(f"OpenAI health check failed with status {response.status}")
                        return False
                    return True
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"OpenAI health check failed: {e}")
            return False
