"""Google Speech-to-Text transcription backend."""

import time
import logging
import threading
from typing import Optional

from .base import AbstractTranscriptionBackend
from ..errors import TranscriptionFailedError
from ..models.transcription import TranscriptEntry
from ..storage.transcript_manager import format_timestamp

from google.cloud import speech
from google.api_core import exceptions as gax_exceptions
from google.auth import exceptions as auth_exceptions
from google.oauth2 import service_account

logger = logging.getLogger(__name__)


class GoogleSpeechBackend(AbstractTranscriptionBackend):
    """Google Speech-to-Text API backend for transcription."""

    service_name = "Google Speech-to-Text"

    def __init__(self,
                 credentials_path: Optional[str] = None,
                 sample_rate: int = 16000,
                 language: str = "en-US",
                 use_enhanced: bool = True,
                 enable_automatic_punctuation: bool = True,
                 request_timeout: float = 10.0):
        """Initialize Google Speech backend.

        Args:
            credentials_path: Path to Google Cloud service account JSON file
            sample_rate: Sample rate of the WAV units in Hz
            language: Language code (e.g., 'en-US', 'es-ES')
            use_enhanced: Whether to use enhanced model (costs more but better quality)
            enable_automatic_punctuation: Enable automatic punctuation
            request_timeout: Per-request deadline in seconds
        """
        super().__init__(language)
        self.credentials_path = credentials_path
        if not self.credentials_path:
            raise ValueError("Google credentials path is required - cannot initialize without credentials")
        self.use_enhanced = use_enhanced
        self.enable_automatic_punctuation = enable_automatic_punctuation
        self.request_timeout = request_timeout
        self.client = None
        self.project_id = None
        # Worker threads may all find the client missing at once
        self.client_lock = threading.Lock()
        self.config = speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
            sample_rate_hertz=sample_rate,
            language_code=self.language,
            use_enhanced=self.use_enhanced,
            enable_automatic_punctuation=self.enable_automatic_punctuation,
        )

    def health_check(self) -> bool:
        """Load the service account credentials and create the client."""
        with self.client_lock:
            return self._create_client()

    def _create_client(self) -> bool:
        try:
            logger.info(f"Loading Google credentials from: {self.credentials_path}")
            credentials = service_account.Credentials.from_service_account_file(self.credentials_path)
            self.client = speech.SpeechClient(credentials=credentials)
        except (OSError, ValueError, auth_exceptions.GoogleAuthError) as e:
            logger.error(f"Google Speech credentials check failed: {e}")
            return False

        self.project_id = credentials.project_id
        logger.info(f"Using Google Cloud project: {self.project_id}")
        return True

    def transcribe(self, wav_data: bytes) -> Optional[TranscriptEntry]:
        """Transcribe a WAV unit using Google Speech-to-Text."""
        with self.client_lock:
            if self.client is None and not self._create_client():
                raise TranscriptionFailedError("Google Speech client is not available")
            client = self.client

        start_time = time.time()
        # LINEAR16 content may carry its WAV header; the API reads it
        audio = speech.RecognitionAudio(content=wav_data)
        try:
            response = client.recognize(config=self.config, audio=audio, timeout=self.request_timeout)
        except gax_exceptions.DeadlineExceeded as e:
            logger.error("Google STT recognize deadline exceeded")
            raise TranscriptionFailedError(f"Google Speech recognize timeout: {e}") from e
        except gax_exceptions.ServiceUnavailable as e:
            logger.error("Google STT service unavailable")
            raise TranscriptionFailedError(f"Google Speech service unavailable: {e}") from e
        except gax_exceptions.GoogleAPICallError as e:
            logger.error("Google STT API call error: %s", e)
            raise TranscriptionFailedError(f"Google Speech API error: {e}") from e
        processing_time = time.time() - start_time

        text = " ".join(
            result.alternatives[0].transcript.strip()
            for result in response.results
            if result.alternatives
        ).strip()

        if not text:
            logger.debug("--- NO SPEECH DETECTED ---")
            return None

        logger.debug(f"TRANSCRIPTION SUCCESS: '{text}' (processing_time: {processing_time:.3f}s)")
        return TranscriptEntry(timestamp=format_timestamp(), text=text)

    def cleanup(self) -> None:
        """Clean up Google Speech client resources."""
        with self.client_lock:
            self.client = None
