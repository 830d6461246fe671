"""Abstract base class for speech-to-text backends."""

from abc import ABC, abstractmethod
from typing import Optional
import logging

from ..models.transcription import TranscriptEntry

logger = logging.getLogger(__name__)


class AbstractTranscriptionBackend(ABC):
    """Abstract base class for transcription backends."""

    service_name = "unknown"

    def __init__(self, language: str = "en-US"):
        """Initialize backend with language preference."""
        self.language = language

    @abstractmethod
    def transcribe(self, wav_data: bytes) -> Optional[TranscriptEntry]:
        """Transcribe one WAV-encoded audio unit.

        Args:
            wav_data: Complete WAV file bytes (header + 16-bit PCM)

        Returns:
            TranscriptEntry, or None when no speech was detected

        Raises:
            TranscriptionFailedError: If the remote call fails
        """
        pass

    @abstractmethod
    def health_check(self) -> bool:
        """Verify the service is reachable and the credentials are valid.

        Returns:
            True if the backend can be used, False otherwise
        """
        pass

    def cleanup(self) -> None:
        """Clean up backend resources."""
        pass
