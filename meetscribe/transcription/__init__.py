"""Transcription module for MeetScribe."""

from .base import AbstractTranscriptionBackend
from .whisper_backend import WhisperBackend
from ..models.transcription import TranscriptEntry
from ..config import MeetScribeConfig

__all__ = [
    "AbstractTranscriptionBackend",
    "TranscriptEntry",
    "WhisperBackend",
    "create_backend",
]


def create_backend(config: MeetScribeConfig) -> AbstractTranscriptionBackend:
    """Create the transcription backend selected by 'transcription.backend'."""
    backend_name = config.get('transcription.backend', 'whisper')

    if backend_name == 'whisper':
        return WhisperBackend(
            api_key=config.get_openai_api_key(),
            model=config.get('openai.model', 'whisper-1'),
        )

    if backend_name == 'google':
        from .google_backend import GoogleSpeechBackend
        return GoogleSpeechBackend(
            credentials_path=config.get_google_credentials_path(),
            sample_rate=config.get('audio.sample_rate', 16000),
            language=config.get('google_cloud.language', 'en-US'),
            use_enhanced=config.get('google_cloud.use_enhanced_model', True),
            enable_automatic_punctuation=config.get('google_cloud.enable_automatic_punctuation', True),
        )

    raise ValueError(f"Unknown transcription backend: {backend_name}")
