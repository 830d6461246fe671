"""Data models for the MeetScribe application."""

from .transcription import TranscriptEntry
from .audio import AudioStats
from .session import PauseReason, SessionStatus, SessionStatusReport
from .events import (
    StatusChangeEvent,
    StatusChangeCallback,
    SessionStartedEvent,
    SessionPausedEvent,
    SessionResumedEvent,
    SessionStoppedEvent,
    SilenceDetectedEvent,
    AudioDetectedEvent,
    SessionWarningEvent,
)

__all__ = [
    "TranscriptEntry",
    "AudioStats",
    "PauseReason",
    "SessionStatus",
    "SessionStatusReport",
    # Status events
    "StatusChangeEvent",
    "StatusChangeCallback",
    "SessionStartedEvent",
    "SessionPausedEvent",
    "SessionResumedEvent",
    "SessionStoppedEvent",
    "SilenceDetectedEvent",
    "AudioDetectedEvent",
    "SessionWarningEvent",
]
