"""Status change events emitted by the transcription session."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from .session import PauseReason


@dataclass
class StatusChangeEvent:
    """Base class for every session state transition."""
    timestamp: datetime = field(default_factory=datetime.now, kw_only=True)

    type = "status_change"


@dataclass
class SessionStartedEvent(StatusChangeEvent):
    type = "started"


@dataclass
class SessionPausedEvent(StatusChangeEvent):
    reason: PauseReason
    message: str

    type = "paused"


@dataclass
class SessionResumedEvent(StatusChangeEvent):
    previous_reason: Optional[PauseReason]

    type = "resumed"


@dataclass
class SessionStoppedEvent(StatusChangeEvent):
    chunks_processed: int
    duration_seconds: float
    errors: int

    type = "stopped"


@dataclass
class SilenceDetectedEvent(StatusChangeEvent):
    consecutive_chunks: int

    type = "silence_detected"


@dataclass
class AudioDetectedEvent(StatusChangeEvent):
    type = "audio_detected"


@dataclass
class SessionWarningEvent(StatusChangeEvent):
    message: str
    elapsed_minutes: int

    type = "warning"


StatusChangeCallback = Callable[[StatusChangeEvent], None]
