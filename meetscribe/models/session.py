"""Session-related data models."""

from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any


class PauseReason(Enum):
    """Why transcription is currently suspended."""
    MANUAL = "manual"    # explicit pause or inactivity safeguard; never auto-clears
    SILENCE = "silence"  # auto-clears when audio returns


@dataclass
class SessionStatus:
    """Mutable state of one transcription session.

    Owned exclusively by a TranscriptionSession; created fresh on start.
    """
    is_running: bool = False
    is_paused: bool = False
    pause_reason: Optional[PauseReason] = None
    start_time: Optional[datetime] = None
    last_interaction_time: Optional[datetime] = None
    last_transcript_time: Optional[datetime] = None
    chunks_processed: int = 0           # units actually sent for transcription
    consecutive_silent_chunks: int = 0
    silent_chunks_skipped: int = 0      # never reset within a session
    errors: int = 0
    warning: Optional[str] = None

    def clear_pause(self) -> None:
        """Leave the paused state, dropping reason and warning together."""
        self.is_paused = False
        self.pause_reason = None
        self.warning = None


@dataclass
class SessionStatusReport:
    """Point-in-time snapshot of a session with derived cost figures."""
    is_running: bool
    is_paused: bool
    pause_reason: Optional[PauseReason]
    start_time: Optional[datetime]
    last_interaction_time: Optional[datetime]
    last_transcript_time: Optional[datetime]
    chunks_processed: int
    consecutive_silent_chunks: int
    silent_chunks_skipped: int
    errors: int
    warning: Optional[str]
    estimated_cost: float
    cost_saved: float
    transcript_path: Optional[str] = None

    @classmethod
    def from_status(cls,
                    status: SessionStatus,
                    estimated_cost: float,
                    cost_saved: float,
                    transcript_path: Optional[str] = None) -> "SessionStatusReport":
        return cls(
            estimated_cost=estimated_cost,
            cost_saved=cost_saved,
            transcript_path=transcript_path,
            **asdict(status),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible types."""
        data = asdict(self)
        data['pause_reason'] = self.pause_reason.value if self.pause_reason else None
        for key in ('start_time', 'last_interaction_time', 'last_transcript_time'):
            value = data[key]
            data[key] = value.isoformat() if value else None
        data['estimated_cost'] = round(self.estimated_cost, 6)
        data['cost_saved'] = round(self.cost_saved, 6)
        return data
