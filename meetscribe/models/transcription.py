"""Transcription-related data models."""

from dataclasses import dataclass


@dataclass
class TranscriptEntry:
    """One transcribed line destined for the transcript file."""
    timestamp: str  # "YYYY-MM-DD HH:MM:SS"
    text: str
