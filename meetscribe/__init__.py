"""MeetScribe - cost-aware meeting transcription."""

__version__ = "0.1.0"
