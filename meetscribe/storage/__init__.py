"""Transcript storage."""

from .transcript_manager import (
    TranscriptManager,
    format_timestamp,
    generate_timestamped_filename,
)

__all__ = [
    "TranscriptManager",
    "format_timestamp",
    "generate_timestamped_filename",
]
