"""Transcript file management."""

import logging
import threading
from pathlib import Path
from datetime import datetime
from typing import Optional

from ..models.transcription import TranscriptEntry


logger = logging.getLogger(__name__)

TRANSCRIPT_HEADER = "# Meeting Transcript\n\n"


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """Format a moment as 'YYYY-MM-DD HH:MM:SS' (defaults to now)."""
    return (moment or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")


def generate_timestamped_filename(moment: Optional[datetime] = None) -> str:
    """Generate a unique transcript filename so every session gets its own file.

    Format: transcript_YYYY-MM-DD_HH-MM-SS-mmm.md
    """
    moment = moment or datetime.now()
    millis = moment.microsecond // 1000
    return f"transcript_{moment.strftime('%Y-%m-%d_%H-%M-%S')}-{millis:03d}.md"


class TranscriptManager:
    """Append-only markdown transcript backed by a single file."""

    def __init__(self, outfile: str):
        """Initialize transcript manager.

        Args:
            outfile: Path of the transcript file
        """
        self.outfile = Path(outfile)
        # Transcriptions complete on worker threads
        self.lock = threading.Lock()

    def initialize(self) -> None:
        """Create the transcript file with a header if it doesn't exist."""
        with self.lock:
            self._initialize_locked()

    def _initialize_locked(self) -> None:
        if not self.outfile.exists():
            self.outfile.parent.mkdir(parents=True, exist_ok=True)
            self.outfile.write_text(TRANSCRIPT_HEADER, encoding='utf-8')
            logger.info(f"Transcript initialized: {self.outfile}")

    def append(self, entry: TranscriptEntry) -> None:
        """Append a transcribed entry."""
        self._write(f"\n**{entry.timestamp}**  {entry.text}\n")

    def append_system_message(self, message: str, moment: Optional[datetime] = None) -> None:
        """Append a system notice, set apart from transcribed speech by rules.

        Args:
            message: Notice text
            moment: When the notice happened (defaults to now)
        """
        self._write(f"\n---\n**{format_timestamp(moment)}** _[SYSTEM]_ {message}\n---\n")
        logger.debug(f"System message written to transcript: {message}")

    def _write(self, text: str) -> None:
        with self.lock:
            self.outfile.parent.mkdir(parents=True, exist_ok=True)
            with open(self.outfile, 'a', encoding='utf-8') as f:
                f.write(text)

    def get_content(self) -> str:
        """Get the full transcript content ('' if the file is missing)."""
        with self.lock:
            if not self.outfile.exists():
                return ""
            return self.outfile.read_text(encoding='utf-8')

    def clear(self) -> None:
        """Clear the transcript and start over with a fresh header."""
        with self.lock:
            self.outfile.unlink(missing_ok=True)
            self._initialize_locked()
        logger.info(f"Transcript cleared: {self.outfile}")

    def delete(self) -> bool:
        """Delete the transcript file completely (no reinitialization).

        Returns:
            True if a file was removed
        """
        with self.lock:
            if not self.outfile.exists():
                return False
            self.outfile.unlink()
        logger.info(f"Transcript deleted: {self.outfile}")
        return True

    def get_file_path(self) -> str:
        return str(self.outfile)
