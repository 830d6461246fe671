"""Request-response control surface over transcription sessions."""

import logging
from pathlib import Path
from typing import Optional, Dict, Any, Callable

from ..audio.chunker import AudioChunker
from ..config import MeetScribeConfig
from ..errors import (
    SessionError,
    NotRunningError,
    AlreadyRunningError,
    InvalidCredentialsError,
    AudioSourceFailedError,
)
from ..models.events import StatusChangeCallback
from ..models.session import PauseReason
from ..storage.transcript_manager import TranscriptManager, generate_timestamped_filename
from ..transcription import create_backend
from ..transcription.base import AbstractTranscriptionBackend
from .events import StatusEventPublisher
from .transcription_session import TranscriptionSession, SessionSettings

logger = logging.getLogger(__name__)

NO_SESSION_MESSAGE = "No active transcription session"


def default_capture_factory(sample_rate: int, channels: int, chunk_size: int, input_device_name: str):
    """Create a PyAudio-backed capture for the given device."""
    from ..audio.capture import AudioCapture
    return AudioCapture(
        sample_rate=sample_rate,
        channels=channels,
        chunk_size=chunk_size,
        input_device_name=input_device_name,
    )


def _error_response(error: Exception) -> Dict[str, Any]:
    return {
        "success": False,
        "error": str(error),
        "error_type": type(error).__name__,
    }


def build_status_banner(pause_reason: Optional[PauseReason], warning: Optional[str]) -> str:
    """Alert banner shown above the transcript while transcription is paused."""
    if pause_reason is PauseReason.MANUAL:
        action = "Call resume_transcription to continue"
    else:
        action = "Will auto-resume when audio is detected"
    reason = pause_reason.value if pause_reason else "unknown"
    alert_row = " ".join(["⚠️"] * 12)
    return (
        "\n\n⚠️ ⚠️ ⚠️ TRANSCRIPTION STATUS ALERT ⚠️ ⚠️ ⚠️\n\n"
        "**Status**: PAUSED\n"
        f"**Reason**: {reason}\n"
        f"**Message**: {warning or 'Transcription is paused'}\n"
        f"**Action**: {action}\n\n"
        f"{alert_row}\n\n"
        "---\n\n"
    )


class SessionController:
    """Maps start/pause/resume/stop/status requests onto transcription sessions.

    Every method returns a result dictionary with a ``success`` flag; session
    errors are reported in the dictionary instead of being raised. A fresh
    TranscriptionSession is created for every start, so nothing carries over
    between sessions.
    """

    def __init__(self,
                 config: MeetScribeConfig,
                 backend_factory: Callable[[MeetScribeConfig], AbstractTranscriptionBackend] = create_backend,
                 capture_factory: Callable[..., Any] = default_capture_factory,
                 on_status_change: Optional[StatusChangeCallback] = None):
        """Initialize session controller.

        Args:
            config: Application configuration
            backend_factory: Builds the speech-to-text backend for a new session
            capture_factory: Builds the audio source for a new session
            on_status_change: Event sink for sessions; publishes on pubsub by default
        """
        self.config = config
        self.backend_factory = backend_factory
        self.capture_factory = capture_factory
        self.on_status_change = on_status_change or StatusEventPublisher().publish
        self.session: Optional[TranscriptionSession] = None

        logger.info("SessionController initialized")

    def _resolve_output_file(self, output_file: Optional[str]) -> Path:
        transcript_dir = Path(self.config.get_transcript_directory())
        if not output_file:
            return transcript_dir / generate_timestamped_filename()
        path = Path(output_file)
        return path if path.is_absolute() else transcript_dir / path

    def start_transcription(self,
                            input_device: Optional[str] = None,
                            chunk_seconds: Optional[float] = None,
                            output_file: Optional[str] = None) -> Dict[str, Any]:
        """Start a new transcription session.

        Args:
            input_device: Audio input device name (default from config)
            chunk_seconds: Seconds of audio per transcription chunk (default from config)
            output_file: Transcript filename (default: unique timestamped file)

        Returns:
            Result dictionary with the transcript path and effective configuration
        """
        try:
            if self.session and self.session.status.is_running:
                raise AlreadyRunningError()

            input_device = input_device or self.config.get('audio.input_device_name')
            chunk_seconds = chunk_seconds or self.config.get('audio.chunk_seconds', 8)
            sample_rate = self.config.get('audio.sample_rate', 16000)
            channels = self.config.get('audio.channels', 1)
            outfile = self._resolve_output_file(output_file)

            try:
                backend = self.backend_factory(self.config)
            except (ValueError, FileNotFoundError) as e:
                raise InvalidCredentialsError(str(e)) from e
            except Exception as e:
                # Missing optional client libraries end up here
                raise InvalidCredentialsError(f"Cannot create speech-to-text backend: {e}") from e

            try:
                audio_capture = self.capture_factory(
                    sample_rate=sample_rate,
                    channels=channels,
                    chunk_size=self.config.get('audio.chunk_size', 1024),
                    input_device_name=input_device,
                )
            except Exception as e:
                backend.cleanup()
                raise AudioSourceFailedError(f"Cannot create audio source: {e}") from e

            session = TranscriptionSession(
                audio_capture=audio_capture,
                chunker=AudioChunker(sample_rate=sample_rate, channels=channels, chunk_seconds=chunk_seconds),
                backend=backend,
                transcript_manager=TranscriptManager(str(outfile)),
                settings=SessionSettings.from_config(self.config),
                on_status_change=self.on_status_change,
            )
            session.start()
        except SessionError as e:
            logger.error(f"Error starting transcription: {e}")
            return _error_response(e)

        self.session = session
        silence_seconds = session.settings.silence_threshold * chunk_seconds
        return {
            "success": True,
            "message": ("Transcription started successfully. IMPORTANT: Periodically check get_status "
                        "(every 30-60 seconds) to monitor for audio routing issues or silence detection. "
                        f"The system will auto-pause after {silence_seconds:g} seconds of silence."),
            "output_file": session.get_transcript_path(),
            "config": {
                "input_device": input_device,
                "chunk_seconds": chunk_seconds,
                "backend": self.config.get('transcription.backend', 'whisper'),
            },
        }

    def pause_transcription(self) -> Dict[str, Any]:
        try:
            self._require_session().pause()
        except SessionError as e:
            return _error_response(e)
        return {
            "success": True,
            "message": "Transcription paused successfully. Use resume_transcription to continue.",
        }

    def resume_transcription(self) -> Dict[str, Any]:
        try:
            self._require_session().resume()
        except SessionError as e:
            return _error_response(e)
        return {
            "success": True,
            "message": "Transcription resumed successfully. Listening for audio...",
        }

    def stop_transcription(self) -> Dict[str, Any]:
        """Stop the current session and return its statistics."""
        try:
            session = self._require_session()
        except SessionError as e:
            return _error_response(e)

        session.stop()
        report = session.get_status()
        duration = 0
        if report.start_time:
            duration = int((session.clock() - report.start_time).total_seconds())

        return {
            "success": True,
            "message": "Transcription stopped successfully",
            "stats": {
                "chunks_processed": report.chunks_processed,
                "silent_chunks_skipped": report.silent_chunks_skipped,
                "duration_seconds": duration,
                "errors": report.errors,
                "estimated_cost": round(report.estimated_cost, 6),
                "cost_saved": round(report.cost_saved, 6),
            },
            "output_file": report.transcript_path,
        }

    def get_status(self) -> Dict[str, Any]:
        if self.session is None:
            return {
                "success": True,
                "is_running": False,
                "is_paused": False,
                "chunks_processed": 0,
                "consecutive_silent_chunks": 0,
                "errors": 0,
            }
        return {"success": True, **self.session.get_status().to_dict()}

    def get_transcript(self, lines: Optional[int] = None) -> Dict[str, Any]:
        """Get the transcript, optionally only its last `lines` lines."""
        try:
            session = self._require_session()
        except SessionError as e:
            return _error_response(e)

        content = session.get_transcript()
        all_lines = content.split("\n")
        if lines and lines > 0:
            content = "\n".join(all_lines[-lines:])
        return {
            "success": True,
            "content": content,
            "total_lines": len(all_lines),
            "file_path": session.get_transcript_path(),
        }

    def clear_transcript(self) -> Dict[str, Any]:
        try:
            self._require_session().clear_transcript()
        except SessionError as e:
            return _error_response(e)
        return {"success": True, "message": "Transcript cleared successfully"}

    def cleanup_transcript(self) -> Dict[str, Any]:
        """Stop the session if needed, delete its transcript file and forget it."""
        try:
            session = self._require_session()
        except SessionError as e:
            return _error_response(e)

        session.stop()
        deleted = session.transcript_manager.delete()
        file_path = session.get_transcript_path()
        self.session = None
        return {
            "success": True,
            "message": "Transcript file deleted successfully" if deleted else "Transcript file does not exist",
            "file_path": file_path,
        }

    def get_transcript_resource(self) -> Dict[str, Any]:
        """Transcript as markdown, prefixed with an alert banner while paused."""
        try:
            session = self._require_session()
        except SessionError as e:
            return _error_response(e)

        content = session.get_transcript()
        report = session.get_status()
        if report.is_paused:
            content = build_status_banner(report.pause_reason, report.warning) + content
        return {"success": True, "mime_type": "text/markdown", "content": content}

    def _require_session(self) -> TranscriptionSession:
        if self.session is None:
            raise NotRunningError(NO_SESSION_MESSAGE)
        return self.session

    def shutdown(self) -> None:
        """Stop any running session and release its backend."""
        if self.session is None:
            return
        self.session.stop()
        self.session.wait_for_pending(timeout=30.0)
        self.session.backend.cleanup()
