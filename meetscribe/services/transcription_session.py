"""Transcription session orchestrator.

Decides, unit by unit, whether captured audio is transcribed, skipped, or
causes the session to pause or resume. Three pause triggers share one
``SessionStatus``:

* manual ``pause()`` calls, cleared only by ``resume()``;
* silence - ``silence_threshold`` consecutive silent units pause the session
  and the first audible unit afterwards resumes it;
* inactivity - no caller interaction for ``inactivity_timeout_minutes`` forces
  a pause that, like a manual one, never clears by itself.
"""

import time
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, Future, wait
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional, Set, Any

from ..audio.chunker import AudioChunker
from ..audio.silence import is_silent_wav
from ..config import MeetScribeConfig
from ..errors import (
    AlreadyRunningError,
    NotRunningError,
    AlreadyPausedError,
    NotPausedError,
    InvalidCredentialsError,
    AudioSourceFailedError,
    TranscriptStoreError,
)
from ..models.events import (
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
from ..models.session import PauseReason, SessionStatus, SessionStatusReport
from ..storage.transcript_manager import TranscriptManager
from ..transcription.base import AbstractTranscriptionBackend
from .cost import chunks_to_cost, estimate_costs, format_cost

logger = logging.getLogger(__name__)


@dataclass
class SessionSettings:
    """Tunables of the session orchestrator."""
    silence_threshold: int = 4
    silence_amplitude_threshold: int = 100
    silence_sample_interval: int = 100
    inactivity_timeout_minutes: float = 30
    max_concurrent_transcriptions: int = 4
    stop_grace_seconds: float = 0.25

    @classmethod
    def from_config(cls, config: MeetScribeConfig) -> "SessionSettings":
        defaults = cls()
        return cls(
            silence_threshold=config.get('session.silence_threshold', defaults.silence_threshold),
            silence_amplitude_threshold=config.get('session.silence_amplitude_threshold',
                                                   defaults.silence_amplitude_threshold),
            silence_sample_interval=config.get('session.silence_sample_interval',
                                               defaults.silence_sample_interval),
            inactivity_timeout_minutes=config.get('session.inactivity_timeout_minutes',
                                                  defaults.inactivity_timeout_minutes),
            max_concurrent_transcriptions=config.get('session.max_concurrent_transcriptions',
                                                     defaults.max_concurrent_transcriptions),
            stop_grace_seconds=config.get('session.stop_grace_seconds', defaults.stop_grace_seconds),
        )


class TranscriptionSession:
    """Orchestrates capture, silence detection, pausing and transcription for one session."""

    def __init__(self,
                 audio_capture: Any,
                 chunker: AudioChunker,
                 backend: AbstractTranscriptionBackend,
                 transcript_manager: TranscriptManager,
                 settings: Optional[SessionSettings] = None,
                 on_status_change: Optional[StatusChangeCallback] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        """Initialize transcription session.

        Args:
            audio_capture: Audio source exposing start_capture(on_data, on_error) and stop()
            chunker: Splits captured PCM into fixed-duration WAV units
            backend: Speech-to-text backend
            transcript_manager: Transcript file the session writes to
            settings: Session tunables (defaults when None)
            on_status_change: Event sink called synchronously on every transition
            clock: Source of the current time, datetime.now by default
        """
        self.audio_capture = audio_capture
        self.chunker = chunker
        self.backend = backend
        self.transcript_manager = transcript_manager
        self.settings = settings or SessionSettings()
        self.on_status_change = on_status_change
        self.clock = clock or datetime.now

        self.status = SessionStatus()
        # Audio arrives on the capture thread, control calls on the caller's thread
        self.lock = threading.RLock()

        self.executor: Optional[ThreadPoolExecutor] = None
        self.pending_transcriptions: Set[Future] = set()

    @property
    def chunk_seconds(self) -> float:
        return self.chunker.chunk_seconds

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the transcription session.

        Raises:
            AlreadyRunningError: If the session is running
            InvalidCredentialsError: If the speech-to-text health check fails
            AudioSourceFailedError: If audio capture cannot be started
            TranscriptStoreError: If the transcript file cannot be created
        """
        with self.lock:
            if self.status.is_running:
                raise AlreadyRunningError()

        try:
            self.transcript_manager.initialize()
        except OSError as e:
            logger.error(f"Failed to create transcript file: {e}")
            raise TranscriptStoreError(f"Cannot write transcript file {self.get_transcript_path()}: {e}") from e

        logger.info("Verifying speech-to-text credentials...")
        try:
            healthy = self.backend.health_check()
        except Exception as e:
            logger.error(f"Health check raised: {e}")
            healthy = False
        if not healthy:
            raise InvalidCredentialsError()
        logger.info("Credentials verified successfully")

        with self.lock:
            now = self.clock()
            self.status = SessionStatus(is_running=True, start_time=now, last_interaction_time=now)
            self.chunker.reset()
            self.executor = ThreadPoolExecutor(
                max_workers=self.settings.max_concurrent_transcriptions,
                thread_name_prefix="transcription",
            )

        try:
            self.audio_capture.start_capture(self.handle_audio_data, self.handle_audio_error)
        except Exception as e:
            logger.error(f"Failed to start audio capture: {e}")
            with self.lock:
                self.status.is_running = False
            self.executor.shutdown(wait=False)
            raise AudioSourceFailedError(f"Failed to start audio capture: {e}") from e

        logger.info(f"Transcription session started, writing to {self.get_transcript_path()}")
        self._emit(SessionStartedEvent(timestamp=self.clock()))

    def pause(self) -> None:
        """Manually pause transcription; audio capture keeps running.

        Raises:
            NotRunningError: If the session is not running
            AlreadyPausedError: If transcription is already paused
        """
        with self.lock:
            if not self.status.is_running:
                raise NotRunningError("Cannot pause: transcription is not running")
            if self.status.is_paused:
                raise AlreadyPausedError()

            logger.info("Manually pausing transcription...")
            message = "Transcription manually paused by user"
            self._enter_pause(
                PauseReason.MANUAL,
                warning=message,
                notice="⏸️ TRANSCRIPTION PAUSED: Manually paused by user. "
                       "Audio between now and resume will not be transcribed.",
            )
            self._touch()
            self._emit(SessionPausedEvent(reason=PauseReason.MANUAL, message=message,
                                          timestamp=self.clock()))

    def resume(self) -> None:
        """Resume transcription after a manual, silence or inactivity pause.

        Raises:
            NotRunningError: If the session is not running
            NotPausedError: If transcription is not paused
        """
        with self.lock:
            if not self.status.is_running:
                raise NotRunningError("Cannot resume: transcription is not running")
            if not self.status.is_paused:
                raise NotPausedError()

            previous_reason = self.status.pause_reason
            reason_text = previous_reason.value if previous_reason else "unknown"
            logger.info(f"Resuming transcription (was paused due to: {reason_text})...")

            self.status.clear_pause()
            self.status.consecutive_silent_chunks = 0
            self._write_notice(f"▶️ TRANSCRIPTION RESUMED: Previously paused ({reason_text}).")
            self._touch()
            self._emit(SessionResumedEvent(previous_reason=previous_reason, timestamp=self.clock()))

    def stop(self) -> None:
        """Stop the session; a no-op if it is not running.

        Transcriptions already dispatched are neither awaited nor cancelled;
        the call only returns after a short grace delay.
        """
        with self.lock:
            if not self.status.is_running:
                return
            logger.info("Stopping transcription session...")
            self.status.is_running = False

        # Outside the lock: the capture thread may be waiting on it
        self.audio_capture.stop()

        with self.lock:
            self.chunker.reset()

        time.sleep(self.settings.stop_grace_seconds)
        if self.executor:
            self.executor.shutdown(wait=False)

        with self.lock:
            duration = 0.0
            if self.status.start_time:
                duration = (self.clock() - self.status.start_time).total_seconds()
            event = SessionStoppedEvent(
                chunks_processed=self.status.chunks_processed,
                duration_seconds=duration,
                errors=self.status.errors,
                timestamp=self.clock(),
            )
        logger.info(f"Session stopped: {event.chunks_processed} chunks, "
                    f"{duration:.0f}s, {event.errors} errors")
        self._emit(event)

    def get_status(self) -> SessionStatusReport:
        """Get a snapshot of the session status, including cost estimates.

        Counts as user interaction for the inactivity safeguard.
        """
        with self.lock:
            self._touch()
            costs = estimate_costs(self.status, self.chunk_seconds)
            return SessionStatusReport.from_status(
                self.status,
                estimated_cost=costs.estimated_cost,
                cost_saved=costs.cost_saved,
                transcript_path=self.get_transcript_path(),
            )

    def get_transcript(self) -> str:
        """Get the transcript content (counts as user interaction)."""
        with self.lock:
            self._touch()
        return self.transcript_manager.get_content()

    def clear_transcript(self) -> None:
        """Clear the transcript (counts as user interaction)."""
        with self.lock:
            self._touch()
        self.transcript_manager.clear()

    def get_transcript_path(self) -> str:
        return self.transcript_manager.get_file_path()

    # ------------------------------------------------------------------
    # Audio ingestion
    # ------------------------------------------------------------------

    def handle_audio_data(self, audio_data: bytes) -> None:
        """Audio source callback: buffer raw PCM and process every complete unit."""
        units = []
        with self.lock:
            if not self.status.is_running:
                return
            self.chunker.process_chunk(audio_data, units.append)

        for wav_data in units:
            self.process_unit(wav_data)

    def handle_audio_error(self, error: Exception) -> None:
        """Audio source callback for capture failures; the session keeps running."""
        with self.lock:
            self.status.errors += 1
            elapsed_minutes = self._minutes_since(self.status.start_time)
        logger.error(f"Audio capture error: {error}")
        self._emit(SessionWarningEvent(message=f"Audio capture error: {error}",
                                       elapsed_minutes=elapsed_minutes,
                                       timestamp=self.clock()))

    def process_unit(self, wav_data: bytes) -> bool:
        """Run the per-unit decision for one WAV unit.

        Returns:
            True if the unit was dispatched for transcription
        """
        # Always classify: it is how a silence pause notices returning audio
        silent = is_silent_wav(wav_data,
                               threshold=self.settings.silence_amplitude_threshold,
                               sample_interval=self.settings.silence_sample_interval)

        with self.lock:
            if not self.status.is_running:
                return False
            try:
                should_transcribe = self._evaluate_unit(silent)
            finally:
                self.check_inactivity()

        if should_transcribe:
            self._dispatch_transcription(wav_data)
        return should_transcribe

    def _evaluate_unit(self, silent: bool) -> bool:
        status = self.status

        if status.is_paused:
            if status.pause_reason is PauseReason.MANUAL:
                return False
            if silent:
                return False
            # Silence pause and audio is back: resume and keep this unit
            logger.info("Auto-resuming transcription after detecting audio")
            status.clear_pause()
            self._write_notice("▶️ TRANSCRIPTION AUTO-RESUMED: Audio detected again.")
            self._emit(SessionResumedEvent(previous_reason=PauseReason.SILENCE, timestamp=self.clock()))

        if silent:
            status.silent_chunks_skipped += 1
            status.consecutive_silent_chunks += 1
            consecutive = status.consecutive_silent_chunks
            logger.debug(f"Silent chunk detected ({consecutive}/{self.settings.silence_threshold})")
            self._emit(SilenceDetectedEvent(consecutive_chunks=consecutive, timestamp=self.clock()))

            if consecutive >= self.settings.silence_threshold and not status.is_paused:
                silent_seconds = consecutive * self.chunk_seconds
                warning = (f"Audio capture appears to be inactive. No audio detected for "
                           f"{consecutive} consecutive chunks. Transcription paused. "
                           f"Please check your audio input device and routing.")
                self._enter_pause(
                    PauseReason.SILENCE,
                    warning=warning,
                    notice=(f"⚠️ TRANSCRIPTION AUTO-PAUSED: No audio detected for {consecutive} "
                            f"consecutive chunks ({silent_seconds:g} seconds). Please check your audio "
                            f"input device and routing. Transcription will auto-resume when audio is detected."),
                )
                self._emit(SessionPausedEvent(reason=PauseReason.SILENCE, message=warning,
                                              timestamp=self.clock()))
            return False

        if status.consecutive_silent_chunks > 0:
            logger.debug(f"Audio detected, resetting silent chunk counter "
                         f"(was {status.consecutive_silent_chunks})")
            status.consecutive_silent_chunks = 0
            self._emit(AudioDetectedEvent(timestamp=self.clock()))
        return True

    def check_inactivity(self) -> bool:
        """Pause a running session nobody has interacted with for too long.

        Returns:
            True if this call paused the session
        """
        with self.lock:
            status = self.status
            if not status.is_running or status.is_paused or status.last_interaction_time is None:
                return False

            elapsed = self.clock() - status.last_interaction_time
            if elapsed < timedelta(minutes=self.settings.inactivity_timeout_minutes):
                return False

            elapsed_minutes = int(elapsed.total_seconds() // 60)
            cost = chunks_to_cost(status.chunks_processed, self.chunk_seconds)
            warning = (f"INACTIVITY AUTO-PAUSE: No user interaction for {elapsed_minutes} minutes. "
                       f"Transcription paused to prevent runaway API costs. Call resume to continue.")
            self._enter_pause(
                PauseReason.MANUAL,
                warning=warning,
                notice=(f"⚠️ TRANSCRIPTION AUTO-PAUSED: No user interaction detected for "
                        f"{elapsed_minutes} minutes. Estimated API cost so far: {format_cost(cost)} "
                        f"({status.chunks_processed} chunks processed). Call resume to continue."),
            )
            logger.warning(warning)
            self._emit(SessionWarningEvent(message=warning, elapsed_minutes=elapsed_minutes,
                                           timestamp=self.clock()))
            return True

    # ------------------------------------------------------------------
    # Transcription dispatch
    # ------------------------------------------------------------------

    def _dispatch_transcription(self, wav_data: bytes) -> None:
        """Submit a unit without waiting for earlier ones to finish."""
        with self.lock:
            if self.executor is None:
                return
            try:
                # Results count toward the run that dispatched them
                future = self.executor.submit(self._transcribe_unit, wav_data, self.status)
            except RuntimeError:
                # Executor already shut down by stop()
                logger.debug("Dropping unit submitted after shutdown")
                return
            self.pending_transcriptions.add(future)
        future.add_done_callback(self._forget_transcription)

    def _forget_transcription(self, future: Future) -> None:
        with self.lock:
            self.pending_transcriptions.discard(future)

    def _transcribe_unit(self, wav_data: bytes, status: SessionStatus) -> None:
        try:
            entry = self.backend.transcribe(wav_data)
        except Exception as e:
            with self.lock:
                status.errors += 1
            logger.error(f"Transcription error: {e}")
            return

        if entry is None:
            return

        with self.lock:
            try:
                self.transcript_manager.append(entry)
            except OSError as e:
                status.errors += 1
                logger.error(f"Failed to write transcript entry: {e}")
                return
            status.chunks_processed += 1
            status.last_transcript_time = self.clock()
        logger.info(f"Transcribed: {entry.text}")

    def wait_for_pending(self, timeout: Optional[float] = None) -> bool:
        """Block until every dispatched transcription has finished.

        Returns:
            True if nothing is left pending
        """
        with self.lock:
            pending = list(self.pending_transcriptions)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _enter_pause(self, reason: PauseReason, warning: str, notice: str) -> None:
        self.status.is_paused = True
        self.status.pause_reason = reason
        self.status.warning = warning
        self._write_notice(notice)

    def _write_notice(self, message: str) -> None:
        """Append a system notice; a failed write is counted, not raised."""
        try:
            self.transcript_manager.append_system_message(message, self.clock())
        except OSError as e:
            self.status.errors += 1
            logger.error(f"Failed to write transcript notice: {e}")

    def _touch(self) -> None:
        self.status.last_interaction_time = self.clock()

    def _minutes_since(self, moment: Optional[datetime]) -> int:
        if moment is None:
            return 0
        return int((self.clock() - moment).total_seconds() // 60)

    def _emit(self, event: StatusChangeEvent) -> None:
        if self.on_status_change is None:
            return
        try:
            self.on_status_change(event)
        except Exception as e:
            logger.error(f"Status change callback failed for '{event.type}': {e}")
