"""Unit tests for the inactivity auto-pause safeguard."""

from datetime import timedelta

import pytest

from meetscribe.models.events import SessionPausedEvent, SessionWarningEvent
from meetscribe.models.session import PauseReason
from meetscribe.services.transcription_session import SessionSettings

from conftest import MockTranscriptionBackend


@pytest.mark.unit
class TestInactivityAutoPause:

    def test_pauses_after_timeout(self, running_session, silent_unit, fake_clock):
        running_session.status.chunks_processed = 10
        running_session.status.last_interaction_time = fake_clock() - timedelta(minutes=31)

        running_session.process_unit(silent_unit)

        status = running_session.status
        assert status.is_paused is True
        assert status.pause_reason is PauseReason.MANUAL
        assert status.warning.startswith("INACTIVITY AUTO-PAUSE: No user interaction for 31 minutes")

        content = running_session.get_transcript()
        assert "No user interaction detected for 31 minutes" in content
        assert "Estimated API cost so far: $0.008" in content
        assert "(10 chunks processed)" in content

    def test_cost_comes_from_chunks_not_wall_clock(self, running_session, silent_unit, fake_clock):
        running_session.status.chunks_processed = 10
        fake_clock.advance(hours=2)

        running_session.process_unit(silent_unit)

        content = running_session.get_transcript()
        assert "120 minutes" in content
        assert "$0.008" in content

    def test_emits_warning_only(self, running_session, silent_unit, fake_clock, status_events):
        fake_clock.advance(minutes=31)

        running_session.process_unit(silent_unit)

        warnings = [e for e in status_events if isinstance(e, SessionWarningEvent)]
        assert len(warnings) == 1
        assert warnings[0].elapsed_minutes == 31
        assert "INACTIVITY AUTO-PAUSE" in warnings[0].message
        assert not any(isinstance(e, SessionPausedEvent) for e in status_events)

    def test_not_triggered_before_timeout(self, running_session, silent_unit, fake_clock):
        fake_clock.advance(minutes=29, seconds=59)

        running_session.process_unit(silent_unit)

        assert running_session.status.is_paused is False

    def test_triggered_at_exact_timeout(self, running_session, fake_clock):
        fake_clock.advance(minutes=30)

        assert running_session.check_inactivity() is True
        assert running_session.status.is_paused is True

    def test_fires_when_transcription_fails(self, session_factory, audio_unit, fake_clock):
        session = session_factory(backend=MockTranscriptionBackend(fail=True))
        session.start()
        fake_clock.advance(minutes=31)

        session.process_unit(audio_unit)
        session.wait_for_pending(timeout=5.0)

        assert session.status.is_paused is True
        assert session.status.pause_reason is PauseReason.MANUAL

    def test_fires_while_audio_keeps_coming(self, running_session, audio_unit, fake_clock):
        for _ in range(2):
            running_session.process_unit(audio_unit)
            fake_clock.advance(minutes=16)
        assert running_session.status.is_paused is False

        running_session.process_unit(audio_unit)
        running_session.wait_for_pending(timeout=5.0)

        assert running_session.status.is_paused is True
        assert running_session.status.warning.startswith("INACTIVITY AUTO-PAUSE: No user interaction for 32 minutes")

    def test_not_triggered_when_already_paused(self, running_session, silent_unit, fake_clock,
                                               status_events):
        running_session.pause()
        fake_clock.advance(minutes=45)

        assert running_session.check_inactivity() is False
        running_session.process_unit(silent_unit)

        assert running_session.status.warning == "Transcription manually paused by user"
        assert not any(isinstance(e, SessionWarningEvent) for e in status_events)

    def test_not_triggered_when_stopped(self, running_session, fake_clock):
        running_session.stop()
        fake_clock.advance(minutes=45)

        assert running_session.check_inactivity() is False

    def test_status_reads_reset_timer(self, running_session, silent_unit, fake_clock):
        fake_clock.advance(minutes=20)
        running_session.get_status()
        fake_clock.advance(minutes=20)

        running_session.process_unit(silent_unit)

        assert running_session.status.is_paused is False

    def test_does_not_auto_resume(self, running_session, silent_unit, audio_unit, fake_clock, mock_backend):
        fake_clock.advance(minutes=31)
        running_session.process_unit(silent_unit)

        running_session.process_unit(audio_unit)
        running_session.process_unit(audio_unit)

        assert running_session.status.is_paused is True
        assert mock_backend.calls == []

    def test_resume_after_inactivity_pause(self, running_session, silent_unit, fake_clock):
        fake_clock.advance(minutes=31)
        running_session.process_unit(silent_unit)

        running_session.resume()

        assert running_session.status.is_paused is False
        assert running_session.status.last_interaction_time == fake_clock()
        assert "Previously paused (manual)" in running_session.get_transcript()

    def test_custom_timeout(self, session_factory, silent_unit, fake_clock):
        session = session_factory(settings=SessionSettings(
            inactivity_timeout_minutes=5, max_concurrent_transcriptions=1, stop_grace_seconds=0))
        session.start()
        fake_clock.advance(minutes=5)

        session.process_unit(silent_unit)

        assert session.status.is_paused is True
