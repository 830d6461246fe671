"""Pytest configuration and fixtures for MeetScribe tests."""

import pytest
import tempfile
import logging
import threading
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional
from unittest.mock import Mock, patch

import numpy as np

from meetscribe.audio.chunker import AudioChunker, pcm_to_wav
from meetscribe.models.transcription import TranscriptEntry
from meetscribe.services.transcription_session import TranscriptionSession, SessionSettings
from meetscribe.storage.transcript_manager import TranscriptManager
from meetscribe.transcription.base import AbstractTranscriptionBackend


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Small sample rate keeps 8-second test chunks at 16 KB
TEST_SAMPLE_RATE = 1000
TEST_CHUNK_SECONDS = 8


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without audio hardware or network")


def generate_pcm(pattern: str = "sine",
                 duration_seconds: float = 1.0,
                 sample_rate: int = TEST_SAMPLE_RATE,
                 amplitude: float = 0.5,
                 frequency: float = 437.0) -> bytes:
    """Generate 16-bit mono PCM for testing.

    Args:
        pattern: Type of audio pattern ('sine', 'noise', 'silence')
        duration_seconds: Duration of audio
        sample_rate: Sample rate in Hz
        amplitude: Peak amplitude as a fraction of full scale
        frequency: Sine frequency; not a divisor of the sample rate so that
                   strided silence checks never land on zero crossings only

    Returns:
        bytes: Audio data as bytes
    """
    samples = int(duration_seconds * sample_rate)

    if pattern == "sine":
        t = np.linspace(0, duration_seconds, samples, False)
        wave_data = np.sin(2 * np.pi * frequency * t)
    elif pattern == "noise":
        wave_data = np.random.uniform(-1, 1, samples)
    elif pattern == "silence":
        wave_data = np.zeros(samples)
    else:
        raise ValueError(f"Unknown pattern: {pattern}")

    return (wave_data * amplitude * 32767).astype(np.int16).tobytes()


def make_unit(pattern: str = "sine", amplitude: float = 0.5) -> bytes:
    """One complete WAV unit of TEST_CHUNK_SECONDS."""
    pcm = generate_pcm(pattern, TEST_CHUNK_SECONDS, TEST_SAMPLE_RATE, amplitude)
    return pcm_to_wav(pcm, TEST_SAMPLE_RATE, 1)


class MockTranscriptionBackend(AbstractTranscriptionBackend):
    """Backend returning canned text; records every call."""

    service_name = "mock"

    def __init__(self, text: Optional[str] = "Hello world", healthy: bool = True,
                 fail: bool = False):
        super().__init__()
        self.text = text
        self.healthy = healthy
        self.fail = fail
        self.calls: List[bytes] = []
        self.cleaned_up = False

    def transcribe(self, wav_data: bytes) -> Optional[TranscriptEntry]:
        self.calls.append(wav_data)
        if self.fail:
            raise RuntimeError("Transcription API error: 500")
        if not self.text:
            return None
        return TranscriptEntry(timestamp="2025-10-04 12:00:00", text=self.text)

    def health_check(self) -> bool:
        return self.healthy

    def cleanup(self) -> None:
        self.cleaned_up = True


class GatedTranscriptionBackend(MockTranscriptionBackend):
    """Backend whose calls block until the test opens the gate."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.gate = threading.Event()
        self.entered = threading.Semaphore(0)
        self.lock = threading.Lock()
        self.in_flight = 0
        self.max_in_flight = 0
        self.finished = 0

    def transcribe(self, wav_data: bytes) -> Optional[TranscriptEntry]:
        with self.lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        self.entered.release()
        try:
            self.gate.wait(timeout=5.0)
            return super().transcribe(wav_data)
        finally:
            with self.lock:
                self.in_flight -= 1
                self.finished += 1


class FakeAudioCapture:
    """Audio source that lets tests push bytes by hand."""

    def __init__(self, fail_on_start: bool = False, **kwargs):
        self.kwargs = kwargs
        self.fail_on_start = fail_on_start
        self.on_data = None
        self.on_error = None
        self.started = False
        self.stopped = False

    def start_capture(self, on_data, on_error) -> None:
        if self.fail_on_start:
            raise RuntimeError("Could not find audio input device matching 'BlackHole'")
        self.on_data = on_data
        self.on_error = on_error
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def push(self, data: bytes) -> None:
        self.on_data(data)


class FakeClock:
    """Controllable replacement for datetime.now."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2025, 10, 4, 12, 0, 0)
        self.lock = threading.Lock()

    def __call__(self) -> datetime:
        with self.lock:
            return self.now

    def advance(self, **kwargs) -> None:
        with self.lock:
            self.now += timedelta(**kwargs)


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        # Configure mock stream
        mock_stream.read.return_value = b'\x00' * 2048  # Silent audio

        # Configure mock PyAudio instance
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.get_device_count.return_value = 0

        # Configure mock PyAudio class
        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


@pytest.fixture
def transcript_path(temp_data_dir):
    return str(Path(temp_data_dir) / "test_transcript.md")


@pytest.fixture
def mock_backend():
    return MockTranscriptionBackend()


@pytest.fixture
def gated_backend():
    """Gated backend; the gate is opened at teardown so no worker stays blocked."""
    backend = GatedTranscriptionBackend()
    yield backend
    backend.gate.set()


@pytest.fixture
def fake_capture():
    return FakeAudioCapture()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def status_events():
    """List collecting every status event; its append is the event sink."""
    return []


@pytest.fixture
def session_factory(transcript_path, mock_backend, fake_capture, fake_clock, status_events):
    """Build sessions wired to fakes; keyword overrides replace collaborators."""
    created = []

    def factory(**overrides) -> TranscriptionSession:
        settings = overrides.pop("settings", SessionSettings(
            max_concurrent_transcriptions=1,
            stop_grace_seconds=0,
        ))
        session = TranscriptionSession(
            audio_capture=overrides.pop("audio_capture", fake_capture),
            chunker=overrides.pop("chunker", AudioChunker(
                sample_rate=TEST_SAMPLE_RATE, channels=1, chunk_seconds=TEST_CHUNK_SECONDS)),
            backend=overrides.pop("backend", mock_backend),
            transcript_manager=overrides.pop("transcript_manager", TranscriptManager(transcript_path)),
            settings=settings,
            on_status_change=overrides.pop("on_status_change", status_events.append),
            clock=overrides.pop("clock", fake_clock),
        )
        created.append(session)
        return session

    yield factory

    for session in created:
        session.stop()
        session.wait_for_pending(timeout=5.0)


@pytest.fixture
def session(session_factory):
    """A session that has not been started."""
    return session_factory()


@pytest.fixture
def running_session(session):
    """A started session."""
    session.start()
    return session


@pytest.fixture
def silent_unit():
    return make_unit("silence")


@pytest.fixture
def audio_unit():
    return make_unit("sine")
