"""Audio capture module pushing raw PCM to a callback."""

import pyaudio
import logging
from threading import Thread, Event
from typing import Optional, Callable
from datetime import datetime

from ..models.audio import AudioStats


logger = logging.getLogger(__name__)


class AudioCapture:
    """Continuous audio capture that pushes raw 16-bit PCM to a callback."""

    def __init__(
        self,
        sample_rate: int = 16000,
        channels: int = 1,
        chunk_size: int = 1024,
        input_device_name: Optional[str] = None,
    ):
        """Initialize audio capture with specified parameters.

        Args:
            sample_rate: Audio sample rate (16kHz for Whisper compatibility)
            channels: Number of audio channels (1 for mono)
            chunk_size: Frames read from the device per callback
            input_device_name: Substring of the input device to capture from
                              (e.g. 'BlackHole'); None uses the default device
        """
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_size = chunk_size
        self.input_device_name = input_device_name

        # Capture thread management
        self.capture_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.is_recording = False

        self.on_data: Optional[Callable[[bytes], None]] = None
        self.on_error: Optional[Callable[[Exception], None]] = None

        # Statistics tracking
        self.start_time: Optional[datetime] = None
        self.total_reads = 0
        self.total_bytes = 0

        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None

    def find_input_device_index(self, name_substr: str) -> Optional[int]:
        """Find an input device whose name contains name_substr.

        Falls back to the first input device when nothing matches.

        Returns:
            Device index, or None if no input device exists
        """
        if self.pyaudio_instance is None:
            self.pyaudio_instance = pyaudio.PyAudio()

        input_devices = []
        for index in range(self.pyaudio_instance.get_device_count()):
            info = self.pyaudio_instance.get_device_info_by_index(index)
            if info.get('maxInputChannels', 0) > 0:
                input_devices.append((index, str(info.get('name', ''))))

        for index, name in input_devices:
            if name_substr.lower() in name.lower():
                logger.info(f"Using input device [{index}] {name}")
                return index

        if input_devices:
            index, name = input_devices[0]
            logger.warning(f"No input device matching '{name_substr}', falling back to [{index}] {name}")
            return index
        return None

    def start_capture(self,
                      on_data: Callable[[bytes], None],
                      on_error: Callable[[Exception], None]) -> None:
        """Open the input stream and start pushing audio in a background thread.

        Raises:
            RuntimeError: If no matching input device exists
        """
        if self.is_recording:
            logger.warning("Capture already in progress")
            return

        device_index = None
        if self.input_device_name:
            device_index = self.find_input_device_index(self.input_device_name)
            if device_index is None:
                raise RuntimeError(f"Could not find audio input device matching '{self.input_device_name}'")

        stream = self.__open_audio_stream(device_index)

        self.on_data = on_data
        self.on_error = on_error
        self.stop_event.clear()
        self.start_time = datetime.now()
        self.total_reads = 0
        self.total_bytes = 0

        self.capture_thread = Thread(target=self._capture_continuously, args=(stream,), daemon=True)
        self.capture_thread.name = "AudioCaptureThread"
        self.capture_thread.start()
        self.is_recording = True
        logger.info("Audio capture started")

    def stop(self) -> None:
        """Stop capturing and release audio resources."""
        if not self.is_recording:
            return

        logger.info("Stopping audio capture")
        self.stop_event.set()

        if self.capture_thread and self.capture_thread.is_alive():
            self.capture_thread.join(timeout=2.0)
            if self.capture_thread.is_alive():
                logger.warning("Capture thread did not stop cleanly")

        self.is_recording = False
        logger.info(f"Capture stopped. Total reads: {self.total_reads}")

    def is_running(self) -> bool:
        return self.is_recording and not self.stop_event.is_set()

    def __open_audio_stream(self, device_index: Optional[int]) -> pyaudio.Stream:
        if self.pyaudio_instance is None:
            self.pyaudio_instance = pyaudio.PyAudio()
        stream = self.pyaudio_instance.open(
            format=pyaudio.paInt16,
            channels=self.channels,
            rate=self.sample_rate,
            input=True,
            input_device_index=device_index,
            frames_per_buffer=self.chunk_size,
            stream_callback=None
        )
        logger.info(f"Audio stream opened: {self.sample_rate}Hz, "
                    f"{self.channels} channel(s), {self.chunk_size} frames/read")
        return stream

    def _capture_continuously(self, stream: pyaudio.Stream) -> None:
        """Internal method: read loop running in the capture thread."""
        try:
            while not self.stop_event.is_set():
                audio_chunk = stream.read(self.chunk_size, exception_on_overflow=False)
                self.total_reads += 1
                self.total_bytes += len(audio_chunk)
                self.on_data(audio_chunk)
        except Exception as e:
            logger.error(f"Audio capture failed: {e}")
            if self.on_error:
                self.on_error(e)
        finally:
            stream.stop_stream()
            stream.close()
            if self.pyaudio_instance:
                self.pyaudio_instance.terminate()
                self.pyaudio_instance = None

    def get_recording_stats(self) -> AudioStats:
        """Get current capture statistics."""
        duration = 0.0
        if self.start_time:
            duration = (datetime.now() - self.start_time).total_seconds()

        return AudioStats(
            is_recording=self.is_recording,
            duration_seconds=duration,
            sample_rate=self.sample_rate,
            channels=self.channels,
            chunk_size=self.chunk_size,
            total_reads=self.total_reads,
            total_bytes=self.total_bytes,
        )
