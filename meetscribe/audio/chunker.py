"""Fixed-duration audio chunking and WAV framing."""

import io
import wave
import logging
from typing import Callable

logger = logging.getLogger(__name__)

BYTES_PER_SAMPLE = 2  # 16-bit PCM
WAV_HEADER_SIZE = 44


def pcm_to_wav(pcm_data: bytes, sample_rate: int, channels: int) -> bytes:
    """Wrap raw 16-bit PCM in a self-contained WAV container.

    Args:
        pcm_data: Raw little-endian 16-bit PCM bytes
        sample_rate: Audio sample rate in Hz
        channels: Number of interleaved channels

    Returns:
        WAV bytes (44-byte header followed by the PCM payload)
    """
    buffer = io.BytesIO()
    with wave.open(buffer, 'wb') as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(BYTES_PER_SAMPLE)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm_data)
    return buffer.getvalue()


class AudioChunker:
    """Accumulates raw PCM and emits WAV units of exactly one chunk duration."""

    def __init__(self, sample_rate: int = 16000, channels: int = 1, chunk_seconds: float = 8):
        """Initialize audio chunker.

        Args:
            sample_rate: Audio sample rate
            channels: Number of audio channels
            chunk_seconds: Duration of every emitted unit in seconds
        """
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_seconds = chunk_seconds

        self.bytes_per_second = sample_rate * channels * BYTES_PER_SAMPLE
        self.target_bytes = int(self.bytes_per_second * chunk_seconds)

        self.buffer = bytearray()

        logger.info(f"AudioChunker initialized: {chunk_seconds}s chunks, "
                    f"{self.target_bytes} bytes per chunk")

    def process_chunk(self, audio_data: bytes, on_chunk_ready: Callable[[bytes], None]) -> int:
        """Buffer incoming PCM and emit every complete unit.

        Args:
            audio_data: Raw PCM bytes from the audio source
            on_chunk_ready: Called once per complete unit with WAV bytes

        Returns:
            Number of units emitted by this call
        """
        self.buffer.extend(audio_data)

        emitted = 0
        while len(self.buffer) >= self.target_bytes:
            pcm = bytes(self.buffer[:self.target_bytes])
            del self.buffer[:self.target_bytes]

            on_chunk_ready(pcm_to_wav(pcm, self.sample_rate, self.channels))
            emitted += 1

        if emitted:
            logger.debug(f"Emitted {emitted} chunk(s), {len(self.buffer)} bytes buffered")
        return emitted

    def reset(self) -> None:
        """Discard any buffered audio."""
        self.buffer.clear()

    def get_buffer_size(self) -> int:
        return len(self.buffer)
