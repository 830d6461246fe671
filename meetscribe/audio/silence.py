"""Amplitude-based silence detection for 16-bit PCM."""

import numpy as np

from .chunker import WAV_HEADER_SIZE

DEFAULT_AMPLITUDE_THRESHOLD = 100
DEFAULT_SAMPLE_INTERVAL = 100


def is_silent_audio(pcm_data: bytes,
                    threshold: int = DEFAULT_AMPLITUDE_THRESHOLD,
                    sample_interval: int = DEFAULT_SAMPLE_INTERVAL) -> bool:
    """Check whether a PCM buffer contains only low-amplitude audio.

    Every ``sample_interval``-th sample is inspected; the buffer is silent
    when none of them exceeds ``threshold`` in absolute value.

    Args:
        pcm_data: Little-endian signed 16-bit PCM
        threshold: Maximum absolute amplitude still considered silent
        sample_interval: Stride between inspected samples (1 inspects all)

    Returns:
        True if the buffer is considered silent
    """
    if not pcm_data or len(pcm_data) < 2:
        return True

    usable = len(pcm_data) - (len(pcm_data) % 2)
    samples = np.frombuffer(pcm_data[:usable], dtype='<i2')
    inspected = samples[::max(1, sample_interval)]

    # int32 so that abs(-32768) does not overflow
    max_amplitude = int(np.abs(inspected.astype(np.int32)).max())
    return max_amplitude <= threshold


def is_silent_wav(wav_data: bytes,
                  threshold: int = DEFAULT_AMPLITUDE_THRESHOLD,
                  sample_interval: int = DEFAULT_SAMPLE_INTERVAL) -> bool:
    """Same as is_silent_audio, skipping the WAV header first."""
    return is_silent_audio(wav_data[WAV_HEADER_SIZE:], threshold, sample_interval)
