"""Audio capture and processing module.

``AudioCapture`` lives in ``meetscribe.audio.capture`` and is imported from
there directly so that chunking and silence detection work without PortAudio.
"""

from .chunker import AudioChunker, pcm_to_wav, WAV_HEADER_SIZE
from .silence import is_silent_audio, is_silent_wav

__all__ = [
    'AudioChunker',
    'pcm_to_wav',
    'WAV_HEADER_SIZE',
    'is_silent_audio',
    'is_silent_wav',
]
