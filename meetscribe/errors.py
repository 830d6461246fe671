"""Error kinds raised by the transcription session."""


class SessionError(Exception):
    """Base class for caller-facing session errors.

    Raising one of these leaves the session status as it was before the call.
    """


class AlreadyRunningError(SessionError):
    def __init__(self, message: str = "Session is already running"):
        super().__init__(message)


class NotRunningError(SessionError):
    def __init__(self, message: str = "Transcription is not running"):
        super().__init__(message)


class AlreadyPausedError(SessionError):
    def __init__(self, message: str = "Transcription is already paused"):
        super().__init__(message)


class NotPausedError(SessionError):
    def __init__(self, message: str = "Transcription is not paused"):
        super().__init__(message)


class InvalidCredentialsError(SessionError):
    def __init__(self, message: str = "Speech-to-text health check failed: invalid credentials"):
        super().__init__(message)


class AudioSourceFailedError(SessionError):
    """The audio source could not be started.

    Failures of an already running source are counted and reported as
    warning events instead.
    """


class TranscriptStoreError(SessionError):
    """The transcript file could not be created or written at start."""


class TranscriptionFailedError(Exception):
    """A single chunk's transcription call failed; recovered inside the session."""
