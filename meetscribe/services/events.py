"""Status event publishing over pubsub."""

import logging
from pubsub import pub

from ..models.events import (
    StatusChangeEvent,
    SessionPausedEvent,
    SessionResumedEvent,
    SessionStoppedEvent,
    SilenceDetectedEvent,
    SessionWarningEvent,
)

logger = logging.getLogger(__name__)

STATUS_TOPIC = "session.status"


class StatusEventPublisher:
    """Publishes session status events using pubsub.pub."""

    def __init__(self, topic: str = STATUS_TOPIC):
        """Initialize status event publisher.

        Args:
            topic: Pub/sub topic name for status events
        """
        self.topic = topic
        logger.info(f"StatusEventPublisher initialized with topic: {topic}")

    def publish(self, event: StatusChangeEvent) -> None:
        """Publish a status event to the pub/sub topic.

        Usable directly as a session's on_status_change callback.
        """
        pub.sendMessage(self.topic, event=event)


def describe_event(event: StatusChangeEvent) -> str:
    """One-line human readable description of a status event."""
    if isinstance(event, SessionPausedEvent):
        return f"TRANSCRIPTION PAUSED ({event.reason.value}): {event.message}"
    if isinstance(event, SessionResumedEvent):
        previous = event.previous_reason.value if event.previous_reason else "unknown"
        return f"TRANSCRIPTION RESUMED (was {previous})"
    if isinstance(event, SessionStoppedEvent):
        return (f"TRANSCRIPTION STOPPED - Chunks: {event.chunks_processed}, "
                f"Duration: {event.duration_seconds:.0f}s, Errors: {event.errors}")
    if isinstance(event, SilenceDetectedEvent):
        return f"SILENCE DETECTED ({event.consecutive_chunks} consecutive chunks)"
    if isinstance(event, SessionWarningEvent):
        return f"WARNING after {event.elapsed_minutes} minutes: {event.message}"
    return f"TRANSCRIPTION {event.type.upper().replace('_', ' ')}"


def log_status_event(event: StatusChangeEvent) -> None:
    """Logging subscriber for status events."""
    if isinstance(event, (SessionWarningEvent, SessionPausedEvent)):
        logger.warning(describe_event(event))
    elif isinstance(event, SilenceDetectedEvent):
        logger.debug(describe_event(event))
    else:
        logger.info(describe_event(event))


def subscribe_status_logger(topic: str = STATUS_TOPIC) -> None:
    """Attach the logging subscriber to the status topic."""
    pub.subscribe(log_status_event, topic)
