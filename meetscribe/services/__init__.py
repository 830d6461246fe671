"""Services layer for MeetScribe application logic."""

from .transcription_session import TranscriptionSession, SessionSettings
from .session_controller import SessionController
from .events import StatusEventPublisher, log_status_event, subscribe_status_logger
from .cost import CostEstimate, estimate_costs, chunks_to_cost

__all__ = [
    "TranscriptionSession",
    "SessionSettings",
    "SessionController",
    "StatusEventPublisher",
    "log_status_event",
    "subscribe_status_logger",
    "CostEstimate",
    "estimate_costs",
    "chunks_to_cost",
]
