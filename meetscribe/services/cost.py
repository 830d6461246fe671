"""Transcription cost accounting derived from session counters."""

from dataclasses import dataclass

from ..models.session import SessionStatus

# OpenAI Whisper pricing, USD per audio minute
WHISPER_PRICE_PER_MINUTE = 0.006


def chunks_to_cost(chunks: int, chunk_seconds: float,
                   price_per_minute: float = WHISPER_PRICE_PER_MINUTE) -> float:
    """Cost of sending `chunks` units of `chunk_seconds` each."""
    return chunks * chunk_seconds / 60 * price_per_minute


def format_cost(cost: float) -> str:
    return f"${cost:.3f}"


@dataclass
class CostEstimate:
    """Running cost and savings for one session."""
    estimated_cost: float
    cost_saved: float


def estimate_costs(status: SessionStatus, chunk_seconds: float,
                   price_per_minute: float = WHISPER_PRICE_PER_MINUTE) -> CostEstimate:
    """Derive cost figures from the processed and skipped chunk counters."""
    return CostEstimate(
        estimated_cost=chunks_to_cost(status.chunks_processed, chunk_seconds, price_per_minute),
        cost_saved=chunks_to_cost(status.silent_chunks_skipped, chunk_seconds, price_per_minute),
    )
