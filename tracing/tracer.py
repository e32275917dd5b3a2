"""
Tool-agnostic tracing abstraction.

Tracing is strictly passive:
- Never influences execution (retries, backoff, callbacks)
- Never mutates request or result objects
- Failures are silent and non-fatal
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
from dataclasses import dataclass


@dataclass
class TraceMetadata:
    """Identity attached to every trace event."""

    trace_id: str  # Mandatory: globally unique identifier
    feature: Optional[str] = None  # "chat", "news_summary", "portfolio_analysis"
    session_id: Optional[str] = None  # Optional: chat session


class Tracer(ABC):
    """
    Abstract tracing interface.

    All implementations MUST guarantee:
    - No control flow influence
    - Non-fatal failures (never raise)
    - Best-effort execution
    """

    @abstractmethod
    def record_event(
        self, name: str, metadata: Dict[str, Any], trace_metadata: TraceMetadata
    ) -> None:
        """
        Record a point-in-time event.

        Args:
            name: Event name (e.g., "llm_request_sent", "llm_retry_scheduled")
            metadata: Event data (attempt, reason, delay, etc.)
            trace_metadata: Trace identity

        MUST NOT:
        - raise exceptions
        - affect control flow
        """
        pass

    @abstractmethod
    def is_enabled(self) -> bool:
        """
        Check if tracing is enabled.

        Used for: avoiding expensive metadata construction when tracing is disabled
        """
        pass


class NoOpTracer(Tracer):
    """
    No-op tracing implementation (when tracing is disabled).
    """

    def record_event(
        self, name: str, metadata: Dict[str, Any], trace_metadata: TraceMetadata
    ) -> None:
        """No-op implementation."""
        pass

    def is_enabled(self) -> bool:
        """Tracing is disabled."""
        return False
