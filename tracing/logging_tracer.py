import logging
from typing import Any, Dict

from tracing.tracer import Tracer, TraceMetadata

logger = logging.getLogger("wisbee.trace")


class LoggingTracer(Tracer):
    """Writes trace events to the standard logging pipeline."""

    def __init__(self, level: int = logging.INFO):
        self.level = level

    def record_event(
        self, name: str, metadata: Dict[str, Any], trace_metadata: TraceMetadata
    ) -> None:
        try:
            logger.log(
                self.level,
                f"{name} trace_id={trace_metadata.trace_id} "
                f"feature={trace_metadata.feature} {metadata}",
            )
        except Exception as e:
            logger.debug(f"Failed to record trace event: {e}")

    def is_enabled(self) -> bool:
        return True
