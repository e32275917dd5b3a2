"""
Tracer factory.

Implements TRACER_BACKEND setting:
- "noop" (default): No observability
- "logging": trace events written to the "wisbee.trace" logger
"""

import os
from typing import Optional

from tracing.tracer import Tracer, NoOpTracer
from tracing.logging_tracer import LoggingTracer


def get_tracer_backend(value: Optional[str] = None) -> str:
    """
    Get the configured tracer backend.

    Unknown values fall back to "noop".
    """
    backend = (value if value is not None else os.getenv("TRACER_BACKEND", "noop"))
    backend = backend.lower().strip()

    if backend not in {"noop", "logging"}:
        return "noop"
    return backend


def create_tracer(value: Optional[str] = None) -> Tracer:
    """
    Create a tracer instance based on configuration.

    Always returns a valid Tracer instance (defaults to NoOpTracer).
    """
    if get_tracer_backend(value) == "logging":
        return LoggingTracer()
    return NoOpTracer()
