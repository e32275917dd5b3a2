"""Tracing infrastructure for observability."""

from tracing.tracer import Tracer, TraceMetadata, NoOpTracer
from tracing.logging_tracer import LoggingTracer
from tracing.factory import create_tracer, get_tracer_backend

__all__ = [
    "Tracer",
    "TraceMetadata",
    "NoOpTracer",
    "LoggingTracer",
    "create_tracer",
    "get_tracer_backend",
]
