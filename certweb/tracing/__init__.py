"""Tracing and logging for certweb sessions and runs."""

from .logger import SessionTracer, TraceEvent, get_tracer, log_session_event, setup_tracing

__all__ = [
    "SessionTracer",
    "TraceEvent",
    "get_tracer",
    "setup_tracing",
    "log_session_event",
]
