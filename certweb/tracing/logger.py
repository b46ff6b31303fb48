"""Structured event trace for configuration sessions and runs."""

import logging
import sys
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

DEFAULT_MAX_EVENTS = 500


@dataclass
class TraceEvent:
    """One traced step, e.g. a scenario change, an import or a run."""

    event_type: str
    component: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class SessionTracer:
    """Keeps the most recent events and mirrors them to the ``certweb`` logger.

    Only the last ``max_events`` events are kept; older ones are discarded
    as new ones arrive.
    """

    def __init__(self, name: str = "certweb", max_events: int = DEFAULT_MAX_EVENTS):
        self.logger = logging.getLogger(name)
        self.events: deque[TraceEvent] = deque(maxlen=max_events)

    def log(
        self,
        event_type: str,
        component: str,
        message: str,
        data: dict[str, Any] | None = None,
        level: int = logging.INFO,
    ) -> TraceEvent:
        """Record an event.

        Args:
            event_type: Kind of step ("scenario", "import", "submit", "run", ...).
            component: Component emitting the event.
            message: Human-readable message.
            data: Optional structured details.
            level: Logging level used for the mirrored log line.
        """
        event = TraceEvent(event_type, component, message, data or {})
        self.events.append(event)
        if data:
            self.logger.log(level, "[%s] %s: %s | %s", component, event_type, message, data)
        else:
            self.logger.log(level, "[%s] %s: %s", component, event_type, message)
        return event

    def get_events(
        self,
        component: str | None = None,
        event_type: str | None = None,
    ) -> list[dict[str, Any]]:
        """Recorded events, oldest first, optionally filtered."""
        return [
            e.to_dict()
            for e in self.events
            if (component is None or e.component == component)
            and (event_type is None or e.event_type == event_type)
        ]

    def clear(self) -> None:
        self.events.clear()


# Global tracer instance
_tracer: SessionTracer | None = None


def setup_tracing(log_level: str = "INFO", max_events: int = DEFAULT_MAX_EVENTS) -> SessionTracer:
    """Configure the ``certweb`` logger and replace the global tracer.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        max_events: Number of events kept for ``get_events``.
    """
    global _tracer
    _tracer = SessionTracer(max_events=max_events)
    if not _tracer.logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter(
                "[%(asctime)s] %(levelname)s - %(name)s - %(message)s",
                datefmt="%H:%M:%S",
            )
        )
        _tracer.logger.addHandler(handler)
    _tracer.logger.setLevel(getattr(logging, log_level.upper()))
    return _tracer


def get_tracer() -> SessionTracer:
    """Get the global tracer, creating an unconfigured one on first use."""
    global _tracer
    if _tracer is None:
        _tracer = SessionTracer()
    return _tracer


def log_session_event(
    event_type: str,
    component: str,
    message: str,
    data: dict[str, Any] | None = None,
    level: int = logging.INFO,
) -> TraceEvent:
    """Record an event on the global tracer."""
    return get_tracer().log(event_type, component, message, data, level)
