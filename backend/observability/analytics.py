"""Analytics emitter: structured pipeline events, redacted and fanned out.

The pipeline emits; it does not own delivery. Sinks are plain callables
registered by the host (HTTP layer, tests). A failing sink is logged and
skipped so analytics can never break a user turn.
"""
import logging
from collections import deque
from enum import Enum
from typing import Callable, Deque, List, Optional

from observability.redaction import redact_dict
from schemas.analytics import AnalyticsEvent

logger = logging.getLogger(__name__)

AnalyticsSink = Callable[[AnalyticsEvent], None]

DEFAULT_BUFFER_SIZE = 50
_ID_FIELDS = {"event_id", "session_id"}


class AnalyticsEmitter:

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE, sinks: Optional[List[AnalyticsSink]] = None):
        self._events: Deque[AnalyticsEvent] = deque(maxlen=buffer_size)
        self._sinks: List[AnalyticsSink] = list(sinks or [])

    def add_sink(self, sink: AnalyticsSink) -> None:
        self._sinks.append(sink)

    def emit(self, event: AnalyticsEvent) -> AnalyticsEvent:
        """Redact free-text fields, buffer, log and fan out."""
        updates = redact_dict({
            name: value
            for name, value in event.model_dump().items()
            if name not in _ID_FIELDS and isinstance(value, str) and not isinstance(value, Enum)
        })
        event = event.model_copy(update=updates)
        self._events.append(event)
        logger.info(
            "[ANALYTICS] session=%s event=%s",
            event.session_id, event.event_type.value,
        )
        for sink in self._sinks:
            try:
                sink(event)
            except Exception as e:
                logger.error("[ANALYTICS] sink %s failed: %s", getattr(sink, "__name__", sink), str(e))
        return event

    def recent(self, count: Optional[int] = None) -> List[AnalyticsEvent]:
        events = list(self._events)
        return events if count is None else events[-count:]

    def clear(self) -> None:
        self._events.clear()
