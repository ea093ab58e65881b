"""Analytics event tracking for recommendation feedback."""

import logging
from typing import Any, Dict, Protocol


class EventTracker(Protocol):
    """Fire-and-forget analytics sink."""

    def track(self, event_name: str, payload: Dict[str, Any]) -> None:
        ...


class LoggingEventTracker:
    """Writes analytics events to the log as structured records.

    The payload travels as the record's ``event_data`` extra field, so the
    JSON formatter emits one object per event.
    """

    def __init__(self, logger_name: str = "blendrec.analytics"):
        self.logger = logging.getLogger(logger_name)

    def track(self, event_name: str, payload: Dict[str, Any]) -> None:
        self.logger.info(
            "Analytics event",
            extra={"event_name": event_name, "event_data": dict(payload)},
        )
