"""Audit trail of a workflow run."""

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

logger = logging.getLogger(__name__)

EventListener = Callable[[dict[str, Any]], None]


class EventManager:
    """Manages workflow events with consistent formatting."""

    def __init__(self, run_id: str, workflow_name: str):
        self.run_id = run_id
        self.workflow_name = workflow_name
        self._events: list[dict[str, Any]] = []
        self._listeners: list[EventListener] = []

    def subscribe(self, listener: EventListener) -> None:
        """Call ``listener`` with every event recorded from now on."""
        self._listeners.append(listener)

    def add_event(self, event_type: str, data: dict[str, Any]) -> dict[str, Any]:
        """Add an event to the run's event log."""
        event = {
            "event_id": str(uuid4()),
            "event_type": event_type,
            "timestamp": datetime.now(UTC).isoformat(),
            "data": {
                "run_id": self.run_id,
                "workflow": self.workflow_name,
                **data,
            },
        }
        self._events.append(event)
        logger.debug(f"Added workflow event: {event_type}")

        for listener in self._listeners:
            try:
                listener(event)
            except Exception as e:
                # Listeners observe the run, they never break it
                logger.warning(f"Event listener failed on {event_type}: {e}")
        return event

    def get_events(self) -> list[dict[str, Any]]:
        """Get all workflow events."""
        return self._events.copy()

    def get_latest_events(self, limit: int = 10) -> list[dict[str, Any]]:
        """Get the latest workflow events."""
        return self._events[-limit:] if self._events else []

    def events_of_type(self, event_type: str) -> list[dict[str, Any]]:
        return [e for e in self._events if e["event_type"] == event_type]
