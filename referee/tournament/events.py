"""
Events adapter: the coordinator/arbitrator facing side of the event bus.
"""

from typing import Any, Dict, Optional

import structlog

from .event_bus import EventBus, EventType


class EventsAdapter:
    """Fire-and-forget lifecycle broadcaster backed by an EventBus."""

    def __init__(
        self,
        event_bus: EventBus,
        logger: Optional[structlog.stdlib.BoundLogger] = None,
    ):
        if event_bus is None:
            raise ValueError("event_bus is required")
        self.event_bus = event_bus
        self.logger = logger or structlog.get_logger(__name__)

    def _broadcast(self, event_type: EventType, payload: Dict[str, Any]) -> None:
        self.logger.debug(
            "event_broadcast",
            event=event_type.value,
            connections=self.event_bus.get_connection_count(),
        )
        self.event_bus.broadcast(event_type, payload)

    def broadcast_match_start(self, payload: Dict[str, Any]) -> None:
        self._broadcast(EventType.MATCH_START, payload)

    def broadcast_match_move(self, payload: Dict[str, Any]) -> None:
        self._broadcast(EventType.MATCH_MOVE, payload)

    def broadcast_match_win(self, payload: Dict[str, Any]) -> None:
        self._broadcast(EventType.MATCH_WIN, payload)

    def broadcast_match_draw(self, payload: Dict[str, Any]) -> None:
        self._broadcast(EventType.MATCH_DRAW, payload)

    def broadcast_match_error(self, payload: Dict[str, Any]) -> None:
        self._broadcast(EventType.MATCH_ERROR, payload)

    def broadcast_move_removal(self, payload: Dict[str, Any]) -> None:
        """No-tie mode drops the oldest move from the rolling window."""
        self._broadcast(EventType.MOVE_REMOVED, payload)

    def broadcast_tournament_start(self, payload: Dict[str, Any]) -> None:
        self._broadcast(EventType.TOURNAMENT_START, payload)

    def broadcast_tournament_complete(self, payload: Dict[str, Any]) -> None:
        self._broadcast(EventType.TOURNAMENT_COMPLETE, payload)
