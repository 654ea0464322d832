"""
Tournament Event Bus - in-process broadcast channel.

Design:
1. Fire-and-Forget: broadcast() is synchronous and returns immediately
2. Fan-Out: every event reaches every open stream and every subscribed handler
3. Isolation: a slow stream or failing handler never affects the publisher
4. Ordered Delivery: each stream receives events in broadcast order
"""

import asyncio
import json
import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    Dict,
    Iterable,
    List,
    Optional,
    Set,
)
from uuid import uuid4

from referee.utils.async_utils import create_safe_task

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Wire names of the lifecycle events."""

    MATCH_START = "match:start"
    MATCH_MOVE = "match:move"
    MATCH_WIN = "match:win"
    MATCH_DRAW = "match:draw"
    MATCH_ERROR = "match:error"
    MOVE_REMOVED = "move:removed"
    TOURNAMENT_START = "tournament:start"
    TOURNAMENT_COMPLETE = "tournament:complete"


@dataclass(frozen=True)
class BusEvent:
    event_type: EventType
    data: Dict[str, Any]
    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_sse(self) -> str:
        """Render as a Server-Sent Events frame."""
        payload = json.dumps(self.data, default=str)
        return f"event: {self.event_type.value}\ndata: {payload}\n\n"


# Type alias for event handlers
EventHandler = Callable[[BusEvent], Awaitable[None]]


@dataclass
class Subscription:
    """Event subscription metadata."""

    subscription_id: str
    event_types: Set[EventType]
    handler: EventHandler
    is_active: bool = True


class EventStream:
    """One consumer connection (e.g. an SSE client) with its own queue."""

    def __init__(self, maxsize: int):
        self.stream_id = str(uuid4())
        self.dropped = 0
        self._queue: asyncio.Queue[Optional[BusEvent]] = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def offer(self, event: BusEvent) -> bool:
        if self._closed:
            return False
        try:
            self._queue.put_nowait(event)
            return True
        except asyncio.QueueFull:
            self.dropped += 1
            return False

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._queue.put_nowait(None)
        except asyncio.QueueFull:
            # consumer is behind; it stops at the next get() after draining
            pass

    async def get(self) -> Optional[BusEvent]:
        """Next event, or None once the stream is closed and drained."""
        if self._closed and self._queue.empty():
            return None
        return await self._queue.get()

    async def __aiter__(self) -> AsyncIterator[BusEvent]:
        while True:
            event = await self.get()
            if event is None:
                return
            yield event


@dataclass
class EventMetrics:
    """Event broadcast metrics."""

    total_events: int = 0
    handlers_failed: int = 0
    events_dropped: int = 0
    event_counts: Dict[str, int] = field(default_factory=lambda: defaultdict(int))
    last_event_time: Optional[datetime] = None


class EventBus:
    """
    Broadcast channel between the tournament core and its observers.

    Observers either subscribe an async handler for some event types or
    open a stream and iterate over every event.
    """

    def __init__(self, stream_queue_size: int = 1000):
        self._stream_queue_size = stream_queue_size
        self._subscriptions: Dict[str, Subscription] = {}
        self._handlers_by_type: Dict[EventType, List[Subscription]] = defaultdict(list)
        self._streams: Dict[str, EventStream] = {}
        self._pending: Set[asyncio.Task] = set()
        self._metrics = EventMetrics()
        self._started = time.monotonic()

    # =========================================================================
    # Subscriptions
    # =========================================================================

    def subscribe(
        self,
        event_types: Iterable[EventType],
        handler: EventHandler,
    ) -> str:
        """
        Subscribe an async handler.

        Returns:
            Subscription ID for unsubscribe
        """
        subscription = Subscription(
            subscription_id=str(uuid4()),
            event_types=set(event_types),
            handler=handler,
        )
        self._subscriptions[subscription.subscription_id] = subscription
        for event_type in subscription.event_types:
            self._handlers_by_type[event_type].append(subscription)
        return subscription.subscription_id

    def unsubscribe(self, subscription_id: str) -> bool:
        """Remove subscription."""
        subscription = self._subscriptions.pop(subscription_id, None)
        if not subscription:
            return False

        subscription.is_active = False
        for event_type in subscription.event_types:
            self._handlers_by_type[event_type] = [
                s
                for s in self._handlers_by_type[event_type]
                if s.subscription_id != subscription_id
            ]
        return True

    # =========================================================================
    # Streams
    # =========================================================================

    def open_stream(self, maxsize: Optional[int] = None) -> EventStream:
        stream = EventStream(maxsize or self._stream_queue_size)
        self._streams[stream.stream_id] = stream
        return stream

    def close_stream(self, stream: EventStream) -> None:
        self._streams.pop(stream.stream_id, None)
        stream.close()

    def get_connection_count(self) -> int:
        return len(self._streams)

    # =========================================================================
    # Broadcast
    # =========================================================================

    def broadcast(self, event_type: EventType, data: Dict[str, Any]) -> BusEvent:
        """
        Publish an event to every stream and handler.

        Handlers run as background tasks; a broadcast outside a running event
        loop still reaches the streams but skips the handlers.
        """
        event = BusEvent(event_type=EventType(event_type), data=data)

        self._metrics.total_events += 1
        self._metrics.event_counts[event.event_type.value] += 1
        self._metrics.last_event_time = event.timestamp

        for stream in list(self._streams.values()):
            if stream.closed:
                self._streams.pop(stream.stream_id, None)
            elif not stream.offer(event):
                self._metrics.events_dropped += 1

        self._dispatch(event)
        return event

    def _dispatch(self, event: BusEvent) -> None:
        subscriptions = [
            s for s in self._handlers_by_type.get(event.event_type, []) if s.is_active
        ]
        if not subscriptions:
            return

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(
                f"No running loop; {len(subscriptions)} handlers skipped for {event.event_type.value}"
            )
            return

        for subscription in subscriptions:
            task = create_safe_task(
                subscription.handler(event),
                name=f"event:{event.event_type.value}",
                on_error=self._on_handler_error,
            )
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    def _on_handler_error(self, exc: BaseException) -> None:
        self._metrics.handlers_failed += 1

    async def drain(self) -> None:
        """Wait for every scheduled handler to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # =========================================================================
    # Metrics & shutdown
    # =========================================================================

    def get_metrics(self) -> Dict[str, Any]:
        uptime = time.monotonic() - self._started
        return {
            "connections": len(self._streams),
            "subscriptions": len(self._subscriptions),
            "totalEvents": self._metrics.total_events,
            "eventCounts": dict(self._metrics.event_counts),
            "eventsDropped": self._metrics.events_dropped,
            "handlersFailed": self._metrics.handlers_failed,
            "uptimeSeconds": int(uptime),
            "eventsPerSecond": self._metrics.total_events / uptime if uptime > 0 else 0.0,
            "status": "active",
        }

    def close_all(self) -> None:
        """Close every stream and drop every subscription."""
        for stream in list(self._streams.values()):
            stream.close()
        self._streams.clear()
        for subscription_id in list(self._subscriptions):
            self.unsubscribe(subscription_id)
