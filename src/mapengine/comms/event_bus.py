"""EventBus — pub/sub for change notifications to a presentation layer.

MapSurface, DataLayer and the features publish state changes here
(map_state, layer_visibility, feature_added, ...).  The core algorithms never
read from the bus; it only exists so a UI can observe the engine without
polling.
"""

from __future__ import annotations

import queue

from mapengine.config import settings


class EventBus:
    """Pub/sub fan-out of change events to subscriber queues."""

    def __init__(self, maxsize: int | None = None) -> None:
        self._maxsize = settings.event_queue_size if maxsize is None else maxsize
        self._subscribers: list[tuple[queue.Queue, frozenset[str] | None]] = []

    def subscribe(self, event_types: str | list[str] | None = None) -> queue.Queue:
        """Subscribe to events. Returns a Queue that receives matching events.

        ``event_types`` limits delivery to the named event type(s); None
        delivers everything.
        """
        if isinstance(event_types, str):
            event_types = [event_types]
        wanted = frozenset(event_types) if event_types is not None else None
        q: queue.Queue = queue.Queue(maxsize=self._maxsize)
        self._subscribers.append((q, wanted))
        return q

    def unsubscribe(self, q: queue.Queue) -> None:
        self._subscribers = [(s, w) for s, w in self._subscribers if s is not q]

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event_type: str, data: dict | None = None) -> None:
        msg = {"type": event_type}
        if data is not None:
            msg["data"] = data
        for q, wanted in list(self._subscribers):
            if wanted is not None and event_type not in wanted:
                continue
            try:
                q.put_nowait(msg)
            except queue.Full:
                # Drop oldest so the latest state change always lands
                try:
                    q.get_nowait()
                except queue.Empty:
                    pass
                try:
                    q.put_nowait(msg)
                except queue.Full:
                    pass
