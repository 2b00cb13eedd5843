"""
Event bus for generator cache activity.

The cache service and the web routes publish here; SSE clients
subscribe.  Each event looks like::

    {"v": 1, "ts": 1739648400.1, "seq": 47,
     "type": "generators:done", "key": "/abs/project/root", "data": {...}}

``seq`` increases by one per event, across the whole bus.  Published
types are ``generators:refresh``, ``generators:done``,
``generators:invalidated``, ``generator:run`` and ``notify:error``.
Subscribers additionally receive ``sys:ready``, ``state:snapshot`` and
``sys:heartbeat``, which are never buffered or shared.

One lock guards the counter, the replay buffer, the subscriber queues
and the per-root snapshot.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections import deque
from typing import Any, Iterator

logger = logging.getLogger(__name__)

EVENT_VERSION = 1

DONE = "generators:done"
INVALIDATED = "generators:invalidated"


class EventBus:
    """In-process broadcast with a bounded replay window.

    ``buffer_size`` events are kept so reconnecting clients can resume
    from ``Last-Event-Id``.  A subscriber more than
    ``subscriber_queue_size`` events behind is disconnected.
    """

    def __init__(self, *, buffer_size: int = 500, subscriber_queue_size: int = 200) -> None:
        self._lock = threading.Lock()
        self._seq = 0
        self._history: deque[dict] = deque(maxlen=buffer_size)
        self._queues: list[queue.Queue[dict]] = []
        self._queue_size = subscriber_queue_size
        self._lists: dict[str, tuple[dict, float]] = {}

    @property
    def seq(self) -> int:
        with self._lock:
            return self._seq

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._queues)

    def _next_event(self, event_type: str, key: str, data: dict, extra: dict) -> dict:
        # caller holds _lock
        self._seq += 1
        return {
            "v": EVENT_VERSION,
            "ts": time.time(),
            "seq": self._seq,
            "type": event_type,
            "key": key,
            "data": data,
            **extra,
        }

    def publish(
        self,
        event_type: str,
        *,
        key: str = "",
        data: dict[str, Any] | None = None,
        **kw: Any,
    ) -> dict:
        """Record an event and fan it out to subscribers.  Returns the event."""
        with self._lock:
            event = self._next_event(event_type, key, data or {}, kw)
            self._history.append(event)

            if key and event_type == DONE:
                self._lists[key] = (event["data"], event["ts"])
            elif key and event_type == INVALIDATED:
                self._lists.pop(key, None)

            stalled = []
            for q in self._queues:
                try:
                    q.put_nowait(event)
                except queue.Full:
                    stalled.append(q)
            for q in stalled:
                self._queues.remove(q)
            if stalled:
                logger.info("Disconnected %d stalled subscriber(s)", len(stalled))

        logger.debug("event %s key=%s", event_type, key or "-")
        return event

    def events_since(self, since: int = 0) -> list[dict]:
        """Buffered events newer than ``since``, oldest first."""
        with self._lock:
            return [e for e in self._history if e["seq"] > since]

    def snapshot(self) -> dict[str, dict]:
        """Last published generator list for every root still valid."""
        now = time.time()
        with self._lock:
            items = list(self._lists.items())
        return {
            key: {"data": data, "cached_at": ts, "age_s": round(now - ts)}
            for key, (data, ts) in items
        }

    def _own_event(self, event_type: str, data: dict) -> dict:
        with self._lock:
            return self._next_event(event_type, "", data, {})

    def subscribe(self, *, since: int = 0, heartbeat_interval: float = 30.0) -> Iterator[dict]:
        """Blocking iterator over events for one client.

        Starts with ``sys:ready``.  If every event after ``since`` is
        still buffered those are replayed; otherwise the client gets a
        ``state:snapshot`` instead.  Idle periods yield ``sys:heartbeat``.
        """
        q: queue.Queue[dict] = queue.Queue(maxsize=self._queue_size)
        replayed = False

        with self._lock:
            oldest = self._history[0]["seq"] if self._history else None
            if since > 0 and oldest is not None and since >= oldest - 1:
                backlog = [e for e in self._history if e["seq"] > since]
                if len(backlog) <= self._queue_size:
                    for event in backlog:
                        q.put_nowait(event)
                    replayed = True
            self._queues.append(q)

        logger.info("Subscriber connected (since=%d, replayed=%s)", since, replayed)
        try:
            yield self._own_event("sys:ready", {"roots": sorted(self.snapshot())})
            if not replayed:
                yield self._own_event("state:snapshot", self.snapshot())
            while True:
                try:
                    yield q.get(timeout=heartbeat_interval)
                except queue.Empty:
                    yield self._own_event("sys:heartbeat", {})
        finally:
            with self._lock:
                if q in self._queues:
                    self._queues.remove(q)
            logger.info("Subscriber disconnected")
