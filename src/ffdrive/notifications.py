"""Notification channel for run events."""

import queue
import threading
from collections.abc import Callable

from ffdrive.models.events import Notification

Subscriber = Callable[[Notification], None]


class NotificationBus:
    """Delivers run notifications to push subscribers and pull queues.

    ``kind`` filters on the notification class; ``None`` receives everything.
    Subscribers run on the publishing thread, so an exception raised by a
    subscriber propagates to the publisher.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: list[tuple[type | None, Subscriber]] = []
        self._queues: list[tuple[type | None, queue.Queue]] = []

    def subscribe(self, callback: Subscriber, kind: type | None = None) -> Subscriber:
        with self._lock:
            self._subscribers.append((kind, callback))
        return callback

    def unsubscribe(self, callback: Subscriber) -> None:
        with self._lock:
            self._subscribers = [(k, cb) for k, cb in self._subscribers if cb is not callback]

    def listen(self, kind: type | None = None) -> queue.Queue:
        """Return a queue that receives every matching notification."""
        q: queue.Queue = queue.Queue()
        with self._lock:
            self._queues.append((kind, q))
        return q

    def stop_listening(self, q: queue.Queue) -> None:
        with self._lock:
            self._queues = [(k, existing) for k, existing in self._queues if existing is not q]

    def publish(self, event: Notification) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
            queues = list(self._queues)
        for kind, q in queues:
            if kind is None or isinstance(event, kind):
                q.put_nowait(event)
        for kind, callback in subscribers:
            if kind is None or isinstance(event, kind):
                callback(event)
