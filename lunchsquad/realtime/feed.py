from __future__ import annotations

import logging
import threading
from collections import defaultdict
from datetime import date
from typing import Any, Callable

logger = logging.getLogger(__name__)

Subscriber = Callable[[dict[str, Any]], None]


class AttendanceFeed:
    """Per-day attendance change notifications.

    Subscribers are plain callables; the websocket endpoint wraps one around
    an asyncio queue. Publishing never fails the write that triggered it.
    """

    def __init__(self) -> None:
        self._subscribers: dict[date, list[Subscriber]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, day: date, callback: Subscriber) -> Callable[[], None]:
        """Register *callback* for *day*. Returns a function that unsubscribes it."""
        with self._lock:
            self._subscribers[day].append(callback)

        def unsubscribe() -> None:
            with self._lock:
                callbacks = self._subscribers.get(day, [])
                if callback in callbacks:
                    callbacks.remove(callback)
                if not callbacks:
                    self._subscribers.pop(day, None)

        return unsubscribe

    def subscriber_count(self, day: date) -> int:
        with self._lock:
            return len(self._subscribers.get(day, []))

    def publish(self, day: date, event: dict[str, Any]) -> int:
        """Deliver *event* to every subscriber of *day*; returns how many got it."""
        with self._lock:
            callbacks = list(self._subscribers.get(day, []))

        delivered = 0
        for callback in callbacks:
            try:
                callback(event)
                delivered += 1
            except Exception:
                logger.warning("Attendance subscriber failed for %s", day, exc_info=True)
        return delivered


_feed = AttendanceFeed()


def get_feed() -> AttendanceFeed:
    return _feed
