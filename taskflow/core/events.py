"""
TaskFlow Assistant — In-process change notifications.

One publish/subscribe channel per entity type. Every persistent write
publishes on the topic that owns the key, so views that read the same data
(analytics, calendar, today lists) can re-read and refresh.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)

Callback = Callable[[Any], None]


class Topic(Enum):
    TODOS = "todos"
    REMINDERS = "reminders"
    NOTES = "notes"
    GOALS = "goals"
    HABITS = "habits"
    WORK = "work"
    CHAT = "chat"
    USERS = "users"
    CALENDAR_SELECTED = "calendar_selected"
    STORAGE = "storage"  # any persistent write, carries the key


class EventBus:
    """Synchronous in-process publish/subscribe hub."""

    def __init__(self) -> None:
        self._subscribers: dict[Topic, list[Callback]] = defaultdict(list)

    def subscribe(self, topic: Topic, callback: Callback) -> Callable[[], None]:
        """Register a callback; returns a function that removes it again."""
        self._subscribers[topic].append(callback)

        def unsubscribe() -> None:
            try:
                self._subscribers[topic].remove(callback)
            except ValueError:
                pass

        return unsubscribe

    def publish(self, topic: Topic, payload: Any = None) -> int:
        """Invoke every subscriber of a topic. Returns how many ran cleanly.

        A failing subscriber is logged and skipped; it must never break the
        write that triggered the notification.
        """
        delivered = 0
        for callback in list(self._subscribers.get(topic, ())):
            try:
                callback(payload)
                delivered += 1
            except Exception as exc:
                logger.warning("Subscriber %r failed on %s: %s", callback, topic.value, exc)
        return delivered
