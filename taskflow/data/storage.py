"""
TaskFlow Assistant — Storage accessor.

Generic JSON get/set/merge over named buckets of a KeyValueStore. Reads are
tolerant: an absent key, malformed JSON, a JSON null, or a failing backend
all yield the caller's fallback, so a read never raises. Writes persist and
then broadcast a change notification for the bucket's topic.
"""

from __future__ import annotations

import copy
import json
import logging
from typing import TYPE_CHECKING, Any

from taskflow.core.events import EventBus, Topic
from taskflow.data.keys import topic_for_key
from taskflow.ports.storage_port import StorageError

if TYPE_CHECKING:
    from taskflow.ports.storage_port import KeyValueStore

logger = logging.getLogger(__name__)


class StorageAccessor:
    """JSON view over a KeyValueStore with change broadcasting."""

    def __init__(self, kv: KeyValueStore, bus: EventBus | None = None) -> None:
        self._kv = kv
        self.bus = bus or EventBus()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def raw(self, key: str) -> str | None:
        """Raw stored string, or None if absent or unreadable."""
        try:
            return self._kv.get(key)
        except StorageError as exc:
            logger.warning("Storage read failed for %s: %s, treating as absent", key, exc)
            return None

    def read(self, key: str, fallback: Any = None) -> Any:
        """Decode a bucket, substituting a copy of `fallback` when unusable."""
        raw = self.raw(key)
        if not raw:
            return copy.deepcopy(fallback)
        try:
            value = json.loads(raw)
        except (ValueError, TypeError, RecursionError) as exc:
            logger.warning("Malformed JSON at %s: %s, using fallback", key, exc)
            return copy.deepcopy(fallback)
        if value is None:
            return copy.deepcopy(fallback)
        return value

    def read_list(self, key: str) -> list:
        value = self.read(key, [])
        return value if isinstance(value, list) else []

    def read_map(self, key: str) -> dict:
        value = self.read(key, {})
        return value if isinstance(value, dict) else {}

    def has(self, key: str) -> bool:
        return bool(self.raw(key))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def write(self, key: str, value: Any) -> None:
        """Persist a JSON value and notify listeners.

        Raises StorageError if the backend rejects the write; callers decide
        whether that is fatal.
        """
        self._kv.set(key, json.dumps(value, ensure_ascii=False))
        logger.debug("Wrote %s", key)
        self._notify(key)

    def merge(self, key: str, patch: dict) -> dict:
        """Shallow-merge `patch` into the map stored at `key` and persist it."""
        current = self.read_map(key)
        current.update(patch)
        self.write(key, current)
        return current

    def remove(self, key: str) -> None:
        self._kv.delete(key)
        logger.debug("Removed %s", key)
        self._notify(key)

    def _notify(self, key: str) -> None:
        topic = topic_for_key(key)
        if topic is not Topic.STORAGE:
            self.bus.publish(topic, key)
        self.bus.publish(Topic.STORAGE, key)
