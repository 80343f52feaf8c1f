"""Storage port — abstract interface for the persistent key-value buckets.

Stores and the aggregator depend on this protocol, never on a specific backend.
"""

from __future__ import annotations

from typing import Protocol


class StorageError(Exception):
    """Raised when any key-value backend operation fails."""


class KeyValueStore(Protocol):
    """Abstract string-to-string store used by the storage accessor."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...
