"""Shared test fixtures and configuration.

Sets environment variables before any taskflow import so the settings
singleton never touches a real database, and pins "today" to a fixed
Wednesday so calendar arithmetic is deterministic.
"""

import os

# Patch env vars BEFORE any taskflow imports
os.environ.setdefault("DATABASE_PATH", ":memory:")
os.environ.setdefault("BOT_NAME", "Chinni")
os.environ.setdefault("WEEK_START", "0")
os.environ.setdefault("NAVIGATION_DELAY_MS", "0")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from datetime import date

import pytest

FIXED_TODAY = date(2026, 3, 18)  # a Wednesday; week starts Monday 2026-03-16


@pytest.fixture
def today():
    return FIXED_TODAY


@pytest.fixture
def today_fn():
    return lambda: FIXED_TODAY


@pytest.fixture
def kv():
    """In-memory KeyValueStore."""
    from taskflow.adapters.memory_store import MemoryKeyValueStore
    return MemoryKeyValueStore()


@pytest.fixture
def bus():
    from taskflow.core.events import EventBus
    return EventBus()


@pytest.fixture
def storage(kv, bus):
    from taskflow.data.storage import StorageAccessor
    return StorageAccessor(kv, bus)


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_taskflow.db")


@pytest.fixture
def sqlite_kv(tmp_db_path):
    from taskflow.adapters.sqlite_store import SQLiteKeyValueStore
    return SQLiteKeyValueStore(db_path=tmp_db_path)


@pytest.fixture
def aggregator(storage, today_fn):
    from taskflow.core.aggregator import CrossStoreAggregator
    return CrossStoreAggregator(storage, "guest", today_fn)


@pytest.fixture
def writer(storage, today_fn):
    from taskflow.core.writer import RecordWriter
    from taskflow.data.stores import (
        CalendarReminderStore,
        HomeReminderStore,
        HomeTodoStore,
        NoteStore,
        TaskStore,
    )
    return RecordWriter(
        TaskStore(storage),
        HomeTodoStore(storage, today_fn),
        CalendarReminderStore(storage, today_fn),
        HomeReminderStore(storage, today_fn),
        NoteStore(storage, "guest"),
        today_fn,
    )


@pytest.fixture
def synthesizer(aggregator, writer):
    from taskflow.core.responder import ResponseSynthesizer
    return ResponseSynthesizer(aggregator, writer, display_name="Alex", bot_name="Chinni")
