"""
TaskFlow Assistant — Record writer for chat-originated creations.

A created todo or reminder is written to its primary store; when it is due
today the same record (same id) is mirrored into the "today" per-day store
that the Dashboard widgets read. The mirror is best effort: a failure there
is logged and reported as a warning, and the primary record stays.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Callable

from taskflow.core import dates
from taskflow.data.models import DEFAULT_TIME, Note, Reminder, Todo, new_id, now_ms
from taskflow.ports.storage_port import StorageError

if TYPE_CHECKING:
    from taskflow.data.stores import (
        CalendarReminderStore,
        HomeReminderStore,
        HomeTodoStore,
        NoteStore,
        TaskStore,
    )

logger = logging.getLogger(__name__)


@dataclass
class WriteResult:
    ok: bool
    record: Todo | Reminder | Note | None = None
    warnings: list[str] = field(default_factory=list)
    error: str = ""


class RecordWriter:
    """Writes chat-created records through the owning stores."""

    def __init__(
        self,
        tasks: TaskStore,
        home_todos: HomeTodoStore,
        calendar_reminders: CalendarReminderStore,
        home_reminders: HomeReminderStore,
        notes: NoteStore,
        today_fn: Callable[[], date] | None = None,
    ) -> None:
        self._tasks = tasks
        self._home_todos = home_todos
        self._calendar_reminders = calendar_reminders
        self._home_reminders = home_reminders
        self._notes = notes
        self._today_fn = today_fn or date.today

    def _is_today(self, day: str) -> bool:
        return day == dates.to_iso(self._today_fn())

    def _mirror(self, label: str, write: Callable[[], object]) -> list[str]:
        try:
            write()
        except StorageError as exc:
            logger.warning("Secondary %s write failed: %s", label, exc)
            return [f"Saved, but today's {label} list could not be updated."]
        return []

    def create_todo(self, text: str, day: str) -> WriteResult:
        clean = (text or "").strip()
        if not clean:
            return WriteResult(ok=False, error="empty_text")

        todo = Todo(id=new_id(), text=clean, date=day, created_at=now_ms())
        self._tasks.add_record(todo)   # StorageError propagates

        warnings: list[str] = []
        if self._is_today(day):
            warnings = self._mirror("todo", lambda: self._home_todos.add_record(todo))
        logger.info("Chat todo created: %s on %s", todo.id, day)
        return WriteResult(ok=True, record=todo, warnings=warnings)

    def create_reminder(self, text: str, day: str, time: str = DEFAULT_TIME) -> WriteResult:
        clean = (text or "").strip()
        if not clean:
            return WriteResult(ok=False, error="empty_text")

        reminder = Reminder(
            id=new_id(), text=clean, date=day, time=time or DEFAULT_TIME, created_at=now_ms(),
        )
        self._calendar_reminders.add_record(reminder)

        warnings: list[str] = []
        if self._is_today(day):
            warnings = self._mirror("reminder", lambda: self._home_reminders.add_record(reminder))
        logger.info("Chat reminder created: %s on %s %s", reminder.id, day, reminder.time)
        return WriteResult(ok=True, record=reminder, warnings=warnings)

    def create_note(self, title: str, content: str) -> WriteResult:
        note = self._notes.add(title=title, content=content)
        if note is None:
            return WriteResult(ok=False, error="empty_text")
        return WriteResult(ok=True, record=note)
