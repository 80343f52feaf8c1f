"""
TaskFlow Assistant — Per-entity stores.

Each store exclusively owns its storage key(s) and is the only code that
mutates them. Two physical encodings exist:

- ListStore:   a flat, newest-first list of records under one key.
- DayMapStore: a per-day map {"YYYY-MM-DD": [records]} under one key.

Validation failures (empty text, non-positive amount, ...) are silent
no-ops that return None, matching the behaviour of the pages that write
these buckets. Lookup misses return None/False.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import TYPE_CHECKING, Callable

from taskflow.core import dates
from taskflow.core.events import Topic
from taskflow.data import keys
from taskflow.data.models import (
    DEFAULT_TIME,
    EXPENSE_TYPES,
    GOAL_CATEGORIES,
    REMINDER_TYPES,
    ChatMessage,
    Expense,
    Goal,
    Habit,
    Note,
    Reminder,
    Todo,
    WorkSession,
    new_id,
    now_ms,
    to_number,
)

if TYPE_CHECKING:
    from taskflow.data.storage import StorageAccessor

logger = logging.getLogger(__name__)

TodayFn = Callable[[], date]

NOTE_TITLE_LIMIT = 28


def derive_title(content: str, limit: int = NOTE_TITLE_LIMIT) -> str:
    """Auto title for an untitled note: the first `limit` chars plus an ellipsis."""
    content = content.strip()
    if len(content) > limit:
        return content[:limit] + "…"
    return content or "Untitled"


# ---------------------------------------------------------------------------
# Generic encodings
# ---------------------------------------------------------------------------


class ListStore:
    """A flat newest-first list of dict records under one key.

    `legacy_keys` are read (first match wins) only while the primary key is
    still empty; the first write lands under the primary key.
    """

    def __init__(
        self, accessor: StorageAccessor, key: str, legacy_keys: tuple[str, ...] = (),
    ) -> None:
        self._accessor = accessor
        self.key = key
        self._legacy_keys = legacy_keys

    def _load(self) -> list[dict]:
        for k in (self.key, *self._legacy_keys):
            if self._accessor.has(k):
                return [r for r in self._accessor.read_list(k) if isinstance(r, dict)]
        return []

    def _save(self, items: list[dict]) -> None:
        self._accessor.write(self.key, items)

    def _prepend(self, record: dict) -> None:
        self._save([record, *self._load()])

    def _update(self, record_id: str, change: Callable[[dict], None]) -> dict | None:
        items = self._load()
        for item in items:
            if item.get("id") == record_id:
                change(item)
                self._save(items)
                return item
        return None

    def _remove(self, record_id: str) -> bool:
        items = self._load()
        kept = [item for item in items if item.get("id") != record_id]
        if len(kept) == len(items):
            return False
        self._save(kept)
        return True

    def raw_items(self) -> list[dict]:
        return self._load()


class DayMapStore:
    """A per-day map {iso: [records]} under one key.

    With `migrate_arrays`, a legacy flat-array value is moved under today's
    date on first read and written back in map form.
    """

    def __init__(
        self,
        accessor: StorageAccessor,
        key: str,
        today_fn: TodayFn | None = None,
        migrate_arrays: bool = False,
    ) -> None:
        self._accessor = accessor
        self.key = key
        self._today_fn = today_fn or date.today
        self._migrate_arrays = migrate_arrays

    def _today(self) -> str:
        return dates.to_iso(self._today_fn())

    def _load_map(self) -> dict[str, list[dict]]:
        raw = self._accessor.read(self.key, {})
        if isinstance(raw, list):
            if not self._migrate_arrays:
                return {}
            store = {self._today(): [r for r in raw if isinstance(r, dict)]}
            self._accessor.write(self.key, store)
            logger.info("Migrated legacy list at %s into per-day map", self.key)
            return store
        if not isinstance(raw, dict):
            return {}
        return {
            day: [r for r in items if isinstance(r, dict)]
            for day, items in raw.items()
            if isinstance(items, list)
        }

    def _save_map(self, store: dict[str, list[dict]]) -> None:
        self._accessor.write(self.key, store)

    def _day_items(self, day: str | None) -> list[dict]:
        return self._load_map().get(day or self._today(), [])

    def _prepend(self, day: str, record: dict) -> None:
        store = self._load_map()
        store[day] = [record, *store.get(day, [])]
        self._save_map(store)

    def _update(
        self, day: str | None, record_id: str, change: Callable[[dict], None],
    ) -> dict | None:
        day = day or self._today()
        store = self._load_map()
        for item in store.get(day, []):
            if item.get("id") == record_id:
                change(item)
                self._save_map(store)
                return item
        return None

    def _remove(self, day: str | None, record_id: str) -> bool:
        day = day or self._today()
        store = self._load_map()
        items = store.get(day, [])
        kept = [item for item in items if item.get("id") != record_id]
        if len(kept) == len(items):
            return False
        store[day] = kept
        self._save_map(store)
        return True

    def days(self) -> list[str]:
        return sorted(self._load_map())


def _flip(field_name: str) -> Callable[[dict], None]:
    def change(item: dict) -> None:
        item[field_name] = not bool(item.get(field_name))
    return change


# ---------------------------------------------------------------------------
# Todos
# ---------------------------------------------------------------------------


class TodoStore(ListStore):
    """Identity-partitioned undated todo list."""

    def __init__(self, accessor: StorageAccessor, identity: str = "guest") -> None:
        super().__init__(accessor, keys.identity_key(identity, "todos"))

    def add(self, text: str) -> Todo | None:
        clean = (text or "").strip()
        if not clean:
            return None
        todo = Todo(id=new_id(), text=clean, created_at=now_ms())
        self._prepend(todo.to_dict())
        logger.info("Todo added: %s", todo.id)
        return todo

    def toggle(self, todo_id: str) -> Todo | None:
        item = self._update(todo_id, _flip("done"))
        return Todo.from_dict(item) if item else None

    def remove(self, todo_id: str) -> bool:
        return self._remove(todo_id)

    def list(self) -> list[Todo]:
        return [Todo.from_dict(r) for r in self._load()]


class TaskStore(TodoStore):
    """Dated todo list shared by the Home page and the assistant."""

    def __init__(self, accessor: StorageAccessor) -> None:
        ListStore.__init__(self, accessor, keys.TASKS)

    def add(self, text: str, day: str | None = None) -> Todo | None:
        clean = (text or "").strip()
        if not clean:
            return None
        todo = Todo(
            id=new_id(), text=clean, date=day or dates.today_iso(), created_at=now_ms(),
        )
        return self.add_record(todo)

    def add_record(self, todo: Todo) -> Todo:
        self._prepend(todo.to_dict())
        logger.info("Task added: %s on %s", todo.id, todo.date)
        return todo


class HomeTodoStore(DayMapStore):
    """Per-day "today" todo lists used by the Dashboard."""

    def __init__(self, accessor: StorageAccessor, today_fn: TodayFn | None = None) -> None:
        super().__init__(accessor, keys.HOME_TODOS, today_fn, migrate_arrays=True)

    def add(self, text: str) -> Todo | None:
        clean = (text or "").strip()
        if not clean:
            return None
        return self.add_record(Todo(id=new_id(), text=clean, created_at=now_ms()))

    def add_record(self, todo: Todo) -> Todo:
        day = todo.date or self._today()
        data = todo.to_dict()
        data.pop("date", None)
        self._prepend(day, data)
        return Todo(todo.id, todo.text, todo.done, day, todo.created_at)

    def toggle(self, todo_id: str, day: str | None = None) -> Todo | None:
        item = self._update(day, todo_id, _flip("done"))
        return Todo.from_dict(item) if item else None

    def remove(self, todo_id: str, day: str | None = None) -> bool:
        return self._remove(day, todo_id)

    def for_date(self, day: str | None = None) -> list[Todo]:
        day = day or self._today()
        todos = [Todo.from_dict(r) for r in self._day_items(day)]
        for t in todos:
            t.date = t.date or day
        return todos


# ---------------------------------------------------------------------------
# Reminders
# ---------------------------------------------------------------------------


def _reminder_type(value: str) -> str:
    return value if value in REMINDER_TYPES else "Reminder"


class ReminderStore(ListStore):
    """Flat reminder list (text + handled), one entry per reminder."""

    def __init__(self, accessor: StorageAccessor) -> None:
        super().__init__(accessor, keys.REMINDERS)

    def add(
        self,
        text: str,
        reminder_type: str = "Reminder",
        day: str | None = None,
        time: str = DEFAULT_TIME,
    ) -> Reminder | None:
        clean = (text or "").strip()
        if not clean:
            return None
        reminder = Reminder(
            id=new_id(),
            text=clean,
            type=_reminder_type(reminder_type),
            date=day or dates.today_iso(),
            time=time or DEFAULT_TIME,
            created_at=now_ms(),
        )
        self._prepend(reminder.to_dict("flat"))
        logger.info("Reminder added: %s on %s", reminder.id, reminder.date)
        return reminder

    def toggle_handled(self, reminder_id: str) -> Reminder | None:
        item = self._update(reminder_id, _flip("handled"))
        return Reminder.from_dict(item) if item else None

    def remove(self, reminder_id: str) -> bool:
        return self._remove(reminder_id)

    def list(self) -> list[Reminder]:
        return [Reminder.from_dict(r) for r in self._load()]

    def for_date(self, day: str) -> list[Reminder]:
        matching = [r for r in self.list() if r.date == day]
        matching.sort(key=lambda r: r.created_at if isinstance(r.created_at, int) else 0, reverse=True)
        return matching


class CalendarReminderStore(DayMapStore):
    """Calendar page reminders, keyed by day (text + done)."""

    def __init__(self, accessor: StorageAccessor, today_fn: TodayFn | None = None) -> None:
        super().__init__(accessor, keys.CALENDAR_REMINDERS, today_fn)

    def add(self, text: str, day: str | None = None, time: str = DEFAULT_TIME) -> Reminder | None:
        clean = (text or "").strip()
        if not clean:
            return None
        reminder = Reminder(
            id=new_id(), text=clean, date=day or self._today(),
            time=time or DEFAULT_TIME, created_at=now_ms(),
        )
        return self.add_record(reminder)

    def add_record(self, reminder: Reminder) -> Reminder:
        day = reminder.date or self._today()
        self._prepend(day, reminder.to_dict("calendar"))
        logger.info("Calendar reminder added: %s on %s", reminder.id, day)
        return reminder

    def toggle(self, day: str, reminder_id: str) -> Reminder | None:
        item = self._update(day, reminder_id, _flip("done"))
        return Reminder.from_dict({**item, "date": day}) if item else None

    def remove(self, day: str, reminder_id: str) -> bool:
        return self._remove(day, reminder_id)

    def for_date(self, day: str) -> list[Reminder]:
        return [Reminder.from_dict({**r, "date": day}) for r in self._day_items(day)]

    def select(self, day: str) -> bool:
        """Announce the day picked in the calendar view; it becomes the chat's default date."""
        if not dates.is_iso(day):
            return False
        self._accessor.bus.publish(Topic.CALENDAR_SELECTED, day)
        return True


class HomeReminderStore(DayMapStore):
    """Per-day "today" reminder lists used by the Dashboard (title + handled)."""

    def __init__(self, accessor: StorageAccessor, today_fn: TodayFn | None = None) -> None:
        super().__init__(accessor, keys.HOME_REMINDERS, today_fn, migrate_arrays=True)

    def add(self, text: str, time: str = DEFAULT_TIME) -> Reminder | None:
        clean = (text or "").strip()
        if not clean:
            return None
        return self.add_record(
            Reminder(id=new_id(), text=clean, time=time or DEFAULT_TIME, created_at=now_ms())
        )

    def add_record(self, reminder: Reminder) -> Reminder:
        day = reminder.date or self._today()
        self._prepend(day, reminder.to_dict("home"))
        return reminder

    def toggle(self, reminder_id: str, day: str | None = None) -> Reminder | None:
        item = self._update(day, reminder_id, _flip("handled"))
        return Reminder.from_dict(item) if item else None

    def remove(self, reminder_id: str, day: str | None = None) -> bool:
        return self._remove(day, reminder_id)

    def for_date(self, day: str | None = None) -> list[Reminder]:
        day = day or self._today()
        return [Reminder.from_dict({**r, "date": day}) for r in self._day_items(day)]


# ---------------------------------------------------------------------------
# Notes, goals, habits
# ---------------------------------------------------------------------------


class NoteStore(ListStore):
    def __init__(self, accessor: StorageAccessor, identity: str = "guest") -> None:
        super().__init__(accessor, keys.identity_key(identity, "notes"), (keys.NOTES,))

    def add(
        self,
        title: str = "",
        content: str = "",
        color: str = "yellow",
        protect: bool = False,
        password: str = "",
    ) -> Note | None:
        title = (title or "").strip()
        content = (content or "").strip()
        if not title and not content:
            return None
        if protect and not password:
            return None
        note = Note(
            id=new_id(),
            title=title or derive_title(content),
            content=content,
            color=color or "yellow",
            protect=protect,
            password=password if protect else "",
            created_at=now_ms(),
        )
        self._prepend(note.to_dict())
        logger.info("Note added: %s '%s'", note.id, note.title)
        return note

    def remove(self, note_id: str) -> bool:
        return self._remove(note_id)

    def list(self) -> list[Note]:
        return [Note.from_dict(r) for r in self._load()]

    def unlock(self, note_id: str, password: str) -> Note | None:
        """Return the note if it is unprotected or the password matches."""
        for note in self.list():
            if note.id == note_id:
                if not note.protect or note.password == password:
                    return note
                return None
        return None


class GoalStore(ListStore):
    def __init__(self, accessor: StorageAccessor, identity: str = "guest") -> None:
        super().__init__(
            accessor, keys.identity_key(identity, "goals"), (keys.GOALS, "goals_v1", "goals"),
        )

    def add(
        self,
        title: str,
        target_value: float | str = 0,
        unit: str = "",
        category: str = "Personal",
        target_date: str = "",
        desc: str = "",
    ) -> Goal | None:
        title = (title or "").strip()
        value = to_number(target_value)
        if not title or value < 0:
            return None
        if target_date and not dates.is_iso(target_date):
            return None
        goal = Goal(
            id=new_id(),
            title=title,
            desc=(desc or "").strip(),
            target_value=value,
            unit=(unit or "").strip(),
            category=category if category in GOAL_CATEGORIES else "Personal",
            target_date=target_date,
            created_at=now_ms(),
        )
        self._prepend(goal.to_dict())
        logger.info("Goal added: %s '%s'", goal.id, goal.title)
        return goal

    def remove(self, goal_id: str) -> bool:
        return self._remove(goal_id)

    def list(self) -> list[Goal]:
        return [Goal.from_dict(r) for r in self._load()]


class HabitStore(ListStore):
    def __init__(
        self,
        accessor: StorageAccessor,
        identity: str = "guest",
        today_fn: TodayFn | None = None,
    ) -> None:
        super().__init__(accessor, keys.identity_key(identity, "habits"), (keys.HABITS,))
        self._today_fn = today_fn or date.today

    def add(self, title: str) -> Habit | None:
        title = (title or "").strip()
        if not title:
            return None
        habit = Habit(id=new_id(), title=title, created_at=now_ms())
        self._prepend(habit.to_dict())
        logger.info("Habit added: %s '%s'", habit.id, title)
        return habit

    def remove(self, habit_id: str) -> bool:
        return self._remove(habit_id)

    def toggle(self, habit_id: str, day: str | None = None) -> Habit | None:
        """Mark or unmark a day. Unmarking removes every duplicate of that day."""
        day = day or dates.to_iso(self._today_fn())

        def change(item: dict) -> None:
            completions = [d for d in item.get("completions") or [] if isinstance(d, str)]
            if day in completions:
                item["completions"] = [d for d in completions if d != day]
            else:
                item["completions"] = [*completions, day]

        item = self._update(habit_id, change)
        return Habit.from_dict(item) if item else None

    def list(self) -> list[Habit]:
        return [Habit.from_dict(r) for r in self._load()]

    def streak(self, habit: Habit) -> int:
        """Consecutive completed days ending today."""
        done = set(habit.completions)
        cursor = self._today_fn()
        count = 0
        while dates.to_iso(cursor) in done:
            count += 1
            cursor -= timedelta(days=1)
        return count


# ---------------------------------------------------------------------------
# Work sessions & expenses
# ---------------------------------------------------------------------------


class WorkLogStore:
    """Work sessions and expenses — two flat lists owned together."""

    def __init__(self, accessor: StorageAccessor, today_fn: TodayFn | None = None) -> None:
        self._sessions = ListStore(accessor, keys.WORK_SESSIONS)
        self._expenses = ListStore(accessor, keys.EXPENSES)
        self._today_fn = today_fn or date.today

    def add_session(
        self, day: str, start: str, end: str, rate: float | str = 0, notes: str = "",
    ) -> WorkSession | None:
        """Log a session from HH:MM bounds. Zero or unparseable duration → no-op."""
        if not dates.is_iso(day):
            return None
        hours = dates.diff_hours(start, end)
        if hours <= 0:
            return None
        rate_num = max(to_number(rate), 0.0)
        session = WorkSession(
            id=new_id(),
            date=day,
            start=start,
            end=end,
            hours=round(hours, 2),
            rate=round(rate_num, 2),
            earnings=round(hours * rate_num, 2),
            notes=notes or "",
            created_at=now_ms(),
        )
        self._sessions._prepend(session.to_dict())
        logger.info("Work session logged: %s %.2fh on %s", session.id, session.hours, day)
        return session

    def add_focus_session(self, minutes: int, day: str | None = None) -> WorkSession | None:
        """Record a finished Pomodoro block as an unpaid work session."""
        if minutes <= 0:
            return None
        session = WorkSession(
            id=new_id(),
            date=day or dates.to_iso(self._today_fn()),
            start="Focus",
            end="Focus",
            hours=round(minutes / 60, 2),
            notes=f"Pomodoro focus ({minutes}m)",
            source="focus",
            created_at=now_ms(),
        )
        self._sessions._prepend(session.to_dict())
        logger.info("Focus session logged: %dm on %s", minutes, session.date)
        return session

    def add_expense(
        self,
        day: str,
        name: str,
        expense_type: str = "Food",
        where: str = "",
        amount: float | str = 0,
    ) -> Expense | None:
        amt = to_number(amount)
        if amt <= 0 or not dates.is_iso(day):
            return None
        expense = Expense(
            id=new_id(),
            date=day,
            name=(name or "").strip() or "Expense",
            type=expense_type if expense_type in EXPENSE_TYPES else "Other",
            where=(where or "").strip(),
            amount=round(amt, 2),
            created_at=now_ms(),
        )
        self._expenses._prepend(expense.to_dict())
        logger.info("Expense logged: %s %.2f on %s", expense.id, expense.amount, day)
        return expense

    def remove_session(self, session_id: str) -> bool:
        return self._sessions._remove(session_id)

    def remove_expense(self, expense_id: str) -> bool:
        return self._expenses._remove(expense_id)

    def sessions(self) -> list[WorkSession]:
        return [WorkSession.from_dict(r) for r in self._sessions.raw_items()]

    def expenses(self) -> list[Expense]:
        return [Expense.from_dict(r) for r in self._expenses.raw_items()]

    def totals(self) -> dict[str, float]:
        hours = sum(s.hours for s in self.sessions())
        earnings = sum(s.earnings for s in self.sessions())
        spent = sum(e.amount for e in self.expenses())
        return {
            "total_hours": hours,
            "total_earnings": earnings,
            "total_expenses": spent,
            "net": earnings - spent,
        }


# ---------------------------------------------------------------------------
# Chat history
# ---------------------------------------------------------------------------


class ChatHistoryStore(ListStore):
    """Ordered chat transcript for one identity (oldest first)."""

    def __init__(self, accessor: StorageAccessor, identity: str = "guest") -> None:
        super().__init__(accessor, keys.chat_key(identity))

    def load(self) -> list[ChatMessage]:
        return [ChatMessage.from_dict(r) for r in self._load()]

    def save(self, messages: list[ChatMessage]) -> None:
        self._save([m.to_dict() for m in messages])

    def clear(self) -> None:
        self._accessor.remove(self.key)
