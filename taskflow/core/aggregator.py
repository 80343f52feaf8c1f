"""
TaskFlow Assistant — Cross-store aggregator.

Read-only reconciliation of every storage encoding that has ever held
todos, reminders, work sessions, expenses, goals and notes:

- todos and reminders: every key with data is merged (pages have written
  them to several keys at once), per-day maps are flattened, duplicates
  collapse by id and completion is "true wins";
- sessions, expenses, goals, notes: the first key with data wins.

Nothing here writes. Each call re-reads storage, so repeated reads without
an intervening write return equal results.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import TYPE_CHECKING, Callable

from taskflow.core import dates
from taskflow.data import keys
from taskflow.data.models import (
    Expense,
    Goal,
    Note,
    Reminder,
    Todo,
    WorkSession,
    to_bool,
    to_number,
)

if TYPE_CHECKING:
    from taskflow.data.storage import StorageAccessor

logger = logging.getLogger(__name__)

# Precedence: newest scheme first. The identity-partitioned key is
# prepended at runtime.
TODO_KEYS = (keys.HOME_TODOS, "taskflow_todos_v1", keys.TASKS, "taskflow_todos", "todos")
REMINDER_KEYS = (keys.HOME_REMINDERS, keys.CALENDAR_REMINDERS, keys.REMINDERS, "taskflow_reminders")
SESSION_KEYS = (keys.WORK_SESSIONS, "taskflow_sessions_v1", "work_sessions")
EXPENSE_KEYS = (keys.EXPENSES, "expenses")
GOAL_KEYS = (keys.GOALS, "goals_v1", "goals")
NOTE_KEYS = (keys.NOTES,)

# Flat arrays under these keys hold today's items without a date field
TODAY_KEYS = frozenset({keys.HOME_TODOS, keys.HOME_REMINDERS})

TODO_DONE_FIELDS = ("done", "completed", "isDone", "checked")
REMINDER_DONE_FIELDS = (*TODO_DONE_FIELDS, "handled")

GOAL_CATEGORY_BUCKETS = ("Health", "Learning", "Personal")


@dataclass
class CompletionStats:
    total: int
    completed: int
    pct: int   # 0-100, 0 when total is 0


@dataclass
class GoalStats:
    total: int
    active: int
    completed: int
    avg_progress: int


@dataclass
class WorkMoneySummary:
    timeframe: str
    start: str
    end: str
    sessions: list[WorkSession] = field(default_factory=list)
    expenses: list[Expense] = field(default_factory=list)
    total_hours: float = 0.0
    total_earnings: float = 0.0
    total_spent: float = 0.0

    @property
    def net(self) -> float:
        return self.total_earnings - self.total_spent


def completion(items: list, done: Callable[[object], bool]) -> CompletionStats:
    total = len(items)
    completed = sum(1 for item in items if done(item))
    pct = round(completed / total * 100) if total else 0
    return CompletionStats(total, completed, pct)


def _first_flag(raw: dict, aliases: tuple[str, ...]) -> bool:
    for name in aliases:
        value = raw.get(name)
        if value is not None:
            return to_bool(value)
    return False


def _norm_date(value: object) -> str | None:
    parsed = dates.parse_iso(value) if isinstance(value, str) else None
    return dates.to_iso(parsed) if parsed else None


def _record_text(raw: dict) -> str:
    for name in ("text", "title"):
        value = raw.get(name)
        if isinstance(value, str) and value:
            return value
    return str(raw.get("text") or raw.get("title") or "")


def _created_day(created_at: object) -> str | None:
    if isinstance(created_at, (int, float)) and not isinstance(created_at, bool) and created_at > 0:
        try:
            return dates.to_iso(datetime.fromtimestamp(created_at / 1000).date())
        except (ValueError, OverflowError, OSError):
            return None
    if isinstance(created_at, str):
        return _norm_date(created_at[:10])
    return None


def _goal_done(raw: dict) -> bool:
    return bool(raw.get("completed") or raw.get("done") or raw.get("status") == "completed")


def _goal_progress(raw: dict) -> float:
    progress = raw.get("progress")
    if isinstance(progress, (int, float)) and not isinstance(progress, bool):
        return min(max(float(progress), 0.0), 100.0)
    current, target = raw.get("current"), raw.get("target")
    if (
        isinstance(current, (int, float)) and isinstance(target, (int, float))
        and not isinstance(target, bool) and target > 0
    ):
        return min(max(current / target * 100, 0.0), 100.0)
    return 100.0 if _goal_done(raw) else 0.0


def _category_bucket(raw: dict) -> str:
    category = str(raw.get("category") or raw.get("type") or "Personal").lower()
    if "health" in category:
        return "Health"
    if "learn" in category or "study" in category:
        return "Learning"
    return "Personal"


class CrossStoreAggregator:
    """Single consistent view over every todo/reminder/work/money encoding."""

    def __init__(
        self,
        accessor: StorageAccessor,
        identity: str = "guest",
        today_fn: Callable[[], date] | None = None,
        week_start: int = 0,
        window_days: int = 30,
    ) -> None:
        self._accessor = accessor
        self._identity = identity or "guest"
        self._today_fn = today_fn or date.today
        self.week_start = week_start
        self.window_days = window_days

    def today(self) -> date:
        return self._today_fn()

    def today_iso(self) -> str:
        return dates.to_iso(self._today_fn())

    # ------------------------------------------------------------------
    # Raw reads
    # ------------------------------------------------------------------

    def _keys(self, bucket: str, legacy: tuple[str, ...]) -> tuple[str, ...]:
        return (keys.identity_key(self._identity, bucket), *legacy)

    def _flatten(self, key: str, value: object) -> list[dict]:
        """Per-day maps → flat records carrying the map key as their date."""
        if isinstance(value, list):
            default = self.today_iso() if key in TODAY_KEYS else None
            return [
                {**r, "date": r.get("date") or default}
                for r in value if isinstance(r, dict)
            ]
        if isinstance(value, dict):
            out = []
            for day, items in value.items():
                if not isinstance(items, list):
                    continue
                out.extend({**r, "date": r.get("date") or day} for r in items if isinstance(r, dict))
            return out
        return []

    def _merged(self, key_order: tuple[str, ...], aliases: tuple[str, ...]) -> list[dict]:
        """Merge every key with data, dedup by id (text-date fallback), done wins."""
        by_key: dict[str, dict] = {}
        for key in key_order:
            if not self._accessor.has(key):
                continue
            value = self._accessor.read(key, None)
            if value is None:
                continue
            for raw in self._flatten(key, value):
                text = _record_text(raw)
                day = _norm_date(raw.get("date"))
                done = _first_flag(raw, aliases)
                dedup = str(raw["id"]) if raw.get("id") is not None else f"{text}-{day or ''}"
                prev = by_key.get(dedup)
                if prev is None:
                    by_key[dedup] = {**raw, "text": text, "date": day, "done": done}
                else:
                    by_key[dedup] = {**prev, **raw, "text": text, "date": day or prev.get("date"),
                                     "done": prev["done"] or done}
        return list(by_key.values())

    def _first_existing(self, key_order: tuple[str, ...]) -> list[dict]:
        for key in key_order:
            if self._accessor.has(key):
                value = self._accessor.read(key, [])
                logger.debug("Reading %s from %s", key_order[-1], key)
                return [r for r in value if isinstance(r, dict)] if isinstance(value, list) else []
        return []

    # ------------------------------------------------------------------
    # Canonical views
    # ------------------------------------------------------------------

    def todos(self) -> list[Todo]:
        return [
            Todo(
                id=str(r.get("id") or ""),
                text=r["text"],
                done=r["done"],
                date=r["date"],
                created_at=r.get("createdAt") if isinstance(r.get("createdAt"), (int, str)) else 0,
            )
            for r in self._merged(self._keys("todos", TODO_KEYS), TODO_DONE_FIELDS)
        ]

    def reminders(self) -> list[Reminder]:
        merged = self._merged(self._keys("reminders", REMINDER_KEYS), REMINDER_DONE_FIELDS)
        return [Reminder.from_dict(r) for r in merged]

    def work_sessions(self) -> list[WorkSession]:
        return [WorkSession.from_dict(r) for r in self._first_existing(SESSION_KEYS)]

    def expenses(self) -> list[Expense]:
        return [Expense.from_dict(r) for r in self._first_existing(EXPENSE_KEYS)]

    def _raw_goals(self) -> list[dict]:
        return self._first_existing(self._keys("goals", GOAL_KEYS))

    def goals(self) -> list[Goal]:
        return [Goal.from_dict(r) for r in self._raw_goals()]

    def notes(self) -> list[Note]:
        return [Note.from_dict(r) for r in self._first_existing(self._keys("notes", NOTE_KEYS))]

    # ------------------------------------------------------------------
    # Date-scoped views
    # ------------------------------------------------------------------

    def todos_for(self, day: str) -> list[Todo]:
        return [t for t in self.todos() if t.date == day]

    def reminders_for(self, day: str) -> list[Reminder]:
        return [r for r in self.reminders() if r.date == day]

    def todos_between(self, start: str, end: str) -> list[Todo]:
        return [t for t in self.todos() if dates.in_range(t.date, start, end)]

    def reminders_between(self, start: str, end: str) -> list[Reminder]:
        return [r for r in self.reminders() if dates.in_range(r.date, start, end)]

    # ------------------------------------------------------------------
    # Metrics
    # ------------------------------------------------------------------

    def todo_stats(self) -> CompletionStats:
        return completion(self.todos(), lambda t: t.done)

    def reminder_stats(self) -> CompletionStats:
        return completion(self.reminders(), lambda r: r.done)

    def completion_series(self) -> list[int]:
        """Per-day todo completion % over the trailing window, oldest first."""
        todos = self.todos()
        by_day: dict[str, list[Todo]] = {}
        for todo in todos:
            day = todo.date or _created_day(todo.created_at)
            if day:
                by_day.setdefault(day, []).append(todo)
        return [
            completion(by_day.get(day, []), lambda t: t.done).pct
            for day in dates.trailing_days(self.today(), self.window_days)
        ]

    def work_hours_series(self) -> list[float]:
        hours_by_day: dict[str, float] = {}
        for session in self.work_sessions():
            day = _norm_date(session.date)
            if day:
                hours_by_day[day] = hours_by_day.get(day, 0.0) + session.hours
        return [
            round(hours_by_day.get(day, 0.0), 2)
            for day in dates.trailing_days(self.today(), self.window_days)
        ]

    def weekly_earnings(self) -> list[float]:
        """Earnings for W1..W4 of the current month; days 29-31 count toward W4."""
        today = self.today()
        weeks = [0.0, 0.0, 0.0, 0.0]
        for session in self.work_sessions():
            parsed = dates.parse_iso(session.date)
            if not parsed or (parsed.year, parsed.month) != (today.year, today.month):
                continue
            weeks[min((parsed.day - 1) // 7, 3)] += session.earnings
        return [round(w, 2) for w in weeks]

    def goal_stats(self) -> GoalStats:
        raw_goals = self._raw_goals()
        total = len(raw_goals)
        completed = sum(1 for g in raw_goals if _goal_done(g))
        avg = round(sum(_goal_progress(g) for g in raw_goals) / total) if total else 0
        return GoalStats(total=total, active=total - completed, completed=completed, avg_progress=avg)

    def goals_by_category(self) -> dict[str, dict[str, int]]:
        buckets = {cat: {"active": 0, "completed": 0} for cat in GOAL_CATEGORY_BUCKETS}
        for raw in self._raw_goals():
            state = "completed" if _goal_done(raw) else "active"
            buckets[_category_bucket(raw)][state] += 1
        return buckets

    def work_money(self, timeframe: str) -> WorkMoneySummary:
        start, end = dates.timeframe_range(timeframe, self.today(), self.week_start)
        sessions = [s for s in self.work_sessions() if dates.in_range(s.date, start, end)]
        spent = [e for e in self.expenses() if dates.in_range(e.date, start, end)]
        return WorkMoneySummary(
            timeframe=timeframe,
            start=start,
            end=end,
            sessions=sessions,
            expenses=spent,
            total_hours=sum(s.hours for s in sessions),
            total_earnings=sum(s.earnings for s in sessions),
            total_spent=sum(to_number(e.amount) for e in spent),
        )
