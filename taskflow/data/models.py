"""
TaskFlow Assistant — Data Models.

Canonical in-memory shapes for every entity. Stored data uses several
historical encodings (camelCase keys, `text` vs `title`, `done` vs
`handled`); `from_dict` adapts any of them once at the read boundary and
`to_dict` writes the field names the owning bucket expects.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field

REMINDER_TYPES = ("Reminder", "Birthday", "Event")
GOAL_CATEGORIES = ("Health", "Learning", "Personal", "Career", "Finance")
EXPENSE_TYPES = ("Food", "Transport", "Bills", "Shopping", "Health", "Entertainment", "Other")

DEFAULT_TIME = "09:00"


def new_id() -> str:
    return uuid.uuid4().hex


def now_ms() -> int:
    return int(time.time() * 1000)


def to_bool(value: object) -> bool:
    """Coerce the boolean-like encodings found in stored records."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def to_number(value: object) -> float:
    """Lenient numeric read: anything unparseable counts as 0."""
    if isinstance(value, bool):
        return float(value)
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _created_at(raw: dict) -> int | str:
    # Older pages stored ISO timestamps instead of epoch ms
    value = raw.get("createdAt")
    return value if isinstance(value, (int, str)) else 0


@dataclass
class Todo:
    """A single todo item, dated or undated."""

    id: str
    text: str
    done: bool = False
    date: str | None = None        # ISO date YYYY-MM-DD
    created_at: int | str = 0      # epoch ms

    def to_dict(self) -> dict:
        data = {"id": self.id, "text": self.text, "done": self.done, "createdAt": self.created_at}
        if self.date:
            data["date"] = self.date
        return data

    @classmethod
    def from_dict(cls, raw: dict) -> Todo:
        return cls(
            id=str(raw.get("id") or ""),
            text=str(raw.get("text") or raw.get("title") or ""),
            done=to_bool(raw.get("done")),
            date=raw.get("date") or None,
            created_at=_created_at(raw),
        )


# Reminder buckets disagree on field names:
#   flat list (reminders page):  text  + handled
#   calendar per-day map:        text  + done
#   today per-day map:           title + handled
#   identity list:               title + done
REMINDER_SHAPES = {
    "flat": ("text", "handled"),
    "calendar": ("text", "done"),
    "home": ("title", "handled"),
    "identity": ("title", "done"),
}


@dataclass
class Reminder:
    """A reminder, birthday or event on a given date."""

    id: str
    text: str
    type: str = "Reminder"
    date: str | None = None
    time: str = DEFAULT_TIME
    done: bool = False
    created_at: int | str = 0

    def to_dict(self, shape: str = "flat") -> dict:
        text_field, done_field = REMINDER_SHAPES[shape]
        data = {
            "id": self.id,
            text_field: self.text,
            "type": self.type,
            "time": self.time,
            done_field: self.done,
            "createdAt": self.created_at,
        }
        # Per-day maps carry the date in the map key
        if shape in ("flat", "identity") and self.date:
            data["date"] = self.date
        return data

    @classmethod
    def from_dict(cls, raw: dict) -> Reminder:
        text = raw.get("text")
        if not isinstance(text, str) or not text:
            text = raw.get("title")
        return cls(
            id=str(raw.get("id") or ""),
            text=str(text or ""),
            type=str(raw.get("type") or "Reminder"),
            date=raw.get("date") or None,
            time=str(raw.get("time") or DEFAULT_TIME),
            done=to_bool(raw.get("done", raw.get("handled"))),
            created_at=_created_at(raw),
        )


@dataclass
class Note:
    """A free-form note, optionally password-protected."""

    id: str
    title: str
    content: str = ""
    color: str = "yellow"
    protect: bool = False
    password: str = ""   # plaintext, only meaningful when protect is set
    created_at: int | str = 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "color": self.color,
            "protect": self.protect,
            "password": self.password,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, raw: dict) -> Note:
        return cls(
            id=str(raw.get("id") or ""),
            title=str(raw.get("title") or "Untitled"),
            content=str(raw.get("content") or ""),
            color=str(raw.get("color") or "yellow"),
            protect=to_bool(raw.get("protect")),
            password=str(raw.get("password") or ""),
            created_at=_created_at(raw),
        )


@dataclass
class Goal:
    """A measurable goal with a target date."""

    id: str
    title: str
    desc: str = ""
    target_value: float = 0.0
    unit: str = ""
    category: str = "Personal"
    target_date: str = ""
    created_at: int | str = 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "desc": self.desc,
            "targetValue": self.target_value,
            "unit": self.unit,
            "category": self.category,
            "targetDate": self.target_date,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, raw: dict) -> Goal:
        return cls(
            id=str(raw.get("id") or ""),
            title=str(raw.get("title") or raw.get("name") or ""),
            desc=str(raw.get("desc") or ""),
            target_value=to_number(raw.get("targetValue")),
            unit=str(raw.get("unit") or ""),
            category=str(raw.get("category") or "Personal"),
            target_date=str(raw.get("targetDate") or raw.get("dueDate") or ""),
            created_at=_created_at(raw),
        )


@dataclass
class Habit:
    """A daily habit. The streak is derived from completions, never stored."""

    id: str
    title: str
    completions: list[str] = field(default_factory=list)   # ISO dates
    created_at: int | str = 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "completions": list(self.completions),
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, raw: dict) -> Habit:
        completions = raw.get("completions")
        return cls(
            id=str(raw.get("id") or ""),
            title=str(raw.get("title") or ""),
            completions=[str(d) for d in completions] if isinstance(completions, list) else [],
            created_at=_created_at(raw),
        )


@dataclass
class WorkSession:
    """A logged block of work. Earnings are fixed at creation."""

    id: str
    date: str
    start: str = ""
    end: str = ""
    hours: float = 0.0
    rate: float = 0.0
    earnings: float = 0.0
    notes: str = ""
    source: str = "manual"   # "manual" | "focus"
    created_at: int | str = 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "start": self.start,
            "end": self.end,
            "hours": self.hours,
            "rate": self.rate,
            "earnings": self.earnings,
            "notes": self.notes,
            "source": self.source,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, raw: dict) -> WorkSession:
        # Legacy shapes: durationHours / durationSec, hourlyRate
        if raw.get("hours") is not None:
            hours = to_number(raw.get("hours"))
        elif raw.get("durationHours") is not None:
            hours = to_number(raw.get("durationHours"))
        else:
            hours = to_number(raw.get("durationSec")) / 3600
        rate = to_number(raw.get("rate") or raw.get("hourlyRate"))
        earnings = raw.get("earnings")
        return cls(
            id=str(raw.get("id") or ""),
            date=str(raw.get("date") or ""),
            start=str(raw.get("start") or ""),
            end=str(raw.get("end") or ""),
            hours=hours,
            rate=rate,
            earnings=to_number(earnings) if earnings is not None else round(hours * rate, 2),
            notes=str(raw.get("notes") or ""),
            source=str(raw.get("source") or "manual"),
            created_at=_created_at(raw),
        )


@dataclass
class Expense:
    """A single spending record. Amount is always positive."""

    id: str
    date: str
    name: str = "Expense"
    type: str = "Food"
    where: str = ""
    amount: float = 0.0
    created_at: int | str = 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "name": self.name,
            "type": self.type,
            "where": self.where,
            "amount": self.amount,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, raw: dict) -> Expense:
        return cls(
            id=str(raw.get("id") or ""),
            date=str(raw.get("date") or ""),
            name=str(raw.get("name") or raw.get("title") or raw.get("expenseName") or "Expense"),
            type=str(raw.get("type") or ""),
            where=str(raw.get("where") or ""),
            amount=to_number(raw.get("amount")),
            created_at=_created_at(raw),
        )


@dataclass
class ChatMessage:
    """One line of the assistant conversation."""

    id: str
    role: str    # "user" | "bot"
    text: str
    ts: str = ""   # display time, e.g. "18:30"

    def to_dict(self) -> dict:
        return {"id": self.id, "role": self.role, "text": self.text, "ts": self.ts}

    @classmethod
    def from_dict(cls, raw: dict) -> ChatMessage:
        return cls(
            id=str(raw.get("id") or new_id()),
            role="user" if raw.get("role") == "user" else "bot",
            text=str(raw.get("text") or ""),
            ts=str(raw.get("ts") or ""),
        )


@dataclass
class User:
    """A registered local account. The password is stored in cleartext."""

    id: str
    username: str
    password: str = ""
    full_name: str = ""
    email: str = ""
    created_at: int | str = 0

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "username": self.username,
            "password": self.password,
            "fullName": self.full_name,
            "createdAt": self.created_at,
        }
        if self.email:
            data["email"] = self.email
        return data

    @classmethod
    def from_dict(cls, raw: dict) -> User:
        return cls(
            id=str(raw.get("id") or ""),
            username=str(raw.get("username") or ""),
            password=str(raw.get("password") or ""),
            full_name=str(raw.get("fullName") or ""),
            email=str(raw.get("email") or ""),
            created_at=_created_at(raw),
        )


@dataclass(frozen=True)
class Identity:
    """Whose data partition is visible, and how to greet them."""

    key: str = "guest"
    display_name: str = "there"


GUEST = Identity()
