"""Tests for taskflow.data.models — dataclass shapes and legacy field adapters."""

import pytest

from taskflow.data.models import (
    ChatMessage,
    Expense,
    Goal,
    Habit,
    Note,
    Reminder,
    Todo,
    User,
    WorkSession,
    to_bool,
    to_number,
)


class TestCoercion:
    @pytest.mark.parametrize("value, expected", [
        (True, True), (False, False),
        ("true", True), ("TRUE", True), ("yes", True), ("1", True),
        ("false", False), ("no", False), ("", False),
        (1, True), (0, False), (2, False),
        (None, False),
    ])
    def test_to_bool(self, value, expected):
        assert to_bool(value) is expected

    def test_to_number(self):
        assert to_number("12.5") == 12.5
        assert to_number(None) == 0.0
        assert to_number("abc") == 0.0


class TestTodo:
    def test_round_trip(self):
        todo = Todo(id="t1", text="Pay rent", done=True, date="2026-03-18", created_at=5)
        assert Todo.from_dict(todo.to_dict()) == todo

    def test_undated_omits_date(self):
        assert "date" not in Todo(id="t1", text="x").to_dict()

    def test_title_alias(self):
        assert Todo.from_dict({"id": 1, "title": "Legacy"}).text == "Legacy"
        assert Todo.from_dict({"id": 1, "title": "Legacy"}).id == "1"


class TestReminder:
    def test_shapes_use_bucket_field_names(self):
        r = Reminder(id="r1", text="Call mom", date="2026-03-18", time="18:30", done=True)
        assert r.to_dict("flat")["handled"] is True
        assert r.to_dict("flat")["date"] == "2026-03-18"
        assert r.to_dict("calendar")["done"] is True
        assert "date" not in r.to_dict("calendar")
        home = r.to_dict("home")
        assert home["title"] == "Call mom"
        assert home["handled"] is True

    def test_from_home_shape(self):
        r = Reminder.from_dict({"id": "r1", "title": "Gym", "handled": "yes"})
        assert r.text == "Gym"
        assert r.done is True
        assert r.time == "09:00"
        assert r.type == "Reminder"


class TestWorkSession:
    def test_legacy_duration_seconds(self):
        s = WorkSession.from_dict({"date": "2026-03-18", "durationSec": 5400, "hourlyRate": 20})
        assert s.hours == 1.5
        assert s.rate == 20
        assert s.earnings == 30.0

    def test_stored_earnings_win(self):
        s = WorkSession.from_dict({"date": "2026-03-18", "hours": 2, "rate": 10, "earnings": 25})
        assert s.earnings == 25


class TestOtherModels:
    def test_goal_due_date_alias(self):
        g = Goal.from_dict({"name": "Read", "dueDate": "2026-06-01", "targetValue": "12"})
        assert g.title == "Read"
        assert g.target_date == "2026-06-01"
        assert g.target_value == 12.0
        assert g.to_dict()["targetDate"] == "2026-06-01"

    def test_note_defaults(self):
        n = Note.from_dict({"id": "n1"})
        assert n.title == "Untitled"
        assert n.color == "yellow"
        assert n.protect is False

    def test_habit_ignores_bad_completions(self):
        assert Habit.from_dict({"id": "h", "completions": "2026-03-18"}).completions == []

    def test_expense_name_aliases(self):
        assert Expense.from_dict({"title": "Lunch", "amount": "8"}).name == "Lunch"
        assert Expense.from_dict({"amount": 8}).name == "Expense"

    def test_chat_message_role(self):
        assert ChatMessage.from_dict({"role": "user", "text": "hi"}).role == "user"
        assert ChatMessage.from_dict({"role": "system", "text": "x"}).role == "bot"
        assert ChatMessage.from_dict({"text": "x"}).id

    def test_user_email_optional(self):
        assert "email" not in User(id="u", username="alex").to_dict()
        assert User.from_dict({"username": "a", "fullName": "A B"}).full_name == "A B"
