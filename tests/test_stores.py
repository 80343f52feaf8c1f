"""Tests for taskflow.data.stores — per-entity stores over the storage accessor."""

from taskflow.core.events import Topic
from taskflow.data import keys
from taskflow.data.stores import (
    CalendarReminderStore,
    ChatHistoryStore,
    GoalStore,
    HabitStore,
    HomeReminderStore,
    HomeTodoStore,
    NoteStore,
    ReminderStore,
    TaskStore,
    TodoStore,
    WorkLogStore,
    derive_title,
)
from taskflow.data.models import ChatMessage, Todo


# ---------------------------------------------------------------------------
# Todos
# ---------------------------------------------------------------------------


class TestTodoStore:
    def test_add_and_list_newest_first(self, storage):
        store = TodoStore(storage, "alex")
        store.add("first")
        store.add("second")
        assert [t.text for t in store.list()] == ["second", "first"]

    def test_empty_text_is_noop(self, storage):
        store = TodoStore(storage)
        assert store.add("   ") is None
        assert store.list() == []

    def test_toggle_and_remove(self, storage):
        store = TodoStore(storage)
        todo = store.add("Buy milk")
        assert store.toggle(todo.id).done is True
        assert store.toggle(todo.id).done is False
        assert store.remove(todo.id) is True
        assert store.remove(todo.id) is False
        assert store.toggle("missing") is None

    def test_partitioned_by_identity(self, storage):
        TodoStore(storage, "alex").add("mine")
        assert TodoStore(storage, "sam").list() == []
        assert storage.has(keys.identity_key("alex", "todos"))


class TestTaskStore:
    def test_add_with_date(self, storage):
        todo = TaskStore(storage).add("File taxes", "2026-04-01")
        stored = storage.read_list(keys.TASKS)
        assert stored[0]["id"] == todo.id
        assert stored[0]["date"] == "2026-04-01"


class TestHomeTodoStore:
    def test_add_goes_under_today(self, storage, today_fn):
        store = HomeTodoStore(storage, today_fn)
        todo = store.add("Stretch")
        assert todo.date == "2026-03-18"
        assert list(storage.read_map(keys.HOME_TODOS)) == ["2026-03-18"]
        assert "date" not in storage.read_map(keys.HOME_TODOS)["2026-03-18"][0]

    def test_legacy_array_migrates_under_today(self, storage, today_fn):
        storage.write(keys.HOME_TODOS, [{"id": "a", "text": "old", "done": False}])
        store = HomeTodoStore(storage, today_fn)

        todos = store.for_date()

        assert [(t.id, t.date) for t in todos] == [("a", "2026-03-18")]
        assert storage.read(keys.HOME_TODOS) == {
            "2026-03-18": [{"id": "a", "text": "old", "done": False}],
        }

    def test_toggle_on_another_day(self, storage, today_fn):
        store = HomeTodoStore(storage, today_fn)
        store.add_record(Todo(id="x", text="Later", date="2026-03-20"))
        assert store.toggle("x") is None
        assert store.toggle("x", "2026-03-20").done is True
        assert store.remove("x", "2026-03-20") is True


# ---------------------------------------------------------------------------
# Reminders
# ---------------------------------------------------------------------------


class TestReminderStore:
    def test_unknown_type_falls_back(self, storage):
        r = ReminderStore(storage).add("Party", reminder_type="Festival", day="2026-03-18")
        assert r.type == "Reminder"

    def test_toggle_handled_uses_flat_field(self, storage):
        store = ReminderStore(storage)
        r = store.add("Birthday card", "Birthday", "2026-03-18", "10:00")
        assert store.toggle_handled(r.id).done is True
        assert storage.read_list(keys.REMINDERS)[0]["handled"] is True

    def test_for_date_newest_first(self, storage):
        store = ReminderStore(storage)
        first = store.add("one", day="2026-03-18")
        second = store.add("two", day="2026-03-18")
        store.add("other day", day="2026-03-19")
        assert [r.id for r in store.for_date("2026-03-18")] == [second.id, first.id]


class TestCalendarReminderStore:
    def test_add_under_day(self, storage, today_fn):
        store = CalendarReminderStore(storage, today_fn)
        r = store.add("Dentist", "2026-03-20", "14:00")
        day = storage.read_map(keys.CALENDAR_REMINDERS)["2026-03-20"]
        assert day[0]["text"] == "Dentist"
        assert day[0]["done"] is False
        assert store.for_date("2026-03-20")[0].date == "2026-03-20"
        assert store.toggle("2026-03-20", r.id).done is True
        assert store.remove("2026-03-20", r.id) is True
        assert store.for_date("2026-03-20") == []

    def test_select_publishes_valid_dates(self, storage, bus, today_fn):
        seen = []
        bus.subscribe(Topic.CALENDAR_SELECTED, seen.append)
        store = CalendarReminderStore(storage, today_fn)

        assert store.select("2026-02-01") is True
        assert store.select("02/01/2026") is False
        assert seen == ["2026-02-01"]

    def test_legacy_array_is_not_migrated(self, storage, today_fn):
        storage.write(keys.CALENDAR_REMINDERS, [{"id": "z", "text": "x"}])
        assert CalendarReminderStore(storage, today_fn).for_date("2026-03-18") == []
        assert isinstance(storage.read(keys.CALENDAR_REMINDERS), list)


class TestHomeReminderStore:
    def test_title_and_handled_fields(self, storage, today_fn):
        store = HomeReminderStore(storage, today_fn)
        r = store.add("Water plants", "08:00")
        raw = storage.read_map(keys.HOME_REMINDERS)["2026-03-18"][0]
        assert raw["title"] == "Water plants"
        assert raw["handled"] is False
        assert store.toggle(r.id).done is True
        assert store.for_date()[0].done is True

    def test_legacy_array_migrates(self, storage, today_fn):
        storage.write(keys.HOME_REMINDERS, [{"id": "h", "title": "old"}])
        reminders = HomeReminderStore(storage, today_fn).for_date()
        assert [(r.text, r.date) for r in reminders] == [("old", "2026-03-18")]
        assert isinstance(storage.read(keys.HOME_REMINDERS), dict)


# ---------------------------------------------------------------------------
# Notes, goals, habits
# ---------------------------------------------------------------------------


class TestNoteStore:
    def test_title_derived_from_content(self, storage):
        note = NoteStore(storage).add(content="a fairly long bare note that keeps going")
        assert note.title == "a fairly long bare note that…"

    def test_short_content_is_its_own_title(self):
        assert derive_title("eggs") == "eggs"
        assert derive_title("") == "Untitled"

    def test_empty_is_noop(self, storage):
        assert NoteStore(storage).add() is None

    def test_protect_requires_password(self, storage):
        assert NoteStore(storage).add("Secret", "x", protect=True) is None

    def test_unlock(self, storage):
        store = NoteStore(storage)
        note = store.add("Diary", "dear diary", protect=True, password="1234")
        assert store.unlock(note.id, "nope") is None
        assert store.unlock(note.id, "1234").content == "dear diary"
        plain = store.add("Open", "anyone")
        assert store.unlock(plain.id, "") is not None

    def test_reads_legacy_global_key_until_first_write(self, storage):
        storage.write(keys.NOTES, [{"id": "old", "title": "Legacy"}])
        store = NoteStore(storage, "alex")
        assert [n.title for n in store.list()] == ["Legacy"]
        store.add("New")
        assert [n.title for n in store.list()] == ["New", "Legacy"]
        assert storage.has(keys.identity_key("alex", "notes"))


class TestGoalStore:
    def test_validation(self, storage):
        store = GoalStore(storage)
        assert store.add("") is None
        assert store.add("Run", target_value=-1) is None
        assert store.add("Run", target_date="next week") is None

    def test_unknown_category_becomes_personal(self, storage):
        goal = GoalStore(storage).add("Run 5k", 5, "km", "Sport", "2026-06-01")
        assert goal.category == "Personal"
        assert goal.target_value == 5.0

    def test_legacy_key(self, storage):
        storage.write("goals_v1", [{"id": "g", "title": "Old goal"}])
        assert [g.title for g in GoalStore(storage).list()] == ["Old goal"]


class TestHabitStore:
    def test_toggle_marks_and_unmarks(self, storage, today_fn):
        store = HabitStore(storage, "guest", today_fn)
        habit = store.add("Meditate")
        assert store.toggle(habit.id).completions == ["2026-03-18"]
        assert store.toggle(habit.id).completions == []

    def test_unmark_removes_duplicates(self, storage, today_fn):
        storage.write(keys.identity_key("guest", "habits"), [
            {"id": "h", "title": "Read", "completions": ["2026-03-18", "2026-03-17", "2026-03-18"]},
        ])
        store = HabitStore(storage, "guest", today_fn)
        assert store.toggle("h").completions == ["2026-03-17"]

    def test_streak(self, storage, today_fn):
        store = HabitStore(storage, "guest", today_fn)
        habit = store.add("Walk")
        for day in ("2026-03-16", "2026-03-17", "2026-03-18", "2026-03-10"):
            habit = store.toggle(habit.id, day)
        assert store.streak(habit) == 3

    def test_streak_broken_today(self, storage, today_fn):
        store = HabitStore(storage, "guest", today_fn)
        habit = store.add("Walk")
        habit = store.toggle(habit.id, "2026-03-17")
        assert store.streak(habit) == 0


# ---------------------------------------------------------------------------
# Work log
# ---------------------------------------------------------------------------


class TestWorkLogStore:
    def test_session_earnings(self, storage, today_fn):
        s = WorkLogStore(storage, today_fn).add_session("2026-03-18", "09:00", "17:30", 20)
        assert s.hours == 8.5
        assert s.earnings == 170.0

    def test_overnight_session(self, storage, today_fn):
        s = WorkLogStore(storage, today_fn).add_session("2026-03-18", "22:00", "02:00", 10)
        assert s.hours == 4.0

    def test_zero_duration_is_noop(self, storage, today_fn):
        work = WorkLogStore(storage, today_fn)
        assert work.add_session("2026-03-18", "09:00", "09:00", 10) is None
        assert work.add_session("not-a-date", "09:00", "10:00", 10) is None
        assert work.sessions() == []

    def test_focus_session(self, storage, today_fn):
        s = WorkLogStore(storage, today_fn).add_focus_session(50)
        assert s.date == "2026-03-18"
        assert s.hours == 0.83
        assert s.earnings == 0.0
        assert s.source == "focus"
        assert s.notes == "Pomodoro focus (50m)"

    def test_expense_validation(self, storage, today_fn):
        work = WorkLogStore(storage, today_fn)
        assert work.add_expense("2026-03-18", "Lunch", amount=0) is None
        e = work.add_expense("2026-03-18", "", "Snacks", amount="12.50")
        assert e.name == "Expense"
        assert e.type == "Other"
        assert e.amount == 12.5

    def test_totals(self, storage, today_fn):
        work = WorkLogStore(storage, today_fn)
        work.add_session("2026-03-18", "09:00", "11:00", 25)
        work.add_expense("2026-03-18", "Taxi", "Transport", amount=20)
        assert work.totals() == {
            "total_hours": 2.0,
            "total_earnings": 50.0,
            "total_expenses": 20.0,
            "net": 30.0,
        }

    def test_remove(self, storage, today_fn):
        work = WorkLogStore(storage, today_fn)
        s = work.add_session("2026-03-18", "09:00", "10:00")
        e = work.add_expense("2026-03-18", "Tea", amount=2)
        assert work.remove_session(s.id) is True
        assert work.remove_expense(e.id) is True
        assert work.sessions() == [] and work.expenses() == []


class TestChatHistoryStore:
    def test_save_load_clear(self, storage):
        store = ChatHistoryStore(storage, "alex")
        store.save([ChatMessage(id="1", role="user", text="hi", ts="10:00")])
        assert store.load()[0].text == "hi"
        store.clear()
        assert store.load() == []
