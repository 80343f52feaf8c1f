"""Storage key names for every bucket, plus the key → topic mapping.

Global keys keep their historical strings so data written by earlier
versions is still found. Identity-partitioned keys follow
`taskflow:<identity>:<bucket>`.
"""

from __future__ import annotations

from taskflow.core.events import Topic

APP_KEY = "taskflow"

# Todos
TASKS = "taskflow_tasks_v1"                  # dated todo list (chat + Home page)
HOME_TODOS = "taskflow_todos_today"          # per-day map (Dashboard "today" lists)

# Reminders
REMINDERS = "taskflow_reminders_v1"          # flat list (reminders page)
CALENDAR_REMINDERS = "taskflow_calendar_reminders_v1"   # per-day map
HOME_REMINDERS = "taskflow_reminders_today"  # per-day map

# Work & money
WORK_SESSIONS = "taskflow_work_sessions_v1"
EXPENSES = "taskflow_expenses_v1"

# Other entities
NOTES = "taskflow_notes_v1"
GOALS = "taskflow_goals_v1"
HABITS = "taskflow_habits_v1"

# Accounts
USERS = "taskflow_users_v1"
SESSION = "taskflow_session_v1"
LAST_CRED = "taskflow_last_cred_v1"

CHAT_HISTORY = "taskflow_chat_history_v1"


def identity_key(identity: str, bucket: str) -> str:
    return f"{APP_KEY}:{identity or 'guest'}:{bucket}"


def chat_key(identity: str) -> str:
    return f"{CHAT_HISTORY}_{identity or 'guest'}"


_TOPIC_MARKERS: tuple[tuple[str, Topic], ...] = (
    ("reminder", Topic.REMINDERS),
    ("todo", Topic.TODOS),
    ("task", Topic.TODOS),
    ("note", Topic.NOTES),
    ("goal", Topic.GOALS),
    ("habit", Topic.HABITS),
    ("session", Topic.WORK),
    ("expense", Topic.WORK),
    ("user", Topic.USERS),
    ("cred", Topic.USERS),
)


def topic_for_key(key: str) -> Topic:
    """Which entity channel a write to `key` should notify."""
    if key == SESSION:
        return Topic.USERS
    if key.startswith(CHAT_HISTORY):
        return Topic.CHAT
    # Match on the bucket name only; the app prefix itself contains "task"
    name = key.rsplit(":", 1)[-1]
    if name.startswith(APP_KEY):
        name = name[len(APP_KEY):]
    for marker, topic in _TOPIC_MARKERS:
        if marker in name:
            return topic
    return Topic.STORAGE
