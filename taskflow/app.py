"""
TaskFlow Assistant — Composition root.

Wires the key-value store, per-entity stores, aggregator, writer,
synthesizer and chat session together for the signed-in identity.
Signing in or out rebuilds the identity-scoped pieces so the visible
dataset switches without touching any other identity's data.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Callable

from taskflow.adapters.mailto_client import MailtoClient
from taskflow.adapters.sqlite_store import SQLiteKeyValueStore
from taskflow.config import Settings, settings
from taskflow.core.aggregator import CrossStoreAggregator
from taskflow.core.email_export import ExportSections, collect_export_data, send_export
from taskflow.core.events import EventBus
from taskflow.core.responder import ResponseSynthesizer
from taskflow.core.session import ChatSession
from taskflow.core.writer import RecordWriter
from taskflow.data.models import Identity
from taskflow.data.storage import StorageAccessor
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
)
from taskflow.data.users import AuthResult, UserDirectory

if TYPE_CHECKING:
    from taskflow.ports.mail_port import MailClient
    from taskflow.ports.navigation_port import Navigator
    from taskflow.ports.storage_port import KeyValueStore

logger = logging.getLogger(__name__)


class TaskFlowApp:
    """Everything one running assistant needs, scoped to the current identity."""

    def __init__(
        self,
        kv: KeyValueStore | None = None,
        navigator: Navigator | None = None,
        mail: MailClient | None = None,
        today_fn: Callable[[], date] | None = None,
        config: Settings | None = None,
    ) -> None:
        self.config = config or settings
        self._navigator = navigator
        self._mail = mail or MailtoClient()
        self._today_fn = today_fn or date.today

        self.bus = EventBus()
        self.storage = StorageAccessor(kv or SQLiteKeyValueStore(self.config.DATABASE_PATH), self.bus)
        self.users = UserDirectory(self.storage)

        # Global buckets, shared by every identity
        self.tasks = TaskStore(self.storage)
        self.home_todos = HomeTodoStore(self.storage, self._today_fn)
        self.reminders = ReminderStore(self.storage)
        self.calendar_reminders = CalendarReminderStore(self.storage, self._today_fn)
        self.home_reminders = HomeReminderStore(self.storage, self._today_fn)
        self.work = WorkLogStore(self.storage, self._today_fn)

        self.session: ChatSession | None = None
        self.switch_identity(self.users.identity())

    def switch_identity(self, identity: Identity) -> None:
        """Rebuild identity-partitioned stores and the chat session."""
        if self.session is not None:
            self.session.close()

        self.identity = identity
        self.todos = TodoStore(self.storage, identity.key)
        self.notes = NoteStore(self.storage, identity.key)
        self.goals = GoalStore(self.storage, identity.key)
        self.habits = HabitStore(self.storage, identity.key, self._today_fn)
        self.aggregator = CrossStoreAggregator(
            self.storage,
            identity.key,
            self._today_fn,
            week_start=self.config.WEEK_START,
            window_days=self.config.TREND_WINDOW_DAYS,
        )
        writer = RecordWriter(
            self.tasks,
            self.home_todos,
            self.calendar_reminders,
            self.home_reminders,
            self.notes,
            self._today_fn,
        )
        self.synthesizer = ResponseSynthesizer(
            self.aggregator,
            writer,
            identity.display_name,
            self.config.BOT_NAME,
            default_time=self.config.DEFAULT_REMINDER_TIME,
        )
        self.session = ChatSession(
            self.synthesizer,
            ChatHistoryStore(self.storage, identity.key),
            navigator=self._navigator,
            bus=self.bus,
            display_name=identity.display_name,
            bot_name=self.config.BOT_NAME,
            navigation_delay_ms=self.config.NAVIGATION_DELAY_MS,
        )
        logger.info("Active identity: %s", identity.key)

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def register(self, username: str, password: str, full_name: str = "") -> AuthResult:
        result = self.users.register(username, password, full_name)
        if result.ok:
            self.switch_identity(self.users.identity())
        return result

    def login(self, username: str, password: str) -> AuthResult:
        result = self.users.login(username, password)
        if result.ok:
            self.switch_identity(self.users.identity())
        return result

    def logout(self) -> None:
        self.users.logout()
        self.switch_identity(self.users.identity())

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_report(self, to_email: str, sections: ExportSections | None = None) -> bool:
        return send_export(
            self._mail,
            to_email,
            self.identity.display_name if self.identity.key != "guest" else "guest",
            sections or ExportSections(),
            collect_export_data(self.aggregator),
        )

    def close(self) -> None:
        if self.session is not None:
            self.session.close()
