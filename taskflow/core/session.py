"""
TaskFlow Assistant — Conversational session.

Holds one identity's ordered chat history and sequences each submission:
append the user line -> synthesize -> append exactly one bot line. History
is persisted after every append. Navigation replies hand the route to the
Navigator after a short delay on a timer thread; closing the session turns
a late timer into a no-op.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Callable

from taskflow.core import dates
from taskflow.core.events import EventBus, Topic
from taskflow.core.responder import NavigateResponse, welcome_message
from taskflow.data.models import ChatMessage, new_id
from taskflow.ports.storage_port import StorageError

if TYPE_CHECKING:
    from taskflow.core.responder import ResponseSynthesizer
    from taskflow.data.stores import ChatHistoryStore
    from taskflow.ports.navigation_port import Navigator

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "Sorry, something went wrong while handling that. Please try again."


class SessionState(Enum):
    IDLE = "idle"
    PROCESSING = "processing"


class ChatSession:
    """One identity's conversation with the assistant."""

    def __init__(
        self,
        synthesizer: ResponseSynthesizer,
        history: ChatHistoryStore,
        navigator: Navigator | None = None,
        bus: EventBus | None = None,
        display_name: str = "there",
        bot_name: str = "Chinni",
        navigation_delay_ms: int = 200,
        now_fn: Callable[[], datetime] | None = None,
    ) -> None:
        self._synth = synthesizer
        self._history = history
        self._navigator = navigator
        self._display_name = display_name
        self._bot_name = bot_name
        self._delay = max(navigation_delay_ms, 0) / 1000
        self._now_fn = now_fn or datetime.now
        self._pending: threading.Timer | None = None
        self._closed = False

        self.state = SessionState.IDLE
        self.default_date: str | None = None

        self.messages: list[ChatMessage] = history.load()
        if not self.messages:
            self.messages = [self._welcome()]
            self._persist()

        self._unsubscribe = bus.subscribe(Topic.CALENDAR_SELECTED, self.set_default_date) if bus else None

    # ------------------------------------------------------------------
    # Conversation
    # ------------------------------------------------------------------

    def _welcome(self) -> ChatMessage:
        return self._message("bot", welcome_message(self._display_name, self._bot_name))

    def _message(self, role: str, text: str) -> ChatMessage:
        return ChatMessage(id=new_id(), role=role, text=text, ts=self._now_fn().strftime("%H:%M"))

    def _persist(self) -> None:
        try:
            self._history.save(self.messages)
        except StorageError as exc:
            logger.warning("Chat history not saved: %s", exc)

    def _append(self, role: str, text: str) -> ChatMessage:
        message = self._message(role, text)
        self.messages.append(message)
        self._persist()
        return message

    def submit(self, text: str) -> ChatMessage:
        """Process one input line; returns the bot reply that was appended."""
        self.state = SessionState.PROCESSING
        try:
            line = (text or "").strip()
            self._append("user", line)
            try:
                response = self._synth.respond(line, self.default_date)
            except Exception:
                logger.exception("Failed to answer %r", line)
                return self._append("bot", FALLBACK_REPLY)

            reply = self._append("bot", response.message)
            if isinstance(response, NavigateResponse):
                self._schedule_navigation(response.target_page)
            return reply
        finally:
            self.state = SessionState.IDLE

    def set_default_date(self, iso: object) -> bool:
        """Date used for reminders typed without one (the last calendar selection)."""
        if not isinstance(iso, str) or not dates.is_iso(iso):
            return False
        self.default_date = iso
        logger.debug("Chat default date set to %s", iso)
        return True

    def clear(self) -> None:
        self.messages = [self._welcome()]
        self._persist()
        logger.info("Chat history cleared")

    # ------------------------------------------------------------------
    # Deferred navigation
    # ------------------------------------------------------------------

    @property
    def pending_navigation(self) -> threading.Timer | None:
        return self._pending

    def _schedule_navigation(self, route: str) -> None:
        if self._navigator is None:
            return
        if self._pending is not None:
            self._pending.cancel()
        timer = threading.Timer(self._delay, self._navigate, args=(route,))
        timer.daemon = True
        self._pending = timer
        timer.start()

    def _navigate(self, route: str) -> None:
        if self._closed:
            logger.warning("Navigation to %s dropped: session closed", route)
            return
        try:
            self._navigator.navigate(route)
        except Exception as exc:
            logger.warning("Navigation to %s failed: %s", route, exc)

    def close(self) -> None:
        self._closed = True
        if self._pending is not None:
            self._pending.cancel()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
