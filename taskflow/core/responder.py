"""
TaskFlow Assistant — UI-agnostic response synthesizer.

Stateless service layer for the chat assistant:
classify text -> create a record or aggregate data -> return a structured
response object whose `message` is the deterministic reply text.

The session (or any other front end) renders the message and performs the
deferred navigation for NavigateResponse.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from taskflow.core import dates
from taskflow.core.aggregator import completion
from taskflow.core.intent_parser import (
    CreateNote,
    CreateReminder,
    CreateTodo,
    Help,
    Navigate,
    ParseContext,
    Query,
    SocialChat,
    classify,
)
from taskflow.data.models import DEFAULT_TIME
from taskflow.ports.storage_port import StorageError

if TYPE_CHECKING:
    from taskflow.core.aggregator import CrossStoreAggregator
    from taskflow.core.writer import RecordWriter, WriteResult

logger = logging.getLogger(__name__)

TODAY_PLAN_TODOS = 5
TODAY_PLAN_REMINDERS = 5
GOAL_NUDGE_COUNT = 2
NOTES_PREVIEW_COUNT = 5
NOTE_PREVIEW_CHARS = 80
FOCUS_CANDIDATES = 6
LATEST_EXPENSES = 3

TIMEFRAME_LABELS = {"today": "Today", "week": "This week", "month": "This month", "total": "Total"}


# ---------------------------------------------------------------------------
# Response types
# ---------------------------------------------------------------------------


class ResponseKind(Enum):
    NAVIGATE = "navigate"
    CREATED = "created"
    QUERY_RESULT = "query_result"
    CHAT = "chat"
    HELP = "help"
    ERROR = "error"
    NO_ACTION = "no_action"


@dataclass
class ServiceResponse:
    kind: ResponseKind
    message: str


@dataclass
class NavigateResponse(ServiceResponse):
    target_page: str = ""


@dataclass
class CreatedResponse(ServiceResponse):
    record: object = None
    warnings: list[str] = field(default_factory=list)


@dataclass
class QueryResultResponse(ServiceResponse):
    query: str = ""
    start: str = ""
    end: str = ""


@dataclass
class ChatResponse(ServiceResponse):
    pass


@dataclass
class HelpResponse(ServiceResponse):
    pass


@dataclass
class ErrorResponse(ServiceResponse):
    pass


@dataclass
class NoActionResponse(ServiceResponse):
    pass


# ---------------------------------------------------------------------------
# Fixed texts
# ---------------------------------------------------------------------------


def money(value: float) -> str:
    return f"${float(value or 0):.2f}"


def build_help() -> str:
    return "\n".join([
        "You can ask me things like:",
        "• help",
        "• open home / calendar / notes / work hours / goals / habits / focus / analytics",
        "",
        "Smart assistant features:",
        "• what should I do today",
        "• summarize my notes",
        "• suggest a focus plan",
        "• how productive was I this week",
        "",
        "\u2705 Create with chat:",
        "• set reminder today 18:30 call mom",
        "• remind me tomorrow 5pm pay rent",
        "• add reminder 2026-01-20 09:15 meeting",
        "• (If you selected a date in Calendar, reminders without date will save to that selected date)",
        "",
        "• create note Shopping | eggs, milk, bread",
        "• add note Title: content here",
        "",
        "• add todo buy milk",
        "• create todo tomorrow submit assignment",
        "",
        "Focus (Pomodoro):",
        "• open focus",
        "• pomodoro",
        "• focus timer",
        "",
        "Work & Money:",
        "• my work hours / my workings",
        "• my earnings",
        "• my expenses / total expenses",
        "• my profit / net",
        "",
        "Add time filters:",
        "• today / this week / this month / total",
        'Example: "my expenses this month"',
        "",
        "Friendly chat:",
        "• hi / hello",
        "• who am i",
        "• what's my name",
        "• how are you",
    ])


def welcome_message(display_name: str, bot_name: str) -> str:
    return f"Hi {display_name}! I'm {bot_name}.\n\n{build_help()}"


def unrecognized_menu(name: str) -> str:
    return "\n".join([
        f"I can help with your TaskFlow data, {name}.",
        "",
        "Try one of these:",
        "• add todo buy milk",
        "• set reminder 18:30 call mom (uses selected Calendar date)",
        "• create note Shopping | eggs, milk, bread",
        "",
        "Or productivity:",
        "• what should i do today",
        "• summarize my notes",
        "• suggest a focus plan",
        "• how productive was i this week",
        "",
        "Work & money:",
        "• my work hours / my earnings / my expenses / my profit",
        "Add timeframe: today / this week / this month / total",
        "",
        'Type "help" to see everything.',
    ])


# ---------------------------------------------------------------------------
# Synthesizer
# ---------------------------------------------------------------------------


class ResponseSynthesizer:
    """Turns one line of user text into one ServiceResponse."""

    def __init__(
        self,
        aggregator: CrossStoreAggregator,
        writer: RecordWriter,
        display_name: str = "there",
        bot_name: str = "Chinni",
        default_time: str = DEFAULT_TIME,
    ) -> None:
        self._agg = aggregator
        self._writer = writer
        self.display_name = display_name or "there"
        self.bot_name = bot_name
        self.default_time = default_time

    def respond(self, text: str, default_date: str | None = None) -> ServiceResponse:
        context = ParseContext(
            today=self._agg.today(), default_date=default_date, default_time=self.default_time,
        )
        intent = classify(text, context)

        if isinstance(intent, Navigate):
            return NavigateResponse(
                kind=ResponseKind.NAVIGATE,
                message=f"Opening {intent.label}…",
                target_page=intent.target_page,
            )
        if isinstance(intent, CreateReminder):
            return self._create_reminder(intent)
        if isinstance(intent, CreateNote):
            return self._create_note(intent)
        if isinstance(intent, CreateTodo):
            return self._create_todo(intent)
        if isinstance(intent, Query):
            return self._answer_query(intent)
        if isinstance(intent, SocialChat):
            return ChatResponse(kind=ResponseKind.CHAT, message=self._social_reply(intent))
        if isinstance(intent, Help):
            return HelpResponse(kind=ResponseKind.HELP, message=build_help())
        return NoActionResponse(kind=ResponseKind.NO_ACTION, message=unrecognized_menu(self.display_name))

    # ------------------------------------------------------------------
    # Create commands
    # ------------------------------------------------------------------

    def _saved(self, result: WriteResult, lines: list[str]) -> CreatedResponse:
        if result.warnings:
            lines = [*lines, "", *(f"\u26a0\ufe0f {w}" for w in result.warnings)]
        return CreatedResponse(
            kind=ResponseKind.CREATED,
            message="\n".join(lines),
            record=result.record,
            warnings=result.warnings,
        )

    def _create_reminder(self, intent: CreateReminder) -> ServiceResponse:
        failure = "I couldn't create that reminder. Please include reminder text."
        try:
            result = self._writer.create_reminder(intent.text, intent.date, intent.time)
        except StorageError as exc:
            logger.error("Reminder write failed: %s", exc)
            return ErrorResponse(kind=ResponseKind.ERROR, message="I couldn't save that reminder. Please try again.")
        if not result.ok:
            return ErrorResponse(kind=ResponseKind.ERROR, message=failure)
        r = result.record
        return self._saved(result, [
            "\u2705 Reminder created",
            f"\U0001f4c5 {r.date}",
            f"\u23f0 {r.time}",
            f"\U0001f4dd {r.text}",
            "",
            "Tip: open calendar to view it.",
        ])

    def _create_note(self, intent: CreateNote) -> ServiceResponse:
        try:
            result = self._writer.create_note(intent.title, intent.content)
        except StorageError as exc:
            logger.error("Note write failed: %s", exc)
            return ErrorResponse(kind=ResponseKind.ERROR, message="I couldn't create the note. Please try again.")
        if not result.ok:
            return ErrorResponse(
                kind=ResponseKind.ERROR,
                message="I couldn't create that note. Please include note text.",
            )
        return self._saved(result, [
            "\u2705 Note created",
            f"\U0001f4dd {result.record.title}",
            "",
            "Tip: open notes to view it.",
        ])

    def _create_todo(self, intent: CreateTodo) -> ServiceResponse:
        try:
            result = self._writer.create_todo(intent.text, intent.date)
        except StorageError as exc:
            logger.error("Todo write failed: %s", exc)
            return ErrorResponse(kind=ResponseKind.ERROR, message="I couldn't save that todo. Please try again.")
        if not result.ok:
            return ErrorResponse(
                kind=ResponseKind.ERROR,
                message="I couldn't create that todo. Please include todo text.",
            )
        t = result.record
        return self._saved(result, [
            "\u2705 Todo added",
            f"\U0001f4c5 {t.date}",
            f"\U0001f4dd {t.text}",
            "",
            "Tip: open home to see it.",
        ])

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _answer_query(self, query: Query) -> QueryResultResponse:
        today = self._agg.today()
        start, end = dates.timeframe_range(query.timeframe, today, self._agg.week_start)
        if query.kind == "todayPlan":
            message = self._today_plan()
        elif query.kind == "notesSummary":
            message = self._notes_summary()
        elif query.kind == "focusPlan":
            message = self._focus_plan()
        elif query.kind == "weeklyProductivity":
            message = self._weekly_productivity(start, end)
        else:
            message = self._work_money(query.kind, query.timeframe)
        return QueryResultResponse(
            kind=ResponseKind.QUERY_RESULT, message=message, query=query.kind, start=start, end=end,
        )

    def _today_plan(self) -> str:
        name = self.display_name
        today = self._agg.today_iso()
        todos = self._agg.todos_for(today)
        reminders = self._agg.reminders_for(today)
        todo_stats = completion(todos, lambda t: t.done)
        open_todos = [t for t in todos if not t.done][:TODAY_PLAN_TODOS]
        open_reminders = [r for r in reminders if not r.done][:TODAY_PLAN_REMINDERS]

        lines = [f"\U0001f4cc {name}, here's your plan for today ({today}):", ""]
        lines.append(f"\u2705 Todos: {todo_stats.completed}/{todo_stats.total} done ({todo_stats.pct}%)")
        if open_todos:
            lines.append("Next todos:")
            lines.extend(f"{i}. {t.text}" for i, t in enumerate(open_todos, 1))
        else:
            lines.append("No pending todos for today. Add one from Home.")

        handled = sum(1 for r in reminders if r.done)
        lines.append("")
        lines.append(f"\u23f0 Reminders: {handled}/{len(reminders)} handled")
        if open_reminders:
            lines.append("Open reminders:")
            lines.extend(f"{i}. [{r.type}] {r.text}" for i, r in enumerate(open_reminders, 1))
        else:
            lines.append("No open reminders for today.")

        goals = [g.title for g in self._agg.goals()[:GOAL_NUDGE_COUNT] if g.title]
        if goals:
            lines.append("")
            lines.append("\U0001f3af Quick goal nudge:")
            lines.extend(f"{i}. {g}" for i, g in enumerate(goals, 1))
            lines.append("Try spending 25 minutes on one of these today.")
        return "\n".join(lines)

    def _notes_summary(self) -> str:
        notes = self._agg.notes()
        if not notes:
            return "\n".join([
                "\U0001f4dd Notes summary:",
                "You don't have any notes yet.",
                "Go to Notes → Create New Note.",
            ])
        latest = []
        for i, note in enumerate(notes[:NOTES_PREVIEW_COUNT], 1):
            body = " ".join(note.content.split())
            if len(body) > NOTE_PREVIEW_CHARS:
                body = body[:NOTE_PREVIEW_CHARS] + "…"
            # Locked notes never leak their content into a preview
            preview = "\U0001f512 protected" if note.protect else body
            latest.append(f"{i}. {note.title.strip() or 'Untitled'} — {preview}")
        return "\n".join([
            f"\U0001f4dd {self.display_name}, your notes summary: {len(notes)} total",
            "",
            "Latest notes:",
            *latest,
            "",
            'Tip: say "open notes" if you want to edit them.',
        ])

    def _focus_plan(self) -> str:
        today = self._agg.today_iso()
        pending = [t.text for t in self._agg.todos_for(today) if not t.done and t.text][:FOCUS_CANDIDATES]

        lines = [
            f"\U0001f3af {self.display_name}, here's a focus plan (fast + effective):",
            "",
            "Plan format: 25 min focus + 5 min break (Pomodoro).",
            "",
            'Tip: type "open focus" to start your timer.',
            "",
        ]
        if pending:
            lines.append("Pick 3 focus blocks:")
            lines.append(f"1) {pending[0]}")
            lines.append(f"2) {pending[1] if len(pending) > 1 else 'A small task (5-10 min) to build momentum'}")
            lines.append(f"3) {pending[2] if len(pending) > 2 else 'Review + clean up tasks/reminders'}")
        else:
            lines.extend([
                "You have no pending todos for today.",
                "Recommendation:",
                "1) Add 1-2 todos on Home",
                "2) Do one 25-min block immediately",
                "3) End with 10 mins planning tomorrow",
            ])
        lines.append("")
        lines.append("Power move: after 3 Pomodoros, take a 20-30 min break.")
        return "\n".join(lines)

    def _weekly_productivity(self, start: str, end: str) -> str:
        todos = self._agg.todos_between(start, end)
        reminders = self._agg.reminders_between(start, end)
        summary = self._agg.work_money("week")
        return "\n".join([
            f"\U0001f4ca {self.display_name}, your weekly productivity ({start} → {end})",
            "",
            f"\u2705 Todos: {sum(1 for t in todos if t.done)}/{len(todos)} completed",
            f"\u23f0 Reminders: {sum(1 for r in reminders if r.done)}/{len(reminders)} handled",
            "",
            f"\U0001f4bc Work Hours: {summary.total_hours:.1f}h",
            f"\U0001f4b0 Earnings: {money(summary.total_earnings)}",
            f"\U0001f9fe Expenses: {money(summary.total_spent)}",
            f"\U0001f4c8 Net: {money(summary.net)}",
            "",
            'Tip: Ask "my earnings this week" or "my expenses this month" anytime.',
        ])

    def _work_money(self, kind: str, timeframe: str) -> str:
        s = self._agg.work_money(timeframe)
        lines = [f"\U0001f4cc {TIMEFRAME_LABELS[timeframe]} ({s.start} → {s.end})", ""]

        if kind == "workHours":
            lines.append(f"\U0001f4bc Work sessions: {len(s.sessions)}")
            lines.append(f"\U0001f552 Total work hours: {s.total_hours:.1f}h")
            lines.append("")
            lines.append('Tip: say "open work hours" to view details.')
        elif kind == "earnings":
            lines.append(f"\U0001f4bc Work sessions: {len(s.sessions)}")
            lines.append(f"\U0001f4b0 Total earnings: {money(s.total_earnings)}")
            if s.total_hours > 0:
                lines.append(f"\U0001f4c8 Effective hourly: {money(s.total_earnings / max(s.total_hours, 0.01))}/hr")
        elif kind == "expenses":
            lines.append(f"\U0001f9fe Expense records: {len(s.expenses)}")
            lines.append(f"\U0001f4b8 Total expenses: {money(s.total_spent)}")
            if s.expenses:
                lines.append("")
                lines.append("Latest expenses:")
                lines.extend(
                    f"{i}. {e.name or 'Expense'} — {money(e.amount)}"
                    for i, e in enumerate(s.expenses[:LATEST_EXPENSES], 1)
                )
        else:
            lines.append(f"\U0001f4b0 Earnings: {money(s.total_earnings)}")
            lines.append(f"\U0001f4b8 Expenses: {money(s.total_spent)}")
            lines.append(f"\U0001f4c8 Net (profit): {money(s.net)}")
            lines.append("")
            if s.net < 0:
                lines.append("Insight: You spent more than you earned in this period.")
            else:
                lines.append("Insight: Positive net, keep it up.")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Social chat
    # ------------------------------------------------------------------

    def _social_reply(self, chat: SocialChat) -> str:
        name = self.display_name
        if chat.kind == "greeting":
            return (
                f"Hi {name}! \U0001f642\nHow can I help you today?\n\n"
                'Try: "set reminder 18:30 call mom" (it uses selected Calendar date)'
            )
        if chat.kind == "greetingTime":
            return f"{chat.phrase.title()}, {name}!\nWant a quick plan? Type: \"what should I do today\"."
        if chat.kind == "howAreYou":
            return (
                f"I'm doing great, {name}, ready to help.\n"
                'You can also say: "add todo buy milk" or "set reminder 5pm pay rent".'
            )
        if chat.kind == "whoAmI":
            return (
                f"You are logged in as: {name}\n"
                "If this looks wrong, logout and login again with the correct username."
            )
        if chat.kind == "thanks":
            return (
                f"You're welcome, {name}.\n"
                'Want to add something quickly? Try: "add todo ..." or "set reminder ...".'
            )
        if chat.kind == "whoAreYou":
            return (
                f"I'm {self.bot_name}, your TaskFlow assistant.\n"
                "I can navigate pages, summarize notes, and create reminders, notes, and todos from chat."
            )
        return "\n".join([
            f"Sure, {name} \U0001f642",
            "Tell me what you want right now:",
            "• plan my day",
            "• summarize my notes",
            "• add todo buy milk",
            "• set reminder 18:30 call mom",
            "• create note Title | content",
        ])
