"""
TaskFlow Assistant — Email export.

Builds a plain-text report of the selected sections and hands it to the
platform mail client as a pre-filled draft. Fire-and-forget: nothing
confirms delivery.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING
from urllib.parse import quote

from taskflow.core import dates
from taskflow.data.models import Expense, Goal, Reminder, Todo, WorkSession

if TYPE_CHECKING:
    from taskflow.core.aggregator import CrossStoreAggregator
    from taskflow.ports.mail_port import MailClient

logger = logging.getLogger(__name__)

RECENT_EXPENSES = 5
UPCOMING_GOALS = 8
PENDING_TODOS = 10
TODAY_REMINDERS = 10


@dataclass
class ExportSections:
    work_hours: bool = True
    earnings: bool = True
    expenses: bool = False
    goals: bool = False
    todos: bool = False
    reminders: bool = False


@dataclass
class ExportData:
    work_sessions: list[WorkSession] = field(default_factory=list)
    expenses: list[Expense] = field(default_factory=list)
    goals: list[Goal] = field(default_factory=list)
    todos: list[Todo] = field(default_factory=list)
    reminders: list[Reminder] = field(default_factory=list)


def collect_export_data(aggregator: CrossStoreAggregator) -> ExportData:
    return ExportData(
        work_sessions=aggregator.work_sessions(),
        expenses=aggregator.expenses(),
        goals=aggregator.goals(),
        todos=aggregator.todos(),
        reminders=aggregator.reminders(),
    )


def currency(value: float) -> str:
    return f"${float(value or 0):,.2f}"


def _number(value: float) -> str:
    return f"{value:g}"


def build_email_report(
    user_name: str,
    sections: ExportSections,
    data: ExportData,
    now: datetime | None = None,
) -> str:
    now = now or datetime.now()
    lines = [
        "TaskFlow Export Report",
        f"User: {user_name or 'guest'}",
        f"Generated: {now:%Y-%m-%d %H:%M}",
        "----------------------------------------",
        "",
    ]

    if sections.work_hours or sections.earnings:
        lines.append("\u2705 Work Hours / Earnings")
        lines.append(f"Total sessions: {len(data.work_sessions)}")
        if sections.work_hours:
            lines.append(f"Total hours: {sum(s.hours for s in data.work_sessions):.1f}h")
        if sections.earnings:
            lines.append(f"Total earnings: {currency(sum(s.earnings for s in data.work_sessions))}")
        lines.append("")

    if sections.expenses:
        lines.append("\u2705 Expenses")
        lines.append(f"Total records: {len(data.expenses)}")
        lines.append(f"Total spent: {currency(sum(e.amount for e in data.expenses))}")
        recent = data.expenses[:RECENT_EXPENSES]
        if recent:
            lines.append("")
            lines.append("Recent expenses:")
            for i, e in enumerate(recent, 1):
                kind = f" ({e.type})" if e.type else ""
                lines.append(f"{i}. {e.name or 'Expense'}{kind} - {currency(e.amount)}")
        lines.append("")

    if sections.goals:
        lines.append("\u2705 Goals")
        lines.append(f"Total goals: {len(data.goals)}")
        upcoming = sorted((g for g in data.goals if g.target_date), key=lambda g: g.target_date)
        upcoming = upcoming[:UPCOMING_GOALS]
        if upcoming:
            lines.append("")
            lines.append("Upcoming goals:")
            for i, g in enumerate(upcoming, 1):
                parts = [g.title or "Goal"]
                if g.category:
                    parts.append(g.category)
                parts.append(f"Target: {_number(g.target_value)} {g.unit}".strip())
                parts.append(f"Due: {g.target_date}")
                lines.append(f"{i}. " + " • ".join(parts))
        lines.append("")

    if sections.todos:
        done = sum(1 for t in data.todos if t.done)
        lines.append("\u2705 Todos")
        lines.append(f"Total todos: {len(data.todos)}")
        lines.append(f"Completed: {done}")
        lines.append(f"Pending: {len(data.todos) - done}")
        pending = [t for t in data.todos if not t.done][:PENDING_TODOS]
        if pending:
            lines.append("")
            lines.append("Pending todos:")
            lines.extend(f"{i}. {t.text or 'Todo'}" for i, t in enumerate(pending, 1))
        lines.append("")

    if sections.reminders:
        handled = sum(1 for r in data.reminders if r.done)
        lines.append("\u2705 Reminders")
        lines.append(f"Total reminders: {len(data.reminders)}")
        lines.append(f"Handled: {handled}")
        lines.append(f"Pending: {len(data.reminders) - handled}")
        today = dates.to_iso(now)
        todays = [r for r in data.reminders if r.date == today][:TODAY_REMINDERS]
        if todays:
            lines.append("")
            lines.append(f"Today ({today}) reminders:")
            for i, r in enumerate(todays, 1):
                status = "\u2705" if r.done else "\u23f3"
                lines.append(f"{i}. {status} {r.text or 'Reminder'} ({r.type})")
        lines.append("")

    lines.append("- End of report -")
    return "\n".join(lines)


def compose_mailto(to_email: str, subject: str, body: str) -> str:
    return f"mailto:{quote(to_email, safe='@')}?subject={quote(subject, safe='')}&body={quote(body, safe='')}"


def export_subject(user_name: str, now: datetime | None = None) -> str:
    now = now or datetime.now()
    return f"TaskFlow Export - {user_name or 'guest'} - {now:%m/%d/%Y}"


def send_export(
    mail: MailClient,
    to_email: str,
    user_name: str,
    sections: ExportSections,
    data: ExportData,
    now: datetime | None = None,
) -> bool:
    """Compose the report and open a draft. False when no recipient was given."""
    recipient = (to_email or "").strip()
    if not recipient:
        return False
    now = now or datetime.now()
    body = build_email_report(user_name, sections, data, now)
    mail.open_draft(recipient, export_subject(user_name, now), body)
    logger.info("Export report handed to mail client for %s", recipient)
    return True
