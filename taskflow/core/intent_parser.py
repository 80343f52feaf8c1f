"""
TaskFlow Assistant — Text intent parser.

Rule-based classifier for the chat assistant: turns one free-text line into
exactly one intent (navigation, create command, analytical query, social
chat, help, or unrecognized) plus its extracted parameters.

Precedence is data: RULES is evaluated top to bottom and the first matching
rule wins. Classification works on normalized (lower-cased, whitespace-
collapsed) text, while payload extraction strips tokens from the raw input
so the user's casing and punctuation survive.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Literal

from pydantic import BaseModel

from taskflow.core import dates
from taskflow.data.models import DEFAULT_TIME
from taskflow.data.stores import derive_title

logger = logging.getLogger(__name__)

QueryKind = Literal[
    "todayPlan", "notesSummary", "focusPlan", "weeklyProductivity",
    "workHours", "earnings", "expenses", "net",
]
Timeframe = Literal["today", "week", "month", "total"]
SocialKind = Literal[
    "greeting", "greetingTime", "howAreYou", "whoAmI", "thanks", "whoAreYou", "smallTalkInvite",
]


# ---------------------------------------------------------------------------
# Intent models
# ---------------------------------------------------------------------------

class Navigate(BaseModel):
    """Open a page, e.g. {"intent": "navigate", "target_page": "/focus", "label": "focus"}."""
    intent: str = "navigate"
    target_page: str
    label: str


class CreateReminder(BaseModel):
    intent: str = "create_reminder"
    date: str    # ISO format YYYY-MM-DD
    time: str    # HH:MM in 24h format
    text: str    # empty when nothing was left after stripping


class CreateNote(BaseModel):
    intent: str = "create_note"
    title: str
    content: str


class CreateTodo(BaseModel):
    intent: str = "create_todo"
    date: str
    text: str


class Query(BaseModel):
    intent: str = "query"
    kind: QueryKind
    timeframe: Timeframe = "today"


class SocialChat(BaseModel):
    intent: str = "social"
    kind: SocialKind
    phrase: str = ""   # matched salutation for greetingTime


class Help(BaseModel):
    intent: str = "help"


class Unrecognized(BaseModel):
    intent: str = "unrecognized"


Intent = Navigate | CreateReminder | CreateNote | CreateTodo | Query | SocialChat | Help | Unrecognized


@dataclass
class ParseContext:
    """What a message is interpreted against: the current day and the
    contextual default date (last calendar selection) for reminders."""
    today: date = field(default_factory=date.today)
    default_date: str | None = None
    default_time: str = DEFAULT_TIME

    @property
    def today_iso(self) -> str:
        return dates.to_iso(self.today)


# ---------------------------------------------------------------------------
# Extraction helpers
# ---------------------------------------------------------------------------

# "10:30pm" is a 12h form, so the 24h pattern refuses a trailing am/pm
_TIME_24_RE = re.compile(r"\b([01]?\d|2[0-3]):([0-5]\d)\b(?!\s*[ap]m\b)", re.IGNORECASE)
_TIME_12_RE = re.compile(r"\b(1[0-2]|0?\d)(?::([0-5]\d))?\s*(am|pm)\b", re.IGNORECASE)
_ISO_DATE_RE = re.compile(r"\b(20\d{2})-(0[1-9]|1[0-2])-(0[1-9]|[12]\d|3[01])\b")

_QUOTES = str.maketrans({"‘": "'", "’": "'", "“": '"', "”": '"'})


def normalize_text(text: str) -> str:
    return " ".join(str(text or "").translate(_QUOTES).lower().split())


def _has(t: str, word: str) -> bool:
    return re.search(rf"(?<!\w){re.escape(word)}(?!\w)", t) is not None


def parse_time(raw: str) -> str | None:
    """First time in the text as HH:MM. 24h forms win over 12h am/pm forms."""
    text = str(raw or "")
    m = _TIME_24_RE.search(text)
    if m:
        return f"{int(m.group(1)):02d}:{m.group(2)}"
    m = _TIME_12_RE.search(text)
    if m:
        hour = int(m.group(1))
        minute = int(m.group(2) or 0)
        meridiem = m.group(3).lower()
        if meridiem == "pm" and hour != 12:
            hour += 12
        if meridiem == "am" and hour == 12:
            hour = 0
        return f"{hour:02d}:{minute:02d}"
    return None


def extract_time_token(raw: str) -> str | None:
    """The literal time token as typed, used for stripping."""
    text = str(raw or "")
    m = _TIME_24_RE.search(text) or _TIME_12_RE.search(text)
    return m.group(0) if m else None


def extract_date_token(raw: str) -> str | None:
    """An explicit, real YYYY-MM-DD literal in the text."""
    m = _ISO_DATE_RE.search(str(raw or ""))
    if m and dates.is_iso(m.group(0)):
        return m.group(0)
    return None


def _date_literals(raw: str) -> list[str]:
    """Every YYYY-MM-DD shaped literal, including ones naming no real day."""
    return [m.group(0) for m in _ISO_DATE_RE.finditer(str(raw or ""))]


def extract_date(raw: str, today: date) -> str | None:
    """ISO literal, then "tomorrow", then "today"; None when none is present."""
    literal = extract_date_token(raw)
    if literal:
        return literal
    t = normalize_text(raw)
    if _has(t, "tomorrow"):
        return dates.add_days(dates.to_iso(today), 1)
    if _has(t, "today"):
        return dates.to_iso(today)
    return None


def detect_timeframe(t: str) -> Timeframe:
    if any(w in t for w in ("all time", "overall", "total", "lifetime")):
        return "total"
    if "month" in t:
        return "month"
    if "week" in t:
        return "week"
    return "today"


def strip_tokens(raw: str, tokens: list[str | None]) -> str:
    """Remove each token (whole words, any case) and collapse whitespace."""
    out = str(raw or "")
    for token in tokens:
        if not token:
            continue
        out = re.sub(rf"(?<!\w){re.escape(token)}(?!\w)", " ", out, flags=re.IGNORECASE)
    return " ".join(out.split())


_NOTE_PREFIX_RE = re.compile(r"^\s*(?:create|add)\s+note\b\s*", re.IGNORECASE)


def parse_note(raw: str) -> tuple[str, str]:
    """(title, content) from `title | content`, `title: content` or bare content.

    Bare content gets an auto title. Empty input gives ("", "").
    """
    body = _NOTE_PREFIX_RE.sub("", str(raw or ""), count=1).strip()
    if not body:
        return "", ""
    if "|" in body:
        title, _, content = body.partition("|")
        return title.strip() or "Untitled", content.strip()
    idx = body.find(":")
    if idx > 0:
        return body[:idx].strip() or "Untitled", body[idx + 1:].strip()
    return derive_title(body), body


# (route, label, pattern), first match wins
ROUTES: tuple[tuple[str, str, re.Pattern], ...] = (
    ("/dashboard", "home", re.compile(r"(^| )home( |$)|open home")),
    ("/calendar", "calendar", re.compile(r"(^| )calendar( |$)")),
    ("/notes", "notes", re.compile(r"(^| )notes( |$)")),
    ("/work-hours", "work-hours", re.compile(r"work hours|open work")),
    ("/goals", "goals", re.compile(r"(^| )goals( |$)")),
    ("/habits", "habits", re.compile(r"habits|habit tracker")),
    ("/focus", "focus", re.compile(r"(^| )focus( |$)|pomodoro|focus timer|start focus")),
    ("/analytics", "analytics", re.compile(r"analytics")),
)

PAGE_WORDS = frozenset({
    "home", "dashboard", "calendar", "notes", "work hours", "goals", "habits",
    "habit tracker", "focus", "pomodoro", "focus timer", "start focus", "analytics",
})

_OPEN_RE = re.compile(r"^(?:open|go to|take me to|show me the)\s+(.+)$")


def match_route(text: str) -> tuple[str, str] | None:
    t = normalize_text(text)
    if t == "dashboard":
        return "/dashboard", "home"
    for route, label, pattern in ROUTES:
        if pattern.search(t):
            return route, label
    return None


# ---------------------------------------------------------------------------
# Matchers (operate on normalized text)
# ---------------------------------------------------------------------------

def is_help(t: str) -> bool:
    return t in ("", "help", "menu")


def is_create_reminder(t: str) -> bool:
    return (
        any(p in t for p in ("set reminder", "add reminder", "create reminder"))
        or t.startswith("remind me")
        or ("reminder" in t and _has(t, "at"))
    )


def is_create_note(t: str) -> bool:
    return t.startswith("create note") or t.startswith("add note")


_TODO_PREFIX_RE = re.compile(r"^\s*(?:add|create)\s+(?:todo|task)\b\s*", re.IGNORECASE)


def is_create_todo(t: str) -> bool:
    return _TODO_PREFIX_RE.match(t) is not None


def is_explicit_navigation(t: str) -> bool:
    if t in PAGE_WORDS:
        return True
    m = _OPEN_RE.match(t)
    return bool(m and match_route(m.group(1)))


def is_greeting(t: str) -> bool:
    return t in ("hi", "hello", "hey") or t.startswith(("hi ", "hello ", "hey "))


_GREETING_TIMES = ("good morning", "good afternoon", "good evening", "good night")


def is_greeting_time(t: str) -> bool:
    return any(p in t for p in _GREETING_TIMES)


def is_how_are_you(t: str) -> bool:
    return any(p in t for p in ("how are you", "how r you", "how are u"))


def is_who_am_i(t: str) -> bool:
    return any(p in t for p in ("who am i", "who i am", "what is my name", "my name"))


def is_thanks(t: str) -> bool:
    return "thank" in t or t in ("thx", "ty")


def is_who_are_you(t: str) -> bool:
    return any(p in t for p in ("who are you", "what are you", "your name"))


def is_small_talk_invite(t: str) -> bool:
    return any(p in t for p in (
        "talk to me", "interact with me", "chat with me", "be my friend", "keep me company",
    ))


def looks_like_today_plan(t: str) -> bool:
    return (
        any(p in t for p in ("what should i do today", "plan my day", "today plan"))
        or ("what" in t and "do" in t and "today" in t)
    )


def looks_like_notes_summary(t: str) -> bool:
    return (
        any(p in t for p in ("summarize my notes", "summary of my notes", "notes summary"))
        or ("summarize" in t and "notes" in t)
    )


def looks_like_focus_plan(t: str) -> bool:
    return (
        any(p in t for p in ("suggest a focus plan", "focus plan", "pomodoro"))
        or ("suggest" in t and "focus" in t)
    )


def looks_like_weekly_productivity(t: str) -> bool:
    return (
        any(p in t for p in ("how productive was i this week", "this week productivity", "weekly report"))
        or ("productive" in t and "week" in t)
    )


def wants_net(t: str) -> bool:
    return _has(t, "net") or "profit" in t or "balance" in t


def wants_expenses(t: str) -> bool:
    return any(p in t for p in ("expense", "spent", "spend"))


def wants_earnings(t: str) -> bool:
    return any(p in t for p in ("earning", "income", "salary"))


def wants_work_hours(t: str) -> bool:
    return (
        any(p in t for p in ("my work", "workings", "work hours"))
        or ("hours" in t and "work" in t)
    )


# ---------------------------------------------------------------------------
# Builders: (raw, normalized, context) -> Intent
# ---------------------------------------------------------------------------

REMINDER_COMMAND_WORDS = (
    "set reminder", "add reminder", "create reminder", "remind me", "reminder",
    "at", "today", "tomorrow",
)


def build_reminder(raw: str, t: str, ctx: ParseContext) -> CreateReminder:
    day = extract_date(raw, ctx.today) or ctx.default_date or ctx.today_iso
    time = parse_time(raw) or ctx.default_time
    text = strip_tokens(raw, [*_date_literals(raw), extract_time_token(raw), *REMINDER_COMMAND_WORDS])
    return CreateReminder(date=day, time=time, text=text)


def build_note(raw: str, t: str, ctx: ParseContext) -> CreateNote:
    title, content = parse_note(raw)
    return CreateNote(title=title, content=content)


def build_todo(raw: str, t: str, ctx: ParseContext) -> CreateTodo:
    day = extract_date(raw, ctx.today) or ctx.today_iso
    body = _TODO_PREFIX_RE.sub("", raw.strip(), count=1)
    text = strip_tokens(body, [*_date_literals(raw), "today", "tomorrow"])
    return CreateTodo(date=day, text=text)


def build_navigation(raw: str, t: str, ctx: ParseContext) -> Navigate:
    m = _OPEN_RE.match(t)
    route, label = match_route(m.group(1) if m and match_route(m.group(1)) else t)
    return Navigate(target_page=route, label=label)


def _social(kind: SocialKind) -> Callable[[str, str, ParseContext], SocialChat]:
    def build(raw: str, t: str, ctx: ParseContext) -> SocialChat:
        phrase = next((p for p in _GREETING_TIMES if p in t), "") if kind == "greetingTime" else ""
        return SocialChat(kind=kind, phrase=phrase)
    return build


def _query(kind: QueryKind, timeframe: Timeframe | None = None) -> Callable[[str, str, ParseContext], Query]:
    def build(raw: str, t: str, ctx: ParseContext) -> Query:
        return Query(kind=kind, timeframe=timeframe or detect_timeframe(t))
    return build


@dataclass(frozen=True)
class Rule:
    name: str
    matches: Callable[[str], bool]
    build: Callable[[str, str, ParseContext], Intent]


RULES: list[Rule] = [
    Rule("help", is_help, lambda raw, t, ctx: Help()),
    # Create commands run before anything that keys on "today" or a page word
    Rule("create_reminder", is_create_reminder, build_reminder),
    Rule("create_note", is_create_note, build_note),
    Rule("create_todo", is_create_todo, build_todo),
    Rule("open_page", is_explicit_navigation, build_navigation),
    # Social chat before queries so "hi" or "thanks" never reads as anything else
    Rule("greeting", is_greeting, _social("greeting")),
    Rule("greeting_time", is_greeting_time, _social("greetingTime")),
    Rule("how_are_you", is_how_are_you, _social("howAreYou")),
    Rule("who_am_i", is_who_am_i, _social("whoAmI")),
    Rule("thanks", is_thanks, _social("thanks")),
    Rule("who_are_you", is_who_are_you, _social("whoAreYou")),
    Rule("small_talk", is_small_talk_invite, _social("smallTalkInvite")),
    Rule("today_plan", looks_like_today_plan, _query("todayPlan", "today")),
    Rule("notes_summary", looks_like_notes_summary, _query("notesSummary", "total")),
    Rule("focus_plan", looks_like_focus_plan, _query("focusPlan", "today")),
    Rule("weekly_productivity", looks_like_weekly_productivity, _query("weeklyProductivity", "week")),
    # "my profit" must not fall through to earnings
    Rule("net", wants_net, _query("net")),
    Rule("expenses", wants_expenses, _query("expenses")),
    Rule("earnings", wants_earnings, _query("earnings")),
    Rule("work_hours", wants_work_hours, _query("workHours")),
    Rule("keyword_page", lambda t: match_route(t) is not None, build_navigation),
    Rule("unrecognized", lambda t: True, lambda raw, t, ctx: Unrecognized()),
]


def classify(raw_text: str, context: ParseContext | None = None) -> Intent:
    """Classify one line of user input. Always returns an intent."""
    ctx = context or ParseContext()
    raw = str(raw_text or "")
    t = normalize_text(raw)
    for rule in RULES:
        if rule.matches(t):
            intent = rule.build(raw, t, ctx)
            logger.debug("Classified %r via rule %s → %s", t, rule.name, intent.intent)
            return intent
    return Unrecognized()
