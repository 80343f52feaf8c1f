"""Navigation port — abstract interface for switching the visible page.

The chat session hands route changes to whatever shell hosts it.
"""

from __future__ import annotations

from typing import Protocol


class Navigator(Protocol):
    """Abstract page navigator used by the chat session."""

    def navigate(self, route: str) -> None: ...
