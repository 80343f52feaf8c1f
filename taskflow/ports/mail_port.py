"""Mail port — abstract interface for handing a composed email to the platform.

Write-only: there is no delivery confirmation.
"""

from __future__ import annotations

from typing import Protocol


class MailClient(Protocol):
    """Abstract outbound mail hand-off used by the email export."""

    def open_draft(self, to_email: str, subject: str, body: str) -> None: ...
