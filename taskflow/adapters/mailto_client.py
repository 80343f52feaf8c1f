"""Mailto adapter — implements MailClient.

Opens a pre-filled draft in the platform's default mail handler.
"""

from __future__ import annotations

import logging
import webbrowser

from taskflow.core.email_export import compose_mailto

logger = logging.getLogger(__name__)


class MailtoClient:
    """Default-mail-handler implementation of MailClient."""

    def open_draft(self, to_email: str, subject: str, body: str) -> None:
        url = compose_mailto(to_email, subject, body)
        if not webbrowser.open(url):
            logger.warning("No mail handler accepted the draft for %s", to_email)
            return
        logger.info("Mail draft handed off for %s", to_email)
