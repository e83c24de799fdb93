"""Shared notification formatting helpers.

Keeping formatting here prevents drift between surfaces and keeps messages
consistent regardless of delivery channel.
"""

from __future__ import annotations

import html

from core.models import NotificationPayload

DIVIDER = "──────────────"


def format_notification(payload: NotificationPayload) -> str:
    """Create the HTML notification body used by the Bot API surface."""

    title = html.escape(payload.title)
    text = html.escape(payload.text)
    return "\n".join([f"<b>{title}</b>", DIVIDER, "", text])
