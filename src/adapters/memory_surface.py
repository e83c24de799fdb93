"""In-process notification surface.

Keeps the currently displayed notification per slot and logs every change.
Used when no remote surface is configured and as the test double for the
controller.
"""

from __future__ import annotations

import logging
from typing import Optional

from core.models import NotificationPayload

LOGGER = logging.getLogger(__name__)


class MemoryNotificationSurface:
    """Notification surface that satisfies NotificationSurfacePort in memory."""

    def __init__(self) -> None:
        self.channels: dict[str, str] = {}
        self.visible: dict[int, NotificationPayload] = {}

    def ensure_channel(self, channel_id: str, name: str) -> None:
        self.channels.setdefault(channel_id, name)

    def post(self, slot: int, channel_id: str, payload: NotificationPayload) -> None:
        if channel_id not in self.channels:
            raise RuntimeError(f"Unknown notification channel: {channel_id}")
        self.visible[slot] = payload
        LOGGER.info("[notification %s] %s: %s", slot, payload.title, payload.text)

    def cancel(self, slot: int) -> None:
        if self.visible.pop(slot, None) is not None:
            LOGGER.info("[notification %s] dismissed", slot)

    def get(self, slot: int) -> Optional[NotificationPayload]:
        return self.visible.get(slot)
