"""Notification state for the listener service (core domain).

Two fixed-identity slots exist: a persistent "listener active" indicator and
a single "latest match" alert that every new match replaces. Surface
failures never leave this module; they are logged and the caller proceeds.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Optional

from core.config import NotificationConfig
from core.models import NotificationPayload
from core.ports import AppActivatorPort, NotificationSurfacePort

LOGGER = logging.getLogger(__name__)

CHANNEL_ID = "sms_reader_channel"
LISTENER_SLOT = 100
ALERT_SLOT = 101

LISTENER_TITLE = "SMS Reader"
LISTENER_TEXT = "Reading SMS messages in background"


def alert_title(sender: str) -> str:
    return f"New message from {sender}"


@dataclass
class NotificationSlots:
    """What each slot currently displays (None when absent)."""

    listener: Optional[NotificationPayload] = None
    alert: Optional[NotificationPayload] = None


class NotificationController:
    """Owns the two notification slots and pushes them to a surface."""

    def __init__(
        self,
        surface: NotificationSurfacePort,
        config: Optional[NotificationConfig] = None,
        activator: Optional[AppActivatorPort] = None,
    ) -> None:
        self._surface = surface
        self._config = config or NotificationConfig()
        self._activator = activator
        self._channel_ready = False
        self.slots = NotificationSlots()

    def _ensure_channel(self) -> bool:
        # Creating an existing channel is a no-op on every surface, so a
        # failed attempt is simply retried on the next post.
        if self._channel_ready:
            return True
        try:
            self._surface.ensure_channel(CHANNEL_ID, self._config.channel_name)
        except Exception:
            LOGGER.exception("Notification channel setup failed")
            return False
        self._channel_ready = True
        return True

    def _post(self, slot: int, payload: NotificationPayload) -> bool:
        if not self._ensure_channel():
            return False
        try:
            self._surface.post(slot, CHANNEL_ID, payload)
        except Exception:
            LOGGER.exception("Notification surface unavailable for slot %s", slot)
            return False
        return True

    def _cancel(self, slot: int) -> bool:
        try:
            self._surface.cancel(slot)
        except Exception:
            LOGGER.exception("Failed to dismiss notification slot %s", slot)
            return False
        return True

    def show_listener_active(self) -> bool:
        """Show (or refresh) the persistent listener indicator."""

        payload = NotificationPayload(
            title=LISTENER_TITLE,
            text=LISTENER_TEXT,
            tap_activates=True,
            auto_cancel=False,
        )
        posted = self._post(LISTENER_SLOT, payload)
        if posted:
            self.slots.listener = payload
        return posted

    def clear_listener_active(self) -> bool:
        if self.slots.listener is None:
            return True
        cleared = self._cancel(LISTENER_SLOT)
        if cleared:
            self.slots.listener = None
        return cleared

    def show_alert(self, sender: str, body: str) -> bool:
        """Replace the alert slot with the latest match."""

        payload = NotificationPayload(
            title=alert_title(sender),
            text=body,
            tap_activates=True,
            auto_cancel=True,
        )
        posted = self._post(ALERT_SLOT, payload)
        if posted:
            self.slots.alert = payload
        return posted

    def on_tap(self, slot: int) -> None:
        """Handle a user tap: activate the app, dismiss auto-cancel slots."""

        payload = self.slots.alert if slot == ALERT_SLOT else self.slots.listener
        if payload is None:
            return
        if payload.tap_activates and self._activator is not None:
            try:
                self._activator.activate()
            except Exception:
                LOGGER.debug("App activation from notification tap failed", exc_info=True)
        if payload.auto_cancel and self._cancel(slot) and slot == ALERT_SLOT:
            self.slots.alert = None
