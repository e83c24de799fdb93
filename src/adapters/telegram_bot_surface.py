"""Telegram Bot API notification surface.

Each notification slot maps to one bot message. The first post sends a new
message; later posts edit that message in place, and a cancel deletes it.
Slot-to-message ids are kept in the key-value store so the listener service
and one-shot ingest runs share the same identities.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from typing import Any, Callable, Optional

from adapters.notification_formatting import format_notification
from core.models import NotificationPayload
from core.ports import KeyValueSlotPort

LOGGER = logging.getLogger(__name__)

SLOTS_KEY = "notification_slots"


class BotApiError(RuntimeError):
    """The Bot API rejected a request."""

    def __init__(self, method: str, code: int, description: str) -> None:
        super().__init__(f"Bot API {method} error {code}: {description}")
        self.method = method
        self.code = code
        self.description = description


class TelegramBotSurface:
    """Notification surface that posts via the Telegram Bot API."""

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        slots: KeyValueSlotPort,
        urlopen: Callable[..., Any] = urllib.request.urlopen,
        timeout: float = 10.0,
    ) -> None:
        self._bot_token = bot_token
        self._chat_id = chat_id
        self._slots = slots
        self._urlopen = urlopen
        self._timeout = timeout

    def _endpoint(self, method: str) -> str:
        # The Bot API endpoint is deterministic and derived from the token.
        return f"https://api.telegram.org/bot{self._bot_token}/{method}"

    def _call(self, method: str, payload: dict) -> Any:
        data = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(self._endpoint(method), data=data, method="POST")
        request.add_header("Content-Type", "application/json")
        # Blocking call; the dispatch path is synchronous and bounded by timeout.
        try:
            with self._urlopen(request, timeout=self._timeout) as response:
                body = json.loads(response.read().decode("utf-8"))
        except urllib.error.HTTPError as e:
            raw = e.read().decode("utf-8", errors="replace")
            try:
                description = json.loads(raw).get("description", raw)
            except ValueError:
                description = raw
            raise BotApiError(method, e.code, description) from e
        if not body.get("ok", False):
            raise BotApiError(method, int(body.get("error_code", 0)), str(body.get("description", "")))
        return body.get("result")

    def _load_ids(self) -> dict[str, int]:
        raw = self._slots.get(SLOTS_KEY)
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except ValueError:
            LOGGER.warning("Discarding unreadable notification slot map")
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): int(v) for k, v in data.items() if isinstance(v, int)}

    def _save_ids(self, ids: dict[str, int]) -> None:
        self._slots.put(SLOTS_KEY, json.dumps(ids, sort_keys=True))

    def message_id(self, slot: int) -> Optional[int]:
        return self._load_ids().get(str(slot))

    def ensure_channel(self, channel_id: str, name: str) -> None:
        # Bot chats have no channel concept; only the target chat must exist.
        if not self._chat_id:
            raise RuntimeError(f"No bot chat configured for channel {channel_id} ({name})")

    def post(self, slot: int, channel_id: str, payload: NotificationPayload) -> None:
        text = format_notification(payload)
        ids = self._load_ids()
        existing = ids.get(str(slot))
        if existing is not None:
            try:
                self._call(
                    "editMessageText",
                    {
                        "chat_id": self._chat_id,
                        "message_id": existing,
                        "text": text,
                        "parse_mode": "HTML",
                        "disable_web_page_preview": True,
                    },
                )
                return
            except BotApiError as exc:
                if "message is not modified" in exc.description:
                    return
                LOGGER.info("Slot %s message %s not editable, sending a new one", slot, existing)

        result = self._call(
            "sendMessage",
            {
                "chat_id": self._chat_id,
                "text": text,
                "parse_mode": "HTML",
                "disable_web_page_preview": True,
            },
        )
        ids[str(slot)] = int(result["message_id"])
        self._save_ids(ids)

    def cancel(self, slot: int) -> None:
        ids = self._load_ids()
        existing = ids.pop(str(slot), None)
        if existing is None:
            return
        try:
            self._call("deleteMessage", {"chat_id": self._chat_id, "message_id": existing})
        finally:
            self._save_ids(ids)
