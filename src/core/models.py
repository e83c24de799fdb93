"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"


def format_timestamp(value: datetime) -> str:
    """Render a timestamp as ISO-8601 UTC with millisecond precision."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return f"{value.strftime(TIMESTAMP_FORMAT)}.{value.microsecond // 1000:03d}Z"


def parse_timestamp(raw: str) -> datetime:
    """Parse the stored ``receivedAt`` format back into an aware datetime."""

    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass(frozen=True)
class InboundMessage:
    """One message as delivered by the host, before classification."""

    sender: str
    body: str


@dataclass(frozen=True)
class MessageRecord:
    """Persisted representation of a single matched message."""

    sender: str
    body: str
    received_at: datetime

    def to_dict(self) -> dict[str, str]:
        return {
            "sender": self.sender,
            "body": self.body,
            "receivedAt": format_timestamp(self.received_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MessageRecord":
        """Build a record from its stored form.

        Older blobs used ``timeReceived`` for the timestamp; both keys are
        accepted. Raises KeyError/ValueError/TypeError on malformed entries.
        """

        raw_time = data.get("receivedAt", data.get("timeReceived"))
        if not isinstance(raw_time, str):
            raise ValueError("record has no receivedAt timestamp")
        sender = data["sender"]
        body = data["body"]
        if not isinstance(sender, str) or not isinstance(body, str):
            raise TypeError("sender and body must be strings")
        return cls(sender=sender, body=body, received_at=parse_timestamp(raw_time))


@dataclass(frozen=True)
class NotificationPayload:
    """Content of one notification slot."""

    title: str
    text: str
    tap_activates: bool = True
    auto_cancel: bool = False


@dataclass
class DispatchReport:
    """Counters for one dispatched batch."""

    received: int = 0
    matched: int = 0
    stored: int = 0
    store_failures: int = 0
    notified: int = 0
    activation_failures: int = 0
    window_exceeded: bool = False
    rules: list[str] = field(default_factory=list)

    def summary(self) -> dict[str, object]:
        return {
            "received": self.received,
            "matched": self.matched,
            "stored": self.stored,
            "store_failures": self.store_failures,
            "notified": self.notified,
            "activation_failures": self.activation_failures,
            "window_exceeded": self.window_exceeded,
            "rules": list(self.rules),
        }
