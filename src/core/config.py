"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class StoreConfig:
    """Message store settings."""

    db_path: str
    key: str = "sms_messages"
    # None keeps every record; retention is opt-in.
    max_records: Optional[int] = None


@dataclass(frozen=True)
class NotificationConfig:
    """Notification surface settings consumed by the controller and adapters."""

    surface: str = "memory"
    channel_name: str = "SMS Reader Service"
    bot_chat_id: Optional[str] = None


@dataclass(frozen=True)
class DispatchConfig:
    """Time budget the host allows for one inbound batch."""

    window_seconds: float = 10.0


@dataclass(frozen=True)
class ServiceConfig:
    """Background listener process settings."""

    pid_path: str
    stop_timeout_seconds: float = 5.0
