"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for persistence, notification, activation,
and process-host adapters so that the core can be reused with different
backends.
"""

from __future__ import annotations

from typing import Callable, Optional, Protocol

from core.models import NotificationPayload


class KeyValueSlotPort(Protocol):
    """A durable map of named string slots."""

    def get(self, key: str) -> Optional[str]:
        ...

    def put(self, key: str, value: str) -> None:
        ...

    def update(self, key: str, mutate: Callable[[Optional[str]], str]) -> str:
        """Read, mutate, and write one slot as a single exclusive operation."""
        ...


class NotificationSurfacePort(Protocol):
    """Display surface for fixed-identity notifications."""

    def ensure_channel(self, channel_id: str, name: str) -> None:
        ...

    def post(self, slot: int, channel_id: str, payload: NotificationPayload) -> None:
        ...

    def cancel(self, slot: int) -> None:
        ...


class AppActivatorPort(Protocol):
    """Brings the host application to the foreground."""

    def activate(self) -> None:
        ...


class ServiceHostPort(Protocol):
    """Host-managed background service process."""

    def launch(self) -> None:
        ...

    def terminate(self) -> None:
        ...

    def is_alive(self) -> bool:
        ...
