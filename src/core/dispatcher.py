"""Core inbound-batch dispatcher.

This module is integration-agnostic. It only relies on ports for storage,
notifications, and activation, enabling other hosts or adapters without
changes here.

For each message, in arrival order:
1) Template match (non-matching messages cause no side effects)
2) Append to the message store
3) Replace the alert notification
4) Request app activation (fire-and-forget)
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import time
from typing import Callable, Iterable, Optional

from core.config import DispatchConfig
from core.models import DispatchReport, InboundMessage, MessageRecord
from core.notifications import NotificationController
from core.ports import AppActivatorPort
from core.store import MessageStore
from core.templates import TemplateMatcher

LOGGER = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DispatchWindow:
    """Wall-clock budget for one batch, measured on a monotonic clock."""

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._seconds = seconds
        self._clock = clock
        self._started = clock()

    def elapsed(self) -> float:
        return self._clock() - self._started

    def exceeded(self) -> bool:
        return self.elapsed() > self._seconds


class EventDispatcher:
    """Entry point the host calls once per inbound batch."""

    def __init__(
        self,
        matcher: TemplateMatcher,
        store: MessageStore,
        notifications: NotificationController,
        activator: Optional[AppActivatorPort] = None,
        config: Optional[DispatchConfig] = None,
        now: Callable[[], datetime] = _utcnow,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._matcher = matcher
        self._store = store
        self._notifications = notifications
        self._activator = activator
        self._config = config or DispatchConfig()
        self._now = now
        self._clock = clock

    def dispatch(self, batch: Iterable[InboundMessage]) -> DispatchReport:
        """Process one batch; a failing message never stops the rest."""

        window = DispatchWindow(self._config.window_seconds, clock=self._clock)
        report = DispatchReport()
        for message in batch:
            report.received += 1
            try:
                self._handle(message, report)
            except Exception:
                LOGGER.exception("Error while dispatching message from %s", message.sender)

        if window.exceeded():
            report.window_exceeded = True
            LOGGER.warning(
                "Dispatch of %s messages took %.3fs, over the %.1fs window",
                report.received,
                window.elapsed(),
                self._config.window_seconds,
            )
        return report

    def _handle(self, message: InboundMessage, report: DispatchReport) -> None:
        match = self._matcher.match(message.body)
        if match is None:
            LOGGER.debug("Message from %s does not match any template", message.sender)
            return

        report.matched += 1
        report.rules.append(match.rule_name)
        LOGGER.info("Message from %s matches %s", message.sender, match.rule_name)

        # Each side effect is isolated so a failed write still notifies.
        record = MessageRecord(sender=message.sender, body=message.body, received_at=self._now())
        try:
            self._store.append(record)
            report.stored += 1
        except Exception:
            report.store_failures += 1
            LOGGER.exception("Failed to store message from %s", message.sender)

        if self._notifications.show_alert(message.sender, message.body):
            report.notified += 1

        if not self._activate():
            report.activation_failures += 1

    def _activate(self) -> bool:
        if self._activator is None:
            return True
        try:
            self._activator.activate()
        except Exception:
            LOGGER.debug("App activation request failed", exc_info=True)
            return False
        return True
