"""Start/stop/status controls for the background listener service.

Running state belongs to the host; the controller never caches it and asks
the host on every call, so a service killed behind our back reads as
stopped.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Callable, Optional

from core.ports import ServiceHostPort

LOGGER = logging.getLogger(__name__)

NOT_IMPLEMENTED = "not implemented"


class ServiceLifecycleController:
    """Idempotent start, best-effort stop, and live status queries."""

    def __init__(self, host: ServiceHostPort) -> None:
        self._host = host

    def start(self) -> bool:
        if self._host.is_alive():
            LOGGER.info("Listener service already running")
            return True
        LOGGER.info("Starting listener service")
        self._host.launch()
        return True

    def stop(self) -> bool:
        if not self._host.is_alive():
            LOGGER.info("Listener service already stopped")
            return True
        LOGGER.info("Stopping listener service")
        try:
            self._host.terminate()
        except ProcessLookupError:
            # Exited between the liveness check and the signal.
            pass
        return True

    def is_running(self) -> bool:
        return self._host.is_alive()


@dataclass(frozen=True)
class ControlResult:
    """Reply to one control-channel call."""

    ok: bool
    value: Any = None
    error: Optional[str] = None


class ControlChannel:
    """Method-name dispatch for the UI-facing command surface."""

    def __init__(self, lifecycle: ServiceLifecycleController) -> None:
        self._methods: dict[str, Callable[[], Any]] = {
            "startService": lifecycle.start,
            "stopService": lifecycle.stop,
            "isServiceRunning": lifecycle.is_running,
        }

    @property
    def methods(self) -> list[str]:
        return sorted(self._methods)

    def handle(self, method: str) -> ControlResult:
        handler = self._methods.get(method)
        if handler is None:
            LOGGER.warning("Unknown control method %r", method)
            return ControlResult(ok=False, error=NOT_IMPLEMENTED)
        try:
            return ControlResult(ok=True, value=handler())
        except Exception as exc:
            LOGGER.exception("Control method %s failed", method)
            return ControlResult(ok=False, error=str(exc))
