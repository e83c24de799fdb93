"""App activation adapter.

Runs the configured command (typically ``txnwatch panel`` in a terminal) to
bring the application forward. Activation is fire-and-forget: the process is
never waited on.
"""

from __future__ import annotations

import logging
import subprocess
from typing import Sequence

LOGGER = logging.getLogger(__name__)


class CommandActivator:
    """AppActivatorPort that spawns a detached foreground command."""

    def __init__(self, command: Sequence[str]) -> None:
        self._command = list(command)

    def activate(self) -> None:
        if not self._command:
            LOGGER.debug("No activation command configured")
            return
        subprocess.Popen(
            self._command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
