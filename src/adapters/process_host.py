"""Process host adapter for the background listener service.

The listener runs as its own OS process (``python -m app run``). It records
its pid in a pid file, and liveness is always a live psutil query against
that pid, so a service killed by the OS or the user reads as stopped even
though nothing cleaned up the pid file.
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from typing import Optional, Sequence

import psutil

LOGGER = logging.getLogger(__name__)

SERVICE_MARKER = "run"


def default_service_command() -> list[str]:
    return [sys.executable, "-m", "app", SERVICE_MARKER]


def read_pid_file(path: str) -> Optional[int]:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            raw = handle.read().strip()
    except FileNotFoundError:
        return None
    try:
        return int(raw)
    except ValueError:
        LOGGER.warning("Ignoring unreadable pid file %s", path)
        return None


def write_pid_file(path: str, pid: Optional[int] = None) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    tmp_path = f"{path}.tmp"
    with open(tmp_path, "w", encoding="utf-8") as handle:
        handle.write(str(pid if pid is not None else os.getpid()))
    os.replace(tmp_path, path)


def remove_pid_file(path: str, pid: Optional[int] = None) -> None:
    """Remove the pid file, but only if it still names ``pid`` when given."""

    if pid is not None and read_pid_file(path) != pid:
        return
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


class ProcessServiceHost:
    """ServiceHostPort backed by a detached child process and a pid file."""

    def __init__(
        self,
        pid_path: str,
        command: Optional[Sequence[str]] = None,
        stop_timeout: float = 5.0,
    ) -> None:
        self._pid_path = pid_path
        self._command = list(command) if command else default_service_command()
        self._stop_timeout = stop_timeout

    def _live_process(self) -> Optional[psutil.Process]:
        pid = read_pid_file(self._pid_path)
        if pid is None:
            return None
        try:
            process = psutil.Process(pid)
            if not process.is_running() or process.status() == psutil.STATUS_ZOMBIE:
                return None
            # Guard against pid reuse by an unrelated program.
            if SERVICE_MARKER not in process.cmdline():
                return None
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            return None
        return process

    def is_alive(self) -> bool:
        return self._live_process() is not None

    def launch(self) -> None:
        LOGGER.info("Launching listener service: %s", " ".join(self._command))
        child = subprocess.Popen(
            self._command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
        # The service rewrites this with its own pid once it is up.
        write_pid_file(self._pid_path, child.pid)

    def terminate(self) -> None:
        process = self._live_process()
        if process is None:
            remove_pid_file(self._pid_path)
            return
        pid = process.pid
        try:
            process.terminate()
            process.wait(timeout=self._stop_timeout)
        except psutil.TimeoutExpired:
            LOGGER.warning("Listener service %s ignored SIGTERM, killing it", pid)
            process.kill()
        except psutil.NoSuchProcess:
            pass
        remove_pid_file(self._pid_path, pid)
