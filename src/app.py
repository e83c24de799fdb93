"""Application entry point for the txnwatch listener."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import signal
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional, TextIO

from art import tprint
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table
from telethon import events

import settings as settings_module
from adapters.process_host import remove_pid_file, write_pid_file
from adapters.telegram_mapper import build_inbound, normalize_sources, source_key_from_message
from client import build_client
from core.models import InboundMessage
from get_session import authorize, login
from pipeline import build_pipeline
from settings import AppSettings, ConfigError, load_settings

NAME = "TXNWATCH"
FONT = "tarty-1"

SERVICE_ACTIONS = {
    "start": "startService",
    "stop": "stopService",
    "status": "isServiceRunning",
}
DEFAULT_REDACT = ["API_HASH", "BOT_API"]


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", True):
        return []
    values = []
    for name in redact_cfg.get("patterns", DEFAULT_REDACT):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging(config: dict) -> None:
    config = config or {}
    if not config.get("enabled", True):
        return

    load_dotenv()
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = settings_module.resolve_path(file_cfg.get("path", "logs/txnwatch.log"))
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers, force=True)


def _run(settings: AppSettings) -> None:
    """Run the background listener service until disconnected or stopped."""

    _print_banner()
    logger = logging.getLogger(__name__)
    pid_path = settings.service.pid_path
    pipeline = build_pipeline(settings)
    write_pid_file(pid_path)
    logger.info("Starting txnwatch listener (pid %s)", os.getpid())

    pipeline.notifications.show_listener_active()
    sources = normalize_sources(settings.listener_sources)
    if not sources:
        logger.warning("No listener.sources configured; every incoming message is classified")

    try:
        client = build_client()
        client.loop.run_until_complete(client.connect())
        client.loop.run_until_complete(authorize(client))

        # Single handler keeps Telethon integration minimal and defers all
        # classification to the core dispatcher.
        @client.on(events.NewMessage(incoming=True))
        async def handler(event) -> None:
            try:
                if sources and source_key_from_message(event.message) not in sources:
                    return
                report = pipeline.dispatcher.dispatch([build_inbound(event.message)])
                if report.matched:
                    logger.info("Dispatch report: %s", report.summary())
            except Exception:
                logger.exception("Error while processing message")

        def _request_stop() -> None:
            logger.info("Stop requested, disconnecting")
            asyncio.ensure_future(client.disconnect())

        client.loop.add_signal_handler(signal.SIGTERM, _request_stop)

        client.start()
        logger.info("Client connected. Listening for incoming messages...")
        client.run_until_disconnected()
    finally:
        pipeline.notifications.clear_listener_active()
        remove_pid_file(pid_path, os.getpid())
        logger.info("Listener stopped")


def parse_batch(raw: str) -> list[InboundMessage]:
    """Parse a host batch: a JSON array of {"sender", "body"} objects."""

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"batch is not valid JSON: {exc}") from exc
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise ValueError("batch must be a JSON array of messages")

    batch: list[InboundMessage] = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ValueError(f"message {index} is not an object")
        sender = entry.get("sender")
        body = entry.get("body")
        if not isinstance(sender, str) or not isinstance(body, str):
            raise ValueError(f"message {index} needs string 'sender' and 'body'")
        batch.append(InboundMessage(sender=sender, body=body))
    return batch


def _ingest(settings: AppSettings, source: Optional[str], stdin: TextIO = sys.stdin) -> int:
    """Dispatch one host-delivered batch and print the report."""

    logger = logging.getLogger(__name__)
    if source and source != "-":
        try:
            with open(source, "r", encoding="utf-8") as handle:
                raw = handle.read()
        except OSError as exc:
            logger.error("Cannot read batch file %s: %s", source, exc)
            return 2
    else:
        raw = stdin.read()

    try:
        batch = parse_batch(raw)
    except ValueError as exc:
        logger.error("Rejected batch: %s", exc)
        return 2

    pipeline = build_pipeline(settings)
    report = pipeline.dispatcher.dispatch(batch)
    print(json.dumps(report.summary(), indent=2))
    return 0


def _service(settings: AppSettings, action: str) -> int:
    pipeline = build_pipeline(settings)
    result = pipeline.control.handle(SERVICE_ACTIONS.get(action, action))
    if not result.ok:
        print(f"{action}: {result.error}")
        return 1
    if action == "status":
        print("running" if result.value else "stopped")
    else:
        print(f"{action}: ok")
    return 0


def _messages(settings: AppSettings, console: Optional[Console] = None) -> int:
    pipeline = build_pipeline(settings)
    records = pipeline.store.load_all()

    table = Table(title=f"Stored messages ({len(records)})")
    table.add_column("received", no_wrap=True)
    table.add_column("sender")
    table.add_column("body")
    for record in records:
        table.add_row(record.to_dict()["receivedAt"], record.sender, record.body)
    (console or Console()).print(table)
    return 0


def _login() -> int:
    name = asyncio.run(login(build_client()))
    print(f"Logged in as: {name}")
    return 0


def _panel(settings: AppSettings) -> int:
    from frontend.app import MessagesPanelApp

    MessagesPanelApp(build_pipeline(settings)).run()
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="txnwatch")
    parser.add_argument("--config", help="Path to config.json")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Run the background SMS listener service")
    subparsers.add_parser("login", help="Log in to Telegram and save the session")
    ingest = subparsers.add_parser("ingest", help="Dispatch one batch of messages from JSON")
    ingest.add_argument("file", nargs="?", help="JSON file with the batch (default: stdin)")
    service = subparsers.add_parser("service", help="Control the listener service")
    service.add_argument("action", choices=sorted(SERVICE_ACTIONS))
    subparsers.add_parser("messages", help="Print stored messages")
    subparsers.add_parser("panel", help="Launch the messages panel TUI")

    args = parser.parse_args(argv)
    try:
        settings = load_settings(args.config)
    except ConfigError as exc:
        print(f"config error: {exc}", file=sys.stderr)
        return 2
    _configure_logging(settings.logging)

    try:
        return _dispatch_command(parser, args, settings)
    except ConfigError as exc:
        print(f"config error: {exc}", file=sys.stderr)
        return 2


def _dispatch_command(parser: argparse.ArgumentParser, args: argparse.Namespace, settings: AppSettings) -> int:
    command = args.command
    if command == "ingest":
        return _ingest(settings, args.file)
    if command == "service":
        return _service(settings, args.action)
    if command == "messages":
        return _messages(settings)
    if command == "panel":
        return _panel(settings)
    if command == "login":
        return _login()
    if command == "run":
        _run(settings)
        return 0
    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
