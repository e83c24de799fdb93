"""Static configuration for txnwatch.

All user-editable settings (templates, store, notifications, service, logging)
live in a single JSON file for quick edits without touching Python. Secrets
(API_ID, API_HASH, BOT_API) stay in the environment / .env file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import os
from typing import Any, Optional

from dotenv import load_dotenv

from core.config import DispatchConfig, NotificationConfig, ServiceConfig, StoreConfig
from core.templates import DEFAULT_TEMPLATES, Template, TemplateError, build_templates

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# config.json at the project root unless TXNWATCH_CONFIG points elsewhere.
DEFAULT_CONFIG_PATH = os.path.join(PROJECT_ROOT, "config.json")
CONFIG_ENV = "TXNWATCH_CONFIG"

DEFAULT_DB_PATH = "data/txnwatch.db"
DEFAULT_PID_PATH = "data/txnwatch.pid"
SURFACES = {"memory", "bot"}


class ConfigError(ValueError):
    """Raised when config.json cannot be loaded or is invalid."""


@dataclass(frozen=True)
class AppSettings:
    """Fully resolved settings used to wire the app."""

    config_path: str
    templates: list[Template]
    store: StoreConfig
    notifications: NotificationConfig
    dispatch: DispatchConfig
    service: ServiceConfig
    activation_command: list[str] = field(default_factory=list)
    listener_sources: list[str] = field(default_factory=list)
    logging: dict[str, Any] = field(default_factory=dict)


def resolve_config_path() -> str:
    load_dotenv()
    return os.getenv(CONFIG_ENV) or DEFAULT_CONFIG_PATH


def resolve_path(path: str) -> str:
    """Resolve relative paths against the project root."""

    if path == ":memory:" or os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


def _load_json_config(path: str) -> dict:
    """Load config.json; a missing file means all defaults."""

    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")
    return data


def _section(config: dict, name: str) -> dict:
    value = config.get(name, {})
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' must be an object")
    return value


def _string_list(value: Any, where: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"'{where}' must be a list of strings")
    return list(value)


def _positive_number(value: Any, where: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"'{where}' must be a positive number")
    return float(value)


def _max_records(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError("'store.max_records' must be a positive integer or null")
    return value


def load_settings(path: Optional[str] = None) -> AppSettings:
    """Load and validate config.json into AppSettings."""

    config_path = path or resolve_config_path()
    config = _load_json_config(config_path)

    # Templates fall back to the built-in bank templates when not configured.
    raw_templates = config.get("templates", DEFAULT_TEMPLATES)
    if not isinstance(raw_templates, list) or not all(isinstance(item, dict) for item in raw_templates):
        raise ConfigError("'templates' must be a list of objects")
    try:
        templates = build_templates(raw_templates)
    except TemplateError as exc:
        raise ConfigError(str(exc)) from exc

    # Store: one SQLite slot holding the serialized message list.
    store_cfg = _section(config, "store")
    store = StoreConfig(
        db_path=resolve_path(str(store_cfg.get("db_path", DEFAULT_DB_PATH))),
        key=str(store_cfg.get("key", "sms_messages")),
        max_records=_max_records(store_cfg.get("max_records")),
    )

    # Notification surface switches adapters without changing core logic.
    notifications_cfg = _section(config, "notifications")
    surface = str(notifications_cfg.get("surface", "memory"))
    if surface not in SURFACES:
        raise ConfigError(f"'notifications.surface' must be one of {sorted(SURFACES)}")
    bot_chat_id = notifications_cfg.get("bot_chat_id")
    notifications = NotificationConfig(
        surface=surface,
        channel_name=str(notifications_cfg.get("channel_name", "SMS Reader Service")),
        bot_chat_id=str(bot_chat_id) if bot_chat_id is not None else None,
    )

    dispatch_cfg = _section(config, "dispatch")
    dispatch = DispatchConfig(
        window_seconds=_positive_number(dispatch_cfg.get("window_seconds", 10), "dispatch.window_seconds"),
    )

    service_cfg = _section(config, "service")
    service = ServiceConfig(
        pid_path=resolve_path(str(service_cfg.get("pid_path", DEFAULT_PID_PATH))),
        stop_timeout_seconds=_positive_number(
            service_cfg.get("stop_timeout_seconds", 5), "service.stop_timeout_seconds"
        ),
    )

    activation_cfg = _section(config, "activation")
    listener_cfg = _section(config, "listener")

    return AppSettings(
        config_path=config_path,
        templates=templates,
        store=store,
        notifications=notifications,
        dispatch=dispatch,
        service=service,
        activation_command=_string_list(activation_cfg.get("command"), "activation.command"),
        listener_sources=_string_list(listener_cfg.get("sources"), "listener.sources"),
        logging=_section(config, "logging"),
    )
