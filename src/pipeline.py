"""Wiring for the classification, persistence, and notification pipeline.

Every entry point (listener service, ingest hook, control commands, panel)
builds its collaborators here so they all share one store, one notification
surface, and one view of the service state.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from typing import Optional

from dotenv import load_dotenv

from adapters.activator import CommandActivator
from adapters.memory_surface import MemoryNotificationSurface
from adapters.process_host import ProcessServiceHost
from adapters.sqlite_kv import SQLiteKeyValueStore
from adapters.telegram_bot_surface import TelegramBotSurface
from core.dispatcher import EventDispatcher
from core.lifecycle import ControlChannel, ServiceLifecycleController
from core.notifications import NotificationController
from core.ports import NotificationSurfacePort, ServiceHostPort
from core.store import MessageStore
from core.templates import TemplateMatcher
from settings import AppSettings

LOGGER = logging.getLogger(__name__)


@dataclass
class Pipeline:
    """Wired collaborators shared by the CLI, the service, and the panel."""

    slots: SQLiteKeyValueStore
    store: MessageStore
    notifications: NotificationController
    dispatcher: EventDispatcher
    lifecycle: ServiceLifecycleController
    control: ControlChannel


def build_surface(settings: AppSettings, slots: SQLiteKeyValueStore) -> NotificationSurfacePort:
    """Select the notification surface based on configuration."""

    if settings.notifications.surface == "bot":
        load_dotenv()
        bot_token = os.getenv("BOT_API")
        if not bot_token:
            raise RuntimeError("BOT_API is required when notifications.surface=bot")
        if not settings.notifications.bot_chat_id:
            raise RuntimeError("notifications.bot_chat_id is required for bot notifications")
        return TelegramBotSurface(
            bot_token=bot_token,
            chat_id=settings.notifications.bot_chat_id,
            slots=slots,
        )
    return MemoryNotificationSurface()


def build_pipeline(
    settings: AppSettings,
    surface: Optional[NotificationSurfacePort] = None,
    host: Optional[ServiceHostPort] = None,
) -> Pipeline:
    slots = SQLiteKeyValueStore(settings.store.db_path)
    slots.init_db()
    store = MessageStore(slots, settings.store)

    activator = CommandActivator(settings.activation_command)
    notifications = NotificationController(
        surface=surface or build_surface(settings, slots),
        config=settings.notifications,
        activator=activator,
    )
    dispatcher = EventDispatcher(
        matcher=TemplateMatcher(settings.templates),
        store=store,
        notifications=notifications,
        activator=activator,
        config=settings.dispatch,
    )
    lifecycle = ServiceLifecycleController(
        host
        or ProcessServiceHost(
            pid_path=settings.service.pid_path,
            stop_timeout=settings.service.stop_timeout_seconds,
        )
    )
    LOGGER.debug("Pipeline wired with %s templates", len(settings.templates))
    return Pipeline(
        slots=slots,
        store=store,
        notifications=notifications,
        dispatcher=dispatcher,
        lifecycle=lifecycle,
        control=ControlChannel(lifecycle),
    )
