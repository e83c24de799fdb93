"""Telethon client construction for the SMS forwarder listener.

Credentials come from the environment (``.env`` via python-dotenv). The
session file holds the login, so ``txnwatch run`` only prompts the first time.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv
from telethon import TelegramClient

from settings import ConfigError

DEFAULT_SESSION_NAME = "txnwatch"


@dataclass(frozen=True)
class TelegramCredentials:
    api_id: int
    api_hash: str
    session_name: str


def read_credentials(env: Optional[Mapping[str, str]] = None) -> TelegramCredentials:
    """Pull API_ID / API_HASH / SESSION_NAME out of the environment."""

    if env is None:
        load_dotenv()
        env = os.environ

    api_id = (env.get("API_ID") or "").strip()
    api_hash = (env.get("API_HASH") or "").strip()
    if not api_id or not api_hash:
        raise ConfigError("API_ID and API_HASH must be set to run the listener")
    try:
        numeric_id = int(api_id)
    except ValueError as exc:
        raise ConfigError(f"API_ID must be an integer, got {api_id!r}") from exc

    session_name = (env.get("SESSION_NAME") or "").strip() or DEFAULT_SESSION_NAME
    return TelegramCredentials(api_id=numeric_id, api_hash=api_hash, session_name=session_name)


def build_client(credentials: Optional[TelegramCredentials] = None) -> TelegramClient:
    credentials = credentials or read_credentials()
    logging.getLogger(__name__).info("Opening Telegram session %r", credentials.session_name)
    return TelegramClient(credentials.session_name, credentials.api_id, credentials.api_hash)
