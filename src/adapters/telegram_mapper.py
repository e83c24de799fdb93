"""Telegram-to-core message mapping adapter.

The listener service reads SMS forwarded into Telegram chats (for example by
an SMS forwarder bot). This keeps Telethon-specific details out of the core
pipeline.
"""

from __future__ import annotations

from typing import Iterable

from telethon.tl.custom import Message

from core.models import InboundMessage

SENDER_PREFIX = "From: "


def source_key_from_message(message: Message) -> str:
    """Normalize a source key using a single rule enforced across the app."""

    chat = getattr(message, "chat", None)
    username = getattr(chat, "username", None)

    if isinstance(username, str) and username:
        return f"@{username.lower()}"

    # Fallback: always stable and universal
    return f"chat_id:{message.chat_id}"


def normalize_sources(raw_sources: Iterable[str]) -> set[str]:
    """Lowercase usernames so config entries compare equal to source keys."""

    normalized: set[str] = set()
    for entry in raw_sources:
        entry = entry.strip()
        if not entry:
            continue
        if entry.startswith("@"):
            entry = entry.lower()
        normalized.add(entry)
    return normalized


def _split_forwarded(text: str) -> tuple[str | None, str]:
    # Forwarders commonly put the original sender on a "From: X" first line.
    first, sep, rest = text.partition("\n")
    if sep and first.startswith(SENDER_PREFIX):
        sender = first[len(SENDER_PREFIX) :].strip()
        if sender:
            return sender, rest
    return None, text


def build_inbound(message: Message) -> InboundMessage:
    """Build a core InboundMessage from a Telethon Message."""

    text = message.raw_text or ""
    sender, body = _split_forwarded(text)
    if sender is None:
        sender = source_key_from_message(message)
    return InboundMessage(sender=sender, body=body)
