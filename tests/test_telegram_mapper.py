from __future__ import annotations

from adapters.telegram_mapper import build_inbound, normalize_sources, source_key_from_message


class DummyChat:
    def __init__(self, username: "str | None" = None) -> None:
        self.username = username


class DummyMessage:
    def __init__(self, *, chat_id: int, text: "str | None", chat: "DummyChat | None" = None) -> None:
        self.chat_id = chat_id
        self.raw_text = text
        self.chat = chat


def test_source_key_prefers_username() -> None:
    message = DummyMessage(chat_id=1, text="hi", chat=DummyChat(username="SmsForwarderBot"))
    assert source_key_from_message(message) == "@smsforwarderbot"


def test_source_key_falls_back_to_chat_id() -> None:
    message = DummyMessage(chat_id=-100123, text="hi", chat=DummyChat(username=None))
    assert source_key_from_message(message) == "chat_id:-100123"


def test_forwarded_sender_line_is_split_off() -> None:
    message = DummyMessage(
        chat_id=7,
        text="From: VK-HDFCBK\nINR 500.00 debited\nA/c no. XX1133",
        chat=DummyChat(username="forwarder"),
    )
    inbound = build_inbound(message)
    assert inbound.sender == "VK-HDFCBK"
    assert inbound.body == "INR 500.00 debited\nA/c no. XX1133"


def test_plain_text_uses_chat_as_sender() -> None:
    message = DummyMessage(chat_id=7, text="Sent Rs.5 from Kotak Bank", chat=DummyChat(username="forwarder"))
    inbound = build_inbound(message)
    assert inbound.sender == "@forwarder"
    assert inbound.body == "Sent Rs.5 from Kotak Bank"


def test_media_without_caption_has_empty_body() -> None:
    inbound = build_inbound(DummyMessage(chat_id=7, text=None))
    assert inbound.body == ""


def test_normalize_sources() -> None:
    assert normalize_sources(["@SmsBot", " chat_id:42 ", ""]) == {"@smsbot", "chat_id:42"}
