from __future__ import annotations

from adapters.notification_formatting import DIVIDER, format_notification
from core.models import NotificationPayload


def test_format_escapes_html() -> None:
    payload = NotificationPayload(title="New message from <AX-BANK>", text="Sent Rs.5 & more")
    text = format_notification(payload)
    assert text.startswith("<b>New message from &lt;AX-BANK&gt;</b>")
    assert DIVIDER in text
    assert text.endswith("Sent Rs.5 &amp; more")
