"""Textual panel for browsing stored messages and controlling the listener."""

from __future__ import annotations

from typing import Any

from rich.text import Text
from textual import on
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import Button, DataTable, Footer, Static

from core.store import StoreError
from pipeline import Pipeline

from .constants import ACCENT, PANEL_TITLE


class MessagesPanelApp(App):
    """Stored messages table plus start/stop/status controls."""

    BINDINGS = [
        ("r", "refresh", "Refresh"),
        ("q", "quit", "Quit"),
    ]

    CSS = """
    #header {
        height: 5;
        padding: 1 2;
        border-bottom: solid #2a3a46;
    }

    #service-actions {
        height: 3;
    }

    #messages-table {
        height: 1fr;
    }
    """

    def __init__(self, pipeline: Pipeline, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._pipeline = pipeline
        self.service_status = "service: unknown"

    def compose(self) -> ComposeResult:
        with Container(id="header"):
            with Vertical():
                yield Static(self._title_text(), id="title")
                yield Static("", id="service-status")
        with Horizontal(id="service-actions"):
            yield Button("Start service", id="start-btn", variant="success")
            yield Button("Stop service", id="stop-btn", variant="error")
            yield Button("Refresh", id="refresh-btn")
        yield DataTable(id="messages-table", cursor_type="row")
        yield Static("", id="panel-output")
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#messages-table", DataTable)
        table.add_column("received", key="receivedAt", width=26)
        table.add_column("sender", key="sender", width=18)
        table.add_column("body", key="body", width=60)
        table.zebra_stripes = True
        self.action_refresh()

    def action_refresh(self) -> None:
        self._load_messages()
        self._update_status()

    @on(Button.Pressed, "#start-btn")
    def _on_start_pressed(self) -> None:
        self._call("startService")

    @on(Button.Pressed, "#stop-btn")
    def _on_stop_pressed(self) -> None:
        self._call("stopService")

    @on(Button.Pressed, "#refresh-btn")
    def _on_refresh_pressed(self) -> None:
        self.action_refresh()

    def _call(self, method: str) -> None:
        result = self._pipeline.control.handle(method)
        if result.ok:
            self._set_output(f"{method}: ok")
        else:
            self._set_output(f"{method}: {result.error}")
        self._update_status()

    def _update_status(self) -> None:
        result = self._pipeline.control.handle("isServiceRunning")
        if not result.ok:
            label = f"service: unknown ({result.error})"
        else:
            label = "service: running" if result.value else "service: stopped"
        self.service_status = label
        self.query_one("#service-status", Static).update(label)

    def _load_messages(self) -> None:
        table = self.query_one("#messages-table", DataTable)
        table.clear()
        try:
            records = self._pipeline.store.load_all()
        except StoreError as exc:
            self._set_output(f"store error: {exc}")
            return
        # Newest first, like a message inbox.
        for index, record in reversed(list(enumerate(records))):
            row = record.to_dict()
            table.add_row(row["receivedAt"], record.sender, self._clip_text(record.body), key=str(index))
        self._set_output(f"loaded {len(records)} messages")

    def _set_output(self, message: str) -> None:
        self.query_one("#panel-output", Static).update(message)

    @staticmethod
    def _clip_text(value: str, limit: int = 80) -> str:
        value = " ".join(value.split())
        if len(value) <= limit:
            return value
        return value[: limit - 3] + "..."

    @staticmethod
    def _title_text() -> Text:
        return Text.assemble(
            ("TXN", ACCENT),
            (f"WATCH > {PANEL_TITLE}", "bold"),
        )
