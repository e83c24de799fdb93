"""Shared constants for the Textual UI."""

from __future__ import annotations

ACCENT = "#2AABEE"
PANEL_TITLE = "Transaction messages"
