"""Adapters binding the core pipeline to SQLite, Telegram, and the OS."""
