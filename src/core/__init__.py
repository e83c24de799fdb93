"""Core domain package for txnwatch.

Core contains template matching, the message store, notification state, and
service lifecycle logic without any Telegram, SQLite, or process-specific
code, keeping the business logic portable.
"""
