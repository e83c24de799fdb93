"""Textual panel for stored messages and listener controls."""
