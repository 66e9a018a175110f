"""Shared helpers: error taxonomy, datetime handling and logging utilities."""
