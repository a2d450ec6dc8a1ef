"""Recurring job entrypoints."""

__all__ = ["renewal_reminders"]
