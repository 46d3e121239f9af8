"""Interval Notifier - grouped recurring reminders kept in sync with the host scheduler."""

__version__ = "0.1.0"
