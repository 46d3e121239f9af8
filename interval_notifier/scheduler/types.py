"""Core type definitions for the notification scheduler.

This module defines:
- Authorization states reported by the host
- The request shape handed to the host scheduler
- Errors raised while scheduling an entry
- Result types for reconcile passes
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# ============== Authorization ==============

class AuthState(str, Enum):
    """Notification permission state reported by the host."""
    NOT_DETERMINED = "not_determined"  # User has not been asked yet
    DENIED = "denied"
    AUTHORIZED = "authorized"
    PROVISIONAL = "provisional"        # Delivered quietly, counts as granted
    LIMITED = "limited"                # Time-boxed permission, cannot schedule

    @property
    def can_schedule(self) -> bool:
        return self in (AuthState.AUTHORIZED, AuthState.PROVISIONAL)


# ============== Host Requests ==============

@dataclass
class NotificationRequest:
    """A repeating notification entry as registered at the host."""
    identifier: str
    interval_seconds: int
    title: str
    body: str = ""
    sound: bool = False
    repeats: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "identifier": self.identifier,
            "interval_seconds": self.interval_seconds,
            "title": self.title,
            "body": self.body,
            "sound": self.sound,
            "repeats": self.repeats,
        }


# ============== Errors ==============

class NotificationServiceError(Exception):
    """Base error for scheduling failures."""
    code = "notification_error"
    message = "The notification could not be scheduled."
    open_settings = False

    def __init__(self, message: str | None = None):
        if message:
            self.message = message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "open_settings": self.open_settings,
        }


class NotAuthorizedError(NotificationServiceError):
    """The host denied (or never granted) notification permission.

    Not recoverable from inside the app, so callers should send the user to
    the host's notification settings.
    """
    code = "not_authorized"
    message = (
        "Notification permission is required. "
        "Enable notifications for this app in the system settings."
    )
    open_settings = True


class InvalidIntervalError(NotificationServiceError):
    code = "invalid_interval"
    message = "The notification interval is invalid."


class EmptyTitleError(NotificationServiceError):
    code = "empty_title"
    message = "The notification title is empty."


# ============== Result Types ==============

@dataclass
class ReconcileResult:
    """Outcome of a reconcile or rebuild pass."""
    scheduled: list[str] = field(default_factory=list)
    cancelled: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)  # identifier -> error
    skipped: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.scheduled or self.cancelled)

    def to_dict(self) -> dict[str, Any]:
        return {
            "scheduled": self.scheduled,
            "cancelled": self.cancelled,
            "failed": self.failed,
            "skipped": self.skipped,
        }
