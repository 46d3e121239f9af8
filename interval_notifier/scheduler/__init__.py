"""Scheduler module for grouped interval notifications.

This module provides:
- Group/Rule models with an in-memory index by group
- An adapter over the host's repeating notification scheduler
- A level-triggered reconciler that repairs drift at the host
- The intent mutation service used by the HTTP surface
"""
# Core types
from .types import (
    AuthState,
    NotificationRequest,
    NotificationServiceError,
    NotAuthorizedError,
    InvalidIntervalError,
    EmptyTitleError,
    ReconcileResult,
)

# Models
from .models import (
    Group,
    Rule,
    NotifierState,
    GroupNotFoundError,
    RuleNotFoundError,
    InvalidNameError,
    clamp_interval,
)

# Schedule utilities
from .schedule import interval_seconds, interval_to_human, now_ms

# Host, adapter and reconciler
from .executor import NotificationExecutor, NotificationSender, LogNotificationSender
from .host import NotificationHost, ApschedulerHost
from .adapter import SchedulerAdapter, request_id
from .reconciler import Reconciler

# Service
from .service import NotifierService, AppStore, YamlBlobStore

__all__ = [
    "AuthState",
    "NotificationRequest",
    "NotificationServiceError",
    "NotAuthorizedError",
    "InvalidIntervalError",
    "EmptyTitleError",
    "ReconcileResult",
    "Group",
    "Rule",
    "NotifierState",
    "GroupNotFoundError",
    "RuleNotFoundError",
    "InvalidNameError",
    "clamp_interval",
    "interval_seconds",
    "interval_to_human",
    "now_ms",
    "NotificationExecutor",
    "NotificationSender",
    "LogNotificationSender",
    "NotificationHost",
    "ApschedulerHost",
    "SchedulerAdapter",
    "request_id",
    "Reconciler",
    "NotifierService",
    "AppStore",
    "YamlBlobStore",
]
