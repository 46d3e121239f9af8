"""Delivery of notifications when a scheduled entry fires.

The host scheduler only knows when to fire; the executor turns a fired
request into a user-visible notification through a pluggable sender.
"""
from typing import Protocol

from loguru import logger

from .types import NotificationRequest

logger = logger.bind(module="scheduler.executor")


# ============== Protocol Definitions ==============

class NotificationSender(Protocol):
    """Protocol for presenting a notification to the user."""

    async def send(
        self,
        title: str,
        body: str,
        sound: bool = False,
    ) -> bool:
        """Present a notification and return success status."""
        ...


class LogNotificationSender:
    """Sender that writes each notification to the log.

    Used when no richer presentation layer is wired in.
    """

    async def send(self, title: str, body: str, sound: bool = False) -> bool:
        suffix = " (sound)" if sound else ""
        if body:
            logger.info(f"🔔 {title}: {body}{suffix}")
        else:
            logger.info(f"🔔 {title}{suffix}")
        return True


class NotificationExecutor:
    """Executes fired entries by handing them to the sender."""

    def __init__(self, sender: NotificationSender | None = None):
        self.sender = sender or LogNotificationSender()
        self.delivered = 0

    async def execute(self, request: NotificationRequest) -> bool:
        """Deliver one occurrence of a repeating entry.

        A failed delivery is logged and reported as False. The entry stays
        scheduled, so the next occurrence is attempted as usual.
        """
        try:
            ok = await self.sender.send(
                title=request.title,
                body=request.body,
                sound=request.sound,
            )
        except Exception as e:
            logger.error(f"Failed to deliver {request.identifier}: {e}")
            return False

        if ok:
            self.delivered += 1
        else:
            logger.warning(f"Sender rejected notification {request.identifier}")
        return ok
