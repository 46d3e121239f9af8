"""Stateless translation layer between rules and host notification entries.

Owns identifier derivation and authorization gating. Side effects are
confined to the host; nothing here touches persistence.
"""
from typing import Iterable

from loguru import logger

from .host import NotificationHost
from .models import Rule
from .schedule import interval_seconds
from .types import (
    AuthState,
    EmptyTitleError,
    InvalidIntervalError,
    NotAuthorizedError,
    NotificationRequest,
)

logger = logger.bind(module="scheduler.adapter")


def request_id(group_id: str, rule_id: str) -> str:
    """Derive the host entry identifier for a rule.

    Depends only on the ids, so edits to title, body or interval re-add under
    the same identifier and replace the previous entry.
    """
    return f"g:{group_id}|r:{rule_id}"


class SchedulerAdapter:
    """Schedules and cancels rule entries at the host."""

    def __init__(self, host: NotificationHost):
        self.host = host

    @staticmethod
    def request_id(group_id: str, rule_id: str) -> str:
        return request_id(group_id, rule_id)

    def identifier_for(self, rule: Rule) -> str:
        return request_id(rule.group_id, rule.id)

    # ============== Authorization ==============

    async def query_authorization(self) -> AuthState:
        return await self.host.authorization_status()

    async def request_authorization(self) -> AuthState:
        """Ask the host for permission.

        Raises:
            NotAuthorizedError: The user denied notifications
        """
        granted = await self.host.request_authorization()
        status = await self.host.authorization_status()
        if not granted or status == AuthState.DENIED:
            raise NotAuthorizedError()
        return status

    # ============== Scheduling ==============

    async def schedule_entry(self, rule: Rule, sound_enabled: bool) -> str:
        """Register (or replace) the repeating entry for a rule.

        Args:
            rule: Rule to schedule
            sound_enabled: Whether the notification plays a sound

        Returns:
            The entry identifier

        Raises:
            InvalidIntervalError: interval_minutes < 1
            EmptyTitleError: Title is blank after trimming
            NotAuthorizedError: Host permission is not authorized/provisional
        """
        if rule.interval_minutes < 1:
            raise InvalidIntervalError()
        title = rule.title.strip()
        if not title:
            raise EmptyTitleError()

        status = await self.host.authorization_status()
        if not status.can_schedule:
            raise NotAuthorizedError()

        identifier = self.identifier_for(rule)
        self.host.remove_pending([identifier])
        await self.host.add(
            NotificationRequest(
                identifier=identifier,
                interval_seconds=interval_seconds(rule.interval_minutes),
                title=title,
                body=rule.body.strip(),
                sound=sound_enabled,
            )
        )
        return identifier

    def cancel_entry(self, rule: Rule) -> None:
        self.host.remove_pending([self.identifier_for(rule)])

    def cancel_entries(self, rules: Iterable[Rule]) -> None:
        identifiers = [self.identifier_for(rule) for rule in rules]
        if identifiers:
            self.host.remove_pending(identifiers)

    def cancel_all(self) -> None:
        """Remove every managed entry. Used only by a full rebuild."""
        self.host.remove_all()
        logger.info("Removed all pending notification entries")

    async def list_pending_identifiers(self) -> set[str]:
        return set(await self.host.pending_identifiers())
