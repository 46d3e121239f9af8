"""Convergence of the host's pending entries with the declared model.

The reconciler is level-triggered: every pass re-derives the desired entry
set from the model and compares it against the identifiers the host reports,
without trusting that any earlier start/stop call took effect. That covers
a process killed mid-schedule, an add the host silently dropped, duplicate
adds, and model edits made while nothing was running.

Scheduling failures are logged and recorded, never raised. The pass is
repeatable, so the next one retries them.
"""
import time
from typing import Callable

from loguru import logger

from .adapter import SchedulerAdapter, request_id
from .models import NotifierState
from .types import NotificationServiceError, ReconcileResult

logger = logger.bind(module="scheduler.reconciler")

DEFAULT_DEBOUNCE_SECONDS = 5.0


class Reconciler:
    """Diffs declared intent against the host and closes the gap.

    Not locked: the caller runs passes inside the same critical section it
    uses for mutations.
    """

    def __init__(
        self,
        adapter: SchedulerAdapter,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.adapter = adapter
        self.debounce_seconds = debounce_seconds
        self._clock = clock
        self._last_completed_at: float | None = None

    def desired_identifiers(self, state: NotifierState) -> set[str]:
        """Identifiers that should be pending for the given model."""
        return {
            request_id(group.id, rule.id)
            for group in state.groups if group.is_running
            for rule in state.rules_for(group.id) if rule.is_enabled
        }

    def is_fresh(self) -> bool:
        """Whether the last pass completed within the debounce window."""
        if self._last_completed_at is None:
            return False
        return self._clock() - self._last_completed_at < self.debounce_seconds

    async def reconcile(self, state: NotifierState, force: bool = False) -> ReconcileResult:
        """Issue the minimal adds and cancels to match the model.

        Args:
            state: Current model
            force: Run even if the previous pass finished moments ago

        Returns:
            What was scheduled, cancelled and what failed
        """
        if not force and self.is_fresh():
            logger.debug("Skipping reconcile: previous pass is recent")
            return ReconcileResult(skipped=True)

        result = ReconcileResult()
        pending = await self.adapter.list_pending_identifiers()

        for group in state.groups:
            for rule in state.rules_for(group.id):
                want = group.is_running and rule.is_enabled
                identifier = request_id(group.id, rule.id)

                if want and identifier not in pending:
                    try:
                        await self.adapter.schedule_entry(rule, state.sound_enabled)
                        result.scheduled.append(identifier)
                    except NotificationServiceError as e:
                        logger.warning(f"Reconcile could not schedule {identifier}: {e}")
                        result.failed[identifier] = e.code
                elif not want and identifier in pending:
                    self.adapter.cancel_entry(rule)
                    result.cancelled.append(identifier)

        self._last_completed_at = self._clock()
        if result.changed or result.failed:
            logger.info(
                f"Reconciled: {len(result.scheduled)} scheduled, "
                f"{len(result.cancelled)} cancelled, {len(result.failed)} failed"
            )
        return result

    async def rebuild_all(self, state: NotifierState) -> ReconcileResult:
        """Cancel everything at the host, then schedule every live rule.

        Used after bulk edits such as deletions, or when drift has to be
        forced to zero regardless of what the host reports.
        """
        result = ReconcileResult()
        self.adapter.cancel_all()

        for group in state.groups:
            if not group.is_running:
                continue
            for rule in state.rules_for(group.id):
                if not rule.is_enabled:
                    continue
                identifier = request_id(group.id, rule.id)
                try:
                    await self.adapter.schedule_entry(rule, state.sound_enabled)
                    result.scheduled.append(identifier)
                except NotificationServiceError as e:
                    logger.warning(f"Rebuild could not schedule {identifier}: {e}")
                    result.failed[identifier] = e.code

        self._last_completed_at = self._clock()
        logger.info(
            f"Rebuilt entries: {len(result.scheduled)} scheduled, {len(result.failed)} failed"
        )
        return result
