"""Intent mutation API.

Every operation here is a direct user action: scheduling failures are raised
to the caller for immediate feedback, unlike the reconcile path which logs
and moves on. Each successful model change is followed by an explicit save.

Mutations and reconcile passes share one lock, so a pass never observes a
half-applied mutation and a mutation's scheduler calls never interleave with
a pass.
"""
import asyncio

from loguru import logger

from ..adapter import SchedulerAdapter
from ..models import Group, InvalidNameError, NotifierState, Rule
from ..reconciler import Reconciler
from ..types import AuthState, ReconcileResult
from .store import AppStore

logger = logger.bind(module="scheduler.service")


class NotifierService:
    """Owns the model and keeps the host in step with it."""

    def __init__(
        self,
        store: AppStore,
        adapter: SchedulerAdapter,
        reconciler: Reconciler | None = None,
        state: NotifierState | None = None,
    ):
        self.store = store
        self.adapter = adapter
        self.reconciler = reconciler or Reconciler(adapter)
        self.state = state if state is not None else store.load()
        self._lock = asyncio.Lock()

    def _persist(self) -> None:
        self.store.save(self.state)

    # ============== Read Accessors ==============

    def list_groups(self) -> list[Group]:
        return list(self.state.groups)

    def get_group(self, group_id: str) -> Group:
        return self.state.get_group(group_id)

    def get_rule(self, rule_id: str) -> Rule:
        return self.state.get_rule(rule_id)

    def rules_for(self, group_id: str) -> list[Rule]:
        """Rules of a group in creation order."""
        self.state.get_group(group_id)
        return sorted(self.state.rules_for(group_id), key=lambda r: r.created_at_ms)

    @property
    def sound_enabled(self) -> bool:
        return self.state.sound_enabled

    async def authorization_status(self) -> AuthState:
        """Current host permission, for display only."""
        return await self.adapter.query_authorization()

    # ============== Groups ==============

    async def create_group(self, name: str) -> Group:
        name = name.strip()
        if not name:
            raise InvalidNameError("Group name must not be empty")

        async with self._lock:
            group = self.state.add_group(Group(name=name))
            self._persist()
        logger.info(f"Created group {group.id} ({group.name})")
        return group

    async def rename_group(self, group_id: str, name: str) -> Group:
        name = name.strip()
        if not name:
            raise InvalidNameError("Group name must not be empty")

        async with self._lock:
            group = self.state.get_group(group_id)
            group.name = name
            group.touch()
            self._persist()
        return group

    async def delete_group(self, group_id: str) -> None:
        async with self._lock:
            group = self.state.get_group(group_id)
            if group.is_running:
                self.adapter.cancel_entries(self.state.rules_for(group_id))
            _, removed = self.state.remove_group(group_id)
            self._persist()
            logger.info(f"Deleted group {group_id} with {len(removed)} rules")
            await self.reconciler.rebuild_all(self.state)

    async def start_group(self, group_id: str) -> Group:
        """Schedule every enabled rule of a group and mark it running.

        Stops at the first failure and raises it; the group then stays
        stopped. Entries added before the failure are left for the next
        reconcile to cancel.

        Raises:
            NotificationServiceError: Permission denied or a rule is invalid
        """
        async with self._lock:
            group = self.state.get_group(group_id)
            if group.is_running:
                return group

            await self.adapter.request_authorization()
            for rule in self.state.rules_for(group_id):
                if rule.is_enabled:
                    await self.adapter.schedule_entry(rule, self.state.sound_enabled)

            group.is_running = True
            group.touch()
            self._persist()
        logger.info(f"Started group {group_id}")
        return group

    async def stop_group(self, group_id: str) -> Group:
        async with self._lock:
            group = self.state.get_group(group_id)
            if not group.is_running:
                return group

            self.adapter.cancel_entries(self.state.rules_for(group_id))
            group.is_running = False
            group.touch()
            self._persist()
        logger.info(f"Stopped group {group_id}")
        return group

    # ============== Rules ==============

    async def upsert_rule(self, rule: Rule) -> Rule:
        """Create or replace a rule by id and reschedule it if live.

        The entry identifier does not depend on content, so rescheduling
        replaces the previous entry for this rule instead of orphaning it.

        Raises:
            GroupNotFoundError: The rule's group does not exist
            NotificationServiceError: Rescheduling failed; the rule is
                still saved and the next reconcile retries
        """
        async with self._lock:
            group = self.state.get_group(rule.group_id)
            rule.touch()
            previous = self.state.upsert_rule(rule)
            if previous is not None:
                rule.created_at_ms = previous.created_at_ms
                # Moved to another group: the old identifier no longer maps to any rule
                if previous.group_id != rule.group_id:
                    self.adapter.cancel_entry(previous)
            self._persist()

            if group.is_running and rule.is_enabled:
                await self.adapter.schedule_entry(rule, self.state.sound_enabled)
            elif group.is_running:
                self.adapter.cancel_entry(rule)
        return rule

    async def toggle_rule(self, rule_id: str, enabled: bool) -> Rule:
        """Enable or disable a rule.

        The flag is saved before the host call, so a failed schedule leaves
        the rule enabled but not yet pending until the next reconcile.
        """
        async with self._lock:
            rule = self.state.get_rule(rule_id)
            group = self.state.get_group(rule.group_id)
            rule.is_enabled = enabled
            rule.touch()
            self._persist()

            if group.is_running:
                if enabled:
                    await self.adapter.schedule_entry(rule, self.state.sound_enabled)
                else:
                    self.adapter.cancel_entry(rule)
        return rule

    async def delete_rule(self, rule_id: str) -> None:
        async with self._lock:
            rule = self.state.get_rule(rule_id)
            if self.state.get_group(rule.group_id).is_running:
                self.adapter.cancel_entry(rule)
            self.state.remove_rule(rule_id)
            self._persist()
            await self.reconciler.rebuild_all(self.state)

    # ============== Settings ==============

    async def set_sound_enabled(self, enabled: bool) -> None:
        """Persist the sound setting.

        Applies to entries scheduled from now on; existing entries keep the
        sound flag they were registered with.
        """
        async with self._lock:
            self.state.sound_enabled = enabled
            self._persist()

    # ============== Reconciliation ==============

    async def reconcile(self, force: bool = False) -> ReconcileResult:
        async with self._lock:
            return await self.reconciler.reconcile(self.state, force=force)

    async def rebuild_all(self) -> ReconcileResult:
        async with self._lock:
            return await self.reconciler.rebuild_all(self.state)
