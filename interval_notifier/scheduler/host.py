"""Host scheduling primitive.

``NotificationHost`` is the port the adapter talks to. It offers
only coarse operations (add, remove by id, remove all, list every pending id);
there is no way to ask whether a particular entry is scheduled.

``ApschedulerHost`` implements the port in-process: each entry is an
APScheduler interval job whose job id is the entry identifier.
"""
from typing import Iterable, Protocol

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from .executor import NotificationExecutor
from .types import AuthState, NotificationRequest

logger = logger.bind(module="scheduler.host")


class NotificationHost(Protocol):
    """Protocol for the host's repeating notification scheduler."""

    async def authorization_status(self) -> AuthState:
        ...

    async def request_authorization(self) -> bool:
        """Prompt for permission (only the first time); return whether granted."""
        ...

    async def add(self, request: NotificationRequest) -> None:
        ...

    def remove_pending(self, identifiers: Iterable[str]) -> None:
        """Remove entries by id; unknown ids are ignored."""
        ...

    def remove_all(self) -> None:
        ...

    async def pending_identifiers(self) -> set[str]:
        ...


class ApschedulerHost:
    """In-process host backed by an asyncio APScheduler.

    Authorization is simulated: the host starts in ``initial_authorization``
    and the first request resolves ``NOT_DETERMINED`` to authorized or denied
    according to ``grant_on_request``. Later requests never prompt again.
    """

    def __init__(
        self,
        executor: NotificationExecutor | None = None,
        scheduler: AsyncIOScheduler | None = None,
        initial_authorization: AuthState = AuthState.NOT_DETERMINED,
        grant_on_request: bool = True,
    ):
        self.executor = executor or NotificationExecutor()
        self._scheduler = scheduler or AsyncIOScheduler()
        self._authorization = initial_authorization
        self._grant_on_request = grant_on_request

    # ============== Lifecycle ==============

    def start(self) -> None:
        if not self._scheduler.running:
            self._scheduler.start()
            logger.info("Host scheduler started")

    def shutdown(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Host scheduler stopped")

    # ============== Authorization ==============

    async def authorization_status(self) -> AuthState:
        return self._authorization

    async def request_authorization(self) -> bool:
        if self._authorization == AuthState.NOT_DETERMINED:
            self._authorization = (
                AuthState.AUTHORIZED if self._grant_on_request else AuthState.DENIED
            )
            logger.info(f"Notification permission resolved: {self._authorization.value}")
        return self._authorization.can_schedule

    def set_authorization(self, state: AuthState) -> None:
        """Change permission from outside the app (system settings)."""
        self._authorization = state

    # ============== Entries ==============

    async def add(self, request: NotificationRequest) -> None:
        self._scheduler.add_job(
            self._fire,
            trigger=IntervalTrigger(seconds=request.interval_seconds),
            args=[request],
            id=request.identifier,
            name=f"notify:{request.title[:30]}",
            replace_existing=True,
        )
        logger.debug(
            f"Added {request.identifier} every {request.interval_seconds}s"
        )

    def remove_pending(self, identifiers: Iterable[str]) -> None:
        for identifier in identifiers:
            try:
                self._scheduler.remove_job(identifier)
            except JobLookupError:
                continue

    def remove_all(self) -> None:
        self._scheduler.remove_all_jobs()

    async def pending_identifiers(self) -> set[str]:
        return {job.id for job in self._scheduler.get_jobs()}

    async def _fire(self, request: NotificationRequest) -> None:
        await self.executor.execute(request)
