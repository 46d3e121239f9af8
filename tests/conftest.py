"""Shared fixtures: a recording in-memory host and wired services."""
import os
import sys

import pytest

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from interval_notifier.scheduler import (
    AppStore,
    AuthState,
    NotificationRequest,
    NotifierService,
    Reconciler,
    SchedulerAdapter,
    YamlBlobStore,
)


class FakeHost:
    """Host double that records every call and keeps entries in a dict."""

    def __init__(self, authorization: AuthState = AuthState.AUTHORIZED, grant: bool = True):
        self.authorization = authorization
        self.grant = grant
        self.entries: dict[str, NotificationRequest] = {}
        self.calls: list[tuple] = []
        self.drop_adds = False  # simulate the host silently losing adds

    async def authorization_status(self) -> AuthState:
        return self.authorization

    async def request_authorization(self) -> bool:
        self.calls.append(("request_authorization",))
        if self.authorization == AuthState.NOT_DETERMINED:
            self.authorization = AuthState.AUTHORIZED if self.grant else AuthState.DENIED
        return self.authorization.can_schedule

    async def add(self, request: NotificationRequest) -> None:
        self.calls.append(("add", request.identifier))
        if not self.drop_adds:
            self.entries[request.identifier] = request

    def remove_pending(self, identifiers) -> None:
        identifiers = list(identifiers)
        self.calls.append(("remove", *identifiers))
        for identifier in identifiers:
            self.entries.pop(identifier, None)

    def remove_all(self) -> None:
        self.calls.append(("remove_all",))
        self.entries.clear()

    async def pending_identifiers(self) -> set[str]:
        self.calls.append(("list",))
        return set(self.entries)

    def mutating_calls(self) -> list[tuple]:
        return [c for c in self.calls if c[0] in ("add", "remove", "remove_all")]


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def adapter(host):
    return SchedulerAdapter(host)


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "notifier.yaml"


@pytest.fixture
def store(store_path):
    return AppStore(YamlBlobStore(store_path))


@pytest.fixture
def service(store, adapter):
    return NotifierService(store, adapter, Reconciler(adapter))
