"""Tests for reconcile and rebuild passes."""
import pytest

from interval_notifier.scheduler import (
    AuthState,
    Group,
    NotificationRequest,
    NotifierState,
    Reconciler,
    Rule,
)


def _plant(host, identifier):
    """Put an entry at the host without going through the adapter."""
    host.entries[identifier] = NotificationRequest(
        identifier=identifier, interval_seconds=60, title="stale"
    )


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def reconciler(adapter, clock):
    return Reconciler(adapter, debounce_seconds=5.0, clock=clock)


@pytest.fixture
def state():
    a = Group(id="A", name="A", is_running=True)
    b = Group(id="B", name="B", is_running=False)
    rules = [
        Rule(id="R1", group_id="A", title="one", is_enabled=True),
        Rule(id="R2", group_id="A", title="two", is_enabled=False),
        Rule(id="R3", group_id="B", title="three", is_enabled=True),
    ]
    return NotifierState(groups=[a, b], rules=rules)


class TestReconcile:

    @pytest.mark.asyncio
    async def test_schedules_missing_entries(self, reconciler, state, host):
        result = await reconciler.reconcile(state)

        assert result.scheduled == ["g:A|r:R1"]
        assert set(host.entries) == {"g:A|r:R1"}

    @pytest.mark.asyncio
    async def test_idempotent(self, reconciler, state, host):
        """A second pass with no mutation issues no scheduler calls."""
        await reconciler.reconcile(state, force=True)
        host.calls.clear()

        result = await reconciler.reconcile(state, force=True)

        assert not result.changed
        assert host.mutating_calls() == []
        assert host.calls == [("list",)]

    @pytest.mark.asyncio
    async def test_converges_under_drift(self, reconciler, state, host):
        """Stale R2 entry is removed and missing R1 entry is added."""
        _plant(host, "g:A|r:R2")

        result = await reconciler.reconcile(state)

        assert set(host.entries) == {"g:A|r:R1"}
        assert result.scheduled == ["g:A|r:R1"]
        assert result.cancelled == ["g:A|r:R2"]

    @pytest.mark.asyncio
    async def test_cancels_entries_of_stopped_group(self, reconciler, state, host):
        _plant(host, "g:B|r:R3")
        await reconciler.reconcile(state)
        assert "g:B|r:R3" not in host.entries

    @pytest.mark.asyncio
    async def test_present_entries_are_not_touched(self, reconciler, state, host):
        _plant(host, "g:A|r:R1")
        result = await reconciler.reconcile(state)

        assert result.scheduled == []
        assert host.entries["g:A|r:R1"].title == "stale"

    @pytest.mark.asyncio
    async def test_recovers_dropped_add(self, reconciler, state, host):
        host.drop_adds = True
        await reconciler.reconcile(state, force=True)
        assert host.entries == {}

        host.drop_adds = False
        await reconciler.reconcile(state, force=True)
        assert set(host.entries) == {"g:A|r:R1"}

    @pytest.mark.asyncio
    async def test_failures_are_swallowed_and_retried(self, reconciler, state, host):
        state.upsert_rule(Rule(id="R4", group_id="A", title="four"))
        host.authorization = AuthState.DENIED

        result = await reconciler.reconcile(state, force=True)

        assert result.failed == {"g:A|r:R1": "not_authorized", "g:A|r:R4": "not_authorized"}
        assert host.entries == {}

        host.authorization = AuthState.AUTHORIZED
        result = await reconciler.reconcile(state, force=True)
        assert set(result.scheduled) == {"g:A|r:R1", "g:A|r:R4"}
        assert result.failed == {}

    @pytest.mark.asyncio
    async def test_one_failure_does_not_abort_pass(self, reconciler, state, host):
        state.upsert_rule(Rule(id="R0", group_id="A", title="   "))
        result = await reconciler.reconcile(state)

        assert result.failed == {"g:A|r:R0": "empty_title"}
        assert "g:A|r:R1" in host.entries

    @pytest.mark.asyncio
    async def test_uses_sound_setting(self, reconciler, state, host):
        state.sound_enabled = True
        await reconciler.reconcile(state)
        assert host.entries["g:A|r:R1"].sound is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("running", [True, False])
    @pytest.mark.parametrize("enabled", [True, False])
    @pytest.mark.parametrize("planted", [True, False])
    async def test_pending_iff_running_and_enabled(self, adapter, host, running, enabled, planted):
        group = Group(id="G", is_running=running)
        rule = Rule(id="R", group_id="G", title="t", is_enabled=enabled)
        state = NotifierState(groups=[group], rules=[rule])
        if planted:
            _plant(host, "g:G|r:R")

        await Reconciler(adapter).reconcile(state)

        assert ("g:G|r:R" in host.entries) is (running and enabled)

    def test_desired_identifiers(self, reconciler, state):
        assert reconciler.desired_identifiers(state) == {"g:A|r:R1"}


class TestDebounce:

    @pytest.mark.asyncio
    async def test_skips_recent_pass(self, reconciler, state, host, clock):
        await reconciler.reconcile(state)
        host.calls.clear()

        clock.now += 2
        result = await reconciler.reconcile(state)

        assert result.skipped is True
        assert host.calls == []

    @pytest.mark.asyncio
    async def test_runs_after_window(self, reconciler, state, host, clock):
        await reconciler.reconcile(state)
        host.entries.clear()

        clock.now += 5
        result = await reconciler.reconcile(state)

        assert result.skipped is False
        assert set(host.entries) == {"g:A|r:R1"}

    @pytest.mark.asyncio
    async def test_force_ignores_window(self, reconciler, state, host):
        await reconciler.reconcile(state)
        host.entries.clear()

        result = await reconciler.reconcile(state, force=True)
        assert result.skipped is False
        assert set(host.entries) == {"g:A|r:R1"}

    def test_first_pass_is_never_fresh(self, reconciler):
        assert reconciler.is_fresh() is False


class TestRebuildAll:

    @pytest.mark.asyncio
    async def test_clears_and_schedules_live_rules(self, reconciler, state, host):
        _plant(host, "g:B|r:R3")
        _plant(host, "g:unknown|r:ghost")

        result = await reconciler.rebuild_all(state)

        assert set(host.entries) == {"g:A|r:R1"}
        assert result.scheduled == ["g:A|r:R1"]
        assert host.mutating_calls()[0] == ("remove_all",)

    @pytest.mark.asyncio
    async def test_failures_are_swallowed(self, reconciler, state, host):
        host.authorization = AuthState.DENIED
        result = await reconciler.rebuild_all(state)
        assert result.failed == {"g:A|r:R1": "not_authorized"}
        assert host.entries == {}
