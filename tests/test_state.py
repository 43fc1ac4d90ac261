import asyncio
from unittest.mock import AsyncMock

import pytest
from conftest import NEXT_MONDAY, make_appointment

from salon.booking import book
from salon.intents import AddAppointment, RejectionKind, UpdateClient
from salon.schemas import AppState, DayConfig, Service
from salon.state import AppStateService, apply_intent, reconcile


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


def make_store(read_state=None, write_ok=True):
    store = AsyncMock()
    store.read.return_value = read_state if read_state is not None else AppState()
    store.write.return_value = write_ok
    return store


class TestApplyIntent:

    def test_unknown_intent(self, state):
        with pytest.raises(TypeError):
            apply_intent(state, object())

    def test_original_state_untouched(self, state):
        appt = make_appointment("a1", "c1", "1", "e1", NEXT_MONDAY, "09:00", 60)
        new_state = apply_intent(state, AddAppointment(appointment=appt))
        assert state.appointments == []
        assert new_state.appointments == [appt]

    def test_update_client_also_updates_session(self, state):
        state = state.model_copy(update={"current_user": state.client("c1")})
        new_state = apply_intent(state, UpdateClient(client_id="c1", changes={"name": "Dana K"}))
        assert new_state.client("c1").name == "Dana K"
        assert new_state.current_user.name == "Dana K"


class TestReconcile:

    def setup_method(self):
        self.local = AppState(
            services=[Service(id="local", name="Local", duration=30, price=10)],
            date_overrides={"2026-10-26": DayConfig(is_open=False)},
        )
        self.remote = AppState(
            services=[Service(id="remote", name="Remote", duration=30, price=10)],
            appointments=[make_appointment("a1", "c1", "remote", "e1", NEXT_MONDAY, "09:00", 30)],
        )

    def test_admin_keeps_config(self):
        merged = reconcile(self.local, self.remote, is_admin=True)
        assert [s.id for s in merged.services] == ["local"]
        assert "2026-10-26" in merged.date_overrides
        assert [a.id for a in merged.appointments] == ["a1"]

    def test_client_adopts_remote(self):
        merged = reconcile(self.local, self.remote, is_admin=False)
        assert [s.id for s in merged.services] == ["remote"]
        assert merged.date_overrides == {}

    def test_client_session_refreshed_from_remote(self, state):
        local = state.model_copy(update={"current_user": state.client("c1")})
        renamed = [c.model_copy(update={"name": "Dana K"}) if c.id == "c1" else c for c in state.clients]
        remote = state.model_copy(update={"clients": renamed})

        merged = reconcile(local, remote, is_admin=False)
        assert merged.current_user.name == "Dana K"


class TestTransact:

    def test_second_writer_sees_first_booking(self, state, now, ids):
        portal = AppStateService(make_store(), initial=state)

        first = portal.transact(lambda s: book(s, "c1", "1", "e1", NEXT_MONDAY, "09:00", now=now, id_factory=ids))
        second = portal.transact(lambda s: book(s, "c2", "1", "e1", NEXT_MONDAY, "09:00", now=now, id_factory=ids))

        assert first.ok
        assert second.rejection.kind == RejectionKind.slot_occupied
        assert len(portal.snapshot().appointments) == 1
        assert portal.dirty

    def test_rejection_leaves_state_clean(self, state, now, ids):
        portal = AppStateService(make_store(), initial=state)
        portal.transact(lambda s: book(s, "ghost", "1", "e1", NEXT_MONDAY, "09:00", now=now, id_factory=ids))
        assert not portal.dirty
        assert portal.snapshot() is state


class TestSync:

    def test_guard_blocks_sync_after_local_change(self, state, now, ids):
        clock = FakeClock()
        store = make_store(read_state=AppState())
        portal = AppStateService(store, initial=state, guard_seconds=5, clock=clock)
        portal.transact(lambda s: book(s, "c1", "1", "e1", NEXT_MONDAY, "09:00", now=now, id_factory=ids))

        clock.now += 2
        assert asyncio.run(portal.sync()) is False
        store.read.assert_not_awaited()
        assert len(portal.snapshot().appointments) == 1

    def test_sync_after_guard_flushes_then_reads(self, state, now, ids):
        clock = FakeClock()
        store = make_store()
        portal = AppStateService(store, initial=state, guard_seconds=5, clock=clock)
        portal.transact(lambda s: book(s, "c1", "1", "e1", NEXT_MONDAY, "09:00", now=now, id_factory=ids))
        store.read.return_value = portal.snapshot()

        clock.now += 6
        assert asyncio.run(portal.sync()) is True
        store.write.assert_awaited_once()
        store.read.assert_awaited_once()
        assert not portal.dirty

    def test_failed_write_keeps_local_changes(self, state, now, ids):
        store = make_store(read_state=AppState(), write_ok=False)
        portal = AppStateService(store, initial=state, guard_seconds=0)
        portal.transact(lambda s: book(s, "c1", "1", "e1", NEXT_MONDAY, "09:00", now=now, id_factory=ids))

        assert asyncio.run(portal.sync()) is False
        assert portal.dirty
        store.read.assert_not_awaited()
        assert len(portal.snapshot().appointments) == 1

    def test_forced_sync_ignores_guard(self, state):
        remote = state.model_copy(update={"appointments": [make_appointment("r1", "c2", "1", "e2", NEXT_MONDAY, "09:00", 60)]})
        clock = FakeClock()
        portal = AppStateService(make_store(read_state=remote), initial=state, guard_seconds=5, clock=clock)
        portal.dispatch([])

        assert asyncio.run(portal.sync(force=True)) is True
        assert [a.id for a in portal.snapshot().appointments] == ["r1"]

    def test_flush_when_clean_does_nothing(self, state):
        store = make_store()
        portal = AppStateService(store, initial=state)
        assert asyncio.run(portal.flush()) is False
        store.write.assert_not_awaited()

    def test_load_replaces_state(self, state):
        portal = AppStateService(make_store(read_state=state))
        loaded = asyncio.run(portal.load())
        assert portal.snapshot() is loaded
        assert not portal.dirty
