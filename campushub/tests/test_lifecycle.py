"""
Test the lifecycle manager: scenarios, invariants, persistence behaviour.
"""
import random
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock

import pytest

from campushub.models.events import EventStatus
from campushub.services.errors import PersistenceError
from campushub.services.gateways import CAMPUSHUB_EVENTS, CAMPUSHUB_REGISTRATIONS, unwrap_collection
from campushub.services.lifecycle import LifecycleManager
from campushub.services.results import Failure, Ok


def assert_invariants(core: LifecycleManager):
    for event in core.events.list():
        active = core.registrations.active_count(event.id)
        assert 0 <= event.remaining_seats <= event.total_capacity
        assert event.remaining_seats == event.total_capacity - active
        pairs = [r.student_id for r in core.registrations.list_active(event.id)]
        assert len(pairs) == len(set(pairs))


class TestScenarios:
    def test_fill_and_free_seats(self, core, make_event):
        event = make_event(total_capacity=2)

        assert core.register_for_event(event.id, "A").ok
        assert core.get_event(event.id).value.remaining_seats == 1
        assert core.register_for_event(event.id, "B").ok
        assert core.get_event(event.id).value.remaining_seats == 0

        result = core.register_for_event(event.id, "C")
        assert isinstance(result, Failure)
        assert result.code == "event_full"
        assert core.get_event(event.id).value.remaining_seats == 0

        assert core.unregister(event.id, "A").ok
        assert core.get_event(event.id).value.remaining_seats == 1
        assert_invariants(core)

    def test_capacity_cannot_drop_below_registrations(self, core, make_event):
        event = make_event(total_capacity=10)
        for student in ("s1", "s2", "s3"):
            assert core.register_for_event(event.id, student).ok

        rejected = core.update_event(event.id, {"total_capacity": 2})
        assert rejected.code == "capacity_violation"
        assert core.get_event(event.id).value.total_capacity == 10

        accepted = core.update_event(event.id, {"total_capacity": 5})
        assert accepted.ok
        assert accepted.value.remaining_seats == 2
        assert_invariants(core)

    def test_postpone_upcoming_event(self, core, make_event):
        event = make_event(total_capacity=4)
        core.register_for_event(event.id, "s1")

        result = core.postpone_event(event.id, "2025-12-01 15:00")

        assert result.ok
        assert result.value.status == EventStatus.POSTPONED
        assert result.value.date == "2025-12-01"
        assert result.value.time == "15:00"
        assert result.value.remaining_seats == 3

    def test_postpone_twice(self, core, make_event):
        event = make_event()
        core.postpone_event(event.id, "2025-12-01", "15:00")

        result = core.postpone_event(event.id, "2025-12-08", "09:30")

        assert result.value.status == EventStatus.POSTPONED
        assert result.value.date == "2025-12-08"

    @pytest.mark.parametrize("date_time", ["", "   ", "2025-12-01", "not-a-date 15:00"])
    def test_postpone_requires_valid_date_and_time(self, core, make_event, date_time):
        event = make_event()

        result = core.postpone_event(event.id, date_time)

        assert result.code == "validation_error"
        assert core.get_event(event.id).value.status == EventStatus.UPCOMING

    def test_cancel_then_register(self, core, make_event):
        event = make_event()

        cancelled = core.cancel_event(event.id)
        assert cancelled.value.status == EventStatus.CANCELLED

        result = core.register_for_event(event.id, "s1")
        assert result.code == "event_cancelled"

    def test_cancelled_is_terminal(self, core, make_event):
        event = make_event()
        core.cancel_event(event.id)

        assert core.cancel_event(event.id).code == "event_cancelled"
        assert core.update_event(event.id, {"title": "Revived"}).code == "event_cancelled"
        assert core.postpone_event(event.id, "2025-12-01 15:00").code == "event_cancelled"
        assert core.get_event(event.id).value.status == EventStatus.CANCELLED

    def test_registrations_survive_cancellation(self, core, make_event):
        event = make_event(total_capacity=3)
        core.register_for_event(event.id, "s1")
        core.cancel_event(event.id)

        assert core.get_registered_count(event.id).value == 1
        assert core.unregister(event.id, "s1").ok
        assert core.get_registered_count(event.id).value == 0


class TestResults:
    def test_unknown_event_is_a_failure_not_an_exception(self, core):
        for result in (
            core.get_event("missing"),
            core.update_event("missing", {"title": "x"}),
            core.cancel_event("missing"),
            core.postpone_event("missing", "2025-12-01 15:00"),
            core.register_for_event("missing", "s1"),
            core.get_registered_count("missing"),
            core.get_participants("missing"),
            core.remove_participant("missing", "s1"),
        ):
            assert isinstance(result, Failure)
            assert result.code == "event_not_found"

    def test_validation_failure_carries_field_errors(self, core, event_data):
        result = core.create_event(event_data(total_capacity=0))
        assert result.code == "validation_error"
        assert "total_capacity" in result.errors
        assert core.list_events().value == []

    def test_unregister_without_registration(self, core, make_event):
        event = make_event()
        assert core.unregister(event.id, "s1").code == "not_registered"

    def test_duplicate_registration(self, core, make_event):
        event = make_event()
        core.register_for_event(event.id, "s1")
        assert core.register_for_event(event.id, "s1").code == "duplicate_registration"
        assert core.get_registered_count(event.id).value == 1

    def test_register_remove_round_trip(self, core, make_event):
        event = make_event(total_capacity=7)
        before = core.get_event(event.id).value.remaining_seats

        core.register_for_event(event.id, "s1")
        core.unregister(event.id, "s1")

        assert core.get_event(event.id).value.remaining_seats == before


class TestBulkCancel:
    def test_best_effort(self, core, make_event):
        first = make_event(title="One")
        second = make_event(title="Two")
        core.cancel_event(second.id)

        outcomes = core.cancel_events([first.id, second.id, "missing"])

        assert outcomes[first.id].ok
        assert outcomes[second.id].code == "event_cancelled"
        assert outcomes["missing"].code == "event_not_found"
        assert core.get_event(first.id).value.status == EventStatus.CANCELLED

    def test_duplicate_ids_are_cancelled_once(self, core, make_event):
        event = make_event()
        outcomes = core.cancel_events([event.id, event.id])
        assert list(outcomes) == [event.id]
        assert outcomes[event.id].ok


class TestPersistence:
    def test_state_survives_restart(self, core, sql_gateway, make_event):
        event = make_event(total_capacity=3)
        core.register_for_event(event.id, "s1")
        core.postpone_event(event.id, "2025-12-01 15:00")

        restarted = LifecycleManager(sql_gateway)
        restarted.start()

        reloaded = restarted.get_event(event.id).value
        assert reloaded.status == EventStatus.POSTPONED
        assert reloaded.remaining_seats == 2
        assert restarted.get_registered_count(event.id).value == 1
        assert restarted.revision == core.revision

    def test_each_commit_bumps_revision(self, core, sql_gateway, make_event):
        start = core.revision
        event = make_event()
        core.register_for_event(event.id, "s1")

        assert core.revision == start + 2
        revision, items = unwrap_collection(sql_gateway.load(CAMPUSHUB_EVENTS))
        assert revision == core.revision
        assert items[0]["id"] == event.id

    def test_rejected_operation_writes_nothing(self, core, make_event):
        event = make_event(total_capacity=1)
        revision = core.revision
        core.register_for_event(event.id, "s1")
        core.register_for_event(event.id, "s2")
        assert core.revision == revision + 1

    def test_load_reconciles_remaining_seats(self, core, sql_gateway, make_event):
        event = make_event(total_capacity=5)
        core.register_for_event(event.id, "s1")
        core.register_for_event(event.id, "s2")

        revision, items = unwrap_collection(sql_gateway.load(CAMPUSHUB_EVENTS))
        items[0]["remaining_seats"] = 5
        sql_gateway.save(CAMPUSHUB_EVENTS, {"revision": revision, "items": items})

        restarted = LifecycleManager(sql_gateway)
        restarted.start()

        assert restarted.get_event(event.id).value.remaining_seats == 3
        _, healed = unwrap_collection(sql_gateway.load(CAMPUSHUB_EVENTS))
        assert healed[0]["remaining_seats"] == 3

    def test_negative_stored_seats_are_recomputed(self, core, sql_gateway, make_event):
        event = make_event(total_capacity=3)
        core.register_for_event(event.id, "s1")

        revision, items = unwrap_collection(sql_gateway.load(CAMPUSHUB_EVENTS))
        items[0]["remaining_seats"] = -1
        sql_gateway.save(CAMPUSHUB_EVENTS, {"revision": revision, "items": items})

        restarted = LifecycleManager(sql_gateway)
        restarted.start()

        assert restarted.get_event(event.id).value.remaining_seats == 2
        _, healed = unwrap_collection(sql_gateway.load(CAMPUSHUB_EVENTS))
        assert healed[0]["remaining_seats"] == 2

    def test_unusable_stored_seats_are_rewritten_even_when_recomputed_value_matches(
        self, core, sql_gateway, make_event
    ):
        event = make_event(total_capacity=1)
        core.register_for_event(event.id, "s1")

        revision, items = unwrap_collection(sql_gateway.load(CAMPUSHUB_EVENTS))
        items[0]["remaining_seats"] = "many"
        sql_gateway.save(CAMPUSHUB_EVENTS, {"revision": revision, "items": items})

        restarted = LifecycleManager(sql_gateway)
        restarted.start()

        assert restarted.get_event(event.id).value.remaining_seats == 0
        assert restarted.revision == revision + 1
        _, healed = unwrap_collection(sql_gateway.load(CAMPUSHUB_EVENTS))
        assert healed[0]["remaining_seats"] == 0

    def test_overbooked_log_is_reported(self, sql_gateway):
        sql_gateway.save(
            CAMPUSHUB_EVENTS,
            [{"id": "e1", "title": "Overbooked", "total_capacity": 1, "remaining_seats": 0}],
        )
        sql_gateway.save(
            CAMPUSHUB_REGISTRATIONS,
            [
                {"id": "r1", "event_id": "e1", "student_id": "s1", "status": "active"},
                {"id": "r2", "event_id": "e1", "student_id": "s2", "status": "active"},
            ],
        )

        manager = LifecycleManager(sql_gateway)
        manager.start()

        assert manager.over_capacity == ["e1"]
        assert manager.get_event("e1").value.remaining_seats == 0
        assert manager.register_for_event("e1", "s3").code == "event_full"

    def test_legacy_list_layout_loads(self, sql_gateway):
        sql_gateway.save(
            CAMPUSHUB_EVENTS,
            [{"id": "e1", "title": "Legacy", "total_capacity": 2, "remaining_seats": 2}],
        )
        sql_gateway.save(
            CAMPUSHUB_REGISTRATIONS,
            [{"id": "r1", "event_id": "e1", "student_id": "s1", "status": "active"}],
        )

        manager = LifecycleManager(sql_gateway)
        manager.start()

        assert manager.get_event("e1").value.remaining_seats == 1

    def test_malformed_snapshot_fails_start(self, sql_gateway):
        sql_gateway.save(CAMPUSHUB_EVENTS, [{"id": "e1", "title": "Broken", "total_capacity": 0}])
        with pytest.raises(PersistenceError):
            LifecycleManager(sql_gateway).start()

    def test_write_failure_keeps_mutation_and_retries(self, sql_gateway, event_data):
        writer = Mock()
        writer.write.side_effect = [PersistenceError("disk full"), None]
        manager = LifecycleManager(sql_gateway, writer=writer)
        manager.start()

        created = manager.create_event(event_data())
        assert created.ok
        assert manager.dirty
        assert manager.list_events().value[0].id == created.value.id

        manager.register_for_event(created.value.id, "s1")
        assert not manager.dirty
        retried = writer.write.call_args.args[0]
        assert len(retried.collections[CAMPUSHUB_EVENTS]) == 1

    def test_close_flushes_dirty_state(self, sql_gateway, event_data):
        writer = Mock()
        writer.write.side_effect = [PersistenceError("offline"), None]
        manager = LifecycleManager(sql_gateway, writer=writer)
        manager.start()
        manager.create_event(event_data())

        manager.close()

        assert writer.write.call_count == 2
        assert not manager.dirty


class TestSubscribers:
    def test_listeners_receive_snapshots(self, core, make_event):
        seen = []
        unsubscribe = core.subscribe(seen.append)

        event = make_event()
        core.register_for_event(event.id, "s1")
        core.register_for_event(event.id, "s1")  # rejected, no notification
        unsubscribe()
        core.cancel_event(event.id)

        assert [s.revision for s in seen] == [core.revision - 2, core.revision - 1]

    def test_concurrent_commits_notify_in_revision_order(self, core, make_event):
        event = make_event(total_capacity=5)
        seen = []
        first_call = threading.Event()

        def slow_first_listener(snapshot):
            if not first_call.is_set():
                first_call.set()
                time.sleep(0.2)
            seen.append(snapshot.revision)

        core.subscribe(slow_first_listener)
        with ThreadPoolExecutor(max_workers=2) as executor:
            first = executor.submit(core.register_for_event, event.id, "s1")
            assert first_call.wait(timeout=5)
            second = executor.submit(core.register_for_event, event.id, "s2")

        assert first.result().ok
        assert second.result().ok
        assert len(seen) == 2
        assert seen == sorted(seen)
        assert seen[-1] == core.revision

    def test_unsubscribe_twice_is_harmless(self, core, make_event):
        seen = []
        unsubscribe = core.subscribe(seen.append)
        unsubscribe()
        unsubscribe()
        make_event()
        assert seen == []

    def test_failing_listener_does_not_break_commit(self, core, event_data):
        core.subscribe(Mock(side_effect=RuntimeError("boom")))
        assert core.create_event(event_data()).ok


def test_invariants_hold_under_random_operations(core, event_data):
    rng = random.Random(1234)
    event_ids = [core.create_event(event_data(total_capacity=rng.randint(1, 4))).value.id for _ in range(3)]
    students = [f"s{i}" for i in range(6)]

    for _ in range(300):
        event_id = rng.choice(event_ids)
        student = rng.choice(students)
        action = rng.random()
        if action < 0.45:
            result = core.register_for_event(event_id, student)
        elif action < 0.75:
            result = core.unregister(event_id, student)
        elif action < 0.95:
            result = core.update_event(event_id, {"total_capacity": rng.randint(1, 5)})
        else:
            result = core.postpone_event(event_id, "2025-12-01 15:00")
        assert isinstance(result, (Ok, Failure))
        assert_invariants(core)
