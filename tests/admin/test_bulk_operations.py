"""
Tests - Bulk Operation Coordinator
==================================
Selection handling, aggregate apply and results release over the
selected classes.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from core.admin.bulk import EMPTY_RELEASE_MESSAGE, BulkOperationCoordinator
from core.admin.releases import ResultsReleaseController
from core.admin.settings import SelfCheckinSettingsController, VisibilitySettingsController
from core.audit import InMemoryAuditLog
from core.policies.errors import ErrorCode, PersistenceError
from core.policies.models import INHERITED, ClassInfo, Custom, Policy, Scope, VisibilityPreset
from core.settings_store import InMemoryOverrideStore
from core.time import FixedClock


SHOW = "show-1"
T0 = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
CLASSES = (
    ClassInfo(1, 7, "Container", "Novice", "A"),
    ClassInfo(2, 7, "Container", "Novice", "B"),
    ClassInfo(3, 7, "Interior", "Advanced"),
    ClassInfo(4, 8, "Buried", "Master"),
)


def _setup(controller_cls=VisibilitySettingsController):
    store = InMemoryOverrideStore(clock=FixedClock(T0))
    store.add_show(SHOW)
    store.add_trial(SHOW, 7)
    store.add_trial(SHOW, 8)
    for info in CLASSES:
        store.add_class(info.trial_id, info.id)
    audit = InMemoryAuditLog()
    controller = controller_cls(SHOW, store, audit, FixedClock(T0))
    assert asyncio.run(controller.load((7, 8), CLASSES)).success
    return store, audit, controller, BulkOperationCoordinator()


class TestSelection:
    def test_toggle(self):
        bulk = BulkOperationCoordinator()
        bulk.toggle(1)
        bulk.toggle(2)
        assert bulk.selected == frozenset({1, 2})
        bulk.toggle(1)
        assert bulk.selected == frozenset({2})
        assert bulk.is_selected(2)

    def test_select_all_and_clear(self):
        bulk = BulkOperationCoordinator()
        bulk.select_all(CLASSES)
        assert bulk.selected == frozenset({1, 2, 3, 4})
        bulk.clear()
        assert bulk.selected == frozenset()

    def test_selected_is_a_snapshot(self):
        bulk = BulkOperationCoordinator()
        bulk.toggle(1)
        snapshot = bulk.selected
        bulk.toggle(2)
        assert snapshot == frozenset({1})


class TestApply:
    def test_empty_selection_fails_without_store_call(self):
        store, _, controller, bulk = _setup()
        calls_before = len(store.calls)
        result = asyncio.run(bulk.apply(controller, VisibilityPreset.OPEN, CLASSES, "Alex"))
        assert not result.success
        assert result.code == ErrorCode.EMPTY_SELECTION
        assert "select at least one class" in result.error
        assert len(store.calls) == calls_before

    def test_self_checkin_empty_selection_message(self):
        _, _, controller, bulk = _setup(SelfCheckinSettingsController)
        result = asyncio.run(bulk.apply(controller, False, CLASSES, "Alex"))
        assert result.error == "Please select at least one class to apply self check-in settings."

    def test_success_clears_selection_and_audits_each_class(self):
        store, audit, controller, bulk = _setup()
        for class_id in (1, 2, 3):
            bulk.toggle(class_id)

        result = asyncio.run(bulk.apply(controller, VisibilityPreset.REVIEW, CLASSES, "Alex"))
        assert result.success
        assert result.affected_labels == (
            "Container (Novice • A)",
            "Container (Novice • B)",
            "Interior (Advanced)",
        )
        assert bulk.selected == frozenset()
        for class_id in (1, 2, 3):
            assert controller.class_state(class_id) == Custom(VisibilityPreset.REVIEW)
            assert store.get_override(Scope.CLASS, class_id, Policy.VISIBILITY) is not None
        assert controller.class_state(4) is INHERITED
        assert len(audit.entries) == 3
        assert {e.scope_id for e in audit.entries} == {"1", "2", "3"}

    def test_one_store_call_per_class(self):
        store, _, controller, bulk = _setup()
        bulk.select_all(CLASSES)
        asyncio.run(bulk.apply(controller, VisibilityPreset.OPEN, CLASSES, "Alex"))
        writes = [c for c in store.calls if c[0] == "write_class_overrides"]
        assert sorted(c[1] for c in writes) == [(1,), (2,), (3,), (4,)]

    def test_failure_keeps_selection(self):
        store, audit, controller, bulk = _setup()
        for class_id in (1, 2, 3):
            bulk.toggle(class_id)
        store.fail_for_class(2, PersistenceError("row is locked"))

        result = asyncio.run(bulk.apply(controller, VisibilityPreset.OPEN, CLASSES, "Alex"))
        assert not result.success
        assert result.code == ErrorCode.PERSISTENCE_FAILED
        assert result.error == "row is locked"
        assert result.failed_labels == ("Container (Novice • B)",)
        assert result.affected_labels == ("Container (Novice • A)", "Interior (Advanced)")
        assert bulk.selected == frozenset({1, 2, 3})
        assert controller.class_state(2) is INHERITED
        assert controller.class_state(1) == Custom(VisibilityPreset.OPEN)
        assert {e.scope_id for e in audit.entries} == {"1", "3"}

    def test_failure_without_message_uses_generic(self):
        store, _, controller, bulk = _setup(SelfCheckinSettingsController)
        bulk.toggle(4)
        store.fail_for_class(4, RuntimeError())
        result = asyncio.run(bulk.apply(controller, False, CLASSES, "Alex"))
        assert result.error == "Failed to update class self check-in"
        assert bulk.selected == frozenset({4})

    def test_unknown_entity_is_labelled_by_id(self):
        store, _, controller, bulk = _setup()
        store.add_class(8, 99)
        bulk.toggle(99)
        result = asyncio.run(bulk.apply(controller, VisibilityPreset.OPEN, CLASSES, "Alex"))
        assert result.success
        assert result.affected_labels == ("Class 99",)

    def test_value_equal_to_inherited_deletes_override(self):
        store, _, controller, bulk = _setup()
        asyncio.run(controller.set_class_override(1, 7, VisibilityPreset.OPEN, "Alex"))
        bulk.toggle(1)
        bulk.toggle(2)

        result = asyncio.run(bulk.apply(controller, VisibilityPreset.STANDARD, CLASSES, "Alex"))
        assert result.success
        assert controller.class_state(1) is INHERITED
        assert controller.class_state(2) is INHERITED
        assert store.override_count == 0
        deletes = [c for c in store.calls if c[0] == "delete_class_overrides"]
        assert len(deletes) == 2

    def test_invalid_value_rejected(self):
        store, _, controller, bulk = _setup(SelfCheckinSettingsController)
        bulk.toggle(1)
        calls_before = len(store.calls)
        result = asyncio.run(bulk.apply(controller, "sometimes", CLASSES, "Alex"))
        assert result.code == ErrorCode.INVALID_VALUE
        assert len(store.calls) == calls_before
        assert bulk.selected == frozenset({1})

    def test_identical_custom_value_is_not_audited(self):
        store, audit, controller, bulk = _setup()
        asyncio.run(controller.set_class_override(1, 7, VisibilityPreset.OPEN, "Alex"))
        assert len(audit.entries) == 1
        bulk.toggle(1)

        result = asyncio.run(bulk.apply(controller, VisibilityPreset.OPEN, CLASSES, "Sam"))
        assert result.success
        assert controller.class_state(1) == Custom(VisibilityPreset.OPEN)
        assert len(audit.entries) == 1
        assert store.get_override(Scope.CLASS, 1, Policy.VISIBILITY).actor == "Sam"


class TestSharedSelection:
    def _both(self):
        store, audit, visibility, bulk = _setup()
        self_checkin = SelfCheckinSettingsController(SHOW, store, audit, FixedClock(T0))
        assert asyncio.run(self_checkin.load((7, 8), CLASSES)).success
        return store, visibility, self_checkin, bulk

    def test_one_selection_drives_self_checkin(self):
        _, _, self_checkin, bulk = self._both()
        bulk.select_all(CLASSES)

        result = asyncio.run(bulk.apply(self_checkin, False, CLASSES, "Alex"))
        assert result.success
        assert len(result.affected_labels) == 4
        for info in CLASSES:
            assert self_checkin.class_state(info.id) == Custom(False)
        assert bulk.selected == frozenset()

    def test_selection_kept_by_one_policy_serves_the_other(self):
        store, visibility, self_checkin, bulk = self._both()
        bulk.toggle(1)
        bulk.toggle(3)
        store.fail_for_class(3, PersistenceError("row is locked"))

        first = asyncio.run(bulk.apply(visibility, VisibilityPreset.OPEN, CLASSES, "Alex"))
        assert not first.success
        assert bulk.selected == frozenset({1, 3})

        second = asyncio.run(bulk.apply(self_checkin, False, CLASSES, "Alex"))
        assert second.code == ErrorCode.PERSISTENCE_FAILED
        assert second.affected_labels == ("Container (Novice • A)",)
        assert second.failed_labels == ("Interior (Advanced)",)
        assert visibility.class_state(1) == Custom(VisibilityPreset.OPEN)
        assert self_checkin.class_state(1) == Custom(False)
        assert self_checkin.class_state(3) is INHERITED


class TestReleaseResults:
    def _releases(self):
        store, _, _, bulk = _setup()
        releases = ResultsReleaseController(SHOW, store, FixedClock(T0))
        assert asyncio.run(releases.load()).success
        return store, releases, bulk

    def test_empty_selection_fails_without_store_call(self):
        store, releases, bulk = self._releases()
        calls_before = len(store.calls)
        result = asyncio.run(bulk.release_results(releases, CLASSES, "Alex"))
        assert result.code == ErrorCode.EMPTY_SELECTION
        assert result.error == EMPTY_RELEASE_MESSAGE
        assert len(store.calls) == calls_before

    def test_missing_actor_rejected(self):
        store, releases, bulk = self._releases()
        bulk.toggle(1)
        calls_before = len(store.calls)
        result = asyncio.run(bulk.release_results(releases, CLASSES, "  "))
        assert result.code == ErrorCode.ACTOR_REQUIRED
        assert len(store.calls) == calls_before
        assert bulk.selected == frozenset({1})

    def test_success_records_actor_and_time_and_clears_selection(self):
        store, releases, bulk = self._releases()
        bulk.toggle(1)
        bulk.toggle(4)

        result = asyncio.run(bulk.release_results(releases, CLASSES, "Alex"))
        assert result.success
        assert result.affected_labels == ("Container (Novice • A)", "Buried (Master)")
        assert bulk.selected == frozenset()
        for class_id in (1, 4):
            stored = store.get_release(class_id)
            assert stored.released_by == "Alex"
            assert stored.released_at == T0
            assert releases.release_for(class_id) == stored
        assert not releases.is_released(2)
        released = [c for c in store.calls if c[0] == "release_class_results"]
        assert sorted(c[1] for c in released) == [(1,), (4,)]

    def test_failure_keeps_selection(self):
        store, releases, bulk = self._releases()
        bulk.toggle(1)
        bulk.toggle(2)
        store.fail_for_class(2, RuntimeError())

        result = asyncio.run(bulk.release_results(releases, CLASSES, "Alex"))
        assert not result.success
        assert result.code == ErrorCode.PERSISTENCE_FAILED
        assert result.error == "Failed to release results"
        assert result.failed_labels == ("Container (Novice • B)",)
        assert result.affected_labels == ("Container (Novice • A)",)
        assert bulk.selected == frozenset({1, 2})
        assert releases.is_released(1)
        assert not releases.is_released(2)
        assert store.get_release(2) is None

    def test_load_reads_existing_releases(self):
        store, releases, bulk = self._releases()
        bulk.toggle(3)
        asyncio.run(bulk.release_results(releases, CLASSES, "Alex"))

        fresh = ResultsReleaseController(SHOW, store, FixedClock(T0))
        assert asyncio.run(fresh.load()).success
        assert set(fresh.releases) == {3}
        assert fresh.release_for(3).released_by == "Alex"
