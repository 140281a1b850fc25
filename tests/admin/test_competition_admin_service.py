"""
Tests - Competition Admin Service
=================================
Handlers routed through the identity gate, end to end over the
in-memory store.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from core.admin import CompetitionAdminService
from core.audit import InMemoryAuditLog
from core.context import ActorCell
from core.policies.errors import ErrorCode
from core.policies.models import INHERITED, ClassInfo, Custom, Policy, Scope, VisibilityPreset
from core.policies.visibility import ViewerRole, VisibleResultFields
from core.settings_store import InMemoryOverrideStore
from core.time import FixedClock


SHOW = "show-1"
T0 = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
CLASSES = (
    ClassInfo(70, 7, "Container", "Novice", "A"),
    ClassInfo(71, 7, "Interior", "Novice"),
    ClassInfo(80, 8, "Exterior", "Advanced"),
)


def _service(actor: str = "", audit=None):
    store = InMemoryOverrideStore(clock=FixedClock(T0))
    store.add_show(SHOW)
    store.add_trial(SHOW, 7)
    store.add_trial(SHOW, 8)
    for info in CLASSES:
        store.add_class(info.trial_id, info.id)
    service = CompetitionAdminService(
        show_id=SHOW,
        store=store,
        actor=ActorCell(actor),
        audit=audit,
        clock=FixedClock(T0),
    )
    assert asyncio.run(service.load((7, 8), CLASSES)).success
    return store, service


class TestVisibilityScenario:
    def test_trial_override_lifecycle(self):
        store, service = _service("Alex")
        visibility = service.visibility

        async def scenario():
            assert visibility.effective_for_trial(7) is VisibilityPreset.STANDARD

            assert (await service.set_trial_visibility(7, VisibilityPreset.OPEN)).success
            assert visibility.trial_state(7) == Custom(VisibilityPreset.OPEN)
            assert visibility.effective_for_trial(7) is VisibilityPreset.OPEN

            assert (await service.set_trial_visibility(7, VisibilityPreset.STANDARD)).success
            assert visibility.trial_state(7) is INHERITED
            assert store.get_override(Scope.TRIAL, 7, Policy.VISIBILITY) is None

            assert (await service.set_show_visibility(VisibilityPreset.REVIEW)).success
            assert visibility.effective_for_trial(7) is VisibilityPreset.REVIEW
            assert visibility.effective_for_class(71) is VisibilityPreset.REVIEW

        asyncio.run(scenario())

    def test_store_audit_trail(self):
        store, service = _service("Alex")
        asyncio.run(service.set_trial_visibility(7, VisibilityPreset.OPEN))
        asyncio.run(service.remove_trial_visibility(7))
        rows = store.audit_rows
        assert [(r["scope"], r["scope_id"], r["from_value"], r["to_value"]) for r in rows] == [
            ("trial", "7", None, "open"),
            ("trial", "7", "open", None),
        ]
        assert {r["actor"] for r in rows} == {"Alex"}


class TestIdentityGate:
    def test_no_actor_blocks_until_named(self):
        store, service = _service()
        writes_before = [c for c in store.calls if c[0].startswith("write")]

        async def scenario():
            blocked = await service.set_show_self_checkin(False)
            assert blocked.code == ErrorCode.ACTOR_REQUIRED
            assert service.prompt.is_open
            assert service.self_checkin.show_default is True
            assert [c for c in store.calls if c[0].startswith("write")] == writes_before

            replayed = await service.submit_admin_name("Jordan")
            assert replayed.success

        asyncio.run(scenario())
        assert service.actor.get() == "Jordan"
        assert service.self_checkin.show_default is False
        writes = [c for c in store.calls if c[0] == "write_show_default"]
        assert writes == [("write_show_default", SHOW, Policy.SELF_CHECKIN, False, "Jordan")]

    def test_dismissed_prompt_never_replays(self):
        store, service = _service()

        async def scenario():
            await service.set_trial_self_checkin(7, False)
            service.dismiss_admin_prompt()
            await service.submit_admin_name("Jordan")

        asyncio.run(scenario())
        assert service.self_checkin.trial_state(7) is INHERITED
        assert store.override_count == 0


class TestBulkHandlers:
    def test_bulk_disable_self_checkin(self):
        audit = InMemoryAuditLog()
        store, service = _service("Alex", audit)
        service.bulk.toggle(70)
        service.bulk.toggle(80)

        result = asyncio.run(service.bulk_disable_self_checkin())
        assert result.success
        assert result.affected_labels == ("Container (Novice • A)", "Exterior (Advanced)")
        assert service.self_checkin.is_enabled_for_class(70) is False
        assert service.self_checkin.is_enabled_for_class(71) is True
        assert service.bulk.selected == frozenset()
        assert len(audit.entries) == 2

    def test_bulk_visibility_replays_after_name(self):
        store, service = _service()
        service.bulk.select_all(service.classes)

        async def scenario():
            blocked = await service.bulk_set_visibility(VisibilityPreset.OPEN)
            assert not blocked.success
            assert service.bulk.selected == frozenset({70, 71, 80})
            return await service.submit_admin_name("Robin")

        result = asyncio.run(scenario())
        assert result.success
        assert len(result.affected_labels) == 3
        for info in CLASSES:
            assert service.visibility.effective_for_class(info.id) is VisibilityPreset.OPEN

    def test_one_selection_drives_both_policies(self):
        store, service = _service("Alex")
        service.bulk.select_all(service.classes)

        result = asyncio.run(service.bulk_disable_self_checkin())
        assert result.success
        assert len(result.affected_labels) == 3
        for info in CLASSES:
            assert service.self_checkin.is_enabled_for_class(info.id) is False

        service.bulk.toggle(71)
        result = asyncio.run(service.bulk_set_visibility(VisibilityPreset.REVIEW))
        assert result.success
        assert result.affected_labels == ("Interior (Novice)",)
        assert service.visibility.class_state(71) == Custom(VisibilityPreset.REVIEW)
        assert service.bulk.selected == frozenset()

    def test_empty_shared_selection_names_the_policy(self):
        _, service = _service("Alex")
        result = asyncio.run(service.bulk_enable_self_checkin())
        assert result.code == ErrorCode.EMPTY_SELECTION
        assert "self check-in" in result.error

    def test_class_handlers_use_loaded_trial(self):
        store, service = _service("Alex")
        asyncio.run(service.set_trial_visibility(7, VisibilityPreset.REVIEW))
        asyncio.run(service.set_class_visibility(70, VisibilityPreset.REVIEW))
        assert service.visibility.class_state(70) is INHERITED
        asyncio.run(service.set_class_visibility(70, VisibilityPreset.OPEN))
        assert service.visibility.class_state(70) == Custom(VisibilityPreset.OPEN)
        asyncio.run(service.remove_class_visibility(70))
        assert service.visibility.effective_for_class(70) is VisibilityPreset.REVIEW


class TestDetach:
    def test_detach_closes_prompt_and_controllers(self):
        _, service = _service()
        asyncio.run(service.set_show_visibility(VisibilityPreset.OPEN))
        assert service.prompt.is_open
        service.detach()
        assert not service.prompt.is_open
        assert service.visibility.detached
        assert service.self_checkin.detached
        assert service.releases.detached


class TestResultsRelease:
    def test_release_waits_for_admin_name(self):
        store, service = _service()
        service.bulk.toggle(70)

        async def scenario():
            blocked = await service.bulk_release_results()
            assert blocked.code == ErrorCode.ACTOR_REQUIRED
            assert store.get_release(70) is None
            assert service.bulk.selected == frozenset({70})
            return await service.submit_admin_name("Robin")

        result = asyncio.run(scenario())
        assert result.success
        assert result.affected_labels == ("Container (Novice • A)",)
        release = store.get_release(70)
        assert release.released_by == "Robin"
        assert release.released_at == T0
        assert service.releases.is_released(70)
        assert service.bulk.selected == frozenset()

    def test_release_unlocks_review_fields(self):
        store, service = _service("Alex")
        asyncio.run(service.set_show_visibility(VisibilityPreset.REVIEW))
        hidden = VisibleResultFields(placement=False, qualification=False, time=False, faults=False)
        assert service.visible_fields_for_class(70, ViewerRole.EXHIBITOR, True) == hidden

        service.bulk.toggle(70)
        assert asyncio.run(service.bulk_release_results()).success
        shown = service.visible_fields_for_class(70, ViewerRole.EXHIBITOR, True)
        assert shown == VisibleResultFields(placement=True, qualification=True, time=True, faults=True)
        assert service.visible_fields_for_class(71, ViewerRole.EXHIBITOR, True) == hidden

    def test_failed_release_keeps_selection(self):
        store, service = _service("Alex")
        service.bulk.toggle(70)
        service.bulk.toggle(80)
        store.fail_for_class(80, RuntimeError())

        result = asyncio.run(service.bulk_release_results())
        assert not result.success
        assert result.failed_labels == ("Exterior (Advanced)",)
        assert service.bulk.selected == frozenset({70, 80})
        assert service.releases.is_released(70)
        assert not service.releases.is_released(80)

    def test_load_restores_releases(self):
        store, service = _service("Alex")
        service.bulk.toggle(71)
        asyncio.run(service.bulk_release_results())

        reloaded = CompetitionAdminService(show_id=SHOW, store=store, clock=FixedClock(T0))
        assert asyncio.run(reloaded.load((7, 8), CLASSES)).success
        assert reloaded.releases.is_released(71)
        assert reloaded.releases.release_for(71).released_by == "Alex"
