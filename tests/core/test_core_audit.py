"""
Tests for core.audit - settings audit entries and recorders.
"""

import asyncio
from datetime import datetime, timezone

import pytest

from core.audit import InMemoryAuditLog, SettingsAuditEntry, StoreAuditRecorder, encode_state
from core.policies.models import Policy, Scope, VisibilityPreset
from core.settings_store import InMemoryOverrideStore


NOW = datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


def _entry(**overrides):
    data = dict(
        scope=Scope.TRIAL,
        scope_id="7",
        policy=Policy.VISIBILITY,
        actor="Alex",
        from_value=None,
        to_value="open",
        occurred_at=NOW,
    )
    data.update(overrides)
    return SettingsAuditEntry(**data)


# ── SettingsAuditEntry ───────────────────────────────────────

class TestSettingsAuditEntry:
    def test_frozen_immutability(self):
        entry = _entry()
        with pytest.raises(AttributeError):
            entry.actor = "Sam"

    def test_requires_timezone(self):
        with pytest.raises(ValueError, match="timezone-aware"):
            _entry(occurred_at=datetime(2025, 6, 15, 12, 0, 0))

    def test_rejects_raw_scope(self):
        with pytest.raises(ValueError, match="Scope"):
            _entry(scope="trial")

    def test_description(self):
        assert _entry().description == "Trial Level 7: visibility inherited -> open by Alex"
        removed = _entry(from_value="open", to_value=None, actor="")
        assert removed.description == "Trial Level 7: visibility open -> inherited by unknown"

    def test_to_dict(self):
        data = _entry().to_dict()
        assert data["scope"] == "trial"
        assert data["from_value"] is None
        assert data["occurred_at"] == NOW.isoformat()

    def test_encode_state(self):
        assert encode_state(Policy.VISIBILITY, VisibilityPreset.REVIEW) == "review"
        assert encode_state(Policy.SELF_CHECKIN, True) == "true"
        assert encode_state(Policy.SELF_CHECKIN, None) is None


# ── Recorders ────────────────────────────────────────────────

class TestRecorders:
    def test_in_memory_log_is_append_only(self):
        log = InMemoryAuditLog()
        asyncio.run(log.record(Scope.SHOW, "show-1", Policy.SELF_CHECKIN, "Alex", "true", "false", NOW))
        asyncio.run(log.record(Scope.CLASS, 70, Policy.VISIBILITY, "Alex", None, "open", NOW))
        assert len(log.entries) == 2
        assert log.for_scope(Scope.CLASS, 70)[0].scope_id == "70"
        assert log.for_scope(Scope.TRIAL, 70) == ()

    def test_store_recorder_forwards(self):
        store = InMemoryOverrideStore()
        recorder = StoreAuditRecorder(store)
        asyncio.run(recorder.record(Scope.TRIAL, 7, Policy.VISIBILITY, "Alex", "open", None, NOW))
        (row,) = store.audit_rows
        assert row == {
            "scope": "trial",
            "scope_id": "7",
            "policy": "visibility",
            "actor": "Alex",
            "from_value": "open",
            "to_value": None,
            "occurred_at": NOW,
        }
