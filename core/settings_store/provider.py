"""
Ringside Settings Store - Provider Protocol and In-Memory Provider
==================================================================
The override store persists show defaults, trial/class override rows
and the settings audit trail. Every call is a coroutine; the core
awaits it and never assumes how long it takes.

Deletes are idempotent: removing a row that does not exist succeeds.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from core.policies.errors import PersistenceError
from core.policies.models import (
    OverrideRecord,
    Policy,
    PolicyValue,
    ResultsRelease,
    Scope,
    ShowDefaults,
)


logger = logging.getLogger("ringside.store")


class OverrideStore(Protocol):
    async def read_show_default(self, show_id: str) -> ShowDefaults:
        ...

    async def write_show_default(
        self, show_id: str, policy: Policy, value: PolicyValue, actor: str
    ) -> None:
        ...

    async def read_trial_overrides(self, show_id: str) -> List[OverrideRecord]:
        ...

    async def write_trial_override(
        self, trial_id: int, policy: Policy, value: PolicyValue, actor: str
    ) -> None:
        ...

    async def delete_trial_override(self, trial_id: int, policy: Policy) -> None:
        ...

    async def read_class_overrides(self, show_id: str) -> List[OverrideRecord]:
        ...

    async def write_class_overrides(
        self,
        class_ids: Sequence[int],
        policy: Policy,
        value: PolicyValue,
        actor: str,
    ) -> None:
        ...

    async def delete_class_overrides(
        self, class_ids: Sequence[int], policy: Policy
    ) -> None:
        ...

    async def append_audit_entry(
        self,
        scope: Scope,
        scope_id,
        policy: Policy,
        actor: str,
        from_value: Optional[str],
        to_value: Optional[str],
        timestamp: datetime,
    ) -> None:
        ...

    async def read_results_releases(self, show_id: str) -> List[ResultsRelease]:
        ...

    async def release_class_results(
        self, class_ids: Sequence[int], actor: str, released_at: datetime
    ) -> None:
        ...


class InMemoryOverrideStore:
    """
    Deterministic in-memory store used by tests/bootstrap.

    Trials and classes must be registered before overrides can be
    written for them, mirroring the foreign keys of the real tables.
    Failures can be injected per call or per class id.
    """

    def __init__(self, clock=None) -> None:
        self._clock = clock
        self._show_defaults: Dict[str, ShowDefaults] = {}
        self._trial_show: Dict[int, str] = {}
        self._class_trial: Dict[int, int] = {}
        self._overrides: Dict[Tuple[Scope, int, Policy], OverrideRecord] = {}
        self._audit_rows: List[dict] = []
        self._releases: Dict[int, ResultsRelease] = {}
        self._fail_next: List[Exception] = []
        self._fail_classes: Dict[int, Exception] = {}
        self.calls: List[tuple] = []

    # ── seeding ───────────────────────────────────────────────

    def add_show(self, show_id: str, defaults: ShowDefaults | None = None) -> None:
        self._show_defaults[show_id] = defaults or ShowDefaults()

    def add_trial(self, show_id: str, trial_id: int) -> None:
        self._trial_show[trial_id] = show_id

    def add_class(self, trial_id: int, class_id: int) -> None:
        if trial_id not in self._trial_show:
            raise ValueError(f"Trial {trial_id} is not registered.")
        self._class_trial[class_id] = trial_id

    # ── failure injection ─────────────────────────────────────

    def fail_next(self, exc: Exception) -> None:
        """Make the next store call raise `exc`."""
        self._fail_next.append(exc)

    def fail_for_class(self, class_id: int, exc: Exception) -> None:
        """Make every class write, delete or release touching `class_id` raise `exc`."""
        self._fail_classes[class_id] = exc

    def _enter(self, name: str, *args) -> None:
        self.calls.append((name,) + args)
        if self._fail_next:
            raise self._fail_next.pop(0)

    # ── inspection ────────────────────────────────────────────

    def get_override(
        self, scope: Scope, scope_id: int, policy: Policy
    ) -> Optional[OverrideRecord]:
        return self._overrides.get((scope, scope_id, policy))

    @property
    def override_count(self) -> int:
        return len(self._overrides)

    @property
    def audit_rows(self) -> Tuple[dict, ...]:
        return tuple(self._audit_rows)

    def get_release(self, class_id: int) -> Optional[ResultsRelease]:
        return self._releases.get(class_id)

    # ── protocol ──────────────────────────────────────────────

    def _now(self) -> Optional[datetime]:
        return self._clock.now_utc() if self._clock is not None else None

    async def read_show_default(self, show_id: str) -> ShowDefaults:
        self._enter("read_show_default", show_id)
        return self._show_defaults.get(show_id, ShowDefaults())

    async def write_show_default(
        self, show_id: str, policy: Policy, value: PolicyValue, actor: str
    ) -> None:
        self._enter("write_show_default", show_id, policy, value, actor)
        current = self._show_defaults.get(show_id, ShowDefaults())
        self._show_defaults[show_id] = current.with_value(policy, value)

    async def read_trial_overrides(self, show_id: str) -> List[OverrideRecord]:
        self._enter("read_trial_overrides", show_id)
        return self._records(Scope.TRIAL, lambda trial_id: self._trial_show.get(trial_id) == show_id)

    async def write_trial_override(
        self, trial_id: int, policy: Policy, value: PolicyValue, actor: str
    ) -> None:
        self._enter("write_trial_override", trial_id, policy, value, actor)
        if trial_id not in self._trial_show:
            raise PersistenceError(f"Trial {trial_id} does not exist.")
        self._put(Scope.TRIAL, trial_id, policy, value, actor)

    async def delete_trial_override(self, trial_id: int, policy: Policy) -> None:
        self._enter("delete_trial_override", trial_id, policy)
        self._overrides.pop((Scope.TRIAL, trial_id, policy), None)

    async def read_class_overrides(self, show_id: str) -> List[OverrideRecord]:
        self._enter("read_class_overrides", show_id)
        return self._records(
            Scope.CLASS,
            lambda class_id: self._trial_show.get(self._class_trial.get(class_id)) == show_id,
        )

    async def write_class_overrides(
        self,
        class_ids: Sequence[int],
        policy: Policy,
        value: PolicyValue,
        actor: str,
    ) -> None:
        class_ids = tuple(class_ids)
        self._enter("write_class_overrides", class_ids, policy, value, actor)
        self._check_classes(class_ids)
        for class_id in class_ids:
            self._put(Scope.CLASS, class_id, policy, value, actor)

    async def delete_class_overrides(
        self, class_ids: Sequence[int], policy: Policy
    ) -> None:
        class_ids = tuple(class_ids)
        self._enter("delete_class_overrides", class_ids, policy)
        self._check_classes(class_ids)
        for class_id in class_ids:
            self._overrides.pop((Scope.CLASS, class_id, policy), None)

    async def append_audit_entry(
        self,
        scope: Scope,
        scope_id,
        policy: Policy,
        actor: str,
        from_value: Optional[str],
        to_value: Optional[str],
        timestamp: datetime,
    ) -> None:
        self._enter("append_audit_entry", scope, scope_id, policy)
        self._audit_rows.append(
            {
                "scope": scope.value,
                "scope_id": str(scope_id),
                "policy": policy.value,
                "actor": actor,
                "from_value": from_value,
                "to_value": to_value,
                "occurred_at": timestamp,
            }
        )

    async def read_results_releases(self, show_id: str) -> List[ResultsRelease]:
        self._enter("read_results_releases", show_id)
        return [
            release
            for class_id, release in sorted(self._releases.items())
            if self._trial_show.get(self._class_trial.get(class_id)) == show_id
        ]

    async def release_class_results(
        self, class_ids: Sequence[int], actor: str, released_at: datetime
    ) -> None:
        class_ids = tuple(class_ids)
        self._enter("release_class_results", class_ids, actor)
        self._check_classes(class_ids)
        for class_id in class_ids:
            self._releases[class_id] = ResultsRelease(class_id, actor, released_at)

    # ── internals ─────────────────────────────────────────────

    def _check_classes(self, class_ids: Iterable[int]) -> None:
        for class_id in class_ids:
            if class_id in self._fail_classes:
                raise self._fail_classes[class_id]
            if class_id not in self._class_trial:
                raise PersistenceError(f"Class {class_id} does not exist.")

    def _put(
        self, scope: Scope, scope_id: int, policy: Policy, value: PolicyValue, actor: str
    ) -> None:
        record = OverrideRecord(
            scope=scope,
            scope_id=scope_id,
            policy=policy,
            value=value,
            actor=actor,
            updated_at=self._now(),
        )
        self._overrides[record.key()] = record
        logger.debug(f"Stored {scope.value} override {scope_id} {policy.value}={value!r}")

    def _records(self, scope: Scope, belongs) -> List[OverrideRecord]:
        return sorted(
            (
                record
                for (rec_scope, scope_id, _), record in self._overrides.items()
                if rec_scope is scope and belongs(scope_id)
            ),
            key=lambda r: (r.scope_id, r.policy.value),
        )
