"""
Ringside Admin - Cascading Settings Controllers
===============================================
Own the in-memory override maps for one show and one policy, and
expose set/remove operations at show, trial and class scope.

Rules:
- Persist first, then update local state. No optimistic updates:
  a failed store call leaves every map untouched.
- Normalization: setting a value equal to the inherited one removes
  the override instead, so Custom(v) never shadows an equal parent.
- Every store failure is caught here, logged and turned into an
  OperationResult. Nothing raises past the controller.
- One audit entry per successful change. Rewriting the current value
  persists but is not audited.
- After detach(), late store results are discarded, not applied.
"""

from __future__ import annotations

import asyncio
import logging
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional

from core.audit.models import encode_state
from core.cascade.resolver import resolve_trial, resolve_with_source
from core.commands.outcomes import OperationResult
from core.policies.errors import ErrorCode, ValidationError, describe_failure
from core.policies.models import (
    INHERITED,
    ClassInfo,
    Custom,
    OverrideState,
    Policy,
    PolicyValue,
    Scope,
)
from core.policies.visibility import ViewerRole, VisibleResultFields, visible_result_fields
from core.time.clock import Clock, SystemClock


logger = logging.getLogger("ringside.settings")


def _custom_value(state: Optional[OverrideState]) -> Optional[PolicyValue]:
    if isinstance(state, Custom):
        return state.value
    return None


class CascadeSettingsController:
    policy: Policy

    def __init__(
        self,
        show_id: str,
        store,
        audit=None,
        clock: Optional[Clock] = None,
    ) -> None:
        if not show_id or not isinstance(show_id, str):
            raise ValueError("show_id must be a non-empty string.")
        self._show_id = show_id
        self._store = store
        self._audit = audit
        self._clock = clock or SystemClock()
        self._show_default: PolicyValue = self.policy.fallback
        self._trial_overrides: Dict[int, OverrideState] = {}
        self._class_overrides: Dict[int, OverrideState] = {}
        self._class_trial: Dict[int, int] = {}
        self._detached = False

    # ── state ─────────────────────────────────────────────────

    @property
    def show_id(self) -> str:
        return self._show_id

    @property
    def show_default(self) -> PolicyValue:
        return self._show_default

    @property
    def trial_overrides(self) -> Mapping[int, OverrideState]:
        return MappingProxyType(self._trial_overrides)

    @property
    def class_overrides(self) -> Mapping[int, OverrideState]:
        return MappingProxyType(self._class_overrides)

    @property
    def detached(self) -> bool:
        return self._detached

    def detach(self) -> None:
        """The owning screen is gone; discard results of in-flight calls."""
        self._detached = True

    def trial_state(self, trial_id: int) -> Optional[OverrideState]:
        """Inherited / Custom, or None if the trial was never loaded."""
        return self._trial_overrides.get(trial_id)

    def class_state(self, class_id: int) -> Optional[OverrideState]:
        return self._class_overrides.get(class_id)

    def effective_for_trial(self, trial_id: int) -> PolicyValue:
        return resolve_trial(self._show_default, self._trial_overrides, trial_id)

    def effective_for_class(self, class_id: int, trial_id: Optional[int] = None) -> PolicyValue:
        return self.resolve_class(class_id, trial_id)[0]

    def resolve_class(self, class_id: int, trial_id: Optional[int] = None):
        """(effective value, source scope) for a class."""
        if trial_id is None:
            trial_id = self._class_trial.get(class_id)
        return resolve_with_source(
            self._show_default,
            self._trial_overrides,
            trial_id,
            self._class_overrides,
            class_id,
        )

    def inherited_for_class(self, class_id: int, trial_id: Optional[int] = None) -> Optional[PolicyValue]:
        """Value a class would have without its own override; None if its trial is unknown."""
        if trial_id is None:
            trial_id = self._class_trial.get(class_id)
        if trial_id is None:
            return None
        return resolve_trial(self._show_default, self._trial_overrides, trial_id)

    # ── load ──────────────────────────────────────────────────

    async def load(
        self,
        trial_ids: Iterable[int] = (),
        classes: Iterable[ClassInfo] = (),
    ) -> OperationResult:
        """
        Full re-read of this show's settings from the store.

        Every listed trial/class without a row becomes Inherited.
        On failure the previous state is kept.
        """
        trial_ids = tuple(trial_ids)
        classes = tuple(classes)
        try:
            defaults, trial_rows, class_rows = await asyncio.gather(
                self._store.read_show_default(self._show_id),
                self._store.read_trial_overrides(self._show_id),
                self._store.read_class_overrides(self._show_id),
            )
        except Exception as exc:
            logger.error(
                f"Loading {self.policy.value} settings for show {self._show_id} failed: {exc}",
                exc_info=True,
            )
            return OperationResult.failed(
                describe_failure(exc, "Failed to load settings"),
                ErrorCode.PERSISTENCE_FAILED,
            )

        if self._detached:
            return OperationResult.ok()

        trial_map: Dict[int, OverrideState] = {trial_id: INHERITED for trial_id in trial_ids}
        for record in trial_rows:
            if record.policy is self.policy:
                trial_map[record.scope_id] = Custom(record.value)

        class_map: Dict[int, OverrideState] = {info.id: INHERITED for info in classes}
        for record in class_rows:
            if record.policy is self.policy:
                class_map[record.scope_id] = Custom(record.value)

        self._show_default = defaults.value_for(self.policy)
        self._trial_overrides = trial_map
        self._class_overrides = class_map
        self._class_trial = {info.id: info.trial_id for info in classes}
        logger.info(
            f"Loaded {self.policy.value} settings for show {self._show_id}: "
            f"{len(trial_map)} trials, {len(class_map)} classes"
        )
        return OperationResult.ok()

    # ── show ──────────────────────────────────────────────────

    async def set_show_default(self, value, actor: str) -> OperationResult:
        rejected = self._check_actor(actor)
        if rejected is not None:
            return rejected
        try:
            value = self.policy.validate(value)
        except ValidationError as exc:
            return OperationResult.failed(exc.message, exc.code)

        error = await self._call_store(
            self._store.write_show_default(self._show_id, self.policy, value, actor),
            "Failed to update show setting",
        )
        if error is not None:
            return error
        if self._discarded("set_show_default"):
            return OperationResult.ok()

        previous = self._show_default
        self._show_default = value
        if previous == value:
            return OperationResult.ok()
        logger.info(f"Show {self._show_id} {self.policy.value} default: {previous!r} -> {value!r}")
        await self._record(Scope.SHOW, self._show_id, actor, previous, value)
        return OperationResult.ok()

    # ── trial ─────────────────────────────────────────────────

    async def set_trial_override(self, trial_id: int, value, actor: str) -> OperationResult:
        rejected = self._check_actor(actor)
        if rejected is not None:
            return rejected
        try:
            value = self.policy.validate(value)
        except ValidationError as exc:
            return OperationResult.failed(exc.message, exc.code)

        if value == self._show_default:
            return await self.remove_trial_override(trial_id, actor=actor)

        error = await self._call_store(
            self._store.write_trial_override(trial_id, self.policy, value, actor),
            "Failed to update trial setting",
        )
        if error is not None:
            return error
        if self._discarded("set_trial_override"):
            return OperationResult.ok()

        previous = self._trial_overrides.get(trial_id)
        self._trial_overrides[trial_id] = Custom(value)
        if previous == Custom(value):
            return OperationResult.ok()
        logger.info(f"Trial {trial_id} {self.policy.value} override set to {value!r}")
        await self._record(Scope.TRIAL, trial_id, actor, _custom_value(previous), value)
        return OperationResult.ok()

    async def remove_trial_override(self, trial_id: int, actor: str) -> OperationResult:
        rejected = self._check_actor(actor)
        if rejected is not None:
            return rejected
        error = await self._call_store(
            self._store.delete_trial_override(trial_id, self.policy),
            "Failed to remove trial override",
        )
        if error is not None:
            return error
        if self._discarded("remove_trial_override"):
            return OperationResult.ok()

        previous = self._trial_overrides.get(trial_id)
        self._trial_overrides[trial_id] = INHERITED
        if isinstance(previous, Custom):
            logger.info(f"Trial {trial_id} {self.policy.value} override removed")
            await self._record(Scope.TRIAL, trial_id, actor, previous.value, None)
        return OperationResult.ok()

    # ── class ─────────────────────────────────────────────────

    async def set_class_override(
        self, class_id: int, trial_id: Optional[int], value, actor: str
    ) -> OperationResult:
        rejected = self._check_actor(actor)
        if rejected is not None:
            return rejected
        try:
            value = self.policy.validate(value)
        except ValidationError as exc:
            return OperationResult.failed(exc.message, exc.code)

        try:
            target = await self.persist_class_value(class_id, trial_id, value, actor)
        except Exception as exc:
            return self._failure(exc, "Failed to update class setting")

        await self.commit_class_state(class_id, trial_id, target, actor)
        return OperationResult.ok()

    async def remove_class_override(self, class_id: int, actor: str) -> OperationResult:
        rejected = self._check_actor(actor)
        if rejected is not None:
            return rejected
        error = await self._call_store(
            self._store.delete_class_overrides((class_id,), self.policy),
            "Failed to remove class override",
        )
        if error is not None:
            return error

        await self.commit_class_state(class_id, None, INHERITED, actor)
        return OperationResult.ok()

    async def persist_class_value(
        self, class_id: int, trial_id: Optional[int], value: PolicyValue, actor: str
    ) -> OverrideState:
        """
        Issue the store call for one class and return the state it produced.

        Normalizes against the class's inherited value when its trial is
        known. Raises whatever the store raises.
        """
        inherited = self.inherited_for_class(class_id, trial_id)
        if inherited is not None and value == inherited:
            await self._store.delete_class_overrides((class_id,), self.policy)
            return INHERITED
        await self._store.write_class_overrides((class_id,), self.policy, value, actor)
        return Custom(value)

    async def commit_class_state(
        self,
        class_id: int,
        trial_id: Optional[int],
        state: OverrideState,
        actor: str,
    ) -> None:
        """Apply a persisted class state locally and audit it."""
        if self._discarded("commit_class_state"):
            return
        if trial_id is not None:
            self._class_trial[class_id] = trial_id

        previous = self._class_overrides.get(class_id)
        self._class_overrides[class_id] = state
        before, after = _custom_value(previous), _custom_value(state)
        if before == after:
            return
        logger.info(f"Class {class_id} {self.policy.value} override: {before!r} -> {after!r}")
        await self._record(Scope.CLASS, class_id, actor, before, after)

    # ── internals ─────────────────────────────────────────────

    def _check_actor(self, actor) -> Optional[OperationResult]:
        if not isinstance(actor, str) or not actor.strip():
            return OperationResult.failed(
                "An administrator name is required for this change.",
                ErrorCode.ACTOR_REQUIRED,
            )
        return None

    def _failure(self, exc: Exception, fallback: str) -> OperationResult:
        logger.error(
            f"{fallback} ({self.policy.value}, show {self._show_id}): {exc}",
            exc_info=True,
        )
        return OperationResult.failed(
            describe_failure(exc, fallback),
            ErrorCode.PERSISTENCE_FAILED,
        )

    async def _call_store(self, call, fallback: str) -> Optional[OperationResult]:
        try:
            await call
        except Exception as exc:
            return self._failure(exc, fallback)
        return None

    def _discarded(self, operation: str) -> bool:
        if self._detached:
            logger.info(f"Discarding {operation} result: controller detached")
        return self._detached

    async def _record(self, scope: Scope, scope_id, actor: str, before, after) -> None:
        if self._audit is None:
            return
        try:
            await self._audit.record(
                scope,
                scope_id,
                self.policy,
                actor,
                encode_state(self.policy, before),
                encode_state(self.policy, after),
                self._clock.now_utc(),
            )
        except Exception as exc:
            logger.error(
                f"Audit entry for {scope.value} {scope_id} {self.policy.value} not recorded: {exc}",
                exc_info=True,
            )


class VisibilitySettingsController(CascadeSettingsController):
    policy = Policy.VISIBILITY

    def visible_fields_for_class(
        self,
        class_id: int,
        role: ViewerRole,
        class_complete: bool,
        results_released: bool,
        trial_id: Optional[int] = None,
    ) -> VisibleResultFields:
        preset = self.effective_for_class(class_id, trial_id)
        return visible_result_fields(preset, role, class_complete, results_released)


class SelfCheckinSettingsController(CascadeSettingsController):
    policy = Policy.SELF_CHECKIN

    def is_enabled_for_class(self, class_id: int, trial_id: Optional[int] = None) -> bool:
        return bool(self.effective_for_class(class_id, trial_id))
