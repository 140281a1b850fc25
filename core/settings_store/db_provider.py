"""
Ringside Settings Store - DB-backed Provider
============================================
OverrideStore over the relational settings tables, using Django's
async ORM for reads and single-row writes. Batch class writes run in
one transaction through sync_to_async, since transaction.atomic is
not available to async code.

Database failures surface as PersistenceError with the driver message.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from asgiref.sync import sync_to_async
from django.db import DatabaseError, transaction

from core.policies.errors import PersistenceError
from core.policies.models import (
    OverrideRecord,
    Policy,
    PolicyValue,
    ResultsRelease,
    Scope,
    ShowDefaults,
    VisibilityPreset,
)


logger = logging.getLogger("ringside.store")


def _wrap(exc: Exception, action: str) -> PersistenceError:
    logger.error(f"Settings store failed to {action}: {exc}", exc_info=True)
    return PersistenceError(str(exc) or f"Failed to {action}.")


class DbOverrideStore:
    async def read_show_default(self, show_id: str) -> ShowDefaults:
        from core.settings_store.models import ShowSettingsDefault

        try:
            row = await ShowSettingsDefault.objects.filter(license_key=show_id).afirst()
        except DatabaseError as exc:
            raise _wrap(exc, "read show defaults") from exc

        if row is None:
            return ShowDefaults()
        return ShowDefaults(
            visibility_preset=VisibilityPreset(row.visibility_preset),
            self_checkin_enabled=bool(row.self_checkin_enabled),
        )

    async def write_show_default(
        self, show_id: str, policy: Policy, value: PolicyValue, actor: str
    ) -> None:
        from core.settings_store.models import ShowSettingsDefault

        value = policy.validate(value)
        if policy is Policy.VISIBILITY:
            defaults = {"visibility_preset": value.value}
        else:
            defaults = {"self_checkin_enabled": value}
        defaults["updated_by"] = actor

        try:
            await ShowSettingsDefault.objects.aupdate_or_create(
                license_key=show_id,
                defaults=defaults,
            )
        except DatabaseError as exc:
            raise _wrap(exc, "write show default") from exc

    async def read_trial_overrides(self, show_id: str) -> List[OverrideRecord]:
        from core.settings_store.models import TrialSettingsOverride

        rows = TrialSettingsOverride.objects.filter(
            trial__license_key=show_id,
        ).order_by("trial_id", "policy")
        try:
            return [
                self._to_record(Scope.TRIAL, row.trial_id, row)
                async for row in rows
            ]
        except DatabaseError as exc:
            raise _wrap(exc, "read trial overrides") from exc

    async def write_trial_override(
        self, trial_id: int, policy: Policy, value: PolicyValue, actor: str
    ) -> None:
        from core.settings_store.models import Trial, TrialSettingsOverride

        encoded = policy.encode(value)
        try:
            if not await Trial.objects.filter(pk=trial_id).aexists():
                raise PersistenceError(f"Trial {trial_id} does not exist.")
            await TrialSettingsOverride.objects.aupdate_or_create(
                trial_id=trial_id,
                policy=policy.value,
                defaults={"value": encoded, "updated_by": actor},
            )
        except DatabaseError as exc:
            raise _wrap(exc, "write trial override") from exc

    async def delete_trial_override(self, trial_id: int, policy: Policy) -> None:
        from core.settings_store.models import TrialSettingsOverride

        try:
            await TrialSettingsOverride.objects.filter(
                trial_id=trial_id,
                policy=policy.value,
            ).adelete()
        except DatabaseError as exc:
            raise _wrap(exc, "delete trial override") from exc

    async def read_class_overrides(self, show_id: str) -> List[OverrideRecord]:
        from core.settings_store.models import ClassSettingsOverride

        rows = ClassSettingsOverride.objects.filter(
            trial_class__trial__license_key=show_id,
        ).order_by("trial_class_id", "policy")
        try:
            return [
                self._to_record(Scope.CLASS, row.trial_class_id, row)
                async for row in rows
            ]
        except DatabaseError as exc:
            raise _wrap(exc, "read class overrides") from exc

    async def write_class_overrides(
        self,
        class_ids: Sequence[int],
        policy: Policy,
        value: PolicyValue,
        actor: str,
    ) -> None:
        encoded = policy.encode(value)
        try:
            await sync_to_async(self._write_class_overrides)(
                tuple(class_ids), policy.value, encoded, actor
            )
        except DatabaseError as exc:
            raise _wrap(exc, "write class overrides") from exc

    async def delete_class_overrides(
        self, class_ids: Sequence[int], policy: Policy
    ) -> None:
        from core.settings_store.models import ClassSettingsOverride

        try:
            await ClassSettingsOverride.objects.filter(
                trial_class_id__in=tuple(class_ids),
                policy=policy.value,
            ).adelete()
        except DatabaseError as exc:
            raise _wrap(exc, "delete class overrides") from exc

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
        from core.settings_store.models import SettingsAuditRecord

        try:
            await SettingsAuditRecord.objects.acreate(
                scope=scope.value,
                scope_id=str(scope_id),
                policy=policy.value,
                actor=actor,
                from_value=from_value,
                to_value=to_value,
                occurred_at=timestamp,
            )
        except DatabaseError as exc:
            raise _wrap(exc, "append audit entry") from exc

    async def read_results_releases(self, show_id: str) -> List[ResultsRelease]:
        from core.settings_store.models import TrialClass

        rows = TrialClass.objects.filter(
            trial__license_key=show_id,
            results_released_at__isnull=False,
        ).order_by("id")
        try:
            return [
                ResultsRelease(
                    class_id=int(row.id),
                    released_by=row.results_released_by,
                    released_at=row.results_released_at,
                )
                async for row in rows
            ]
        except DatabaseError as exc:
            raise _wrap(exc, "read results releases") from exc

    async def release_class_results(
        self, class_ids: Sequence[int], actor: str, released_at: datetime
    ) -> None:
        try:
            await sync_to_async(self._release_class_results)(
                tuple(class_ids), actor, released_at
            )
        except DatabaseError as exc:
            raise _wrap(exc, "release class results") from exc

    # ── internals ─────────────────────────────────────────────

    @staticmethod
    def _write_class_overrides(
        class_ids: tuple, policy: str, encoded: str, actor: str
    ) -> None:
        from core.settings_store.models import ClassSettingsOverride, TrialClass

        with transaction.atomic():
            known = set(
                TrialClass.objects.filter(pk__in=class_ids).values_list("id", flat=True)
            )
            missing = sorted(set(class_ids) - known)
            if missing:
                raise PersistenceError(f"Classes do not exist: {missing}")
            for class_id in class_ids:
                ClassSettingsOverride.objects.update_or_create(
                    trial_class_id=class_id,
                    policy=policy,
                    defaults={"value": encoded, "updated_by": actor},
                )

    @staticmethod
    def _release_class_results(
        class_ids: tuple, actor: str, released_at: datetime
    ) -> None:
        from core.settings_store.models import TrialClass

        with transaction.atomic():
            classes = TrialClass.objects.filter(pk__in=class_ids)
            missing = sorted(set(class_ids) - set(classes.values_list("id", flat=True)))
            if missing:
                raise PersistenceError(f"Classes do not exist: {missing}")
            classes.update(
                results_released_by=actor,
                results_released_at=released_at,
            )

    @staticmethod
    def _to_record(scope: Scope, scope_id: int, row) -> OverrideRecord:
        policy = Policy(row.policy)
        return OverrideRecord(
            scope=scope,
            scope_id=int(scope_id),
            policy=policy,
            value=policy.decode(row.value),
            actor=row.updated_by,
            updated_at=row.updated_at,
        )
