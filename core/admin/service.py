"""
Ringside Admin - Competition Admin Service
==========================================
Composition root for the competition settings screen.

Wires one ActorCell, the identity gate/prompt, both settings
controllers, the results release controller and one bulk coordinator
whose class selection is shared by every bulk action. Every mutating
handler goes through the gate, so nothing reaches the store without
a named actor. Handlers return the OperationResult of the underlying
controller or coordinator unchanged.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, Optional, Sequence, Tuple

from core.admin.bulk import BulkOperationCoordinator
from core.admin.releases import ResultsReleaseController
from core.admin.settings import SelfCheckinSettingsController, VisibilitySettingsController
from core.audit.recorder import StoreAuditRecorder
from core.commands.outcomes import OperationResult
from core.context.actor_context import ActorCell
from core.identity.gate import ActorIdentityGate, IdentityPrompt
from core.policies.models import ClassInfo, VisibilityPreset
from core.policies.visibility import ViewerRole, VisibleResultFields
from core.time.clock import Clock, SystemClock


logger = logging.getLogger("ringside.settings")


class CompetitionAdminService:
    def __init__(
        self,
        *,
        show_id: str,
        store,
        actor: Optional[ActorCell] = None,
        audit=None,
        clock: Optional[Clock] = None,
    ):
        self._show_id = show_id
        self._store = store
        self._actor = actor if actor is not None else ActorCell()
        self._prompt = IdentityPrompt(self._actor)
        self._gate = ActorIdentityGate(self._actor, self._prompt)
        self._clock = clock or SystemClock()
        audit = audit if audit is not None else StoreAuditRecorder(store)

        self.visibility = VisibilitySettingsController(show_id, store, audit, self._clock)
        self.self_checkin = SelfCheckinSettingsController(show_id, store, audit, self._clock)
        self.releases = ResultsReleaseController(show_id, store, self._clock)
        self.bulk = BulkOperationCoordinator()

        self._trial_ids: Tuple[int, ...] = ()
        self._classes: Dict[int, ClassInfo] = {}

    # ── wiring ────────────────────────────────────────────────

    @property
    def show_id(self) -> str:
        return self._show_id

    @property
    def actor(self) -> ActorCell:
        return self._actor

    @property
    def prompt(self) -> IdentityPrompt:
        return self._prompt

    @property
    def gate(self) -> ActorIdentityGate:
        return self._gate

    @property
    def classes(self) -> Tuple[ClassInfo, ...]:
        return tuple(self._classes.values())

    async def load(
        self,
        trial_ids: Iterable[int] = (),
        classes: Iterable[ClassInfo] = (),
    ) -> OperationResult:
        """Load both policies for the given trials/classes."""
        self._trial_ids = tuple(trial_ids)
        self._classes = {info.id: info for info in classes}
        results = await asyncio.gather(
            self.visibility.load(self._trial_ids, self._classes.values()),
            self.self_checkin.load(self._trial_ids, self._classes.values()),
            self.releases.load(),
        )
        for result in results:
            if not result.success:
                return result
        return OperationResult.ok()

    async def submit_admin_name(self, name: str):
        """Save the name from the identity prompt and replay the blocked action."""
        return await self._prompt.submit(name)

    def dismiss_admin_prompt(self) -> None:
        self._prompt.dismiss()

    def detach(self) -> None:
        self._prompt.dismiss()
        self.visibility.detach()
        self.self_checkin.detach()
        self.releases.detach()
        logger.info(f"Admin service for show {self._show_id} detached")

    def _trial_of(self, class_id: int) -> Optional[int]:
        info = self._classes.get(class_id)
        return info.trial_id if info is not None else None

    # ── visibility ────────────────────────────────────────────

    async def set_show_visibility(self, preset: VisibilityPreset) -> OperationResult:
        return await self._gate.guard(self.visibility.set_show_default, preset)

    async def set_trial_visibility(self, trial_id: int, preset: VisibilityPreset) -> OperationResult:
        return await self._gate.guard(self.visibility.set_trial_override, trial_id, preset)

    async def remove_trial_visibility(self, trial_id: int) -> OperationResult:
        return await self._gate.guard(self.visibility.remove_trial_override, trial_id)

    async def set_class_visibility(self, class_id: int, preset: VisibilityPreset) -> OperationResult:
        return await self._gate.guard(
            self.visibility.set_class_override, class_id, self._trial_of(class_id), preset
        )

    async def remove_class_visibility(self, class_id: int) -> OperationResult:
        return await self._gate.guard(self.visibility.remove_class_override, class_id)

    async def bulk_set_visibility(self, preset: VisibilityPreset) -> OperationResult:
        return await self._gate.guard(self._bulk_apply, self.visibility, preset)

    # ── self check-in ─────────────────────────────────────────

    async def set_show_self_checkin(self, enabled: bool) -> OperationResult:
        return await self._gate.guard(self.self_checkin.set_show_default, enabled)

    async def set_trial_self_checkin(self, trial_id: int, enabled: bool) -> OperationResult:
        return await self._gate.guard(self.self_checkin.set_trial_override, trial_id, enabled)

    async def remove_trial_self_checkin(self, trial_id: int) -> OperationResult:
        return await self._gate.guard(self.self_checkin.remove_trial_override, trial_id)

    async def set_class_self_checkin(self, class_id: int, enabled: bool) -> OperationResult:
        return await self._gate.guard(
            self.self_checkin.set_class_override, class_id, self._trial_of(class_id), enabled
        )

    async def remove_class_self_checkin(self, class_id: int) -> OperationResult:
        return await self._gate.guard(self.self_checkin.remove_class_override, class_id)

    async def bulk_enable_self_checkin(self) -> OperationResult:
        return await self._gate.guard(self._bulk_apply, self.self_checkin, True)

    async def bulk_disable_self_checkin(self) -> OperationResult:
        return await self._gate.guard(self._bulk_apply, self.self_checkin, False)

    async def _bulk_apply(self, controller, value, *, actor: str) -> OperationResult:
        entities: Sequence[ClassInfo] = tuple(self._classes.values())
        return await self.bulk.apply(controller, value, entities, actor)

    # ── results release ───────────────────────────────────────

    async def bulk_release_results(self) -> OperationResult:
        return await self._gate.guard(self._release_results)

    async def _release_results(self, *, actor: str) -> OperationResult:
        entities: Sequence[ClassInfo] = tuple(self._classes.values())
        return await self.bulk.release_results(self.releases, entities, actor)

    def visible_fields_for_class(
        self, class_id: int, role: ViewerRole, class_complete: bool
    ) -> VisibleResultFields:
        """Result fields a viewer may see, given the class's release status."""
        return self.visibility.visible_fields_for_class(
            class_id,
            role,
            class_complete,
            self.releases.is_released(class_id),
            self._trial_of(class_id),
        )
