"""
Ringside Admin - Bulk Operation Coordinator
===========================================
One class selection shared by every bulk action on the admin screen.

Selection is a set of class ids, changed only through toggle(),
select_all() and clear(). Each bulk action issues one store call per
selected class, concurrently, and aggregates the outcome:

- every call succeeded: selection cleared, success with the labels
- any call failed: selection kept, failure naming the failed classes

Classes whose call did succeed are applied locally even when a sibling
failed. Nothing is rolled back or retried.

Bulk actions:
    apply(controller, value, ...)   - set one policy value on each class
    release_results(releases, ...)  - officially release class results
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, List, Mapping, Optional, Sequence, Set

from core.commands.outcomes import OperationResult
from core.policies.errors import ErrorCode, ValidationError, describe_failure
from core.policies.models import ClassInfo, Policy


logger = logging.getLogger("ringside.bulk")


EMPTY_SELECTION_MESSAGES: Mapping[Policy, str] = {
    Policy.VISIBILITY: "Please select at least one class to apply visibility settings.",
    Policy.SELF_CHECKIN: "Please select at least one class to apply self check-in settings.",
}

FAILURE_MESSAGES: Mapping[Policy, str] = {
    Policy.VISIBILITY: "Failed to update class visibility",
    Policy.SELF_CHECKIN: "Failed to update class self check-in",
}

EMPTY_RELEASE_MESSAGE = "Please select at least one class to release results for."
RELEASE_FAILURE_MESSAGE = "Failed to release results"


def label_for(class_id: int, entities: Mapping[int, ClassInfo]) -> str:
    info = entities.get(class_id)
    if info is None:
        return f"Class {class_id}"
    return info.label


def _missing_actor(actor) -> Optional[OperationResult]:
    if not isinstance(actor, str) or not actor.strip():
        return OperationResult.failed(
            "An administrator name is required for this change.",
            ErrorCode.ACTOR_REQUIRED,
        )
    return None


class BulkOperationCoordinator:
    def __init__(self) -> None:
        self._selected: Set[int] = set()

    # ── selection ─────────────────────────────────────────────

    @property
    def selected(self) -> frozenset:
        return frozenset(self._selected)

    def is_selected(self, class_id: int) -> bool:
        return class_id in self._selected

    def toggle(self, class_id: int) -> None:
        if class_id in self._selected:
            self._selected.discard(class_id)
        else:
            self._selected.add(class_id)
        logger.debug(f"Selection toggled {class_id}: {sorted(self._selected)}")

    def select_all(self, entities: Iterable[ClassInfo]) -> None:
        self._selected = {info.id for info in entities}
        logger.debug(f"Selected all: {sorted(self._selected)}")

    def clear(self) -> None:
        self._selected = set()
        logger.debug("Selection cleared")

    # ── bulk actions ──────────────────────────────────────────

    async def apply(
        self,
        controller,
        value,
        entities: Sequence[ClassInfo],
        actor: str,
    ) -> OperationResult:
        policy: Policy = controller.policy
        if not self._selected:
            return OperationResult.failed(
                EMPTY_SELECTION_MESSAGES[policy],
                ErrorCode.EMPTY_SELECTION,
            )
        rejected = _missing_actor(actor)
        if rejected is not None:
            return rejected
        try:
            value = policy.validate(value)
        except ValidationError as exc:
            return OperationResult.failed(exc.message, exc.code)

        by_id = {info.id: info for info in entities}

        def trial_of(class_id: int) -> Optional[int]:
            info = by_id.get(class_id)
            return info.trial_id if info is not None else None

        async def commit(class_id: int, state) -> None:
            await controller.commit_class_state(class_id, trial_of(class_id), state, actor)

        return await self._fan_out(
            f"{policy.value} set to {value!r}",
            by_id,
            lambda class_id: controller.persist_class_value(class_id, trial_of(class_id), value, actor),
            commit,
            FAILURE_MESSAGES[policy],
            actor,
        )

    async def release_results(
        self,
        releases,
        entities: Sequence[ClassInfo],
        actor: str,
    ) -> OperationResult:
        if not self._selected:
            return OperationResult.failed(EMPTY_RELEASE_MESSAGE, ErrorCode.EMPTY_SELECTION)
        rejected = _missing_actor(actor)
        if rejected is not None:
            return rejected

        async def commit(class_id: int, release) -> None:
            releases.commit_release(release)

        return await self._fan_out(
            "results release",
            {info.id: info for info in entities},
            lambda class_id: releases.persist_release(class_id, actor),
            commit,
            RELEASE_FAILURE_MESSAGE,
            actor,
        )

    async def _fan_out(
        self,
        action: str,
        by_id: Mapping[int, ClassInfo],
        persist: Callable[[int], Awaitable],
        commit: Callable[[int, object], Awaitable[None]],
        failure_message: str,
        actor: str,
    ) -> OperationResult:
        class_ids = sorted(self._selected)
        labels = [label_for(class_id, by_id) for class_id in class_ids]

        outcomes = await asyncio.gather(
            *(persist(class_id) for class_id in class_ids),
            return_exceptions=True,
        )

        failures: List[tuple] = []
        for class_id, label, outcome in zip(class_ids, labels, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(
                    f"Bulk {action} failed for class {class_id}: {outcome}",
                    exc_info=outcome,
                )
                failures.append((class_id, label, outcome))
                continue
            await commit(class_id, outcome)

        if failures:
            failed_ids = {class_id for class_id, _, _ in failures}
            failed_labels = tuple(label for _, label, _ in failures)
            succeeded = tuple(
                label for class_id, label in zip(class_ids, labels) if class_id not in failed_ids
            )
            logger.warning(f"Bulk {action}: {len(failures)} of {len(class_ids)} classes failed")
            return OperationResult.failed(
                describe_failure(failures[0][2], failure_message),
                ErrorCode.PERSISTENCE_FAILED,
                affected_labels=succeeded,
                failed_labels=failed_labels,
            )

        self.clear()
        logger.info(f"Bulk {action} on {len(class_ids)} classes by {actor}")
        return OperationResult.ok(affected_labels=tuple(labels))
