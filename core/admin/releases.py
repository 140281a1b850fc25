"""
Ringside Admin - Results Release
================================
Tracks which classes have had their results officially released.

A release unlocks every `manual_release` field of the review preset.
Like the settings controllers, state changes only after the store
accepted the release.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from core.commands.outcomes import OperationResult
from core.policies.errors import ErrorCode, describe_failure
from core.policies.models import ResultsRelease
from core.time.clock import Clock, SystemClock


logger = logging.getLogger("ringside.settings")


class ResultsReleaseController:
    def __init__(self, show_id: str, store, clock: Optional[Clock] = None) -> None:
        if not show_id or not isinstance(show_id, str):
            raise ValueError("show_id must be a non-empty string.")
        self._show_id = show_id
        self._store = store
        self._clock = clock or SystemClock()
        self._releases: Dict[int, ResultsRelease] = {}
        self._detached = False

    @property
    def releases(self) -> Mapping[int, ResultsRelease]:
        return MappingProxyType(self._releases)

    def is_released(self, class_id: int) -> bool:
        return class_id in self._releases

    def release_for(self, class_id: int) -> Optional[ResultsRelease]:
        return self._releases.get(class_id)

    @property
    def detached(self) -> bool:
        return self._detached

    def detach(self) -> None:
        self._detached = True

    async def load(self) -> OperationResult:
        try:
            releases = await self._store.read_results_releases(self._show_id)
        except Exception as exc:
            logger.error(
                f"Loading results releases for show {self._show_id} failed: {exc}",
                exc_info=True,
            )
            return OperationResult.failed(
                describe_failure(exc, "Failed to load results releases"),
                ErrorCode.PERSISTENCE_FAILED,
            )
        if not self._detached:
            self._releases = {release.class_id: release for release in releases}
        return OperationResult.ok()

    async def persist_release(self, class_id: int, actor: str) -> ResultsRelease:
        """Release one class in the store. Raises whatever the store raises."""
        released_at = self._clock.now_utc()
        await self._store.release_class_results((class_id,), actor, released_at)
        return ResultsRelease(class_id=class_id, released_by=actor, released_at=released_at)

    def commit_release(self, release: ResultsRelease) -> None:
        if self._detached:
            logger.info("Discarding results release: controller detached")
            return
        self._releases[release.class_id] = release
        logger.info(f"Results for class {release.class_id} released by {release.released_by}")
