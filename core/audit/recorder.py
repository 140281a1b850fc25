"""
Ringside Core Audit - Recorders
===============================
Write-only audit sink used by the settings controllers.

The core records once per successful mutation (once per class for bulk
operations) and never reads entries back. Reporting over the trail is
a separate read-side concern.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Protocol, Tuple

from core.audit.models import SettingsAuditEntry
from core.policies.models import Policy, Scope


logger = logging.getLogger("ringside.audit")


class AuditRecorder(Protocol):
    async def record(
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


class StoreAuditRecorder:
    """Forwards audit entries to the override store's audit table."""

    def __init__(self, store) -> None:
        self._store = store

    async def record(
        self,
        scope: Scope,
        scope_id,
        policy: Policy,
        actor: str,
        from_value: Optional[str],
        to_value: Optional[str],
        timestamp: datetime,
    ) -> None:
        await self._store.append_audit_entry(
            scope, scope_id, policy, actor, from_value, to_value, timestamp
        )


class InMemoryAuditLog:
    """
    Append-only audit log kept in memory.

    Used by tests and as a local mirror when no store-backed trail exists.
    """

    def __init__(self) -> None:
        self._entries: List[SettingsAuditEntry] = []

    async def record(
        self,
        scope: Scope,
        scope_id,
        policy: Policy,
        actor: str,
        from_value: Optional[str],
        to_value: Optional[str],
        timestamp: datetime,
    ) -> None:
        entry = SettingsAuditEntry(
            scope=scope,
            scope_id=str(scope_id),
            policy=policy,
            actor=actor,
            from_value=from_value,
            to_value=to_value,
            occurred_at=timestamp,
        )
        self._entries.append(entry)
        logger.info(entry.description)

    @property
    def entries(self) -> Tuple[SettingsAuditEntry, ...]:
        return tuple(self._entries)

    def for_scope(self, scope: Scope, scope_id) -> Tuple[SettingsAuditEntry, ...]:
        return tuple(
            e for e in self._entries
            if e.scope is scope and e.scope_id == str(scope_id)
        )
