"""
Ringside Core Audit - Immutable Audit Models
============================================
Append-only record of who changed which setting, when, from what, to what.
Values are stored in their encoded form ("open", "true"); None means
the scope was inheriting.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core.policies.models import Policy, PolicyValue, Scope


def encode_state(policy: Policy, value: Optional[PolicyValue]) -> Optional[str]:
    """Encode a policy value for the audit trail. None stays None."""
    if value is None:
        return None
    return policy.encode(value)


@dataclass(frozen=True)
class SettingsAuditEntry:
    scope: Scope
    scope_id: str
    policy: Policy
    actor: str
    from_value: Optional[str]
    to_value: Optional[str]
    occurred_at: datetime

    def __post_init__(self) -> None:
        if not isinstance(self.scope, Scope):
            raise ValueError("scope must be a Scope.")

        if not isinstance(self.policy, Policy):
            raise ValueError("policy must be a Policy.")

        if self.occurred_at.tzinfo is None:
            raise ValueError("occurred_at must be timezone-aware.")

    @property
    def description(self) -> str:
        before = self.from_value if self.from_value is not None else "inherited"
        after = self.to_value if self.to_value is not None else "inherited"
        return (
            f"{self.scope.label} {self.scope_id}: {self.policy.value} "
            f"{before} -> {after} by {self.actor or 'unknown'}"
        )

    def to_dict(self) -> dict:
        return {
            "scope": self.scope.value,
            "scope_id": self.scope_id,
            "policy": self.policy.value,
            "actor": self.actor,
            "from_value": self.from_value,
            "to_value": self.to_value,
            "occurred_at": self.occurred_at.isoformat(),
        }
