"""
Ringside Command Layer - Operation Result Contract
==================================================
Every settings operation returns exactly one OperationResult. No
exception crosses the controller/coordinator boundary.

Rules:
- success=True must NOT carry an error
- success=False must carry a non-empty error (no silent failures)
- affected_labels lists the entities a bulk operation touched
- failed_labels lists the entities whose store call failed
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple


@dataclass(frozen=True)
class OperationResult:
    success: bool
    error: Optional[str] = None
    code: Optional[str] = None
    affected_labels: Tuple[str, ...] = ()
    failed_labels: Tuple[str, ...] = ()

    def __post_init__(self):
        if not isinstance(self.success, bool):
            raise ValueError("success must be a bool.")

        if self.success and self.error is not None:
            raise ValueError("Successful result must NOT include an error.")

        if not self.success and not self.error:
            raise ValueError(
                "Failed result must include an error message. "
                "No silent failures allowed."
            )

        object.__setattr__(self, "affected_labels", tuple(self.affected_labels))
        object.__setattr__(self, "failed_labels", tuple(self.failed_labels))

    @classmethod
    def ok(cls, affected_labels: Iterable[str] = ()) -> "OperationResult":
        return cls(success=True, affected_labels=tuple(affected_labels))

    @classmethod
    def failed(
        cls,
        error: str,
        code: Optional[str] = None,
        *,
        affected_labels: Iterable[str] = (),
        failed_labels: Iterable[str] = (),
    ) -> "OperationResult":
        return cls(
            success=False,
            error=error,
            code=code,
            affected_labels=tuple(affected_labels),
            failed_labels=tuple(failed_labels),
        )

    def to_dict(self) -> dict:
        data: dict = {"success": self.success}
        if self.error is not None:
            data["error"] = self.error
        if self.code is not None:
            data["code"] = self.code
        if self.affected_labels:
            data["affected_labels"] = list(self.affected_labels)
        if self.failed_labels:
            data["failed_labels"] = list(self.failed_labels)
        return data
