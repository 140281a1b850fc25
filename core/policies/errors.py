"""
Ringside Policies - Errors
==========================
Error taxonomy for the settings engine.

ValidationError   - caught before any store call (empty selection,
                    missing actor, value outside the policy domain).
PersistenceError  - the override store rejected or failed a call.

Both are caught at the controller/coordinator boundary and turned
into an OperationResult. Neither is rethrown past it.
"""

from __future__ import annotations


class ErrorCode:
    """Machine-readable failure codes. Convention: SCREAMING_SNAKE_CASE."""

    EMPTY_SELECTION = "EMPTY_SELECTION"
    ACTOR_REQUIRED = "ACTOR_REQUIRED"
    INVALID_VALUE = "INVALID_VALUE"
    PERSISTENCE_FAILED = "PERSISTENCE_FAILED"


class SettingsError(Exception):
    """Base error for the settings engine."""

    code = ErrorCode.PERSISTENCE_FAILED

    def __init__(self, message: str = "", *, code: str | None = None):
        if code is not None:
            self.code = code
        self.message = message
        super().__init__(message)


class ValidationError(SettingsError):
    """Request rejected before reaching the override store."""

    code = ErrorCode.INVALID_VALUE


class PersistenceError(SettingsError):
    """Override store call failed (network, conflict, server-side rejection)."""

    code = ErrorCode.PERSISTENCE_FAILED


def describe_failure(exc: BaseException, fallback: str) -> str:
    """
    Best-effort user-presentable message for a failed store call.

    Falls back to `fallback` when the exception carries no text.
    """
    message = getattr(exc, "message", None) or str(exc)
    message = message.strip() if isinstance(message, str) else ""
    return message or fallback
