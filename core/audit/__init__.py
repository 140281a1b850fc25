"""
Ringside Core Audit - Public API
================================
Immutable settings audit entries and write-only recorders.
"""

from core.audit.models import SettingsAuditEntry, encode_state
from core.audit.recorder import AuditRecorder, InMemoryAuditLog, StoreAuditRecorder

__all__ = [
    "AuditRecorder",
    "InMemoryAuditLog",
    "SettingsAuditEntry",
    "StoreAuditRecorder",
    "encode_state",
]
