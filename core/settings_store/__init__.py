"""
Ringside Settings Store - Public API
====================================
The Django-backed provider lives in core.settings_store.db_provider
and is imported explicitly so this package loads without Django set up.
"""

from core.settings_store.provider import InMemoryOverrideStore, OverrideStore

__all__ = [
    "InMemoryOverrideStore",
    "OverrideStore",
]
