"""
Ringside Cascade - Public API
=============================
"""

from core.cascade.resolver import (
    OverrideMap,
    resolve_class,
    resolve_source,
    resolve_trial,
    resolve_with_source,
)

__all__ = [
    "OverrideMap",
    "resolve_class",
    "resolve_source",
    "resolve_trial",
    "resolve_with_source",
]
