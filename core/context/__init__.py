"""
Ringside Context - Public API
=============================
"""

from core.context.actor_context import ActorCell

__all__ = [
    "ActorCell",
]
