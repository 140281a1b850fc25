"""
Ringside Identity - Public API
==============================
Actor gate, identity prompt and one-shot continuations.
"""

from core.identity.gate import ActorIdentityGate, IdentityPrompt, PendingAction
from core.identity.requirements import ACTOR_REQUIRED_MESSAGE, EMPTY_NAME_MESSAGE

__all__ = [
    "ACTOR_REQUIRED_MESSAGE",
    "EMPTY_NAME_MESSAGE",
    "ActorIdentityGate",
    "IdentityPrompt",
    "PendingAction",
]
